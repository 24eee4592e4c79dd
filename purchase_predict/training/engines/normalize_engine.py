# purchase_predict/training/engines/normalize_engine.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from purchase_predict.data.events import N_FEATURES, Dataset
from purchase_predict.utils.errors import EmptyDatasetError


@dataclass(frozen=True)
class NormalizationParams:
    """
    Per-feature min / max fitted on the TRAIN set only.

    Invariant: maxs >= mins element-wise.
    """

    mins: np.ndarray
    maxs: np.ndarray

    def __post_init__(self):
        mins = np.array(self.mins, dtype=np.float64, copy=True).reshape(-1)
        maxs = np.array(self.maxs, dtype=np.float64, copy=True).reshape(-1)
        if mins.shape != maxs.shape:
            raise ValueError(f"mins / maxs shape mismatch: {mins.shape} != {maxs.shape}")
        if np.any(maxs < mins):
            raise ValueError("NormalizationParams requires max >= min for every feature")
        mins.setflags(write=False)
        maxs.setflags(write=False)
        object.__setattr__(self, "mins", mins)
        object.__setattr__(self, "maxs", maxs)

    @property
    def span(self) -> np.ndarray:
        return self.maxs - self.mins

    def to_dict(self) -> dict:
        return {"mins": self.mins.tolist(), "maxs": self.maxs.tolist()}


class NormalizeEngine:
    """
    NormalizeEngine（FINAL / FROZEN）

    Min-max scaling into [0, 1].

    - fit: one pass over the train matrix, per-column min / max
    - transform: (v - min) / (max - min), clamped to [0, 1]
    - degenerate column (max == min) → 0
    """

    def fit(self, train: Dataset) -> NormalizationParams:
        if len(train) == 0:
            raise EmptyDatasetError("Cannot fit normalization on an empty dataset")

        return NormalizationParams(
            mins=train.X.min(axis=0),
            maxs=train.X.max(axis=0),
        )

    def transform(
        self,
        features: Sequence[float] | np.ndarray,
        params: NormalizationParams,
    ) -> np.ndarray:
        """
        Accepts one feature vector (N_FEATURES,) or a matrix (n, N_FEATURES);
        returns a new float64 array of the same shape.
        """
        X = np.asarray(features, dtype=np.float64)
        if X.shape[-1] != N_FEATURES:
            raise ValueError(f"Expected {N_FEATURES} features, got shape {X.shape}")

        span = params.span
        live = span > 0
        safe_span = np.where(live, span, 1.0)

        out = (X - params.mins) / safe_span
        out = np.clip(out, 0.0, 1.0)
        return np.where(live, out, 0.0)

    def transform_dataset(self, dataset: Dataset, params: NormalizationParams) -> Dataset:
        return dataset.with_features(self.transform(dataset.X, params))
