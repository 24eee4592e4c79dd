# purchase_predict/data/events.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

PURCHASE_EVENT = "purchase"

# fixed feature order shared by training and inference
FEATURE_NAMES: Tuple[str, ...] = ("product_id", "category_id", "price", "user_id")
N_FEATURES = len(FEATURE_NAMES)


@dataclass(frozen=True)
class RawEvent:
    """
    One row of the e-commerce event log, as produced by ingestion.
    """
    event_time: str
    event_type: str
    product_id: float
    category_id: float
    category_code: str
    brand: str
    price: float
    user_id: float
    user_session: str


@dataclass(frozen=True)
class LabeledExample:
    label: bool
    features: Tuple[float, ...]


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class Dataset:
    """
    Dataset（FINAL / FROZEN）

    Columnar, read-only view over an ordered sequence of LabeledExample.

    - X : float64 (n, N_FEATURES), column order = FEATURE_NAMES
    - y : bool (n,)

    Emptiness is legal for the container; components that require
    data (Normalizer.fit, TreeBooster.train, Evaluator.evaluate) reject it.
    """

    X: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        X = np.array(self.X, dtype=np.float64, copy=True).reshape(-1, N_FEATURES)
        y = np.array(self.y, dtype=bool, copy=True).reshape(-1)
        if X.shape[0] != y.shape[0]:
            raise ValueError(
                f"X / y length mismatch: {X.shape[0]} != {y.shape[0]}"
            )
        object.__setattr__(self, "X", _readonly(X))
        object.__setattr__(self, "y", _readonly(y))

    # --------------------------------------------------
    # construction
    # --------------------------------------------------
    @classmethod
    def from_examples(cls, examples: Iterable[LabeledExample]) -> "Dataset":
        examples = list(examples)
        X = np.array([ex.features for ex in examples], dtype=np.float64)
        y = np.array([ex.label for ex in examples], dtype=bool)
        return cls(X=X.reshape(-1, N_FEATURES), y=y)

    def take(self, indices: Sequence[int] | np.ndarray) -> "Dataset":
        idx = np.asarray(indices, dtype=np.int64)
        return Dataset(X=self.X[idx], y=self.y[idx])

    def with_features(self, X: np.ndarray) -> "Dataset":
        return Dataset(X=X, y=self.y)

    # --------------------------------------------------
    # views
    # --------------------------------------------------
    def __len__(self) -> int:
        return int(self.y.shape[0])

    def __iter__(self) -> Iterator[LabeledExample]:
        for row, label in zip(self.X, self.y):
            yield LabeledExample(label=bool(label), features=tuple(float(v) for v in row))

    def __getitem__(self, i: int) -> LabeledExample:
        return LabeledExample(
            label=bool(self.y[i]),
            features=tuple(float(v) for v in self.X[i]),
        )

    @property
    def n_positive(self) -> int:
        return int(self.y.sum())

    @property
    def positive_rate(self) -> float:
        if len(self) == 0:
            return 0.0
        return self.n_positive / len(self)

    @property
    def is_single_class(self) -> bool:
        return self.n_positive in (0, len(self))
