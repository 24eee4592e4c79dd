# purchase_predict/training/engines/tree_booster_engine.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
from scipy.special import expit

from purchase_predict.config.training_config import TrainingConfig
from purchase_predict.data.events import FEATURE_NAMES, Dataset
from purchase_predict.model.ensemble import BoostedEnsemble
from purchase_predict.model.tree import LEAF, DecisionTree
from purchase_predict.observability.progress import ProgressReporter
from purchase_predict.pipeline.parallel.executor import ParallelExecutor
from purchase_predict.pipeline.parallel.types import ParallelKind
from purchase_predict.utils.errors import (
    InsufficientDataError,
    TrainingCancelledError,
    TrainingStateError,
)

# base rate is clamped to [EPS, 1 - EPS] before taking the logit
BASE_RATE_EPS = 1e-6

# a split must lower the node's squared error by more than this
# (relative to the node error) to count as a reduction
MIN_RELATIVE_GAIN = 1e-12

# SSEs within this relative distance count as equal (summation order
# differs per feature), so ties fall to the lower threshold / feature
SSE_TIE_TOL = 1e-12


def _tie_margin(sse: float) -> float:
    return SSE_TIE_TOL * max(abs(sse), 1.0)


class TrainingState(str, Enum):
    INITIALIZED = "initialized"
    BOOSTING = "boosting"
    TRAINED = "trained"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class TrainingRun:
    """
    One boosting run. Single use: INITIALIZED → BOOSTING → TRAINED,
    or → FAILED / CANCELLED. ``ensemble`` is only set once TRAINED.
    """

    state: TrainingState = TrainingState.INITIALIZED
    iteration: int = 0
    ensemble: Optional[BoostedEnsemble] = None
    _cancel: threading.Event = field(default_factory=threading.Event, repr=False)

    def cancel(self) -> None:
        """Request a stop at the next iteration boundary."""
        self._cancel.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()


@dataclass(frozen=True)
class SplitCandidate:
    sse: float
    feature: int
    threshold: float


# ======================================================================
# Split search
# ======================================================================
def candidate_thresholds(X: np.ndarray, max_bins: int) -> List[np.ndarray]:
    """
    Per-feature split thresholds, computed once per run.

    - ≤ max_bins distinct values: every distinct value except the largest
    - otherwise: max_bins - 1 quantile cut points picked among the distinct
      values (method="lower" keeps them observed values)
    """
    out: List[np.ndarray] = []
    for j in range(X.shape[1]):
        distinct = np.unique(X[:, j])
        if distinct.size <= max_bins:
            cuts = distinct[:-1]
        else:
            qs = np.linspace(0.0, 1.0, max_bins + 1)[1:-1]
            cuts = np.unique(np.quantile(distinct, qs, method="lower"))
            cuts = cuts[cuts < distinct[-1]]
        out.append(cuts)
    return out


def best_split_for_feature(
    x: np.ndarray,
    r: np.ndarray,
    thresholds: np.ndarray,
    min_leaf: int = 1,
) -> Optional[Tuple[float, float]]:
    """
    Lowest children SSE over ``thresholds`` for one feature column.

    Only thresholds leaving at least ``min_leaf`` rows on each side count.
    Returns (sse, threshold) or None when no such threshold exists.
    Ties (within SSE_TIE_TOL) resolve to the lowest threshold.
    """
    n = x.shape[0]
    if n < 2 or thresholds.size == 0:
        return None

    order = np.argsort(x, kind="mergesort")
    xs = x[order]
    csum = np.cumsum(r[order])
    total = csum[-1]
    total_sq = float(np.dot(r, r))

    n_left = np.searchsorted(xs, thresholds, side="right")
    min_leaf = max(1, min_leaf)
    valid = (n_left >= min_leaf) & (n - n_left >= min_leaf)
    if not valid.any():
        return None

    nl = n_left[valid]
    nr = n - nl
    sl = csum[nl - 1]
    sr = total - sl

    sse = total_sq - (sl * sl) / nl - (sr * sr) / nr
    best = float(sse.min())
    k = int(np.flatnonzero(sse <= best + _tie_margin(best))[0])
    return float(sse[k]), float(thresholds[valid][k])


class _TreeBuilder:
    """
    Greedy depth-first regression tree growth into arena arrays.
    Node ids are assigned in pre-order (root = 0).
    """

    def __init__(
        self,
        X: np.ndarray,
        thresholds: List[np.ndarray],
        *,
        max_depth: int,
        min_leaf_size: int,
        n_workers: int,
    ):
        self.X = X
        self.thresholds = thresholds
        self.max_depth = max_depth
        self.min_leaf_size = min_leaf_size
        self.n_workers = n_workers

    def build(self, residuals: np.ndarray) -> DecisionTree:
        self._r = residuals
        self._feature: List[int] = []
        self._threshold: List[float] = []
        self._left: List[int] = []
        self._right: List[int] = []
        self._value: List[float] = []

        self._grow(np.arange(self.X.shape[0]), depth=0)

        return DecisionTree(
            feature=self._feature,
            threshold=self._threshold,
            left=self._left,
            right=self._right,
            value=self._value,
        )

    # ------------------------------------------------------------------
    def _new_node(self) -> int:
        self._feature.append(LEAF)
        self._threshold.append(0.0)
        self._left.append(LEAF)
        self._right.append(LEAF)
        self._value.append(0.0)
        return len(self._feature) - 1

    def _grow(self, idx: np.ndarray, depth: int) -> int:
        node = self._new_node()
        r = self._r[idx]

        if idx.size >= self.min_leaf_size and depth < self.max_depth:
            split = self._find_split(idx, r)
            if split is not None:
                mask = self.X[idx, split.feature] <= split.threshold
                self._feature[node] = split.feature
                self._threshold[node] = split.threshold
                self._left[node] = self._grow(idx[mask], depth + 1)
                self._right[node] = self._grow(idx[~mask], depth + 1)
                return node

        self._value[node] = float(r.mean())
        return node

    def _find_split(self, idx: np.ndarray, r: np.ndarray) -> Optional[SplitCandidate]:
        n_features = self.X.shape[1]

        def evaluate(j: int):
            return best_split_for_feature(
                self.X[idx, j], r, self.thresholds[j], self.min_leaf_size
            )

        results = ParallelExecutor.run(
            kind=ParallelKind.FEATURE,
            items=range(n_features),
            handler=evaluate,
            max_workers=self.n_workers,
        )

        # ordered combine: a later feature must beat the best by more than
        # the tie margin, so the lower feature index wins ties
        best: Optional[SplitCandidate] = None
        for j, res in enumerate(results):
            if res is None:
                continue
            sse, thr = res
            if best is None or sse < best.sse - _tie_margin(best.sse):
                best = SplitCandidate(sse=sse, feature=j, threshold=thr)

        if best is None:
            return None

        node_sse = float(np.dot(r, r)) - float(r.sum()) ** 2 / r.size
        if node_sse - best.sse <= MIN_RELATIVE_GAIN * max(node_sse, 1.0):
            return None
        return best


# ======================================================================
# Engine
# ======================================================================
class TreeBoostEngine:
    """
    TreeBoostEngine（FINAL / FROZEN）

    Gradient boosting for binary classification, log-loss, logit scale.

    1. bias = logit(clamped positive base rate)
    2. K times:
         F  = bias + learning_rate · Σ prior tree outputs
         r  = y - sigmoid(F)
         grow a regression tree on r (leaf = mean residual)
         append (tree, learning_rate)
    3. TRAINED run holds the BoostedEnsemble

    Determinism:
    - no randomness inside training
    - split tie-break: lower feature index, then lower threshold
    - parallel split search combines results in feature order
    """

    def __init__(
        self,
        cfg: TrainingConfig,
        *,
        progress: ProgressReporter | None = None,
    ):
        self.cfg = cfg
        self.progress = progress if progress is not None else ProgressReporter(enabled=False)

    def new_run(self) -> TrainingRun:
        return TrainingRun()

    def train(self, train: Dataset, *, run: TrainingRun | None = None) -> BoostedEnsemble:
        run = run if run is not None else self.new_run()

        if run.state is not TrainingState.INITIALIZED:
            raise TrainingStateError(
                f"Training run is {run.state.value}; start a new run instead"
            )

        try:
            return self._boost(train, run)
        except TrainingCancelledError:
            run.state = TrainingState.CANCELLED
            raise
        except Exception:
            run.state = TrainingState.FAILED
            raise

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _boost(self, train: Dataset, run: TrainingRun) -> BoostedEnsemble:
        self._check_trainable(train)

        cfg = self.cfg
        X = train.X
        y = train.y.astype(np.float64)

        bias = self.initial_bias(train)
        builder = _TreeBuilder(
            X,
            candidate_thresholds(X, cfg.max_bins),
            max_depth=cfg.max_tree_depth,
            min_leaf_size=cfg.min_leaf_size,
            n_workers=cfg.n_workers,
        )

        F = np.full(X.shape[0], bias, dtype=np.float64)
        trees: List[Tuple[DecisionTree, float]] = []

        run.state = TrainingState.BOOSTING
        self.progress.start("boosting", cfg.boosting_iterations, "trees")

        for k in range(cfg.boosting_iterations):
            if run.cancel_requested:
                raise TrainingCancelledError(
                    f"Training cancelled after {k} of {cfg.boosting_iterations} iterations"
                )

            residuals = y - expit(F)
            tree = builder.build(residuals)

            F += cfg.learning_rate * tree.predict(X)
            trees.append((tree, cfg.learning_rate))

            run.iteration = k + 1
            self.progress.update("boosting", k + 1, cfg.boosting_iterations, "trees")

        ensemble = BoostedEnsemble(
            bias=bias,
            learning_rate=cfg.learning_rate,
            trees=tuple(trees),
            feature_names=FEATURE_NAMES,
        )

        run.ensemble = ensemble
        run.state = TrainingState.TRAINED
        self.progress.done("boosting")
        return ensemble

    @staticmethod
    def _check_trainable(train: Dataset) -> None:
        if len(train) == 0:
            raise InsufficientDataError("Training set is empty")
        if train.is_single_class:
            only = "purchase" if train.n_positive else "non-purchase"
            raise InsufficientDataError(
                f"Training set has a single class ({only} only, n={len(train)})"
            )

    @staticmethod
    def initial_bias(train: Dataset) -> float:
        p = float(np.clip(train.positive_rate, BASE_RATE_EPS, 1.0 - BASE_RATE_EPS))
        return float(np.log(p / (1.0 - p)))
