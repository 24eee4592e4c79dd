# purchase_predict/model/ensemble.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.special import expit

from purchase_predict.data.events import FEATURE_NAMES
from purchase_predict.model.tree import DecisionTree

DECISION_THRESHOLD = 0.5


@dataclass(frozen=True)
class BoostedEnsemble:
    """
    BoostedEnsemble（FINAL / FROZEN）

    raw score  F(x) = bias + Σ weight_k · tree_k(x)
    probability     = sigmoid(F(x))
    label           = probability >= 0.5

    Produced once by TreeBoostEngine; consumed read-only by evaluation
    and inference.
    """

    bias: float
    learning_rate: float
    trees: Tuple[Tuple[DecisionTree, float], ...] = ()
    feature_names: Tuple[str, ...] = FEATURE_NAMES

    def __post_init__(self):
        object.__setattr__(
            self,
            "trees",
            tuple((tree, float(weight)) for tree, weight in self.trees),
        )
        object.__setattr__(self, "feature_names", tuple(self.feature_names))

    def __len__(self) -> int:
        return len(self.trees)

    def raw_score(self, X: np.ndarray) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)

        score = np.full(X.shape[0], self.bias, dtype=np.float64)
        for tree, weight in self.trees:
            score += weight * tree.predict(X)
        return score

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        return expit(self.raw_score(X))

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.predict_proba(X) >= DECISION_THRESHOLD

    def structurally_equal(self, other: "BoostedEnsemble") -> bool:
        if (self.bias, self.learning_rate, len(self)) != (other.bias, other.learning_rate, len(other)):
            return False
        return all(
            w1 == w2 and t1.structurally_equal(t2)
            for (t1, w1), (t2, w2) in zip(self.trees, other.trees)
        )
