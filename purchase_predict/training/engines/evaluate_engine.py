# purchase_predict/training/engines/evaluate_engine.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

import numpy as np
from scipy.stats import rankdata

from purchase_predict.data.events import Dataset
from purchase_predict.model.ensemble import BoostedEnsemble, DECISION_THRESHOLD
from purchase_predict.utils.errors import EmptyDatasetError

# AUC reported when the evaluated set holds a single class
DEGENERATE_AUC = 0.5


@dataclass(frozen=True)
class EvaluationMetrics:
    accuracy: float
    auc: float
    f1: float
    precision: float = 0.0
    recall: float = 0.0
    positive_rate: float = 0.0
    n_samples: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class EvaluateEngine:
    """
    EvaluateEngine（FINAL / FROZEN）

    Responsibility:
    - score a BoostedEnsemble on a labeled, already-normalized set
    - own ALL metric definitions

    Definitions:
    - predicted label = sigmoid(F(x)) >= 0.5
    - accuracy  = correct / total
    - f1        = 2PR / (P + R), 0 when P + R == 0
    - auc       = Mann-Whitney U / (n_pos · n_neg), average ranks on ties;
                  0.5 when only one class is present
    """

    def evaluate(self, ensemble: BoostedEnsemble, test: Dataset) -> EvaluationMetrics:
        if len(test) == 0:
            raise EmptyDatasetError("Cannot evaluate on an empty dataset")

        scores = ensemble.predict_proba(test.X)
        return self.metrics_from_scores(scores, test.y)

    def metrics_from_scores(self, scores: np.ndarray, y_true: np.ndarray) -> EvaluationMetrics:
        scores = np.asarray(scores, dtype=np.float64)
        y_true = np.asarray(y_true, dtype=bool)
        if scores.size == 0:
            raise EmptyDatasetError("Cannot evaluate on an empty dataset")

        y_pred = scores >= DECISION_THRESHOLD

        tp = int(np.sum(y_pred & y_true))
        fp = int(np.sum(y_pred & ~y_true))
        fn = int(np.sum(~y_pred & y_true))
        n = int(y_true.size)

        accuracy = float(np.sum(y_pred == y_true)) / n
        precision = tp / (tp + fp) if tp + fp else 0.0
        recall = tp / (tp + fn) if tp + fn else 0.0
        f1 = (
            2.0 * precision * recall / (precision + recall)
            if precision + recall > 0
            else 0.0
        )

        return EvaluationMetrics(
            accuracy=accuracy,
            auc=self.auc(scores, y_true),
            f1=f1,
            precision=precision,
            recall=recall,
            positive_rate=float(y_true.mean()),
            n_samples=n,
        )

    @staticmethod
    def auc(scores: np.ndarray, y_true: np.ndarray) -> float:
        y_true = np.asarray(y_true, dtype=bool)
        n_pos = int(y_true.sum())
        n_neg = int(y_true.size - n_pos)
        if n_pos == 0 or n_neg == 0:
            return DEGENERATE_AUC

        ranks = rankdata(scores, method="average")
        u = float(ranks[y_true].sum()) - n_pos * (n_pos + 1) / 2.0
        return u / (n_pos * n_neg)
