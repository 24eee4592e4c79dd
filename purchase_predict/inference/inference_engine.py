#!filepath: purchase_predict/inference/inference_engine.py
from __future__ import annotations

"""
InferenceEngine (FINAL / FROZEN)

Runtime-only use of a trained model.

Responsibilities:
- extract features from ONE raw event (label is never looked at)
- normalize with the train-fitted params
- score with the ensemble, threshold at 0.5

Non-responsibilities:
- training, evaluation, dataset construction
- any mutation of params / ensemble (both are shared read-only)
"""

from typing import Sequence

import numpy as np

from purchase_predict.data.events import RawEvent
from purchase_predict.model.ensemble import DECISION_THRESHOLD, BoostedEnsemble
from purchase_predict.training.engines.feature_derive_engine import FeatureDeriveEngine
from purchase_predict.training.engines.normalize_engine import (
    NormalizationParams,
    NormalizeEngine,
)


class InferenceEngine:

    def __init__(self):
        self.deriver = FeatureDeriveEngine()
        self.normalizer = NormalizeEngine()

    def predict(
        self,
        event: RawEvent,
        params: NormalizationParams,
        ensemble: BoostedEnsemble,
    ) -> bool:
        return self.predict_proba(event, params, ensemble) >= DECISION_THRESHOLD

    def predict_proba(
        self,
        event: RawEvent,
        params: NormalizationParams,
        ensemble: BoostedEnsemble,
    ) -> float:
        return self.features_proba(self.deriver.features(event), params, ensemble)

    def predict_features(
        self,
        features: Sequence[float],
        params: NormalizationParams,
        ensemble: BoostedEnsemble,
    ) -> bool:
        """For callers that already hold [product_id, category_id, price, user_id]."""
        return self.features_proba(features, params, ensemble) >= DECISION_THRESHOLD

    def features_proba(
        self,
        features: Sequence[float],
        params: NormalizationParams,
        ensemble: BoostedEnsemble,
    ) -> float:
        x = self.normalizer.transform(
            np.asarray(self.deriver.vector(features), dtype=np.float64), params
        )
        return float(ensemble.predict_proba(x.reshape(1, -1))[0])
