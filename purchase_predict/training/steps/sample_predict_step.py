# purchase_predict/training/steps/sample_predict_step.py
from __future__ import annotations

from typing import Sequence

from purchase_predict import logs
from purchase_predict.inference.inference_engine import InferenceEngine
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext


class SamplePredictStep(PipelineStep):
    """
    Score one demonstration feature vector with the freshly trained model.
    """

    stage = "sample_predict"

    def __init__(self, features: Sequence[float], inst=None):
        super().__init__(inst)
        self.features = tuple(float(v) for v in features)
        self.engine = InferenceEngine()

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.ensemble is None or ctx.norm_params is None:
            raise RuntimeError(f"[{self.step_name}] no trained model for sample prediction")

        ctx.sample_prediction = self.engine.predict_features(
            self.features, ctx.norm_params, ctx.ensemble
        )
        logs.info(f"[{self.step_name}] Predicted purchase: {ctx.sample_prediction}")
        return ctx
