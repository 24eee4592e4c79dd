# purchase_predict/training/steps/model_evaluate_step.py
from __future__ import annotations

from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext
from purchase_predict.training.engines.evaluate_engine import EvaluateEngine


class ModelEvaluateStep(PipelineStep):
    """
    Held-out evaluation on ctx.test_norm.
    """

    stage = "model_evaluate"

    def __init__(self, engine: EvaluateEngine | None = None, inst=None):
        super().__init__(inst)
        self.engine = engine or EvaluateEngine()

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.ensemble is None or ctx.test_norm is None:
            raise RuntimeError(f"[{self.step_name}] ensemble / test set is missing")

        with self.inst.timer("model_evaluate"):
            metrics = self.engine.evaluate(ctx.ensemble, ctx.test_norm)

        ctx.evaluation = metrics
        headline = {name: getattr(metrics, name) for name in ("accuracy", "auc", "f1")}
        ctx.metrics.update(headline)
        self.inst.metrics.record_many(headline)
        return ctx
