# purchase_predict/training/steps/feature_derive_step.py
from __future__ import annotations

from purchase_predict import logs
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext
from purchase_predict.training.engines.feature_derive_engine import FeatureDeriveEngine


class FeatureDeriveStep(PipelineStep):
    """
    FeatureDeriveStep（FINAL）

    Contract:
    - consumes ctx.events
    - produces ctx.dataset
    """

    stage = "feature_derive"

    def __init__(self, engine: FeatureDeriveEngine | None = None, inst=None):
        super().__init__(inst)
        self.engine = engine or FeatureDeriveEngine()

    def run(self, ctx: TrainingContext) -> TrainingContext:
        with self.inst.timer("feature_derive"):
            dataset = self.engine.derive_all(ctx.events)

        logs.info(
            f"[{self.step_name}] rows={len(dataset)} "
            f"purchases={dataset.n_positive} "
            f"positive_rate={dataset.positive_rate:.4%}"
        )

        ctx.dataset = dataset
        return ctx
