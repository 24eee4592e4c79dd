# purchase_predict/training/steps/normalize_step.py
from __future__ import annotations

from purchase_predict import logs
from purchase_predict.data.events import FEATURE_NAMES
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext
from purchase_predict.training.engines.normalize_engine import NormalizeEngine


class NormalizeStep(PipelineStep):
    """
    NormalizeStep（FINAL）

    Contract:
    - fits on ctx.train_set ONLY (test rows never leak into params)
    - produces ctx.norm_params, ctx.train_norm, ctx.test_norm
    """

    stage = "normalize"

    def __init__(self, engine: NormalizeEngine | None = None, inst=None):
        super().__init__(inst)
        self.engine = engine or NormalizeEngine()

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.train_set is None or ctx.test_set is None:
            raise RuntimeError(f"[{self.step_name}] train / test sets are missing")

        with self.inst.timer("normalize"):
            params = self.engine.fit(ctx.train_set)
            ctx.train_norm = self.engine.transform_dataset(ctx.train_set, params)
            ctx.test_norm = self.engine.transform_dataset(ctx.test_set, params)

        degenerate = [name for name, span in zip(FEATURE_NAMES, params.span) if span == 0]
        ctx.norm_params = params

        logs.info(f"[{self.step_name}] params={params.to_dict()}")
        if degenerate:
            logs.warning(f"[{self.step_name}] constant features normalized to 0: {degenerate}")
        return ctx
