# purchase_predict/training/steps/dataset_split_step.py
from __future__ import annotations

from purchase_predict import logs
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext
from purchase_predict.training.engines.split_engine import SplitEngine


class DatasetSplitStep(PipelineStep):
    """
    DatasetSplitStep（FINAL）

    Contract:
    - consumes ctx.dataset
    - produces ctx.train_set / ctx.test_set (disjoint, seeded)
    """

    stage = "dataset_split"

    def __init__(self, engine: SplitEngine | None = None, inst=None):
        super().__init__(inst)
        self.engine = engine or SplitEngine()

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.dataset is None:
            raise RuntimeError(f"[{self.step_name}] ctx.dataset is missing")

        with self.inst.timer("dataset_split"):
            train, test = self.engine.split(
                ctx.dataset,
                test_fraction=ctx.cfg.test_fraction,
                seed=ctx.cfg.split_seed,
            )

        logs.info(
            f"[{self.step_name}] train={len(train)} test={len(test)} "
            f"test_fraction={ctx.cfg.test_fraction} seed={ctx.cfg.split_seed}"
        )

        ctx.train_set = train
        ctx.test_set = test
        return ctx
