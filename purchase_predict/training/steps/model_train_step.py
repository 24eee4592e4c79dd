# purchase_predict/training/steps/model_train_step.py
from __future__ import annotations

from purchase_predict import logs
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext
from purchase_predict.training.engines.tree_booster_engine import TreeBoostEngine


class ModelTrainStep(PipelineStep):
    """
    ModelTrainStep（FINAL）

    Contract:
    - consumes ctx.train_norm
    - produces ctx.training_run (always) and ctx.ensemble (TRAINED only)
    """

    stage = "model_train"

    def __init__(self, cfg, inst=None):
        super().__init__(inst)
        self.engine = TreeBoostEngine(cfg, progress=self.inst.progress)

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.train_norm is None:
            raise RuntimeError(f"[{self.step_name}] ctx.train_norm is missing")

        run = self.engine.new_run()
        ctx.training_run = run

        with self.inst.timer("model_train"):
            ensemble = self.engine.train(ctx.train_norm, run=run)

        cfg = self.engine.cfg
        n_nodes = sum(tree.n_nodes for tree, _ in ensemble.trees)
        logs.info(
            f"[{self.step_name}] trained trees={len(ensemble)} nodes={n_nodes} "
            f"bias={ensemble.bias:.6f} learning_rate={cfg.learning_rate} "
            f"max_depth={cfg.max_tree_depth} min_leaf={cfg.min_leaf_size}"
        )

        ctx.ensemble = ensemble
        return ctx
