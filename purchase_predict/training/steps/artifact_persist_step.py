# purchase_predict/training/steps/artifact_persist_step.py
from __future__ import annotations

from pathlib import Path

from purchase_predict import logs
from purchase_predict.inference.artifact import save_artifact
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext


class ArtifactPersistStep(PipelineStep):
    """
    ArtifactPersistStep（FINAL / FROZEN）

    Semantics:
    - Persist run-scoped training result under ctx.model_dir
    - Only a TRAINED ensemble is ever written
    """

    stage = "training_finalize"

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.ensemble is None or ctx.norm_params is None:
            raise RuntimeError(f"[{self.step_name}] no trained model to persist")

        with self.inst.timer("artifact_persist"):
            ctx.model_artifact = save_artifact(
                Path(ctx.model_dir),
                params=ctx.norm_params,
                ensemble=ctx.ensemble,
                run_id=ctx.run_id,
                metrics=dict(ctx.metrics),
                hyperparameters=ctx.cfg.model_dump(),
            )

        logs.info(f"[{self.step_name}] model_artifact={ctx.model_artifact.path}")
        return ctx
