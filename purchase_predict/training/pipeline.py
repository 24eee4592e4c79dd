# purchase_predict/training/pipeline.py
from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from purchase_predict import logs
from purchase_predict.config.training_config import TrainingConfig
from purchase_predict.data.events import RawEvent
from purchase_predict.observability.instrumentation import Instrumentation
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext


class TrainingPipeline:
    """
    TrainingPipeline（FINAL / FROZEN）

    Semantics:
    - Pipeline owns context construction and step ordering
    - Steps execute semantics
    - Fail fast: the first step error is logged and re-raised
    """

    def __init__(
            self,
            *,
            steps: List[PipelineStep],
            cfg: TrainingConfig,
            inst: Instrumentation,
            artifact_root: Path,
    ):
        self.steps = steps
        self.cfg = cfg
        self.inst = inst
        self.artifact_root = Path(artifact_root)

    def run(self, events: Sequence[RawEvent], run_id: str) -> TrainingContext:
        logs.info(f"[TrainingPipeline] START run_id={run_id} events={len(events)}")

        ctx = TrainingContext(
            run_id=run_id,
            cfg=self.cfg,
            inst=self.inst,
            model_dir=self.artifact_root / run_id,
            events=list(events),
        )

        for step in self.steps:
            with step.timed():
                try:
                    ctx = step.run(ctx)
                except Exception:
                    logs.exception(
                        f"[TrainingPipeline] step {step.step_name} failed, abort run_id={run_id}"
                    )
                    raise

        self.inst.generate_timeline_report(run_id)
        logs.info("[TrainingPipeline] DONE")
        return ctx
