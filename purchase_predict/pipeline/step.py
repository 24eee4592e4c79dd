from __future__ import annotations

from typing import Any

from purchase_predict.observability.instrumentation import (
    Instrumentation,
    NoOpInstrumentation,
)


class PipelineStep:
    """
    Pipeline Step base（FINAL / FROZEN）

    Responsibilities:
      1. orchestration only (read ctx → call engine → publish to ctx)
      2. step-level time boundary (parent scope)

    Rules:
      - the Step itself never enters the timeline
      - leaf timers live inside the Step
      - Instrumentation is optional; Step behavior never depends on it
    """

    stage: str = ""

    def __init__(self, inst: Instrumentation | None = None):
        # inst is always usable (no-op semantics)
        self.inst: Instrumentation | NoOpInstrumentation = (
            inst if inst is not None else NoOpInstrumentation()
        )

    # --------------------------------------------------
    # Step identity
    # --------------------------------------------------
    @property
    def step_name(self) -> str:
        return self.__class__.__name__

    # --------------------------------------------------
    # Step-level timer (parent scope, not recorded)
    # --------------------------------------------------
    def timed(self):
        return self.inst.timer(self.step_name, record=False)

    # --------------------------------------------------
    # Contract
    # --------------------------------------------------
    def run(self, ctx: Any) -> Any:
        raise NotImplementedError
