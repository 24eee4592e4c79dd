#!filepath: purchase_predict/observability/instrumentation.py
from __future__ import annotations

import time
from dataclasses import dataclass
from contextlib import contextmanager
from collections import OrderedDict
from typing import Dict

from purchase_predict.observability.progress import ProgressReporter
from purchase_predict.observability.metrics import MetricRecorder
from purchase_predict.observability.timeline_reporter import TimelineReporter


@dataclass
class Instrumentation:
    """
    Instrumentation (leaf-only accounting + parent scope).

    Rules:
    1. Timeline only records leaf timers (record=True)
    2. Step / parent timers are wall-time boundaries only (record=False)
    3. record=False timers have no side effects
    4. Instrumentation itself never logs on the hot path
    """

    enabled: bool = True
    progress_every: int = 10

    def __post_init__(self):
        self.progress = ProgressReporter(enabled=self.enabled, every=self.progress_every)
        self.metrics = MetricRecorder(enabled=self.enabled)

        # timeline: OrderedDict[leaf_name, elapsed_seconds]
        self.timeline: Dict[str, float] = OrderedDict()

    # ---------------------------------------------------------
    # Context manager timer (single entry point)
    # ---------------------------------------------------------
    def timer(self, name: str, *, record: bool = True):
        """
        Context-manager timer.

        Parameters
        ----------
        name : str
            timer name
        record : bool
            - True  : leaf, written to the timeline
            - False : parent scope, wall-time only (no side effects)
        """
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            start = time.perf_counter()
            try:
                yield
            finally:
                elapsed = time.perf_counter() - start

                if record:
                    inst.timeline[name] = elapsed

        return _ctx()

    # ---------------------------------------------------------
    # Timeline output (cold path)
    # ---------------------------------------------------------
    def generate_timeline_report(self, run_id: str):
        reporter = TimelineReporter(self.timeline, run_id)
        reporter.print()


# -------------------------------------------------------------
# No-op Instrumentation (observability disabled)
# -------------------------------------------------------------
class NoOpInstrumentation:
    """Used when instrumentation is disabled or not injected."""

    def __init__(self):
        self.progress = ProgressReporter(enabled=False)
        self.metrics = MetricRecorder(enabled=False)
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str, *, record: bool = True):
        return _NoOpTimer()

    def generate_timeline_report(self, run_id: str):
        pass


class _NoOpTimer:
    def __enter__(self):
        pass

    def __exit__(self, exc_type, exc, tb):
        pass
