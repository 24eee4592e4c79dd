#!filepath: purchase_predict/observability/timeline_reporter.py
from typing import Dict, List, Tuple

from purchase_predict import logs


class TimelineReporter:
    """
    Phase timings of one training run (leaf timers only), each with its
    share of the run total.
    """

    def __init__(self, timeline: Dict[str, float], run_id: str):
        self.timeline = timeline
        self.run_id = run_id

    @property
    def total(self) -> float:
        return sum(self.timeline.values())

    def rows(self) -> List[Tuple[str, float, float]]:
        """(phase, seconds, share of total) in execution order."""
        total = self.total
        return [
            (name, sec, sec / total if total > 0 else 0.0)
            for name, sec in self.timeline.items()
        ]

    def slowest(self) -> str | None:
        if not self.timeline:
            return None
        return max(self.timeline, key=self.timeline.get)

    def print(self):
        logs.info(f"[Timeline] ===== Training timeline for run {self.run_id} =====")

        for name, sec, share in self.rows():
            logs.info(f"[Timeline] {str(name):<20} {sec:>8.3f}s {share:>7.1%}")

        logs.info(f"[Timeline] {'total':<20} {self.total:>8.3f}s")
        if self.timeline:
            logs.info(f"[Timeline] slowest phase: {self.slowest()}")
