#!filepath: purchase_predict/observability/metrics.py
from dataclasses import dataclass, field
from typing import Dict, Mapping

from purchase_predict import logs


@dataclass
class MetricRecorder:
    """
    Run-level scalar metrics (accuracy, auc, f1, ...).
    Values are stored as floats; the last write for a name wins.
    """

    enabled: bool = True
    metrics: Dict[str, float] = field(default_factory=dict)

    def record(self, name: str, value: float):
        if not self.enabled:
            return
        self.metrics[name] = float(value)
        logs.info(f"[Metric] {name}={self.metrics[name]:.6f}")

    def record_many(self, values: Mapping[str, float]):
        for name, value in values.items():
            self.record(name, value)
