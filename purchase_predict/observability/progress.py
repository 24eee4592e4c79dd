#!filepath: purchase_predict/observability/progress.py
from purchase_predict import logs


class ProgressReporter:
    """
    Minimal progress reporting through the shared logger.

    ``every`` throttles update() so long boosting runs log one line per
    ``every`` iterations plus the last one.
    """

    def __init__(self, enabled: bool = True, every: int = 10):
        self.enabled = enabled
        self.every = max(1, every)

    def start(self, task: str, total: int, unit: str = ""):
        if not self.enabled:
            return
        logs.info(f"[Progress] {task} started total={total} {unit}")

    def update(self, task: str, current: int, total: int, unit: str = ""):
        if not self.enabled:
            return
        if current % self.every and current != total:
            return
        logs.info(f"[Progress] {task}: {current}/{total} {unit}")

    def done(self, task: str):
        if not self.enabled:
            return
        logs.info(f"[Progress] {task} done")
