# purchase_predict/training/steps/model_report_step.py
from __future__ import annotations

from purchase_predict import logs
from purchase_predict.pipeline.step import PipelineStep
from purchase_predict.training.context import TrainingContext
from purchase_predict.training.engines.evaluate_engine import EvaluationMetrics

VERDICT_GOOD = "The model performs well and can be used for predictions."
VERDICT_WEAK = "The model may not be accurate enough. Consider improving it."


def verdict_for(metrics: EvaluationMetrics, accuracy_threshold: float) -> str:
    """Advisory only; never changes what the run produced."""
    return VERDICT_GOOD if metrics.accuracy >= accuracy_threshold else VERDICT_WEAK


def format_metrics(metrics: EvaluationMetrics) -> list[str]:
    return [
        f"Accuracy: {metrics.accuracy:.2%}",
        f"AUC: {metrics.auc:.2%}",
        f"F1 Score: {metrics.f1:.2%}",
    ]


class ModelReportStep(PipelineStep):
    """
    ModelReportStep（FINAL / FROZEN）

    Responsibility:
    - log metrics as percentages
    - attach the qualitative verdict to ctx.verdict
    - does NOT modify model state
    """

    stage = "model_report"

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.evaluation is None:
            logs.info(f"[{self.step_name}] skip report (no evaluation) run_id={ctx.run_id}")
            return ctx

        for line in format_metrics(ctx.evaluation):
            logs.info(f"[{self.step_name}] {line}")

        logs.info(
            f"[{self.step_name}] precision={ctx.evaluation.precision:.4f} "
            f"recall={ctx.evaluation.recall:.4f} "
            f"test_positive_rate={ctx.evaluation.positive_rate:.4%} "
            f"n={ctx.evaluation.n_samples}"
        )

        ctx.verdict = verdict_for(ctx.evaluation, ctx.cfg.accuracy_threshold)
        logs.info(f"[{self.step_name}] {ctx.verdict}")
        return ctx
