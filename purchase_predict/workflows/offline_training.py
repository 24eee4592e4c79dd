# purchase_predict/workflows/offline_training.py
from __future__ import annotations

from datetime import datetime
from pathlib import Path

from purchase_predict.config.app_config import AppConfig
from purchase_predict.observability.instrumentation import Instrumentation
from purchase_predict.training.pipeline import TrainingPipeline

from purchase_predict.training.steps.feature_derive_step import FeatureDeriveStep
from purchase_predict.training.steps.dataset_split_step import DatasetSplitStep
from purchase_predict.training.steps.normalize_step import NormalizeStep
from purchase_predict.training.steps.model_train_step import ModelTrainStep
from purchase_predict.training.steps.model_evaluate_step import ModelEvaluateStep
from purchase_predict.training.steps.model_report_step import ModelReportStep
from purchase_predict.training.steps.artifact_persist_step import ArtifactPersistStep
from purchase_predict.training.steps.sample_predict_step import SamplePredictStep


def new_run_id() -> str:
    return datetime.now().strftime("run_%Y%m%d_%H%M%S")


def build_offline_training(
        cfg: AppConfig | None = None,
        *,
        inst: Instrumentation | None = None,
        with_sample: bool = True,
) -> TrainingPipeline:
    """
    Offline Training Workflow (FINAL / FROZEN)
    """

    if cfg is None:
        cfg = AppConfig.load()
    if inst is None:
        inst = Instrumentation()

    train_cfg = cfg.training

    steps = [
        FeatureDeriveStep(inst=inst),
        DatasetSplitStep(inst=inst),
        NormalizeStep(inst=inst),
        ModelTrainStep(train_cfg, inst=inst),
        ModelEvaluateStep(inst=inst),
        ModelReportStep(inst=inst),
    ]

    if train_cfg.persist_artifact:
        steps.append(ArtifactPersistStep(inst=inst))

    if with_sample:
        s = cfg.data.sample
        steps.append(
            SamplePredictStep(
                (s.product_id, s.category_id, s.price, s.user_id),
                inst=inst,
            )
        )

    return TrainingPipeline(
        steps=steps,
        cfg=train_cfg,
        inst=inst,
        artifact_root=Path(cfg.artifact.dir),
    )
