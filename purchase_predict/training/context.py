# purchase_predict/training/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from purchase_predict.config.training_config import TrainingConfig
from purchase_predict.data.events import Dataset, RawEvent
from purchase_predict.inference.artifact import ModelArtifact
from purchase_predict.model.ensemble import BoostedEnsemble
from purchase_predict.training.engines.evaluate_engine import EvaluationMetrics
from purchase_predict.training.engines.normalize_engine import NormalizationParams
from purchase_predict.training.engines.tree_booster_engine import TrainingRun


@dataclass
class TrainingContext:
    """
    TrainingContext（FINAL / FROZEN）

    Semantics:
    - One context == one training run
    - run_id is immutable and mandatory
    - every hand-off artifact (datasets, params, ensemble, metrics)
      is itself immutable; steps only rebind the slots below
    """

    # -------------------------
    # Identity (FROZEN)
    # -------------------------
    run_id: str

    # -------------------------
    # Static bindings
    # -------------------------
    cfg: TrainingConfig
    inst: Any
    model_dir: Path

    # -------------------------
    # Inputs
    # -------------------------
    events: List[RawEvent] = field(default_factory=list)

    # -------------------------
    # Stage outputs
    # -------------------------
    dataset: Optional[Dataset] = None

    train_set: Optional[Dataset] = None
    test_set: Optional[Dataset] = None

    norm_params: Optional[NormalizationParams] = None
    train_norm: Optional[Dataset] = None
    test_norm: Optional[Dataset] = None

    training_run: Optional[TrainingRun] = None
    ensemble: Optional[BoostedEnsemble] = None

    evaluation: Optional[EvaluationMetrics] = None
    verdict: Optional[str] = None
    sample_prediction: Optional[bool] = None

    model_artifact: Optional[ModelArtifact] = None
    metrics: Dict[str, Any] = field(default_factory=dict)
