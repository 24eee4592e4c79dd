# purchase_predict/inference/artifact.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import joblib

from purchase_predict import logs
from purchase_predict.model.ensemble import BoostedEnsemble
from purchase_predict.model.tree import DecisionTree
from purchase_predict.training.engines.normalize_engine import NormalizationParams
from purchase_predict.utils.errors import ArtifactNotFoundError

MODEL_FILE = "model.joblib"
META_FILE = "artifact.json"


# ============================================================
# Model Artifact (RUN-SCOPED)
# ============================================================
@dataclass(frozen=True)
class ModelArtifact:
    """
    ModelArtifact（FINAL / FROZEN）

    Semantics:
    - path always points to an artifact ROOT directory
    - model.joblib holds {"params", "ensemble"}
    - artifact.json holds run metadata (human-readable)
    """
    path: Path
    params: NormalizationParams
    ensemble: BoostedEnsemble
    run_id: str | None = None
    created_at: datetime | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    feature_names: list[str] = field(default_factory=list)


def save_artifact(
    artifact_dir: Path,
    *,
    params: NormalizationParams,
    ensemble: BoostedEnsemble,
    run_id: str,
    metrics: dict[str, Any],
    hyperparameters: dict[str, Any],
) -> ModelArtifact:
    artifact_dir = Path(artifact_dir)
    artifact_dir.mkdir(parents=True, exist_ok=True)
    created_at = datetime.now()

    joblib.dump({"params": params, "ensemble": ensemble}, artifact_dir / MODEL_FILE)

    meta = {
        "run_id": run_id,
        "created_at": created_at.isoformat(),
        "model": {
            "family": "tree_boost",
            "task": "binary_classification",
            "n_trees": len(ensemble),
            "bias": ensemble.bias,
            "learning_rate": ensemble.learning_rate,
        },
        "hyperparameters": hyperparameters,
        "normalization": params.to_dict(),
        "metrics": metrics,
        "feature_names": list(ensemble.feature_names),
    }
    (artifact_dir / META_FILE).write_text(json.dumps(meta, indent=2))

    return ModelArtifact(
        path=artifact_dir,
        params=params,
        ensemble=ensemble,
        run_id=run_id,
        created_at=created_at,
        metrics=dict(metrics),
        feature_names=list(ensemble.feature_names),
    )


def _rebuild_params(params: NormalizationParams) -> NormalizationParams:
    return NormalizationParams(mins=params.mins, maxs=params.maxs)


def _rebuild_ensemble(ensemble: BoostedEnsemble) -> BoostedEnsemble:
    # unpickling skips __post_init__, which makes the arrays read-only
    trees = tuple(
        (
            DecisionTree(
                feature=tree.feature,
                threshold=tree.threshold,
                left=tree.left,
                right=tree.right,
                value=tree.value,
            ),
            weight,
        )
        for tree, weight in ensemble.trees
    )
    return BoostedEnsemble(
        bias=ensemble.bias,
        learning_rate=ensemble.learning_rate,
        trees=trees,
        feature_names=ensemble.feature_names,
    )


def load_artifact(artifact_dir: Path) -> ModelArtifact:
    """
    Resolve a persisted ModelArtifact from its root directory.
    """
    artifact_dir = Path(artifact_dir)
    model_path = artifact_dir / MODEL_FILE
    meta_path = artifact_dir / META_FILE

    if not model_path.exists() or not meta_path.exists():
        raise ArtifactNotFoundError(
            f"[ModelArtifact] {MODEL_FILE} / {META_FILE} not found in {artifact_dir}"
        )

    meta = json.loads(meta_path.read_text())
    payload = joblib.load(model_path)

    logs.info(f"[ModelArtifact] loaded run_id={meta.get('run_id')} from {artifact_dir}")

    return ModelArtifact(
        path=artifact_dir,
        params=_rebuild_params(payload["params"]),
        ensemble=_rebuild_ensemble(payload["ensemble"]),
        run_id=meta.get("run_id"),
        created_at=datetime.fromisoformat(meta["created_at"]),
        metrics=meta.get("metrics") or {},
        feature_names=meta.get("feature_names") or [],
    )
