# purchase_predict/config/training_config.py
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class TrainingConfig(BaseModel):
    """
    TrainingConfig（FINAL / FROZEN）

    Every default below is the documented default of the boosting run;
    no other value is hidden inside the engines.
    """

    # split
    test_fraction: float = 0.2
    split_seed: int = 42

    # boosting
    boosting_iterations: int = Field(default=100, ge=1)
    learning_rate: float = 0.2
    max_tree_depth: int = Field(default=3, ge=1)
    min_leaf_size: int = Field(default=10, ge=1)
    max_bins: int = Field(default=255, ge=2)
    n_workers: int = Field(default=1, ge=1)

    # reporting
    accuracy_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    persist_artifact: bool = False

    @field_validator("learning_rate")
    @classmethod
    def _check_learning_rate(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"learning_rate must be in (0, 1], got {v}")
        return v
