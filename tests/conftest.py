# tests/conftest.py
from __future__ import annotations

from typing import Callable, List

import numpy as np
import pytest
from loguru import logger

from purchase_predict.config.training_config import TrainingConfig
from purchase_predict.data.events import Dataset, LabeledExample, RawEvent


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def make_event() -> Callable[..., RawEvent]:
    def _make(
        event_type: str = "view",
        product_id=1.0,
        category_id=1.0,
        price=10.0,
        user_id=1.0,
    ) -> RawEvent:
        return RawEvent(
            event_time="2019-10-01 00:00:00 UTC",
            event_type=event_type,
            product_id=product_id,
            category_id=category_id,
            category_code="electronics.smartphone",
            brand="acme",
            price=price,
            user_id=user_id,
            user_session="s-1",
        )

    return _make


@pytest.fixture
def toy_examples() -> List[LabeledExample]:
    """Two clusters: purchases priced 90-100, non-purchases priced 5-10."""
    return [
        LabeledExample(label=True, features=(1.0, 1.0, 100.0, 1.0)),
        LabeledExample(label=False, features=(2.0, 2.0, 10.0, 2.0)),
        LabeledExample(label=True, features=(1.0, 3.0, 90.0, 3.0)),
        LabeledExample(label=False, features=(2.0, 4.0, 5.0, 4.0)),
    ]


@pytest.fixture
def toy_dataset(toy_examples) -> Dataset:
    return Dataset.from_examples(toy_examples)


@pytest.fixture
def cluster_dataset() -> Dataset:
    """
    200 rows, price separates the classes, other columns are noise.
    Deterministic (fixed generator seed).
    """
    rng = np.random.default_rng(7)
    n = 200
    y = np.arange(n) % 2 == 0
    price = np.where(y, rng.uniform(80, 120, n), rng.uniform(1, 20, n))
    X = np.column_stack(
        [
            rng.integers(1, 50, n).astype(float),
            rng.integers(1, 10, n).astype(float),
            price,
            rng.integers(1, 1000, n).astype(float),
        ]
    )
    return Dataset(X=X, y=y)


@pytest.fixture
def small_cfg() -> TrainingConfig:
    return TrainingConfig(
        boosting_iterations=10,
        learning_rate=0.3,
        max_tree_depth=3,
        min_leaf_size=1,
    )
