# purchase_predict/training/engines/feature_derive_engine.py
from __future__ import annotations

import math
from numbers import Real
from typing import Iterable, Sequence, Tuple

from purchase_predict.data.events import (
    FEATURE_NAMES,
    PURCHASE_EVENT,
    Dataset,
    LabeledExample,
    RawEvent,
)
from purchase_predict.utils.errors import EmptyDatasetError, MalformedInputError


class FeatureDeriveEngine:
    """
    FeatureDeriveEngine（FINAL / FROZEN）

    Responsibility:
    - label: event_type == "purchase" (exact, case-sensitive)
    - features: [product_id, category_id, price, user_id] as floats

    Contract:
    - pure, no side effects
    - bool is rejected as a numeric field
    - NaN / ±Inf / non-numeric fields → MalformedInputError
    """

    feature_names: Tuple[str, ...] = FEATURE_NAMES

    def derive(self, event: RawEvent) -> LabeledExample:
        return LabeledExample(
            label=event.event_type == PURCHASE_EVENT,
            features=self.features(event),
        )

    def features(self, event: RawEvent) -> Tuple[float, ...]:
        """Feature extraction only; the label is not looked at."""
        return tuple(self._numeric(event, name) for name in self.feature_names)

    def derive_all(self, events: Iterable[RawEvent]) -> Dataset:
        examples = [self.derive(e) for e in events]
        if not examples:
            raise EmptyDatasetError("No events to derive a dataset from")
        return Dataset.from_examples(examples)

    def vector(self, values: Sequence) -> Tuple[float, ...]:
        """Validate an already-extracted feature vector (same rules as events)."""
        if len(values) != len(self.feature_names):
            raise MalformedInputError(
                f"expected {len(self.feature_names)} features, got {len(values)}"
            )
        return tuple(
            self.check_value(name, value) for name, value in zip(self.feature_names, values)
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _numeric(self, event: RawEvent, name: str) -> float:
        return self.check_value(name, getattr(event, name))

    @staticmethod
    def check_value(name: str, value) -> float:
        if isinstance(value, bool) or not isinstance(value, (Real, str)):
            raise MalformedInputError(f"{name}={value!r} is not numeric")

        try:
            out = float(value)
        except ValueError as e:
            raise MalformedInputError(f"{name}={value!r} is not numeric") from e

        if not math.isfinite(out):
            raise MalformedInputError(f"{name}={value!r} is not finite")
        return out
