# purchase_predict/training/engines/split_engine.py
from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from purchase_predict.data.events import Dataset
from purchase_predict.utils.errors import InvalidFractionError


class SplitEngine:
    """
    SplitEngine（FINAL / FROZEN）

    Seeded, NON-stratified train / test partition.

    - permutation: numpy Generator(PCG64) seeded with ``seed``
    - test size: round-half-up(test_fraction * n), min 1 and max n - 1 when n > 1
    - test = first ``n_test`` permuted indices, train = the rest
    - both sides keep the source row order
    """

    def split(
        self,
        dataset: Dataset,
        *,
        test_fraction: float,
        seed: int,
    ) -> Tuple[Dataset, Dataset]:
        if not 0.0 < test_fraction < 1.0:
            raise InvalidFractionError(
                f"test_fraction must be in (0, 1), got {test_fraction}"
            )

        n = len(dataset)
        n_test = self.test_size(n, test_fraction)

        perm = np.random.default_rng(seed).permutation(n)
        test_idx = np.sort(perm[:n_test])
        train_idx = np.sort(perm[n_test:])

        return dataset.take(train_idx), dataset.take(test_idx)

    @staticmethod
    def test_size(n: int, test_fraction: float) -> int:
        if n <= 1:
            return 0
        n_test = int(math.floor(test_fraction * n + 0.5))
        return min(max(n_test, 1), n - 1)
