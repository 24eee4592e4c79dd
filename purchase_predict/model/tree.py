# purchase_predict/model/tree.py
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

LEAF = -1


def _frozen(arr, dtype) -> np.ndarray:
    out = np.array(arr, dtype=dtype, copy=True).reshape(-1)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class DecisionTree:
    """
    Arena-indexed regression tree.

    Node i is described by row i of five parallel arrays; node 0 is the root.

    - feature[i]   : split feature index, LEAF (-1) for leaves
    - threshold[i] : x[feature] <= threshold → left child
    - left[i]      : left child index (LEAF for leaves)
    - right[i]     : right child index (LEAF for leaves)
    - value[i]     : leaf output (0.0 on internal nodes)

    Arrays are read-only; a tree is safe to share between threads.
    """

    feature: np.ndarray
    threshold: np.ndarray
    left: np.ndarray
    right: np.ndarray
    value: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "feature", _frozen(self.feature, np.int64))
        object.__setattr__(self, "threshold", _frozen(self.threshold, np.float64))
        object.__setattr__(self, "left", _frozen(self.left, np.int64))
        object.__setattr__(self, "right", _frozen(self.right, np.int64))
        object.__setattr__(self, "value", _frozen(self.value, np.float64))

        n = self.feature.shape[0]
        if n == 0:
            raise ValueError("DecisionTree needs at least one node")
        for name in ("threshold", "left", "right", "value"):
            if getattr(self, name).shape[0] != n:
                raise ValueError(f"DecisionTree.{name} length != {n}")

    @classmethod
    def leaf(cls, value: float) -> "DecisionTree":
        return cls(
            feature=[LEAF],
            threshold=[0.0],
            left=[LEAF],
            right=[LEAF],
            value=[value],
        )

    # --------------------------------------------------
    # views
    # --------------------------------------------------
    @property
    def n_nodes(self) -> int:
        return int(self.feature.shape[0])

    @property
    def n_leaves(self) -> int:
        return int((self.feature == LEAF).sum())

    def depth(self, node: int = 0) -> int:
        if self.feature[node] == LEAF:
            return 0
        return 1 + max(self.depth(int(self.left[node])), self.depth(int(self.right[node])))

    # --------------------------------------------------
    # inference
    # --------------------------------------------------
    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        Leaf value for every row of X (n, n_features).
        All rows descend one level per pass; at most depth() passes.
        """
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)

        node = np.zeros(X.shape[0], dtype=np.int64)
        while True:
            feat = self.feature[node]
            rows = np.flatnonzero(feat != LEAF)
            if rows.size == 0:
                break

            at = node[rows]
            go_left = X[rows, feat[rows]] <= self.threshold[at]
            node[rows] = np.where(go_left, self.left[at], self.right[at])

        return self.value[node]

    def structurally_equal(self, other: "DecisionTree") -> bool:
        return all(
            np.array_equal(getattr(self, name), getattr(other, name))
            for name in ("feature", "threshold", "left", "right", "value")
        )
