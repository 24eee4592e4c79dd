from __future__ import annotations

import numpy as np
import pytest

from purchase_predict.model.ensemble import BoostedEnsemble
from purchase_predict.model.tree import LEAF, DecisionTree


def _depth2_tree() -> DecisionTree:
    #          0: x0 <= 0.5
    #        /              \
    #   1: x1 <= 0.2      4: leaf 3.0
    #    /        \
    # 2: 1.0    3: 2.0
    return DecisionTree(
        feature=[0, 1, LEAF, LEAF, LEAF],
        threshold=[0.5, 0.2, 0.0, 0.0, 0.0],
        left=[1, 2, LEAF, LEAF, LEAF],
        right=[4, 3, LEAF, LEAF, LEAF],
        value=[0.0, 0.0, 1.0, 2.0, 3.0],
    )


def test_predict_routes_rows_through_arena():
    tree = _depth2_tree()
    X = np.array(
        [
            [0.1, 0.1, 0, 0],
            [0.1, 0.9, 0, 0],
            [0.9, 0.0, 0, 0],
            [0.5, 0.2, 0, 0],  # equal to threshold goes left twice
        ]
    )

    assert tree.predict(X).tolist() == [1.0, 2.0, 3.0, 1.0]


def test_predict_single_vector():
    assert _depth2_tree().predict(np.array([0.9, 0, 0, 0])).tolist() == [3.0]


def test_shape_views():
    tree = _depth2_tree()
    assert tree.n_nodes == 5
    assert tree.n_leaves == 3
    assert tree.depth() == 2
    assert DecisionTree.leaf(0.25).depth() == 0


def test_leaf_tree_predicts_constant():
    X = np.random.default_rng(1).random((6, 4))
    assert DecisionTree.leaf(0.25).predict(X).tolist() == [0.25] * 6


def test_mismatched_arrays_rejected():
    with pytest.raises(ValueError):
        DecisionTree(feature=[LEAF], threshold=[0.0, 1.0], left=[LEAF], right=[LEAF], value=[0.0])


def test_ensemble_raw_score_sums_weighted_trees():
    ens = BoostedEnsemble(
        bias=-1.0,
        learning_rate=0.5,
        trees=((DecisionTree.leaf(2.0), 0.5), (_depth2_tree(), 0.5)),
    )
    X = np.array([[0.1, 0.1, 0, 0], [0.9, 0.9, 0, 0]])

    # -1 + 0.5*2 + 0.5*{1, 3}
    assert ens.raw_score(X).tolist() == [0.5, 1.5]
    assert ens.predict(X).tolist() == [True, True]
    assert len(ens) == 2


def test_empty_ensemble_scores_bias_only():
    ens = BoostedEnsemble(bias=0.0, learning_rate=0.1)
    assert ens.predict_proba(np.zeros((2, 4))).tolist() == [0.5, 0.5]
