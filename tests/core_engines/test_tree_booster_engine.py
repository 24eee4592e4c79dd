from __future__ import annotations

import numpy as np
import pytest

from purchase_predict.config.training_config import TrainingConfig
from purchase_predict.data.events import Dataset
from purchase_predict.model.tree import LEAF
from purchase_predict.training.engines.normalize_engine import NormalizeEngine
from purchase_predict.training.engines.tree_booster_engine import (
    TrainingState,
    TreeBoostEngine,
    _TreeBuilder,
    best_split_for_feature,
    candidate_thresholds,
)
from purchase_predict.utils.errors import (
    InsufficientDataError,
    TrainingCancelledError,
    TrainingStateError,
)


def _normalized(ds: Dataset) -> Dataset:
    engine = NormalizeEngine()
    return engine.transform_dataset(ds, engine.fit(ds))


# -----------------------------------------------------------------------------
# 1. initial bias
# -----------------------------------------------------------------------------
def test_initial_bias_is_logit_of_base_rate():
    ds = Dataset(X=np.zeros((4, 4)), y=[True, False, False, False])
    assert TreeBoostEngine.initial_bias(ds) == pytest.approx(np.log(0.25 / 0.75))


def test_initial_bias_is_zero_for_balanced_set(toy_dataset):
    assert TreeBoostEngine.initial_bias(toy_dataset) == 0.0


# -----------------------------------------------------------------------------
# 2. rejection of untrainable sets
# -----------------------------------------------------------------------------
def test_empty_training_set_rejected():
    empty = Dataset(X=np.empty((0, 4)), y=np.empty(0, dtype=bool))
    with pytest.raises(InsufficientDataError):
        TreeBoostEngine(TrainingConfig()).train(empty)


@pytest.mark.parametrize("label", [True, False])
def test_single_class_training_set_rejected(label):
    ds = Dataset(X=np.random.default_rng(0).random((20, 4)), y=[label] * 20)
    engine = TreeBoostEngine(TrainingConfig())
    run = engine.new_run()

    with pytest.raises(InsufficientDataError):
        engine.train(ds, run=run)

    assert run.state is TrainingState.FAILED
    assert run.ensemble is None


# -----------------------------------------------------------------------------
# 3. state machine
# -----------------------------------------------------------------------------
def test_run_reaches_trained(toy_dataset, small_cfg):
    engine = TreeBoostEngine(small_cfg)
    run = engine.new_run()

    ensemble = engine.train(_normalized(toy_dataset), run=run)

    assert run.state is TrainingState.TRAINED
    assert run.iteration == small_cfg.boosting_iterations
    assert run.ensemble is ensemble
    assert len(ensemble) == small_cfg.boosting_iterations


def test_run_is_single_use(toy_dataset, small_cfg):
    engine = TreeBoostEngine(small_cfg)
    run = engine.new_run()
    engine.train(_normalized(toy_dataset), run=run)

    with pytest.raises(TrainingStateError):
        engine.train(_normalized(toy_dataset), run=run)


def test_failed_run_is_not_retryable(small_cfg):
    engine = TreeBoostEngine(small_cfg)
    run = engine.new_run()
    single = Dataset(X=np.zeros((3, 4)), y=[True] * 3)

    with pytest.raises(InsufficientDataError):
        engine.train(single, run=run)
    with pytest.raises(TrainingStateError):
        engine.train(single, run=run)


def test_cancelled_run_exposes_no_ensemble(cluster_dataset):
    engine = TreeBoostEngine(TrainingConfig(boosting_iterations=5))
    run = engine.new_run()
    run.cancel()

    with pytest.raises(TrainingCancelledError):
        engine.train(_normalized(cluster_dataset), run=run)

    assert run.state is TrainingState.CANCELLED
    assert run.ensemble is None
    assert run.iteration == 0


# -----------------------------------------------------------------------------
# 4. tree shape limits
# -----------------------------------------------------------------------------
def test_trees_respect_max_depth(cluster_dataset):
    cfg = TrainingConfig(boosting_iterations=5, max_tree_depth=2, min_leaf_size=1)

    ensemble = TreeBoostEngine(cfg).train(_normalized(cluster_dataset))

    for tree, weight in ensemble.trees:
        assert tree.depth() <= 2
        assert weight == cfg.learning_rate


def test_min_leaf_size_larger_than_set_gives_stumps_of_one_leaf(toy_dataset):
    # 4 rows < min_leaf_size=10: no node may split
    cfg = TrainingConfig(boosting_iterations=3)

    ensemble = TreeBoostEngine(cfg).train(_normalized(toy_dataset))

    for tree, _ in ensemble.trees:
        assert tree.n_nodes == 1
        assert tree.feature[0] == LEAF


def test_leaf_value_is_mean_residual():
    # first iteration: F = bias = 0 → residual = y - 0.5
    X = np.array([[0.0, 0, 0, 0], [0.0, 0, 0, 0], [1.0, 0, 0, 0], [1.0, 0, 0, 0]])
    ds = Dataset(X=X, y=[True, True, False, False])
    cfg = TrainingConfig(boosting_iterations=1, min_leaf_size=1, max_tree_depth=1)

    ensemble = TreeBoostEngine(cfg).train(ds)
    tree, _ = ensemble.trees[0]

    assert tree.feature[0] == 0
    assert tree.threshold[0] == 0.0
    assert tree.value[tree.left[0]] == pytest.approx(0.5)
    assert tree.value[tree.right[0]] == pytest.approx(-0.5)


# -----------------------------------------------------------------------------
# 5. split search and tie-break
# -----------------------------------------------------------------------------
def test_candidate_thresholds_are_distinct_values_but_max():
    X = np.array([[3.0, 1.0], [1.0, 1.0], [2.0, 1.0], [3.0, 1.0]])

    cuts = candidate_thresholds(X, max_bins=255)

    assert cuts[0].tolist() == [1.0, 2.0]
    assert cuts[1].tolist() == []


def test_candidate_thresholds_are_binned_for_wide_features():
    X = np.arange(1000, dtype=float).reshape(-1, 1)

    cuts = candidate_thresholds(X, max_bins=16)[0]

    assert 1 <= cuts.size <= 15
    assert np.all(np.diff(cuts) > 0)
    assert np.isin(cuts, X[:, 0]).all()
    assert cuts.max() < 999.0


def test_best_split_prefers_lowest_threshold_on_tie():
    # thresholds 1 and 2 both isolate the same rows (no value equals 2)
    x = np.array([1.0, 1.0, 3.0, 3.0])
    r = np.array([1.0, 1.0, -1.0, -1.0])

    sse, thr = best_split_for_feature(x, r, np.array([1.0, 2.0]))

    assert thr == 1.0
    assert sse == pytest.approx(0.0)


def test_best_split_none_when_nothing_separates():
    x = np.array([5.0, 5.0, 5.0])
    assert best_split_for_feature(x, np.array([1.0, -1.0, 0.0]), np.array([5.0])) is None


def test_tie_between_features_picks_lower_index():
    # columns 0 and 2 separate the labels equally well
    X = np.array(
        [
            [0.0, 0.3, 0.0, 0.5],
            [0.0, 0.6, 0.0, 0.1],
            [1.0, 0.1, 1.0, 0.9],
            [1.0, 0.9, 1.0, 0.4],
        ]
    )
    ds = Dataset(X=X, y=[True, True, False, False])
    cfg = TrainingConfig(boosting_iterations=1, min_leaf_size=1, max_tree_depth=1)

    tree, _ = TreeBoostEngine(cfg).train(ds).trees[0]

    assert tree.feature[0] == 0


def test_pure_children_are_not_split_again():
    X = np.array([[0.0, 0, 0, 0], [1.0, 0, 0, 0], [0.0, 1, 0, 0], [1.0, 1, 0, 0]])
    ds = Dataset(X=X, y=[True, False, True, False])
    cfg = TrainingConfig(boosting_iterations=1, min_leaf_size=1, max_tree_depth=3)

    tree, _ = TreeBoostEngine(cfg).train(ds).trees[0]

    # column 0 separates perfectly; after that, children are pure and stay leaves
    assert tree.feature[0] == 0
    assert tree.feature[tree.left[0]] == LEAF
    assert tree.feature[tree.right[0]] == LEAF


def test_no_split_when_it_does_not_reduce_error():
    # each side of the only candidate split holds one purchase and one view:
    # child means stay 0, so the split leaves SSE unchanged
    X = np.array([[0.0, 0, 0, 0], [0.0, 0, 0, 0], [1.0, 0, 0, 0], [1.0, 0, 0, 0]])
    ds = Dataset(X=X, y=[True, False, True, False])
    cfg = TrainingConfig(boosting_iterations=1, min_leaf_size=1, max_tree_depth=3)

    tree, _ = TreeBoostEngine(cfg).train(ds).trees[0]

    assert tree.n_nodes == 1
    assert tree.value[0] == pytest.approx(0.0)


def test_same_partition_in_opposite_row_order_picks_lower_feature():
    # columns 0 and 2 both split rows {0, 1, 2} | {3, 4}, but sort them
    # in opposite orders, so their SSE sums accumulate differently
    X = np.array(
        [
            [0.2, 0.5, 0.0, 0.5],
            [0.1, 0.5, 0.1, 0.5],
            [0.0, 0.5, 0.2, 0.5],
            [0.8, 0.5, 0.8, 0.5],
            [0.9, 0.5, 0.9, 0.5],
        ]
    )
    r = np.array([0.1, 0.2, 0.3, -0.3, -0.3])
    thresholds = candidate_thresholds(X, max_bins=255)

    sse_0, thr_0 = best_split_for_feature(X[:, 0], r, thresholds[0])
    sse_2, thr_2 = best_split_for_feature(X[:, 2], r, thresholds[2])
    assert thr_0 == thr_2 == 0.2
    assert sse_0 == pytest.approx(sse_2, rel=1e-12, abs=1e-12)

    tree = _TreeBuilder(X, thresholds, max_depth=1, min_leaf_size=1, n_workers=1).build(r)

    assert tree.feature[0] == 0
    assert tree.threshold[0] == 0.2


def _leaf_sizes(tree, X):
    node = np.zeros(X.shape[0], dtype=np.int64)
    while True:
        rows = np.flatnonzero(tree.feature[node] != LEAF)
        if rows.size == 0:
            break
        at = node[rows]
        go_left = X[rows, tree.feature[at]] <= tree.threshold[at]
        node[rows] = np.where(go_left, tree.left[at], tree.right[at])
    return np.bincount(node, minlength=tree.n_nodes)[tree.feature == LEAF]


@pytest.mark.parametrize("min_leaf", [1, 7, 25])
def test_every_leaf_holds_at_least_min_leaf_size_rows(cluster_dataset, min_leaf):
    train = _normalized(cluster_dataset)
    cfg = TrainingConfig(boosting_iterations=5, max_tree_depth=4, min_leaf_size=min_leaf)

    ensemble = TreeBoostEngine(cfg).train(train)

    for tree, _ in ensemble.trees:
        sizes = _leaf_sizes(tree, train.X)
        assert sizes.sum() == len(train)
        assert sizes.min() >= min_leaf


def test_no_split_leaves_fewer_than_min_leaf_rows_on_a_side():
    # 12 rows, min_leaf_size=10: any split would leave a side under 10
    rng = np.random.default_rng(0)
    X = rng.uniform(0, 1, (12, 4))
    ds = Dataset(X=X, y=np.arange(12) % 2 == 0)
    cfg = TrainingConfig(boosting_iterations=2, max_tree_depth=3, min_leaf_size=10)

    for tree, _ in TreeBoostEngine(cfg).train(ds).trees:
        assert tree.n_nodes == 1


def test_best_split_respects_min_leaf():
    x = np.array([0.0, 1.0, 2.0, 3.0, 4.0])
    r = np.array([5.0, 0.0, 0.0, 0.0, 0.0])
    thresholds = np.array([0.0, 1.0, 2.0, 3.0])

    assert best_split_for_feature(x, r, thresholds)[1] == 0.0
    assert best_split_for_feature(x, r, thresholds, min_leaf=2)[1] == 1.0
    assert best_split_for_feature(x, r, thresholds, min_leaf=3) is None


# -----------------------------------------------------------------------------
# 6. determinism
# -----------------------------------------------------------------------------
def test_training_twice_is_bit_identical(cluster_dataset):
    cfg = TrainingConfig(boosting_iterations=15, min_leaf_size=5)
    train = _normalized(cluster_dataset)

    a = TreeBoostEngine(cfg).train(train)
    b = TreeBoostEngine(cfg).train(train)

    assert a.structurally_equal(b)
    assert np.array_equal(a.raw_score(train.X), b.raw_score(train.X))


def test_parallel_split_search_matches_sequential(cluster_dataset):
    train = _normalized(cluster_dataset)
    seq = TreeBoostEngine(TrainingConfig(boosting_iterations=8, min_leaf_size=5, n_workers=1)).train(train)
    par = TreeBoostEngine(TrainingConfig(boosting_iterations=8, min_leaf_size=5, n_workers=4)).train(train)

    assert seq.structurally_equal(par)


# -----------------------------------------------------------------------------
# 7. learning
# -----------------------------------------------------------------------------
def test_boosting_lowers_training_log_loss(cluster_dataset):
    train = _normalized(cluster_dataset)
    ensemble = TreeBoostEngine(TrainingConfig(boosting_iterations=20)).train(train)

    p = np.clip(ensemble.predict_proba(train.X), 1e-12, 1 - 1e-12)
    y = train.y
    loss = -np.mean(np.where(y, np.log(p), np.log(1 - p)))

    assert loss < np.log(2.0)
    assert (ensemble.predict(train.X) == y).mean() == 1.0


def test_ensemble_is_read_only(toy_dataset, small_cfg):
    ensemble = TreeBoostEngine(small_cfg).train(_normalized(toy_dataset))
    tree, _ = ensemble.trees[0]

    with pytest.raises(ValueError):
        tree.value[0] = 1.0
    with pytest.raises(AttributeError):
        ensemble.bias = 3.0
