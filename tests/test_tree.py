import dataclasses

import numpy as np
import pytest
from croptree import DataError, Dataset, DecisionTree, Leaf, Node, TreeBuilder


def _separable_tree():
    values = [0, 1, 2, 3, 4, 6, 7, 8, 9, 10]
    ds = Dataset([[v, 1.0] for v in values], ["A"] * 5 + ["B"] * 5)
    return TreeBuilder(0.25, 2).build(ds.view())


def _random_tree(seed=3):
    rng = np.random.default_rng(seed)
    X = rng.uniform(0, 100, size=(120, 3))
    labels = np.where(X[:, 0] < 30, "rice", np.where(X[:, 1] < 50, "maize", "jute"))
    labels = labels.astype("<U10")
    noise = rng.random(120) < 0.1
    labels[noise] = "cotton"
    return TreeBuilder(0.25, 2).build(Dataset(X, labels.tolist()).view()), rng


def test_classify_follows_threshold():
    tree = _separable_tree()
    assert tree.classify([3.0, 1.0]) == 0
    assert tree.classify([5.0, 1.0]) == 0
    assert tree.classify([5.0001, 1.0]) == 1
    assert tree.distribution([7.0, 1.0]).tolist() == [0.0, 1.0]


def test_classify_is_argmax_of_distribution():
    tree, rng = _random_tree()
    for x in rng.uniform(0, 100, size=(200, 3)):
        dist = tree.distribution(x)
        assert tree.classify(x) == int(np.argmax(dist))
        assert tree.classify(x) == tree.classify(x)


def test_leaf_distributions_are_probabilities():
    tree, _ = _random_tree()
    for leaf in tree.leaves():
        assert (leaf.distribution >= 0).all()
        assert leaf.distribution.sum() == pytest.approx(1.0)
        assert leaf.distribution.shape == (tree.n_classes,)


def test_leaf_tie_goes_to_lowest_code():
    assert Leaf(np.array([2, 2])).class_code == 0
    assert Leaf(np.array([0, 3, 3])).class_code == 1
    assert Leaf(np.array([0, 3, 0])).distribution.tolist() == [0.0, 1.0, 0.0]


def test_nodes_are_immutable():
    leaf = Leaf(np.array([1, 2]))
    with pytest.raises(dataclasses.FrozenInstanceError):
        leaf.class_code = 0
    with pytest.raises(ValueError):
        leaf.counts[0] = 5
    tree = _separable_tree()
    # distribution() hands out a copy
    d = tree.distribution([1.0, 1.0])
    d[0] = 0.0
    assert tree.distribution([1.0, 1.0])[0] == 1.0


def test_bad_feature_vector():
    tree = _separable_tree()
    with pytest.raises(DataError):
        tree.classify([1.0])
    with pytest.raises(DataError):
        tree.classify([np.nan, 1.0])
    with pytest.raises(DataError):
        tree.classify(["a", "b"])


def test_structure_counts():
    tree = _separable_tree()
    assert tree.n_leaves == 2
    assert tree.n_internal == 1
    assert tree.depth == 1
    assert "n_leaves=2" in repr(tree)


def test_node_list_serialization():
    nodes = _separable_tree().to_node_list()
    assert len(nodes) == 3
    root = nodes[0]
    assert root["leaf"] is False
    assert root["feature_index"] == 0
    assert root["threshold"] == 5.0
    assert (root["left"], root["right"]) == (1, 2)
    assert nodes[1]["class_code"] == 0 and nodes[2]["class_code"] == 1
    assert nodes[1]["n_samples"] == 5


def test_export_rules_and_text():
    tree = _separable_tree()
    rules = tree.export_rules(feature_names=["N", "P"])
    assert rules == ["N <= 5.0000 => A", "N > 5.0000 => B"]
    text = tree.export_text()
    assert "f0 <= 5.0000" in text
    assert "|   A (5/0)" in text


def test_print_tree(capsys):
    _separable_tree().print_tree(class_names=["rice", "maize"])
    out = capsys.readouterr().out
    assert "rice" in out and "maize" in out


def test_export_graphviz(tmp_path):
    pytest.importorskip("graphviz")
    tree = _separable_tree()
    source = tree.export_graphviz()
    assert "f0" in source
    path = tree.export_graphviz(str(tmp_path / "tree"), format="dot")
    assert path.endswith(".dot")
    assert (tmp_path / "tree.dot").exists()


def test_hand_built_tree():
    root = Node(1, 2.5, Leaf(np.array([3, 0])), Leaf(np.array([1, 4])), np.array([4, 4]))
    tree = DecisionTree(root, n_features=2)
    assert tree.classify([100.0, 2.5]) == 0
    assert tree.distribution([0.0, 3.0]).tolist() == [0.2, 0.8]
