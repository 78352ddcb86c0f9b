# SPDX-License-Identifier: BSD-3-Clause
import logging

import numpy as np
import pytest
from sklearn.base import clone
from sklearn.datasets import make_classification
from sklearn.model_selection import train_test_split

from hubminer.classification import HFNN, HIKNN, VALID_LOCAL_ESTIMATES
from hubminer.exceptions import ConfigurationError

SIX_POINTS = np.array([[0., 0.], [0., 1.], [1., 0.], [5., 5.], [5., 6.], [6., 5.]])
SIX_LABELS = np.array([0, 0, 0, 1, 1, 1])
FOUR_POINTS = np.array([[0., 0.], [1., 0.], [0., 1.], [10., 10.]])
FOUR_LABELS = np.array([0, 0, 1, 1])


def test_six_points():
    hfnn = HFNN(k=2).fit(SIX_POINTS, SIX_LABELS)
    proba = hfnn.predict_proba([[0.2, 0.2], [5.5, 5.5]])
    assert proba[0, 0] > 0.5
    assert proba[1, 1] > 0.5
    np.testing.assert_array_almost_equal(proba.sum(axis=1), 1.)
    np.testing.assert_array_equal(hfnn.predict([[0.2, 0.2], [5.5, 5.5]]), [0, 1])


def test_relation_is_smoothed_occurrence_profile():
    smoothing = 0.01
    hfnn = HFNN(k=2, smoothing=smoothing).fit(SIX_POINTS, SIX_LABELS)
    # Point 0 is a neighbor of points 1 and 2, and of itself
    expected = np.array([3 + smoothing, smoothing]) / (3 + 2 * smoothing)
    np.testing.assert_array_almost_equal(hfnn.relation_[:, 0], expected)


def test_anti_hub_label_estimate():
    hfnn = HFNN(k=1, local_estimate="label", smoothing=0.001).fit(FOUR_POINTS, FOUR_LABELS)
    np.testing.assert_array_equal(hfnn.occurrence_, [2, 2, 0, 0])
    proba = hfnn.predict_proba([[9., 9.]])
    np.testing.assert_array_almost_equal(proba[0], [0.001 / 1.002, 1.001 / 1.002])
    assert hfnn.predict([[9., 9.]])[0] == 1


def test_anti_hub_global_estimate():
    hfnn = HFNN(k=1, local_estimate="global").fit(FOUR_POINTS, FOUR_LABELS)
    # All neighbor sets contain class-0 points only, so class-1 points carry no preference
    np.testing.assert_array_almost_equal(hfnn.predict_proba([[9., 9.]]), [[.5, .5]])


def test_anti_hub_local_estimates():
    local = HFNN(k=1, local_estimate="local").fit(FOUR_POINTS, FOUR_LABELS)
    np.testing.assert_array_almost_equal(local.predict_proba([[9., 9.]]), [[.5, .5]])
    local_f = HFNN(k=1, local_estimate="localf").fit(FOUR_POINTS, FOUR_LABELS)
    proba = local_f.predict_proba([[9., 9.]])
    assert proba[0, 1] > 0.7
    assert local_f.predict([[9., 9.]])[0] == 1


@pytest.mark.parametrize("theta_cutoff", [0, 2])
def test_theta_cutoff(theta_cutoff):
    hfnn = HFNN(k=1, theta_cutoff=theta_cutoff, local_estimate="label").fit(FOUR_POINTS, FOUR_LABELS)
    proba = hfnn.predict_proba([[0.1, 0.]])
    if theta_cutoff == 0:
        # Point 0 occurs for itself and point 1 (class 0), and for point 2 (class 1)
        np.testing.assert_array_almost_equal(proba[0], [2.001 / 3.002, 1.001 / 3.002])
    else:
        np.testing.assert_array_almost_equal(proba[0], [1.001 / 1.002, 0.001 / 1.002])


def test_prior_fallback_and_first_class_ties(caplog):
    caplog.set_level(logging.INFO)
    hfnn = HFNN(k=2, smoothing=0.).fit(SIX_POINTS, ["b", "b", "b", "a", "a", "a"], sample_weight=np.zeros(6))
    proba = hfnn.predict_proba([[0.2, 0.2]])
    np.testing.assert_array_almost_equal(proba, [[.5, .5]])
    assert "class priors" in caplog.text
    assert hfnn.predict([[0.2, 0.2]])[0] == "a"


def test_string_labels():
    y = np.array(["low", "low", "low", "high", "high", "high"])
    hfnn = HFNN(k=2).fit(SIX_POINTS, y)
    np.testing.assert_array_equal(hfnn.classes_, ["high", "low"])
    np.testing.assert_array_equal(hfnn.predict([[0., 0.5], [5., 5.5]]), ["low", "high"])


def test_leave_one_out_on_training_points():
    hfnn = HFNN(k=2).fit(SIX_POINTS, SIX_LABELS)
    np.testing.assert_array_equal(hfnn.predict(), SIX_LABELS)


def test_predict_from_neighbors():
    hfnn = HFNN(k=2).fit(SIX_POINTS, SIX_LABELS)
    neigh_dist, neigh_ind = hfnn.finder_.kneighbors([[0.2, 0.2]])
    np.testing.assert_array_almost_equal(hfnn.predict_proba_from_neighbors(neigh_ind, neigh_dist),
                                         hfnn.predict_proba([[0.2, 0.2]]))
    # Any number of neighbors may be passed
    np.testing.assert_array_equal(hfnn.predict_from_neighbors([[3, 4, 5]]), [1])
    with pytest.raises(ConfigurationError):
        hfnn.predict_from_neighbors([[0, 6]])
    with pytest.raises(ConfigurationError):
        hfnn.predict_from_neighbors([[0, 1]], [[0.]])
    with pytest.raises(ConfigurationError):
        hfnn.predict_from_neighbors([[0.5, 1.]])


@pytest.mark.parametrize("boosting", ["b1", "b2"])
def test_boosting_modes(boosting):
    hfnn = HFNN(k=2, boosting=boosting).fit(SIX_POINTS, SIX_LABELS)
    np.testing.assert_array_almost_equal(hfnn.relation_.sum(axis=0), 1.)
    np.testing.assert_array_equal(hfnn.predict([[0.2, 0.2], [5.5, 5.5]]), [0, 1])


def test_b2_label_costs():
    hfnn = HFNN(k=2, boosting="b2").fit(SIX_POINTS, SIX_LABELS)
    # Point 0: +3 for class 0, -3 for class 1, shifted to [6, 0]
    np.testing.assert_array_almost_equal(hfnn.relation_[:, 0], [1., 0.])
    costs = np.ones((6, 2))
    costs[:3, 1] = 0.
    free = HFNN(k=2, boosting="b2").fit(SIX_POINTS, SIX_LABELS, label_costs=costs)
    np.testing.assert_array_almost_equal(free.relation_[:, 0], [1., 0.])
    with pytest.raises(ConfigurationError, match="Label costs"):
        HFNN(k=2, boosting="b2").fit(SIX_POINTS, SIX_LABELS, label_costs=np.ones((6, 3)))


def test_b2_without_label_costs_matches_unsmoothed_b1():
    b1 = HFNN(k=2, smoothing=0.).fit(SIX_POINTS, SIX_LABELS)
    b2 = HFNN(k=2, boosting="b2").fit(SIX_POINTS, SIX_LABELS, label_costs=np.zeros((6, 2)))
    np.testing.assert_array_almost_equal(b2.relation_, b1.relation_)


@pytest.mark.parametrize("Classifier", [HFNN, HIKNN])
def test_missing_feature_values(Classifier):
    X = SIX_POINTS.copy()
    X[1, 0] = np.nan
    X[4, 1] = np.nan
    clf = Classifier(k=2).fit(X, SIX_LABELS)
    np.testing.assert_array_equal(clf.predict([[0.2, 0.2], [5.5, 5.5]]), [0, 1])
    proba = clf.predict_proba()
    assert np.all(np.isfinite(proba))
    np.testing.assert_array_almost_equal(proba.sum(axis=1), 1.)


def test_sample_weight_b1():
    weights = np.array([1., 3., 1., 1., 1., 1.])
    hfnn = HFNN(k=2, smoothing=0.).fit(SIX_POINTS, SIX_LABELS, sample_weight=weights)
    # Point 0 occurs in the sets of points 1 (weight 3) and 2, plus itself
    assert hfnn.relation_[0, 0] == 1.
    np.testing.assert_array_almost_equal(hfnn.relation_.sum(axis=0), 1.)
    with pytest.raises(ConfigurationError):
        HFNN(k=2).fit(SIX_POINTS, SIX_LABELS, sample_weight=-weights)
    with pytest.raises(ValueError):
        HFNN(k=2).fit(SIX_POINTS, SIX_LABELS, sample_weight=weights[:5])


@pytest.mark.parametrize("kwargs", [
    {"boosting": "b3"},
    {"local_estimate": "nearby"},
    {"smoothing": -1.},
    {"k": 6},
    {"k": 0},
])
def test_invalid_parameters(kwargs):
    with pytest.raises(ConfigurationError):
        HFNN(**kwargs).fit(SIX_POINTS, SIX_LABELS)


@pytest.mark.parametrize("Classifier", [HFNN, HIKNN])
def test_clone(Classifier):
    clf = clone(Classifier(k=3))
    assert clf.get_params()["k"] == 3


@pytest.mark.parametrize("local_estimate", VALID_LOCAL_ESTIMATES)
@pytest.mark.parametrize("n_jobs", [1, 2])
def test_accuracy(local_estimate, n_jobs):
    X, y = make_classification(n_samples=200, n_features=20, n_informative=10, n_classes=3,
                               class_sep=2., random_state=42)
    X_train, X_test, y_train, y_test = train_test_split(X, y, test_size=0.25, random_state=0, stratify=y)
    hfnn = HFNN(k=10, local_estimate=local_estimate, n_jobs=n_jobs).fit(X_train, y_train)
    assert hfnn.score(X_test, y_test) > 0.6
    proba = hfnn.predict_proba(X_test)
    assert proba.shape == (50, 3)
    np.testing.assert_array_almost_equal(proba.sum(axis=1), 1.)


def test_distance_weighted_votes():
    hfnn = HFNN(k=2, distance_weighted=True, m=2).fit(SIX_POINTS, SIX_LABELS)
    proba = hfnn.predict_proba_from_neighbors([[0, 3]], [[1., 2.]])
    # Weights 1/d^2 normalized to 0.8 and 0.2
    expected = .8 * hfnn.relation_[:, 0] + .2 * hfnn.relation_[:, 3]
    np.testing.assert_array_almost_equal(proba[0], expected / expected.sum())
    unweighted = HFNN(k=2).fit(SIX_POINTS, SIX_LABELS)
    np.testing.assert_array_almost_equal(unweighted.predict_proba_from_neighbors([[0, 3]], [[1., 2.]]), [[.5, .5]])


def test_distance_weighted_without_distances_is_unweighted():
    weighted = HFNN(k=2, distance_weighted=True).fit(SIX_POINTS, SIX_LABELS)
    unweighted = HFNN(k=2).fit(SIX_POINTS, SIX_LABELS)
    np.testing.assert_array_almost_equal(weighted.predict_proba_from_neighbors([[0, 1, 3]]),
                                         unweighted.predict_proba_from_neighbors([[0, 1, 3]]))


def test_distance_weighted_accuracy():
    X, y = make_classification(n_samples=200, n_features=20, n_informative=10, n_classes=3,
                               class_sep=2., random_state=42)
    X_train, X_test, y_train, y_test = train_test_split(X, y, test_size=0.25, random_state=0, stratify=y)
    hfnn = HFNN(k=10, distance_weighted=True).fit(X_train, y_train)
    assert hfnn.score(X_test, y_test) > 0.6


@pytest.mark.parametrize("m", [1., .5, None])
def test_distance_weighted_invalid_fuzzifier(m):
    with pytest.raises(ConfigurationError):
        HFNN(k=2, distance_weighted=True, m=m).fit(SIX_POINTS, SIX_LABELS)
