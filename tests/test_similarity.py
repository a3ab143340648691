"""Unit tests for weighted Jaccard similarity"""
import pytest
import numpy as np
import pandas as pd

from archnet.similarity.jaccard import (
    weighted_jaccard,
    normalize_counts,
    similarity_matrix,
    upper_triangle,
)


def test_identical_vectors():
    assert weighted_jaccard([1, 2, 3], [1, 2, 3]) == 1.0


def test_known_value():
    # min: 1 + 0 + 1 = 2, max: 2 + 1 + 1 = 4
    assert weighted_jaccard([2, 0, 1], [1, 1, 1]) == pytest.approx(0.5)


def test_disjoint_vectors():
    assert weighted_jaccard([3, 0], [0, 5]) == 0.0


def test_symmetric():
    a, b = [4, 1, 0, 7], [2, 2, 5, 1]
    assert weighted_jaccard(a, b) == weighted_jaccard(b, a)


def test_both_empty_is_nan():
    assert np.isnan(weighted_jaccard([0, 0, 0], [0, 0, 0]))


def test_length_mismatch():
    with pytest.raises(ValueError):
        weighted_jaccard([1, 2], [1, 2, 3])


def test_negative_values():
    with pytest.raises(ValueError):
        weighted_jaccard([1, -2], [1, 2])


class TestNormalize:
    def test_proportions_rows_sum_to_one(self):
        counts = pd.DataFrame({'a': [1, 0], 'b': [3, 0]}, index=['S1', 'S2'])
        props = normalize_counts(counts, 'proportions')
        assert props.loc['S1'].sum() == pytest.approx(1.0)
        # Empty assemblage stays zero
        assert props.loc['S2'].sum() == 0.0

    def test_presence(self):
        counts = pd.DataFrame({'a': [5, 0], 'b': [0, 2]}, index=['S1', 'S2'])
        presence = normalize_counts(counts, 'presence')
        assert presence.loc['S1'].tolist() == [1.0, 0.0]

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            normalize_counts(pd.DataFrame({'a': [1]}), 'zscore')


class TestSimilarityMatrix:
    @pytest.fixture
    def counts(self):
        return pd.DataFrame(
            {'a': [1, 2, 0, 5], 'b': [2, 4, 0, 0], 'c': [3, 6, 0, 1]},
            index=['S1', 'S2', 'S3', 'S4']
        )

    def test_proportions_ignore_sample_size(self, counts):
        sim = similarity_matrix(counts, 'proportions')
        # S2 is S1 scaled by two
        assert sim.loc['S1', 'S2'] == pytest.approx(1.0)

    def test_raw_counts_sensitive_to_size(self, counts):
        sim = similarity_matrix(counts, 'counts')
        # min sum 6 / max sum 12
        assert sim.loc['S1', 'S2'] == pytest.approx(0.5)

    def test_presence_reduces_to_jaccard(self):
        counts = pd.DataFrame({'a': [1, 5], 'b': [0, 2], 'c': [3, 0]}, index=['S1', 'S2'])
        sim = similarity_matrix(counts, 'presence')
        assert sim.loc['S1', 'S2'] == pytest.approx(1 / 3)

    def test_matrix_properties(self, counts):
        sim = similarity_matrix(counts)
        values = sim.to_numpy()
        finite = values[~np.isnan(values)]

        assert list(sim.index) == list(counts.index)
        assert np.allclose(np.nan_to_num(values), np.nan_to_num(values.T))
        assert finite.min() >= 0.0 and finite.max() <= 1.0
        assert sim.loc['S1', 'S1'] == 1.0

    def test_empty_assemblage(self, counts):
        sim = similarity_matrix(counts)
        assert np.isnan(sim.loc['S3', 'S3'])
        # only one side empty: denominator is still positive
        assert sim.loc['S1', 'S3'] == 0.0

    def test_upper_triangle(self, counts):
        tri = upper_triangle(similarity_matrix(counts))
        assert len(tri) == 6
        assert tri.index.names == ['site_a', 'site_b']
        assert tri.loc[('S1', 'S2')] == pytest.approx(1.0)
