import math
import unittest

import numpy as np
import pytest

from conftest import document_xml, value_xml
from curve_viewer.analysis.stats import (
    compute_histogram,
    compute_stats,
    format_number,
    linear_regression,
    pearson_r,
    to_precision,
)
from curve_viewer.analysis.values import value_points
from curve_viewer.ingest.xml_parser import parse_document


class TestToPrecision(unittest.TestCase):
    def test_fixed_notation(self):
        self.assertEqual(to_precision(1234.5678, 4), "1235")
        self.assertEqual(to_precision(3.14159, 4), "3.142")
        self.assertEqual(to_precision(0.000123456, 4), "0.0001235")
        self.assertEqual(to_precision(-2.5, 4), "-2.500")
        self.assertEqual(to_precision(0.0, 4), "0.000")

    def test_exponential_notation(self):
        self.assertEqual(to_precision(123456, 4), "1.235e+5")
        self.assertEqual(to_precision(1.5e-9, 2), "1.5e-9")

    def test_rounding_carries_into_next_digit(self):
        self.assertEqual(to_precision(9.99996, 4), "10.00")

    def test_ties_round_away_from_zero(self):
        self.assertEqual(to_precision(2.5, 1), "3")


class TestStats:
    def test_population_std(self):
        s = compute_stats([2, 4, 4, 4, 5, 5, 7, 9])
        assert s.count == 8
        assert s.mean == pytest.approx(5.0)
        assert s.std_dev == pytest.approx(2.0)
        assert (s.min, s.max) == (2.0, 9.0)

    def test_nan_filtered_and_empty(self):
        assert compute_stats([np.nan, 1.0, 3.0]).count == 2
        assert compute_stats([]) is None
        assert compute_stats([np.nan]) is None


class TestHistogram:
    def test_max_is_clamped_into_last_bin(self):
        bins = compute_histogram([0, 1, 2, 3, 4], bin_count=2)
        assert [b.count for b in bins] == [2, 3]
        assert bins[1].indices == (2, 3, 4)
        assert [b.label for b in bins] == ["0.000", "2.000"]
        assert bins[0].start == 0 and bins[1].end == 4

    def test_constant_values_single_bin(self):
        bins = compute_histogram([7, 7, 7], bin_count=10)
        assert len(bins) == 1
        assert bins[0].label == "7"
        assert bins[0].count == 3
        assert bins[0].indices == (0, 1, 2)

    def test_indices_skip_nan_positions(self):
        bins = compute_histogram([1.0, np.nan, 3.0], bin_count=2)
        assert bins[0].indices == (0,)
        assert bins[1].indices == (2,)
        assert sum(b.count for b in bins) == 2

    def test_empty_and_invalid(self):
        assert compute_histogram([], 10) == []
        with pytest.raises(ValueError):
            compute_histogram([1, 2], 0)


class TestCorrelation:
    def test_perfect_line(self):
        assert pearson_r([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        reg = linear_regression([1, 2, 3], [2, 4, 6])
        assert reg.slope == pytest.approx(2.0)
        assert reg.intercept == pytest.approx(0.0)
        np.testing.assert_allclose(reg.predict([10]), [20.0])

    def test_negative_correlation(self):
        assert pearson_r([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_degenerate_inputs(self):
        assert pearson_r([1], [1]) is None
        assert pearson_r([1, 1, 1], [1, 2, 3]) is None
        assert linear_regression([2, 2], [1, 5]) is None
        assert linear_regression([], []) is None

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            pearson_r([1, 2], [1])


class TestNonFiniteValues:
    def test_infinite_value_row_is_skipped(self):
        docs = [
            parse_document(document_xml(set_values=[value_xml("setValue", 1, text)], id_string=f"P{i}"), f"p{i}.xml")
            for i, text in enumerate(["1", "Infinity", "3"])
        ]
        vals = [p.value for p in value_points(docs, "set", 1)]
        assert math.isinf(vals[1])

        s = compute_stats(vals)
        assert s.count == 2
        assert (s.min, s.max, s.mean, s.std_dev) == (1.0, 3.0, 2.0, 1.0)

        bins = compute_histogram(vals, 10)
        assert sum(b.count for b in bins) == 2
        assert bins[0].indices == (0,)
        assert bins[-1].indices == (2,)

    def test_only_infinite_values(self):
        assert compute_stats([math.inf, -math.inf]) is None
        assert compute_histogram([math.inf], 5) == []

    def test_span_overflowing_float_range(self):
        vals = [-1e308, 0.0, 1e308]
        s = compute_stats(vals)
        assert math.isfinite(s.mean) and math.isfinite(s.std_dev)
        assert s.mean == pytest.approx(0.0, abs=1e295)
        assert s.std_dev == pytest.approx(math.sqrt(2.0 / 3.0) * 1e308)

        bins = compute_histogram(vals, 4)
        assert [b.count for b in bins] == [1, 0, 1, 1]
        assert all(math.isfinite(b.start) and math.isfinite(b.end) for b in bins)
        assert bins[0].start == -1e308 and bins[-1].end == 1e308


@pytest.mark.parametrize(
    "value, expected",
    [
        (7.0, "7"),
        (2.5, "2.5"),
        (-0.1, "-0.1"),
        (0.0, "0"),
        (-0.0, "0"),
        (1e-6, "0.000001"),
        (1e-7, "1e-7"),
        (1.5e-9, "1.5e-9"),
        (123456789012345680000.0, "123456789012345680000"),
        (1e21, "1e+21"),
        (1.25e22, "1.25e+22"),
        (math.inf, "Infinity"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected
