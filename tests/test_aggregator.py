"""
Tests for per-bucket count aggregation.
"""

import numpy as np
import pytest

from core.errors import DataError
from reader.aggregator import CountAggregator, aggregate
from schema.dataset import CsvDataset


BODY = "\n".join([
    "59,1,9,1,10000,1",
    "31,0,1,3,20000,0",
    "36,1,11,1,90000,1",
    "54,1,11,1,50000,1",
    "22,0,9,1,0,0",
    "46,1,25,1,200000,1",
])


def test_two_row_scenario():
    """Test that two census rows land in their educ buckets and nowhere else."""
    dataset = CsvDataset(body="59,1,9,1,10000,1\n31,0,1,3,20000,0")
    counts = aggregate(dataset, "educ")

    assert len(counts) == 20
    assert counts.sum() == 2
    buckets = dataset.buckets_for("educ")
    assert counts[buckets.index("1")] == 1
    assert counts[buckets.index("9")] == 1
    others = [c for i, c in enumerate(counts) if buckets[i] not in ("1", "9")]
    assert all(c == 0 for c in others)


def test_length_matches_buckets_and_sum_counts_in_range_rows():
    """Test that the vector has one entry per bucket and ignores out-of-range values."""
    dataset = CsvDataset(body=BODY)
    for field_name in ("educ", "income"):
        counts = aggregate(dataset, field_name)
        assert len(counts) == len(dataset.buckets_for(field_name))

    # educ=25 is outside 1..20
    assert aggregate(dataset, "educ").sum() == 5
    # income=0 is outside 10000..200000
    assert aggregate(dataset, "income").sum() == 5


def test_values_are_ordered_like_buckets():
    """Test that counts follow the bucket enumeration order."""
    dataset = CsvDataset(body=BODY)
    counts = aggregate(dataset, "income")
    buckets = dataset.buckets_for("income")
    assert counts[buckets.index("10000")] == 1
    assert counts[buckets.index("200000")] == 1
    assert counts[buckets.index("30000")] == 0


def test_aggregation_is_deterministic():
    """Test that aggregating twice gives identical vectors."""
    dataset = CsvDataset(body=BODY)
    first = aggregate(dataset, "educ")
    second = aggregate(dataset, "educ")
    assert first.tobytes() == second.tobytes()


def test_result_is_read_only():
    """Test that the count vector is int64 and cannot be written."""
    counts = aggregate(CsvDataset(body=BODY), "educ")
    assert counts.dtype == np.int64
    with pytest.raises(ValueError):
        counts[0] = 5


def test_blank_lines_and_whitespace_are_tolerated():
    """Test that blank lines are skipped and cells are stripped."""
    dataset = CsvDataset(body="59, 1, 9 ,1,10000,1\n\n   \n31,0,1,3,20000,0\n")
    counts = aggregate(dataset, "educ")
    assert counts.sum() == 2


def test_empty_body_gives_zero_vector():
    """Test that an empty dataset gives a zero vector of full length."""
    counts = aggregate(CsvDataset(body=""), "educ")
    assert len(counts) == 20
    assert counts.sum() == 0


def test_wrong_column_count_fails_whole_aggregation():
    """Test that one short row fails the whole aggregation."""
    dataset = CsvDataset(body="59,1,9,1,10000,1\n31,0,1,3,20000")
    with pytest.raises(DataError, match="expected 6 fields"):
        aggregate(dataset, "educ")


def test_extra_columns_fail():
    """Test that a row with too many fields is rejected."""
    dataset = CsvDataset(body="59,1,9,1,10000,1,7")
    with pytest.raises(DataError):
        aggregate(dataset, "educ")


def test_unterminated_quote_fails():
    """Test that unparseable delimited text is a DataError."""
    dataset = CsvDataset(body='59,1,"9,1,10000,1')
    with pytest.raises(DataError):
        aggregate(dataset, "educ")


def test_unknown_field_fails():
    """Test that selecting a column outside the schema fails."""
    with pytest.raises(DataError, match="Unknown field"):
        CountAggregator().aggregate(CsvDataset(body=BODY), "salary")


def test_custom_delimiter():
    """Test that a non-comma delimiter is honoured."""
    dataset = CsvDataset(body="59;1;9;1;10000;1\n31;0;1;3;20000;0", delimiter=";")
    assert aggregate(dataset, "educ").sum() == 2


def test_short_blank_row_fails():
    """Test that a row of empty cells with the wrong width is not skipped."""
    dataset = CsvDataset(body="59,1,9,1,10000,1\n,,\n31,0,1,3,20000,0")
    with pytest.raises(DataError, match="expected 6 fields"):
        aggregate(dataset, "educ")


def test_full_width_blank_row_counts_in_no_bucket():
    """Test that a full-width row of empty cells parses but matches no bucket."""
    dataset = CsvDataset(body="59,1,9,1,10000,1\n,,,,,\n31,0,1,3,20000,0")
    counts = aggregate(dataset, "educ")
    assert len(counts) == 20
    assert counts.sum() == 2
