"""
Tests for the census schema and dataset view.
"""

from schema.dataset import Schema, CsvDataset, COLUMNS


def test_columns_are_fixed_and_ordered():
    """Test the fixed census column order."""
    schema = Schema()
    assert schema.columns() == ["age", "sex", "educ", "race", "income", "married"]
    assert tuple(schema.columns()) == COLUMNS


def test_educ_buckets():
    """Test the educ buckets 1..20."""
    buckets = Schema().buckets_for("educ")
    assert buckets == [str(i) for i in range(1, 21)]


def test_income_buckets():
    """Test the income buckets 10000..200000."""
    buckets = Schema().buckets_for("income")
    assert len(buckets) == 20
    assert buckets[0] == "10000"
    assert buckets[-1] == "200000"
    assert buckets == [str(v) for v in range(10000, 200001, 10000)]


def test_unknown_field_falls_back_to_default_range():
    """Test that other fields use the 1..20 buckets."""
    schema = Schema()
    assert schema.buckets_for("age") == schema.buckets_for("educ")
    assert schema.buckets_for("not_a_column") == [str(i) for i in range(1, 21)]


def test_buckets_do_not_depend_on_data():
    """Test that buckets are the same for any dataset."""
    empty = CsvDataset(body="")
    full = CsvDataset(body="59,1,9,1,10000,1\n31,0,1,3,20000,0")
    assert empty.buckets_for("income") == full.buckets_for("income")
    assert empty.columns() == full.columns()


def test_dataset_counts_non_blank_lines():
    """Test that num_lines ignores blank lines."""
    dataset = CsvDataset(body="59,1,9,1,10000,1\n\n31,0,1,3,20000,0\n")
    assert dataset.num_lines == 2
