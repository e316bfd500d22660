"""
Tests for dataset loading and typed record reading.
"""

import pytest

from core.errors import DataError
from reader.aggregator import aggregate
from reader.loader import load_dataset, strip_header
from reader.records import CensusRecord, read_records


CSV_TEXT = "age,sex,educ,race,income,married\n59,1,9,1,10000,1\n31,0,1,3,20000,0\n"


def test_strip_header():
    """Test that the first line is removed."""
    assert strip_header("h1,h2\n1,2\n3,4") == "1,2\n3,4"
    assert strip_header("only header") == ""


def test_load_dataset_drops_header(tmp_path):
    """Test loading a file with a header line."""
    path = tmp_path / "data.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    dataset = load_dataset(str(path))

    assert "age" not in dataset.body
    assert dataset.num_lines == 2
    assert aggregate(dataset, "educ").sum() == 2


def test_load_dataset_without_header(tmp_path):
    """Test loading a file without a header line."""
    path = tmp_path / "data.csv"
    path.write_text("59,1,9,1,10000,1\n", encoding="utf-8")
    dataset = load_dataset(str(path), has_header=False)
    assert dataset.num_lines == 1


def test_load_missing_file(tmp_path):
    """Test that a missing data file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_dataset(str(tmp_path / "missing.csv"))


def test_read_records(tmp_path):
    """Test reading typed census records."""
    path = tmp_path / "data.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")

    records = read_records(str(path))

    assert records == [
        CensusRecord(age=59, sex=1, educ=9, race=1, income=10000, married=1),
        CensusRecord(age=31, sex=0, educ=1, race=3, income=20000, married=0),
    ]


def test_read_records_rejects_non_integer(tmp_path):
    """Test that a non-integer value is a DataError."""
    path = tmp_path / "data.csv"
    path.write_text("age,sex,educ,race,income,married\n59,1,nine,1,10000,1\n", encoding="utf-8")
    with pytest.raises(DataError, match="Line 2"):
        read_records(str(path))


def test_read_records_rejects_missing_column(tmp_path):
    """Test that a missing column is a DataError."""
    path = tmp_path / "data.csv"
    path.write_text("age,sex,educ\n59,1,9\n", encoding="utf-8")
    with pytest.raises(DataError, match="missing column"):
        read_records(str(path))
