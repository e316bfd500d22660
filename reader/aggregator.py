"""
Count Aggregator.

Turns the delimited body of a dataset into a count vector over the bucket
enumeration of one field:

    split rows -> select column -> count per bucket -> ordered vector

Aggregation is deterministic. Any structural problem fails the whole
aggregation with DataError; partial vectors are never returned.
"""

import csv
import io
import logging
from typing import Callable, List

import numpy as np
import pandas as pd

from core.errors import DataError
from schema.dataset import CsvDataset


logger = logging.getLogger(__name__)


class CountAggregator:
    """
    Aggregates one field of a CsvDataset into per-bucket counts.

    Values outside the field's bucket enumeration are excluded silently.
    The result is index-aligned with ``dataset.buckets_for(field)`` and has
    a zero for every bucket without matching rows.
    """

    def aggregate(self, dataset: CsvDataset, field_name: str) -> np.ndarray:
        """
        Count rows per bucket of ``field_name``.

        Args:
            dataset: Dataset to aggregate
            field_name: Column to count over

        Returns:
            Read-only int64 array, one count per bucket

        Raises:
            DataError: If the field is unknown or the body is malformed
        """
        columns = dataset.columns()
        buckets = dataset.buckets_for(field_name)

        select = self._make_select_column(columns, field_name)
        frame = self._split_dataframe(dataset.body, columns, dataset.delimiter)
        counts = self._count_by_buckets(select(frame), buckets)

        logger.debug(
            f"Aggregated {len(frame):,} rows on '{field_name}': "
            f"{int(counts.sum()):,} in {len(buckets)} buckets"
        )
        return counts

    def _make_select_column(self, columns: List[str], field_name: str) -> Callable[[pd.DataFrame], pd.Series]:
        """Build the column-selection step; fails if the field is not a column."""
        if field_name not in columns:
            raise DataError(f"Unknown field '{field_name}', expected one of: {', '.join(columns)}")

        def select(frame: pd.DataFrame) -> pd.Series:
            return frame[field_name]

        return select

    def _split_dataframe(self, body: str, columns: List[str], delimiter: str) -> pd.DataFrame:
        """
        Parse delimited text into a string DataFrame with the schema's columns.

        Blank lines (no delimiter, nothing but whitespace) are skipped and cell
        values are stripped of whitespace. A row of empty cells is still a row:
        it must have the schema's width, and its empty values match no bucket.
        """
        reader = csv.reader(io.StringIO(body), delimiter=delimiter, strict=True)

        rows = []
        try:
            for row in reader:
                if not row or (len(row) == 1 and not row[0].strip()):
                    continue
                if len(row) != len(columns):
                    raise DataError(
                        f"Line {reader.line_num}: expected {len(columns)} fields, got {len(row)}"
                    )
                rows.append([cell.strip() for cell in row])
        except csv.Error as e:
            raise DataError(f"Line {reader.line_num}: cannot parse delimited text: {e}") from e

        return pd.DataFrame(rows, columns=columns, dtype=str)

    def _count_by_buckets(self, values: pd.Series, buckets: List[str]) -> np.ndarray:
        """Count occurrences of each bucket label, in bucket order."""
        counts = values.value_counts().reindex(buckets, fill_value=0).to_numpy(dtype=np.int64)
        counts.setflags(write=False)
        return counts


def aggregate(dataset: CsvDataset, field_name: str) -> np.ndarray:
    """Count rows per bucket of a field (see CountAggregator)."""
    return CountAggregator().aggregate(dataset, field_name)
