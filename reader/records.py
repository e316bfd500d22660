"""
Typed census records.

Reads a headed census CSV into typed records, for callers that want the
rows themselves rather than bucket counts.
"""

import csv
import logging
from dataclasses import dataclass, fields
from typing import List

from core.errors import DataError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CensusRecord:
    """One census row."""
    age: int
    sex: int
    educ: int
    race: int
    income: int
    married: int


def read_records(filepath: str, encoding: str = 'utf-8-sig') -> List[CensusRecord]:
    """
    Read every row of a headed census CSV as a CensusRecord.

    Args:
        filepath: Path to the CSV file (first line is the header)
        encoding: File encoding (default utf-8-sig to handle BOM)

    Returns:
        Records in file order

    Raises:
        DataError: If a column is missing or a value is not an integer
    """
    names = [f.name for f in fields(CensusRecord)]
    records = []

    with open(filepath, 'r', encoding=encoding, newline='') as f:
        reader = csv.DictReader(f)

        for row in reader:
            row = {k.strip(): v for k, v in row.items() if k is not None}
            try:
                values = {name: int(row[name]) for name in names}
            except KeyError as e:
                raise DataError(f"Line {reader.line_num}: missing column {e}") from e
            except (TypeError, ValueError) as e:
                raise DataError(f"Line {reader.line_num}: non-integer value: {e}") from e
            records.append(CensusRecord(**values))

    logger.info(f"Read {len(records):,} records from {filepath}")
    return records
