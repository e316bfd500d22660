"""
Census Record Schema and Dataset.

Declares the column layout of the input records and, per column, the
enumeration of bucket labels that counts are aggregated over.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple


logger = logging.getLogger(__name__)


COLUMNS: Tuple[str, ...] = ("age", "sex", "educ", "race", "income", "married")

# Default buckets: codes 1..20
DEFAULT_BUCKET_RANGE = (1, 20)

# Income buckets: 10,000-wide bands from 10,000 to 200,000
INCOME_BUCKET_START = 10000
INCOME_BUCKET_STOP = 200000
INCOME_BUCKET_STEP = 10000


class Schema:
    """
    Static column declaration of the census records.

    Bucket enumerations depend only on the field name, never on the data:
    - educ: "1".."20"
    - income: "10000", "20000", ..., "200000"
    - anything else: "1".."20"
    """

    def __init__(self, columns: Tuple[str, ...] = COLUMNS):
        self._columns = tuple(columns)

    def columns(self) -> List[str]:
        """Column names in file order."""
        return list(self._columns)

    def has_column(self, name: str) -> bool:
        """Check if a column is declared."""
        return name in self._columns

    def buckets_for(self, field_name: str) -> List[str]:
        """
        Get the ordered bucket labels for a field.

        Args:
            field_name: Column name

        Returns:
            Bucket labels in count-vector order
        """
        if field_name == "income":
            return [str(v) for v in range(INCOME_BUCKET_START, INCOME_BUCKET_STOP + 1, INCOME_BUCKET_STEP)]
        low, high = DEFAULT_BUCKET_RANGE
        return [str(v) for v in range(low, high + 1)]

    def __repr__(self) -> str:
        return f"Schema(columns={list(self._columns)})"


@dataclass(frozen=True)
class CsvDataset:
    """
    Read-only view over header-less delimited text and its schema.

    Column order in ``body`` is assumed to match the schema; a mismatch is
    reported by the aggregator as a parse failure.
    """
    body: str
    schema: Schema = field(default_factory=Schema)
    delimiter: str = ","

    def columns(self) -> List[str]:
        """Column names in file order."""
        return self.schema.columns()

    def buckets_for(self, field_name: str) -> List[str]:
        """Bucket labels for a field."""
        return self.schema.buckets_for(field_name)

    @property
    def num_lines(self) -> int:
        """Number of non-blank lines in the body."""
        return sum(1 for line in self.body.splitlines() if line.strip())

    def __repr__(self) -> str:
        return f"CsvDataset(lines={self.num_lines}, columns={self.columns()})"
