"""
Dataset Loader.

Reads a delimited census file from disk into a CsvDataset, dropping the
header line.
"""

import logging
import os
from typing import Optional

from schema.dataset import CsvDataset, Schema


logger = logging.getLogger(__name__)


def strip_header(text: str) -> str:
    """Remove the first line of ``text`` and return the remaining body."""
    lines = text.split("\n")
    return "\n".join(lines[1:])


def load_dataset(
    filepath: str,
    schema: Optional[Schema] = None,
    has_header: bool = True,
    delimiter: str = ",",
    encoding: str = "utf-8"
) -> CsvDataset:
    """
    Load a delimited file as a dataset.

    Args:
        filepath: Path to the delimited file
        schema: Column schema (default census schema)
        has_header: Whether the first line is a header to drop
        delimiter: Field separator
        encoding: File encoding

    Returns:
        CsvDataset over the file body
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Data file not found: {filepath}")

    with open(filepath, 'r', encoding=encoding, newline='') as f:
        text = f.read()

    body = strip_header(text) if has_header else text
    dataset = CsvDataset(body=body, schema=schema or Schema(), delimiter=delimiter)

    logger.info(f"Loaded {dataset.num_lines:,} records from {filepath}")
    return dataset
