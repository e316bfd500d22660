"""Schema definitions for census records and their buckets."""
__all__ = ['Schema', 'CsvDataset', 'COLUMNS']

def __getattr__(name):
    if name in ('Schema', 'CsvDataset', 'COLUMNS'):
        from .dataset import Schema, CsvDataset, COLUMNS
        return {'Schema': Schema, 'CsvDataset': CsvDataset, 'COLUMNS': COLUMNS}[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
