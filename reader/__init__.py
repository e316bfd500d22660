"""Data loading and aggregation."""
__all__ = [
    'CountAggregator',
    'load_dataset',
    'CensusRecord',
    'read_records',
]

def __getattr__(name):
    if name == 'CountAggregator':
        from .aggregator import CountAggregator
        return CountAggregator
    elif name == 'load_dataset':
        from .loader import load_dataset
        return load_dataset
    elif name in ('CensusRecord', 'read_records'):
        from .records import CensusRecord, read_records
        return {'CensusRecord': CensusRecord, 'read_records': read_records}[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
