"""Interactive noising engine."""
__all__ = ['Noiser', 'NoiseSnapshot', 'RefreshResult']

def __getattr__(name):
    if name in ('Noiser', 'NoiseSnapshot', 'RefreshResult'):
        from .noiser import Noiser, NoiseSnapshot, RefreshResult
        return {'Noiser': Noiser, 'NoiseSnapshot': NoiseSnapshot, 'RefreshResult': RefreshResult}[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
