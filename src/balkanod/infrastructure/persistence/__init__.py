from .resolution_cache import ResolutionCache

__all__ = ["ResolutionCache"]
