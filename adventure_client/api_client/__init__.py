from functools import lru_cache

from .client import BackendAPIError, BackendClient


@lru_cache(maxsize=1)
def get_backend_client() -> BackendClient:
    return BackendClient()


__all__ = ["BackendAPIError", "BackendClient", "get_backend_client"]
