from .json_store import JsonJobRepository

__all__ = ["JsonJobRepository"]
