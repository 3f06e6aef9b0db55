from .json_repository import JsonContentRepository

__all__ = ["JsonContentRepository"]
