"""Content store layer - pin de contenedores cifrados."""

from .content_store import ContentStore, InMemoryContentStore
from .pinata import PinataContentStore

__all__ = ["ContentStore", "InMemoryContentStore", "PinataContentStore"]
