"""Abstract interface for the content-addressed store.

The pipeline only needs "pin this, give me an identifier". The identifier is
treated as an opaque pointer: a retry may return a different identifier for
equivalent content.
"""

from __future__ import annotations

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ContentStore(ABC):
    """Abstract interface for content stores.

    Implementations:
    - PinataContentStore: pins JSON to IPFS through the Pinata API
    - InMemoryContentStore: local fake for dry runs and tests
    """

    @abstractmethod
    def pin(self, content: Dict[str, Any], name: str) -> str:
        """Pin a JSON-compatible object.

        Args:
            content: Ciphertext container to store
            name: Human-readable name stored as pin metadata

        Returns:
            Content identifier (CID)

        Raises:
            StoreUnavailable: on network error or non-success response
        """
        pass


class InMemoryContentStore(ContentStore):
    """Fake store: keeps pinned objects in a dict keyed by a fake CID."""

    def __init__(self) -> None:
        self.pinned: Dict[str, Dict[str, Any]] = {}
        self.names: Dict[str, str] = {}

    def pin(self, content: Dict[str, Any], name: str) -> str:
        raw = json.dumps(content, sort_keys=True, separators=(",", ":")).encode("utf-8")
        cid = "bafy" + hashlib.sha256(raw).hexdigest()[:52]
        self.pinned[cid] = content
        self.names[cid] = name
        logger.debug("[STORE] in-memory pin name=%s cid=%s", name, cid)
        return cid
