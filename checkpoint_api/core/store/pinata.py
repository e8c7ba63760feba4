"""Cliente de Pinata para pinear contenedores cifrados en IPFS.

Sin reintentos: un fallo aborta solo el batch actual y la política de
retry pertenece al llamador.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import requests

from ...errors import StoreUnavailable
from .content_store import ContentStore

logger = logging.getLogger(__name__)

DEFAULT_PINATA_URL = "https://api.pinata.cloud/pinning/pinJSONToIPFS"


class PinataContentStore(ContentStore):
    """Pinea JSON vía POST /pinning/pinJSONToIPFS con bearer token."""

    def __init__(
        self,
        jwt: str,
        url: str = DEFAULT_PINATA_URL,
        timeout_seconds: float = 30.0,
        cid_version: int = 1,
    ) -> None:
        self._jwt = jwt
        self._url = url
        self._timeout = timeout_seconds
        self._cid_version = cid_version

    def pin(self, content: Dict[str, Any], name: str) -> str:
        if not self._jwt:
            raise StoreUnavailable("Missing PINATA_JWT")

        body = {
            "pinataOptions": {"cidVersion": self._cid_version},
            "pinataMetadata": {"name": name},
            "pinataContent": content,
        }

        try:
            response = requests.post(
                self._url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self._jwt}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("[PINATA] request failed name=%s err=%s", name, type(e).__name__)
            raise StoreUnavailable(f"Pinata request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning(
                "[PINATA] pin rejected name=%s status=%d body=%s",
                name,
                response.status_code,
                response.text[:200],
            )
            raise StoreUnavailable(
                f"Pinata error: {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise StoreUnavailable("Pinata returned a non-JSON response") from e

        cid = data.get("IpfsHash") if isinstance(data, dict) else None
        if not cid or not isinstance(cid, str):
            raise StoreUnavailable("Pinata response has no IpfsHash")

        logger.info("[PINATA] pinned name=%s cid=%s", name, cid)
        return cid
