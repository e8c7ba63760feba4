"""Factory para construir el orquestador desde Settings.

Elige las implementaciones concretas de store y ledger; los tests y el
modo dry-run inyectan las suyas.
"""

from __future__ import annotations

import logging
from typing import Optional

from common.config import Settings

from ..ledger.client import LedgerClient
from ..ledger.committer import CheckpointCommitter
from ..ledger.solana_client import SolanaLedgerClient
from ..store.content_store import ContentStore
from ..store.pinata import PinataContentStore
from .config import PipelineConfig
from .orchestrator import BatchOrchestrator

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> ContentStore:
    return PinataContentStore(
        jwt=settings.pinata_jwt or "",
        url=settings.pinata_api_url,
        timeout_seconds=settings.pinata_timeout_seconds,
    )


def create_ledger(settings: Settings) -> LedgerClient:
    return SolanaLedgerClient(
        settings.cluster_url,
        timeout_seconds=settings.commit_timeout_seconds,
    )


def create_orchestrator(
    settings: Settings,
    store: Optional[ContentStore] = None,
    ledger: Optional[LedgerClient] = None,
    config: Optional[PipelineConfig] = None,
) -> BatchOrchestrator:
    """Crea un orquestador nuevo.

    Raises:
        InputError: si la configuración no resuelve (clave, firmante, programa)
    """
    config = config or PipelineConfig.from_settings(settings)
    store = store or create_store(settings)
    ledger = ledger or create_ledger(settings)

    logger.info(
        "[PIPELINE_FACTORY] store=%s ledger=%s endpoint=%s authority=%s chunk=%d",
        type(store).__name__,
        type(ledger).__name__,
        ledger.endpoint,
        config.signer.pubkey(),
        config.chunk_size,
    )
    return BatchOrchestrator(config, store, CheckpointCommitter(ledger, config.program_id))
