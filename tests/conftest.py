"""Fixtures compartidas: lecturas, clave, firmante y fakes de store/ledger."""

from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
from solders.keypair import Keypair

from checkpoint_api.core.domain import CheckpointRefs, Reading
from checkpoint_api.core.ledger import CheckpointCommitter, InMemoryLedgerClient, derive_device_accounts
from checkpoint_api.core.pipeline import BatchOrchestrator, PipelineConfig
from checkpoint_api.core.store import ContentStore, InMemoryContentStore
from checkpoint_api.errors import StoreUnavailable

SEED = bytes(range(32))
PROGRAM_SEED = bytes(range(100, 132))
KEY = bytes(range(32, 64))


class FlakyContentStore(ContentStore):
    """Store en memoria que falla en las llamadas indicadas (0-indexed)."""

    def __init__(self, fail_on_calls: List[int]):
        self.inner = InMemoryContentStore()
        self.fail_on_calls = set(fail_on_calls)
        self.calls = 0

    def pin(self, content: Dict[str, Any], name: str) -> str:
        call = self.calls
        self.calls += 1
        if call in self.fail_on_calls:
            raise StoreUnavailable("Pinata error: 503 Service Unavailable", status_code=503)
        return self.inner.pin(content, name)


@pytest.fixture
def signer() -> Keypair:
    return Keypair.from_seed(SEED)


@pytest.fixture
def program_id():
    return Keypair.from_seed(PROGRAM_SEED).pubkey()


@pytest.fixture
def key() -> bytes:
    return KEY


@pytest.fixture
def refs(signer, program_id) -> CheckpointRefs:
    accounts = derive_device_accounts(signer.pubkey(), program_id)
    return CheckpointRefs(device_ref=str(accounts.device), checkpoint_ref=str(accounts.checkpoint))


@pytest.fixture
def readings() -> List[Reading]:
    """5 lecturas a 1 Hz (sin deviceId, como en el firmware)."""
    return [
        Reading(
            timestamp=1735689600 + i,
            temperature_centi=2500 + i,
            humidity_centi=5000 + 10 * i,
            pressure_pa=100300 + i,
            gas=150 + i,
        )
        for i in range(5)
    ]


@pytest.fixture
def pipeline_config(key, signer, program_id) -> PipelineConfig:
    return PipelineConfig(encryption_key=key, signer=signer, program_id=program_id, chunk_size=2)


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def ledger() -> InMemoryLedgerClient:
    return InMemoryLedgerClient()


@pytest.fixture
def orchestrator(pipeline_config, store, ledger, program_id) -> BatchOrchestrator:
    return BatchOrchestrator(pipeline_config, store, CheckpointCommitter(ledger, program_id))


@pytest.fixture
def mock_response():
    """Respuesta HTTP mock de Pinata (200 con IpfsHash)."""
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    response.text = '{"IpfsHash": "bafkreitestcid"}'
    response.json = MagicMock(return_value={"IpfsHash": "bafkreitestcid", "PinSize": 512})
    return response


@pytest.fixture
def flaky_store():
    """Factory: store que falla en las llamadas a pin indicadas."""
    return FlakyContentStore
