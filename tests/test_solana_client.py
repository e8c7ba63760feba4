"""Tests de SolanaLedgerClient con un Client RPC mock (sin red)."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from checkpoint_api.core.ledger import build_commit_instruction, build_memo_instruction, discriminator
from checkpoint_api.core.ledger.solana_client import SolanaLedgerClient
from checkpoint_api.core.verification import extract_committed_root, extract_memo_cid
from checkpoint_api.errors import CommitRejected, CommitTimeout, LedgerUnavailable

SIGNATURE = Signature.default()


def status(confirmation=TransactionConfirmationStatus.Confirmed, err=None):
    return SimpleNamespace(err=err, confirmation_status=confirmation, slot=42)


@pytest.fixture
def rpc():
    client = MagicMock()
    client.get_latest_blockhash.return_value = SimpleNamespace(value=SimpleNamespace(blockhash=Hash.default()))
    client.send_transaction.return_value = SimpleNamespace(value=SIGNATURE)
    client.get_signature_statuses.return_value = SimpleNamespace(value=[status()])
    return client


@pytest.fixture
def ledger_client(rpc):
    return SolanaLedgerClient(
        "https://rpc.test",
        timeout_seconds=0.5,
        poll_interval_seconds=0.01,
        client=rpc,
    )


@pytest.fixture
def instructions():
    return [build_memo_instruction("bafkreiabc")]


# =============================================================================
# SUBMIT
# =============================================================================

class TestSubmit:

    def test_confirmed_returns_signature(self, ledger_client, rpc, signer, instructions):
        assert ledger_client.submit(instructions, signer) == str(SIGNATURE)
        rpc.send_transaction.assert_called_once()
        assert rpc.send_transaction.call_args.kwargs["opts"].skip_confirmation is True

    def test_finalized_is_accepted(self, ledger_client, rpc, signer, instructions):
        rpc.get_signature_statuses.return_value = SimpleNamespace(
            value=[status(TransactionConfirmationStatus.Finalized)]
        )
        assert ledger_client.submit(instructions, signer) == str(SIGNATURE)

    def test_processed_then_confirmed_keeps_polling(self, ledger_client, rpc, signer, instructions):
        rpc.get_signature_statuses.side_effect = [
            SimpleNamespace(value=[status(TransactionConfirmationStatus.Processed)]),
            SimpleNamespace(value=[None]),
            SimpleNamespace(value=[status()]),
        ]
        ledger_client.submit(instructions, signer)
        assert rpc.get_signature_statuses.call_count == 3

    def test_status_error_is_rejected(self, ledger_client, rpc, signer, instructions):
        rpc.get_signature_statuses.return_value = SimpleNamespace(value=[status(err="InstructionError")])
        with pytest.raises(CommitRejected) as exc_info:
            ledger_client.submit(instructions, signer)
        assert "InstructionError" in str(exc_info.value)

    def test_never_confirmed_times_out(self, ledger_client, rpc, signer, instructions):
        rpc.get_signature_statuses.return_value = SimpleNamespace(value=[None])
        with pytest.raises(CommitTimeout) as exc_info:
            ledger_client.submit(instructions, signer)
        assert exc_info.value.signature == str(SIGNATURE)

    def test_poll_failure_is_retried_until_confirmed(self, ledger_client, rpc, signer, instructions):
        rpc.get_signature_statuses.side_effect = [
            httpx.ConnectError("connection reset"),
            SimpleNamespace(value=[status()]),
        ]
        assert ledger_client.submit(instructions, signer) == str(SIGNATURE)

    def test_rpc_rejection(self, ledger_client, rpc, signer, instructions):
        rpc.send_transaction.side_effect = RPCException("Blockhash not found")
        with pytest.raises(CommitRejected) as exc_info:
            ledger_client.submit(instructions, signer)
        assert str(exc_info.value) == "Commit rejected: Blockhash not found"
        rpc.get_signature_statuses.assert_not_called()

    def test_send_timeout(self, ledger_client, rpc, signer, instructions):
        rpc.send_transaction.side_effect = httpx.ReadTimeout("timed out")
        with pytest.raises(CommitTimeout) as exc_info:
            ledger_client.submit(instructions, signer)
        assert exc_info.value.signature is None

    def test_transport_error_is_rejected(self, ledger_client, rpc, signer, instructions):
        rpc.get_latest_blockhash.side_effect = httpx.ConnectError("refused")
        with pytest.raises(CommitRejected):
            ledger_client.submit(instructions, signer)


# =============================================================================
# READS
# =============================================================================

class TestReads:

    def test_fetch_transaction_decodes_instructions(self, ledger_client, rpc, signer, program_id, refs):
        root = bytes(range(32))
        memo = build_memo_instruction("bafkreiabc")
        device = Pubkey.from_string(refs.device_ref)
        checkpoint = Pubkey.from_string(refs.checkpoint_ref)
        commit = build_commit_instruction(program_id, device, checkpoint, signer.pubkey(), root)
        keys = [signer.pubkey(), memo.program_id, program_id, device, checkpoint]
        message = SimpleNamespace(
            account_keys=keys,
            instructions=[
                SimpleNamespace(program_id_index=1, accounts=[], data=bytes(memo.data)),
                SimpleNamespace(program_id_index=2, accounts=[3, 4, 0], data=bytes(commit.data)),
            ],
        )
        rpc.get_transaction.return_value = SimpleNamespace(
            value=SimpleNamespace(
                slot=77,
                transaction=SimpleNamespace(
                    transaction=SimpleNamespace(message=message),
                    meta=SimpleNamespace(err=None),
                ),
            )
        )

        tx = ledger_client.fetch_transaction(str(SIGNATURE))

        assert tx.slot == 77
        assert tx.error is None
        assert tx.instructions[1].accounts == (refs.device_ref, refs.checkpoint_ref, str(signer.pubkey()))
        assert tx.instructions[1].data[:8] == discriminator("commit_checkpoint")
        assert extract_committed_root(tx, program_id) == root
        assert extract_memo_cid(tx) == "bafkreiabc"

    def test_fetch_unknown_signature(self, ledger_client, rpc):
        rpc.get_transaction.return_value = SimpleNamespace(value=None)
        assert ledger_client.fetch_transaction(str(SIGNATURE)) is None

    def test_fetch_failure(self, ledger_client, rpc):
        rpc.get_transaction.side_effect = RPCException("node is behind")
        with pytest.raises(LedgerUnavailable):
            ledger_client.fetch_transaction(str(SIGNATURE))

    def test_balance(self, ledger_client, rpc):
        rpc.get_balance.return_value = SimpleNamespace(value=1_500_000)
        assert ledger_client.get_balance(Keypair().pubkey()) == 1_500_000

    def test_balance_failure(self, ledger_client, rpc):
        rpc.get_balance.side_effect = httpx.ConnectError("refused")
        with pytest.raises(LedgerUnavailable):
            ledger_client.get_balance(Keypair().pubkey())
