"""Cliente JSON-RPC de Solana para el committer.

Envía la transacción sin confirmación implícita y después hace polling de
get_signature_statuses hasta alcanzar el nivel de confirmación pedido o
agotar el timeout.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

import httpx
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from ...errors import CommitRejected, CommitTimeout, LedgerUnavailable
from .client import LedgerClient, LedgerInstruction, LedgerTransaction

logger = logging.getLogger(__name__)

# Tupla: los enums de solders no son hashables.
_ACCEPTED_STATUSES = (
    TransactionConfirmationStatus.Confirmed,
    TransactionConfirmationStatus.Finalized,
)


def _rpc_reason(exc: RPCException) -> str:
    detail = exc.args[0] if exc.args else exc
    message = getattr(detail, "message", None)
    return str(message or detail)[:300]


class SolanaLedgerClient(LedgerClient):
    """LedgerClient sobre solana-py + solders."""

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 60.0,
        commitment: Commitment = Confirmed,
        poll_interval_seconds: float = 0.5,
        request_timeout_seconds: float = 10.0,
        client: Optional[Client] = None,
    ) -> None:
        self.endpoint = endpoint
        self._timeout = timeout_seconds
        self._commitment = commitment
        self._poll_interval = poll_interval_seconds
        self._client = client or Client(endpoint, commitment=commitment, timeout=request_timeout_seconds)

    def submit(self, instructions: Sequence[Instruction], signer: Keypair) -> str:
        try:
            latest = self._client.get_latest_blockhash(commitment=self._commitment)
            blockhash = latest.value.blockhash
            message = Message.new_with_blockhash(list(instructions), signer.pubkey(), blockhash)
            tx = Transaction([signer], message, blockhash)
            resp = self._client.send_transaction(
                tx,
                opts=TxOpts(skip_confirmation=True, preflight_commitment=self._commitment),
            )
        except RPCException as e:
            reason = _rpc_reason(e)
            logger.warning("[LEDGER] transaction rejected endpoint=%s reason=%s", self.endpoint, reason)
            raise CommitRejected(reason) from e
        except httpx.TimeoutException as e:
            raise CommitTimeout(None, self._timeout) from e
        except httpx.HTTPError as e:
            raise CommitRejected(f"transport error: {type(e).__name__}: {e}") from e

        signature = resp.value
        logger.info("[LEDGER] sent sig=%s, waiting for %s", signature, self._commitment)
        self._await_confirmation(signature)
        return str(signature)

    def _await_confirmation(self, signature: Signature) -> None:
        deadline = time.monotonic() + self._timeout

        while True:
            status = None
            try:
                resp = self._client.get_signature_statuses([signature])
                status = resp.value[0]
            except (RPCException, httpx.HTTPError) as e:
                logger.warning("[LEDGER] status poll failed sig=%s err=%s", signature, e)

            if status is not None:
                if status.err is not None:
                    raise CommitRejected(str(status.err))
                if status.confirmation_status in _ACCEPTED_STATUSES:
                    logger.info("[LEDGER] confirmed sig=%s slot=%s", signature, status.slot)
                    return

            if time.monotonic() >= deadline:
                raise CommitTimeout(str(signature), self._timeout)
            time.sleep(self._poll_interval)

    def fetch_transaction(self, signature: str) -> Optional[LedgerTransaction]:
        try:
            resp = self._client.get_transaction(
                Signature.from_string(signature),
                encoding="base64",
                commitment=self._commitment,
                max_supported_transaction_version=0,
            )
        except (RPCException, httpx.HTTPError) as e:
            raise LedgerUnavailable(f"get_transaction failed: {e}") from e

        confirmed = resp.value
        if confirmed is None:
            return None

        encoded = confirmed.transaction
        message = encoded.transaction.message
        keys = list(message.account_keys)

        instructions = []
        for ix in message.instructions:
            instructions.append(
                LedgerInstruction(
                    program_id=str(keys[ix.program_id_index]),
                    accounts=tuple(str(keys[i]) for i in ix.accounts if i < len(keys)),
                    data=bytes(ix.data),
                )
            )

        err = encoded.meta.err if encoded.meta is not None else None
        return LedgerTransaction(
            signature=signature,
            slot=confirmed.slot,
            instructions=tuple(instructions),
            error=str(err) if err is not None else None,
        )

    def get_balance(self, pubkey: Pubkey) -> int:
        try:
            return self._client.get_balance(pubkey, commitment=self._commitment).value
        except (RPCException, httpx.HTTPError) as e:
            raise LedgerUnavailable(f"get_balance failed: {e}") from e
