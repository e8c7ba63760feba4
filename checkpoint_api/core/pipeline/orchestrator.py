"""Orquestador de checkpoints por batches.

Por cada batch, en orden y de forma estrictamente secuencial:
    hojas -> raíz Merkle (sobre plaintext) -> seal -> pin -> commit

Un fallo en cualquier etapa queda registrado en el BatchResult de ese
batch y el run continúa. Los errores de entrada (EmptyInput,
InvalidChunkSize, MissingReference) abortan antes de procesar nada.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from solders.keypair import Keypair

from ...errors import EmptyInput, InvalidChunkSize
from ..crypto.envelope import seal
from ..domain.reading import Reading
from ..domain.results import BatchFailure, BatchResult, CheckpointRefs, RunResult, Stage
from ..hashing.leaf_encoder import hash_reading
from ..hashing.merkle import build_root
from ..ledger.committer import CheckpointCommitter, parse_address
from ..store.content_store import ContentStore
from .config import PipelineConfig

logger = logging.getLogger(__name__)


def chunk(readings: Sequence[Reading], size: int) -> List[List[Reading]]:
    """Particiona en batches contiguos de `size` (el último puede ser menor).

    Raises:
        InvalidChunkSize: size no es un entero > 0
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise InvalidChunkSize(f"chunkSize must be > 0 (got {size!r})")
    return [list(readings[i:i + size]) for i in range(0, len(readings), size)]


def batch_payload(batch_index: int, batch: Sequence[Reading]) -> Dict[str, Any]:
    return {
        "batchIndex": batch_index,
        "count": len(batch),
        "readings": [r.to_dict() for r in batch],
    }


def window_payload(window_index: int, readings: Sequence[Reading]) -> Dict[str, Any]:
    return {
        "windowIndex": window_index,
        "readings": [r.to_dict() for r in readings],
    }


class BatchOrchestrator:
    """Conduce Accumulator -> Envelope -> Store -> Committer por batch."""

    def __init__(
        self,
        config: PipelineConfig,
        store: ContentStore,
        committer: CheckpointCommitter,
    ) -> None:
        self._config = config
        self._store = store
        self._committer = committer

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def committer(self) -> CheckpointCommitter:
        return self._committer

    def validate(self, readings: Sequence[Reading], chunk_size: int, refs: CheckpointRefs) -> List[List[Reading]]:
        if not readings:
            raise EmptyInput("readings must be a non-empty array")
        batches = chunk(readings, chunk_size)
        parse_address(refs.device_ref, "deviceRef")
        parse_address(refs.checkpoint_ref, "checkpointRef")
        return batches

    def run(
        self,
        readings: Sequence[Reading],
        refs: CheckpointRefs,
        chunk_size: Optional[int] = None,
        signer: Optional[Keypair] = None,
    ) -> RunResult:
        """Ejecuta el pipeline completo sobre todas las lecturas.

        Raises:
            EmptyInput, InvalidChunkSize, MissingReference: antes de cualquier batch
        """
        size = self._config.chunk_size if chunk_size is None else chunk_size
        batches = self.validate(readings, size, refs)

        t0 = time.monotonic()
        results: List[BatchResult] = []
        for i, batch in enumerate(batches):
            results.append(self.process_batch(i, batch, refs, signer=signer))

        elapsed_ms = (time.monotonic() - t0) * 1000
        run = RunResult(
            total=len(readings),
            chunk_size=size,
            batches=tuple(results),
            elapsed_ms=elapsed_ms,
        )
        logger.info(
            "[PIPELINE] run total=%d chunk=%d batches=%d ok=%d fail=%d ms=%.1f",
            run.total,
            run.chunk_size,
            len(run.batches),
            len(run.succeeded),
            len(run.failed),
            elapsed_ms,
        )
        return run

    def process_batch(
        self,
        batch_index: int,
        batch: Sequence[Reading],
        refs: CheckpointRefs,
        signer: Optional[Keypair] = None,
    ) -> BatchResult:
        """Procesa un batch del run (payload y nombre de pin por índice de batch)."""
        return self._process(
            batch_index,
            batch,
            refs,
            signer=signer,
            payload=batch_payload(batch_index, batch),
            pin_name=f"batch-{batch_index}.enc.json",
        )

    def run_window(
        self,
        window_index: int,
        readings: Sequence[Reading],
        refs: CheckpointRefs,
        signer: Optional[Keypair] = None,
    ) -> BatchResult:
        """Checkpoint de una sola ventana, sin particionar."""
        if not readings:
            raise EmptyInput("readings must be a non-empty array")
        parse_address(refs.device_ref, "deviceRef")
        parse_address(refs.checkpoint_ref, "checkpointRef")
        return self._process(
            window_index,
            readings,
            refs,
            signer=signer,
            payload=window_payload(window_index, readings),
            pin_name=f"window-{window_index}.enc.json",
        )

    def _process(
        self,
        index: int,
        readings: Sequence[Reading],
        refs: CheckpointRefs,
        signer: Optional[Keypair],
        payload: Dict[str, Any],
        pin_name: str,
    ) -> BatchResult:
        signer = signer or self._config.signer
        stage = Stage.LEAVES
        root_hex: Optional[str] = None
        cid: Optional[str] = None

        try:
            leaves = [hash_reading(r) for r in readings]

            stage = Stage.ROOT
            root = build_root(leaves)
            root_hex = root.hex()

            stage = Stage.SEAL
            envelope = seal(payload, self._config.encryption_key)

            stage = Stage.PIN
            cid = self._store.pin(envelope.to_container(), pin_name)

            stage = Stage.COMMIT
            signature = self._committer.commit(
                root,
                cid,
                refs.device_ref,
                refs.checkpoint_ref,
                signer,
            )
        except Exception as e:
            logger.warning(
                "[PIPELINE] batch=%d stage=%s failed err=%s: %s",
                index,
                stage.value,
                type(e).__name__,
                e,
            )
            return BatchResult(
                batch_index=index,
                count=len(readings),
                content_identifier=cid,
                merkle_root=root_hex,
                failure=BatchFailure.from_exception(stage, e),
            )

        logger.info(
            "[PIPELINE] batch=%d count=%d root=%s cid=%s sig=%s",
            index,
            len(readings),
            root_hex,
            cid,
            signature,
        )
        return BatchResult(
            batch_index=index,
            count=len(readings),
            content_identifier=cid,
            merkle_root=root_hex,
            signature=signature,
        )
