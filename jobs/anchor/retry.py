"""Reintentos con backoff exponencial para batches fallidos.

El core nunca reintenta; esta política pertenece al llamador. Cada
reintento vuelve a ejecutar el batch completo (nuevo seal, nuevo pin,
nuevo commit), nunca reenvía una transacción ya enviada.
"""

from __future__ import annotations

import dataclasses
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from checkpoint_api.core.domain import BatchResult, CheckpointRefs, Reading, RunResult
from checkpoint_api.core.pipeline import BatchOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Cuántas veces reprocesar un batch y cuánto esperar entre intentos."""

    attempts: int = 3
    base_delay: float = 1.0  # segundos
    max_delay: float = 30.0  # segundos
    factor: float = 2.0
    jitter: float = 0.25  # fracción del delay; 0 lo desactiva

    def backoff(self, retry_number: int) -> float:
        """Espera antes del reintento `retry_number` (1-indexed)."""
        delay = min(self.base_delay * self.factor ** (retry_number - 1), self.max_delay)
        if self.jitter:
            spread = delay * self.jitter
            delay += random.uniform(-spread, spread)
        return max(0.0, delay)


@dataclass
class RetryStats:
    attempts: int = 0
    recovered: int = 0
    exhausted: int = 0

    def to_dict(self) -> dict:
        return {"attempts": self.attempts, "recovered": self.recovered, "exhausted": self.exhausted}


class BatchRetrier:
    """Reprocesa batches fallidos de un run con la misma configuración."""

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        refs: CheckpointRefs,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._orchestrator = orchestrator
        self._refs = refs
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self.stats = RetryStats()

    def retry(self, failed: BatchResult, batch: Sequence[Reading]) -> BatchResult:
        """Devuelve el primer resultado exitoso, o el último fallo si se agotan los intentos."""
        result = failed
        for n in range(1, self._policy.attempts + 1):
            delay = self._policy.backoff(n)
            logger.warning(
                "[RETRY] batch=%d attempt=%d/%d delay=%.2fs last_stage=%s",
                failed.batch_index, n, self._policy.attempts, delay,
                result.failure.stage.value if result.failure else None,
            )
            self._sleep(delay)

            self.stats.attempts += 1
            result = self._orchestrator.process_batch(failed.batch_index, batch, self._refs)
            if result.ok:
                self.stats.recovered += 1
                logger.info("[RETRY] batch=%d recovered sig=%s", failed.batch_index, result.signature)
                return result

        self.stats.exhausted += 1
        logger.error("[RETRY] batch=%d exhausted after %d attempts", failed.batch_index, self._policy.attempts)
        return result


def retry_failed_batches(
    orchestrator: BatchOrchestrator,
    run: RunResult,
    batches: Sequence[Sequence[Reading]],
    refs: CheckpointRefs,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[RunResult, RetryStats]:
    """Reintenta los batches fallidos de un run.

    Devuelve un RunResult nuevo (el original no se modifica) con los
    resultados reemplazados en su misma posición.
    """
    retrier = BatchRetrier(orchestrator, refs, policy, sleep=sleep)
    t0 = time.monotonic()

    results = [
        r if r.ok else retrier.retry(r, batches[r.batch_index])
        for r in run.batches
    ]

    elapsed_ms = run.elapsed_ms + (time.monotonic() - t0) * 1000
    return dataclasses.replace(run, batches=tuple(results), elapsed_ms=elapsed_ms), retrier.stats
