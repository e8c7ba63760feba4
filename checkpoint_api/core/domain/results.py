"""Resultados por batch y por run del pipeline de checkpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple


class Stage(str, Enum):
    """Etapa del pipeline de un batch."""
    LEAVES = "leaves"
    ROOT = "root"
    SEAL = "seal"
    PIN = "pin"
    COMMIT = "commit"


@dataclass(frozen=True)
class CheckpointRefs:
    """Cuentas on-ledger del dispositivo y de su checkpoint (base58)."""
    device_ref: str
    checkpoint_ref: str


@dataclass(frozen=True)
class BatchFailure:
    stage: Stage
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, stage: Stage, exc: BaseException) -> "BatchFailure":
        return cls(stage=stage, error_type=type(exc).__name__, message=str(exc))


@dataclass(frozen=True)
class BatchResult:
    """Resultado de un batch: firma de la transacción o fallo con su etapa.

    content_identifier y merkle_root se conservan aunque el commit falle,
    para que el llamador pueda reintentar sin recalcular.
    """
    batch_index: int
    count: int
    content_identifier: Optional[str] = None
    merkle_root: Optional[str] = None
    signature: Optional[str] = None
    failure: Optional[BatchFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.signature is not None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"batch": self.batch_index + 1, "count": self.count}
        if self.content_identifier is not None:
            out["contentIdentifier"] = self.content_identifier
        if self.merkle_root is not None:
            out["merkleRoot"] = self.merkle_root
        if self.signature is not None:
            out["signature"] = self.signature
        if self.failure is not None:
            out["error"] = f"{self.failure.error_type}: {self.failure.message}"
            out["stage"] = self.failure.stage.value
        return out


@dataclass(frozen=True)
class RunResult:
    """Artefacto terminal de una invocación del pipeline."""
    total: int
    chunk_size: int
    batches: Tuple[BatchResult, ...] = field(default_factory=tuple)
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> Tuple[BatchResult, ...]:
        return tuple(b for b in self.batches if b.ok)

    @property
    def failed(self) -> Tuple[BatchResult, ...]:
        return tuple(b for b in self.batches if not b.ok)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "chunkSize": self.chunk_size,
            "batches": len(self.batches),
            "elapsedMs": round(self.elapsed_ms, 1),
            "results": [b.to_dict() for b in self.batches],
        }
