"""Taxonomía de errores del pipeline de checkpoints.

Dos ramas:
- InputError: defectos de entrada/configuración. Abortan el run completo
  antes de procesar cualquier batch.
- BatchError: fallos de un batch concreto. Se registran en su BatchResult
  y el run continúa con el siguiente batch.
"""

from __future__ import annotations

from typing import Optional


class CheckpointError(Exception):
    """Base de todos los errores del dominio de checkpoints."""


class InputError(CheckpointError):
    """Error de entrada o configuración (aborta el run)."""


class BatchError(CheckpointError):
    """Error recuperable a nivel de batch (no aborta el run)."""


# --- Hashing -----------------------------------------------------------------

class InvalidReading(CheckpointError):
    """Lectura con campos numéricos mal formados."""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid reading field '{field}': {value!r} is not an integer")


class EmptyBatch(CheckpointError):
    """Se pidió una raíz Merkle sobre cero hojas."""

    def __init__(self) -> None:
        super().__init__("Cannot build a Merkle root over an empty batch")


# --- Envelope ----------------------------------------------------------------

class InvalidKey(InputError):
    """Clave simétrica ausente o de longitud incorrecta."""


class AuthenticationFailed(BatchError):
    """El tag GCM no verifica (ciphertext, nonce o tag alterados, o clave errónea)."""


class UnsupportedAlgorithm(CheckpointError):
    """El envelope declara un algoritmo o versión desconocidos."""

    def __init__(self, algorithm: str, version: Optional[int] = None):
        self.algorithm = algorithm
        self.version = version
        super().__init__(f"Unsupported envelope algorithm={algorithm!r} version={version!r}")


# --- Content store -----------------------------------------------------------

class StoreUnavailable(BatchError):
    """El content store no aceptó el pin (red, status no-2xx, respuesta inválida)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


# --- Signer / ledger ---------------------------------------------------------

class MissingSigner(InputError):
    """No hay ninguna credencial de firma configurada."""


class InvalidSigner(InputError):
    """La credencial configurada no produce una clave utilizable."""


class CommitRejected(BatchError):
    """El ledger rechazó la transacción."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Commit rejected: {reason}")


class LedgerUnavailable(CheckpointError):
    """Lecturas contra el ledger (fetch de transacción, balance) fallaron."""


class CommitTimeout(BatchError):
    """La transacción no alcanzó el nivel de confirmación a tiempo."""

    def __init__(self, signature: Optional[str], timeout_seconds: float):
        self.signature = signature
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Commit not confirmed within {timeout_seconds:.1f}s (signature={signature})"
        )


# --- Orchestrator validation ------------------------------------------------

class EmptyInput(InputError):
    """readings vacío."""


class InvalidChunkSize(InputError):
    """chunk_size <= 0 o no entero."""


class MissingReference(InputError):
    """Referencia de device/checkpoint vacía o no es una dirección válida."""
