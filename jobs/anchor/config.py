"""Anchor runner configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RunnerConfig:
    """Configuración del runner de anclaje por línea de comandos."""
    device_ref: Optional[str]
    checkpoint_ref: Optional[str]
    input_path: Optional[str]
    demo_count: int
    chunk_size: Optional[int]
    retry_attempts: int
    retry_base_delay: float
    dry_run: bool
