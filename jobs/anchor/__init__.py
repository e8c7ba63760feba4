"""Anchor runner package: CLI para anclar lecturas fuera de la API.

Modules:
- config: RunnerConfig dataclass
- demo: Lecturas sintéticas
- retry: Reintento de batches fallidos (backoff exponencial)
- runner: Carga de lecturas + run_once
- cli: CLI entry point (main)
"""

from .config import RunnerConfig
from .runner import run_once
from .cli import main

__all__ = ["RunnerConfig", "run_once", "main"]
