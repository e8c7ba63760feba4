"""Domain layer - Modelos de lectura y resultados."""

from .reading import Reading
from .results import BatchFailure, BatchResult, CheckpointRefs, RunResult, Stage

__all__ = ["Reading", "BatchFailure", "BatchResult", "CheckpointRefs", "RunResult", "Stage"]
