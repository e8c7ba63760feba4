"""Pipeline layer - Orquestación de checkpoints por batches."""

from .config import PipelineConfig
from .factory import create_orchestrator
from .orchestrator import BatchOrchestrator, chunk

__all__ = ["PipelineConfig", "create_orchestrator", "BatchOrchestrator", "chunk"]
