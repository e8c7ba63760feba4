"""Anchor runner: carga lecturas, ejecuta el pipeline y reintenta fallos."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List

from solders.keypair import Keypair

from checkpoint_api.core.domain import CheckpointRefs, Reading, RunResult
from checkpoint_api.core.ledger import InMemoryLedgerClient, derive_device_accounts, parse_address
from checkpoint_api.core.pipeline import BatchOrchestrator, PipelineConfig, chunk, create_orchestrator
from checkpoint_api.core.store import InMemoryContentStore
from common.config import Settings, get_settings

from .config import RunnerConfig
from .demo import generate_readings
from .retry import RetryPolicy, retry_failed_batches

logger = logging.getLogger(__name__)


def load_readings(path: str) -> List[Reading]:
    """Lee un JSON con una lista de lecturas o {"readings": [...]}."""
    with Path(path).open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("readings")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of readings or {{\"readings\": [...]}}")
    return [Reading.from_dict(item) for item in data]


def build_dry_run_orchestrator(settings: Settings) -> BatchOrchestrator:
    """Orquestador sin red: store y ledger en memoria, clave y firmante efímeros."""
    program_id = (
        parse_address(settings.program_id, "PROGRAM_ID")
        if settings.program_id
        else Keypair().pubkey()
    )
    config = PipelineConfig(
        encryption_key=os.urandom(32),
        signer=Keypair(),
        program_id=program_id,
        chunk_size=settings.chunk_size,
    )
    return create_orchestrator(
        settings,
        store=InMemoryContentStore(),
        ledger=InMemoryLedgerClient(),
        config=config,
    )


def resolve_refs(cfg: RunnerConfig, orchestrator: BatchOrchestrator) -> CheckpointRefs:
    """Refs explícitas, o las PDAs derivadas de la authority del firmante."""
    if cfg.device_ref and cfg.checkpoint_ref:
        return CheckpointRefs(device_ref=cfg.device_ref, checkpoint_ref=cfg.checkpoint_ref)

    accounts = derive_device_accounts(
        orchestrator.config.signer.pubkey(),
        orchestrator.committer.program_id,
    )
    logger.info("Using derived accounts device=%s checkpoint=%s", accounts.device, accounts.checkpoint)
    return CheckpointRefs(
        device_ref=cfg.device_ref or str(accounts.device),
        checkpoint_ref=cfg.checkpoint_ref or str(accounts.checkpoint),
    )


def load_input(cfg: RunnerConfig) -> List[Reading]:
    if cfg.input_path:
        return load_readings(cfg.input_path)
    return generate_readings(cfg.demo_count)


def run_once(cfg: RunnerConfig, orchestrator: BatchOrchestrator) -> RunResult:
    """Un run completo más, opcionalmente, un pase de reintentos."""
    readings = load_input(cfg)
    refs = resolve_refs(cfg, orchestrator)
    chunk_size = orchestrator.config.chunk_size if cfg.chunk_size is None else cfg.chunk_size

    run = orchestrator.run(readings, refs, chunk_size=chunk_size)

    if run.failed and cfg.retry_attempts > 0:
        policy = RetryPolicy(attempts=cfg.retry_attempts, base_delay=cfg.retry_base_delay)
        run, stats = retry_failed_batches(orchestrator, run, chunk(readings, chunk_size), refs, policy)
        logger.info(
            "Retry pass: attempts=%d recovered=%d exhausted=%d",
            stats.attempts, stats.recovered, stats.exhausted,
        )

    logger.info(
        "anchor_run total=%d batches=%d ok=%d fail=%d ms=%.1f",
        run.total, len(run.batches), len(run.succeeded), len(run.failed), run.elapsed_ms,
    )
    return run


def build_orchestrator(cfg: RunnerConfig) -> BatchOrchestrator:
    settings = get_settings()
    if cfg.dry_run:
        return build_dry_run_orchestrator(settings)
    return create_orchestrator(settings)
