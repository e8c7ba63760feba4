"""CLI entry point for the anchor runner."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from checkpoint_api.errors import CheckpointError

from .config import RunnerConfig
from .runner import build_orchestrator, run_once

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> RunnerConfig:
    p = argparse.ArgumentParser(description="Anchor sensor readings as Merkle checkpoints")
    p.add_argument("--device", help="device account (base58); derived from the signer if omitted")
    p.add_argument("--checkpoint", help="checkpoint account (base58); derived from the signer if omitted")
    source = p.add_mutually_exclusive_group()
    source.add_argument("--input", help="JSON file with readings")
    source.add_argument("--demo", type=int, default=384, help="number of synthetic readings")
    p.add_argument("--chunk-size", type=int, default=None)
    p.add_argument("--retry-failed", type=int, default=0, help="retry attempts for failed batches")
    p.add_argument("--retry-delay", type=float, default=1.0)
    p.add_argument("--dry-run", action="store_true", help="in-memory store and ledger, ephemeral keys")
    args = p.parse_args(argv)

    return RunnerConfig(
        device_ref=args.device,
        checkpoint_ref=args.checkpoint,
        input_path=args.input,
        demo_count=args.demo,
        chunk_size=args.chunk_size,
        retry_attempts=max(0, args.retry_failed),
        retry_base_delay=args.retry_delay,
        dry_run=bool(args.dry_run),
    )


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    cfg = parse_args(argv)
    logger.info("Anchor runner started (dry_run=%s)", cfg.dry_run)

    try:
        orchestrator = build_orchestrator(cfg)
        run = run_once(cfg, orchestrator)
    except (CheckpointError, ValueError, OSError) as e:
        logger.error("Run aborted: %s: %s", type(e).__name__, e)
        return 2

    json.dump(run.to_dict(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 1 if run.failed else 0


if __name__ == "__main__":
    sys.exit(main())
