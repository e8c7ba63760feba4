"""Tests del runner CLI: demo, carga de archivo, reintentos y dry-run."""

import json
import random

import pytest

from checkpoint_api.core.ledger import CheckpointCommitter
from checkpoint_api.core.pipeline import BatchOrchestrator, chunk
from checkpoint_api.errors import InvalidReading
from jobs.anchor.cli import main, parse_args
from jobs.anchor.demo import generate_readings
from jobs.anchor.retry import RetryPolicy, retry_failed_batches
from jobs.anchor.runner import load_readings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.setenv("CHECKPOINT_ENV_FILE", str(tmp_path / "missing.env"))
    for name in ("PROGRAM_ID", "CHECKPOINT_CHUNK_SIZE"):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# DEMO / INPUT
# =============================================================================

class TestDemoReadings:

    def test_ranges_and_timestamps(self):
        readings = generate_readings(50, start_ts=1000, rng=random.Random(7))
        assert [r.timestamp for r in readings] == list(range(1000, 1050))
        assert all(3400 <= r.temperature_centi < 3650 for r in readings)
        assert all(4500 <= r.humidity_centi < 6000 for r in readings)
        assert all(100000 <= r.pressure_pa < 100500 for r in readings)
        assert all(150 <= r.gas < 180 for r in readings)

    def test_seeded_rng_is_reproducible(self):
        a = generate_readings(10, start_ts=0, rng=random.Random(1))
        b = generate_readings(10, start_ts=0, rng=random.Random(1))
        assert a == b


class TestLoadReadings:

    def test_list_file(self, tmp_path, readings):
        path = tmp_path / "readings.json"
        path.write_text(json.dumps([r.to_dict() for r in readings]))
        assert load_readings(str(path)) == readings

    def test_wrapped_file(self, tmp_path, readings):
        path = tmp_path / "readings.json"
        path.write_text(json.dumps({"readings": [r.to_dict() for r in readings]}))
        assert len(load_readings(str(path))) == 5

    def test_invalid_shape(self, tmp_path):
        path = tmp_path / "readings.json"
        path.write_text(json.dumps({"items": []}))
        with pytest.raises(ValueError):
            load_readings(str(path))

    def test_invalid_reading(self, tmp_path):
        path = tmp_path / "readings.json"
        path.write_text(json.dumps([{"ts": "yesterday", "t_c_x100": 1, "rh_x100": 1, "p_pa": 1, "gas": 1}]))
        with pytest.raises(InvalidReading):
            load_readings(str(path))


# =============================================================================
# RETRY
# =============================================================================

class TestRetry:

    def test_backoff_is_exponential_and_capped(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=3.0, jitter=0)
        assert [policy.backoff(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 3.0, 3.0]

    def test_backoff_jitter_stays_in_range(self):
        policy = RetryPolicy(base_delay=4.0, jitter=0.25)
        assert all(3.0 <= policy.backoff(1) <= 5.0 for _ in range(50))

    def test_failed_batch_recovers(self, pipeline_config, ledger, program_id, readings, refs, flaky_store):
        store = flaky_store([1])
        orchestrator = BatchOrchestrator(pipeline_config, store, CheckpointCommitter(ledger, program_id))
        run = orchestrator.run(readings, refs)
        assert [b.ok for b in run.batches] == [True, False, True]

        delays = []
        retried, stats = retry_failed_batches(
            orchestrator, run, chunk(readings, 2), refs, RetryPolicy(attempts=2, jitter=0), sleep=delays.append
        )

        assert all(b.ok for b in retried.batches)
        assert [b.batch_index for b in retried.batches] == [0, 1, 2]
        assert retried.batches[0] == run.batches[0]
        assert not run.batches[1].ok
        assert stats.to_dict() == {"attempts": 1, "recovered": 1, "exhausted": 0}
        assert delays == [1.0]
        assert len(ledger.submitted) == 3

    def test_exhausted_keeps_last_failure(self, pipeline_config, ledger, program_id, readings, refs, flaky_store):
        store = flaky_store([1, 3, 4])
        orchestrator = BatchOrchestrator(pipeline_config, store, CheckpointCommitter(ledger, program_id))
        run = orchestrator.run(readings, refs)

        delays = []
        retried, stats = retry_failed_batches(
            orchestrator, run, chunk(readings, 2), refs, RetryPolicy(attempts=2, jitter=0), sleep=delays.append
        )

        assert not retried.batches[1].ok
        assert retried.batches[1].failure.stage.value == "pin"
        assert stats.to_dict() == {"attempts": 2, "recovered": 0, "exhausted": 1}
        assert delays == [1.0, 2.0]


# =============================================================================
# CLI
# =============================================================================

class TestCli:

    def test_parse_args(self):
        cfg = parse_args(["--device", "D", "--checkpoint", "C", "--demo", "10", "--chunk-size", "4", "--dry-run"])
        assert cfg.device_ref == "D"
        assert cfg.demo_count == 10
        assert cfg.chunk_size == 4
        assert cfg.dry_run is True
        assert cfg.retry_attempts == 0

    def test_dry_run_demo(self, clean_env, capsys):
        code = main(["--demo", "5", "--chunk-size", "2", "--dry-run"])
        out = json.loads(capsys.readouterr().out)
        assert code == 0
        assert out["total"] == 5
        assert out["batches"] == 3
        assert all("signature" in r for r in out["results"])

    def test_dry_run_from_file(self, clean_env, capsys, tmp_path, readings):
        path = tmp_path / "readings.json"
        path.write_text(json.dumps([r.to_dict() for r in readings]))
        code = main(["--input", str(path), "--dry-run"])
        out = json.loads(capsys.readouterr().out)
        assert code == 0
        assert out["chunkSize"] == 128
        assert out["batches"] == 1

    def test_invalid_chunk_size_aborts(self, clean_env, capsys):
        assert main(["--demo", "5", "--chunk-size", "0", "--dry-run"]) == 2
        assert capsys.readouterr().out == ""
