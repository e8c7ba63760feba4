"""Tests del orquestador por batches.

Cubre partición, política de fallo parcial y validación previa.
"""

import math

import pytest

from checkpoint_api.core.crypto import EncryptedEnvelope, open_envelope
from checkpoint_api.core.domain import CheckpointRefs, Stage
from checkpoint_api.core.hashing import calc_window_root
from checkpoint_api.core.ledger import CheckpointCommitter
from checkpoint_api.core.pipeline import BatchOrchestrator, chunk
from checkpoint_api.errors import CommitRejected, EmptyInput, InvalidChunkSize, MissingReference


# =============================================================================
# PARTICIÓN
# =============================================================================

class TestChunk:

    def test_five_by_two(self, readings):
        batches = chunk(readings, 2)
        assert [len(b) for b in batches] == [2, 2, 1]

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7])
    def test_partition_reproduces_input(self, readings, size):
        batches = chunk(readings, size)
        assert len(batches) == math.ceil(len(readings) / size)
        assert all(len(b) == size for b in batches[:-1])
        assert [r for b in batches for r in b] == readings

    @pytest.mark.parametrize("size", [0, -1, 1.5, True])
    def test_invalid_size(self, readings, size):
        with pytest.raises(InvalidChunkSize):
            chunk(readings, size)


# =============================================================================
# RUN COMPLETO
# =============================================================================

class TestRun:

    def test_all_batches_succeed(self, orchestrator, readings, refs, ledger):
        run = orchestrator.run(readings, refs)

        assert run.total == 5
        assert run.chunk_size == 2
        assert len(run.batches) == 3
        assert [b.count for b in run.batches] == [2, 2, 1]
        assert all(b.ok for b in run.batches)
        assert [b.signature for b in run.batches] == ledger.submitted

    def test_roots_are_over_plaintext_batches(self, orchestrator, readings, refs):
        run = orchestrator.run(readings, refs)
        for result, batch in zip(run.batches, chunk(readings, 2)):
            assert result.merkle_root == calc_window_root(batch)[0]

    def test_pinned_content_is_encrypted_batch(self, orchestrator, readings, refs, store, key):
        run = orchestrator.run(readings, refs)
        second = run.batches[1]

        container = store.pinned[second.content_identifier]
        assert store.names[second.content_identifier] == "batch-1.enc.json"
        payload = open_envelope(EncryptedEnvelope.from_container(container), key)
        assert payload == {
            "batchIndex": 1,
            "count": 2,
            "readings": [r.to_dict() for r in readings[2:4]],
        }

    def test_commit_carries_cid_and_root(self, orchestrator, readings, refs, ledger):
        run = orchestrator.run(readings, refs)
        first = run.batches[0]
        memo, commit = ledger.fetch_transaction(first.signature).instructions
        assert memo.data == f"CID:{first.content_identifier}".encode()
        assert commit.data[8:].hex() == first.merkle_root

    def test_chunk_size_override(self, orchestrator, readings, refs):
        run = orchestrator.run(readings, refs, chunk_size=128)
        assert len(run.batches) == 1
        assert run.chunk_size == 128

    def test_to_dict_shape(self, orchestrator, readings, refs):
        out = orchestrator.run(readings, refs).to_dict()
        assert set(out) == {"total", "chunkSize", "batches", "elapsedMs", "results"}
        assert [r["batch"] for r in out["results"]] == [1, 2, 3]
        assert {"count", "contentIdentifier", "merkleRoot", "signature"} <= set(out["results"][0])


# =============================================================================
# FALLO PARCIAL
# =============================================================================

class TestPartialFailure:

    def test_store_fails_on_middle_batch(self, pipeline_config, ledger, program_id, readings, refs, flaky_store):
        store = flaky_store([1])
        orchestrator = BatchOrchestrator(pipeline_config, store, CheckpointCommitter(ledger, program_id))

        run = orchestrator.run(readings[:3], refs, chunk_size=1)

        assert len(run.batches) == 3
        ok0, failed, ok2 = run.batches
        assert ok0.ok and ok0.signature
        assert ok2.ok and ok2.signature
        assert not failed.ok
        assert failed.signature is None
        assert failed.failure.stage == Stage.PIN
        assert failed.failure.error_type == "StoreUnavailable"
        assert failed.merkle_root is not None
        assert len(ledger.submitted) == 2
        assert [b.batch_index for b in run.failed] == [1]

    def test_commit_rejection_keeps_cid(self, orchestrator, readings, refs, ledger, monkeypatch):
        calls = {"n": 0}
        real_submit = ledger.submit

        def submit(instructions, signer):
            calls["n"] += 1
            if calls["n"] == 2:
                raise CommitRejected("custom program error: 0x1770")
            return real_submit(instructions, signer)

        monkeypatch.setattr(ledger, "submit", submit)
        run = orchestrator.run(readings, refs)

        failed = run.batches[1]
        assert failed.failure.stage == Stage.COMMIT
        assert failed.content_identifier is not None
        assert "0x1770" in failed.to_dict()["error"]
        assert failed.to_dict()["stage"] == "commit"
        assert run.batches[2].ok

    def test_unexpected_error_does_not_escape(self, orchestrator, readings, refs, store, monkeypatch):
        def pin(content, name):
            raise RuntimeError("boom")

        monkeypatch.setattr(store, "pin", pin)
        run = orchestrator.run(readings, refs)
        assert len(run.batches) == 3
        assert all(b.failure.error_type == "RuntimeError" for b in run.batches)


# =============================================================================
# VALIDACIÓN PREVIA
# =============================================================================

class TestValidation:

    def test_empty_input(self, orchestrator, refs, ledger):
        with pytest.raises(EmptyInput):
            orchestrator.run([], refs)
        assert ledger.submitted == []

    def test_invalid_chunk_size(self, orchestrator, readings, refs, store):
        with pytest.raises(InvalidChunkSize):
            orchestrator.run(readings, refs, chunk_size=0)
        assert store.pinned == {}

    @pytest.mark.parametrize("device,checkpoint", [("", "x"), ("x", ""), ("not-base58!", "also-not")])
    def test_missing_reference(self, orchestrator, readings, refs, store, device, checkpoint):
        bad = CheckpointRefs(
            device_ref=device if device != "x" else refs.device_ref,
            checkpoint_ref=checkpoint if checkpoint != "x" else refs.checkpoint_ref,
        )
        with pytest.raises(MissingReference):
            orchestrator.run(readings, bad)
        assert store.pinned == {}


# =============================================================================
# VENTANA ÚNICA
# =============================================================================

class TestRunWindow:

    def test_window_payload_and_name(self, orchestrator, readings, refs, store, key):
        result = orchestrator.run_window(7, readings, refs)

        assert result.ok
        assert result.count == 5
        assert store.names[result.content_identifier] == "window-7.enc.json"
        payload = open_envelope(EncryptedEnvelope.from_container(store.pinned[result.content_identifier]), key)
        assert payload["windowIndex"] == 7
        assert len(payload["readings"]) == 5

    def test_window_requires_readings(self, orchestrator, refs):
        with pytest.raises(EmptyInput):
            orchestrator.run_window(0, [], refs)
