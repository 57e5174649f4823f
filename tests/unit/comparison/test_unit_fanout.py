# tests/unit/comparison/test_unit_fanout.py — v1
"""Tests for comparison/fanout.py — concurrency, isolation and ordering."""

from __future__ import annotations

import asyncio

import pytest

from modelplayground.comparison.fanout import FanOutCoordinator
from modelplayground.llm.registry import ModelRegistry


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def on_chunk(self, model_id, chunk):
        self.calls.append(("chunk", model_id, chunk))

    async def on_complete(self, model_id, metrics):
        self.calls.append(("complete", model_id, metrics))

    async def on_error(self, model_id, error):
        self.calls.append(("error", model_id, error))

    def for_model(self, model_id):
        return [c for c in self.calls if c[1] == model_id]

    def terminals(self, model_id):
        return [c for c in self.for_model(model_id) if c[0] in ("complete", "error")]


async def _run(registry, model_ids, recorder, prompt="Explain recursion"):
    await FanOutCoordinator(registry).start(
        "session-1", prompt, model_ids,
        recorder.on_chunk, recorder.on_complete, recorder.on_error,
    )


class TestFanOut:
    @pytest.mark.asyncio
    async def test_every_model_reaches_one_terminal(self, registry):
        rec = _Recorder()
        await _run(registry, ["gpt-4", "claude-sonnet-4-20250514"], rec)

        for model_id in ("gpt-4", "claude-sonnet-4-20250514"):
            terminals = rec.terminals(model_id)
            assert len(terminals) == 1
            assert terminals[0][0] == "complete"
            assert rec.for_model(model_id)[-1] == terminals[0]

    @pytest.mark.asyncio
    async def test_chunks_in_stream_order(self, registry):
        rec = _Recorder()
        await _run(registry, ["gpt-4"], rec)
        chunks = [c[2] for c in rec.for_model("gpt-4") if c[0] == "chunk"]
        assert chunks == ["Recursion ", "is when a function ", "calls itself."]

    @pytest.mark.asyncio
    async def test_unknown_model_reports_error(self, registry):
        rec = _Recorder()
        await _run(registry, ["gpt-4", "nope"], rec)

        assert rec.for_model("nope") == [("error", "nope", "Model nope not found")]
        assert rec.terminals("gpt-4")[0][0] == "complete"

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self, make_client):
        registry = ModelRegistry.from_clients({
            "ok": ("OK", make_client(["fine"])),
            "bad": ("Bad", make_client(["par", "tial"], error=RuntimeError("429 slow down"), fail_after=1)),
        })
        rec = _Recorder()
        await _run(registry, ["ok", "bad"], rec)

        assert rec.for_model("bad") == [
            ("chunk", "bad", "par"),
            ("error", "bad", "429 slow down"),
        ]
        assert rec.terminals("ok")[0][0] == "complete"

    @pytest.mark.asyncio
    async def test_immediate_failure(self, make_client):
        registry = ModelRegistry.from_clients({
            "bad": ("Bad", make_client(["never"], error=ConnectionError("refused"))),
        })
        rec = _Recorder()
        await _run(registry, ["bad"], rec)
        assert rec.calls == [("error", "bad", "refused")]

    @pytest.mark.asyncio
    async def test_models_run_concurrently(self, make_client):
        registry = ModelRegistry.from_clients({
            "slow": ("Slow", make_client(["s1", "s2", "s3"], delay=0.02)),
            "fast": ("Fast", make_client(["f1"])),
        })
        rec = _Recorder()
        await _run(registry, ["slow", "fast"], rec)

        order = [(c[0], c[1]) for c in rec.calls]
        # The fast model finishes while the slow one is still streaming
        assert order.index(("complete", "fast")) < order.index(("complete", "slow"))

    @pytest.mark.asyncio
    async def test_empty_model_list(self, registry):
        rec = _Recorder()
        await _run(registry, [], rec)
        assert rec.calls == []

    @pytest.mark.asyncio
    async def test_callback_failure_reraised_after_join(self, registry):
        rec = _Recorder()

        async def failing_chunk(model_id, chunk):
            if model_id == "gpt-4":
                raise OSError("disk full")
            await rec.on_chunk(model_id, chunk)

        with pytest.raises(OSError, match="disk full"):
            await FanOutCoordinator(registry).start(
                "session-1", "prompt", ["gpt-4", "claude-sonnet-4-20250514"],
                failing_chunk, rec.on_complete, rec.on_error,
            )
        # The sibling still ran to completion
        assert rec.terminals("claude-sonnet-4-20250514")[0][0] == "complete"
        # A callback failure is not reported as a model error
        assert rec.for_model("gpt-4") == []

    @pytest.mark.asyncio
    async def test_prompt_forwarded(self, registry, gpt4_client):
        await _run(registry, ["gpt-4"], _Recorder(), prompt="What is 2+2?")
        assert gpt4_client.prompts == ["What is 2+2?"]
