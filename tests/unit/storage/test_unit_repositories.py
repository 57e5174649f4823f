# tests/unit/storage/test_unit_repositories.py — v2
"""Tests for the session repositories — same contract for every backend."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from modelplayground.storage.base_repository import BaseRepository, RecordNotFoundError
from modelplayground.storage.memory_repository import MemoryRepository
from modelplayground.storage.models import SessionAggregates
from modelplayground.storage.sqlite_repository import SqliteRepository


@pytest.fixture(params=["memory", "sqlite"])
def repo(request) -> BaseRepository:
    if request.param == "memory":
        yield MemoryRepository()
        return
    repository = SqliteRepository(":memory:")
    yield repository
    repository.close()


class TestSessions:
    @pytest.mark.asyncio
    async def test_create_and_get(self, repo):
        created = await repo.create_session("Explain recursion", "u1")
        fetched = await repo.get_session(created.id)

        assert fetched.id == created.id
        assert fetched.prompt == "Explain recursion"
        assert fetched.status == "pending"
        assert fetched.total_tokens == 0
        assert fetched.responses == []

    @pytest.mark.asyncio
    async def test_get_scoped_to_user(self, repo):
        created = await repo.create_session("p", "u1")
        assert await repo.get_session(created.id, "u1") is not None
        assert await repo.get_session(created.id, "u2") is None

    @pytest.mark.asyncio
    async def test_get_missing(self, repo):
        assert await repo.get_session("nope") is None

    @pytest.mark.asyncio
    async def test_list_newest_first_with_paging(self, repo):
        ids = [(await repo.create_session(f"p{i}", "u1")).id for i in range(4)]
        await repo.create_session("other", "u2")

        listed = await repo.list_sessions("u1")
        assert [s.id for s in listed] == list(reversed(ids))

        page = await repo.list_sessions("u1", limit=2, offset=2)
        assert [s.id for s in page] == [ids[1], ids[0]]

    @pytest.mark.asyncio
    async def test_status_and_metrics(self, repo):
        created = await repo.create_session("p", "u1")
        await repo.update_session_status(created.id, "in_progress")
        await repo.update_session_metrics(
            created.id,
            SessionAggregates(total_tokens=770, total_cost=0.02565, average_response_time=1750.0),
        )

        fetched = await repo.get_session(created.id)
        assert fetched.status == "in_progress"
        assert fetched.total_tokens == 770
        assert fetched.total_cost == pytest.approx(0.02565)
        assert fetched.average_response_time == 1750.0
        assert fetched.updated_at >= fetched.created_at

    @pytest.mark.asyncio
    async def test_update_missing_session(self, repo):
        with pytest.raises(RecordNotFoundError):
            await repo.update_session_status("nope", "failed")


class TestResponses:
    @pytest.mark.asyncio
    async def test_lifecycle_to_completed(self, repo):
        session = await repo.create_session("p", "u1")
        response = await repo.create_response(session.id, "gpt-4", "openai")
        assert response.status == "pending"
        assert response.response == ""

        await repo.update_response_text(response.id, "Recursion ")
        await repo.update_response_text(response.id, "Recursion is neat")
        await repo.finalize_response(
            response.id, input_tokens=12, output_tokens=3, cost=0.0005, response_time_ms=840,
        )

        [stored] = (await repo.get_session(session.id)).responses
        assert stored.status == "completed"
        assert stored.response == "Recursion is neat"
        assert (stored.input_tokens, stored.output_tokens) == (12, 3)
        assert stored.cost == pytest.approx(0.0005)
        assert stored.response_time_ms == 840
        assert stored.error_message is None

    @pytest.mark.asyncio
    async def test_error_keeps_partial_text(self, repo):
        session = await repo.create_session("p", "u1")
        response = await repo.create_response(session.id, "gpt-4", "openai")
        await repo.update_response_text(response.id, "partial")
        await repo.mark_response_error(response.id, "Rate limit reached")

        [stored] = await repo.list_responses(session.id)
        assert stored.status == "error"
        assert stored.response == "partial"
        assert stored.error_message == "Rate limit reached"
        assert stored.cost is None

    @pytest.mark.asyncio
    async def test_list_filtered_by_status(self, repo):
        session = await repo.create_session("p", "u1")
        a = await repo.create_response(session.id, "a", "openai")
        b = await repo.create_response(session.id, "b", "google")
        await repo.finalize_response(a.id, 1, 1, 0.0, 10)
        await repo.mark_response_error(b.id, "down")

        completed = await repo.list_responses(session.id, status="completed")
        assert [r.model_id for r in completed] == ["a"]
        assert len(await repo.list_responses(session.id)) == 2

    @pytest.mark.asyncio
    async def test_response_for_missing_session(self, repo):
        with pytest.raises(RecordNotFoundError):
            await repo.create_response("nope", "gpt-4", "openai")

    @pytest.mark.asyncio
    async def test_update_missing_response(self, repo):
        with pytest.raises(RecordNotFoundError):
            await repo.update_response_text("nope", "x")
        with pytest.raises(RecordNotFoundError):
            await repo.finalize_response("nope", 1, 1, 0.0, 1)
        with pytest.raises(RecordNotFoundError):
            await repo.mark_response_error("nope", "x")

    @pytest.mark.asyncio
    async def test_history_includes_responses(self, repo):
        session = await repo.create_session("p", "u1")
        await repo.create_response(session.id, "gpt-4", "openai")
        [listed] = await repo.list_sessions("u1")
        assert len(listed.responses) == 1


class TestMemoryIsolation:
    @pytest.mark.asyncio
    async def test_returned_objects_are_copies(self):
        repo = MemoryRepository()
        session = await repo.create_session("p", "u1")
        session.status = "failed"
        assert (await repo.get_session(session.id)).status == "pending"


class TestSqliteFile:
    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path):
        db = tmp_path / "nested" / "playground.db"
        repo = SqliteRepository(db)
        session = await repo.create_session("persist me", "u1")
        repo.close()

        reopened = SqliteRepository(db)
        fetched = await reopened.get_session(session.id)
        reopened.close()
        assert fetched.prompt == "persist me"

    @pytest.mark.asyncio
    async def test_create_raises_when_row_cannot_be_read_back(self, monkeypatch):
        repo = SqliteRepository(":memory:")
        monkeypatch.setattr(repo, "get_session", AsyncMock(return_value=None))
        try:
            with pytest.raises(RecordNotFoundError):
                await repo.create_session("p", "u1")
        finally:
            repo.close()
