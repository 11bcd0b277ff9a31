"""
Tests for the response filter.
"""
import asyncio

import pytest

from app.core.block_filter import ResponseFilter, ViewerFilter, default_owner_resolver
from app.core.exceptions import NotFoundError


def owned(owner_id: str, title: str = "") -> dict:
    return {"owner_id": owner_id, "title": title or f"post by {owner_id}"}


class TestOwnerResolver:
    """Test locating an entity owner."""

    def test_resolves_known_keys_in_order(self):
        assert default_owner_resolver({"owner_id": "a", "id": "b"}) == "a"
        assert default_owner_resolver({"user_id": "c"}) == "c"
        assert default_owner_resolver({"_id": "d"}) == "d"

    def test_resolves_attributes(self, mocker):
        entity = mocker.Mock(spec=["user_id"], user_id="bob")
        assert default_owner_resolver(entity) == "bob"

    def test_no_owner(self):
        assert default_owner_resolver({"title": "x"}) is None


class TestResponseFilter:
    """Test scrubbing blocked parties' entities."""

    async def test_filter_many_drops_both_directions_in_order(self, block_repo):
        """Test entities of users blocked by, or blocking, the viewer are removed."""
        await block_repo.insert("alice", "dave")
        await block_repo.insert("erin", "alice")
        entities = [owned(user_id) for user_id in ["bob", "carol", "dave", "erin", "frank"]]

        result = await ResponseFilter(block_repo).filter_many("alice", entities)

        assert [e["owner_id"] for e in result] == ["bob", "carol", "frank"]

    async def test_filter_many_checks_each_owner_once(self, block_repo, mocker):
        spy = mocker.spy(block_repo, "exists_active")
        entities = [owned("bob", "1"), owned("bob", "2"), owned("carol")]

        result = await ResponseFilter(block_repo).filter_many("alice", entities)

        assert len(result) == 3
        # two directions per distinct owner
        assert spy.call_count == 4

    async def test_filter_many_passes_ownerless_and_own_entities(self, block_repo):
        await block_repo.insert("alice", "bob")
        entities = [{"title": "no owner"}, owned("alice"), owned("bob")]

        result = await ResponseFilter(block_repo).filter_many("alice", entities)

        assert result == [{"title": "no owner"}, owned("alice")]

    async def test_failed_check_hides_entity(self, block_repo, mocker):
        """Test a relationship check that errors excludes the entity."""
        real_exists_active = block_repo.exists_active

        async def flaky(blocker_id, blocked_id):
            if "carol" in (blocker_id, blocked_id):
                raise RuntimeError("database unavailable")
            return await real_exists_active(blocker_id, blocked_id)

        mocker.patch.object(block_repo, "exists_active", side_effect=flaky)

        result = await ResponseFilter(block_repo).filter_many("alice", [owned("bob"), owned("carol")])

        assert [e["owner_id"] for e in result] == ["bob"]

    async def test_concurrency_cap_of_one_still_filters(self, block_repo):
        await block_repo.insert("dave", "alice")
        entities = [owned(user_id) for user_id in ["bob", "carol", "dave"]]

        result = await ResponseFilter(block_repo, max_concurrency=1).filter_many("alice", entities)

        assert [e["owner_id"] for e in result] == ["bob", "carol"]

    async def test_cancelling_filter_cancels_pending_checks(self, block_repo, mocker):
        """Test cancelling the caller cancels every in-flight relationship check."""
        all_started = asyncio.Event()
        started = []
        cancelled = []

        async def slow(blocker_id, blocked_id):
            started.append(blocked_id)
            if len(started) == 3:
                all_started.set()
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.append(blocked_id)
                raise
            return False

        mocker.patch.object(block_repo, "exists_active", side_effect=slow)
        entities = [owned(user_id) for user_id in ["bob", "carol", "dave"]]

        task = asyncio.create_task(ResponseFilter(block_repo).filter_many("alice", entities))
        await asyncio.wait_for(all_started.wait(), timeout=5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert sorted(cancelled) == ["bob", "carol", "dave"]

    async def test_no_viewer_returns_input(self, block_repo):
        entities = [owned("bob")]
        assert await ResponseFilter(block_repo).filter_many(None, entities) == entities

    async def test_filter_one(self, block_repo):
        await block_repo.insert("bob", "alice")
        response_filter = ResponseFilter(block_repo)

        assert await response_filter.filter_one("alice", owned("bob")) is None
        assert await response_filter.filter_one("alice", owned("carol")) == owned("carol")

    async def test_filter_one_runs_without_a_semaphore(self, mocker):
        store = mocker.Mock()
        store.exists_active = mocker.AsyncMock(return_value=True)
        semaphore = mocker.patch("app.core.block_filter.asyncio.Semaphore", wraps=asyncio.Semaphore)

        assert await ResponseFilter(store).filter_one("alice", owned("bob")) is None
        store.exists_active.assert_awaited_once_with("alice", "bob")
        semaphore.assert_not_called()

    async def test_deactivated_block_does_not_filter(self, block_repo):
        await block_repo.insert("alice", "bob")
        await block_repo.update("alice", "bob", is_active=False)

        result = await ResponseFilter(block_repo).filter_many("alice", [owned("bob")])

        assert result == [owned("bob")]


class TestApply:
    """Test filtering handler results of different shapes."""

    async def test_apply_list(self, block_repo):
        await block_repo.insert("alice", "bob")
        users = [{"id": "bob"}, {"id": "carol"}]

        result = await ResponseFilter(block_repo).apply("alice", users)

        assert result == [{"id": "carol"}]

    async def test_apply_page_keeps_other_keys(self, block_repo):
        await block_repo.insert("alice", "bob")
        page = {"users": [{"id": "bob"}, {"id": "carol"}], "total": 2}

        result = await ResponseFilter(block_repo).apply("alice", page)

        assert result == {"users": [{"id": "carol"}], "total": 2}
        assert page["users"] == [{"id": "bob"}, {"id": "carol"}]

    async def test_apply_single_hidden_raises_not_found(self, block_repo):
        await block_repo.insert("bob", "alice")

        with pytest.raises(NotFoundError):
            await ResponseFilter(block_repo).apply("alice", {"id": "bob"})

    async def test_viewer_filter_binds_viewer(self, block_repo):
        await block_repo.insert("alice", "bob")
        viewer_filter = ViewerFilter(ResponseFilter(block_repo), "alice")

        assert await viewer_filter.apply({"items": [{"id": "bob"}]}, collection_key="items") == {"items": []}
