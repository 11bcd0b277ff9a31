"""
Unit tests for BlockService.
Tests block state transitions, directional queries, stats and the follow cascade.
"""
import asyncio
import pytest

from app.core.exceptions import ConflictError, InvalidOperationError, NotFoundError


class TestCreateBlock:
    """Test creating and reactivating blocks."""

    async def test_create_block_is_directional(self, block_service):
        """Test a block from A to B is visible from both sides, in one direction."""
        block = await block_service.create_block("alice", "bob", "spam")

        assert block.blocker_id == "alice"
        assert block.blocked_id == "bob"
        assert block.is_active is True
        assert await block_service.is_blocked("alice", "bob") is True
        assert await block_service.is_blocked_by("bob", "alice") is True
        assert await block_service.is_blocked("bob", "alice") is False
        assert await block_service.has_block_between("bob", "alice") is True

    async def test_create_block_self(self, block_service):
        """Test blocking yourself is rejected."""
        with pytest.raises(InvalidOperationError) as exc_info:
            await block_service.create_block("alice", "alice")

        assert exc_info.value.message == "You cannot block yourself"

    async def test_create_block_twice_conflicts(self, block_service):
        """Test blocking an already blocked user is rejected."""
        await block_service.create_block("alice", "bob")

        with pytest.raises(ConflictError) as exc_info:
            await block_service.create_block("alice", "bob")

        assert exc_info.value.message == "User is already blocked"

    async def test_both_directions_can_coexist(self, block_service):
        await block_service.create_block("alice", "bob")
        await block_service.create_block("bob", "alice")

        relationship = await block_service.get_relationship("alice", "bob")

        assert relationship["is_blocked"] is True
        assert relationship["is_blocked_by"] is True
        assert relationship["block"].blocker_id == "alice"

    async def test_remove_then_create_gives_fresh_edge(self, block_service):
        """Test unblocking deletes the edge so a new block starts over."""
        first = await block_service.create_block("alice", "bob", "spam")

        result = await block_service.remove_block("alice", "bob")
        second = await block_service.create_block("alice", "bob")

        assert result == {"message": "User unblocked successfully"}
        assert second.id != first.id
        assert second.reason is None

    async def test_create_reactivates_deactivated_edge(self, block_service, block_repo):
        """Test blocking again after deactivation reuses the edge with the new reason."""
        original = await block_service.create_block("alice", "bob", "old")
        await block_service.update_block("alice", "bob", {"is_active": False})

        block = await block_service.create_block("alice", "bob", "new")

        assert block.id == original.id
        assert block.is_active is True
        assert block.reason == "new"
        assert block.created_at == original.created_at
        assert await block_repo.count(blocker_id="alice", blocked_id="bob") == 1

    async def test_concurrent_creates_one_succeeds(self, block_service, block_repo):
        """Test two simultaneous blocks of the same pair yield one edge and one conflict."""
        results = await asyncio.gather(
            block_service.create_block("alice", "bob"),
            block_service.create_block("alice", "bob"),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], ConflictError)
        assert await block_repo.count(blocker_id="alice", blocked_id="bob") == 1


class TestFollowCascadeOnBlock:
    """Test follow edges are removed when a block is put in force."""

    async def test_block_removes_follows_both_ways(self, block_service, platform):
        platform.follows.update({("alice", "bob"), ("bob", "alice"), ("alice", "carol")})

        await block_service.create_block("alice", "bob")

        assert platform.follows == {("alice", "carol")}

    async def test_block_succeeds_when_not_following(self, block_service, platform):
        """Test "not following" from the platform does not fail the block."""
        block = await block_service.create_block("alice", "bob")

        assert block.is_active is True
        assert set(platform.unfollow_calls) == {("alice", "bob"), ("bob", "alice")}

    async def test_block_stands_when_platform_down(self, block_service, platform):
        platform.fail_unfollow = True
        platform.follows.add(("alice", "bob"))

        await block_service.create_block("alice", "bob")

        assert await block_service.is_blocked("alice", "bob") is True
        assert ("alice", "bob") in platform.follows

    async def test_reactivation_by_update_runs_cascade(self, block_service, platform):
        await block_service.create_block("alice", "bob")
        await block_service.update_block("alice", "bob", {"is_active": False})
        platform.follows.add(("bob", "alice"))

        await block_service.update_block("alice", "bob", {"is_active": True})

        assert ("bob", "alice") not in platform.follows

    async def test_deactivation_does_not_run_cascade(self, block_service, platform):
        await block_service.create_block("alice", "bob")
        platform.unfollow_calls.clear()

        await block_service.update_block("alice", "bob", {"is_active": False})

        assert platform.unfollow_calls == []


class TestUpdateAndRemove:
    """Test updating and removing blocks."""

    async def test_update_reason(self, block_service):
        await block_service.create_block("alice", "bob", "spam")

        block = await block_service.update_block("alice", "bob", {"reason": "harassment"})

        assert block.reason == "harassment"
        assert block.is_active is True

    async def test_update_ignores_unknown_fields(self, block_service):
        """Test only reason and is_active can be changed."""
        await block_service.create_block("alice", "bob")

        block = await block_service.update_block(
            "alice", "bob", {"blocked_id": "carol", "reason": "x"}
        )

        assert block.blocked_id == "bob"
        assert block.reason == "x"

    async def test_update_missing_block(self, block_service):
        with pytest.raises(NotFoundError) as exc_info:
            await block_service.update_block("alice", "bob", {"reason": "x"})

        assert exc_info.value.message == "Block relationship not found"

    async def test_remove_missing_block(self, block_service):
        with pytest.raises(NotFoundError):
            await block_service.remove_block("alice", "bob")

    async def test_remove_does_not_restore_follows(self, block_service, platform):
        platform.follows.add(("alice", "bob"))
        await block_service.create_block("alice", "bob")

        await block_service.remove_block("alice", "bob")

        assert await block_service.is_blocked("alice", "bob") is False
        assert ("alice", "bob") not in platform.follows


class TestQueries:
    """Test predicates, lists and stats."""

    async def test_predicates_on_degenerate_ids(self, block_service):
        assert await block_service.is_blocked("alice", "alice") is False
        assert await block_service.is_blocked("", "bob") is False
        assert await block_service.is_blocked_by("alice", "") is False

    async def test_deactivated_block_counts_as_absent(self, block_service):
        """Test an inactive edge is ignored by predicates, lists and stats."""
        await block_service.create_block("alice", "bob")
        await block_service.update_block("alice", "bob", {"is_active": False})

        assert await block_service.is_blocked("alice", "bob") is False
        assert await block_service.has_block_between("alice", "bob") is False
        assert await block_service.list_blocked("alice") == []
        assert await block_service.list_blocked_by("bob") == []
        assert await block_service.get_stats("alice") == {"blocked_count": 0, "blocked_by_count": 0}

        relationship = await block_service.get_relationship("alice", "bob")
        assert relationship == {"is_blocked": False, "is_blocked_by": False, "block": None}

    async def test_relationship_prefers_forward_edge(self, block_service):
        await block_service.create_block("bob", "alice")

        relationship = await block_service.get_relationship("alice", "bob")

        assert relationship["is_blocked"] is False
        assert relationship["is_blocked_by"] is True
        assert relationship["block"].blocker_id == "bob"

    async def test_list_blocked_with_profiles(self, block_service):
        """Test blocked users are listed with their public profiles."""
        await block_service.create_block("alice", "bob")
        await block_service.create_block("alice", "carol")
        await block_service.create_block("dave", "alice")

        blocked = await block_service.list_blocked("alice")
        blocked_by = await block_service.list_blocked_by("alice")

        assert {item["blocked_id"] for item in blocked} == {"bob", "carol"}
        assert {item["user"].id for item in blocked} == {"bob", "carol"}
        assert blocked[0]["user"].first_name in ("Bob", "Carol")
        assert [item["user"].username for item in blocked_by] == ["dave"]

    async def test_list_blocked_without_profiles_when_lookup_fails(self, block_service, platform):
        platform.fail_lookup = True
        await block_service.create_block("alice", "bob")

        blocked = await block_service.list_blocked("alice")

        assert len(blocked) == 1
        assert blocked[0]["user"] is None

    async def test_list_blocked_skips_malformed_profile(self, block_service, platform):
        """Test a profile without an id yields the block with no user instead of failing."""
        await block_service.create_block("alice", "bob")
        await block_service.create_block("alice", "carol")
        platform.profiles["bob"] = {"userId": "bob", "username": "bob"}

        blocked = await block_service.list_blocked("alice")

        users = {item["blocked_id"]: item["user"] for item in blocked}
        assert users["bob"] is None
        assert users["carol"].username == "carol"

    async def test_stats(self, block_service):
        await block_service.create_block("alice", "bob")
        await block_service.create_block("alice", "carol")
        await block_service.create_block("dave", "alice")

        stats = await block_service.get_stats("alice")

        assert stats == {"blocked_count": 2, "blocked_by_count": 1}
