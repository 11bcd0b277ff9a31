"""
Pytest configuration and fixtures for tests.
Provides reusable fixtures for the database, the block store, a fake user
platform and an authenticated HTTP client.
"""
import pytest
import jwt
from typing import AsyncGenerator, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.config import settings
from app.core.rate_limit import limiter
from app.core.users_client import UserPlatformException
from app.dependencies import get_block_store, get_user_platform
from app.models.base import Base
from app.repositories.block_repo import BlockRepository
from app.services.block_service import BlockService


class FakeUserPlatform:
    """
    In-memory user platform: public profiles plus a follow graph.

    Mirrors the platform's behavior of rejecting an unfollow when the
    follow edge does not exist.
    """

    def __init__(self, profiles: Dict[str, dict]):
        self.profiles = profiles
        self.follows = set()
        self.unfollow_calls = []
        self.fail_unfollow = False
        self.fail_lookup = False

    async def get_user(self, user_id: str, use_cache: bool = True) -> dict:
        if user_id not in self.profiles:
            raise UserPlatformException(f"User {user_id} not found", status_code=404)
        return self.profiles[user_id]

    async def get_users(self, user_ids: List[str]) -> List[dict]:
        if self.fail_lookup:
            raise UserPlatformException("User platform unavailable")
        return [self.profiles[user_id] for user_id in user_ids if user_id in self.profiles]

    async def search_users(self, query: str, limit: int = 20) -> dict:
        matches = [
            profile for profile in self.profiles.values()
            if query.lower() in profile["username"].lower()
        ]
        return {"users": matches[:limit], "total": len(matches)}

    async def get_followers(self, user_id: str, limit: int = 20, skip: int = 0) -> List[dict]:
        ids = sorted(follower for follower, followee in self.follows if followee == user_id)
        return [self.profiles[i] for i in ids][skip:skip + limit]

    async def get_following(self, user_id: str, limit: int = 20, skip: int = 0) -> List[dict]:
        ids = sorted(followee for follower, followee in self.follows if follower == user_id)
        return [self.profiles[i] for i in ids][skip:skip + limit]

    async def follow(self, follower_id: str, followee_id: str) -> dict:
        if (follower_id, followee_id) in self.follows:
            raise UserPlatformException("Already following", status_code=409)
        self.follows.add((follower_id, followee_id))
        return {"success": True}

    async def unfollow(self, follower_id: str, followee_id: str) -> dict:
        self.unfollow_calls.append((follower_id, followee_id))
        if self.fail_unfollow:
            raise UserPlatformException("User platform unavailable")
        if (follower_id, followee_id) not in self.follows:
            raise UserPlatformException("Not following this user", status_code=404)
        self.follows.discard((follower_id, followee_id))
        return {"success": True}

    async def health_check(self) -> bool:
        return True


USER_IDS = ["alice", "bob", "carol", "dave", "erin", "frank"]


def make_profile(user_id: str) -> dict:
    return {
        "id": user_id,
        "username": user_id,
        "firstName": user_id.capitalize(),
        "lastName": "Tester",
        "image": f"https://cdn.example.com/{user_id}.png",
    }


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    """
    Create a file-backed SQLite engine.

    A file (not :memory:) so concurrent sessions see each other's commits.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'blocks.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
def block_repo(session_factory) -> BlockRepository:
    """Block store over the test database."""
    return BlockRepository(session_factory)


@pytest.fixture
def platform() -> FakeUserPlatform:
    """Fake user platform seeded with a handful of profiles."""
    return FakeUserPlatform({user_id: make_profile(user_id) for user_id in USER_IDS})


@pytest.fixture
def block_service(block_repo, platform) -> BlockService:
    """Block service wired to the test store and fake platform."""
    return BlockService(block_repo, profiles=platform, follow_graph=platform)


def make_token(user_id: str, claim: str = "sub") -> str:
    return jwt.encode({claim: user_id}, settings.jwt_secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a given user id."""
    def _headers(user_id: str = "alice") -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}
    return _headers


@pytest.fixture(scope="function")
async def client(block_repo, platform) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with dependency overrides."""
    app.dependency_overrides[get_block_store] = lambda: block_repo
    app.dependency_overrides[get_user_platform] = lambda: platform
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    app.dependency_overrides.clear()
    limiter.enabled = True

