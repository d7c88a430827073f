"""ApiClient against the in-process app."""

import os

import pytest

from httpx import ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reelswipe.api.deps import get_catalog
from reelswipe.client.api_client import ApiClient, ApiError, ServiceUnavailableError
from reelswipe.core.cards import normalize_cards
from reelswipe.core.contracts import MovieCard
from reelswipe.main import app
from reelswipe.providers.tmdb_client import TMDBError
from reelswipe.storage.db import Base, get_db_session

TEST_DB = "./test_reelswipe_client.db"

ALIEN = MovieCard(tmdb_id=348, title="Alien", genres=("Horror",), release_date="1979-05-25")


class StubCatalog:
    available = True
    error = None

    async def random(self, count):
        return [ALIEN][:count]

    async def search(self, prefs, count=None):
        if self.error:
            raise self.error
        return [ALIEN]

    async def detail(self, tmdb_id):
        return ALIEN if tmdb_id == ALIEN.tmdb_id else None


@pytest.fixture
def catalog():
    return StubCatalog()


@pytest.fixture
async def api(catalog):
    engine = create_async_engine(f"sqlite+aiosqlite:///{TEST_DB}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def test_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = test_session
    app.dependency_overrides[get_catalog] = lambda: catalog

    client = ApiClient("http://test", transport=ASGITransport(app=app))
    yield client

    await client.close()
    app.dependency_overrides.clear()
    await engine.dispose()
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)


@pytest.mark.anyio
async def test_signed_out_who_am_i(api):
    assert await api.who_am_i() is None


@pytest.mark.anyio
async def test_dev_login_keeps_cookie(api):
    identity = await api.dev_login()

    assert identity.user_id == "dev-user"
    assert (await api.who_am_i()).display_name == "Dev User"

    await api.logout()
    assert await api.who_am_i() is None


@pytest.mark.anyio
async def test_collections_round_trip(api):
    await api.dev_login()

    await api.like(ALIEN)
    await api.add_watched(ALIEN, 4.5)
    await api.update_watched_rating(ALIEN.tmdb_id, 3.5)

    liked = normalize_cards(await api.list_liked())
    assert [card.title for card in liked] == ["Alien"]
    assert liked[0].genres == ("Horror",)

    watched = await api.list_watched()
    assert watched[0]["rating"] == 3.5

    await api.move_to_disliked(ALIEN.tmdb_id)
    assert await api.list_liked() == []
    assert [entry["movieId"] for entry in await api.list_disliked()] == [348]


@pytest.mark.anyio
async def test_preferences_round_trip(api):
    await api.dev_login()
    assert await api.load_preferences() is None

    await api.save_preferences({"description": "rainy day", "humorLevel": 8})

    prefs = await api.load_preferences()
    assert prefs["description"] == "rainy day"
    assert prefs["humorLevel"] == 8


@pytest.mark.anyio
async def test_catalog_calls(api, catalog):
    assert [card.tmdb_id for card in await api.fetch_random(3)] == [348]
    assert (await api.fetch_detail(348)).title == "Alien"
    assert await api.fetch_detail(1) is None

    catalog.error = TMDBError("Server error: 500", status_code=500)
    with pytest.raises(ServiceUnavailableError):
        await api.search({"description": "anything"})


@pytest.mark.anyio
async def test_error_statuses(api):
    with pytest.raises(ApiError) as exc_info:
        await api.list_liked()
    assert exc_info.value.status_code == 401

    await api.dev_login()
    with pytest.raises(ApiError) as exc_info:
        await api.move_to_liked(999)
    assert exc_info.value.status_code == 404

    with pytest.raises(ServiceUnavailableError):
        await api.share(ALIEN.tmdb_id, "friend@example.com")
