"""Tests for storage layer."""

import os

import pytest

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reelswipe.storage import (
    DEV_USER_ID,
    Base,
    EventsRepo,
    FavoritesRepo,
    FriendRequestError,
    FriendsRepo,
    MoviesRepo,
    ReactionsRepo,
    UsersRepo,
    WatchedRepo,
)

TEST_DB = "./test_reelswipe_storage.db"


@pytest.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{TEST_DB}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()

    # Cleanup test database file
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)


@pytest.fixture
async def session(engine):
    """Create test database session."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(session):
    return await UsersRepo(session).upsert_google_user("g-1", "ana@example.com", "Ana", None)


async def add_movie(session, tmdb_id, title=None, **data):
    await MoviesRepo(session).upsert_movie(tmdb_id, {"title": title or f"Movie {tmdb_id}", **data})


@pytest.mark.anyio
async def test_google_user_upsert(session):
    """Signing in twice with one Google account refreshes the same user."""
    users_repo = UsersRepo(session)

    user = await users_repo.upsert_google_user("g-1", "ana@example.com", "Ana", None)
    again = await users_repo.upsert_google_user("g-1", "ana@new.example.com", "Ana B", "pic")

    assert again.user_id == user.user_id
    assert again.email == "ana@new.example.com"
    assert again.display_name == "Ana B"


@pytest.mark.anyio
async def test_dev_user_is_stable(session):
    users_repo = UsersRepo(session)

    first = await users_repo.get_or_create_dev_user()
    second = await users_repo.get_or_create_dev_user()

    assert first.user_id == second.user_id == DEV_USER_ID


@pytest.mark.anyio
async def test_preferences_merge(session, user):
    users_repo = UsersRepo(session)

    assert await users_repo.get_preferences(user.user_id) == {}
    await users_repo.update_preferences(user.user_id, {"humorLevel": 3, "language": "French"})
    merged = await users_repo.update_preferences(user.user_id, {"humorLevel": 8})

    assert merged == {"humorLevel": 8, "language": "French"}
    assert await users_repo.get_preferences(user.user_id) == merged


@pytest.mark.anyio
async def test_search_users(session, user):
    users_repo = UsersRepo(session)
    await users_repo.upsert_google_user("g-2", "bob@example.com", "Bob", None)

    found = await users_repo.search_users("BOB")
    assert [u.display_name for u in found] == ["Bob"]

    found = await users_repo.search_users("example", exclude_user_id=user.user_id)
    assert [u.display_name for u in found] == ["Bob"]


@pytest.mark.anyio
async def test_movie_upsert_keeps_richer_data(session):
    movies_repo = MoviesRepo(session)
    await movies_repo.upsert_movie(1, {"title": "Alien", "genres": ["Horror"], "director": "Ridley Scott"})
    await movies_repo.upsert_movie(1, {"title": "Alien", "genres": [], "poster_path": "/a.jpg"})

    movie = await movies_repo.get_movie(1)
    assert movie.genres_json == '["Horror"]'
    assert movie.director == "Ridley Scott"
    assert movie.poster_path == "/a.jpg"


@pytest.mark.anyio
async def test_reaction_is_exclusive(session, user):
    """A movie is never both liked and disliked."""
    reactions_repo = ReactionsRepo(session)
    await add_movie(session, 1)

    assert await reactions_repo.set_reaction(user.user_id, 1, "liked") is None
    assert await reactions_repo.set_reaction(user.user_id, 1, "disliked") == "liked"

    assert await reactions_repo.count_reactions(user.user_id, "liked") == 0
    assert await reactions_repo.count_reactions(user.user_id, "disliked") == 1


@pytest.mark.anyio
async def test_favorite_creates_like(session, user):
    favorites_repo = FavoritesRepo(session)
    await add_movie(session, 2)

    assert await favorites_repo.add_favorite(user.user_id, 2) is True
    assert await favorites_repo.add_favorite(user.user_id, 2) is False

    assert await ReactionsRepo(session).get_reaction(user.user_id, 2) == "liked"
    assert await favorites_repo.is_favorited(user.user_id, 2)


@pytest.mark.anyio
async def test_move_to_disliked_drops_favorite(session, user):
    favorites_repo = FavoritesRepo(session)
    reactions_repo = ReactionsRepo(session)
    await add_movie(session, 5)
    await favorites_repo.add_favorite(user.user_id, 5)

    assert await reactions_repo.move(user.user_id, 5, "disliked") is True
    assert await reactions_repo.move(user.user_id, 5, "disliked") is False

    assert not await favorites_repo.is_favorited(user.user_id, 5)
    assert await reactions_repo.get_reaction(user.user_id, 5) == "disliked"


@pytest.mark.anyio
async def test_remove_and_clear_liked_cascade_favorites(session, user):
    favorites_repo = FavoritesRepo(session)
    reactions_repo = ReactionsRepo(session)
    for tmdb_id in (1, 2, 3):
        await add_movie(session, tmdb_id)
        await favorites_repo.add_favorite(user.user_id, tmdb_id)

    assert await reactions_repo.remove_reaction(user.user_id, 1, "liked") is True
    assert await reactions_repo.remove_reaction(user.user_id, 1, "liked") is False
    assert not await favorites_repo.is_favorited(user.user_id, 1)

    assert await reactions_repo.clear_reactions(user.user_id, "liked") == 2
    assert await favorites_repo.count_favorites(user.user_id) == 0


@pytest.mark.anyio
async def test_list_reactions_loads_movies(session, user):
    reactions_repo = ReactionsRepo(session)
    await add_movie(session, 1, "Alien")
    await add_movie(session, 2, "Heat")
    await reactions_repo.set_reaction(user.user_id, 1, "liked")
    await reactions_repo.set_reaction(user.user_id, 2, "liked")

    rows = await reactions_repo.list_reactions(user.user_id, "liked")
    assert {row.movie.title for row in rows} == {"Alien", "Heat"}


@pytest.mark.anyio
async def test_watched_ratings(session, user):
    watched_repo = WatchedRepo(session)
    await add_movie(session, 9)

    assert await watched_repo.add_watched(user.user_id, 9, 4.5) is True
    assert await watched_repo.add_watched(user.user_id, 9, 3.0) is False
    assert await watched_repo.get_rating(user.user_id, 9) == 3.0

    assert await watched_repo.update_rating(user.user_id, 9, 5.0) is True
    assert await watched_repo.update_rating(user.user_id, 10, 5.0) is False

    rows = await watched_repo.list_watched(user.user_id)
    assert [(row.tmdb_id, row.rating) for row in rows] == [(9, 5.0)]

    assert await watched_repo.remove_watched(user.user_id, 9) is True
    assert await watched_repo.get_rating(user.user_id, 9) is None


@pytest.mark.anyio
async def test_friend_request_lifecycle(session, user):
    bob = await UsersRepo(session).upsert_google_user("g-2", "bob@example.com", "Bob", None)
    friends_repo = FriendsRepo(session)

    request = await friends_repo.send_request(user.user_id, bob.user_id)
    with pytest.raises(FriendRequestError):
        await friends_repo.send_request(bob.user_id, user.user_id)
    with pytest.raises(FriendRequestError):
        await friends_repo.send_request(user.user_id, user.user_id)

    received = await friends_repo.list_received(bob.user_id)
    assert [r.from_user.display_name for r in received] == ["Ana"]

    # Only the recipient can accept
    assert await friends_repo.accept(request.request_id, user.user_id) is False
    assert await friends_repo.accept(request.request_id, bob.user_id) is True

    friends = await friends_repo.list_friends(user.user_id)
    assert [f.user_id for f in friends] == [bob.user_id]
    with pytest.raises(FriendRequestError):
        await friends_repo.send_request(user.user_id, bob.user_id)

    assert await friends_repo.remove_friend(bob.user_id, user.user_id) is True
    assert await friends_repo.list_friends(user.user_id) == []


@pytest.mark.anyio
async def test_cancel_request(session, user):
    bob = await UsersRepo(session).upsert_google_user("g-2", "bob@example.com", "Bob", None)
    friends_repo = FriendsRepo(session)
    request = await friends_repo.send_request(user.user_id, bob.user_id)

    assert await friends_repo.cancel(request.request_id, bob.user_id) is False
    assert await friends_repo.cancel(request.request_id, user.user_id) is True
    assert await friends_repo.list_sent(user.user_id) == []


@pytest.mark.anyio
async def test_event_logging(session, user):
    events_repo = EventsRepo(session)

    await events_repo.log_event("like", user_id=user.user_id, tmdb_id=1)
    await events_repo.log_event("share", user_id=user.user_id, payload={"recipient": "x@y.z"})

    assert await events_repo.count_events(user_id=user.user_id) == 2
    events = await events_repo.list_events(event_name="share")
    assert events[0].payload_json == '{"recipient":"x@y.z"}'
