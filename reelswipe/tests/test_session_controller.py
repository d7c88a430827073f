"""End-to-end tests for the session controller against a mocked API client."""

import asyncio

from unittest.mock import AsyncMock

import pytest

from reelswipe.client.api_client import ApiClient, ApiError, ServiceUnavailableError
from reelswipe.core.contracts import (
    AUTOSAVE_DEBOUNCE,
    BUSY_WINDOW,
    COMMIT_ANIMATION,
    Decision,
    Identity,
    MovieCard,
    SwipeDirection,
)
from reelswipe.core.session import MovieCache, SessionController


@pytest.fixture
def api():
    api = AsyncMock(spec=ApiClient)
    api.who_am_i.return_value = Identity(user_id="u1", display_name="Ana")
    api.load_preferences.return_value = {"description": "space horror"}
    api.list_liked.return_value = []
    api.list_disliked.return_value = []
    api.list_favorites.return_value = []
    api.list_watched.return_value = []
    return api


@pytest.fixture
def controller(api, scheduler):
    return SessionController(api, scheduler=scheduler, result_count=2)


def swipe(controller, scheduler, dx, dy=0.0):
    controller.pointer_down(0, 0)
    controller.pointer_move(dx, dy)
    direction = controller.pointer_up()
    scheduler.advance(COMMIT_ANIMATION)
    return direction


@pytest.mark.anyio
async def test_restore_loads_identity_and_preferences(controller, api):
    identity = await controller.restore()

    assert identity.user_id == "u1"
    assert controller.autosave.loaded
    assert controller.autosave.preferences.description == "space horror"
    api.list_liked.assert_awaited_once()


@pytest.mark.anyio
async def test_restore_signed_out(controller, api):
    api.who_am_i.return_value = None

    assert await controller.restore() is None
    api.load_preferences.assert_not_called()


@pytest.mark.anyio
async def test_like_then_dislike_scenario(controller, api, scheduler, cards):
    api.search.return_value = cards[:2]
    await controller.restore()
    assert await controller.start_search() is True
    assert controller.view == "swiping"

    assert swipe(controller, scheduler, 150) == SwipeDirection.RIGHT
    scheduler.advance(BUSY_WINDOW)
    assert swipe(controller, scheduler, -150) == SwipeDirection.LEFT
    await controller.drain()

    sessions = controller.dispatcher.sessions
    assert sessions.liked == {1}
    assert sessions.disliked == {2}
    assert controller.view == "summary"
    api.like.assert_awaited_once_with(cards[0])
    api.dislike.assert_awaited_once_with(cards[1])

    summary = controller.summary()
    assert summary.ids("liked") == [1]
    assert summary.ids("disliked") == [2]


@pytest.mark.anyio
async def test_release_commits_once_despite_later_moves(controller, api, scheduler, cards):
    api.search.return_value = cards
    await controller.restore()
    await controller.start_search()

    controller.pointer_down(0, 0)
    controller.pointer_move(150, 0)
    assert controller.pointer_up() == SwipeDirection.RIGHT
    controller.pointer_move(400, 0)
    assert controller.pointer_up() is None
    scheduler.advance(COMMIT_ANIMATION)
    await controller.drain()

    api.like.assert_awaited_once_with(cards[0])
    assert controller.queue.cursor == 1


@pytest.mark.anyio
async def test_double_click_like_issues_one_mutation(controller, api, scheduler, cards):
    api.search.return_value = cards
    await controller.restore()
    await controller.start_search()

    assert controller.press_like() is True
    assert controller.press_like() is False
    scheduler.advance(COMMIT_ANIMATION)
    await controller.drain()

    assert api.like.await_count == 1


@pytest.mark.anyio
async def test_watch_flow_uses_rating(controller, api, scheduler, cards):
    api.search.return_value = cards
    await controller.restore()
    await controller.start_search()

    assert controller.press_watch() is True
    assert controller.awaiting_rating
    with pytest.raises(ValueError):
        controller.submit_rating(7)

    assert controller.submit_rating(4.5, Decision.LIKE) is True
    scheduler.advance(COMMIT_ANIMATION)
    await controller.drain()

    api.add_watched.assert_awaited_once_with(cards[0], 4.5)
    api.like.assert_awaited_once_with(cards[0])
    assert controller.current_card is cards[1]


@pytest.mark.anyio
async def test_cancelled_rating_keeps_card(controller, api, scheduler, cards):
    api.search.return_value = cards
    await controller.restore()
    await controller.start_search()

    controller.press_watch()
    assert controller.cancel_rating() is True
    scheduler.advance(COMMIT_ANIMATION)

    assert controller.current_card is cards[0]
    api.add_watched.assert_not_called()


@pytest.mark.anyio
async def test_move_favorite_to_disliked_scenario(controller, api):
    five = {"tmdbId": 5, "title": "Five"}
    api.list_liked.return_value = [five]
    api.list_favorites.return_value = [five]
    await controller.restore()
    assert controller.dispatcher.is_favorite(5)

    groups = await controller.open_collections()
    assert groups.ids("favorites") == [5]

    api.list_liked.return_value = []
    api.list_favorites.return_value = []
    api.list_disliked.return_value = [five]
    assert await controller.move_to_disliked(5) is True
    await controller.drain()

    dispatcher = controller.dispatcher
    assert not dispatcher.is_favorite(5)
    assert 5 not in dispatcher.sessions.liked
    assert 5 in dispatcher.sessions.disliked
    groups = controller.reconciler.groups()
    assert groups.ids("favorites") == []
    assert groups.ids("liked") == []
    assert groups.ids("disliked") == [5]


@pytest.mark.anyio
async def test_toggle_favorite_from_collections(controller, api):
    api.list_liked.return_value = [{"tmdbId": 8, "title": "Eight"}]
    await controller.restore()
    await controller.open_collections()

    assert controller.toggle_favorite(8) is True
    assert controller.reconciler.groups().ids("favorites") == [8]
    assert controller.toggle_favorite(999) is False
    await controller.drain()

    api.add_favorite.assert_awaited_once()


@pytest.mark.anyio
async def test_search_unavailable_sets_failure(controller, api):
    api.search.side_effect = ServiceUnavailableError()
    await controller.restore()

    assert await controller.start_search() is False
    assert controller.failure.kind == "unavailable"
    assert controller.view == "preferences"

    controller.dismiss_failure()
    assert controller.failure is None


@pytest.mark.anyio
async def test_search_error_and_empty(controller, api):
    await controller.restore()

    api.search.side_effect = ApiError("bad", status_code=500)
    assert await controller.start_search() is False
    assert controller.failure.kind == "error"

    api.search.side_effect = None
    api.search.return_value = []
    assert await controller.start_search() is False
    assert controller.failure.kind == "empty"


@pytest.mark.anyio
async def test_dev_mode_uses_random(controller, api, cards):
    api.fetch_random.return_value = cards
    await controller.restore()

    assert await controller.start_search(dev_mode=True) is True
    api.fetch_random.assert_awaited_once_with(2)
    api.search.assert_not_called()


@pytest.mark.anyio
async def test_preload_feeds_next_search(controller, api, cards):
    api.search.return_value = cards
    await controller.restore()

    await controller.preload("search")
    assert await controller.start_search() is True
    api.search.assert_awaited_once()


@pytest.mark.anyio
async def test_cancelled_preload_never_caches(controller, api, cards):
    release = asyncio.Event()

    async def slow_search(payload):
        await release.wait()
        return cards

    api.search.side_effect = slow_search
    await controller.restore()

    task = controller.preload("search")
    await asyncio.sleep(0)
    controller.cancel_preload()
    release.set()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()
    assert controller.cache.get(controller._cache_key("search")) is None


@pytest.mark.anyio
async def test_newer_preload_replaces_older(controller, api, cards):
    release = asyncio.Event()

    async def slow_random(count):
        await release.wait()
        return cards[:1]

    api.fetch_random.side_effect = slow_random
    api.search.return_value = cards
    await controller.restore()

    older = controller.preload("random")
    await asyncio.sleep(0)
    newer = controller.preload("search")
    release.set()

    await newer
    with pytest.raises(asyncio.CancelledError):
        await older
    assert controller.cache.get(controller._cache_key("random")) is None
    assert controller.cache.get(controller._cache_key("search")) == cards


@pytest.mark.anyio
async def test_view_profile_flushes_preferences(controller, api):
    api.profile.return_value = {"counts": {"liked": 0}}
    await controller.restore()
    controller.update_preferences(humor_level=9)
    api.save_preferences.assert_not_called()

    assert await controller.view_profile() == {"counts": {"liked": 0}}

    api.save_preferences.assert_awaited_once()
    assert api.save_preferences.await_args.args[0]["humorLevel"] == 9
    assert controller.view == "profile"


@pytest.mark.anyio
async def test_before_unload_flushes_preferences(controller, api, scheduler):
    await controller.restore()
    controller.set_genre_weight("Horror", 1)

    await controller.before_unload()

    api.save_preferences.assert_awaited_once()
    assert api.save_preferences.await_args.args[0]["genres"]["Horror"] == 1
    scheduler.advance(AUTOSAVE_DEBOUNCE * 2)
    await controller.drain()
    api.save_preferences.assert_awaited_once()


@pytest.mark.anyio
async def test_logout_flushes_preferences(controller, api, scheduler):
    await controller.restore()
    controller.update_preferences(humor_level=9)
    api.save_preferences.assert_not_called()

    await controller.logout()

    api.save_preferences.assert_awaited_once()
    assert api.save_preferences.await_args.args[0]["humorLevel"] == 9
    assert controller.identity is None
    scheduler.advance(AUTOSAVE_DEBOUNCE * 2)
    await controller.drain()
    api.save_preferences.assert_awaited_once()


@pytest.mark.anyio
async def test_go_home_resets_session(controller, api, scheduler, cards):
    api.search.return_value = cards
    await controller.restore()
    await controller.start_search()
    controller.press_like()

    controller.go_home()
    scheduler.advance(COMMIT_ANIMATION)
    await controller.drain()

    assert controller.view == "preferences"
    assert controller.queue is None
    api.like.assert_not_called()


@pytest.mark.anyio
async def test_share_status(controller, api, cards):
    assert await controller.share(cards[0], "friend@example.com") is True
    assert controller.share_status == "sent"

    api.share.side_effect = ServiceUnavailableError()
    assert await controller.share(cards[0], "friend@example.com") is False
    assert controller.share_status == "unavailable"


def test_movie_cache_expires(scheduler):
    cache = MovieCache(scheduler.now, ttl=30)
    card = MovieCard(tmdb_id=1, title="One")
    cache.put("k", [card])

    assert cache.get("k") == [card]
    scheduler.advance(30)
    assert cache.get("k") is None

    cache.put("k", [card])
    assert cache.take("k") == [card]
    assert cache.take("k") is None
