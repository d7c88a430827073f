"""Tests for the decision dispatcher."""

from unittest.mock import AsyncMock

import pytest

from reelswipe.client.api_client import ApiError
from reelswipe.core.contracts import BUSY_WINDOW, Decision
from reelswipe.core.dispatcher import DecisionDispatcher, SessionDecisionSets, validate_rating


@pytest.fixture
def gateway():
    return AsyncMock()


@pytest.fixture
def dispatcher(gateway, scheduler):
    return DecisionDispatcher(gateway, scheduler)


class TestValidateRating:
    @pytest.mark.parametrize("rating", [0.5, 1, 3.5, 5])
    def test_accepts_half_steps(self, rating):
        assert validate_rating(rating) == float(rating)

    @pytest.mark.parametrize("rating", [0, 5.5, 2.25, -1, True, "4"])
    def test_rejects_invalid(self, rating):
        with pytest.raises(ValueError):
            validate_rating(rating)


class TestSessionDecisionSets:
    def test_like_then_dislike_moves_card(self, cards):
        sets = SessionDecisionSets()
        sets.add_liked(cards[0])
        sets.add_disliked(cards[0])
        assert sets.liked == frozenset()
        assert sets.disliked == {1}
        assert sets.card(1) is cards[0]

    def test_repeat_add_is_noop(self, cards):
        sets = SessionDecisionSets()
        assert sets.add_liked(cards[0]) is True
        assert sets.add_liked(cards[0]) is False
        assert sets.liked_ids == [1]


@pytest.mark.anyio
async def test_like_is_optimistic_and_remote(dispatcher, gateway, cards):
    assert dispatcher.like(cards[0]) is True
    assert dispatcher.is_liked(1)

    await dispatcher.drain()
    gateway.like.assert_awaited_once_with(cards[0])


@pytest.mark.anyio
async def test_busy_window_suppresses_repeat(dispatcher, gateway, scheduler, cards):
    assert dispatcher.like(cards[0]) is True
    assert dispatcher.is_busy(1)
    assert dispatcher.dislike(cards[0]) is False
    assert dispatcher.is_liked(1)

    scheduler.advance(BUSY_WINDOW)
    assert not dispatcher.is_busy(1)
    assert dispatcher.dislike(cards[0]) is True
    assert 1 in dispatcher.sessions.disliked
    assert 1 not in dispatcher.sessions.liked

    await dispatcher.drain()
    gateway.like.assert_awaited_once()
    gateway.dislike.assert_awaited_once()


@pytest.mark.anyio
async def test_remote_failure_keeps_local_state(dispatcher, gateway, cards):
    gateway.like.side_effect = ApiError("boom", status_code=500)

    dispatcher.like(cards[0])
    await dispatcher.drain()

    assert dispatcher.is_liked(1)


@pytest.mark.anyio
async def test_dislike_drops_favorite(dispatcher, scheduler, cards):
    dispatcher.sync_persisted(liked={1}, favorites={"1"})
    dispatcher.dislike(cards[0])

    assert not dispatcher.is_favorite(1)
    assert not dispatcher.is_liked(1)
    await dispatcher.drain()


@pytest.mark.anyio
async def test_favorite_requires_like(dispatcher, gateway, scheduler, cards):
    assert dispatcher.toggle_favorite(cards[0]) is False
    assert not dispatcher.is_favorite(1)

    dispatcher.like(cards[0])
    scheduler.advance(BUSY_WINDOW)
    assert dispatcher.toggle_favorite(cards[0]) is True
    assert dispatcher.is_favorite(1)

    await dispatcher.drain()
    gateway.add_favorite.assert_awaited_once_with(cards[0])
    assert dispatcher.refresh_counter == 1


@pytest.mark.anyio
async def test_unfavorite_bumps_counter_on_success(dispatcher, gateway, cards):
    seen = []
    dispatcher.subscribe(seen.append)
    dispatcher.sync_persisted(liked={1}, favorites={"1"})

    assert dispatcher.toggle_favorite(cards[0]) is True
    assert not dispatcher.is_favorite(1)
    await dispatcher.drain()

    gateway.remove_favorite.assert_awaited_once_with(1)
    assert seen == [1]


@pytest.mark.anyio
async def test_watch_adds_then_updates(dispatcher, gateway, scheduler, cards):
    assert dispatcher.watch(cards[0], 4, preference=Decision.LIKE) is True
    assert dispatcher.watched_ratings == {1: 4.0}
    assert dispatcher.is_liked(1)

    scheduler.advance(BUSY_WINDOW)
    dispatcher.watch(cards[0], 2.5)
    await dispatcher.drain()

    gateway.add_watched.assert_awaited_once_with(cards[0], 4.0)
    gateway.update_watched_rating.assert_awaited_once_with(1, 2.5)
    gateway.like.assert_awaited_once_with(cards[0])


@pytest.mark.anyio
async def test_unwatch(dispatcher, gateway, scheduler, cards):
    dispatcher.watch(cards[0], 4)
    assert dispatcher.unwatch(1) is False
    assert dispatcher.watched_ratings == {1: 4.0}

    scheduler.advance(BUSY_WINDOW)
    assert dispatcher.unwatch(1) is True
    await dispatcher.drain()

    assert dispatcher.watched_ratings == {}
    gateway.remove_watched.assert_awaited_once_with(1)
    scheduler.advance(BUSY_WINDOW)
    assert dispatcher.unwatch(1) is False
    assert dispatcher.unwatch(2) is False
    gateway.remove_watched.assert_awaited_once()


@pytest.mark.anyio
async def test_watch_rejects_bad_rating(dispatcher, gateway, cards):
    with pytest.raises(ValueError):
        dispatcher.watch(cards[0], 0)
    assert not dispatcher.is_busy(1)
    gateway.add_watched.assert_not_called()


@pytest.mark.anyio
async def test_decide_routes_by_decision(dispatcher, gateway, cards):
    dispatcher.decide(cards[0], Decision.LIKE)
    dispatcher.decide(cards[1], Decision.DISLIKE)
    dispatcher.decide(cards[2], Decision.WATCH, rating=5)
    await dispatcher.drain()

    gateway.like.assert_awaited_once_with(cards[0])
    gateway.dislike.assert_awaited_once_with(cards[1])
    gateway.add_watched.assert_awaited_once_with(cards[2], 5.0)

    with pytest.raises(ValueError):
        dispatcher.decide(cards[0], Decision.WATCH)


@pytest.mark.anyio
async def test_move_to_disliked_drops_favorite(dispatcher, gateway, cards):
    dispatcher.sync_persisted(liked={1}, favorites={"1"})

    assert await dispatcher.move_to_disliked(1, cards[0]) is True

    gateway.move_to_disliked.assert_awaited_once_with(1)
    assert not dispatcher.is_favorite(1)
    assert not dispatcher.is_liked(1)
    assert 1 in dispatcher.persisted_disliked
    assert dispatcher.refresh_counter == 1


@pytest.mark.anyio
async def test_failed_move_resyncs(gateway, scheduler):
    resync = AsyncMock()
    dispatcher = DecisionDispatcher(gateway, scheduler, resync=resync)
    dispatcher.sync_persisted(liked={1})
    gateway.move_to_disliked.side_effect = ApiError("nope", status_code=500)

    assert await dispatcher.move_to_disliked(1) is False

    resync.assert_awaited_once()
    assert dispatcher.is_liked(1)


@pytest.mark.anyio
async def test_remove_liked_drops_favorite(dispatcher, gateway):
    dispatcher.sync_persisted(liked={1}, favorites={"1"})

    assert await dispatcher.remove(1) is True

    gateway.remove_liked.assert_awaited_once_with(1)
    gateway.remove_disliked.assert_not_called()
    assert not dispatcher.is_favorite(1)


@pytest.mark.anyio
async def test_clear_liked(dispatcher, gateway, cards):
    dispatcher.sync_persisted(liked={1, 2}, favorites={"2"})
    dispatcher.like(cards[2])

    assert await dispatcher.clear(Decision.LIKE) is True

    gateway.clear_liked.assert_awaited_once()
    assert dispatcher.sessions.liked == frozenset()
    assert dispatcher.persisted_liked == set()
    assert dispatcher.favorites == set()
    await dispatcher.drain()
