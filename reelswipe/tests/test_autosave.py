"""Tests for debounced preference auto-save."""

import asyncio

from unittest.mock import AsyncMock

import pytest

from reelswipe.client.api_client import ApiConnectionError
from reelswipe.core.autosave import PreferenceAutoSave, PreferenceLoadState
from reelswipe.core.contracts import AUTOSAVE_DEBOUNCE


@pytest.fixture
def gateway():
    gateway = AsyncMock()
    gateway.load_preferences.return_value = {"description": "slow burn", "humorLevel": 8}
    return gateway


@pytest.fixture
def autosave(gateway, scheduler):
    return PreferenceAutoSave(gateway, scheduler)


@pytest.mark.anyio
async def test_load_from_server(autosave):
    prefs = await autosave.load()

    assert autosave.state == PreferenceLoadState.LOADED_FROM_SERVER
    assert prefs.description == "slow burn"
    assert prefs.humor_level == 8
    assert prefs.violence_level == 5


@pytest.mark.anyio
async def test_load_failure_gives_defaults(autosave, gateway):
    gateway.load_preferences.side_effect = ApiConnectionError("offline")

    prefs = await autosave.load()

    assert autosave.state == PreferenceLoadState.LOADED_DEFAULTS
    assert prefs.description == ""


@pytest.mark.anyio
async def test_no_save_before_load(autosave, gateway, scheduler):
    autosave.update(description="anything")
    scheduler.advance(AUTOSAVE_DEBOUNCE * 3)

    assert await autosave.flush() is False
    await autosave.drain()
    gateway.save_preferences.assert_not_called()


@pytest.mark.anyio
async def test_debounce_coalesces_edits(autosave, gateway, scheduler):
    await autosave.load()

    autosave.update(humor_level=2)
    scheduler.advance(AUTOSAVE_DEBOUNCE / 2)
    autosave.update(romance_level=9)
    scheduler.advance(AUTOSAVE_DEBOUNCE / 2)
    gateway.save_preferences.assert_not_called()

    scheduler.advance(AUTOSAVE_DEBOUNCE / 2)
    await autosave.drain()

    gateway.save_preferences.assert_awaited_once()
    payload = gateway.save_preferences.await_args.args[0]
    assert payload["humorLevel"] == 2
    assert payload["romanceLevel"] == 9


@pytest.mark.anyio
async def test_flush_bypasses_debounce(autosave, gateway, scheduler):
    await autosave.load()
    autosave.set_genre_weight("Horror", 10)
    assert autosave.save_pending

    assert await autosave.flush() is True
    assert not autosave.save_pending
    gateway.save_preferences.assert_awaited_once()
    assert gateway.save_preferences.await_args.args[0]["genres"]["Horror"] == 10

    scheduler.advance(AUTOSAVE_DEBOUNCE * 2)
    await autosave.drain()
    gateway.save_preferences.assert_awaited_once()


@pytest.mark.anyio
async def test_slider_values_are_clamped(autosave):
    await autosave.load()
    prefs = autosave.update(mood_intensity=42, complexity_level=-3)

    assert prefs.mood_intensity == 10
    assert prefs.complexity_level == 1


@pytest.mark.anyio
async def test_unknown_field_rejected(autosave):
    await autosave.load()
    with pytest.raises(TypeError):
        autosave.update(favourite_snack="popcorn")


@pytest.mark.anyio
async def test_reset_cancels_pending_save(autosave, gateway, scheduler):
    await autosave.load()
    autosave.update(description="x")
    autosave.reset()

    scheduler.advance(AUTOSAVE_DEBOUNCE * 2)
    await autosave.drain()

    gateway.save_preferences.assert_not_called()
    assert autosave.state == PreferenceLoadState.UNLOADED


@pytest.mark.anyio
async def test_edits_during_load_wait_for_load(autosave, gateway, scheduler):
    release = asyncio.Event()

    async def slow_load():
        await release.wait()
        return {"description": "slow burn", "humorLevel": 8, "genres": {"Drama": 2}}

    gateway.load_preferences.side_effect = slow_load
    loading = asyncio.create_task(autosave.load())
    await asyncio.sleep(0)
    assert autosave.state == PreferenceLoadState.LOADING

    autosave.update(humor_level=9)
    autosave.set_genre_weight("Horror", 1)
    scheduler.advance(AUTOSAVE_DEBOUNCE * 2)
    await autosave.drain()
    gateway.save_preferences.assert_not_called()

    release.set()
    prefs = await loading

    assert autosave.state == PreferenceLoadState.LOADED_FROM_SERVER
    assert prefs.description == "slow burn"
    assert prefs.humor_level == 9
    assert prefs.genres == {"Drama": 2, "Horror": 1}

    scheduler.advance(AUTOSAVE_DEBOUNCE)
    await autosave.drain()
    gateway.save_preferences.assert_awaited_once()
    saved = gateway.save_preferences.await_args.args[0]
    assert saved["humorLevel"] == 9
    assert saved["genres"] == {"Drama": 2, "Horror": 1}
