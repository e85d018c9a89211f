"""GameSession tests against the in-memory document store and a fake backend."""
import asyncio

import pytest

from adventure_client.api_client import BackendAPIError
from adventure_client.models import CurrentState, MessageType, NarrativeResponse, SummaryResponse
from adventure_client.services.session import (
    ERROR_MESSAGE,
    WELCOME_MESSAGE,
    GameSession,
    SessionBusyError,
)
from adventure_client.services.store import InMemoryDocumentStore
from adventure_client.services.summarization import PersistenceFailure

from conftest import make_state


def _session(store, backend, settings, game_id="game_test"):
    return GameSession(game_id, "player_test", store=store, backend=backend, settings=settings)


def _seed(store, count, **kwargs):
    state = make_state(count, **kwargs)
    store.set(state.game_id, state.to_document())
    return state


@pytest.mark.asyncio
async def test_start_creates_new_game(backend, settings):
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings)

    state = await session.start()

    assert session.is_connected is True
    assert state.current_state.stats.health == 100
    assert state.current_state.stats.mana == 50
    assert [m.content for m in state.message_history] == [WELCOME_MESSAGE]
    assert state.message_history[0].type == MessageType.SYSTEM
    assert store.get("game_test")["gameId"] == "game_test"
    await session.close()


@pytest.mark.asyncio
async def test_start_loads_existing_game(backend, settings):
    store = InMemoryDocumentStore()
    _seed(store, 4)
    session = _session(store, backend, settings)

    state = await session.start()

    assert len(state.message_history) == 4
    assert session.summary_status.messages_since_last_summary == 4
    await session.close()


@pytest.mark.asyncio
async def test_add_message_persists_and_mirrors(backend, settings):
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings)
    await session.start()

    message = await session.add_message(MessageType.USER, "open the door")

    stored = store.get("game_test")
    assert stored["messageHistory"][-1]["content"] == "open the door"
    assert stored["lastSaved"] is not None
    assert session.state.message_history[-1] == message
    backend.save_game_state.assert_awaited()
    await session.close()


@pytest.mark.asyncio
async def test_thirtieth_message_triggers_consolidation(backend, settings):
    store = InMemoryDocumentStore()
    _seed(store, 29)
    session = _session(store, backend, settings)
    await session.start()

    await session.add_message(MessageType.USER, "one more step")
    await session.scheduler.drain()

    summaries = session.state.summaries
    assert len(summaries) == 1
    assert (summaries[0].message_range.start, summaries[0].message_range.end) == (0, 30)
    assert store.get("game_test")["summaries"][0]["messageRange"]["end"] == 30
    await session.close()


@pytest.mark.asyncio
async def test_send_player_message_plays_a_turn(backend, settings):
    backend.send_message.return_value = NarrativeResponse(
        content="A lantern flickers.",
        game_state=CurrentState(scene="Lantern-lit hall", location="Old Inn", inventory=["lantern"]),
    )
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings)
    await session.start()

    reply = await session.send_player_message("look around")

    assert reply.type == MessageType.AI
    assert reply.content == "A lantern flickers."
    assert [m.type for m in session.state.message_history][-2:] == [MessageType.USER, MessageType.AI]
    assert session.state.current_state.location == "Old Inn"
    assert session.state.current_state.inventory == ["lantern"]
    assert session.is_processing is False
    game_id, text, context = backend.send_message.await_args.args
    assert (game_id, text) == ("game_test", "look around")
    assert context.location == "Mysterious Crossroads"
    await session.close()


@pytest.mark.asyncio
async def test_failed_turn_records_notice_and_reraises(backend, settings):
    backend.send_message.side_effect = BackendAPIError("narrator offline", status_code=503)
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings)
    await session.start()

    with pytest.raises(BackendAPIError):
        await session.send_player_message("attack")

    last = session.state.message_history[-1]
    assert last.type == MessageType.SYSTEM
    assert last.content == ERROR_MESSAGE
    assert session.is_processing is False
    await session.close()


@pytest.mark.asyncio
async def test_concurrent_turn_is_rejected(backend, settings):
    session = _session(InMemoryDocumentStore(), backend, settings)
    await session.start()
    session._is_processing = True

    with pytest.raises(SessionBusyError):
        await session.send_player_message("hello")
    await session.close()


@pytest.mark.asyncio
async def test_save_failure_keeps_local_state(backend, settings):
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings)
    await session.start()
    before = session.state
    backend.save_game_state.side_effect = BackendAPIError("down")

    with pytest.raises(PersistenceFailure):
        await session.add_message(MessageType.USER, "lost words")

    assert session.state is before
    assert len(store.get("game_test")["messageHistory"]) == 1
    await session.close()


@pytest.mark.asyncio
async def test_manual_summary_with_few_messages(backend, settings):
    store = InMemoryDocumentStore()
    _seed(store, 2)
    session = _session(store, backend, settings)
    await session.start()

    outcome = await session.generate_summary()

    assert outcome.status == "completed"
    assert (outcome.summary.message_range.start, outcome.summary.message_range.end) == (0, 2)
    assert len(session.state.summaries) == 1
    await session.close()


@pytest.mark.asyncio
async def test_cleanup_old_messages_is_idempotent(backend, settings):
    store = InMemoryDocumentStore()
    _seed(store, 30)
    session = _session(store, backend, settings)
    await session.start()
    await session.generate_summary()
    await session.add_message(MessageType.USER, "after the summary")
    await session.scheduler.drain()

    removed = await session.cleanup_old_messages()
    history_once = session.state.message_history
    removed_again = await session.cleanup_old_messages()

    assert removed == 30
    assert removed_again == 0
    assert session.state.message_history == history_once
    assert [m.content for m in history_once] == ["after the summary"]
    assert session.state.pruned_count == 30
    assert session.stats().total_messages == 31
    await session.close()


@pytest.mark.asyncio
async def test_cleanup_without_summaries_does_nothing(backend, settings):
    store = InMemoryDocumentStore()
    _seed(store, 3)
    session = _session(store, backend, settings)
    await session.start()

    assert await session.cleanup_old_messages() == 0
    assert len(session.state.message_history) == 3
    await session.close()


@pytest.mark.asyncio
async def test_remote_changes_follow_until_closed(backend, settings):
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings)
    await session.start()

    store.set("game_test", {"currentState": {"location": "Harbor"}}, merge=True)
    assert session.state.current_state.location == "Harbor"

    await session.close()
    assert store.listener_count("game_test") == 0
    store.set("game_test", {"currentState": {"location": "Sea"}}, merge=True)
    assert session.state.current_state.location == "Harbor"
    assert session.is_connected is False


@pytest.mark.asyncio
async def test_background_summary_survives_overlapping_turn(backend, settings):
    mirrored = []

    async def slow_save(game_id, document):
        await asyncio.sleep(0.02)
        mirrored.append(document)
        return {"ok": True}

    async def narrate(game_id, message, context):
        await asyncio.sleep(0.005)
        return NarrativeResponse(content="The path forks.")

    async def summarize(game_id, messages, game_state):
        await asyncio.sleep(0.001)
        return SummaryResponse(summary="The hero walked on.")

    backend.save_game_state.side_effect = slow_save
    backend.send_message.side_effect = narrate
    backend.generate_summary.side_effect = summarize
    store = InMemoryDocumentStore()
    _seed(store, 29)
    session = _session(store, backend, settings)
    await session.start()

    await session.send_player_message("step")
    await session.scheduler.drain()

    stored = store.get("game_test")
    last_mirror = mirrored[-1]
    assert (len(stored["messageHistory"]), len(stored["summaries"])) == (31, 1)
    assert (len(last_mirror["messageHistory"]), len(last_mirror["summaries"])) == (31, 1)
    await session.close()


@pytest.mark.asyncio
async def test_missing_local_game_is_restored_from_backend(backend, settings):
    remote = make_state(6, game_id="game_remote")
    backend.load_game_state.return_value = remote.to_document()
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings, game_id="game_remote")

    state = await session.start()

    backend.load_game_state.assert_awaited_once_with("game_remote")
    assert [m.id for m in state.message_history] == [f"m{i}" for i in range(6)]
    assert len(store.get("game_remote")["messageHistory"]) == 6
    await session.close()


@pytest.mark.asyncio
async def test_unknown_backend_game_starts_fresh(backend, settings):
    backend.load_game_state.side_effect = BackendAPIError("not found", status_code=404)
    store = InMemoryDocumentStore()
    session = _session(store, backend, settings)

    state = await session.start()

    assert [m.content for m in state.message_history] == [WELCOME_MESSAGE]
    await session.close()


@pytest.mark.asyncio
async def test_local_game_skips_backend_load(backend, settings):
    store = InMemoryDocumentStore()
    _seed(store, 3)
    session = _session(store, backend, settings)

    await session.start()

    backend.load_game_state.assert_not_awaited()
    await session.close()
