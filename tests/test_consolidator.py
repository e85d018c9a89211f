"""Tests for HistoryConsolidator: ranges, mutual exclusion and failure paths."""
import asyncio

import pytest

from adventure_client.api_client import BackendAPIError
from adventure_client.models import GameState, SummaryResponse
from adventure_client.services.store import DocumentStoreError
from adventure_client.services.summarization import (
    HistoryConsolidator,
    PersistenceFailure,
    RemoteSummarizationFailure,
)

from conftest import make_history, make_state


class RecordingPersister:
    """Applies updates to the latest snapshot, like a session would."""

    def __init__(self, state: GameState, error: Exception = None):
        self.state = state
        self.error = error
        self.calls = []

    async def __call__(self, game_id, update):
        self.calls.append((game_id, update))
        if self.error is not None:
            raise self.error
        self.state = self.state.merge_document(update)
        return self.state


def _consolidator(backend, persister, settings):
    return HistoryConsolidator(backend, persister, settings=settings)


@pytest.mark.asyncio
async def test_message_count_threshold_produces_first_summary(backend, settings):
    state = make_state(30)
    persister = RecordingPersister(state)
    consolidator = _consolidator(backend, persister, settings)

    outcome = await consolidator.consolidate(state)

    assert outcome.status == "completed"
    assert outcome.summary.message_range.start == 0
    assert outcome.summary.message_range.end == 30
    assert outcome.summary.tokens_saved == 75
    assert outcome.summary.content == "The hero wandered the mists."
    assert len(outcome.state.summaries) == 1
    game_id, messages, current = backend.generate_summary.await_args.args
    assert game_id == "game_test"
    assert len(messages) == 30
    assert current == state.current_state
    assert persister.calls[0][1]["summaries"][0]["messageRange"] == {"start": 0, "end": 30}


@pytest.mark.asyncio
async def test_forced_consolidation_with_two_messages(backend, settings):
    state = make_state(2)
    consolidator = _consolidator(backend, RecordingPersister(state), settings)

    outcome = await consolidator.consolidate(state, force=True)

    assert outcome.status == "completed"
    assert outcome.summary.message_range.start == 0
    assert outcome.summary.message_range.end == 2


@pytest.mark.asyncio
async def test_below_threshold_is_a_noop(backend, settings):
    state = make_state(2)
    persister = RecordingPersister(state)
    consolidator = _consolidator(backend, persister, settings)

    outcome = await consolidator.consolidate(state)

    assert outcome.status == "skipped"
    assert outcome.reason == "below_threshold"
    backend.generate_summary.assert_not_awaited()
    assert persister.calls == []


@pytest.mark.asyncio
async def test_empty_slice_is_a_noop_even_when_forced(backend, settings):
    state = make_state(30)
    persister = RecordingPersister(state)
    consolidator = _consolidator(backend, persister, settings)
    first = await consolidator.consolidate(state)

    outcome = await consolidator.consolidate(first.state, force=True)

    assert outcome.status == "skipped"
    assert outcome.reason == "no_new_messages"
    assert backend.generate_summary.await_count == 1


@pytest.mark.asyncio
async def test_consecutive_summaries_do_not_overlap(backend, settings):
    state = make_state(30)
    persister = RecordingPersister(state)
    consolidator = _consolidator(backend, persister, settings)
    first = await consolidator.consolidate(state)

    grown = first.state.evolve(message_history=make_history(60))
    second = await consolidator.consolidate(grown)

    assert second.status == "completed"
    ranges = [s.message_range for s in second.state.summaries]
    assert [(r.start, r.end) for r in ranges] == [(0, 30), (30, 60)]
    _, messages, _ = backend.generate_summary.await_args.args
    assert [m.id for m in messages] == [f"m{i}" for i in range(30, 60)]


@pytest.mark.asyncio
async def test_remote_failure_leaves_summaries_unchanged(backend, settings):
    backend.generate_summary.side_effect = BackendAPIError("boom", status_code=500)
    state = make_state(30)
    persister = RecordingPersister(state)
    consolidator = _consolidator(backend, persister, settings)

    outcome = await consolidator.consolidate(state)

    assert outcome.status == "failed"
    assert isinstance(outcome.error, RemoteSummarizationFailure)
    assert isinstance(outcome.error.__cause__, BackendAPIError)
    assert consolidator.is_generating is False
    assert consolidator.status.progress == 0
    assert persister.calls == []
    assert persister.state.summaries == []


@pytest.mark.asyncio
async def test_empty_summary_text_counts_as_remote_failure(backend, settings):
    backend.generate_summary.return_value = SummaryResponse(summary="   ")
    state = make_state(30)
    consolidator = _consolidator(backend, RecordingPersister(state), settings)

    outcome = await consolidator.consolidate(state)

    assert outcome.status == "failed"
    assert isinstance(outcome.error, RemoteSummarizationFailure)


@pytest.mark.asyncio
async def test_persistence_failure_is_reported(backend, settings):
    state = make_state(30)
    persister = RecordingPersister(state, error=DocumentStoreError("disk full"))
    consolidator = _consolidator(backend, persister, settings)

    outcome = await consolidator.consolidate(state)

    assert outcome.status == "failed"
    assert isinstance(outcome.error, PersistenceFailure)
    assert consolidator.is_generating is False
    assert persister.state.summaries == []


@pytest.mark.asyncio
async def test_retry_after_failure_succeeds(backend, settings):
    backend.generate_summary.side_effect = [BackendAPIError("boom"), SummaryResponse(summary="Recovered.")]
    state = make_state(30)
    consolidator = _consolidator(backend, RecordingPersister(state), settings)

    failed = await consolidator.consolidate(state)
    retried = await consolidator.consolidate(state, force=True)

    assert failed.status == "failed"
    assert retried.status == "completed"
    assert retried.summary.message_range.end == 30


@pytest.mark.asyncio
async def test_second_request_while_generating_is_a_noop(backend, settings):
    release = asyncio.Event()

    async def slow_summary(*args):
        await release.wait()
        return SummaryResponse(summary="Slow but sure.")

    backend.generate_summary.side_effect = slow_summary
    state = make_state(30)
    consolidator = _consolidator(backend, RecordingPersister(state), settings)

    first = asyncio.create_task(consolidator.consolidate(state))
    while not consolidator.is_generating:
        await asyncio.sleep(0)

    second = await consolidator.consolidate(state, force=True)
    assert second.status == "skipped"
    assert second.reason == "in_progress"
    assert consolidator.should_consolidate(state, force=True) is False

    release.set()
    outcome = await first
    assert outcome.status == "completed"
    assert backend.generate_summary.await_count == 1


@pytest.mark.asyncio
async def test_status_progress_and_reset(backend, settings):
    state = make_state(30)
    consolidator = _consolidator(backend, RecordingPersister(state), settings)

    await consolidator.consolidate(state)

    status = consolidator.status
    assert status.is_generating is False
    assert status.progress == 100
    assert status.last_summary_at is not None
    assert status.messages_since_last_summary == 0

    await asyncio.sleep(0.05)
    assert consolidator.status.progress == 0


@pytest.mark.asyncio
async def test_on_history_changed_triggers_only_on_threshold(backend, settings):
    consolidator = _consolidator(backend, RecordingPersister(make_state(30)), settings)

    skipped = await consolidator.on_history_changed(make_state(29))
    assert skipped.status == "skipped"
    assert consolidator.status.messages_since_last_summary == 29

    completed = await consolidator.on_history_changed(make_state(30))
    assert completed.status == "completed"


@pytest.mark.asyncio
async def test_slice_starts_after_pruned_messages(backend, settings):
    state = make_state(30)
    persister = RecordingPersister(state)
    consolidator = _consolidator(backend, persister, settings)
    first = await consolidator.consolidate(state)

    pruned = first.state.evolve(message_history=make_history(30, start=30), pruned_count=30)
    second = await consolidator.consolidate(pruned)

    assert (second.summary.message_range.start, second.summary.message_range.end) == (30, 60)
    _, messages, _ = backend.generate_summary.await_args.args
    assert messages[0].id == "m30"
