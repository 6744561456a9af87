"""Property-based tests for the transcript log and document change fan-out.

**Property: Append order is storage order**
**Property: Completion triggers summary generation once**
**Property: Subscribers see every change until they unsubscribe**
"""
import asyncio

import pytest
from hypothesis import given, settings, strategies as st

from conftest import make_ai_mock, make_fake_redis
from models.transcript import TranscriptSegment
from services.document_store import DocumentStore
from services.summary_service import SummaryService
from services.transcript_service import TranscriptService
from utils.errors import PersistenceFailure

segment_text = st.text(min_size=1, max_size=40).filter(lambda s: s.strip())


def make_services():
    store = DocumentStore(make_fake_redis())
    ai = make_ai_mock()
    return store, ai, TranscriptService(store, SummaryService(store, ai))


def segment(text: str) -> TranscriptSegment:
    return TranscriptSegment(text=text, timestamp="2024-05-01T10:00:00.000Z")


async def wait_for(predicate, timeout: float = 3.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


@pytest.mark.asyncio
@settings(max_examples=30, deadline=None)
@given(batches=st.lists(st.lists(segment_text, min_size=1, max_size=4), min_size=1, max_size=6))
async def test_append_order_is_storage_order(batches):
    """
    For any sequence of appended batches, the stored transcript is their
    concatenation in call order, with no deduplication.
    """
    _, _, transcripts = make_services()
    meeting_id = "evt-order-123"

    for batch in batches:
        await transcripts.append_segments(meeting_id, [segment(text) for text in batch])

    stored = await transcripts.get_transcript(meeting_id)
    assert [s.text for s in stored] == [text for batch in batches for text in batch]


@pytest.mark.asyncio
async def test_three_appends_keep_order():
    _, _, transcripts = make_services()

    for text in ["A", "B", "C"]:
        await transcripts.append_segments("evt-abc-123", [segment(text)])

    assert [s.text for s in await transcripts.get_transcript("evt-abc-123")] == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_duplicates_are_kept():
    _, _, transcripts = make_services()

    await transcripts.append_segments("evt-dup-123", [segment("same")])
    await transcripts.append_segments("evt-dup-123", [segment("same")])

    assert len(await transcripts.get_transcript("evt-dup-123")) == 2


@pytest.mark.asyncio
async def test_short_meeting_id_is_skipped():
    store, _, transcripts = make_services()

    result = await transcripts.append_segments("abc", [segment("ignored")])

    assert result == []
    assert await store.get("transcripts", "abc") is None
    assert await transcripts.subscribe("abc", lambda segments: None) is None


@pytest.mark.asyncio
async def test_completion_generates_summary_once():
    _, ai, transcripts = make_services()
    meeting_id = "evt-complete-1"

    await transcripts.append_segments(meeting_id, [segment("We ship Monday")])
    await transcripts.mark_complete(meeting_id)
    await transcripts.mark_complete(meeting_id)

    document = await transcripts.get_document(meeting_id)
    assert document.is_complete is True
    assert [s.text for s in document.transcript] == ["We ship Monday"]
    assert ai.generate_meeting_summary.await_count == 1


@pytest.mark.asyncio
async def test_summary_failure_does_not_fail_append():
    _, ai, transcripts = make_services()
    ai.generate_meeting_summary.side_effect = RuntimeError("model down")

    stored = await transcripts.append_segments("evt-fail-123", [segment("hello")], is_complete=True)

    assert [s.text for s in stored] == ["hello"]


@pytest.mark.asyncio
async def test_store_failure_surfaces_as_persistence_failure():
    store, _, transcripts = make_services()

    async def broken_get(collection, doc_id):
        raise PersistenceFailure("Failed to read document")

    store.get = broken_get

    with pytest.raises(PersistenceFailure) as exc_info:
        await transcripts.append_segments("evt-broken-1", [segment("hello")])

    assert exc_info.value.message == "Failed to save transcript"


@pytest.mark.asyncio
async def test_subscriber_receives_full_list_until_unsubscribed():
    _, _, transcripts = make_services()
    meeting_id = "evt-live-123"
    deliveries = []

    subscription = await transcripts.subscribe(meeting_id, deliveries.append)
    assert deliveries == [[]]

    await transcripts.append_segments(meeting_id, [segment("first")])
    await wait_for(lambda: len(deliveries) >= 2)
    assert [s.text for s in deliveries[-1]] == ["first"]

    await transcripts.append_segments(meeting_id, [segment("second")])
    await wait_for(lambda: [s.text for s in deliveries[-1]] == ["first", "second"])

    await subscription.unsubscribe()
    count = len(deliveries)
    await transcripts.append_segments(meeting_id, [segment("third")])
    await asyncio.sleep(0.2)

    assert len(deliveries) == count
    assert subscription.active is False


@pytest.mark.asyncio
async def test_watch_reports_deletion_as_none():
    store = DocumentStore(make_fake_redis())
    seen = []

    await store.set("notes", "evt-watch-1", {"meeting_id": "evt-watch-1"})
    subscription = await store.watch("notes", "evt-watch-1", seen.append)
    await store.delete("notes", "evt-watch-1")
    await wait_for(lambda: len(seen) >= 2)
    await subscription.unsubscribe()
    await subscription.unsubscribe()

    assert seen[0] == {"meeting_id": "evt-watch-1"}
    assert seen[-1] is None
