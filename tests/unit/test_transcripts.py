from __future__ import annotations

import asyncio

import pytest

from audio_extract.services.transcripts import TranscriptionService, TranscriptStore


def test_sync_transcriber_runs_and_stores_stripped_text():
    async def scenario():
        service = TranscriptionService(lambda uri: f"  heard {len(uri)}  ")
        text = await service.request("row-1", "data:audio/mp3;base64,AAAA")
        return service, text

    service, text = asyncio.run(scenario())
    assert text == "heard 26"
    assert service.store.get("row-1") == "heard 26"
    assert service.pending() == []


def test_async_transcriber_is_awaited():
    async def transcribe(uri: str) -> str:
        await asyncio.sleep(0)
        return "ola"

    async def scenario():
        service = TranscriptionService(transcribe)
        service.request("r", "data:audio/mp3;base64,AAAA")
        await service.wait_all()
        return service.store

    store = asyncio.run(scenario())
    assert store.as_dict() == {"r": "ola"}


def test_repeat_request_cancels_pending_task():
    started: list[str] = []

    async def transcribe(uri: str) -> str:
        started.append(uri)
        await asyncio.sleep(0.05 if uri == "first" else 0)
        return uri

    async def scenario():
        service = TranscriptionService(transcribe)
        first = service.request("r", "first")
        await asyncio.sleep(0)
        second = service.request("r", "second")
        await service.wait_all()
        return service, first, second

    service, first, second = asyncio.run(scenario())
    assert first.cancelled()
    assert second.result() == "second"
    assert service.store.get("r") == "second"


def test_failure_is_swallowed_and_nothing_stored():
    def transcribe(uri: str) -> str:
        raise RuntimeError("microphone unavailable")

    async def scenario():
        service = TranscriptionService(transcribe)
        result = await service.request("r", "data:audio/mp3;base64,AAAA")
        return service, result

    service, result = asyncio.run(scenario())
    assert result is None
    assert "r" not in service.store
    assert service.pending() == []


def test_independent_rows_run_side_by_side():
    async def transcribe(uri: str) -> str:
        await asyncio.sleep(0)
        return uri.upper()

    async def scenario():
        store = TranscriptStore()
        service = TranscriptionService(transcribe, store)
        service.request("a", "x")
        service.request("b", "y")
        assert sorted(service.pending()) == ["a", "b"]
        await service.wait_all()
        return store

    store = asyncio.run(scenario())
    assert store.as_dict() == {"a": "X", "b": "Y"}
    assert len(store) == 2


def test_cancel_unknown_row_returns_false():
    service = TranscriptionService(lambda uri: "")
    assert service.cancel("missing") is False


def test_request_requires_running_loop():
    service = TranscriptionService(lambda uri: "")
    with pytest.raises(RuntimeError):
        service.request("r", "uri")


def test_store_replaces_existing_entry():
    store = TranscriptStore()
    store.record("r", "one")
    store.record("r", "two")
    assert store.get("r") == "two"
    assert store.get("other") is None
