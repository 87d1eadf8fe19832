from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Union

"""Best-effort transcription side channel.

The extractor bundles no speech engine: callers pass a transcriber, either a
plain function ``data_uri -> text`` (run in a worker thread) or an async one.
Each request is an asyncio task keyed by row id; asking again for the same row
cancels the pending task. Results land in a TranscriptStore. Failures are
logged and never reach the grouping / archive pipeline.
"""

__all__ = [
    "Transcriber",
    "TranscriptStore",
    "TranscriptionService",
]

logger = logging.getLogger(__name__)

Transcriber = Callable[[str], Union[str, Awaitable[str]]]


class TranscriptStore:
    """row id -> transcript text. Entries are added or replaced, never removed."""

    def __init__(self) -> None:
        self._texts: dict[str, str] = {}

    def record(self, row_id: str, text: str) -> None:
        self._texts[row_id] = text

    def get(self, row_id: str) -> str | None:
        return self._texts.get(row_id)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._texts

    def __len__(self) -> int:
        return len(self._texts)

    def as_dict(self) -> dict[str, str]:
        return dict(self._texts)


class TranscriptionService:
    """Schedules one cancellable transcription task per row id."""

    def __init__(self, transcriber: Transcriber, store: TranscriptStore | None = None) -> None:
        self.transcriber = transcriber
        self.store = store if store is not None else TranscriptStore()
        self._tasks: dict[str, asyncio.Task[str | None]] = {}

    def request(self, row_id: str, data_uri: str) -> asyncio.Task[str | None]:
        """Start transcribing ``data_uri`` for ``row_id`` (needs a running loop).

        A still-pending task for the same row id is cancelled first.
        """
        self.cancel(row_id)
        task = asyncio.get_running_loop().create_task(self._run(row_id, data_uri))
        self._tasks[row_id] = task
        return task

    def cancel(self, row_id: str) -> bool:
        task = self._tasks.pop(row_id, None)
        if task is None or task.done():
            return False
        logger.debug("transcription cancelled row_id=%s", row_id)
        return task.cancel()

    def pending(self) -> list[str]:
        return [row_id for row_id, task in self._tasks.items() if not task.done()]

    async def wait_all(self) -> None:
        """Wait for every scheduled task; cancelled ones are ignored."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _transcribe(self, data_uri: str) -> str:
        if inspect.iscoroutinefunction(self.transcriber):
            return await self.transcriber(data_uri)
        result = await asyncio.to_thread(self.transcriber, data_uri)
        if inspect.isawaitable(result):
            return await result
        return result

    async def _run(self, row_id: str, data_uri: str) -> str | None:
        try:
            text = await self._transcribe(data_uri)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("transcription failed row_id=%s: %s", row_id, e)
            return None
        finally:
            current = asyncio.current_task()
            if self._tasks.get(row_id) is current:
                del self._tasks[row_id]
        text = (text or "").strip()
        self.store.record(row_id, text)
        logger.debug("transcription stored row_id=%s chars=%d", row_id, len(text))
        return text
