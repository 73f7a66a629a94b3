from __future__ import annotations

"""
Entry Stream Sources.

Every source is a single-pass async iterator whose first item is a Meta
record followed by FileEntry records. Blocking reads (disk, HTTP) run in
a worker thread so the event loop keeps draining worker messages.
"""

import asyncio
import inspect
import json
import logging
from abc import ABC, abstractmethod
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    List,
    Optional,
    Sequence,
    Union,
)

from sizetree.core.analysis.change_classifier import get_changes
from sizetree.core.analysis.rename_pattern import FindRenamed
from sizetree.core.pipeline.transformer import transform_changes, transform_snapshot
from sizetree.core.services.build_sizes import parse_build_sizes_log
from sizetree.domain.errors import EntryFormatError, StreamError
from sizetree.domain.snapshot_models import (
    FileData,
    FileEntry,
    Meta,
    TransformResult,
    parse_snapshot,
)
from sizetree.infra import fs, network

logger = logging.getLogger(__name__)

StreamItem = Union[Meta, FileEntry]
Builds = Sequence[Optional[List[FileData]]]
HistoryProvider = Callable[[Optional[str]], Union[Builds, Awaitable[Builds]]]

# -----------------------------------------------------------------------------
# LOCATION HELPERS
# -----------------------------------------------------------------------------

def read_location(location: str) -> str:
    """Read a document from an http(s) URL or a local path."""
    if network.is_url(location):
        return network.fetch_text(location)
    return fs.read_text_file(location)


def load_snapshot(location: str) -> List[FileData]:
    """
    Load a build snapshot from a JSON document or a build log.

    Args:
        location: Local path or URL.

    Returns:
        List[FileData]: Parsed snapshot.

    Raises:
        StreamError: If no snapshot can be read from the location.
        EntryFormatError: If a JSON snapshot holds a malformed record.
    """
    text = read_location(location)
    try:
        raw = json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        return parse_snapshot(raw)

    try:
        snapshot = parse_build_sizes_log(text)
    except ValueError as e:
        raise StreamError(f"Couldn't parse build info in {location}: {e}") from e
    if snapshot is None:
        raise StreamError(f"Couldn't find build info in {location}")
    return snapshot

# -----------------------------------------------------------------------------
# SOURCES
# -----------------------------------------------------------------------------

class EntrySource(ABC):
    """Producer of the Meta + FileEntry stream consumed by the tree worker."""

    def __init__(self, input: Optional[str] = None) -> None:
        self._input = input

    def set_input(self, input: str) -> None:
        """Point the source at a new input before the next `stream()` call."""
        self._input = input

    @abstractmethod
    def stream(self) -> AsyncIterator[StreamItem]:
        """Yield the Meta record, then each FileEntry."""


class NdjsonSource(EntrySource):
    """Newline-delimited JSON size report read from a path or URL."""

    async def stream(self) -> AsyncIterator[StreamItem]:
        if not self._input:
            raise StreamError("No size report input was provided.")

        text = await asyncio.to_thread(read_location, self._input)
        meta_seen = False
        for line_no, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                raw = json.loads(line)
            except ValueError as e:
                raise StreamError(f"Invalid JSON on line {line_no} of {self._input}: {e}") from e

            if not meta_seen:
                meta_seen = True
                yield Meta.from_dict(raw)
            else:
                yield FileEntry.from_dict(raw)

        if not meta_seen:
            raise StreamError(f"Size report {self._input} is empty.")


class SnapshotSource(EntrySource):
    """A single build rendered without comparison."""

    def __init__(
            self,
            snapshot: Optional[Sequence[FileData]] = None,
            input: Optional[str] = None,
    ) -> None:
        super().__init__(input)
        self._snapshot = snapshot

    def set_input(self, input: str) -> None:
        super().set_input(input)
        self._snapshot = None

    async def stream(self) -> AsyncIterator[StreamItem]:
        snapshot = self._snapshot
        if snapshot is None:
            if not self._input:
                raise StreamError("No build snapshot was provided.")
            snapshot = await asyncio.to_thread(load_snapshot, self._input)

        async for item in iter_transformed(transform_snapshot(snapshot)):
            yield item


class HistorySource(EntrySource):
    """
    Compares the two most recent builds reported by a history provider.

    The provider receives the current input and returns builds newest
    first: `[current, previous]`. Missing builds are None.
    """

    def __init__(
            self,
            provider: HistoryProvider,
            input: Optional[str] = None,
            find_renamed: Optional[FindRenamed] = None,
    ) -> None:
        super().__init__(input)
        self._provider = provider
        self._find_renamed = find_renamed

    async def stream(self) -> AsyncIterator[StreamItem]:
        builds: Any = self._provider(self._input)
        if inspect.isawaitable(builds):
            builds = await builds

        builds = list(builds or [])
        current = builds[0] if len(builds) > 0 else None
        previous = builds[1] if len(builds) > 1 else None
        if previous is None:
            raise StreamError("Couldn't find previous build info")
        if current is None:
            raise StreamError("Couldn't find current build info")

        changes = get_changes(previous, current, self._find_renamed)
        async for item in iter_transformed(transform_changes(changes)):
            yield item


async def iter_transformed(result: TransformResult) -> AsyncIterator[StreamItem]:
    """Replay a transform result as an entry stream."""
    yield result.meta
    for entry in result.entries:
        yield entry


def snapshot_history_provider(
        current_location: str,
        previous_location: str,
) -> HistoryProvider:
    """
    History provider backed by two snapshot locations (paths or URLs).

    A location that cannot be read is reported as a missing build.
    """

    async def provider(_input: Optional[str]) -> Builds:
        return [
            await _try_load(current_location),
            await _try_load(previous_location),
        ]

    return provider


async def _try_load(location: str) -> Optional[List[FileData]]:
    try:
        return await asyncio.to_thread(load_snapshot, location)
    except (StreamError, EntryFormatError) as e:
        logger.warning(f"Build snapshot unavailable at {location}: {e}")
        return None
