from __future__ import annotations

"""
Tree Worker Protocol.

Message-driven front end of the tree builder. A presentation layer posts
`{id, action, data}` requests; the worker answers with `{id, result}` or
`{id, error}` and streams progress snapshots as `{id: 0, ...}` while a
load is running.

Supported actions:
- load: (re)build the tree from the entry source with new filter options.
        Bursts of load requests are debounced; only the last one runs.
- open: format the subtree at an id path for on-demand expansion.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from sizetree.core.analysis.symbol_filters import parse_options
from sizetree.core.analysis.tree_builder import FilterTest, TreeBuilder
from sizetree.core.pipeline.sources import EntrySource
from sizetree.domain import constants as const
from sizetree.domain.errors import EntryFormatError, NodeLookupError, SizeTreeError
from sizetree.domain.snapshot_models import FileEntry, Meta
from sizetree.domain.tree_models import TreeNode

logger = logging.getLogger(__name__)

PostMessage = Callable[[Dict[str, Any]], None]
Clock = Callable[[], float]


class TreeWorker:
    """
    Owns the builder of the most recent load and serves requests against it.

    Must be driven from a running asyncio event loop.
    """

    def __init__(
            self,
            post_message: PostMessage,
            source: EntrySource,
            *,
            progress_interval: float = const.DEFAULT_PROGRESS_INTERVAL,
            clock: Clock = time.monotonic,
            debounce_delay: float = 0,
    ) -> None:
        """
        Args:
            post_message: Receives every outbound message.
            source: Entry stream to build trees from.
            progress_interval: Seconds between progress snapshots.
            clock: Monotonic time source used for progress batching.
            debounce_delay: Seconds a load waits for a newer load to replace it.
        """
        self._post = post_message
        self._source = source
        self._progress_interval = progress_interval
        self._clock = clock
        self._debounce_delay = debounce_delay

        self._builder: Optional[TreeBuilder] = None
        self._pending_load: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

        self._actions: Dict[str, Callable[[Any], Awaitable[Any]]] = {
            "load": self._load,
            "open": self._open,
        }

    # -------------------------------------------------------------------------
    # MESSAGE CHANNEL
    # -------------------------------------------------------------------------

    def on_message(self, message: Dict[str, Any]) -> None:
        """Dispatch one inbound `{id, action, data}` request."""
        msg_id = message.get("id")
        action = message.get("action")
        data = message.get("data")

        if action == "load":
            if self._pending_load is not None:
                self._pending_load.cancel()
                logger.debug("Superseded a pending load request.")
            loop = asyncio.get_running_loop()
            self._pending_load = loop.call_later(
                self._debounce_delay, self._start_debounced, msg_id, action, data
            )
        else:
            self._start(msg_id, action, data)

    async def serve(self, inbox: "asyncio.Queue[Optional[Dict[str, Any]]]") -> None:
        """Consume requests from `inbox` until a None sentinel, then drain."""
        while True:
            message = await inbox.get()
            if message is None:
                break
            self.on_message(message)
        await self.join()

    async def join(self) -> None:
        """Wait until no load is pending and every started action finished."""
        while self._pending_load is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(self._debounce_delay)

    def _start_debounced(self, msg_id: Any, action: str, data: Any) -> None:
        self._pending_load = None
        self._start(msg_id, action, data)

    def _start(self, msg_id: Any, action: Optional[str], data: Any) -> None:
        task = asyncio.get_running_loop().create_task(self._run_action(msg_id, action, data))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_action(self, msg_id: Any, action: Optional[str], data: Any) -> None:
        """Run an action and post its result, or its error message."""
        try:
            handler = self._actions.get(action or "")
            if handler is None:
                raise SizeTreeError(f"Unknown action: {action}")
            result = await handler(data)
        except Exception as e:
            logger.error(f"Action '{action}' (id={msg_id}) failed: {e}")
            self._post({"id": msg_id, "error": str(e)})
            return
        self._post({"id": msg_id, "result": result})

    # -------------------------------------------------------------------------
    # ACTIONS
    # -------------------------------------------------------------------------

    async def _load(self, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        data = data or {}
        input_value = data.get("input")
        options = parse_options(data.get("options") or "")

        if input_value == const.FROM_URL_INPUT:
            if options.url:
                logger.info(f"Displaying data from {options.url}")
                self._source.set_input(options.url)
        elif input_value is not None:
            logger.info("Displaying uploaded data")
            self._source.set_input(input_value)

        return await self._build_tree(options.filter_test)

    async def _open(self, id_path: str) -> Optional[Dict[str, Any]]:
        if self._builder is None:
            raise NodeLookupError("Called open before load")
        node = self._builder.find(id_path)
        if node is None:
            logger.debug(f"No node found at '{id_path}'")
            return None
        return self._builder.format_node(node).to_dict()

    # -------------------------------------------------------------------------
    # TREE STREAMING
    # -------------------------------------------------------------------------

    async def _build_tree(self, filter_test: FilterTest) -> Dict[str, Any]:
        """
        Consume the entry stream into a fresh builder.

        Returns:
            Dict[str, Any]: The final snapshot with `percent == 1`, or the
                            partial snapshot with an `error` field.
        """
        builder: Optional[TreeBuilder] = None
        meta: Optional[Meta] = None

        try:
            last_batch_sent = self._clock()
            async for item in self._source.stream():
                if meta is None:
                    if not isinstance(item, Meta):
                        raise EntryFormatError("Entry stream must start with a meta record")
                    meta = item
                    builder = TreeBuilder(filter_test=filter_test)
                    self._builder = builder
                    self._post_progress(builder, meta)
                    continue

                if not isinstance(item, FileEntry):
                    raise EntryFormatError(f"Unexpected stream record: {item!r}")
                builder.add_file_entry(item, meta.diff_mode)

                current_time = self._clock()
                if current_time - last_batch_sent > self._progress_interval:
                    self._post_progress(builder, meta)
                    await asyncio.sleep(0)
                    last_batch_sent = current_time

            if builder is None:
                raise EntryFormatError("Entry stream ended before its meta record")

            logger.info(f"Tree built: {meta.total} item(s), root size {builder.root_node.size}")
            return create_progress_message(builder, meta, root=builder.build(), percent=1)
        except Exception as e:
            logger.error(f"Failed to build tree: {e}")
            if builder is None:
                builder = TreeBuilder(filter_test=filter_test)
            return create_progress_message(builder, meta, error=e)

    def _post_progress(self, builder: TreeBuilder, meta: Meta) -> None:
        message = create_progress_message(builder, meta)
        message["id"] = const.PROGRESS_MESSAGE_ID
        self._post(message)


def create_progress_message(
        builder: TreeBuilder,
        meta: Optional[Meta],
        root: Optional[TreeNode] = None,
        percent: Optional[float] = None,
        error: Optional[BaseException] = None,
) -> Dict[str, Any]:
    """
    Snapshot of a load for the presentation layer.

    Args:
        builder: Builder of the load.
        meta: Meta record of the stream, None if not read yet.
        root: Node to format (defaults to the builder's root).
        percent: Completion ratio; derived from the root size when omitted.
        error: Failure to report alongside the partial tree.

    Returns:
        Dict[str, Any]: `{root, percent, diffMode}` plus `error` when given.
    """
    if percent is None:
        if meta is None:
            percent = 0
        elif meta.total == 0:
            percent = 0.1
        else:
            percent = max(builder.root_node.size / meta.total, 0.1)

    message: Dict[str, Any] = {
        "root": builder.format_node(root if root is not None else builder.root_node).to_dict(),
        "percent": percent,
        "diffMode": bool(meta is not None and meta.diff_mode),
    }
    if error is not None:
        message["error"] = str(error)
    return message
