"""Fire-and-forget event dispatch to reporters via pluggy + ThreadPoolExecutor.

The build never waits on a reporter: events are handed to a small thread
pool (or run inline with ``sync=True``) and reporter exceptions are logged
and counted, never raised.

INVARIANT: The event sink has no control-flow role. A sink with no
reporters registered is a no-op.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from netbundle.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventSink:
    """Dispatches build events to registered reporters.

    Parameters:
        plugin_manager: PluginManager whose hook relay receives events. If
            None, every call is a no-op.
        sync: Dispatch inline instead of on the thread pool. A single worker
            thread keeps event order intact either way.
    """

    def __init__(self, plugin_manager: PluginManager | None = None, *, sync: bool = False) -> None:
        self._pm = plugin_manager
        self._sync = sync
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future[None]] = []
        self.failures = 0

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def module_started(self, name: str) -> None:
        self._dispatch("module_started", {"name": name})

    def module_completed(self, name: str) -> None:
        self._dispatch("module_completed", {"name": name})

    def warning(self, text: str) -> None:
        self._dispatch("warning", {"text": text})

    def error(self, text: str) -> None:
        self._dispatch("error", {"text": text})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Wait for events already handed to the thread pool."""
        for future in self._futures:
            future.result()
        self._futures.clear()

    def shutdown(self) -> None:
        """Flush pending events and stop the thread pool."""
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        if self._pm is None:
            return
        if self._sync:
            self._execute_hook(hook_name, payload)
            return
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="netbundle-events")
        self._futures.append(self._executor.submit(self._execute_hook, hook_name, payload))

    def _execute_hook(self, hook_name: str, payload: dict[str, Any]) -> None:
        assert self._pm is not None
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            return
        try:
            hook_fn(**payload)
        except Exception as exc:
            self.failures += 1
            logger.debug("Reporter hook %s failed: %s", hook_name, exc, exc_info=True)
