"""
Debounced change notifications for a directory below the root.
"""

import asyncio
import inspect
import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from watchfiles import Change, awatch

from sandbox_fs.filesystem.config import LocalFileSystemConfig
from sandbox_fs.filesystem.exceptions import PathNotADirectoryError, PathNotFoundError
from sandbox_fs.filesystem.models import WatchEvent, WatchEventKind
from sandbox_fs.filesystem.paths import PathLike, PathResolver
from sandbox_fs.filesystem.walker import IgnoreFilter, TreeWalker, is_ignored_path

logger = logging.getLogger(__name__)

Handler = Callable[[WatchEvent], Union[None, Awaitable[None]]]


def _snapshot(path: str) -> Optional[tuple[int, int]]:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return st.st_size, st.st_mtime_ns


def _deletions_first(item: tuple[Change, str]) -> bool:
    return item[0] != Change.deleted


class WatchSession:
    """
    A running watch over one directory.

    Handlers are plain or async callables taking a WatchEvent. Register
    them right after watch() returns, before awaiting anything else, and
    they will see every event including the initial adds and "ready".
    The session keeps running until close() is called or the backend
    fails, in which case an "error" event is the last thing delivered.

    Files present at start (reported or not, see ignore_initial) and
    files announced since are tracked, so an "unlink" is only sent for a
    path the handlers could know about and a rewrite of a known file is
    a "change".

    Usage:
        session = await service.watch("src", ignore_filter=is_ignored)
        session.on("change", lambda event: print(event.path))
        ...
        await session.close()
    """

    def __init__(
        self,
        resolver: PathResolver,
        walker: TreeWalker,
        directory: Path,
        ignore_filter: Optional[IgnoreFilter],
        poll_interval_ms: int,
        stability_threshold_ms: int,
        ignore_initial: bool = False,
    ):
        self.resolver = resolver
        self.walker = walker
        self.directory = directory
        self.ignore_filter = ignore_filter
        self.poll_interval_ms = poll_interval_ms
        self.stability_threshold_ms = stability_threshold_ms
        self.ignore_initial = ignore_initial

        self._handlers: dict[WatchEventKind, list[Handler]] = {
            kind: [] for kind in WatchEventKind
        }
        self._pending: dict[str, tuple[WatchEventKind, asyncio.Task]] = {}
        # Files the handlers have been told about (or that existed at start)
        self._known: set[str] = set()
        # (size, mtime) recorded by the initial walk, dropped once the file differs
        self._initial: dict[str, Optional[tuple[int, int]]] = {}
        self._stop_event = asyncio.Event()
        self._ready = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on(self, kind: Union[str, WatchEventKind], handler: Handler) -> "WatchSession":
        """Subscribe a handler to one event kind."""
        self._handlers[WatchEventKind(kind)].append(handler)
        return self

    def off(self, kind: Union[str, WatchEventKind], handler: Handler) -> "WatchSession":
        """Remove a previously registered handler."""
        handlers = self._handlers[WatchEventKind(kind)]
        if handler in handlers:
            handlers.remove(handler)
        return self

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())

    async def wait_until_ready(self, timeout: Optional[float] = None) -> None:
        """Block until the "ready" event has been emitted."""
        await asyncio.wait_for(self._ready.wait(), timeout=timeout)

    async def close(self) -> None:
        """Stop watching and release the session. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()
        await self._cancel_pending()

        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning(f"Watcher for {self.directory} did not stop in time")
            except asyncio.CancelledError:
                pass

        logger.info(f"Stopped watching {self.directory}")

    async def __aenter__(self) -> "WatchSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def is_ignored(self, path: str) -> bool:
        """
        Apply the ignore filter to a root-relative path and its ancestors.

        The root itself is never ignored. A filter that raises counts as
        "ignored".
        """
        if path.startswith("./"):
            path = path[2:]
        if path in ("", ".", "./"):
            return False
        if self.ignore_filter is None:
            return False

        try:
            return is_ignored_path(self.ignore_filter, path)
        except Exception as e:
            logger.debug(f"Ignore filter raised for {path}, ignoring it: {e}")
            return True

    async def _run(self) -> None:
        try:
            async for changes in awatch(
                self.directory,
                watch_filter=self._accepts,
                stop_event=self._stop_event,
                debounce=min(self.poll_interval_ms, 1600),
                step=50,
                rust_timeout=min(self.poll_interval_ms, 1000),
                yield_on_timeout=True,
            ):
                if not self._ready.is_set():
                    await self._announce_ready()
                # A batch is a set; deletions go first so a delete + recreate
                # of one path ends with the file reported as present
                for change, raw_path in sorted(changes, key=_deletions_first):
                    await self._handle_change(change, raw_path)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Watching {self.directory} failed: {e}")
            await self._emit(WatchEvent(kind=WatchEventKind.ERROR, error=str(e)))
            self._closed = True
            self._stop_event.set()
            await self._cancel_pending()

    async def _cancel_pending(self) -> None:
        pending = [task for _, task in self._pending.values()]
        self._pending.clear()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _announce_ready(self) -> None:
        start = self.resolver.to_relative(self.directory)
        async for entry in self.walker.walk(start, ignore_filter=self.is_ignored):
            if entry.endswith("/"):
                continue
            self._known.add(entry)
            self._initial[entry] = _snapshot(os.path.join(self.resolver.root, entry))
            if not self.ignore_initial:
                await self._emit(WatchEvent(kind=WatchEventKind.ADD, path=entry))
        self._ready.set()
        logger.info(f"Watching {self.directory}")
        await self._emit(WatchEvent(kind=WatchEventKind.READY))

    def _accepts(self, change: Change, path: str) -> bool:
        relative = self._relative(path)
        if relative is None:
            return False
        return not self.is_ignored(relative)

    def _relative(self, path: str) -> Optional[str]:
        absolute = os.path.normpath(path)
        if not self.resolver.is_within_root(absolute):
            return None
        return self.resolver.to_relative(absolute)

    async def _handle_change(self, change: Change, raw_path: str) -> None:
        relative = self._relative(raw_path)
        if relative is None or self._closed:
            return

        if change == Change.deleted:
            pending = self._pending.pop(relative, None)
            if pending is not None:
                pending[1].cancel()
            self._initial.pop(relative, None)
            # A file that was never announced has nothing to unlink
            if relative in self._known:
                self._known.discard(relative)
                await self._emit(WatchEvent(kind=WatchEventKind.UNLINK, path=relative))
            return

        absolute = os.path.normpath(raw_path)
        if os.path.isdir(absolute) or relative in self._pending:
            return

        if relative in self._initial:
            # Created between watch() and the initial walk, already announced
            if _snapshot(absolute) == self._initial[relative]:
                return
            del self._initial[relative]

        kind = WatchEventKind.CHANGE if relative in self._known else WatchEventKind.ADD
        task = asyncio.ensure_future(self._await_write_finish(relative, absolute, kind))
        self._pending[relative] = (kind, task)

    async def _await_write_finish(
        self, relative: str, absolute: str, kind: WatchEventKind
    ) -> None:
        loop = asyncio.get_running_loop()
        interval = self.poll_interval_ms / 1000
        threshold = self.stability_threshold_ms / 1000

        try:
            last = _snapshot(absolute)
            stable_since = loop.time()
            while True:
                await asyncio.sleep(interval)
                current = _snapshot(absolute)
                if current is None:
                    return
                if current != last:
                    last = current
                    stable_since = loop.time()
                    continue
                if loop.time() - stable_since >= threshold:
                    break
        finally:
            entry = self._pending.get(relative)
            if entry is not None and entry[1] is asyncio.current_task():
                del self._pending[relative]

        self._known.add(relative)
        await self._emit(WatchEvent(kind=kind, path=relative))

    async def _emit(self, event: WatchEvent) -> None:
        for handler in list(self._handlers[event.kind]):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Watch handler failed for {event}")


class DirectoryWatcher:
    """Opens WatchSessions for directories below the root."""

    def __init__(
        self, resolver: PathResolver, walker: TreeWalker, config: LocalFileSystemConfig
    ):
        self.resolver = resolver
        self.walker = walker
        self.config = config

    async def watch(
        self,
        directory: PathLike = "",
        ignore_filter: Optional[IgnoreFilter] = None,
        poll_interval: Optional[int] = None,
        stability_threshold: Optional[int] = None,
        ignore_initial: bool = False,
    ) -> WatchSession:
        """
        Start watching a directory.

        Args:
            directory: Directory to watch ("" for the root)
            ignore_filter: Predicate on root-relative paths; True means ignore
            poll_interval: Milliseconds between stability polls
            stability_threshold: Milliseconds a file must stay unchanged
            ignore_initial: Don't report files that already exist as "add"

        Raises:
            PathNotFoundError: If the directory doesn't exist
            PathNotADirectoryError: If the path is not a directory
        """
        absolute = self.resolver.resolve_absolute(directory or ".")
        if not absolute.exists():
            raise PathNotFoundError(str(directory), what="Directory")
        if not absolute.is_dir():
            raise PathNotADirectoryError(str(directory))

        session = WatchSession(
            resolver=self.resolver,
            walker=self.walker,
            directory=absolute,
            ignore_filter=ignore_filter,
            poll_interval_ms=max(
                1,
                poll_interval if poll_interval is not None
                else self.config.watch_poll_interval_ms,
            ),
            stability_threshold_ms=max(
                0,
                stability_threshold if stability_threshold is not None
                else self.config.watch_stability_threshold_ms,
            ),
            ignore_initial=ignore_initial,
        )
        session.start()
        return session
