"""Development server with hot reload."""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from watchfiles import Change, DefaultFilter, awatch

from sitepress.config import Settings, load_site_config
from sitepress.runtime.app import create_app
from sitepress.runtime.livereload import ReloadBroadcaster
from sitepress.runtime.reload import LiveReloader

logger = logging.getLogger(__name__)

# Deletions have nothing to recompile; the next save of the file is enough
RELEVANT_CHANGES = frozenset({Change.added, Change.modified})


def watched_paths(settings: Settings) -> List[Path]:
    """Source and data trees that exist right now."""
    paths = []
    for path in (settings.src_dir, settings.data_dir):
        if path.exists():
            paths.append(path)
        else:
            logger.warning("Not watching '%s': directory does not exist", path)
    return paths


def relevant_paths(changes: Iterable[Tuple[Change, str]]) -> List[str]:
    """Changed paths worth acting on, in a stable order, without duplicates."""
    seen: Set[str] = set()
    paths = []
    for change_type, file_path in sorted(changes, key=lambda change: change[1]):
        if change_type not in RELEVANT_CHANGES or file_path in seen:
            continue
        seen.add(file_path)
        paths.append(file_path)
    return paths


async def process_changes(
    changes: Iterable[Tuple[Change, str]],
    reloader: LiveReloader,
    broadcaster: ReloadBroadcaster,
) -> None:
    """Act on one batch from the watcher. Each path is handled on its own."""
    for file_path in relevant_paths(changes):
        # Compiles and copies block; keep serving requests meanwhile
        event = await asyncio.to_thread(reloader.handle_change, file_path)
        if event is not None:
            await broadcaster.broadcast(event)


async def watch_changes(
    settings: Settings,
    reloader: LiveReloader,
    broadcaster: ReloadBroadcaster,
    stop_event: asyncio.Event,
) -> None:
    paths = watched_paths(settings)
    if not paths:
        return

    try:
        async for changes in awatch(*paths, watch_filter=DefaultFilter(), stop_event=stop_event):
            try:
                await process_changes(changes, reloader, broadcaster)
            except Exception:
                # Skip this batch only; keep watching
                logger.exception("Error handling file changes")
    except Exception:
        if not stop_event.is_set():
            logger.exception("Watcher error, live reload stopped")


async def run_dev_server(settings: Settings, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run development server with hot reload."""
    import uvicorn

    host = host if host is not None else settings.host
    port = port if port is not None else settings.port

    reloader = LiveReloader(settings)
    reloader.initial_sync()

    # One snapshot for the lifetime of the server
    site = load_site_config(settings.data_file)
    broadcaster = ReloadBroadcaster()
    app = create_app(settings, site=site, broadcaster=broadcaster)

    # Create shutdown event
    shutdown_event = asyncio.Event()

    def _handle_signal() -> None:
        logger.info("Shutting down...")
        shutdown_event.set()

    # Register signal handlers
    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _handle_signal)
    except NotImplementedError:
        pass

    config = uvicorn.Config(app, host=host, port=port, reload=False, log_level="info")
    server = uvicorn.Server(config)

    # Disable Uvicorn's signal handlers so we can manage it
    server.install_signal_handlers = lambda: None

    async def stop_uvicorn() -> None:
        await shutdown_event.wait()
        server.should_exit = True

    async def serve() -> None:
        try:
            await server.serve()
        finally:
            # Server gone for any reason: stop the watcher too
            shutdown_event.set()

    logger.info("Development server running at http://%s:%d", host, port)
    logger.info("Hot reload enabled")

    async with asyncio.TaskGroup() as tg:
        tg.create_task(serve())
        tg.create_task(stop_uvicorn())
        tg.create_task(watch_changes(settings, reloader, broadcaster, shutdown_event))
