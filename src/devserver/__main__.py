"""Entry point for the dev server."""

import argparse
import asyncio
import contextlib
from collections.abc import Sequence
from typing import Any

import structlog
import uvicorn

from devserver.app import create_app
from devserver.config import Settings
from devserver.logging import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser. Unset options fall back to env."""
    parser = argparse.ArgumentParser(
        prog="devserver",
        description="Serve a directory and reload the browser on changes.",
    )
    parser.add_argument("root", nargs="?", help="web root to serve and watch (default: public)")
    parser.add_argument("--host", help="bind address (default: $HOST or localhost)")
    parser.add_argument("--port", type=int, help="bind port (default: $PORT or 8080)")
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="PREFIX",
        help="directory prefix to ignore, repeatable (.git and node_modules always are)",
    )
    parser.add_argument(
        "--no-reload",
        dest="live_reload",
        action="store_const",
        const=False,
        help="serve files only, without watching or script injection",
    )
    parser.add_argument(
        "--debug",
        action="store_const",
        const=True,
        help="debug logging with console output",
    )
    return parser


def settings_from_args(argv: Sequence[str] | None = None) -> Settings:
    """Resolve settings from the environment and explicit CLI overrides.

    Args:
        argv: Arguments without the program name. sys.argv if None.

    Returns:
        Settings with CLI values taking precedence.
    """
    args = build_parser().parse_args(argv)
    overrides: dict[str, Any] = {
        "root": args.root,
        "host": args.host,
        "port": args.port,
        "live_reload": args.live_reload,
        "debug": args.debug,
    }
    if args.ignore:
        overrides["ignore_raw"] = ",".join(args.ignore)

    return Settings(**{key: value for key, value in overrides.items() if value is not None})


async def serve(settings: Settings) -> None:
    """Run uvicorn and the change watcher until either ends.

    The watcher is started before the listener so a missing web root
    fails fast. If the watcher fails, the server is stopped and the
    failure re-raised.

    Args:
        settings: Server configuration.

    Raises:
        ConfigurationError: If the web root does not exist.
        WatchFailure: If watching fails while serving.
    """
    app = create_app(settings)
    watcher = app.state.watcher
    if watcher is not None:
        watcher.start()

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)
    logger.info(
        "server_listening",
        url=f"http://{settings.host}:{settings.port}/",
        live_reload=settings.live_reload,
    )

    server_task = asyncio.create_task(server.serve())
    tasks: set[asyncio.Task[None]] = {server_task}
    if watcher is not None:
        tasks.add(asyncio.create_task(watcher.wait()))

    done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    if server_task not in done:
        server.should_exit = True
    await asyncio.wait(tasks)

    for task in tasks:
        task.result()


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for python -m devserver."""
    settings = settings_from_args(argv)
    configure_logging(debug=settings.debug)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
