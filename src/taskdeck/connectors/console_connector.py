# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState, RootState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _prompt(state: AppState) -> str:
    user = state.auth.user
    who = user.name.split(" ")[0] if user else "guest"
    return f">>> {who}: "


class _WeatherNotifier:
    """Prints a one-line notice when a background weather fetch settles."""

    def __init__(self) -> None:
        self._last: tuple[bool, str | None, object] | None = None

    def __call__(self, root: RootState) -> None:
        w = root.weather
        key = (w.loading, w.error, w.data)
        if key == self._last:
            return
        was_loading = self._last is not None and self._last[0]
        self._last = key
        if not was_loading or w.loading:
            return
        if w.error:
            _print_ts(f"[WEATHER] unavailable: {w.error}")
        elif w.data is not None:
            _print_ts(f"[WEATHER] {w.data.location_name or 'here'}: {w.data.rounded_temperature}°, {w.data.description}")


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (authenticated=%s).", state.auth.is_authenticated)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    unsubscribe = state.subscribe(_WeatherNotifier())

    def emit(text: str) -> None:
        # Immediate user-visible feedback for slow operations (login, weather)
        print(f"[{_ts_local()}] {text}", flush=True)

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, _prompt(state))).strip()
                _rewrite_prev_line(f"[{_ts_local()}] {_prompt(state)}{user_input}")
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                response = await command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."

            if response is None:
                response = "Commands start with '/'. Use /help to list them, or /add <text> to add a task."
            print(f"[{_ts_local()}] {response}")
    finally:
        unsubscribe()

    logger.info("Console connector finished.")
