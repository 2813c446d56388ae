# src/taskdeck/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, time
from typing import cast

from ..core.lifecycle import OperationOutcome
from ..core.state import AppState
from ..tasks.task_models import Priority, Task, new_task
from ..tasks.task_views import (
    CompletionFilter,
    TaskScope,
    build_task_view,
    category_counts,
    recent_tasks,
)
from ..weather.models import WeatherSnapshot

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command. Async handlers are awaited.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _short_id(task_id: str) -> str:
    return task_id[:SHORT_ID_LEN]


def format_task(task: Task) -> str:
    box = "[x]" if task.completed else "[ ]"
    star = "*" if task.favorite else " "
    line = f"{box}{star} {_short_id(task.id)} ({task.priority.value}) {task.text}"
    if task.categories:
        line += " " + " ".join(f"#{c}" for c in task.categories)
    if task.due_date is not None:
        line += f" due {task.due_date.astimezone().date().isoformat()}"
    return line


def format_weather(data: WeatherSnapshot) -> str:
    where = data.location_name or "Current location"
    return (
        f"{where}: {data.rounded_temperature}° {data.description or data.condition} "
        f"[{data.condition_kind.value}], humidity {data.humidity:g}%"
    )


def _outcome_reply(outcome: OperationOutcome, ok_text: str) -> str:
    if outcome.stale:
        return "A newer request superseded this one."
    if outcome.ok:
        return ok_text
    return outcome.error or "Operation failed."


def _auth_required(state: AppState) -> str | None:
    if not state.auth.is_authenticated:
        return "Please /login or /register first."
    return None


def resolve_task_id(state: AppState, token: str) -> tuple[str | None, str | None]:
    """Exact id or unique prefix -> (task_id, error)."""
    if state.tasks.get(token) is not None:
        return token, None
    matches = [t.id for t in state.tasks.tasks if t.id.startswith(token)]
    if not matches:
        return None, f"No task matches id {token!r}."
    if len(matches) > 1:
        return None, f"Id prefix {token!r} is ambiguous ({len(matches)} tasks)."
    return matches[0], None


def _parse_due(raw: str) -> datetime:
    return datetime.combine(date.fromisoformat(raw), time.min).astimezone()


# ---- general ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    root = state.get_state()
    who = root.auth.user.email if root.auth.user else "-"
    weather = root.weather.phase
    if root.weather.error:
        weather += f" ({root.weather.error})"
    return (
        "Status:\n"
        f"  Session: {root.auth.phase.value} (user: {who})\n"
        f"  Tasks: {len(root.tasks.tasks)}\n"
        f"  Weather: {weather}"
    )


# ---- auth ----


async def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) != 2:
        return "Usage: /login <email> <password>"
    if emit:
        with contextlib.suppress(Exception):
            emit("Signing in...")
    outcome = await state.auth.login(args[0], args[1])
    if outcome.ok:
        state.refresh_weather_in_background()
    user = state.auth.user
    return _outcome_reply(outcome, f"Welcome back, {user.name.split(' ')[0] if user else 'User'}!")


async def cmd_register(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /register <email> <password> <full name...>
    """
    if len(args) < 3:
        return "Usage: /register <email> <password> <full name>"
    email, password = args[0], args[1]
    name = " ".join(args[2:])
    if emit:
        with contextlib.suppress(Exception):
            emit("Creating account...")
    outcome = await state.auth.register(name, email, password)
    if outcome.ok:
        state.refresh_weather_in_background()
    return _outcome_reply(outcome, f"Account created. Signed in as {name}.")


async def cmd_logout(state: AppState, args: list[str]) -> str:
    outcome = await state.auth.logout()
    return _outcome_reply(outcome, "Signed out.")


def cmd_whoami(state: AppState, args: list[str]) -> str:
    user = state.auth.user
    if user is None:
        return "Not signed in."
    lines = [f"{user.name} <{user.email}> (id={user.id})"]
    for label, value in (("Bio", user.bio), ("Location", user.location), ("Phone", user.phone)):
        if value:
            lines.append(f"  {label}: {value}")
    return "\n".join(lines)


async def cmd_profile(state: AppState, args: list[str]) -> str:
    """
    /profile                  -> show profile
    /profile <field> <value>  -> update name/email/bio/location/phone/avatar
    """
    if not args:
        return cmd_whoami(state, args)
    if len(args) < 2:
        return "Usage: /profile <name|email|bio|location|phone|avatar> <value>"

    field_name = args[0].lower()
    value = " ".join(args[1:])
    try:
        outcome = await state.auth.update_user(**{field_name: value})
    except ValueError:
        logger.debug("Rejected profile field=%s", field_name)
        return f"Unknown profile field: {field_name}"
    return _outcome_reply(outcome, "Profile updated.")


# ---- tasks ----


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add [!high|!medium|!low] [#category ...] [@YYYY-MM-DD] text...
    """
    denied = _auth_required(state)
    if denied:
        return denied

    priority: Priority = Priority.MEDIUM
    categories: list[str] = []
    due: datetime | None = None
    words: list[str] = []

    for token in args:
        if token.startswith("!") and len(token) > 1:
            try:
                priority = Priority.parse(token[1:])
            except ValueError:
                return f"Unknown priority: {token[1:]} (use high, medium or low)."
        elif token.startswith("#") and len(token) > 1:
            cat = token[1:].lower()
            if cat not in categories:
                categories.append(cat)
        elif token.startswith("@") and len(token) > 1:
            try:
                due = _parse_due(token[1:])
            except ValueError:
                return f"Bad due date: {token[1:]} (use YYYY-MM-DD)."
        else:
            words.append(token)

    text = " ".join(words)
    if not text.strip():
        return "Usage: /add [!high|!medium|!low] [#category] [@YYYY-MM-DD] <text>"

    task = new_task(text, priority=priority, due_date=due, categories=categories)
    state.tasks.add(task)
    logger.debug("Task added via console (id=%s priority=%s)", task.id, task.priority.value)
    return f"Added {_short_id(task.id)}: {task.text}"


def _single_task_command(state: AppState, args: list[str], usage: str) -> tuple[str | None, str | None]:
    denied = _auth_required(state)
    if denied:
        return None, denied
    if not args:
        return None, usage
    return resolve_task_id(state, args[0])


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id, err = _single_task_command(state, args, "Usage: /done <id>")
    if err or task_id is None:
        return err or "No such task."
    state.tasks.toggle_completed(task_id)
    task = state.tasks.get(task_id)
    return format_task(task) if task else "No such task."


def cmd_fav(state: AppState, args: list[str]) -> str:
    task_id, err = _single_task_command(state, args, "Usage: /fav <id>")
    if err or task_id is None:
        return err or "No such task."
    state.tasks.toggle_favorite(task_id)
    task = state.tasks.get(task_id)
    return format_task(task) if task else "No such task."


def cmd_prio(state: AppState, args: list[str]) -> str:
    task_id, err = _single_task_command(state, args, "Usage: /prio <id> <high|medium|low>")
    if err or task_id is None:
        return err or "No such task."
    if len(args) < 2:
        return "Usage: /prio <id> <high|medium|low>"
    try:
        state.tasks.set_priority(task_id, args[1])
    except ValueError:
        return f"Unknown priority: {args[1]} (use high, medium or low)."
    task = state.tasks.get(task_id)
    return format_task(task) if task else "No such task."


def cmd_rm(state: AppState, args: list[str]) -> str:
    task_id, err = _single_task_command(state, args, "Usage: /rm <id>")
    if err or task_id is None:
        return err or "No such task."
    state.tasks.delete(task_id)
    return f"Deleted {_short_id(task_id)}."


def _render_list(state: AppState, scope: str, completion: str, query: str) -> str:
    view = build_task_view(state.tasks.tasks, scope=scope, completion=completion, query=query)
    title = {
        TaskScope.TODAY: "Today's Tasks",
        TaskScope.UPCOMING: "Upcoming Tasks",
        TaskScope.FAVORITES: "Favorite Tasks",
    }.get(TaskScope(scope), "All Tasks")
    if not view.tasks:
        empty = "No matching tasks found." if query.strip() else "No tasks found. Add some tasks to get started!"
        return f"{title}: {empty}"
    lines = [f"{title} ({len(view.tasks)}):"]
    lines.extend(f"  {format_task(t)}" for t in view.tasks)
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list [all|today|upcoming|favorites] [all|active|completed] [query...]
    """
    denied = _auth_required(state)
    if denied:
        return denied

    rest = list(args)
    scope = TaskScope.ALL.value
    completion = CompletionFilter.ALL.value
    if rest and rest[0].lower() in {s.value for s in TaskScope}:
        scope = rest.pop(0).lower()
    if rest and rest[0].lower() in {c.value for c in CompletionFilter}:
        completion = rest.pop(0).lower()
    return _render_list(state, scope, completion, " ".join(rest))


def cmd_search(state: AppState, args: list[str]) -> str:
    denied = _auth_required(state)
    if denied:
        return denied
    if not args:
        return "Usage: /search <text>"
    return _render_list(state, TaskScope.ALL.value, CompletionFilter.ALL.value, " ".join(args))


def cmd_stats(state: AppState, args: list[str]) -> str:
    denied = _auth_required(state)
    if denied:
        return denied

    tasks = state.tasks.tasks
    stats = build_task_view(tasks).stats
    cats = category_counts(tasks)
    lines = [
        "Overview:",
        f"  Total: {stats.total} ({stats.pending} pending)",
        f"  Today: {stats.today} ({stats.today_completed} completed, {stats.due_today} due)",
        f"  Completed: {stats.completed} ({stats.completion_percent}% completion rate)",
        f"  High priority: {stats.high_priority} ({stats.high_priority_open} need attention)",
        f"  Favorites: {stats.favorites}",
        "  Categories: " + ", ".join(f"{name} {n}" for name, n in cats.items()),
    ]
    recent = recent_tasks(tasks)
    if recent:
        lines.append("Recent activity:")
        lines.extend(f"  {format_task(t)}" for t in recent)
    return "\n".join(lines)


# ---- weather ----


async def cmd_weather(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /weather          -> show the latest snapshot (fetches once if there is none)
    /weather refresh  -> fetch again
    """
    refresh = bool(args) and args[0].lower() in ("refresh", "r", "update")
    store = state.weather

    if store.loading and not refresh:
        return "Loading weather..."

    if refresh or (store.data is None and store.error is None):
        if emit:
            with contextlib.suppress(Exception):
                emit("Fetching weather...")
        await store.fetch_weather()

    if store.error:
        stale = f"\nLast known: {format_weather(store.data)}" if store.data else ""
        return f"Weather unavailable: {store.error}{stale}"
    if store.data is None:
        return "No weather data."
    return format_weather(store.data)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show session, task and weather status.")
registry.register("login", cmd_login, help_text="Sign in: /login <email> <password>.")
registry.register(
    "register", cmd_register, help_text="Create an account: /register <email> <password> <name>."
)
registry.register("logout", cmd_logout, help_text="Sign out.")
registry.register("whoami", cmd_whoami, help_text="Show the signed-in user.")
registry.register("profile", cmd_profile, help_text="Show or update profile: /profile <field> <value>.")
registry.register(
    "add", cmd_add, help_text="Add a task: /add [!high] [#work] [@2025-01-31] <text>.", aliases=["a"]
)
registry.register("done", cmd_done, help_text="Toggle completed: /done <id>.", aliases=["toggle"])
registry.register("fav", cmd_fav, help_text="Toggle favorite: /fav <id>.")
registry.register("prio", cmd_prio, help_text="Set priority: /prio <id> <high|medium|low>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [all|today|upcoming|favorites] [all|active|completed] [query].",
    aliases=["ls"],
)
registry.register("search", cmd_search, help_text="Search tasks by text, priority or category.")
registry.register("stats", cmd_stats, help_text="Show task overview and counters.")
registry.register("weather", cmd_weather, help_text="Show weather: /weather [refresh].")
