"""Pretty-print support for conversations and exchange results.

Messages render as one rich panel per role; an exchange adds a table of
its rounds. Output goes to stdout or to ``file`` when given.

Messages and results are read by attribute only, so this module stays
free of imports from the engine packages.
"""
from __future__ import annotations

from typing import Any

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

_ROLE_STYLES: dict[str, tuple[str, str]] = {
    "system": ("System", "yellow"),
    "user": ("User", "blue"),
    "assistant": ("Assistant", "green"),
    "function": ("Function", "magenta"),
}


def _make_console(file: Any = None) -> Console:
    """Create a Console, optionally writing to a file-like object."""
    if file is not None:
        return Console(file=file, force_terminal=True, width=100)
    return Console()


def _truncate(text: str, abbreviate: bool, limit: int = 200) -> str:
    if abbreviate and len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def message_panel(message: Any, *, abbreviate: bool = False) -> Panel:
    """Render one message as a panel titled by its role."""
    role = getattr(message.role, "value", str(message.role))
    label, border = _ROLE_STYLES.get(role, (role.title(), "white"))
    if getattr(message, "name", None):
        label = f"{label} · {message.name}"

    parts: list[Any] = []
    content = _truncate(message.content, abbreviate)
    if content:
        parts.append(Text(content))
    for call in getattr(message, "function_calls", ()):
        call_text = Text()
        call_text.append(call.name, style="bold cyan")
        call_text.append("(", style="dim")
        call_text.append(_truncate(call.arguments, abbreviate), style="white")
        call_text.append(")", style="dim")
        parts.append(call_text)
    if not parts:
        parts.append(Text("(empty)", style="dim"))

    body: Any = Group(*parts) if len(parts) > 1 else parts[0]
    return Panel(body, title=f"[bold]{label}[/bold]", border_style=border)


def pprint_conversation(messages: Any, *, abbreviate: bool = False, file: Any = None) -> None:
    """Pretty-print a conversation, one panel per message.

    Args:
        messages: Iterable of Message objects.
        abbreviate: If True, truncate long text. Default False (show full).
        file: Optional file-like object for output (used in tests).
    """
    console = _make_console(file)
    for message in messages:
        console.print(message_panel(message, abbreviate=abbreviate))


def pprint_exchange(result: Any, *, file: Any = None) -> None:
    """Pretty-print an ExchangeResult: a table of rounds, calls, then the answer.

    Args:
        result: An ExchangeResult instance.
        file: Optional file-like object for output (used in tests).
    """
    console = _make_console(file)

    table = Table(title=f"Objective {result.objective_id}", show_header=True, header_style="bold")
    table.add_column("Round", justify="right")
    table.add_column("Calls", style="cyan")
    table.add_column("Action")
    table.add_column("Note", style="dim")
    for record in result.rounds:
        table.add_row(
            str(record.round),
            ", ".join(record.requested_calls) or "-",
            record.action.value,
            record.diagnosis,
        )
    console.print(table)

    if len(result.history):
        calls = Table(show_header=True, header_style="bold")
        calls.add_column("Call", style="cyan")
        calls.add_column("Result")
        for record in result.history:
            calls.add_row(record.call, record.text)
        console.print(calls)

    console.print(Panel(result.text or "(empty)", title="[bold]Answer[/bold]", border_style="green"))
