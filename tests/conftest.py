"""Shared test fixtures for directive.

Provides a scripted provider, sample toolsets and dispatcher fixtures.
No test talks to a real network.
"""

from __future__ import annotations

import json
import threading

import pytest

from directive import (
    CallHistory,
    CommonResponse,
    Feature,
    FunctionCall,
    ToolDispatcher,
    ToolRegistry,
    tool,
    toolset,
)


# ------------------------------------------------------------------
# Scripted provider
# ------------------------------------------------------------------


def make_call(name: str, call_id: str | None = None, **arguments) -> FunctionCall:
    """Structured (JSON-argument) function call as a provider would return it."""
    return FunctionCall(name=name, arguments=json.dumps(arguments), id=call_id or f"call_{name}")


def make_response(text: str = "", *calls: FunctionCall) -> CommonResponse:
    return CommonResponse(text=text, requested_calls=tuple(calls))


class ScriptedProvider:
    """Provider that replays canned responses and records every request.

    Each script entry is a CommonResponse, a plain string (text-only
    response), or a callable taking the conversation and returning either.
    """

    features = frozenset({Feature.CHAT})

    def __init__(self, *script, features=None) -> None:
        self._script = list(script)
        self.requests: list[tuple[list, list]] = []
        self.closed = False
        self.gate: threading.Event | None = None
        if features is not None:
            self.features = frozenset(features)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def send(self, conversation, tools):
        self.requests.append((list(conversation), list(tools)))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if not self._script:
            raise AssertionError("ScriptedProvider ran out of responses")
        entry = self._script.pop(0)
        if callable(entry):
            entry = entry(conversation)
        if isinstance(entry, str):
            entry = make_response(entry)
        return entry

    def close(self) -> None:
        self.closed = True


# ------------------------------------------------------------------
# Sample toolsets
# ------------------------------------------------------------------


class Calculator:
    """Arithmetic tools that count native invocations."""

    def __init__(self) -> None:
        self.invocations: list[str] = []

    @tool(description="Adds two integers", parameters=["the augend", "the addend"])
    def add(self, a: int, b: int) -> int:
        self.invocations.append(f"add({a}, {b})")
        return a + b

    @tool(description="Multiplies two integers")
    def multiply(self, a: int, b: int) -> int:
        self.invocations.append(f"multiply({a}, {b})")
        return a * b

    @tool(description="Sums any number of integers")
    def total(self, *values: int) -> int:
        self.invocations.append(f"total{values}")
        return sum(values)

    @tool(description="Always fails")
    def explode(self) -> int:
        self.invocations.append("explode()")
        raise ValueError("boom")

    def helper(self) -> None:
        """Not a tool: no marker and the class is not a toolset."""

    def __str__(self) -> str:
        return "Calculator"


@toolset
class Weather:
    """Every public method is a tool."""

    def __init__(self) -> None:
        self.lookups: list[str] = []

    def get_weather(self, city: str) -> str:
        """Current weather for a city."""
        self.lookups.append(city)
        return f"Sunny in {city}"

    def _private(self) -> None:
        pass


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def calculator() -> Calculator:
    return Calculator()


@pytest.fixture
def calc_registry() -> ToolRegistry:
    return ToolRegistry.from_type(Calculator)


@pytest.fixture
def dispatcher(calc_registry, calculator) -> ToolDispatcher:
    return ToolDispatcher(calc_registry, calculator)


@pytest.fixture
def history() -> CallHistory:
    return CallHistory()
