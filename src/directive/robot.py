"""Robot: the caller-facing facade.

Binds interface classes to a provider and a toolset. Every method call on
a bound interface becomes an objective that runs on a worker thread and
returns an Answer immediately.

Usage::

    class Calculator:
        @tool(description="Adds two integers")
        def add(self, a: int, b: int) -> int:
            return a + b

    with Robot(OpenAIProvider(), tools=Calculator) as robot:
        bot = robot.bind(Chat)
        print(bot.chat("What is 2 + 3?").result())
"""

from __future__ import annotations

import functools
import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from directive.answer.answer import Answer
from directive.exceptions import DirectiveError, ObjectiveCancelledError, SetupError
from directive.messenger import ConversationStore
from directive.models.directive import DirectiveRegistry, compile_directive
from directive.orchestrator.loop import Orchestrator
from directive.toolkit.registry import ToolRegistry
from directive.tracing import TraceContext

if TYPE_CHECKING:
    from directive.llm.protocols import Provider
    from directive.models.directive import Directive, Objective
    from directive.orchestrator.config import OrchestratorConfig

logger = logging.getLogger(__name__)


class BoundInterface:
    """Object whose methods are the directives of one interface."""

    def __init__(self, robot: Robot, interface: type, names: list[str]) -> None:
        self._robot = robot
        self._interface = interface
        self._names = frozenset(names)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name not in self._names:
            raise AttributeError(f"{self._interface.__name__} has no directive {name!r}")
        return functools.partial(self._robot.ask, name)

    def __dir__(self) -> list[str]:
        return sorted(self._names)

    def __repr__(self) -> str:
        return f"<bound {self._interface.__name__}: {', '.join(sorted(self._names))}>"


class Robot:
    """Directive runner backed by a provider, a toolset and a thread pool.

    Args:
        provider: The LLM backend.
        tools: Tool implementation: an instance, or a class with a no-arg
            constructor. None means no tools.
        config: Engine policy.
        store: Conversation store; a fresh one by default.
        trace: Tag filter for debug tracing.
        max_workers: Worker threads for concurrent objectives.
    """

    def __init__(
        self,
        provider: Provider,
        tools: object | type | None = None,
        *,
        config: OrchestratorConfig | None = None,
        store: ConversationStore | None = None,
        trace: TraceContext | None = None,
        max_workers: int = 4,
    ) -> None:
        self._trace = trace or TraceContext()
        registry, instance = self._register_tools(tools)
        self._directives = DirectiveRegistry()
        self._orchestrator = Orchestrator(
            provider,
            registry,
            instance,
            config=config,
            store=store or ConversationStore(self._trace),
            trace=self._trace,
        )
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="directive")
        self._closed = False

    @staticmethod
    def _register_tools(tools: object | type | None) -> tuple[ToolRegistry, object | None]:
        if tools is None:
            return ToolRegistry(), None
        if isinstance(tools, type):
            registry = ToolRegistry.from_type(tools)
            try:
                instance = tools()
            except TypeError as exc:
                raise SetupError(
                    f"Cannot instantiate tool class {tools.__name__}: {exc}. "
                    "Pass an instance instead."
                ) from exc
            return registry, instance
        return ToolRegistry.from_type(type(tools)), tools

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def orchestrator(self) -> Orchestrator:
        return self._orchestrator

    @property
    def store(self) -> ConversationStore:
        return self._orchestrator.store

    @property
    def directives(self) -> DirectiveRegistry:
        return self._directives

    @property
    def tools(self) -> ToolRegistry:
        return self._orchestrator.registry

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add(self, directive: Directive) -> Directive:
        """Register one directive explicitly.

        Raises:
            SetupError: If the provider lacks the directive's feature or
                a different directive already has the name.
        """
        self._check_feature(directive)
        if directive.name in self._directives:
            if self._directives.get(directive.name) == directive:
                return directive
            raise SetupError(f"Directive {directive.name!r} is already bound differently")
        return self._directives.add(directive)

    def bind(self, interface: type) -> BoundInterface:
        """Compile every public method of ``interface`` and return a proxy.

        Raises:
            SetupError: If a method is not a valid directive or needs a
                feature the provider does not support.
        """
        names = []
        for attr, member in inspect.getmembers(interface, inspect.isfunction):
            if attr.startswith("_"):
                continue
            names.append(self.add(compile_directive(member)).name)
        self._trace.debug("robot", "bound %s: %s", interface.__name__, names)
        return BoundInterface(self, interface, names)

    def _check_feature(self, directive: Directive) -> None:
        supported = getattr(self._orchestrator.provider, "features", frozenset())
        if directive.feature not in supported:
            raise SetupError(
                f"Directive {directive.name!r} needs {directive.feature.value}, which "
                f"{type(self._orchestrator.provider).__name__} does not support"
            )

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def ask(self, name: str, *args: Any, conversation: int | None = None) -> Answer:
        """Invoke a directive by name.

        The objective is pinned to ``conversation`` (the current one by
        default) at submission time.
        """
        if self._closed:
            raise RuntimeError("Robot is closed")
        objective = self._directives.get(name).bind(*args)
        objective.conversation_index = (
            self.store.current_index if conversation is None else conversation
        )
        return self.submit(objective)

    def submit(self, objective: Objective) -> Answer:
        """Run a prepared objective on the worker pool."""
        future = self._pool.submit(self._fulfil, objective)
        return Answer(future, objective.cancel_event)

    def _fulfil(self, objective: Objective) -> Any:
        self._trace.debug("robot", "objective %s: %s%r", objective.id, objective.name, objective.arguments)
        try:
            result = self._orchestrator.run(objective)
            value = objective.parse(result.text)
        except ObjectiveCancelledError:
            logger.info("Objective %s (%s) cancelled", objective.id, objective.name)
            raise
        except DirectiveError as exc:
            logger.error("Objective %s (%s) failed: %s", objective.id, objective.name, exc)
            raise
        self._trace.debug("robot", "objective %s answered %r", objective.id, value)
        return value

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def new_conversation(self) -> int:
        return self.store.new_conversation()

    def switch_conversation(self, index: int) -> None:
        self.store.switch_conversation(index)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self, wait: bool = True) -> None:
        """Shut the worker pool down and close the provider."""
        if self._closed:
            return
        self._closed = True
        self._pool.shutdown(wait=wait, cancel_futures=not wait)
        self._orchestrator.provider.close()

    def __enter__(self) -> Robot:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
