"""Orchestrator: runs one objective to completion.

Stores the objective's setup messages, then loops: send the conversation
and declared tools to the provider, record the reply, let the tool-use
strategy fold it into the conversation, and repeat until the strategy
completes or a round/retry limit is hit.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from directive.exceptions import (
    DirectiveError,
    ObjectiveCancelledError,
    RetryExhaustedError,
    RoundLimitExceededError,
)
from directive.messenger import ConversationStore
from directive.orchestrator.config import OrchestratorConfig
from directive.orchestrator.models import ExchangeResult, RoundRecord
from directive.strategies.base import ToolExchange, ToolResultAction
from directive.toolkit.executor import ToolDispatcher
from directive.toolkit.registry import ToolRegistry
from directive.tracing import TraceContext

if TYPE_CHECKING:
    from directive.llm.protocols import Provider
    from directive.models.directive import Objective

logger = logging.getLogger(__name__)


class Orchestrator:
    """Ties provider, strategy, dispatcher and conversation store together.

    Usage::

        orch = Orchestrator(provider, ToolRegistry.from_type(Calculator), Calculator())
        result = orch.run(directive.bind("What is 2 + 3?"))
        print(result.text, len(result.rounds))
    """

    def __init__(
        self,
        provider: Provider,
        registry: ToolRegistry | None = None,
        tools: object | None = None,
        config: OrchestratorConfig | None = None,
        store: ConversationStore | None = None,
        trace: TraceContext | None = None,
    ) -> None:
        self._provider = provider
        self._registry = registry or ToolRegistry()
        self._tools = tools
        self._config = config or OrchestratorConfig()
        self._trace = trace or TraceContext()
        self._store = store or ConversationStore(self._trace)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def run(self, objective: Objective, cancel_event: threading.Event | None = None) -> ExchangeResult:
        """Fulfil ``objective`` and return the final text with its rounds.

        Cancellation is only observed between rounds; a round that has
        started always finishes its tool dispatch.

        Raises:
            ObjectiveCancelledError: If cancelled before a round.
            RetryExhaustedError: After more than ``max_retries``
                consecutive retry rounds.
            RoundLimitExceededError: If ``max_rounds`` rounds did not
                complete the exchange.
            ParseError: If model output is malformed.
            ProviderError: Propagated from the provider unchanged.
        """
        config = self._config
        cancel = cancel_event or objective.cancel_event
        strategy = config.strategy
        tools = self._registry.configs() if config.tools_allowed else []
        declared = strategy.declared_tools(tools)
        dispatcher = ToolDispatcher(
            self._registry,
            self._tools,
            loop_detection=config.loop_detection,
            trace=self._trace,
        )

        with self._store.exclusive(objective.conversation_index) as index:
            self._check_cancelled(objective, cancel, 1)
            setup = objective.messages(
                strategy.request_message(tools),
                use_format_message=config.use_format_message,
                user_message_primer=config.user_message_primer,
                message_filter=config.message_filter,
            )
            self._store.extend(setup, index)
            self._trace.debug(
                "orchestrator",
                "objective %s (%s) on conversation %d with %d tool(s), strategy %r",
                objective.id, objective.name, index, len(declared), strategy,
            )

            rounds: list[RoundRecord] = []
            retries = 0
            for round_number in range(1, config.max_rounds + 1):
                self._check_cancelled(objective, cancel, round_number)

                response = self._provider.send(self._store.messages(index), declared)
                reply = response.to_message()

                exchange = ToolExchange(
                    dispatcher=dispatcher,
                    history=objective.history,
                    conversation=(*self._store.messages(index), reply),
                    include_seek_completion_message=config.include_seek_completion_message,
                )
                try:
                    outcome = strategy.handle(exchange, response)
                except DirectiveError:
                    self._store.append(reply, index)
                    raise
                if not outcome.replaces_response:
                    self._store.append(reply, index)
                self._store.extend(outcome.messages, index)

                record = RoundRecord(
                    round=round_number,
                    response_text=response.text,
                    requested_calls=tuple(str(c) for c in response.requested_calls),
                    action=outcome.action,
                    messages=outcome.messages,
                    diagnosis=outcome.diagnosis,
                )
                rounds.append(record)
                self._trace.debug(
                    "orchestrator", "round %d of %s: %s", round_number, objective.id, outcome.action.value
                )
                if config.on_round is not None:
                    config.on_round(record)

                if outcome.action is ToolResultAction.COMPLETE:
                    return ExchangeResult(
                        text=outcome.final_text or "",
                        rounds=tuple(rounds),
                        history=objective.history,
                        conversation_index=index,
                        objective_id=objective.id,
                    )
                if outcome.action is ToolResultAction.RETRY:
                    retries += 1
                    if retries > config.max_retries:
                        logger.warning(
                            "Objective %s gave up after %d retry round(s): %s",
                            objective.id, retries, outcome.diagnosis,
                        )
                        raise RetryExhaustedError(retries, outcome.diagnosis)
                else:
                    retries = 0

            logger.warning("Objective %s hit the round limit (%d)", objective.id, config.max_rounds)
            raise RoundLimitExceededError(config.max_rounds)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _check_cancelled(objective: Objective, cancel: threading.Event, round_number: int) -> None:
        if cancel.is_set():
            raise ObjectiveCancelledError(
                f"Objective {objective.id} cancelled before round {round_number}"
            )
