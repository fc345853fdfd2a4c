"""Orchestrator: runs objectives against a provider with a tool-use strategy."""

from directive.orchestrator.config import OrchestratorConfig
from directive.orchestrator.loop import Orchestrator
from directive.orchestrator.models import ExchangeResult, RoundRecord

__all__ = [
    "Orchestrator",
    "OrchestratorConfig",
    "ExchangeResult",
    "RoundRecord",
]
