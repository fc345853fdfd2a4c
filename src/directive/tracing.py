"""Explicit debug tracing context.

A TraceContext is handed to the orchestrator, the conversation store and
the robot facade. It decides which tagged debug output is emitted, so two
robots in one process can trace different subsystems.

Tags in use: ``"robot"``, ``"orchestrator"``, ``"messenger"``,
``"dispatcher"``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field


@dataclass(frozen=True)
class TraceContext:
    """Tag filter plus the logger that tagged output goes to.

    Attributes:
        tags: Enabled tags. ``None`` enables every tag; an empty set
            disables tagged output entirely.
        logger: Destination logger for tagged output.
    """

    tags: frozenset[str] | None = None
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("directive.trace")
    )

    @classmethod
    def only(cls, *tags: str) -> TraceContext:
        """Trace just the given tags."""
        return cls(tags=frozenset(t.lower() for t in tags))

    @classmethod
    def silent(cls) -> TraceContext:
        return cls(tags=frozenset())

    def enabled(self, tag: str) -> bool:
        if self.tags is None:
            return True
        return tag.lower() in self.tags

    def debug(self, tag: str, msg: str, *args: object) -> None:
        """Log ``msg`` at DEBUG level when ``tag`` is enabled."""
        if self.enabled(tag) and self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("[%s] " + msg, tag.capitalize(), *args)
