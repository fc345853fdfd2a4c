"""Tool registry and dispatcher.

Discovers tools on a caller-supplied class, describes them to providers,
and executes model-requested calls with loop detection.
"""

from directive.toolkit.executor import ToolDispatcher
from directive.toolkit.models import (
    CallHistory,
    CallRecord,
    CallResult,
    Error,
    Parameter,
    Recalled,
    Success,
    ToolConfig,
)
from directive.toolkit.registry import ToolRegistry, build_parameters, register, tool, toolset

__all__ = [
    "ToolDispatcher",
    "CallHistory",
    "CallRecord",
    "CallResult",
    "Error",
    "Parameter",
    "Recalled",
    "Success",
    "ToolConfig",
    "ToolRegistry",
    "build_parameters",
    "register",
    "tool",
    "toolset",
]
