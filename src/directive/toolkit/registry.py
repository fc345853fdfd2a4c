"""Tool discovery and lookup.

Methods become tools either by carrying the ``@tool`` marker or by living
on a class decorated with ``@toolset``::

    class Calculator:
        @tool(description="Adds two numbers", parameters=["augend", "addend"])
        def add(self, a: int, b: int) -> int:
            return a + b

    registry = ToolRegistry.from_type(Calculator)
"""

from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from directive.exceptions import SetupError, ToolNotFoundError
from directive.parsing.coercion import Kind, TypeSpec, type_spec
from directive.toolkit.models import Parameter, ToolConfig

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

logger = logging.getLogger(__name__)

_TOOL_ATTR = "__directive_tool__"
_TOOLSET_ATTR = "__directive_toolset__"

# Equality, hashing and string conversion are never tools.
_EXCLUDED = frozenset({"__eq__", "__ne__", "__hash__", "__str__", "__repr__", "__format__"})


@dataclass(frozen=True)
class ToolMarker:
    """Metadata attached to a method by ``@tool``."""

    name: str | None = None
    description: str = ""
    parameters: tuple[str, ...] = ()


def tool(
    func: Callable | None = None,
    *,
    name: str | None = None,
    description: str = "",
    parameters: Sequence[str] = (),
) -> Any:
    """Mark a method as a tool.

    Usable bare (``@tool``) or with metadata (``@tool(description=...)``).
    ``parameters`` holds positional descriptions for the method's
    parameters, in order.
    """
    marker = ToolMarker(name=name, description=description, parameters=tuple(parameters))

    def decorate(f: Callable) -> Callable:
        setattr(f, _TOOL_ATTR, marker)
        return f

    if func is not None:
        return decorate(func)
    return decorate


def toolset(cls: type) -> type:
    """Mark every public method of ``cls`` as a tool."""
    setattr(cls, _TOOLSET_ATTR, True)
    return cls


def build_parameters(
    func: Callable,
    descriptions: Sequence[str] = (),
    *,
    skip_first: bool = True,
) -> tuple[tuple[Parameter, ...], Any]:
    """Build Parameters from a function signature.

    Returns the parameters plus the resolved return annotation
    (``inspect.Signature.empty`` when absent).

    Raises:
        SetupError: On unannotated, keyword-only or ``**kwargs`` parameters.
    """
    owner = getattr(func, "__qualname__", repr(func))
    try:
        hints = typing.get_type_hints(func)
    except (NameError, TypeError) as exc:
        raise SetupError(f"Cannot resolve annotations of {owner}: {exc}") from exc

    params = list(inspect.signature(func).parameters.values())
    if skip_first and params:
        params = params[1:]

    result: list[Parameter] = []
    for index, param in enumerate(params):
        if param.kind in (param.KEYWORD_ONLY, param.VAR_KEYWORD):
            raise SetupError(f"{owner}: only positional parameters are supported ({param.name})")
        if param.name not in hints:
            raise SetupError(f"{owner}: parameter {param.name!r} has no type annotation")
        description = descriptions[index] if index < len(descriptions) else ""
        spec = type_spec(hints[param.name])
        if param.kind is param.VAR_POSITIONAL:
            if spec.is_collection:
                raise SetupError(f"{owner}: *{param.name} elements must be scalars")
            result.append(
                Parameter(param.name, TypeSpec(Kind.LIST, element=spec), description, required=False, vararg=True)
            )
            continue
        has_default = param.default is not param.empty
        result.append(
            Parameter(
                param.name,
                spec,
                description,
                required=not has_default,
                default=param.default if has_default else None,
            )
        )
    return tuple(result), hints.get("return", inspect.Signature.empty)


def _return_label(annotation: Any) -> str:
    if annotation is inspect.Signature.empty:
        return ""
    if annotation is type(None):
        return "None"
    return getattr(annotation, "__name__", None) or str(annotation).replace("typing.", "")


def register(impl_type: type) -> list[ToolConfig]:
    """Collect the tools of ``impl_type``, inherited methods included.

    Raises:
        SetupError: If a tool method has unsupported parameters.
    """
    is_toolset = bool(getattr(impl_type, _TOOLSET_ATTR, False))
    configs: list[ToolConfig] = []
    for attribute, member in inspect.getmembers(impl_type, inspect.isfunction):
        if attribute in _EXCLUDED:
            continue
        marker: ToolMarker | None = getattr(member, _TOOL_ATTR, None)
        if marker is None:
            if not is_toolset or attribute.startswith("_"):
                continue
            marker = ToolMarker()
        is_static = isinstance(inspect.getattr_static(impl_type, attribute), staticmethod)
        parameters, returns = build_parameters(member, marker.parameters, skip_first=not is_static)
        configs.append(
            ToolConfig(
                name=marker.name or attribute,
                description=marker.description or inspect.getdoc(member) or "",
                parameters=parameters,
                attribute=attribute,
                returns=_return_label(returns),
            )
        )
    logger.debug("Registered %d tool(s) from %s", len(configs), impl_type.__name__)
    return configs


class ToolRegistry:
    """Name -> ToolConfig lookup.

    Usage::

        registry = ToolRegistry.from_type(Calculator)
        config = registry.resolve("add")
    """

    def __init__(self, configs: Iterable[ToolConfig] = ()) -> None:
        self._tools: dict[str, ToolConfig] = {}
        for config in configs:
            self.add(config)

    @classmethod
    def from_type(cls, impl_type: type) -> ToolRegistry:
        return cls(register(impl_type))

    def add(self, config: ToolConfig) -> None:
        if config.name in self._tools:
            raise SetupError(f"Duplicate tool name: {config.name}")
        self._tools[config.name] = config

    def resolve(self, name: str) -> ToolConfig:
        """Look up a tool by name.

        Raises:
            ToolNotFoundError: If no tool has that name.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def names(self) -> list[str]:
        return list(self._tools)

    def configs(self) -> list[ToolConfig]:
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolConfig]:
        return iter(self.configs())
