"""Directive: typed LLM directives with native tool use.

Declare an interface method returning ``Answer[T]``, bind it to a provider
and a toolset, and call it like any other method.
"""

from directive._version import __version__

# Caller facade
from directive.robot import BoundInterface, Robot
from directive.defaults import Chat, ChatMarkdown, NoTools

# Directives and answers
from directive.answer import Answer, formatting_instructions, formatting_message, parse_answer
from directive.models.directive import (
    Directive,
    DirectiveRegistry,
    Feature,
    Objective,
    compile_directive,
    from_system,
    from_user,
    parameters,
    use,
)

# Conversation primitives
from directive.protocols import (
    CommonResponse,
    FunctionCall,
    Message,
    Role,
    assistant_message,
    function_message,
    system_message,
    user_message,
)
from directive.messenger import ConversationStore, MessageFilter

# Tools
from directive.toolkit import (
    CallHistory,
    CallResult,
    Error,
    Parameter,
    Recalled,
    Success,
    ToolConfig,
    ToolDispatcher,
    ToolRegistry,
    tool,
    toolset,
)

# Strategies and orchestration
from directive.strategies import BackAndForth, FillInTheBlank, ToolResultAction, ToolUseStrategy
from directive.orchestrator import ExchangeResult, Orchestrator, OrchestratorConfig, RoundRecord

# Parsing
from directive.parsing import Kind, TypeSpec, extract, parse_call, type_spec

# Providers
from directive.llm import AnthropicProvider, OpenAIProvider, Provider, ProviderSettings

# Tracing
from directive.tracing import TraceContext

# Exceptions
from directive.exceptions import (
    AnswerParseError,
    ArgumentBindingError,
    CallSyntaxError,
    CoercionError,
    ConversationIndexError,
    DirectiveError,
    DirectiveNotFoundError,
    ObjectiveCancelledError,
    ParseError,
    RetryExhaustedError,
    RoundLimitExceededError,
    SetupError,
    TemplateFillError,
    TemplateSyntaxError,
    ToolExecutionError,
    ToolNotFoundError,
    UnsupportedArgumentError,
    UnsupportedTypeError,
)
from directive.llm.errors import (
    ProviderAuthError,
    ProviderConfigError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
)

__all__ = [
    "__version__",
    # Facade
    "Robot",
    "BoundInterface",
    "Chat",
    "ChatMarkdown",
    "NoTools",
    # Directives and answers
    "Answer",
    "formatting_instructions",
    "formatting_message",
    "parse_answer",
    "Directive",
    "DirectiveRegistry",
    "Feature",
    "Objective",
    "compile_directive",
    "from_system",
    "from_user",
    "parameters",
    "use",
    # Conversation
    "CommonResponse",
    "FunctionCall",
    "Message",
    "Role",
    "assistant_message",
    "function_message",
    "system_message",
    "user_message",
    "ConversationStore",
    "MessageFilter",
    # Tools
    "CallHistory",
    "CallResult",
    "Error",
    "Parameter",
    "Recalled",
    "Success",
    "ToolConfig",
    "ToolDispatcher",
    "ToolRegistry",
    "tool",
    "toolset",
    # Strategies and orchestration
    "BackAndForth",
    "FillInTheBlank",
    "ToolResultAction",
    "ToolUseStrategy",
    "ExchangeResult",
    "Orchestrator",
    "OrchestratorConfig",
    "RoundRecord",
    # Parsing
    "Kind",
    "TypeSpec",
    "extract",
    "parse_call",
    "type_spec",
    # Providers
    "AnthropicProvider",
    "OpenAIProvider",
    "Provider",
    "ProviderSettings",
    # Tracing
    "TraceContext",
    # Exceptions
    "AnswerParseError",
    "ArgumentBindingError",
    "CallSyntaxError",
    "CoercionError",
    "ConversationIndexError",
    "DirectiveError",
    "DirectiveNotFoundError",
    "ObjectiveCancelledError",
    "ParseError",
    "RetryExhaustedError",
    "RoundLimitExceededError",
    "SetupError",
    "TemplateFillError",
    "TemplateSyntaxError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "UnsupportedArgumentError",
    "UnsupportedTypeError",
    "ProviderAuthError",
    "ProviderConfigError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderResponseError",
]
