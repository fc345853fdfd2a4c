"""Ready-made interfaces for common directives."""

from __future__ import annotations

from directive.answer.answer import Answer
from directive.models.directive import from_system

_ASSISTANT = (
    "You are an helpful assistant. If you guess the answer, you should always "
    "use the tool if available."
)


class NoTools:
    """Empty toolset, for robots that should never call tools."""


class Chat:
    @from_system(_ASSISTANT + " If you are uncertain about the answer, state that.\n")
    def chat(self, prompt: str) -> Answer[str]: ...


class ChatMarkdown:
    @from_system(
        _ASSISTANT
        + " Your answer must be in Markdown formating. If you are uncertain about "
        "the answer, state that.\n"
    )
    def chat(self, prompt: str) -> Answer[str]: ...
