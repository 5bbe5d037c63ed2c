"""Line-prefix parser for ``Explanation:``/``Command:`` replies."""

from __future__ import annotations

from .models import ParsedSuggestion

COMMAND_MARKER = "Command: "
EXPLANATION_MARKER = "Explanation: "


def parse_reply(reply_text: str) -> ParsedSuggestion:
    """Split a model reply into an explanation and an optional command.

    The last ``Command:`` line wins. An ``Explanation:`` line discards any
    free text collected before it. Never raises: output without markers
    degrades to the whole reply as the explanation and no command.
    """
    command: str | None = None
    explanation = ""
    for line in reply_text.split("\n"):
        line = line.removesuffix("\r")
        if line.startswith(COMMAND_MARKER):
            command = line[len(COMMAND_MARKER) :].strip()
        elif line.startswith(EXPLANATION_MARKER):
            explanation = line[len(EXPLANATION_MARKER) :].strip()
        else:
            explanation += line + "\n"
    return ParsedSuggestion(explanation=explanation.strip(), command=command)
