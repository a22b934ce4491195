"""Prompt assembly for a single agent run."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from .message import (
    AssistantMessage,
    ContentPart,
    ImagePart,
    Message,
    SystemMessage,
    TextPart,
    UserMessage,
)

if TYPE_CHECKING:
    from .options import PastedImage
    from .session import ChatTurn

# Turns with these roles are shown to the user but never replayed to the model.
EXCLUDED_ROLES = frozenset({"system", "error"})


def build_messages(
    system_prompt: str,
    history: Sequence[ChatTurn],
    text: str,
    images: Sequence[PastedImage] | None = None,
) -> list[Message]:
    """Build the ordered message list for the model.

    Args:
        system_prompt: Prompt placed first in the list
        history: Prior conversation turns, oldest first
        text: The new user input
        images: Optional image attachments for the new user turn

    Returns:
        [system, *filtered history, new user turn]. The new turn is a plain
        string without images, otherwise a text part followed by one image
        part per attachment.
    """
    messages: list[Message] = [SystemMessage(content=system_prompt)]

    for turn in history:
        if turn.role in EXCLUDED_ROLES:
            continue
        if turn.role == "user":
            messages.append(UserMessage(content=turn.content))
        else:
            messages.append(AssistantMessage(content=turn.content))

    if images:
        parts: list[ContentPart] = [TextPart(text=text)]
        parts.extend(ImagePart(url=img.image, detail="auto") for img in images)
        messages.append(UserMessage(content=parts))
    else:
        messages.append(UserMessage(content=text))

    return messages
