import logging
from typing import Protocol

from shikai.conversations.schema import Message, content_text
from shikai.prompts import Prompts, clean_title

logger = logging.getLogger(__name__)

RECENT_MESSAGES = 10
EMPTY_CONVERSATION_TITLE = "New Chat"


class TextGenerator(Protocol):
    def generate(self, prompt: str, max_tokens: int = 50) -> str:
        ...


def render_transcript(history: list[Message], limit: int = RECENT_MESSAGES) -> str:
    recent = [m for m in history if m.role in ("user", "assistant")][-limit:]
    lines = []
    for message in recent:
        text = content_text(message.content)
        if message.role == "user":
            lines.append(f"User: {text}")
        elif text:
            lines.append(f"Assistant: {text}")
    return "\n".join(lines)


class Summarizer:
    """Produces short conversation titles with the model client.

    Errors from the client are not caught here; callers decide how to recover.
    """

    def __init__(self, client: TextGenerator, max_tokens: int = 50):
        self.client = client
        self.max_tokens = max_tokens

    def summarize(
        self,
        history: list[Message],
        is_first_message: bool = False,
        current_title: str = "",
    ) -> str:
        transcript = render_transcript(history)
        if not transcript:
            return EMPTY_CONVERSATION_TITLE

        if is_first_message:
            prompt = Prompts.title_first.format(conversation=transcript)
        elif current_title:
            prompt = Prompts.title_refine.format(
                conversation=transcript, current_title=current_title
            )
        else:
            prompt = Prompts.title_generic.format(conversation=transcript)

        raw = self.client.generate(prompt, max_tokens=self.max_tokens)
        title = clean_title(raw)
        logger.debug(f"Summarized conversation as {title!r} (raw: {raw!r})")
        return title
