import logging
from typing import Protocol

from shikai.conversations.schema import Message
from shikai.conversations.session import ConversationSession

logger = logging.getLogger(__name__)

CONTINUE_SENTINEL = "continue"


class TitleSummarizer(Protocol):
    def summarize(
        self,
        history: list[Message],
        is_first_message: bool = False,
        current_title: str = "",
    ) -> str:
        ...


class TitleScheduler:
    """Keeps a session's title (and therefore its file name) in step with the chat.

    Titles are cosmetic: every summarizer failure is logged and leaves the current
    title and file untouched.
    """

    def __init__(
        self,
        session: ConversationSession,
        summarizer: TitleSummarizer,
        title_interval: int,
        is_first_user_input: bool | None = None,
    ):
        self.session = session
        self.summarizer = summarizer
        self.title_interval = title_interval
        if is_first_user_input is None:
            is_first_user_input = not session.resumed or not session.title
        self.is_first_user_input = is_first_user_input

    @property
    def current_title(self) -> str:
        return self.session.title

    @property
    def message_count(self) -> int:
        return self.session.message_count

    def should_update(self) -> bool:
        return (
            self.message_count > 0
            and self.message_count % self.title_interval == 0
            and not self.is_first_user_input
            and bool(self.current_title)
        )

    def generate_initial(self, user_input: str) -> bool:
        if not self.is_first_user_input:
            return False
        if user_input == CONTINUE_SENTINEL or not user_input.strip():
            return False

        print("\n✨ Let me create a title for our conversation...")
        try:
            title = self.summarizer.summarize(self.session.history, is_first_message=True)
        except Exception as e:
            logger.warning(f"Could not create a title: {e}")
            print("💡 Don't worry, I'll continue without a custom title!")
            return False
        finally:
            self.is_first_user_input = False

        old_path = self.session.file_path
        self.session.retitle(title)
        print(f"🎯 Our conversation topic: \"{title}\"")
        if self.session.file_path != old_path:
            print(f"📄 Conversation saved as: {self.session.file_path.name}")
        return True

    def regenerate(self) -> bool:
        try:
            title = self.summarizer.summarize(self.session.history)
        except Exception as e:
            logger.warning(f"Could not generate a title: {e}")
            return False
        if not title.strip():
            return False
        self.session.retitle(title)
        self.is_first_user_input = False
        return True

    def update(self) -> bool:
        current = self.current_title
        try:
            new_title = self.summarizer.summarize(
                self.session.history, is_first_message=False, current_title=current
            )
        except Exception as e:
            logger.warning(f"Could not update the title: {e}")
            print("💡 Continuing with current title...")
            return False

        if not new_title.strip() or new_title == current:
            print(f"✓ Title remains: \"{current}\"")
            return False

        old_path = self.session.file_path
        self.session.retitle(new_title)
        print(f"📝 Title updated: \"{current}\" → \"{new_title}\"")
        if self.session.file_path != old_path:
            print(f"📄 File renamed to: {self.session.file_path.name}")
        return True

    def maybe_update(self) -> bool:
        if not self.should_update():
            return False
        print("\n🔄 Updating our conversation title...")
        return self.update()
