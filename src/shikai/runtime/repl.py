import logging
from enum import Enum

from shikai.conversations.catalog import ConversationLoadError, find_conversation
from shikai.conversations.session import ConversationSession
from shikai.conversations.titles import CONTINUE_SENTINEL
from shikai.runtime.builtins import BuiltinCommands
from shikai.runtime.router import InputRouter
from shikai.runtime.terminal import display_conversation_context, select_conversation

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    SELECTING = "selecting"
    ACTIVE = "active"
    CONTINUATION_GATE = "continuation_gate"
    TERMINATED = "terminated"


class ChatREPL:
    """Drives one conversation from selection to the final save.

    SELECTING picks or creates the session, ACTIVE runs one turn per input line,
    CONTINUATION_GATE asks whether to keep going after the model used up its step
    budget, and TERMINATED writes the file one last time.
    """

    def __init__(self, runtime):
        self.runtime = runtime
        self.terminal = runtime.terminal
        self.builtins = BuiltinCommands(runtime)
        self.router = InputRouter(self.builtins)
        self.state = SessionState.SELECTING
        self.force_continue = False

    def run(
        self,
        *,
        resume_id: str | None = None,
        resume_last: bool = False,
    ) -> ConversationSession:
        agent_name = self.runtime.config.agent.name
        self.terminal.write(
            f"✨ Hi there! I'm {agent_name}, your personal assistant! Ready to help you with anything! 💫\n"
        )

        try:
            self._select(resume_id=resume_id, resume_last=resume_last)
            self.state = SessionState.ACTIVE
            while self.state is not SessionState.TERMINATED:
                if self.state is SessionState.ACTIVE:
                    self.state = self._active_step()
                elif self.state is SessionState.CONTINUATION_GATE:
                    self.state = self._continuation_gate()
        finally:
            self.state = SessionState.TERMINATED
            self._shutdown()
        return self.runtime.session

    def _select(self, *, resume_id: str | None, resume_last: bool) -> None:
        file_name = None
        if resume_id:
            path = find_conversation(self.runtime.log_dir, resume_id)
            if path is None:
                self.terminal.write(f"🤔 No saved conversation with id {resume_id}, starting fresh.\n")
            else:
                file_name = path.name
        elif resume_last:
            conversations = self.runtime.list_conversations()
            if conversations:
                file_name = conversations[0].file_name
        else:
            try:
                selected = select_conversation(self.terminal, self.runtime.list_conversations())
            except EOFError:
                selected = None
            if selected is not None:
                file_name = selected.file_name

        if file_name:
            try:
                session = self.runtime.resume(file_name)
            except ConversationLoadError as e:
                logger.error(f"{e}")
                self.terminal.write("⚠️  I couldn't read that conversation, so let's start fresh.\n")
            else:
                display_conversation_context(
                    self.terminal,
                    session.history,
                    self.runtime.config.agent.name,
                    session.title,
                )
                return

        self.runtime.start_new()
        self.terminal.write(
            "🌟 Perfect! Let's start a fresh conversation! What would you like to work on today?\n"
        )

    def _next_input(self) -> str:
        if self.force_continue:
            self.force_continue = False
            return CONTINUE_SENTINEL
        return self.terminal.ask("You: ").strip()

    def _active_step(self) -> SessionState:
        try:
            user_input = self._next_input()
        except (EOFError, KeyboardInterrupt):
            self.terminal.write()
            return SessionState.TERMINATED

        if not user_input:
            return SessionState.ACTIVE

        route = self.router.route(user_input)
        if route.kind == "builtin":
            if self.builtins.handle(route.name, route.args):
                return SessionState.ACTIVE
            return SessionState.TERMINATED
        if route.kind == "unknown":
            self.terminal.write(f"Unknown command: /{route.name}. Type help for available commands.")
            return SessionState.ACTIVE

        try:
            result = self.runtime.process_user_message(route.args)
        except KeyboardInterrupt:
            self.terminal.write("\n\n⚠️  Interrupted")
            return SessionState.TERMINATED
        except Exception as e:
            logger.exception("Model turn failed")
            self.terminal.write(f"\n❌ Error talking to the model: {e}")
            return SessionState.TERMINATED

        if result.step_limit_reached:
            return SessionState.CONTINUATION_GATE
        return SessionState.ACTIVE

    def _continuation_gate(self) -> SessionState:
        max_steps = self.runtime.max_steps
        self.terminal.write(f"\n⚠️  Reached maximum steps ({max_steps}). Continue? (y/n): ", end="")
        try:
            answer = self.terminal.read_line().strip().lower()
        except (EOFError, KeyboardInterrupt) as e:
            logger.error(f"Could not read continuation answer: {e!r}")
            self.terminal.write("\n⏹️  Stopping due to input error.")
            return SessionState.TERMINATED

        if answer in ("y", "yes"):
            self.terminal.write(f"⚠️  Reached maximum steps ({max_steps}). Continuing...")
            self.force_continue = True
            return SessionState.ACTIVE

        self.terminal.write(f"⚠️  Reached maximum steps ({max_steps}). Stopped by user.")
        return SessionState.TERMINATED

    def _shutdown(self) -> None:
        try:
            if self.runtime.session is not None:
                path = self.runtime.save()
                self.terminal.write(f"💾 Final conversation saved to {path.name}")
        except OSError as e:
            logger.error(f"Final save failed: {e}")
        finally:
            self.terminal.close()
