import logging

logger = logging.getLogger(__name__)


class BuiltinCommands:
    def __init__(self, runtime):
        self.runtime = runtime
        self._handlers = {
            "exit": self.cmd_exit,
            "save": self.cmd_save,
            "history": self.cmd_history,
            "help": self.cmd_help,
        }

    def list_commands(self) -> list[str]:
        return sorted(self._handlers.keys())

    def has_command(self, name: str) -> bool:
        return name in self._handlers

    def handle(self, name: str, args: str) -> bool:
        """Run a built-in; returns False when the session should end."""
        handler = self._handlers.get(name)
        if not handler:
            return True
        return handler(args)

    def cmd_exit(self, args: str) -> bool:
        agent_name = self.runtime.config.agent.name
        self.runtime.terminal.write(
            f"{agent_name}: Take care! I really enjoyed helping you today. "
            "Feel free to come back anytime! ✨"
        )
        return False

    def cmd_save(self, args: str) -> bool:
        try:
            path = self.runtime.save()
        except OSError as e:
            logger.error(f"Could not save conversation: {e}")
            self.runtime.terminal.write(f"❌ Could not save conversation: {e}")
            return True
        self.runtime.terminal.write(f"💾 Conversation saved to {path.name}")
        return True

    def cmd_history(self, args: str) -> bool:
        session = self.runtime.session
        write = self.runtime.terminal.write
        write(f"📊 Current conversation: {len(session.history)} messages")
        write(f"🆔 Conversation ID: {session.id}")
        write(f"🔄 Resumed: {'Yes' if session.resumed else 'No'}")
        if session.title:
            write(f"💭 Current title: \"{session.title}\"")
        return True

    def cmd_help(self, args: str) -> bool:
        write = self.runtime.terminal.write
        write("\nCommands:")
        for name in self.list_commands():
            write(f"  {name}")
        write()
        return True
