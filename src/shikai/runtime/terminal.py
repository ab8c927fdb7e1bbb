from shikai.conversations.schema import ConversationMetadata, Message, content_text

RULE_WIDTH = 80
CONTEXT_MESSAGES = 4
CONTEXT_PREVIEW_CHARS = 100


class Terminal:
    """Line-oriented console I/O.

    ``ask`` shows a prompt, ``read_line`` reads a bare line for callers that already
    printed their own question. Both raise ``EOFError`` once the terminal is closed.
    """

    def __init__(self):
        self.closed = False

    def ask(self, prompt: str) -> str:
        if self.closed:
            raise EOFError("terminal closed")
        return input(prompt)

    def read_line(self) -> str:
        if self.closed:
            raise EOFError("terminal closed")
        return input()

    def write(self, text: str = "", end: str = "\n") -> None:
        print(text, end=end, flush=True)

    def confirm(self, command: str) -> bool:
        self.write(f"\n🔧 Command to run: {command}")
        try:
            answer = self.ask("Execute? (y/n): ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")

    def close(self) -> None:
        self.closed = True


def format_conversation_row(conversation: ConversationMetadata) -> str:
    last_chat = conversation.last_modified.strftime("%m/%d %H:%M")
    return (
        f"{conversation.display_id:>2} | {last_chat:<19} | "
        f"{conversation.preview:<35} | {conversation.message_count}"
    )


def display_conversation_selection(terminal: Terminal, conversations: list[ConversationMetadata]) -> None:
    if not conversations:
        terminal.write("🌟 This looks like our first time chatting! I'm excited to meet you!\n")
        return

    terminal.write("🔍 Here are our previous conversations - which one would you like to continue?")
    terminal.write("─" * RULE_WIDTH)
    terminal.write("ID | Last Chat           | Topic / Last Message                | Messages")
    terminal.write("─" * RULE_WIDTH)
    for conversation in conversations:
        terminal.write(format_conversation_row(conversation))
    terminal.write("─" * RULE_WIDTH)
    terminal.write(
        f"✨ Choose a conversation number (1-{len(conversations)}) to continue, "
        "or press Enter to start fresh:"
    )


def select_conversation(
    terminal: Terminal, conversations: list[ConversationMetadata]
) -> ConversationMetadata | None:
    display_conversation_selection(terminal, conversations)
    if not conversations:
        return None

    choice = terminal.ask("Your choice: ").strip()
    if not choice:
        return None
    for conversation in conversations:
        if str(conversation.display_id) == choice:
            return conversation
    terminal.write("🤔 Hmm, that doesn't look right. Let's start fresh instead!\n")
    return None


def display_conversation_context(
    terminal: Terminal,
    history: list[Message],
    agent_name: str,
    title: str = "",
) -> None:
    terminal.write("\n🎉 Great! I'm back to continue our conversation!")
    terminal.write(f"💬 I've loaded our {len(history)} previous messages")
    if title:
        terminal.write(f"💭 We were talking about: \"{title}\"")

    recent = [m for m in history[-CONTEXT_MESSAGES:] if m.role in ("user", "assistant")]
    if recent:
        terminal.write("\n📋 Let me remind you where we left off:")
        terminal.write("─" * 50)
        for message in recent:
            text = content_text(message.content)
            if message.role == "user":
                terminal.write(f"You: {text}")
            else:
                suffix = "..." if len(text) > CONTEXT_PREVIEW_CHARS else ""
                terminal.write(f"{agent_name}: {text[:CONTEXT_PREVIEW_CHARS]}{suffix}")
        terminal.write("─" * 50)

    terminal.write("\nType 'exit' to quit\n")
