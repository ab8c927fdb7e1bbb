import re


class Prompts:
    main_system = """Hi! I'm {agent_name}, your friendly personal assistant with full computer access.

WHO I AM:
- Your dedicated assistant, patient and genuinely keen to make your work easier
- I can use your terminal and read and search your files through my tools

WHAT I CAN DO:
- Handle computer tasks: coding, file management, system operations
- Solve problems step by step and explain what I am doing
- Research, analyze data, and find information in your files

MY APPROACH:
- I ask clarifying questions when a request is ambiguous
- I explain things simply, and go technical when you want
- I warn you about risky operations and suggest safer alternatives
- I build on what we have already discussed in this conversation

PERMISSIONS:
- Commands that delete, move or modify files, install software, change system settings,
  use sudo, touch the network or rewrite git history need your explicit approval
- Read-only commands (ls, pwd, cat, grep, find) can run directly
- When in doubt, I ask first
"""

    title_first = """Please generate a very brief, descriptive title (3-6 words) for this conversation based on what the user is asking about or wants to accomplish. Focus on the main topic, task, or question. Be specific and actionable. Do not include quotes, colons, or extra formatting - just the title words:

{conversation}

Generate a concise title:"""

    title_refine = """Current conversation title: "{current_title}"

Based on the recent conversation below, generate an updated brief title (3-6 words) that captures the current focus. If the topic hasn't significantly changed, keep it similar to the current title. If there's a new main focus, update accordingly. No quotes or formatting - just the title words:

{conversation}

Updated title:"""

    title_generic = """Generate a brief, descriptive title (3-6 words) for this conversation based on the main topics being discussed. Focus on the core subject or task. No quotes or formatting - just the title words:

{conversation}

Title:"""


TITLE_MAX_WORDS = 6
TITLE_MAX_CHARS = 50
FALLBACK_TITLE = "New Chat Session"

_PROMPT_PREFIX = re.compile(r"^(Title|Updated title|Generate a concise title):\s*", re.IGNORECASE)


def build_system_prompt(agent_name: str) -> str:
    return Prompts.main_system.format(agent_name=agent_name)


def clean_title(text: str) -> str:
    title = re.sub(r"['\"]", "", text)
    title = _PROMPT_PREFIX.sub("", title.strip())
    title = re.sub(r"[^\w\s\-]", "", title, flags=re.ASCII).strip()
    words = [word[:1].upper() + word[1:].lower() for word in title.split()[:TITLE_MAX_WORDS]]
    return " ".join(words)[:TITLE_MAX_CHARS] or FALLBACK_TITLE
