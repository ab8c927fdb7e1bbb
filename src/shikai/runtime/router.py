from dataclasses import dataclass


@dataclass(frozen=True)
class RouteResult:
    kind: str
    name: str | None
    args: str


class InputRouter:
    """Split raw input into built-in commands and prompts for the model.

    Built-ins are matched on the first word, case-insensitively, with or without a
    leading slash (``save``, ``/history``).
    """

    def __init__(self, builtins):
        self.builtins = builtins

    def route(self, user_input: str) -> RouteResult:
        parts = user_input.split(maxsplit=1)
        if not parts:
            return RouteResult(kind="prompt", name=None, args=user_input)

        cmd = parts[0].lstrip("/").lower()
        args = parts[1] if len(parts) > 1 else ""

        if len(parts) == 1 and self.builtins.has_command(cmd):
            return RouteResult(kind="builtin", name=cmd, args=args)
        if user_input.startswith("/"):
            return RouteResult(kind="unknown", name=cmd, args=args)
        return RouteResult(kind="prompt", name=None, args=user_input)
