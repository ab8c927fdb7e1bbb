from shikai.tools.registry import ToolRegistry
from shikai.tools.builtin import build_default_tools

__all__ = ["ToolRegistry", "build_default_tools"]
