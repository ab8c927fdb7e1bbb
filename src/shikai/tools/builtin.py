import shutil
import subprocess
from pathlib import Path
from typing import Callable

from shikai.files import FileManager
from shikai.shell import ShellRunner
from shikai.tools.registry import ToolRegistry

GREP_TIMEOUT_SECONDS = 30


def grep(root_path: Path, pattern: str, path: str = ".", include: str | None = None) -> str:
    base_path = str(root_path / path)
    if shutil.which("rg") is not None:
        cmd = ["rg", "-n", "--no-heading"]
        if include:
            cmd.extend(["--glob", include])
    else:
        cmd = ["grep", "-R", "-n"]
        if include:
            cmd.extend(["--include", include])
    cmd.extend(["-e", pattern, base_path])

    result = subprocess.run(
        cmd,
        cwd=root_path,
        capture_output=True,
        text=True,
        timeout=GREP_TIMEOUT_SECONDS,
    )

    if result.returncode == 0:
        return result.stdout
    if result.returncode == 1:
        return "No matches"
    return result.stderr or "Search failed"


def format_command_result(result: dict) -> str:
    if result["success"]:
        return f"Exit code: {result['exit_code']}\n\nOutput:\n{result['stdout']}"
    error = result.get("error") or result.get("stderr") or "Unknown error"
    return f"Command failed (exit code {result['exit_code']}): {error}"


def build_default_tools(
    root_path: str | Path,
    *,
    auto_approve: bool = False,
    confirm: Callable[[str], bool] | None = None,
) -> ToolRegistry:
    root_path = Path(root_path)
    files = FileManager(root_path)
    shell = ShellRunner(root_path, auto_approve=auto_approve, confirm=confirm)
    tools = ToolRegistry()

    tools.register_tool(
        name="read_file",
        description="Read the contents of a file",
        parameters={
            "type": "object",
            "properties": {
                "filepath": {
                    "type": "string",
                    "description": "Path to the file relative to the working directory",
                }
            },
            "required": ["filepath"],
        },
        implementation=files.read_file,
    )

    tools.register_tool(
        name="list_files",
        description="List files matching a glob pattern",
        parameters={
            "type": "object",
            "properties": {
                "pattern": {
                    "type": "string",
                    "description": "Glob pattern to match files (e.g., '*.py', 'src/**/*.js')",
                    "default": "*",
                }
            },
            "required": [],
        },
        implementation=lambda pattern="*": "\n".join(files.list_files(pattern)) or "No files found",
    )

    tools.register_tool(
        name="grep",
        description="Search file contents for a regex pattern",
        parameters={
            "type": "object",
            "properties": {
                "pattern": {"type": "string", "description": "Regex pattern to search"},
                "path": {
                    "type": "string",
                    "description": "File or directory to search",
                    "default": ".",
                },
                "include": {
                    "type": "string",
                    "description": "Glob pattern for files to include (e.g. '*.py')",
                },
            },
            "required": ["pattern"],
        },
        implementation=lambda pattern, path=".", include=None: grep(root_path, pattern, path, include),
    )

    tools.register_tool(
        name="run_command",
        description=(
            "Execute a shell command in the working directory. "
            "The user is asked to approve each command."
        ),
        parameters={
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "Shell command to execute",
                }
            },
            "required": ["command"],
        },
        implementation=lambda command: format_command_result(shell.run_command(command)),
    )

    return tools
