import subprocess
from pathlib import Path
from typing import Any, Callable, Dict

COMMAND_TIMEOUT_SECONDS = 60
MAX_OUTPUT_CHARS = 20_000


def _failure(error: str) -> Dict[str, Any]:
    return {
        "success": False,
        "error": error,
        "stdout": "",
        "stderr": "",
        "exit_code": -1,
    }


class ShellRunner:
    def __init__(
        self,
        root_path: str | Path,
        auto_approve: bool = False,
        confirm: Callable[[str], bool] | None = None,
    ):
        self.root_path = Path(root_path)
        self.auto_approve = auto_approve
        self.confirm = confirm or self._confirm_with_input

    def _confirm_with_input(self, command: str) -> bool:
        print(f"\n🔧 Command to run: {command}")
        response = input("Execute? (y/n): ")
        return response.strip().lower() in ("y", "yes")

    def run_command(self, command: str) -> Dict[str, Any]:
        if not self.auto_approve and not self.confirm(command):
            return _failure("User declined to run the command")

        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=self.root_path,
                capture_output=True,
                text=True,
                timeout=COMMAND_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired:
            return _failure("Command timed out")
        except OSError as e:
            return _failure(str(e))

        return {
            "success": result.returncode == 0,
            "stdout": result.stdout[-MAX_OUTPUT_CHARS:],
            "stderr": result.stderr[-MAX_OUTPUT_CHARS:],
            "exit_code": result.returncode,
        }
