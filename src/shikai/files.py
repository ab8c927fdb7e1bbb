from pathlib import Path
from typing import List, Set


IGNORED_DIRS: Set[str] = {
    ".venv",
    "venv",
    ".git",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "dist",
    "build",
    ".eggs",
}

MAX_FILES = 500
MAX_READ_CHARS = 100_000


class FileManager:
    def __init__(self, root_path: str | Path):
        self.root_path = Path(root_path)

    def read_file(self, filepath: str) -> str:
        full_path = self.root_path / filepath
        try:
            content = full_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise OSError(f"Error reading {filepath}: {e}") from e
        if len(content) > MAX_READ_CHARS:
            return content[:MAX_READ_CHARS] + f"\n... [truncated {len(content) - MAX_READ_CHARS} chars]"
        return content

    def list_files(self, pattern: str = "*") -> List[str]:
        files = []
        for path in self.root_path.rglob(pattern):
            if not path.is_file():
                continue
            rel_path = path.relative_to(self.root_path)
            if self._should_ignore(rel_path):
                continue
            files.append(str(rel_path))
            if len(files) >= MAX_FILES:
                break
        return sorted(files)

    def _should_ignore(self, rel_path: Path) -> bool:
        for part in rel_path.parts:
            if part in IGNORED_DIRS or part.endswith(".egg-info"):
                return True
            if part.startswith(".") and part not in {".env", ".gitignore"}:
                return True
        return False
