import logging
import re
from pathlib import Path

from shikai.conversations.ids import FILE_PREFIX, FILE_SUFFIX, TIMESTAMP_FRAGMENT

logger = logging.getLogger(__name__)

_TITLED_FILE_PATTERN = re.compile(
    rf"^{FILE_PREFIX}({TIMESTAMP_FRAGMENT})-(.+){re.escape(FILE_SUFFIX)}$"
)


def slugify_title(title: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9\s\-_]", "", title)
    return re.sub(r"\s+", "_", cleaned).lower()


def conversation_file_name(conversation_id: str, title: str = "") -> str:
    slug = slugify_title(title)
    # a slug without letters or digits would not read back as a title
    if re.search(r"[a-z0-9]", slug):
        return f"{FILE_PREFIX}{conversation_id}-{slug}{FILE_SUFFIX}"
    return f"{FILE_PREFIX}{conversation_id}{FILE_SUFFIX}"


def conversation_path(log_dir: str | Path, conversation_id: str, title: str = "") -> Path:
    return Path(log_dir) / conversation_file_name(conversation_id, title)


def extract_title_from_file_name(file_name: str) -> str | None:
    match = _TITLED_FILE_PATTERN.match(file_name)
    if not match or not match.group(2):
        return None
    words = match.group(2).replace("_", " ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), words)


def _safe_rename(old_path: Path, new_path: Path) -> bool:
    if old_path == new_path or not old_path.exists() or new_path.exists():
        return False
    old_path.rename(new_path)
    return True


def rename_conversation_file(
    log_dir: str | Path,
    old_path: str | Path,
    conversation_id: str,
    new_title: str,
) -> Path:
    """Move ``old_path`` to the name implied by ``new_title``.

    Never overwrites: if the destination already exists, or the source is gone, the
    old path is returned untouched. I/O errors are logged and treated the same way.
    """
    old_path = Path(old_path)
    new_path = conversation_path(log_dir, conversation_id, new_title)
    try:
        if _safe_rename(old_path, new_path):
            logger.info(f"Renamed {old_path.name} -> {new_path.name}")
            return new_path
    except OSError as e:
        logger.error(f"Could not rename {old_path.name}: {e}")
    return old_path


def fix_malformed_file_name(
    log_dir: str | Path,
    malformed_file_name: str,
    proper_id: str,
    title: str = "",
) -> Path:
    old_path = Path(log_dir) / malformed_file_name
    new_path = conversation_path(log_dir, proper_id, title)
    try:
        if _safe_rename(old_path, new_path):
            logger.info(f"Fixed malformed file name: {malformed_file_name} -> {new_path.name}")
            return new_path
    except OSError as e:
        logger.error(f"Could not fix malformed file name {malformed_file_name}: {e}")
    return old_path
