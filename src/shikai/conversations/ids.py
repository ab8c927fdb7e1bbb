import logging
import re
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

TIMESTAMP_FRAGMENT = r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z"
CANONICAL_ID_PATTERN = re.compile(rf"^{TIMESTAMP_FRAGMENT}$")
_LEADING_ID_PATTERN = re.compile(rf"^({TIMESTAMP_FRAGMENT})")

FILE_PREFIX = "conversation-"
FILE_SUFFIX = ".json"


def timestamp_id(now: datetime | None = None) -> str:
    """Render ``now`` (default: current UTC time) as ``YYYY-MM-DDTHH-mm-ss-sssZ``."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    return moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{millis:03d}Z"


def is_canonical_id(candidate: str) -> bool:
    return bool(CANONICAL_ID_PATTERN.match(candidate))


def resolve_conversation_id(candidate: str, fallback: str) -> str:
    if is_canonical_id(candidate):
        return candidate
    logger.warning(
        f"Conversation id {candidate!r} is not a canonical timestamp, using {fallback}"
    )
    return fallback


def candidate_id_from_file_name(file_name: str) -> str:
    fragment = file_name
    if fragment.startswith(FILE_PREFIX):
        fragment = fragment[len(FILE_PREFIX):]
    if fragment.endswith(FILE_SUFFIX):
        fragment = fragment[: -len(FILE_SUFFIX)]
    match = _LEADING_ID_PATTERN.match(fragment)
    return match.group(1) if match else fragment
