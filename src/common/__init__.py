from common import llm
from common.ids import generate_id
from common.jsonio import atomic_write_json

__all__ = ["llm", "generate_id", "atomic_write_json"]
