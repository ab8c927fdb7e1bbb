import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    description: str
    parameters: Dict[str, Any]
    implementation: Callable

    def schema(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    """Tools offered to the model.

    ``execute_tool`` never raises: failures come back as
    ``{"success": False, "error": ...}`` so the model can read them.
    """

    def __init__(self):
        self._tools: Dict[str, RegisteredTool] = {}

    def register_tool(
        self,
        name: str,
        description: str,
        parameters: Dict[str, Any],
        implementation: Callable,
    ) -> None:
        self._tools[name] = RegisteredTool(name, description, parameters, implementation)

    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    def execute_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        tool = self._tools.get(name)
        if tool is None:
            return {"success": False, "error": f"Tool {name} not found"}

        try:
            result = tool.implementation(**arguments)
        except TypeError as e:
            logger.warning(f"Tool {name} called with bad arguments {arguments}: {e}")
            return {"success": False, "error": f"Invalid arguments for {name}: {e}"}
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            return {"success": False, "error": str(e)}
        return {"success": True, "result": result}
