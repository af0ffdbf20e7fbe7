"""
Base class and shared types for Morrow actions ("tools").

Every callable capability the brain can run is a ToolBase subclass with:
- a unique name
- a one-line description (shown to the reasoning model)
- a JSON-schema-like args_schema
- run(ctx, **kwargs) returning a result dict

Handlers fail either by raising ActionError or by returning
{"error": {"type": ..., "message": ...}}.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


class ActionError(Exception):
    """Typed failure raised by an action handler."""

    def __init__(self, message: str, error_type: str = "action_failed", details: Any = None):
        super().__init__(message)
        self.error_type = error_type
        self.details = details

    def to_error(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"type": self.error_type, "message": str(self)}
        if self.details is not None:
            error["details"] = self.details
        return error


@dataclass
class ExecutionContext:
    """Shared context handed to every handler within one dispatch session.

    Fields:
        session_id: Dispatch session identifier
        conversation_id: Opaque conversation id (may be None)
        deadline: Monotonic deadline in seconds; advisory, handlers may ignore it
        extras: Caller-supplied context map (e.g. known business name)
        results: Results of earlier successful calls in this session, in order
    """
    session_id: str
    conversation_id: Optional[str] = None
    deadline: Optional[float] = None
    extras: Dict[str, Any] = field(default_factory=dict)
    results: List[Dict[str, Any]] = field(default_factory=list)


class ToolBase:
    """Base class for all actions"""

    def __init__(self):
        self._name = ""
        self._description = ""
        self._args_schema: Dict[str, Any] = {
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        }

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def args_schema(self) -> Dict[str, Any]:
        return self._args_schema

    @property
    def required_args(self) -> List[str]:
        return list(self._args_schema.get("required", []))

    def parameter_schema(self) -> Dict[str, Dict[str, Any]]:
        """Flattened per-parameter view: name -> {type, required, description}."""
        required = set(self.required_args)
        flat = {}
        for arg_name, spec in (self._args_schema.get("properties") or {}).items():
            flat[arg_name] = {
                "type": spec.get("type", "string"),
                "required": arg_name in required,
                "description": spec.get("description", ""),
            }
        return flat

    def to_definition(self) -> Dict[str, Any]:
        """OpenAI-style function definition (no handler)."""
        return {
            "type": "function",
            "function": {
                "name": self._name,
                "description": self._description,
                "parameters": self._args_schema,
            },
        }

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        raise NotImplementedError(f"Tool '{self._name}' does not implement run()")


class FunctionTool(ToolBase):
    """Wrap a plain callable (args, ctx) -> dict as a tool."""

    def __init__(
        self,
        name: str,
        handler: Callable[[Dict[str, Any], ExecutionContext], Dict[str, Any]],
        args_schema: Optional[Dict[str, Any]] = None,
        description: str = "",
    ):
        super().__init__()
        self._name = name
        self._description = description
        self._handler = handler
        if args_schema is not None:
            self._args_schema = args_schema

    def run(self, ctx: ExecutionContext, **kwargs) -> Dict[str, Any]:
        return self._handler(dict(kwargs), ctx)
