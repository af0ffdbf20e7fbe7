"""
Argument coercion and validation against a tool's args_schema.

Only the JSON-schema subset the Morrow tools declare is supported:
type (string/integer/number/boolean/array/object), required, enum,
minimum/maximum, array items type, additionalProperties.
"""
import re
from typing import Any, Dict, Optional, Tuple

_INT_RE = re.compile(r"^[+-]?\d+$")
_NUM_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)$")


def _type_ok(expected: str, value: Any) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "array":
        return isinstance(value, list)
    if expected == "object":
        return isinstance(value, dict)
    # Unknown/absent type: accept
    return True


def _coerce_value(expected: Optional[str], value: Any) -> Any:
    if not isinstance(value, str):
        if expected == "integer" and isinstance(value, float) and value.is_integer():
            return int(value)
        return value
    raw = value.strip()
    if expected == "integer" and _INT_RE.match(raw):
        return int(raw)
    if expected == "number" and _NUM_RE.match(raw):
        return float(raw) if "." in raw else int(raw)
    if expected == "boolean" and raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    return value


def coerce_args(schema: Dict[str, Any], args: Dict[str, Any]) -> Dict[str, Any]:
    """Best-effort conversion of string-typed numbers/booleans to their declared types.

    Values that do not look like the declared type are left untouched so that
    validate_args() reports the mismatch.
    """
    if not isinstance(args, dict):
        return args
    properties = (schema or {}).get("properties") or {}
    coerced = {}
    for key, value in args.items():
        spec = properties.get(key) or {}
        coerced[key] = _coerce_value(spec.get("type"), value)
    return coerced


def validate_args(schema: Dict[str, Any], args: Any) -> Tuple[bool, Optional[Dict[str, Any]]]:
    """
    Validate arguments against a tool schema.

    Args:
        schema: JSON-schema-like object with properties/required
        args: Argument mapping proposed for the call

    Returns:
        (True, None) if valid, else (False, {"type": ..., "message": ...})
    """
    if not isinstance(args, dict):
        return False, {
            "type": "invalid_args",
            "message": f"Arguments must be an object, got {type(args).__name__}",
        }

    schema = schema or {}
    properties: Dict[str, Any] = schema.get("properties") or {}

    for req in schema.get("required") or []:
        if args.get(req) is None:
            return False, {
                "type": "missing_argument",
                "message": f"Missing required argument: {req}",
                "argument": req,
            }

    if schema.get("additionalProperties") is False:
        for key in args:
            if key not in properties:
                return False, {
                    "type": "unknown_argument",
                    "message": f"Unexpected argument: {key}",
                    "argument": key,
                }

    for key, value in args.items():
        spec = properties.get(key)
        if not spec or value is None:
            continue

        expected = spec.get("type")
        if expected and not _type_ok(expected, value):
            return False, {
                "type": "type_mismatch",
                "message": f"Argument '{key}' must be {expected}, got {type(value).__name__}",
                "argument": key,
            }

        if "enum" in spec and value not in spec["enum"]:
            return False, {
                "type": "enum_mismatch",
                "message": f"Argument '{key}' must be one of {spec['enum']}",
                "argument": key,
            }

        if expected in ("integer", "number"):
            if "minimum" in spec and value < spec["minimum"]:
                return False, {
                    "type": "out_of_range",
                    "message": f"Argument '{key}' must be >= {spec['minimum']}",
                    "argument": key,
                }
            if "maximum" in spec and value > spec["maximum"]:
                return False, {
                    "type": "out_of_range",
                    "message": f"Argument '{key}' must be <= {spec['maximum']}",
                    "argument": key,
                }

        if expected == "array":
            item_type = (spec.get("items") or {}).get("type")
            if item_type:
                for idx, item in enumerate(value):
                    if not _type_ok(item_type, item):
                        return False, {
                            "type": "type_mismatch",
                            "message": f"Argument '{key}[{idx}]' must be {item_type}",
                            "argument": key,
                        }

    return True, None
