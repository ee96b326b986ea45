from typing import Any
from enum import Enum
from pathlib import Path

TLiteral = bool | int | float | str | bytes
TComposite = (
	list[TLiteral] | dict[TLiteral, TLiteral] | set[TLiteral] | tuple[TLiteral, ...]
)
TPrimitive = TLiteral | TComposite | list[Any] | dict[str, Any] | None


def asPrimitive(value: Any, *, currentDepth: int = 0) -> Any:
	"""Converts the given value to a primitive value, that can be converted
	to JSON. Named tuples become dictionaries, keeping their field order,
	unless their type defines an `asPrimitive` method."""
	if value is None or type(value) in (bool, float, int, str):
		return value
	elif isinstance(value, tuple) and hasattr(value, "_fields"):
		f = getattr(type(value), "asPrimitive", None)
		return (
			f(value)
			if f
			else {
				k: asPrimitive(getattr(value, k), currentDepth=currentDepth + 1)
				for k in value._fields
			}
		)
	elif isinstance(value, (list, tuple, set, frozenset)):
		return [asPrimitive(v, currentDepth=currentDepth + 1) for v in value]
	elif isinstance(value, Enum):
		return asPrimitive(value.value)
	elif isinstance(value, dict):
		return {
			asPrimitive(k): asPrimitive(v, currentDepth=currentDepth + 1)
			for k, v in value.items()
		}
	elif isinstance(value, Path):
		return str(value)
	elif isinstance(value, bytes):
		return value.decode("utf8")
	else:
		return value


# EOF
