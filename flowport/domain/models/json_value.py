"""
JSON value helpers.

Payloads attached to execution events and entity blob columns are untyped
JSON-like values: dicts, lists, or scalars. These helpers walk such a value
and return a transformed copy; the input is never mutated.
"""

from typing import Any, Callable, Dict, List, Union

JSONValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


def _keep_all(key: str) -> bool:
    return True


def _identity(value: Any) -> Any:
    return value


def map_json(
    value: JSONValue,
    scalar_fn: Callable[[Any], Any] = _identity,
    keep_key: Callable[[str], bool] = _keep_all,
) -> JSONValue:
    """
    Rebuild a JSON-like value, transforming its leaves and filtering its keys.

    Args:
        value: Object, array or scalar
        scalar_fn: Applied to every scalar leaf
        keep_key: Object keys for which this returns False are dropped,
            at every depth

    Returns:
        A new value with the same shape minus dropped keys
    """
    if isinstance(value, dict):
        return {
            key: map_json(item, scalar_fn, keep_key)
            for key, item in value.items()
            if keep_key(key)
        }
    if isinstance(value, (list, tuple)):
        return [map_json(item, scalar_fn, keep_key) for item in value]
    return scalar_fn(value)


def strip_key(value: JSONValue, key: str) -> JSONValue:
    """Drop every object entry named ``key``, recursively."""
    return map_json(value, keep_key=lambda k: k != key)


def replace_strings(value: JSONValue, mapping: Dict[str, str]) -> JSONValue:
    """Replace string leaves that exactly equal a mapping key."""
    if not mapping:
        return value

    def _swap(leaf: Any) -> Any:
        if isinstance(leaf, str):
            return mapping.get(leaf, leaf)
        return leaf

    return map_json(value, scalar_fn=_swap)
