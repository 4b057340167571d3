# Accessors for the "counters" map kept inside a node's JSON properties.
from typing import Any, Dict, Mapping, Optional

COUNTERS_KEY = "counters"


def validate_counter_name(name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise ValueError("counter name must be a non-empty string")
    return name


def validate_delta(delta: Any) -> int:
    # bool is an int subclass; True is not a valid increment.
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValueError(f"delta must be an integer, got {delta!r}")
    return delta


def get_counters(props: Optional[Mapping[str, Any]]) -> Dict[str, int]:
    """
    Return the counters map of a node's props.

    Raises:
        TypeError: props.counters is not an object, or holds a non-integer value.
    """
    if not props:
        return {}
    counters = props.get(COUNTERS_KEY)
    if counters is None:
        return {}
    if not isinstance(counters, Mapping):
        raise TypeError(f"props.counters must be an object, got {type(counters).__name__}")

    result: Dict[str, int] = {}
    for name, value in counters.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"counter {name!r} must be an integer, got {value!r}")
        result[str(name)] = value
    return result


def get_counter(props: Optional[Mapping[str, Any]], name: str) -> int:
    return get_counters(props).get(name, 0)


def with_counter_incremented(props: Optional[Mapping[str, Any]], name: str, delta: int = 1) -> Dict[str, Any]:
    """
    Return a copy of props with counters[name] moved by delta.

    Mirrors the SQL used by the Postgres store: a missing or non-object
    "counters" entry becomes a fresh map, a missing counter starts at 0, and
    the other entries of the map are carried over untouched.

    Raises:
        TypeError: the named counter holds a non-integer value.
    """
    validate_counter_name(name)
    validate_delta(delta)

    updated = dict(props or {})
    raw = updated.get(COUNTERS_KEY)
    counters = dict(raw) if isinstance(raw, Mapping) else {}
    current = counters.get(name)
    if current is None:
        current = 0
    elif isinstance(current, bool) or not isinstance(current, int):
        raise TypeError(f"counter {name!r} must be an integer, got {current!r}")
    counters[name] = current + delta
    updated[COUNTERS_KEY] = counters
    return updated
