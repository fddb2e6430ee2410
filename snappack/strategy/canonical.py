"""Deterministic canonicalization for JSON-compatible snapshot trees."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
import json
import math
from typing import Any


def canonicalize(value: Any, *, ignore_keys: frozenset[str] = frozenset()) -> Any:
    """Normalize values to a deterministic JSON-compatible representation.

    Mapping keys are stringified and sorted, tuples become lists, dataclass
    instances become dicts and floats are rounded to 12 significant digits.
    Keys named in ``ignore_keys`` are dropped at every depth.
    """
    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)

    if isinstance(value, dict):
        normalized: dict[str, Any] = {}
        for key in sorted(value.keys(), key=lambda raw: str(raw)):
            key_name = str(key)
            if key_name in ignore_keys:
                continue
            normalized[key_name] = canonicalize(value[key], ignore_keys=ignore_keys)
        return normalized

    if isinstance(value, (list, tuple)):
        return [canonicalize(item, ignore_keys=ignore_keys) for item in value]

    if isinstance(value, str):
        return value.replace("\r\n", "\n").replace("\r", "\n")

    if isinstance(value, bool) or value is None:
        return value

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError("NaN and infinity are not supported in canonical JSON")
        return float(f"{value:.12g}")

    raise TypeError(f"Value of type {type(value).__name__} is not JSON-compatible")


def canonical_json(value: Any, *, ignore_keys: frozenset[str] = frozenset()) -> str:
    """Serialize a value to stable, human-readable canonical JSON."""
    return (
        json.dumps(
            canonicalize(value, ignore_keys=ignore_keys),
            ensure_ascii=False,
            indent=2,
            sort_keys=True,
        )
        + "\n"
    )
