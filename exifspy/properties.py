"""Classification of raw metadata values into a closed set of kinds."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any


class PropertyKind(str, Enum):
    FLOAT = "float"
    INTEGER = "integer"
    STRING = "string"
    STRING_LIST = "string_list"
    NUMBER_LIST = "number_list"
    INTEGER_LIST = "integer_list"
    BYTES = "bytes"
    MAPPING = "mapping"
    OPAQUE = "opaque"


@dataclass(frozen=True, slots=True)
class RawProperty:
    """A raw value tagged with the kind the formatter dispatches on."""

    kind: PropertyKind
    value: Any

    @property
    def is_number_sequence(self) -> bool:
        return self.kind in (PropertyKind.NUMBER_LIST, PropertyKind.INTEGER_LIST)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def classify(value: Any) -> RawProperty:
    if isinstance(value, RawProperty):
        return value
    if isinstance(value, bool):
        return RawProperty(PropertyKind.INTEGER, int(value))
    if isinstance(value, int):
        return RawProperty(PropertyKind.INTEGER, value)
    if isinstance(value, float):
        return RawProperty(PropertyKind.FLOAT, value)
    if isinstance(value, str):
        return RawProperty(PropertyKind.STRING, value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawProperty(PropertyKind.BYTES, bytes(value))
    if isinstance(value, Mapping):
        return RawProperty(PropertyKind.MAPPING, {str(k): v for k, v in value.items()})
    if isinstance(value, Sequence):
        items = list(value)
        # An empty sequence carries no element type; it renders as an empty join.
        if all(isinstance(item, str) for item in items):
            return RawProperty(PropertyKind.STRING_LIST, items)
        if all(is_number(item) for item in items):
            if all(isinstance(item, int) for item in items):
                return RawProperty(PropertyKind.INTEGER_LIST, items)
            return RawProperty(PropertyKind.NUMBER_LIST, [float(item) for item in items])
    return RawProperty(PropertyKind.OPAQUE, value)


__all__ = ["PropertyKind", "RawProperty", "classify", "is_number"]
