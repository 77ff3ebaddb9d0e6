from __future__ import annotations

import logging
import math
import string
import unicodedata
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .keys import (
    EXIF_GROUP,
    EXIF_VERSION,
    FLASHPIX_VERSION,
    GPS_GROUP,
    GPS_VERSION,
    LENS_SPECIFICATION,
)
from .properties import PropertyKind, RawProperty, classify, is_number

# Share of non-printable characters at which a decoded byte string is rejected.
NON_PRINTABLE_LIMIT = 0.3
_PRINTABLE_CATEGORIES = frozenset({"L", "M", "N", "P", "S"})


def format_number(number: float) -> str:
    """Render integral values without decimals, others with at most two."""

    if math.isfinite(number) and math.floor(number) == number:
        return f"{number:.0f}"
    text = f"{number:.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def is_printable_char(char: str) -> bool:
    """Letters, marks, numbers, punctuation, symbols and whitespace count as printable."""

    if char.isspace() or char in string.hexdigits:
        return True
    return unicodedata.category(char)[0] in _PRINTABLE_CATEGORIES


def contains_printable_text(text: str) -> bool:
    if not text:
        return False
    non_printable = sum(1 for char in text if not is_printable_char(char))
    return non_printable / len(text) < NON_PRINTABLE_LIMIT


def _decode(data: bytes, encoding: str) -> str | None:
    try:
        return data.decode(encoding)
    except UnicodeDecodeError:
        return None


def _describe_float(number: float) -> str:
    if math.isfinite(number) and number.is_integer():
        return str(int(number))
    return repr(number)


def _format_generic(prop: RawProperty) -> str:
    if prop.kind is PropertyKind.STRING:
        return prop.value
    if prop.kind is PropertyKind.INTEGER:
        return str(prop.value)
    if prop.kind is PropertyKind.FLOAT:
        return _describe_float(prop.value)
    try:
        return str(prop.value)
    except Exception:
        logging.debug("str() failed for %s", type(prop.value).__name__, exc_info=True)
        return f"<{type(prop.value).__name__}>"


def _format_sequence_element(value: Any) -> str:
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def _format_version(prop: RawProperty) -> str:
    if prop.is_number_sequence:
        return ".".join(_format_sequence_element(item) for item in prop.value)
    if prop.kind is PropertyKind.BYTES:
        ascii_text = _decode(prop.value, "ascii")
        if ascii_text is not None:
            digits = ascii_text.strip()
            if len(digits) == 4 and all(char in string.digits for char in digits):
                return f"{digits[1]}.{digits[2:]}"
        utf8_text = _decode(prop.value, "utf-8")
        if utf8_text is not None:
            return utf8_text.strip()
    return _format_generic(prop)


def _format_lens(prop: RawProperty) -> str:
    if not prop.is_number_sequence:
        return _format_generic(prop)
    numbers = [float(item) for item in prop.value]
    if len(numbers) == 4:
        min_focal, max_focal, min_aperture, _ = numbers
        if min_focal == max_focal:
            focal = f"{format_number(min_focal)}mm"
        else:
            focal = f"{format_number(min_focal)}-{format_number(max_focal)}mm"
        return f"{focal} f/{format_number(min_aperture)}"
    return ", ".join(format_number(number) for number in numbers)


def _format_bytes(data: bytes) -> str:
    payload = data.rstrip(b"\x00")
    for encoding in ("utf-8", "ascii"):
        text = _decode(payload, encoding)
        if text is None:
            continue
        text = text.strip()
        if text and contains_printable_text(text):
            return text
    return f"{len(data)} bytes"


def format_simple_value(value: Any) -> str:
    """Compact rendering used for the leaves of nested mappings."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (bool, int, float)):
        return format_number(float(value))
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        text = _decode(data, "utf-8")
        if text is not None and text.strip():
            return text.strip()
        return f"{len(data)} bytes"
    if isinstance(value, Mapping):
        return f"({len(value)} fields)"
    if isinstance(value, Sequence):
        items = list(value)
        if all(isinstance(item, str) for item in items):
            return ", ".join(item for item in items if item)
        if all(is_number(item) for item in items):
            return ", ".join(format_number(float(item)) for item in items)
    text = _format_generic(RawProperty(PropertyKind.OPAQUE, value))
    if text in {"", "None"}:
        return ""
    return text


def _format_mapping(mapping: Mapping[str, Any]) -> str:
    pairs: list[str] = []
    for key, raw_value in mapping.items():
        rendered = format_simple_value(raw_value)
        if rendered:
            pairs.append(f"{key}: {rendered}")
    if not pairs:
        return "(empty)"
    return "\n".join(sorted(pairs))


def _format_mixed_sequence(items: Sequence[Any]) -> str:
    rendered = (format_simple_value(item) for item in items)
    return ", ".join(text for text in rendered if text)


def _format_by_kind(prop: RawProperty) -> str:
    if prop.kind is PropertyKind.STRING_LIST:
        return ", ".join(item.strip() for item in prop.value if item.strip())
    if prop.kind is PropertyKind.NUMBER_LIST:
        return ", ".join(format_number(item) for item in prop.value)
    if prop.kind is PropertyKind.INTEGER_LIST:
        return ", ".join(str(item) for item in prop.value)
    if prop.kind is PropertyKind.BYTES:
        return _format_bytes(prop.value)
    if prop.kind is PropertyKind.MAPPING:
        return _format_mapping(prop.value)
    if isinstance(prop.value, (list, tuple)):
        return _format_mixed_sequence(prop.value)
    return _format_generic(prop)


FIELD_STRATEGIES: dict[tuple[str, str], Callable[[RawProperty], str]] = {
    (GPS_GROUP, GPS_VERSION): _format_version,
    (EXIF_GROUP, EXIF_VERSION): _format_version,
    (EXIF_GROUP, FLASHPIX_VERSION): _format_version,
    (EXIF_GROUP, LENS_SPECIFICATION): _format_lens,
}


def format_value(value: Any, group_key: str | None, entry_key: str) -> str:
    """Render one raw metadata value as a trimmed display string.

    ``group_key`` is the known group the value was found in, or ``None`` for
    top-level fields. Field-specific strategies registered in
    ``FIELD_STRATEGIES`` win over the generic dispatch on the value's kind.
    """

    prop = classify(value)
    strategy = FIELD_STRATEGIES.get((group_key or "", entry_key))
    if strategy is not None:
        text = strategy(prop)
    else:
        text = _format_by_kind(prop)
    return text.strip()


__all__ = [
    "FIELD_STRATEGIES",
    "NON_PRINTABLE_LIMIT",
    "contains_printable_text",
    "format_number",
    "format_simple_value",
    "format_value",
    "is_printable_char",
]
