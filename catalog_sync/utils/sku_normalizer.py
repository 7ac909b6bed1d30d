"""
SKU normalizer: canonical matching keys for heterogeneous SKU strings.

Two modes:
- numeric_strict: keep digits only, strip leading zeros ("SKU-00123" -> "123")
- alphanumeric: keep [A-Za-z0-9_-]; all-digit results are unpadded for the
  key and zero-padded to a fixed width as an alias ("00123" -> "123", alias "00123")

normalize() is pure and never raises.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple, TypeVar

from catalog_sync.core.constants.sync import DEFAULT_SKU_PAD_WIDTH

logger = logging.getLogger("sku_normalizer")

NUMERIC_STRICT = "numeric_strict"
ALPHANUMERIC = "alphanumeric"

_NON_DIGIT = re.compile(r"[^0-9]")
_NON_SKU_CHAR = re.compile(r"[^A-Za-z0-9_-]")

T = TypeVar("T")


@dataclass(frozen=True)
class NormalizedSku:
    valid: bool
    key: Optional[str] = None
    alias_keys: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def all_keys(self) -> Tuple[str, ...]:
        if not self.valid:
            return ()
        return (self.key,) + self.alias_keys


INVALID = NormalizedSku(valid=False)


def normalize(raw: Any, mode: str = NUMERIC_STRICT, pad_width: int = DEFAULT_SKU_PAD_WIDTH) -> NormalizedSku:
    """Normalize a raw SKU into a matching key plus lookup aliases."""
    if raw is None or isinstance(raw, bool):
        return INVALID
    try:
        text = str(raw).strip()
    except Exception:
        return INVALID

    if mode == ALPHANUMERIC:
        cleaned = _NON_SKU_CHAR.sub("", text)
        if not cleaned:
            return INVALID
        if cleaned.isdigit():
            unpadded = cleaned.lstrip("0") or "0"
            padded = unpadded.zfill(pad_width)
            aliases = (padded,) if padded != unpadded else ()
            return NormalizedSku(valid=True, key=unpadded, alias_keys=aliases)
        return NormalizedSku(valid=True, key=cleaned)

    cleaned = _NON_DIGIT.sub("", text).lstrip("0")
    if not cleaned:
        return INVALID
    return NormalizedSku(valid=True, key=cleaned)


def build_sku_map(
    records: Iterable[T],
    sku_of,
    mode: str = NUMERIC_STRICT,
    pad_width: int = DEFAULT_SKU_PAD_WIDTH,
    source: str = "records",
    describe=None,
) -> Dict[str, T]:
    """
    Key records by normalized SKU.

    Invalid SKUs are dropped with a warning. Duplicate keys resolve
    last-write-wins, also with a warning.
    """
    mapping: Dict[str, T] = {}
    for record in records:
        raw = sku_of(record)
        normalized = normalize(raw, mode, pad_width)
        label = describe(record) if describe else repr(raw)
        if not normalized.valid:
            logger.warning("%s: invalid SKU %s, skipping", source, label)
            continue
        if normalized.key in mapping:
            previous = describe(mapping[normalized.key]) if describe else "previous record"
            logger.warning(
                "%s: duplicate SKU %s (%s replaces %s), using the last one found",
                source, normalized.key, label, previous,
            )
        mapping[normalized.key] = record
    return mapping


def lookup(mapping: Dict[str, T], raw_or_key: Any, mode: str = NUMERIC_STRICT,
           pad_width: int = DEFAULT_SKU_PAD_WIDTH) -> Optional[T]:
    """Find a value by normalized key, falling back to its aliases."""
    normalized = normalize(raw_or_key, mode, pad_width)
    for key in normalized.all_keys:
        if key in mapping:
            return mapping[key]
    return None
