"""
Memo normalization for line-item custom attributes.

Storefront customizers attach free-form key/value pairs to line items
(``fontColor``, ``Text``, JSON blobs of chosen options...). ``format_memo``
turns them into a readable multi-line memo: it drops empty and ``has_gpo``
entries, decodes JSON-looking values, tidies keys, collapses letter-spaced
words ("I N S I D E") and orders the lines as the report type asks.
"""
import enum
import json
import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from ..orders.schemas import CustomAttribute, SelectedOption

logger = logging.getLogger(__name__)

EXCLUSION_MARKER = "has_gpo"
DEFAULT_VARIANT_TITLE = "Default Title"

PRIORITY_KEYS: Tuple[str, ...] = (
    "first name",
    "last name",
    "background",
    "font",
    "outline style",
    "font color",
    "text",
    "message",
    "customization",
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SPACED_LETTERS = re.compile(r"\b[A-Z](?: [A-Z]){2,}\b")


class MemoOrdering(str, enum.Enum):
    PRESERVE = "preserve"
    PRIORITY = "priority"


class MemoOptions(BaseModel):
    ordering: MemoOrdering = MemoOrdering.PRESERVE
    include_variant: bool = False
    repair_spacing: bool = True

    model_config = ConfigDict(frozen=True)


STANDARD_MEMO = MemoOptions(ordering=MemoOrdering.PRESERVE, include_variant=False)
QB_MEMO = MemoOptions(ordering=MemoOrdering.PRIORITY, include_variant=True)
INTERNAL_VENDORS_MEMO = MemoOptions(ordering=MemoOrdering.PRIORITY, include_variant=True)


class ValueKind(str, enum.Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    STRUCTURED = "structured"


class DecodedValue(BaseModel):
    kind: ValueKind
    text: str

    model_config = ConfigDict(frozen=True)


def _item_text(item) -> str:
    if item is None:
        return ""
    if isinstance(item, str):
        return item
    if isinstance(item, bool):
        return "true" if item else "false"
    if isinstance(item, (dict, list)):
        return json.dumps(item, ensure_ascii=False)
    return str(item)


def decode_attribute_value(raw: str) -> DecodedValue:
    """Classifies an attribute value, decoding it when it looks like JSON.

    Only text starting with ``[`` or ``{`` is tried as JSON. A decoded list
    is joined with ", ", a decoded object is pretty-printed with an indent of
    2. Anything else, including undecodable text, is the trimmed original.
    """
    text = (raw or "").strip()
    if text[:1] in ("[", "{"):
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            return DecodedValue(kind=ValueKind.SEQUENCE, text=", ".join(_item_text(i) for i in decoded))
        if isinstance(decoded, dict):
            return DecodedValue(
                kind=ValueKind.STRUCTURED, text=json.dumps(decoded, indent=2, ensure_ascii=False)
            )
    return DecodedValue(kind=ValueKind.SCALAR, text=text)


def normalize_key(key: str) -> str:
    """``fontColor`` -> ``Font Color``; already spaced keys are left alone."""
    spaced = _CAMEL_BOUNDARY.sub(" ", (key or "").strip())
    return spaced[:1].upper() + spaced[1:]


def repair_spacing(text: str) -> str:
    """Collapses runs of three or more single capitals: ``I N S I D E`` -> ``INSIDE``."""
    if not text:
        return text
    return _SPACED_LETTERS.sub(lambda m: m.group(0).replace(" ", ""), text)


def _is_excluded(attribute: CustomAttribute) -> bool:
    value = attribute.value or ""
    if not value.strip():
        return True
    key = attribute.key or ""
    return EXCLUSION_MARKER in key.lower() or EXCLUSION_MARKER in value.lower()


def _priority_slot(key: str) -> Optional[int]:
    folded = re.sub(r"[_-]", " ", key).strip().lower()
    folded = re.sub(r"\s+", " ", folded)
    try:
        return PRIORITY_KEYS.index(folded)
    except ValueError:
        return None


def _order_lines(pairs: List[Tuple[str, str]], ordering: MemoOrdering) -> List[Tuple[str, str]]:
    if ordering is MemoOrdering.PRESERVE:
        return pairs
    prioritized, remaining = [], []
    for pair in pairs:
        slot = _priority_slot(pair[0])
        if slot is None:
            remaining.append(pair)
        else:
            prioritized.append((slot, pair))
    # sorted() is stable, so duplicate keys keep their input order
    prioritized.sort(key=lambda entry: entry[0])
    remaining.sort(key=lambda pair: pair[0].lower())
    return [pair for _, pair in prioritized] + remaining


def _variant_lines(
    selected_options: Sequence[SelectedOption], variant_title: Optional[str], repair: bool
) -> List[str]:
    fix = repair_spacing if repair else (lambda s: s)
    lines = []
    for option in selected_options:
        value = (option.value or "").strip()
        if not option.name or not value or value == DEFAULT_VARIANT_TITLE:
            continue
        lines.append(f"{fix(option.name)}: {fix(value)}")
    if not lines and variant_title and variant_title.strip() and variant_title != DEFAULT_VARIANT_TITLE:
        lines.append(f"Variant: {fix(variant_title.strip())}")
    return lines


def format_memo(
    attributes: Iterable[CustomAttribute],
    options: MemoOptions,
    selected_options: Sequence[SelectedOption] = (),
    variant_title: Optional[str] = None,
) -> str:
    """Renders custom attributes as newline separated ``Key: Value`` lines.

    Args:
        attributes: The line item's custom attributes, in storefront order.
        options: Ordering, variant line and spacing repair for this report type.
        selected_options: The variant's selected options, for the leading line.
        variant_title: Fallback for the leading line when no option qualifies.

    Returns:
        The memo text. Empty when nothing survives filtering and there is no
        leading line; that is never an error.
    """
    leading = _variant_lines(selected_options, variant_title, options.repair_spacing) if options.include_variant else []

    pairs: List[Tuple[str, str]] = []
    for attribute in attributes:
        if _is_excluded(attribute):
            logger.debug(f"Dropping memo attribute {attribute.key!r}")
            continue
        key = normalize_key(attribute.key or "")
        value = decode_attribute_value(attribute.value or "").text
        if options.repair_spacing:
            key, value = repair_spacing(key), repair_spacing(value)
        pairs.append((key, value))

    lines = leading + [f"{key}: {value}" for key, value in _order_lines(pairs, options.ordering)]
    return "\n".join(lines)
