from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Union
from xml.etree import ElementTree as ET

from .errors import MalformedXmlError, RecordParseError, RecordSerializeError


Scalar = Union[str, int]
# Nested mapping of tag name -> scalar or nested record
Record = Dict[str, Union[Scalar, "Record"]]


class TypeHint(str, Enum):
    """Recognized values of the `type` attribute on leaf elements."""

    INTEGER = "integer"
    STRING = "string"

    @classmethod
    def from_attribute(cls, value: Optional[str]) -> "TypeHint":
        # Unknown hints (datetime, array, boolean, ...) pass through as strings
        if value == cls.INTEGER.value:
            return cls.INTEGER
        return cls.STRING


_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)


def _to_int(raw: str) -> int:
    # ASCII decimal digits only, no underscores
    text = raw.strip()
    if not _INTEGER_RE.fullmatch(text):
        raise RecordParseError(f"invalid integer value: {raw!r}")
    return int(text, 10)


_COERCIONS: Dict[TypeHint, Callable[[str], Scalar]] = {
    TypeHint.INTEGER: _to_int,
    TypeHint.STRING: lambda raw: raw,
}


def coerce(type_hint: Optional[str], raw: str) -> Scalar:
    """Convert a leaf's raw text according to its `type` attribute."""
    return _COERCIONS[TypeHint.from_attribute(type_hint)](raw)


@dataclass(frozen=True)
class Leaf:
    tag: str
    text: str = ""
    type_hint: Optional[str] = None


@dataclass(frozen=True)
class Branch:
    tag: str
    children: tuple = ()


Element = Union[Leaf, Branch]


def element_from_etree(node: ET.Element) -> Element:
    """
    Build the Leaf/Branch union from an ElementTree node.

    A node is a leaf exactly when it has no child elements; text content of
    branches is ignored.
    """
    kids = list(node)
    if not kids:
        return Leaf(tag=node.tag, text=node.text or "", type_hint=node.get("type"))
    return Branch(tag=node.tag, children=tuple(element_from_etree(k) for k in kids))


def map_elements(children: Sequence[Element]) -> Record:
    """
    Map a sequence of elements into a record, one entry per tag.

    Leaves are coerced by their type hint; branches recurse. A repeated tag
    overwrites the earlier entry.
    """
    record: Record = {}
    for child in children:
        if isinstance(child, Leaf):
            value: Union[Scalar, Record] = coerce(child.type_hint, child.text)
        else:
            value = map_elements(child.children)
        record[child.tag] = value
    return record


def element_to_record(node: ET.Element) -> Record:
    """Map the child elements of `node` (e.g. a <story>) into a record."""
    return map_elements([element_from_etree(k) for k in node])


# --------------- Parsing helpers ---------------
def parse_xml(body: Union[bytes, str]) -> ET.Element:
    try:
        return ET.fromstring(body)
    except ET.ParseError as exc:
        raise MalformedXmlError(str(exc)) from exc


def find_first(root: ET.Element, tag: str) -> Optional[ET.Element]:
    """Return `root` itself or its first descendant named `tag` (document order)."""
    for node in root.iter(tag):
        return node
    return None


def find_children(root: ET.Element, tag: str) -> List[ET.Element]:
    """Direct children of `root` named `tag` (CSS `root > tag`)."""
    return [node for node in root if node.tag == tag]


def iter_texts(nodes: Sequence[ET.Element]) -> Iterator[str]:
    for node in nodes:
        yield "".join(node.itertext())


# --------------- Serialization ---------------
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")
# Characters XML 1.0 does not allow in a document, even escaped
_ILLEGAL_CHARS_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _tag(name: Any) -> str:
    tag = str(name)
    if not _NAME_RE.fullmatch(tag):
        raise RecordSerializeError(f"invalid field name: {tag!r}")
    return tag


def _text(value: Any) -> str:
    text = str(value)
    match = _ILLEGAL_CHARS_RE.search(text)
    if match:
        raise RecordSerializeError(
            f"character {match.group()!r} is not allowed in XML text: {text!r}"
        )
    return text


def _fill(parent: ET.Element, record: Mapping[str, Any]) -> None:
    for key, value in record.items():
        child = ET.SubElement(parent, _tag(key))
        if isinstance(value, Mapping):
            _fill(child, value)
        elif value is None:
            continue
        elif isinstance(value, bool):
            child.text = "true" if value else "false"
        elif isinstance(value, int):
            child.set("type", TypeHint.INTEGER.value)
            child.text = str(value)
        else:
            child.text = _text(value)


def record_to_xml(record: Mapping[str, Any], root_tag: str) -> str:
    """
    Serialize a record as `<root_tag>` with one child element per field.

    Text is escaped by ElementTree; integers carry `type="integer"` so they
    map back to ints. Field names must be plain XML names and text must not
    contain control characters XML forbids; either raises
    RecordSerializeError rather than being rewritten.
    """
    root = ET.Element(_tag(root_tag))
    _fill(root, record)
    return ET.tostring(root, encoding="unicode")


__all__ = [
    "Branch",
    "Element",
    "Leaf",
    "Record",
    "Scalar",
    "TypeHint",
    "coerce",
    "element_from_etree",
    "element_to_record",
    "find_children",
    "find_first",
    "iter_texts",
    "map_elements",
    "parse_xml",
    "record_to_xml",
]
