from __future__ import annotations

import re
from xml.etree import ElementTree as ET

from placements.core.validation import parse_int64
from placements.errors import FormatError

_RE_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_TRUE = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE = {"0", "f", "F", "false", "FALSE", "False"}


def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1]


# Разбирает документ; имена тегов без namespace (Realty шлет xmlns по умолчанию)
def parse_document(body: bytes, root: str | None = None) -> ET.Element:
    try:
        doc = ET.fromstring(body)
    except ET.ParseError as e:
        raise FormatError(f"malformed XML: {e}") from e
    for el in doc.iter():
        if isinstance(el.tag, str):
            el.tag = _local(el.tag)
        if any("}" in k for k in el.attrib):
            el.attrib = {_local(k): v for k, v in el.attrib.items()}
    if root is not None and doc.tag != root:
        raise FormatError(f"expected element type <{root}> but have <{doc.tag}>")
    return doc


# Текст дочернего тега ("" если тега нет)
def text(el: ET.Element | None, path: str | None = None) -> str:
    if el is not None and path:
        el = el.find(path)
    if el is None or el.text is None:
        return ""
    return el.text


def attr(el: ET.Element | None, name: str) -> str:
    if el is None:
        return ""
    return el.get(name, "")


def texts(el: ET.Element | None, path: str) -> list[str]:
    if el is None:
        return []
    return [text(sub) for sub in el.findall(path)]


def _int(raw: str, where: str) -> int:
    s = raw.strip()
    if not s:
        return 0
    try:
        return parse_int64(s)
    except FormatError as e:
        raise FormatError(f"field {where}: {e}") from e


def _float(raw: str, where: str) -> float:
    s = raw.strip()
    if not s:
        return 0.0
    if not _RE_FLOAT.fullmatch(s):
        raise FormatError(f"field {where}: can't parse {raw!r} as a number")
    return float(s)


def integer(el: ET.Element | None, path: str) -> int:
    return _int(text(el, path), path)


def optional_integer(el: ET.Element | None, path: str) -> int | None:
    """Like integer(), but None when the element is missing altogether."""
    if el is None or el.find(path) is None:
        return None
    return integer(el, path)


def integer_attr(el: ET.Element | None, name: str) -> int:
    return _int(attr(el, name), name)


def number(el: ET.Element | None, path: str) -> float:
    return _float(text(el, path), path)


def flag(el: ET.Element | None, path: str) -> bool:
    s = text(el, path).strip()
    if not s or s in _FALSE:
        return False
    if s in _TRUE:
        return True
    raise FormatError(f"field {path}: can't parse {s!r} as a boolean")
