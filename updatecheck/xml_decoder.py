"""Minimal XML decoder for update-check responses.

Converts the restricted XML dialect spoken by update servers into plain
Python values using the folding rules the reconciliation layer depends on:

* attributes become ``@name`` keys of a dict
* an element whose only child is text becomes that text
* a tag seen once under a parent becomes a bare value, a repeated tag a list
* text mixed with other children is stored under ``#``
* an empty paired element becomes ``""``, an empty self-closing one ``None``

Whitespace-only text is dropped and other text is trimmed. Comments,
processing instructions and DOCTYPE declarations are skipped; CDATA content
is kept verbatim. Malformed input degrades to missing values instead of
raising: unclosed elements are closed at end of input and stray closing
tags are ignored.

Example:
    >>> decode('<gupdate><app appid="x"><updatecheck status="ok"/></app></gupdate>')
    {'gupdate': {'app': {'@appid': 'x', 'updatecheck': {'@status': 'ok'}}}}
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

NAMED_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&apos;": "'",
    "&quot;": '"',
}

ENTITY_PATTERN = re.compile(r"&(?:lt|gt|amp|apos|quot|#(?:\d{1,6}|x[0-9a-fA-F]{1,5}));")

TEXT_KEY = "#"
ATTRIBUTE_PREFIX = "@"

_NAME_TERMINATORS = frozenset(" \t\r\n/>")


def decode_entities(text: str) -> str:
    """Replace the predefined XML entities and numeric character references."""

    def replace(match: re.Match[str]) -> str:
        entity = match.group(0)
        if entity[1] == "#":
            code = int(entity[3:-1], 16) if entity[2] == "x" else int(entity[2:-1])
            try:
                return chr(code)
            except ValueError:
                return entity
        return NAMED_ENTITIES.get(entity, entity)

    return ENTITY_PATTERN.sub(replace, text)


def as_list(value: Any) -> list[Any]:
    """Normalize a possibly-repeated child into a list.

    A tag that occurs once decodes to a bare value and a repeated tag to a
    list, so callers iterating repeated children go through this first.

    Examples:
        >>> as_list(None)
        []
        >>> as_list({"@appid": "a"})
        [{'@appid': 'a'}]
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


@dataclass
class _Element:
    name: str
    attributes: dict[str, str | None] | None = None
    children: list[_Element | str] = field(default_factory=list)
    self_closing: bool = False


class _Parser:
    """Recursive-descent parser producing an ``_Element`` tree."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._length = len(text)

    def parse(self) -> _Element:
        root = _Element(name="")
        self._parse_children(root, [])
        return root

    def _parse_children(self, element: _Element, open_names: list[str]) -> None:
        """Parse child nodes until the element's closing tag or end of input."""
        while self._pos < self._length:
            if self._text[self._pos] != "<":
                self._parse_text(element)
                continue

            if self._startswith("<!--"):
                self._skip_past("-->")
            elif self._startswith("<![CDATA["):
                self._parse_cdata(element)
            elif self._startswith("<!"):
                self._skip_declaration()
            elif self._startswith("<?"):
                self._skip_past("?>")
            elif self._startswith("</"):
                closing = self._peek_closing_name()
                if element.name and closing == element.name.lower():
                    self._skip_past(">")
                    return
                if closing in open_names:
                    # Closes an ancestor: this element ends implicitly
                    return
                self._skip_past(">")
            elif self._is_tag_start():
                child = self._parse_start_tag()
                element.children.append(child)
                if not child.self_closing:
                    ancestors = [*open_names, element.name.lower()] if element.name else open_names
                    self._parse_children(child, ancestors)
            else:
                # A lone "<" that starts no tag is ordinary text
                self._append_text(element, "<")
                self._pos += 1

    def _startswith(self, prefix: str) -> bool:
        return self._text.startswith(prefix, self._pos)

    def _skip_past(self, terminator: str) -> str:
        end = self._text.find(terminator, self._pos)
        if end < 0:
            content = self._text[self._pos :]
            self._pos = self._length
            return content
        content = self._text[self._pos : end]
        self._pos = end + len(terminator)
        return content

    def _skip_declaration(self) -> None:
        """Skip ``<!DOCTYPE ...>`` including an internal ``[...]`` subset."""
        depth = 0
        quote: str | None = None
        while self._pos < self._length:
            char = self._text[self._pos]
            self._pos += 1
            if quote:
                if char == quote:
                    quote = None
            elif char in "'\"":
                quote = char
            elif char == "[":
                depth += 1
            elif char == "]":
                depth -= 1
            elif char == ">" and depth <= 0:
                return

    def _is_tag_start(self) -> bool:
        following = self._text[self._pos + 1 : self._pos + 2]
        return bool(following) and following not in "<>!?/ \t\r\n"

    def _peek_closing_name(self) -> str:
        start = self._pos + 2
        end = start
        while end < self._length and self._text[end] not in _NAME_TERMINATORS:
            end += 1
        return self._text[start:end].lower()

    def _read_name(self) -> str:
        start = self._pos
        while self._pos < self._length and self._text[self._pos] not in _NAME_TERMINATORS:
            if self._text[self._pos] in "='\"":
                break
            self._pos += 1
        return self._text[start : self._pos]

    def _skip_whitespace(self) -> None:
        while self._pos < self._length and self._text[self._pos].isspace():
            self._pos += 1

    def _parse_start_tag(self) -> _Element:
        self._pos += 1
        element = _Element(name=self._read_name())

        while self._pos < self._length:
            self._skip_whitespace()
            if self._startswith("/>"):
                self._pos += 2
                element.self_closing = True
                return element
            if self._startswith(">"):
                self._pos += 1
                return element
            if self._startswith("/"):
                self._pos += 1
                continue

            name = self._read_name()
            if not name:
                # Stray quote or "=" without a name
                self._pos += 1
                continue
            value = self._parse_attribute_value()
            if element.attributes is None:
                element.attributes = {}
            _fold_into(element.attributes, ATTRIBUTE_PREFIX + name, value)

        return element

    def _parse_attribute_value(self) -> str | None:
        self._skip_whitespace()
        if not self._startswith("="):
            return None
        self._pos += 1
        self._skip_whitespace()

        quote = self._text[self._pos : self._pos + 1]
        if quote in ("'", '"'):
            self._pos += 1
            return decode_entities(self._skip_past(quote))

        start = self._pos
        while self._pos < self._length:
            char = self._text[self._pos]
            if char.isspace() or char == ">" or self._startswith("/>"):
                break
            self._pos += 1
        return decode_entities(self._text[start : self._pos])

    def _parse_cdata(self, element: _Element) -> None:
        self._pos += len("<![CDATA[")
        content = self._skip_past("]]>")
        if content:
            element.children.append(content)

    def _parse_text(self, element: _Element) -> None:
        end = self._text.find("<", self._pos)
        if end < 0:
            end = self._length
        self._append_text(element, self._text[self._pos : end])
        self._pos = end

    @staticmethod
    def _append_text(element: _Element, raw: str) -> None:
        text = raw.strip()
        if text:
            element.children.append(decode_entities(text))


def _fold_into(target: dict[str, Any], key: str, value: Any) -> None:
    """Store ``value`` under ``key``, turning repeated keys into a list."""
    if key not in target:
        target[key] = value
    elif isinstance(target[key], list):
        target[key].append(value)
    else:
        target[key] = [target[key], value]


def _fold(node: _Element | str) -> Any:
    if isinstance(node, str):
        return node

    children = node.children
    if node.attributes or len(children) > 1:
        folded: dict[str, Any] = dict(node.attributes or {})
        for child in children:
            if isinstance(child, str):
                _fold_into(folded, TEXT_KEY, child)
            else:
                _fold_into(folded, child.name, _fold(child))
        return folded

    if children:
        only = children[0]
        if isinstance(only, str):
            return only
        return {only.name: _fold(only)}

    return None if node.self_closing else ""


def decode(text: str) -> Any:
    """Decode an XML document into nested dicts, lists and strings.

    Args:
        text: XML document text.

    Returns:
        The folded document, normally a dict keyed by the root tag name.
    """
    return _fold(_Parser(text).parse())
