"""
Byte-preserving model of the IPBan XML configuration document.

``xml.etree.ElementTree`` is used to decide whether a document is
well-formed, but re-serializing its tree would rewrite quoting,
whitespace, comments and the XML declaration.  Edits made through the
quick settings endpoints must leave every byte outside the changed
``value`` attributes untouched, so the document is also split into an
immutable sequence of tokens:

* ``StartTag`` for ``<name attr="...">`` and ``<name .../>``,
* ``EndTag`` for ``</name>``,
* ``Text`` for everything else (character data, comments, CDATA,
  processing instructions, the doctype).

Joining the raw text of all tokens reproduces the input exactly.  An
update never mutates a document: ``with_values`` returns a new
``ConfigDocument`` in which only the targeted attribute values were
replaced.

The settings section is the first ``appSettings`` element in document
order; its element children are the ``<add key="..." value="..."/>``
nodes.
"""

import re
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Tuple
from xml.sax.saxutils import escape

from ipban_webui.app.core.errors import InvalidInput


SETTINGS_SECTION = "appSettings"
KEY_ATTRIBUTE = "key"
VALUE_ATTRIBUTE = "value"

_START_TAG = re.compile(
    r"<(?P<name>[^\s/>!?]+)"
    r"(?P<attrs>(?:\s+[^\s=/>]+\s*=\s*(?:\"[^\"]*\"|'[^']*'))*)"
    r"\s*(?P<close>/?)>"
)
_ATTRIBUTE = re.compile(
    r"\s+(?P<name>[^\s=/>]+)\s*=\s*(?P<quote>[\"'])(?P<value>.*?)(?P=quote)",
    re.S,
)
_END_TAG = re.compile(r"</(?P<name>[^\s>]+)\s*>")
_REFERENCE = re.compile(r"&(#x[0-9a-fA-F]+|#[0-9]+|[A-Za-z_][\w.-]*);")
_CHAR_REFERENCE = re.compile(r"&(#x[0-9a-fA-F]+|#[0-9]+);")
# Internal general entities; parameter and external entities are not matched
_ENTITY_DECL = re.compile(
    r"<!ENTITY\s+(?P<name>[^\s%]+)\s+(?P<quote>[\"'])(?P<value>.*?)(?P=quote)\s*>",
    re.S,
)
_PREDEFINED = {"lt": "<", "gt": ">", "amp": "&", "quot": '"', "apos": "'"}

# Markup passed through as text: (opening, closing)
_OPAQUE = (
    ("<!--", "-->"),
    ("<![CDATA[", "]]>"),
    ("<?", "?>"),
)


class Attribute(NamedTuple):
    name: str
    value: str  # decoded
    quote: str
    start: int  # offsets of the raw value inside the tag text
    end: int


class StartTag(NamedTuple):
    raw: str
    name: str
    attributes: Tuple[Attribute, ...]
    self_closing: bool

    def attribute(self, name: str) -> Optional[Attribute]:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


class EndTag(NamedTuple):
    raw: str
    name: str


class Text(NamedTuple):
    raw: str


def _local_name(name: str) -> str:
    return name.rsplit(":", 1)[-1]


def _decode_char_reference(match: "re.Match[str]") -> str:
    ref = match.group(1)
    if ref.startswith("#x"):
        return chr(int(ref[2:], 16))
    return chr(int(ref[1:]))


def declared_entities(doctype: str) -> Dict[str, str]:
    """Replacement text of the internal entities declared in ``doctype``.

    The first declaration of a name wins.  Character references in the
    literal are expanded here; entity references are expanded on use.
    """
    entities: Dict[str, str] = {}
    for match in _ENTITY_DECL.finditer(doctype):
        text = _CHAR_REFERENCE.sub(_decode_char_reference, match.group("value"))
        entities.setdefault(match.group("name"), text)
    return entities


def decode_attribute(raw: str, entities: Optional[Mapping[str, str]] = None) -> str:
    """Return the value an XML parser reports for a raw attribute value.

    ``entities`` maps the names of entities declared in the document's
    internal subset to their replacement text.  References to unknown
    entities are left as written.
    """
    entities = entities or {}

    def expand(match: "re.Match[str]") -> str:
        ref = match.group(1)
        if ref.startswith("#"):
            return _decode_char_reference(match)
        if ref in _PREDEFINED:
            return _PREDEFINED[ref]
        if ref in entities:
            # an entity may not reference itself
            nested = {name: text for name, text in entities.items() if name != ref}
            return decode_attribute(entities[ref], nested)
        return match.group(0)

    # Literal whitespace is normalised to spaces before references are
    # expanded, so ``&#10;`` survives as a newline.
    normalised = raw.replace("\r\n", " ").replace("\r", " ").replace("\n", " ").replace("\t", " ")
    return _REFERENCE.sub(expand, normalised)


def encode_attribute(value: str, quote: str) -> str:
    """Escape ``value`` for use between ``quote`` characters."""
    entities = {"\t": "&#9;", "\n": "&#10;", "\r": "&#13;"}
    entities[quote] = "&quot;" if quote == '"' else "&apos;"
    return escape(value, entities)


def _skip_doctype(text: str, pos: int) -> int:
    """Return the offset just past a ``<!DOCTYPE ...>`` declaration starting at ``pos``."""
    depth = 0
    quote = ""
    i = pos + 2
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == ">" and depth <= 0:
            return i + 1
        i += 1
    raise InvalidInput("Unterminated markup declaration")


def _parse_start_tag(match: "re.Match[str]", entities: Mapping[str, str]) -> StartTag:
    raw = match.group(0)
    offset = match.start("attrs") - match.start()
    attributes = []
    for attr in _ATTRIBUTE.finditer(match.group("attrs")):
        attributes.append(
            Attribute(
                name=attr.group("name"),
                value=decode_attribute(attr.group("value"), entities),
                quote=attr.group("quote"),
                start=offset + attr.start("value"),
                end=offset + attr.end("value"),
            )
        )
    return StartTag(raw, match.group("name"), tuple(attributes), bool(match.group("close")))


def tokenize(text: str) -> Tuple[object, ...]:
    """Split ``text`` into ``Text``, ``StartTag`` and ``EndTag`` tokens."""
    tokens: List[object] = []
    entities: Dict[str, str] = {}
    pos = 0
    text_start = 0

    def flush(upto: int) -> None:
        if upto > text_start:
            tokens.append(Text(text[text_start:upto]))

    while True:
        lt = text.find("<", pos)
        if lt < 0:
            break
        for opening, closing in _OPAQUE:
            if text.startswith(opening, lt):
                end = text.find(closing, lt + len(opening))
                if end < 0:
                    raise InvalidInput(f"Unterminated {opening} at offset {lt}")
                pos = end + len(closing)
                break
        else:
            if text.startswith("<!", lt):
                pos = _skip_doctype(text, lt)
                for name, value in declared_entities(text[lt:pos]).items():
                    entities.setdefault(name, value)
                continue
            if text.startswith("</", lt):
                match = _END_TAG.match(text, lt)
                if match is None:
                    raise InvalidInput(f"Malformed end tag at offset {lt}")
                flush(lt)
                tokens.append(EndTag(match.group(0), match.group("name")))
            else:
                match = _START_TAG.match(text, lt)
                if match is None:
                    raise InvalidInput(f"Malformed start tag at offset {lt}")
                flush(lt)
                tokens.append(_parse_start_tag(match, entities))
            pos = match.end()
            text_start = pos
    flush(len(text))
    return tuple(tokens)


def check_well_formed(text: str) -> None:
    """Raise ``InvalidInput`` unless ``text`` parses as an XML document."""
    try:
        ET.fromstring(text.lstrip("\ufeff"))
    except ET.ParseError as exc:
        raise InvalidInput(f"Invalid XML: {exc}") from exc


class ConfigDocument:
    """An immutable, order-preserving view of a configuration document."""

    __slots__ = ("_tokens",)

    def __init__(self, tokens: Iterable[object]) -> None:
        self._tokens = tuple(tokens)

    @classmethod
    def parse(cls, text: str) -> "ConfigDocument":
        check_well_formed(text)
        return cls(tokenize(text))

    @property
    def tokens(self) -> Tuple[object, ...]:
        return self._tokens

    def serialize(self) -> str:
        return "".join(token.raw for token in self._tokens)

    def settings_nodes(self) -> Iterator[Tuple[int, StartTag]]:
        """Yield ``(token index, tag)`` for each element child of the settings section."""
        tokens = self._tokens
        section = None
        for index, token in enumerate(tokens):
            if isinstance(token, StartTag) and _local_name(token.name) == SETTINGS_SECTION:
                section = index
                break
        if section is None or tokens[section].self_closing:
            return
        depth = 0
        for index in range(section + 1, len(tokens)):
            token = tokens[index]
            if isinstance(token, StartTag):
                if depth == 0:
                    yield index, token
                if not token.self_closing:
                    depth += 1
            elif isinstance(token, EndTag):
                if depth == 0:
                    return
                depth -= 1

    def find_setting(self, key: str) -> Optional[Tuple[int, StartTag]]:
        """First settings node whose ``key`` equals ``key`` and that has a ``value``."""
        for index, tag in self.settings_nodes():
            attr = tag.attribute(KEY_ATTRIBUTE)
            if attr is not None and attr.value == key and tag.attribute(VALUE_ATTRIBUTE) is not None:
                return index, tag
        return None

    def get_values(self, keys: Iterable[str]) -> Dict[str, str]:
        """Values of the given keys that are present, in the order of ``keys``."""
        result: Dict[str, str] = {}
        for key in keys:
            found = self.find_setting(key)
            if found is not None:
                result[key] = found[1].attribute(VALUE_ATTRIBUTE).value
        return result

    def with_values(self, updates: Mapping[str, str]) -> "ConfigDocument":
        """Return a copy with the ``value`` of matching settings nodes replaced.

        Keys without a matching node are skipped; no node or attribute
        is ever added, removed or moved.
        """
        doc = self
        for key, value in updates.items():
            found = doc.find_setting(key)
            if found is None:
                continue
            index, tag = found
            tokens = list(doc._tokens)
            tokens[index] = _replace_value(tag, value)
            doc = ConfigDocument(tokens)
        return doc


def _replace_value(tag: StartTag, value: str) -> StartTag:
    attr = tag.attribute(VALUE_ATTRIBUTE)
    encoded = encode_attribute(value, attr.quote)
    raw = tag.raw[:attr.start] + encoded + tag.raw[attr.end:]
    # other attributes keep their decoded values; only offsets move
    shift = len(encoded) - (attr.end - attr.start)
    attributes = []
    for other in tag.attributes:
        if other is attr:
            other = other._replace(value=value, end=other.end + shift)
        elif other.start > attr.start:
            other = other._replace(start=other.start + shift, end=other.end + shift)
        attributes.append(other)
    return tag._replace(raw=raw, attributes=tuple(attributes))
