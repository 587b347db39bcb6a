"""
XML wire-format engine.

Converts between XML text and the in-memory object tree used by the
document layer. The object convention is:

- keys starting with ``@`` are attributes (``@xmlns`` declares the
  default namespace of the element and its descendants)
- the key ``#`` holds element text
- a list value is a run of repeated sibling elements
- a scalar value is a text-only element, ``None`` an empty one

Empty text is always written as an empty element (``<a/>``), so
``<a></a>`` and ``<a/>`` read back identically and re-serialize to the
same bytes. Text of a leaf element is kept verbatim, whitespace
included; whitespace-only text between child elements is layout and
is dropped.

Parsing is hardened: no entity resolution, no network access, no DTD
loading.

This module knows nothing about Akoma Ntoso. Schema-aware handling
(e.g. which elements always repeat) belongs to the document layer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

from lxml import etree


class WireFormatError(ValueError):
    """Raised when text cannot be parsed or a tree cannot be serialized."""


@dataclass(frozen=True)
class SerializeOptions:
    pretty_print: bool = True
    xml_declaration: bool = True
    encoding: str = "UTF-8"


class WireFormatEngine(Protocol):
    """
    Tree <-> text conversion interface.

    Implementations MUST:
    - never mutate the tree passed to ``serialize``
    - produce identical text for identical trees and options
    """

    def parse(self, text: Union[str, bytes]) -> Dict[str, Any]:
        ...

    def serialize(
        self,
        tree: Mapping[str, Any],
        options: SerializeOptions,
    ) -> str:
        ...


ATTRIBUTE_PREFIX = "@"
TEXT_KEY = "#"
NAMESPACE_KEY = "@xmlns"

DECLARED_ENCODING_RE = re.compile(
    r"""^\s*<\?xml[^>]*?\bencoding\s*=\s*["'](?P<encoding>[A-Za-z0-9._\-]+)["']"""
)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _set_text(element: etree._Element, value: Any) -> None:
    element.text = _scalar(value) or None


def _as_declared_bytes(text: Union[str, bytes]) -> bytes:
    """
    Encode ``str`` input with the encoding its XML declaration names.

    lxml decodes by the declaration, so any other encoding would
    corrupt non-ASCII content. Bytes are passed through untouched.
    """
    if isinstance(text, bytes):
        return text

    match = DECLARED_ENCODING_RE.match(text)
    encoding = match.group("encoding") if match else "utf-8"
    try:
        return text.encode(encoding)
    except (LookupError, UnicodeEncodeError) as exc:
        raise WireFormatError(
            f"Text cannot be encoded as declared ({encoding}): {exc}"
        ) from exc


class LxmlWireEngine:
    """lxml-backed implementation of :class:`WireFormatEngine`."""

    def __init__(self) -> None:
        self._parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            load_dtd=False,
            remove_blank_text=True,
            remove_comments=True,
            remove_pis=True,
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize(
        self,
        tree: Mapping[str, Any],
        options: SerializeOptions,
    ) -> str:
        roots = [
            k for k in tree if not k.startswith((ATTRIBUTE_PREFIX, TEXT_KEY))
        ]
        if len(roots) != 1:
            raise WireFormatError(
                f"Tree must have exactly one root element, found {roots}"
            )

        name = roots[0]
        value = tree[name]
        if isinstance(value, list):
            raise WireFormatError(f"Root element '{name}' cannot repeat")

        try:
            root = self._build(None, name, value, namespace=None)
            raw = etree.tostring(
                root,
                pretty_print=options.pretty_print,
                xml_declaration=options.xml_declaration,
                encoding=options.encoding,
            )
        except (ValueError, TypeError) as exc:
            raise WireFormatError(f"Cannot serialize tree: {exc}") from exc

        return raw.decode(options.encoding)

    def _build(
        self,
        parent: Optional[etree._Element],
        name: str,
        value: Any,
        *,
        namespace: Optional[str],
    ) -> etree._Element:
        nsmap = None
        if isinstance(value, Mapping) and NAMESPACE_KEY in value:
            namespace = str(value[NAMESPACE_KEY]) or None
            nsmap = {None: namespace} if namespace else None

        tag = f"{{{namespace}}}{name}" if namespace else name
        if parent is None:
            element = etree.Element(tag, nsmap=nsmap)
        else:
            element = etree.SubElement(parent, tag, nsmap=nsmap)

        if value is None:
            return element

        if not isinstance(value, Mapping):
            _set_text(element, value)
            return element

        for key, child in value.items():
            if key == NAMESPACE_KEY:
                continue
            if key.startswith(ATTRIBUTE_PREFIX):
                element.set(key[1:], _scalar(child))
            elif key == TEXT_KEY:
                _set_text(element, child)
            elif isinstance(child, list):
                for item in child:
                    self._build(element, key, item, namespace=namespace)
            else:
                self._build(element, key, child, namespace=namespace)

        return element

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, text: Union[str, bytes]) -> Dict[str, Any]:
        if not isinstance(text, (str, bytes)):
            raise WireFormatError(
                f"parse expects text, got {type(text).__name__}"
            )

        try:
            root = etree.fromstring(
                _as_declared_bytes(text),
                parser=self._parser,
            )
        except etree.XMLSyntaxError as exc:
            raise WireFormatError(f"Malformed XML: {exc}") from exc

        return {etree.QName(root).localname: self._read(root, None)}

    def _read(
        self,
        element: etree._Element,
        parent_namespace: Optional[str],
    ) -> Any:
        namespace = etree.QName(element).namespace
        node: Dict[str, Any] = {}

        if namespace and namespace != parent_namespace:
            node[NAMESPACE_KEY] = namespace

        for key, attr in element.attrib.items():
            node[ATTRIBUTE_PREFIX + etree.QName(key).localname] = attr

        children: Dict[str, List[Any]] = {}
        for child in element:
            if not isinstance(child.tag, str):
                continue
            name = etree.QName(child).localname
            children.setdefault(name, []).append(self._read(child, namespace))

        text = element.text or None
        if children and text is not None and not text.strip():
            # layout between child elements
            text = None

        if not node and not children:
            return text if text is not None else ""

        if text is not None:
            node[TEXT_KEY] = text

        for name, items in children.items():
            node[name] = items[0] if len(items) == 1 else items

        return node
