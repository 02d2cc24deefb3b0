"""
Loading of existing trans-units.

When messages are extracted again, the units of the previous XLIFF file are
carried over untouched so that approved translations survive. This module
reads such a file with the same markup decoder as the translation reader,
so that every document decode_messages accepts can also be merged, and turns
each <trans-unit> into an XML node tree that the document writer can emit
as-is.
"""

import logging
from typing import Dict, Iterable, List, Mapping

from . import constants
from . import markup as ml
from .errors import DecodeResult, I18nError, check_document_size
from .xml_nodes import Tag, Text, XmlNode

logger = logging.getLogger("xliff-raw-units")

# prefixes that never need a declaration
_RESERVED_PREFIXES = frozenset({"xml", "xmlns"})


def _local_name(name: str) -> str:
    return name.rpartition(":")[2]


def _prefix(name: str) -> str:
    return name.partition(":")[0] if ":" in name else ""


def _namespace_declarations(element: ml.Element) -> Dict[str, str]:
    """``xmlns:prefix`` attributes of an element, keyed by prefix."""
    return {
        attr.name[len("xmlns:"):]: attr.value
        for attr in element.attrs
        if attr.name.startswith("xmlns:")
    }


def _to_xml_node(element: ml.Element, used_prefixes: Dict[str, None], declared: Dict[str, None]) -> Tag:
    """Convert a markup element (and its subtree) into a Tag, keeping text."""
    for name in [element.name, *(attr.name for attr in element.attrs)]:
        prefix = _prefix(name)
        if prefix and prefix not in _RESERVED_PREFIXES:
            used_prefixes[prefix] = None
    for prefix in _namespace_declarations(element):
        declared[prefix] = None

    children: List[XmlNode] = []
    for child in element.children:
        match child:
            case ml.Text(value=value):
                children.append(Text(value))
            case ml.Element():
                children.append(_to_xml_node(child, used_prefixes, declared))
            case _:
                # comments carry nothing worth keeping
                pass

    attrs = {attr.name: attr.value for attr in element.attrs}
    return Tag(element.name, attrs, children)


def _unit_to_xml_node(unit: ml.Element, in_scope: Mapping[str, str]) -> Tag:
    used_prefixes: Dict[str, None] = {}
    declared: Dict[str, None] = {}
    tag = _to_xml_node(unit, used_prefixes, declared)

    missing = sorted(prefix for prefix in used_prefixes if prefix not in declared and prefix in in_scope)
    if not missing:
        return tag

    # the unit is moved into a new document: declare the prefixes it relies on
    attrs = dict(tag.attrs)
    for prefix in missing:
        attrs[f"xmlns:{prefix}"] = in_scope[prefix]
    return Tag(tag.name, attrs, tag.children)


class _UnitCollector:
    """Walks a markup tree and collects every trans-unit, in document order."""

    def __init__(self):
        self.units: Dict[str, Tag] = {}
        self.errors: List[I18nError] = []

    def visit_all(self, nodes: Iterable[ml.Node], in_scope: Mapping[str, str]):
        for node in nodes:
            if isinstance(node, ml.Element):
                self._visit_element(node, {**in_scope, **_namespace_declarations(node)})

    def _visit_element(self, element: ml.Element, in_scope: Mapping[str, str]):
        if _local_name(element.name) != constants.UNIT_TAG:
            self.visit_all(element.children, in_scope)
            return

        id_attr = element.get_attr("id")
        if id_attr is None:
            self._add_error(element, f'<{constants.UNIT_TAG}> misses the "id" attribute')
        elif id_attr.value in self.units:
            self._add_error(element, f"Duplicated translations for msg {id_attr.value}")
        else:
            self.units[id_attr.value] = _unit_to_xml_node(element, in_scope)

    def _add_error(self, element: ml.Element, message: str):
        self.errors.append(I18nError(element.source_span, message))


def load_raw_units(content: str, url: str = "") -> DecodeResult[Dict[str, Tag]]:
    """
    Collect the trans-units of an XLIFF document as XML node trees.

    Args:
        content: The full XLIFF document
        url: Name of the document, used in error locations

    Returns:
        DecodeResult mapping trans-unit ids to their nodes, with every
        syntax and structure error found. A document with syntax errors
        gives no units.
    """
    size_errors = check_document_size(content, url)
    if size_errors:
        return DecodeResult({}, size_errors)

    tree = ml.parse(content, url, tokenize_expansion_forms=False)
    if tree.errors:
        for error in tree.errors:
            logger.warning(f"{error}")
        return DecodeResult({}, list(tree.errors))

    collector = _UnitCollector()
    collector.visit_all(tree.root_nodes, {})

    for error in collector.errors:
        logger.warning(f"{error}")
    logger.debug(f"Loaded {len(collector.units)} existing translation units")

    return DecodeResult(collector.units, collector.errors)


def decode_raw_units(content: str, url: str = "") -> Dict[str, Tag]:
    """
    Collect the trans-units of an XLIFF document as XML node trees.

    Raises:
        XliffParseError: listing every error found in the document
    """
    return load_raw_units(content, url).unwrap()
