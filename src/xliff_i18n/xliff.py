"""
XLIFF 1.2 serializer.

Converts between i18n messages and XLIFF 1.2 documents:
- decode_messages: XLIFF text -> {message id: i18n nodes}, read from <target>
- decode_raw_units: XLIFF text -> {message id: trans-unit XML node}
- encode_document: i18n messages -> XLIFF text, after any existing units

http://docs.oasis-open.org/xliff/v1.2/os/xliff-core.html
http://docs.oasis-open.org/xliff/v1.2/xliff-profile-html/xliff-profile-html-1.2.html
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from . import constants
from . import i18n
from . import markup as ml
from .digest import digest
from .errors import DecodeResult, I18nError, check_document_size
from .raw_units import decode_raw_units, load_raw_units
from .xml_nodes import CR, Declaration, Tag, Text, XmlNode, serialize

logger = logging.getLogger("xliff-serializer")

__all__ = [
    "UnitExtractor",
    "MessageDecoder",
    "MessageEncoder",
    "load_messages",
    "decode_messages",
    "load_raw_units",
    "decode_raw_units",
    "encode_document",
    "compute_message_digest",
]


class UnitExtractor:
    """
    Extracts the raw markup of each translation from an XLIFF document.

    Only the content of <target> is kept, verbatim, so that nested markup
    reaches the message decoder exactly as the translator wrote it.
    <source> and <seg-source> are ignored.
    """

    def __init__(self):
        self._msg_id_to_html: Dict[str, str] = {}
        self._unit_ml_string: Optional[str] = None
        self._errors: List[ml.ParseError] = []

    def extract(self, content: str, url: str = "") -> DecodeResult[Dict[str, str]]:
        """
        Map every trans-unit id to the inner markup of its <target>.

        Args:
            content: The full XLIFF document
            url: Name of the document, used in error locations

        Returns:
            DecodeResult with the id -> markup mapping and all errors found
        """
        self._msg_id_to_html = {}
        self._unit_ml_string = None

        tree = ml.parse(content, url, tokenize_expansion_forms=False)
        self._errors = list(tree.errors)
        self._visit_all(tree.root_nodes)

        logger.debug(f"Extracted {len(self._msg_id_to_html)} translation units")
        return DecodeResult(self._msg_id_to_html, self._errors)

    def _visit_all(self, nodes: Iterable[ml.Node]):
        for node in nodes:
            # text, comments and expansions carry nothing at document level
            if isinstance(node, ml.Element):
                self._visit_element(node)

    def _visit_element(self, element: ml.Element):
        match element.name:
            case constants.UNIT_TAG:
                self._visit_unit(element)

            # ignore these tags
            case constants.SOURCE_TAG | constants.SEGMENT_SOURCE_TAG:
                pass

            case constants.TARGET_TAG:
                self._unit_ml_string = self._inner_text(element)

            case constants.FILE_TAG:
                self._visit_all(element.children)

            case _:
                # Unknown wrappers are walked through, not rejected
                self._visit_all(element.children)

    def _visit_unit(self, element: ml.Element):
        self._unit_ml_string = None
        id_attr = element.get_attr("id")
        if id_attr is None:
            self._add_error(element, f'<{constants.UNIT_TAG}> misses the "id" attribute')
            return

        msg_id = id_attr.value
        if msg_id in self._msg_id_to_html:
            self._add_error(element, f"Duplicated translations for msg {msg_id}")
            return

        self._visit_all(element.children)
        if self._unit_ml_string is not None:
            self._msg_id_to_html[msg_id] = self._unit_ml_string
        else:
            self._add_error(element, f"Message {msg_id} misses a translation")

    @staticmethod
    def _inner_text(element: ml.Element) -> Optional[str]:
        if element.end_source_span is None:
            # unclosed, already reported by the parser
            return None
        if element.end_source_span is element.start_source_span:
            return ""
        start = element.start_source_span.end
        end = element.end_source_span.start
        return start.file.content[start.offset:end.offset]

    def _add_error(self, node: ml.Element, message: str):
        self._errors.append(I18nError(node.source_span, message))


class MessageDecoder:
    """Converts the markup of one translation into i18n nodes."""

    def __init__(self):
        self._errors: List[ml.ParseError] = []

    def convert(self, message: str, url: str = "") -> DecodeResult[List[i18n.I18nNode]]:
        """
        Parse ``message`` (ICU aware) and convert it to i18n nodes.

        When the markup has errors, or is empty, the node list is empty:
        callers must look at the errors.
        """
        tree = ml.parse(message, url, tokenize_expansion_forms=True)
        self._errors = list(tree.errors)

        if self._errors or not tree.root_nodes:
            nodes = []
        else:
            nodes = self._visit_all(tree.root_nodes)

        return DecodeResult(nodes, self._errors)

    def _visit_all(self, nodes: Iterable[ml.Node]) -> List[i18n.I18nNode]:
        converted = []
        for node in nodes:
            converted.extend(self._visit(node))
        return converted

    def _visit(self, node: ml.Node) -> List[i18n.I18nNode]:
        match node:
            case ml.Text(value=value):
                return [i18n.Text(value, node.source_span)]

            case ml.Element(name=constants.PLACEHOLDER_TAG):
                name_attr = node.get_attr("id")
                if name_attr is not None:
                    return [i18n.Placeholder(name_attr.value, "", node.source_span)]
                self._add_error(node, f'<{constants.PLACEHOLDER_TAG}> misses the "id" attribute')
                return []

            case ml.Element(name=constants.MARKER_TAG):
                return self._visit_all(node.children)

            case ml.Element():
                self._add_error(node, "Unexpected tag")
                return []

            case ml.Expansion():
                return [self._visit_expansion(node)]

            case ml.Comment() | ml.Attribute():
                return []

            case _:
                raise TypeError(f"Unsupported markup node: {node!r}")

    def _visit_expansion(self, icu: ml.Expansion) -> i18n.Icu:
        case_map = {
            icu_case.value: i18n.Container(self._visit_all(icu_case.expression), icu.source_span)
            for icu_case in icu.cases
        }
        return i18n.Icu(icu.switch_value, icu.type, case_map, icu.source_span)

    def _add_error(self, node: ml.Element, message: str):
        self._errors.append(I18nError(node.source_span, message))


def get_ctype_for_tag(tag: str) -> str:
    return constants.CTYPE_BY_TAG.get(tag.lower(), f"x-{tag}")


class MessageEncoder:
    """Converts i18n nodes into XLIFF XML nodes. Never fails on a valid tree."""

    def serialize(self, nodes: Iterable[i18n.I18nNode]) -> List[XmlNode]:
        xml_nodes: List[XmlNode] = []
        for node in nodes:
            xml_nodes.extend(self.visit(node))
        return xml_nodes

    def visit(self, node: i18n.I18nNode) -> List[XmlNode]:
        match node:
            case i18n.Text(value=value):
                return [Text(value)]

            case i18n.Container(children=children):
                return self.serialize(children)

            case i18n.Icu():
                return self._visit_icu(node)

            case i18n.TagPlaceholder():
                return self._visit_tag_placeholder(node)

            case i18n.Placeholder(name=name, value=value):
                return [Tag(constants.PLACEHOLDER_TAG, {"id": name, "equiv-text": f"{{{{{value}}}}}"})]

            case i18n.IcuPlaceholder(name=name, value=icu):
                cases = " ".join(f"{label} {{...}}" for label in icu.cases)
                equiv_text = f"{{{icu.expression_placeholder}, {icu.type}, {cases}}}"
                return [Tag(constants.PLACEHOLDER_TAG, {"id": name, "equiv-text": equiv_text})]

            case _:
                raise TypeError(f"Unsupported i18n node: {node!r}")

    def _visit_icu(self, icu: i18n.Icu) -> List[XmlNode]:
        nodes: List[XmlNode] = [Text(f"{{{icu.expression_placeholder}, {icu.type}, ")]
        for label, body in icu.cases.items():
            nodes.append(Text(f"{label} {{"))
            nodes.extend(self.visit(body))
            nodes.append(Text("} "))
        nodes.append(Text("}"))
        return nodes

    def _visit_tag_placeholder(self, ph: i18n.TagPlaceholder) -> List[XmlNode]:
        ctype = get_ctype_for_tag(ph.tag)

        if ph.is_void:
            # void tags have no children nor closing tags
            return [Tag(constants.PLACEHOLDER_TAG, {"id": ph.start_name, "ctype": ctype, "equiv-text": f"<{ph.tag}/>"})]

        start_tag_ph = Tag(constants.PLACEHOLDER_TAG, {"id": ph.start_name, "ctype": ctype, "equiv-text": f"<{ph.tag}>"})
        close_tag_ph = Tag(constants.PLACEHOLDER_TAG, {"id": ph.close_name, "ctype": ctype, "equiv-text": f"</{ph.tag}>"})
        return [start_tag_ph, *self.serialize(ph.children), close_tag_ph]


def load_messages(content: str, url: str = "") -> DecodeResult[Dict[str, List[i18n.I18nNode]]]:
    """
    Decode every translation of an XLIFF document, collecting all errors.

    Args:
        content: The full XLIFF document
        url: Name of the document, used in error locations

    Returns:
        DecodeResult mapping message ids to i18n nodes
    """
    size_errors = check_document_size(content, url)
    if size_errors:
        return DecodeResult({}, size_errors)

    extracted = UnitExtractor().extract(content, url)
    errors = list(extracted.errors)

    decoder = MessageDecoder()
    messages: Dict[str, List[i18n.I18nNode]] = {}
    for msg_id, unit_markup in extracted.value.items():
        converted = decoder.convert(unit_markup, msg_id)
        errors.extend(converted.errors)
        messages[msg_id] = converted.value

    for error in errors:
        logger.warning(f"{error}")
    logger.debug(f"Decoded {len(messages)} messages ({len(errors)} errors)")

    return DecodeResult(messages, errors)


def decode_messages(content: str, url: str = "") -> Dict[str, List[i18n.I18nNode]]:
    """
    Decode the translations of an XLIFF document into i18n nodes.

    Raises:
        XliffParseError: listing every error found in the document
    """
    return load_messages(content, url).unwrap()


def _build_trans_unit(message: i18n.Message, encoder: MessageEncoder) -> Tag:
    context_tags: List[XmlNode] = []
    for source in message.sources:
        context_group = Tag(constants.CONTEXT_GROUP_TAG, {"purpose": "location"}, [
            CR(constants.INDENT_CONTEXT),
            Tag(constants.CONTEXT_TAG, {"context-type": "sourcefile"}, [Text(source.file_path)]),
            CR(constants.INDENT_CONTEXT),
            Tag(constants.CONTEXT_TAG, {"context-type": "linenumber"}, [Text(f"{source.start_line}")]),
            CR(constants.INDENT_UNIT_CHILD),
        ])
        context_tags.extend([CR(constants.INDENT_UNIT_CHILD), context_group])

    children: List[XmlNode] = [
        CR(constants.INDENT_UNIT_CHILD),
        Tag(constants.SOURCE_TAG, {}, encoder.serialize(message.nodes)),
        *context_tags,
    ]

    if message.description:
        children.extend([
            CR(constants.INDENT_UNIT_CHILD),
            Tag(constants.NOTE_TAG, {"priority": "1", "from": "description"}, [Text(message.description)]),
        ])

    if message.meaning:
        children.extend([
            CR(constants.INDENT_UNIT_CHILD),
            Tag(constants.NOTE_TAG, {"priority": "1", "from": "meaning"}, [Text(message.meaning)]),
        ])

    children.append(CR(constants.INDENT_UNIT))
    return Tag(constants.UNIT_TAG, {"id": message.id, "datatype": constants.UNIT_DATATYPE}, children)


def encode_document(
    messages: Sequence[i18n.Message],
    locale: Optional[str] = None,
    existing_units: Sequence[XmlNode] = (),
) -> str:
    """
    Write messages as an XLIFF 1.2 document.

    Args:
        messages: Messages to write, each as a new trans-unit
        locale: Source language of the messages (defaults to "en")
        existing_units: Already existing trans-unit nodes, written first and
            untouched (e.g. the values of decode_raw_units)

    Returns:
        The serialized document
    """
    encoder = MessageEncoder()
    trans_units: List[XmlNode] = []

    for unit in existing_units:
        trans_units.extend([CR(constants.INDENT_UNIT), unit])

    for message in messages:
        trans_units.extend([CR(constants.INDENT_UNIT), _build_trans_unit(message, encoder)])

    logger.debug(f"Writing {len(existing_units)} existing and {len(messages)} new units")

    body = Tag(constants.BODY_TAG, {}, [*trans_units, CR(constants.INDENT_BODY)])
    file_tag = Tag(
        constants.FILE_TAG,
        {
            "source-language": locale or constants.DEFAULT_SOURCE_LANG,
            "datatype": constants.FILE_DATATYPE,
            "original": constants.FILE_ORIGINAL,
        },
        [CR(constants.INDENT_BODY), body, CR(constants.INDENT_FILE)],
    )
    xliff = Tag(
        constants.XLIFF_TAG,
        {"version": constants.XLIFF_VERSION, "xmlns": constants.XLIFF_NAMESPACE},
        [CR(constants.INDENT_FILE), file_tag, CR()],
    )

    return serialize([Declaration(constants.XML_DECLARATION_ATTRS), CR(), xliff, CR()])


compute_message_digest = digest
