"""
Tests for the XLIFF 1.2 serializer.

Tests the conversion between i18n messages and XLIFF documents:
- Unit extraction (ids, duplicates, missing targets)
- Message decoding (placeholders, markers, ICU expressions)
- Message encoding (void and paired tag placeholders, ctype, equiv-text)
- Document assembly and merging with existing units
- Round trips
"""

import pytest
from lxml import etree

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xliff_i18n import (
    Container,
    Icu,
    IcuPlaceholder,
    Message,
    MessageSpan,
    Placeholder,
    TagPlaceholder,
    Text,
    XliffParseError,
    decode_messages,
    decode_raw_units,
    encode_document,
    load_messages,
)
from xliff_i18n import constants
from xliff_i18n.i18n import flatten
from xliff_i18n.xliff import MessageDecoder, MessageEncoder, UnitExtractor, get_ctype_for_tag
from xliff_i18n.xml_nodes import Tag, serialize

XLIFF_NS = "urn:oasis:names:tc:xliff:document:1.2"


def make_xliff(*units: str) -> str:
    """Wrap trans-unit markup in an XLIFF document."""
    body = "\n".join(f"      {unit}" for unit in units)
    return f'''<?xml version="1.0" encoding="UTF-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
  <file source-language="en" datatype="plaintext" original="ng2.template">
    <body>
{body}
    </body>
  </file>
</xliff>
'''


def make_unit(msg_id: str, target: str, source: str = "source text") -> str:
    return f'<trans-unit id="{msg_id}" datatype="html"><source>{source}</source><target>{target}</target></trans-unit>'


def encode_fragment(nodes) -> str:
    return serialize(MessageEncoder().serialize(nodes))


def round_trip(nodes):
    """Encode nodes as the target of a unit and decode them again."""
    document = make_xliff(make_unit("m", encode_fragment(nodes)))
    return decode_messages(document)["m"]


SAMPLE_XLIFF = make_xliff(
    make_unit("greeting", 'Bonjour <x id="INTERPOLATION" equiv-text="{{name}}"/> !', "Hello {{name}} !"),
    make_unit("plain", "Texte simple"),
    make_unit("marked", '<mrk mtype="seg" mid="1">Texte <x id="A"/></mrk>'),
    make_unit("plural", "{VAR_PLURAL, plural, =0 {aucun} other {<x id=\"INTERPOLATION\"/> éléments}}"),
)


class TestUnitExtractor:
    """Tests for locating trans-units and their targets."""

    def test_extracts_verbatim_target_markup(self):
        """The inner markup of <target> is kept byte for byte."""
        result = UnitExtractor().extract(SAMPLE_XLIFF)
        assert result.ok
        assert result.value["greeting"] == 'Bonjour <x id="INTERPOLATION" equiv-text="{{name}}"/> !'
        assert result.value["marked"] == '<mrk mtype="seg" mid="1">Texte <x id="A"/></mrk>'

    def test_entities_are_not_decoded_yet(self):
        result = UnitExtractor().extract(make_xliff(make_unit("e", "a &amp; b")))
        assert result.value["e"] == "a &amp; b"

    def test_source_is_ignored(self):
        document = make_xliff(make_unit("s", "cible", "<b>not even valid here</b>"))
        assert UnitExtractor().extract(document).value == {"s": "cible"}

    def test_seg_source_is_ignored(self):
        document = make_xliff(
            '<trans-unit id="s"><seg-source><target>wrong</target></seg-source><target>right</target></trans-unit>'
        )
        assert UnitExtractor().extract(document).value == {"s": "right"}

    def test_empty_target(self):
        document = make_xliff(make_unit("e", ""), '<trans-unit id="v"><target/></trans-unit>')
        result = UnitExtractor().extract(document)
        assert result.ok
        assert result.value == {"e": "", "v": ""}

    def test_unknown_wrappers_are_walked(self):
        """Units inside unknown elements (e.g. <group>) are found."""
        document = make_xliff(f'<group id="g1"><group>{make_unit("deep", "profond")}</group></group>')
        result = UnitExtractor().extract(document)
        assert result.ok
        assert result.value == {"deep": "profond"}

    def test_missing_id(self):
        document = make_xliff('<trans-unit datatype="html"><target>x</target></trans-unit>')
        result = UnitExtractor().extract(document)
        assert result.value == {}
        assert [error.msg for error in result.errors] == ['<trans-unit> misses the "id" attribute']

    def test_duplicate_id_keeps_first(self):
        document = make_xliff(make_unit("dup", "first"), make_unit("dup", "second"))
        result = UnitExtractor().extract(document)
        assert result.value == {"dup": "first"}
        assert [error.msg for error in result.errors] == ["Duplicated translations for msg dup"]

    def test_missing_target(self):
        document = make_xliff('<trans-unit id="t"><source>only source</source></trans-unit>', make_unit("ok", "bien"))
        result = UnitExtractor().extract(document)
        assert result.value == {"ok": "bien"}
        assert [error.msg for error in result.errors] == ["Message t misses a translation"]

    def test_target_of_previous_unit_is_not_reused(self):
        document = make_xliff(make_unit("a", "A"), '<trans-unit id="b"><source>B</source></trans-unit>')
        result = UnitExtractor().extract(document)
        assert "b" not in result.value

    def test_error_location(self):
        document = make_xliff('<trans-unit datatype="html"><target>x</target></trans-unit>')
        result = UnitExtractor().extract(document, "messages.fr.xlf")
        assert str(result.errors[0]).endswith("messages.fr.xlf@4:6")

    def test_every_error_is_reported(self):
        document = make_xliff(
            '<trans-unit><target>x</target></trans-unit>',
            make_unit("d", "1"),
            make_unit("d", "2"),
            '<trans-unit id="t"/>',
        )
        result = UnitExtractor().extract(document)
        assert len(result.errors) == 3


class TestMessageDecoder:
    """Tests for converting target markup to i18n nodes."""

    def test_text(self):
        result = MessageDecoder().convert("Bonjour")
        assert result.value == [Text("Bonjour")]

    def test_placeholder(self):
        """<x id="INTERPOLATION"/> becomes a placeholder named INTERPOLATION."""
        result = MessageDecoder().convert('<x id="INTERPOLATION"/>')
        assert result.value == [Placeholder("INTERPOLATION")]

    def test_placeholder_without_id_is_dropped(self):
        result = MessageDecoder().convert('a<x ctype="lb"/>b')
        assert result.value == [Text("a"), Text("b")]
        assert [error.msg for error in result.errors] == ['<x> misses the "id" attribute']

    def test_marker_is_transparent(self):
        """<mrk> contributes no node of its own."""
        wrapped = MessageDecoder().convert('<mrk mtype="seg">text<x id="A"/></mrk>')
        direct = MessageDecoder().convert('text<x id="A"/>')
        assert wrapped.value == direct.value == [Text("text"), Placeholder("A")]

    def test_unexpected_tag(self):
        result = MessageDecoder().convert('<b>bold</b>')
        assert result.value == []
        assert [error.msg for error in result.errors] == ["Unexpected tag"]

    def test_comments_are_ignored(self):
        result = MessageDecoder().convert('a<!-- note -->b')
        assert result.value == [Text("a"), Text("b")]

    def test_icu(self):
        result = MessageDecoder().convert('{count, plural, =0 {none} other {<x id="N"/> items}}')
        assert result.ok
        assert result.value == [
            Icu("count", "plural", {
                "=0": Container([Text("none")]),
                "other": Container([Placeholder("N"), Text(" items")]),
            })
        ]

    def test_nested_icu(self):
        result = MessageDecoder().convert('{g, select, m {{n, plural, other {x}}} other {y}}')
        assert result.ok
        icu = result.value[0]
        inner = icu.cases["m"].children[0]
        assert isinstance(inner, Icu)
        assert inner.expression_placeholder == "n"

    def test_unexpected_tag_inside_icu(self):
        result = MessageDecoder().convert('{n, select, a {<i>x</i>}}')
        assert [error.msg for error in result.errors] == ["Unexpected tag"]

    def test_parse_errors_give_no_nodes(self):
        result = MessageDecoder().convert('text &bogus; <x id="A"/>')
        assert result.value == []
        assert result.errors

    def test_empty_markup(self):
        result = MessageDecoder().convert("")
        assert result.value == []
        assert result.ok

    def test_source_spans_are_recorded(self):
        result = MessageDecoder().convert('ab<x id="A"/>', "unit-1")
        assert result.value[1].source_span.start.offset == 2
        assert str(result.value[1].source_span.start) == "unit-1@0:2"


class TestMessageEncoder:
    """Tests for converting i18n nodes to XML nodes."""

    def test_text(self):
        assert encode_fragment([Text("a < b")]) == "a &lt; b"

    def test_container_is_flattened(self):
        nodes = MessageEncoder().serialize([Container([Text("a"), Container([Text("b")])])])
        assert len(nodes) == 2
        assert serialize(nodes) == "ab"

    def test_placeholder(self):
        assert encode_fragment([Placeholder("INTERPOLATION", "name")]) == \
            '<x id="INTERPOLATION" equiv-text="{{name}}"/>'

    def test_void_tag_placeholder(self):
        """A void tag gives exactly one <x> with ctype."""
        nodes = MessageEncoder().serialize([TagPlaceholder("img", "TAG_IMG", "", True)])
        assert len(nodes) == 1
        assert serialize(nodes) == '<x id="TAG_IMG" ctype="image" equiv-text="&lt;img/&gt;"/>'

    def test_paired_tag_placeholder(self):
        """A paired tag gives start placeholder, children, end placeholder."""
        ph = TagPlaceholder("span", "START_TAG_SPAN", "CLOSE_TAG_SPAN", False, [Text("hi")])
        nodes = MessageEncoder().serialize([ph])
        assert len(nodes) == 3
        assert nodes[0].attrs["id"] == "START_TAG_SPAN"
        assert nodes[2].attrs["id"] == "CLOSE_TAG_SPAN"
        assert serialize(nodes) == (
            '<x id="START_TAG_SPAN" ctype="x-span" equiv-text="&lt;span&gt;"/>'
            'hi'
            '<x id="CLOSE_TAG_SPAN" ctype="x-span" equiv-text="&lt;/span&gt;"/>'
        )

    @pytest.mark.parametrize("tag, ctype", [
        ("br", "lb"),
        ("BR", "lb"),
        ("img", "image"),
        ("Img", "image"),
        ("b", "x-b"),
        ("my-tag", "x-my-tag"),
    ])
    def test_ctype(self, tag, ctype):
        assert get_ctype_for_tag(tag) == ctype

    def test_icu(self):
        icu = Icu("count", "plural", {
            "=0": Container([Text("none")]),
            "other": Container([Text("many")]),
        })
        assert encode_fragment([icu]) == "{count, plural, =0 {none} other {many} }"

    def test_icu_placeholder(self):
        icu = Icu("count", "plural", {"=0": Text("none"), "=1": Text("one"), "other": Text("many")})
        nodes = MessageEncoder().serialize([IcuPlaceholder("ICU", icu)])
        assert nodes == [Tag("x", {"id": "ICU", "equiv-text": "{count, plural, =0 {...} =1 {...} other {...}}"})]

    def test_unknown_node_raises(self):
        with pytest.raises(TypeError):
            MessageEncoder().serialize(["not a node"])


class TestEncodeDocument:
    """Tests for writing full XLIFF documents."""

    def test_full_document(self):
        message = Message(
            "m1",
            [Text("Hello "), Placeholder("INTERPOLATION", "name")],
            [MessageSpan("app/app.component.html", 3)],
            "greeting",
            "welcome",
        )
        assert encode_document([message]) == '''<?xml version="1.0" encoding="UTF-8"?>
<xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
  <file source-language="en" datatype="plaintext" original="ng2.template">
    <body>
      <trans-unit id="m1" datatype="html">
        <source>Hello <x id="INTERPOLATION" equiv-text="{{name}}"/></source>
        <context-group purpose="location">
          <context context-type="sourcefile">app/app.component.html</context>
          <context context-type="linenumber">3</context>
        </context-group>
        <note priority="1" from="description">greeting</note>
        <note priority="1" from="meaning">welcome</note>
      </trans-unit>
    </body>
  </file>
</xliff>
'''

    def test_locale(self):
        document = encode_document([], "fr")
        assert 'source-language="fr"' in document

    def test_empty_document(self):
        document = encode_document([], None)
        assert "<body>\n    </body>" in document

    def test_optional_notes_are_omitted(self):
        document = encode_document([Message("m", [Text("x")])])
        assert "<note" not in document
        assert "context-group" not in document

    def test_one_context_group_per_source(self):
        message = Message("m", [Text("x")], [MessageSpan("a.html", 1), MessageSpan("b.html", 20)])
        root = etree.fromstring(encode_document([message]).encode("utf-8"))
        groups = root.findall(f".//{{{XLIFF_NS}}}context-group")
        assert len(groups) == 2
        assert [group[1].text for group in groups] == ["1", "20"]

    def test_document_is_well_formed(self):
        messages = [
            Message("a", [Text("1 < 2 & \"quoted\"")], description="d & m"),
            Message("b", [TagPlaceholder("br", "LINE_BREAK", "", True)]),
        ]
        root = etree.fromstring(encode_document(messages).encode("utf-8"))
        assert root.tag == f"{{{XLIFF_NS}}}xliff"
        units = root.findall(f".//{{{XLIFF_NS}}}trans-unit")
        assert [unit.get("id") for unit in units] == ["a", "b"]
        assert units[0].find(f"{{{XLIFF_NS}}}source").text == '1 < 2 & "quoted"'

    def test_existing_units_come_first(self):
        """Existing units are kept verbatim, new units follow."""
        previous = make_xliff(make_unit("old", "ancien", "old"))
        existing = list(decode_raw_units(previous).values())
        document = encode_document([Message("new", [Text("new")])], "en", existing)

        root = etree.fromstring(document.encode("utf-8"))
        units = root.findall(f".//{{{XLIFF_NS}}}trans-unit")
        assert [unit.get("id") for unit in units] == ["old", "new"]
        assert units[0].find(f"{{{XLIFF_NS}}}target").text == "ancien"

    def test_existing_units_survive_a_decode(self):
        """Translations carried over by a merge can still be decoded."""
        previous = make_xliff(make_unit("old", 'Salut <x id="INTERPOLATION"/>'))
        existing = list(decode_raw_units(previous).values())
        document = encode_document([], "en", existing)
        assert decode_messages(document) == {"old": [Text("Salut "), Placeholder("INTERPOLATION")]}


class TestDecodeMessages:
    """Tests for the public decode operation."""

    def test_sample(self):
        messages = decode_messages(SAMPLE_XLIFF)
        assert messages["greeting"] == [Text("Bonjour "), Placeholder("INTERPOLATION"), Text(" !")]
        assert messages["plain"] == [Text("Texte simple")]
        assert messages["marked"] == [Text("Texte "), Placeholder("A")]
        assert messages["plural"] == [
            Icu("VAR_PLURAL", "plural", {
                "=0": Container([Text("aucun")]),
                "other": Container([Placeholder("INTERPOLATION"), Text(" éléments")]),
            })
        ]

    def test_duplicate_raises(self):
        document = make_xliff(make_unit("dup", "first"), make_unit("dup", "second"))
        with pytest.raises(XliffParseError) as excinfo:
            decode_messages(document)
        assert "Duplicated" in str(excinfo.value)

    def test_duplicate_keeps_first_occurrence(self):
        document = make_xliff(make_unit("dup", "first"), make_unit("dup", "second"))
        result = load_messages(document)
        assert result.value == {"dup": [Text("first")]}

    def test_missing_translation_raises(self):
        document = make_xliff('<trans-unit id="t"><source>s</source></trans-unit>')
        with pytest.raises(XliffParseError) as excinfo:
            decode_messages(document)
        assert "misses a translation" in str(excinfo.value)
        assert "t" not in load_messages(document).value

    def test_errors_are_aggregated(self):
        """Errors of the document and of every unit are listed together."""
        document = make_xliff(
            make_unit("a", "<b>bold</b>"),
            make_unit("b", '<x ctype="lb"/>'),
            make_unit("b", "again"),
        )
        with pytest.raises(XliffParseError) as excinfo:
            decode_messages(document)
        error = excinfo.value
        assert len(error.errors) == 3
        lines = str(error).split("\n")
        assert lines[0] == "xliff parse errors:"
        assert len(lines) == 4
        assert any("Unexpected tag" in line for line in lines)
        assert any('misses the "id" attribute' in line for line in lines)

    def test_malformed_document(self):
        with pytest.raises(XliffParseError):
            decode_messages(make_xliff('<trans-unit id="a"><target>x</trans-unit>'))

    def test_document_too_large(self, monkeypatch):
        """The size limit counts UTF-8 bytes, like the raw unit loader."""
        monkeypatch.setattr(constants, "MAX_DOCUMENT_SIZE", len(SAMPLE_XLIFF.encode("utf-8")) - 1)
        result = load_messages(SAMPLE_XLIFF)
        assert result.value == {}
        assert "Document too large" in result.errors[0].msg
        with pytest.raises(XliffParseError):
            decode_messages(SAMPLE_XLIFF)

    def test_source_fallback_is_not_attempted(self):
        """A unit without target fails even when its source is present."""
        document = make_xliff('<trans-unit id="s"><source>Hello</source></trans-unit>')
        assert load_messages(document).value == {}


class TestRoundTrip:
    """Encoding then decoding keeps the structure of messages."""

    def test_text_with_special_characters(self):
        assert round_trip([Text("a < b & 'c' > \"d\"")]) == [Text("a < b & 'c' > \"d\"")]

    def test_placeholders(self):
        nodes = [Text("Hi "), Placeholder("INTERPOLATION", "user.name"), Text("!")]
        assert round_trip(nodes) == [Text("Hi "), Placeholder("INTERPOLATION"), Text("!")]

    def test_tag_placeholders(self):
        nodes = [
            TagPlaceholder("a", "START_LINK", "CLOSE_LINK", False, [
                Text("click "),
                TagPlaceholder("img", "TAG_IMG", "", True),
            ]),
        ]
        assert round_trip(nodes) == [
            Placeholder("START_LINK"),
            Text("click "),
            Placeholder("TAG_IMG"),
            Placeholder("CLOSE_LINK"),
        ]

    def test_icu(self):
        icu = Icu("count", "plural", {
            "=0": Container([Text("none")]),
            "other": Container([Text("many")]),
        })
        decoded = round_trip([icu])
        assert len(decoded) == 1
        assert decoded[0].expression_placeholder == "count"
        assert decoded[0].type == "plural"
        assert set(decoded[0].cases) == {"=0", "other"}
        assert decoded == [icu]

    def test_icu_with_placeholders_and_nesting(self):
        icu = Icu("gender", "select", {
            "male": Container([
                Icu("count", "plural", {
                    "=1": Container([Text("one")]),
                    "other": Container([Placeholder("INTERPOLATION", "count"), Text(" friends")]),
                }),
            ]),
            "other": Container([Text("someone")]),
        })
        expected = Icu("gender", "select", {
            "male": Container([
                Icu("count", "plural", {
                    "=1": Container([Text("one")]),
                    "other": Container([Placeholder("INTERPOLATION"), Text(" friends")]),
                }),
            ]),
            "other": Container([Text("someone")]),
        })
        assert round_trip([icu]) == [expected]

    def test_containers_need_not_survive(self):
        """Only the flattened sequence is kept."""
        nodes = [Container([Text("a"), Container([Text("b")])]), Text("c")]
        assert flatten(round_trip(nodes)) == flatten(nodes) == (Text("abc"),)
