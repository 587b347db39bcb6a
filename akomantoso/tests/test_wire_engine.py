import pytest

from akomantoso.app.wire.engine import (
    LxmlWireEngine,
    SerializeOptions,
    WireFormatError,
)

COMPACT = SerializeOptions(pretty_print=False, xml_declaration=False)


def test_serialize_object_convention():
    engine = LxmlWireEngine()
    tree = {
        "a": {
            "@x": 1,
            "@flag": True,
            "b": ["1", "2"],
            "c": None,
            "d": {"@eId": "d_1", "#": "text"},
        }
    }

    assert engine.serialize(tree, COMPACT) == (
        '<a x="1" flag="true"><b>1</b><b>2</b><c/>'
        '<d eId="d_1">text</d></a>'
    )


def test_serialize_default_namespace():
    engine = LxmlWireEngine()
    tree = {"r": {"@xmlns": "urn:example", "c": "t"}}

    assert engine.serialize(tree, COMPACT) == (
        '<r xmlns="urn:example"><c>t</c></r>'
    )


def test_serialize_does_not_mutate_tree():
    engine = LxmlWireEngine()
    tree = {"r": {"@xmlns": "urn:example", "c": ["t", "u"]}}

    engine.serialize(tree, COMPACT)

    assert tree == {"r": {"@xmlns": "urn:example", "c": ["t", "u"]}}


@pytest.mark.parametrize(
    "tree",
    [
        {},
        {"a": {}, "b": {}},
        {"a": [{}, {}]},
        {"a": {"@bad name": "x"}},
    ],
)
def test_serialize_rejects_invalid_trees(tree):
    with pytest.raises(WireFormatError):
        LxmlWireEngine().serialize(tree, COMPACT)


def test_parse_object_convention():
    text = (
        '<r xmlns="urn:example" id="r1">'
        "<b>1</b><b>2</b>"
        "<c/>"
        '<d eId="d_1">text</d>'
        "</r>"
    )

    assert LxmlWireEngine().parse(text) == {
        "r": {
            "@xmlns": "urn:example",
            "@id": "r1",
            "b": ["1", "2"],
            "c": "",
            "d": {"@eId": "d_1", "#": "text"},
        }
    }


def test_parse_ignores_layout_whitespace_and_comments():
    text = """<?xml version='1.0' encoding='UTF-8'?>
<r>
  <!-- note -->
  <c>t</c>
</r>
"""

    assert LxmlWireEngine().parse(text) == {"r": {"c": "t"}}


def test_parse_rejects_malformed_text():
    with pytest.raises(WireFormatError):
        LxmlWireEngine().parse("<r><unclosed></r>")

    with pytest.raises(WireFormatError):
        LxmlWireEngine().parse(None)


def test_parse_does_not_expand_entities():
    text = '<!DOCTYPE r [<!ENTITY x "expanded">]><r>&x;</r>'

    parsed = LxmlWireEngine().parse(text)

    assert "expanded" not in str(parsed)


def test_empty_text_has_one_canonical_form():
    engine = LxmlWireEngine()

    assert engine.parse('<a x="1"></a>') == engine.parse('<a x="1"/>')
    assert engine.parse("<a><b></b></a>") == {"a": {"b": ""}}
    assert engine.serialize({"a": {"@x": "1", "#": ""}}, COMPACT) == '<a x="1"/>'
    assert engine.serialize({"a": {"b": ""}}, COMPACT) == "<a><b/></a>"


def test_parse_keeps_whitespace_only_leaf_text():
    engine = LxmlWireEngine()

    assert engine.parse("<r><c>  </c><d e='1'> </d></r>") == {
        "r": {"c": "  ", "d": {"@e": "1", "#": " "}}
    }


def test_parse_decodes_by_declared_encoding():
    engine = LxmlWireEngine()
    text = "<?xml version='1.0' encoding='ISO-8859-1'?><r>Café</r>"

    assert engine.parse(text) == {"r": "Café"}
    assert engine.parse(text.encode("ISO-8859-1")) == {"r": "Café"}


def test_parse_rejects_unknown_declared_encoding():
    with pytest.raises(WireFormatError):
        LxmlWireEngine().parse("<?xml version='1.0' encoding='no-such'?><r/>")
