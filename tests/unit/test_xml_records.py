from __future__ import annotations

import pytest

from tracker.errors import MalformedXmlError, RecordParseError, RecordSerializeError
from tracker.xml_records import (
    Branch,
    Leaf,
    TypeHint,
    coerce,
    element_from_etree,
    element_to_record,
    find_children,
    find_first,
    map_elements,
    parse_xml,
    record_to_xml,
)


def test_coerce_integer_and_passthrough():
    assert coerce("integer", "42") == 42
    assert isinstance(coerce("integer", "42"), int)
    assert coerce("integer", "-1") == -1
    assert coerce(None, "abc") == "abc"
    # Unrecognized hints are left as strings
    assert coerce("datetime", "2010/01/01 10:00:00 UTC") == "2010/01/01 10:00:00 UTC"
    assert coerce("array", "") == ""


def test_coerce_integer_rejects_non_numeric():
    with pytest.raises(RecordParseError):
        coerce("integer", "abc")


def test_coerce_integer_rejects_empty_text():
    with pytest.raises(RecordParseError):
        coerce("integer", "")


def test_type_hint_from_attribute():
    assert TypeHint.from_attribute("integer") is TypeHint.INTEGER
    assert TypeHint.from_attribute(None) is TypeHint.STRING
    assert TypeHint.from_attribute("boolean") is TypeHint.STRING


def test_story_xml_maps_to_record():
    root = parse_xml(
        b'<story><id type="integer">7</id><name>Fix bug</name>'
        b"<current_state>unstarted</current_state></story>"
    )
    assert element_to_record(root) == {"id": 7, "name": "Fix bug", "current_state": "unstarted"}


def test_nested_elements_map_to_nested_records():
    root = parse_xml(
        "<story>"
        "<id type=\"integer\">1</id>"
        "<attachments type=\"array\">"
        "<attachment><id type=\"integer\">10</id><filename>a.png</filename></attachment>"
        "</attachments>"
        "</story>"
    )
    record = element_to_record(root)
    assert record == {
        "id": 1,
        "attachments": {"attachment": {"id": 10, "filename": "a.png"}},
    }


def test_duplicate_tags_last_wins():
    root = parse_xml("<story><label>a</label><label>b</label></story>")
    assert element_to_record(root) == {"label": "b"}


def test_empty_leaf_maps_to_empty_string():
    root = parse_xml("<story><description/><name></name></story>")
    assert element_to_record(root) == {"description": "", "name": ""}


def test_element_union_is_built_from_children_presence():
    node = parse_xml('<story><id type="integer">3</id><owner><name>Ann</name></owner></story>')
    elem = element_from_etree(node)
    assert isinstance(elem, Branch)
    leaf, branch = elem.children
    assert leaf == Leaf(tag="id", text="3", type_hint="integer")
    assert isinstance(branch, Branch)
    assert map_elements(elem.children) == {"id": 3, "owner": {"name": "Ann"}}


def test_map_elements_on_hand_built_tree():
    children = [
        Leaf(tag="estimate", text="3", type_hint="integer"),
        Branch(tag="labels", children=(Leaf(tag="label", text="ui"),)),
    ]
    assert map_elements(children) == {"estimate": 3, "labels": {"label": "ui"}}


def test_parse_xml_rejects_garbage():
    with pytest.raises(MalformedXmlError):
        parse_xml("<story><name>unterminated")


def test_find_helpers():
    root = parse_xml(
        "<stories><story><id>1</id></story><other><story><id>2</id></story></other>"
        "<story><id>3</id></story></stories>"
    )
    first = find_first(root, "story")
    assert first is not None and first.find("id").text == "1"
    assert find_first(root, "stories") is root
    assert find_first(root, "note") is None
    # Direct children only
    assert [s.find("id").text for s in find_children(root, "story")] == ["1", "3"]


def test_record_to_xml_escapes_text():
    xml = record_to_xml({"name": 'a < b & "c"'}, "story")
    assert "&amp;" in xml
    assert "&lt;" in xml
    assert element_to_record(parse_xml(xml)) == {"name": 'a < b & "c"'}


def test_record_to_xml_marks_integers():
    xml = record_to_xml({"id": 7, "name": "Fix bug"}, "story")
    assert xml == '<story><id type="integer">7</id><name>Fix bug</name></story>'


def test_record_to_xml_booleans_nested_and_none():
    xml = record_to_xml({"flag": True, "owner": {"name": "Ann"}, "description": None}, "story")
    assert element_to_record(parse_xml(xml)) == {
        "flag": "true",
        "owner": {"name": "Ann"},
        "description": "",
    }


def test_round_trip_scalar_record():
    record = {
        "id": 42,
        "name": "Add login",
        "story_type": "feature",
        "estimate": 3,
        "current_state": "started",
    }
    assert element_to_record(parse_xml(record_to_xml(record, "story"))) == record


@pytest.mark.parametrize(
    "raw",
    ["1_000", "٤٢", "4 2", "+", "0x1f", "1.0"],
)
def test_coerce_integer_rejects_non_decimal_literals(raw: str):
    with pytest.raises(RecordParseError):
        coerce("integer", raw)


def test_coerce_integer_accepts_sign_and_padding():
    assert coerce("integer", " 42\n") == 42
    assert coerce("integer", "+7") == 7
    assert coerce("integer", "-0") == 0


@pytest.mark.parametrize(
    "key",
    ["name><owned_by>mallory</owned_by><x", "bad key", "", "1st", "a/b", "a:b"],
)
def test_record_to_xml_rejects_invalid_field_names(key: str):
    with pytest.raises(RecordSerializeError):
        record_to_xml({key: "y"}, "story")


def test_record_to_xml_rejects_invalid_nested_field_names():
    with pytest.raises(RecordSerializeError):
        record_to_xml({"owner": {"<x>": "Ann"}}, "story")


def test_record_to_xml_rejects_invalid_root_tag():
    with pytest.raises(ValueError):
        record_to_xml({"name": "x"}, "story><x")


def test_record_to_xml_accepts_usual_field_names():
    xml = record_to_xml({"_private": "a", "story.type": "b", "owned-by": "c", "v2": "d"}, "story")
    assert element_to_record(parse_xml(xml)) == {
        "_private": "a",
        "story.type": "b",
        "owned-by": "c",
        "v2": "d",
    }


@pytest.mark.parametrize("bad", ["\x01", "a\x00b", "tab\x0bbed", "\ufffe"])
def test_record_to_xml_rejects_illegal_control_characters(bad: str):
    with pytest.raises(RecordSerializeError):
        record_to_xml({"description": bad}, "story")


def test_record_to_xml_keeps_tabs_and_newlines():
    record = {"description": "line one\n\tline two\r"}
    xml = record_to_xml(record, "story")
    assert element_to_record(parse_xml(xml))["description"].startswith("line one\n\tline two")
