"""Tests for agtype decoding."""

from decimal import Decimal

import pytest

from kg_age.errors import AgtypeDecodeError
from kg_age.graph.agtype import Edge, Path, Vertex, loads

ALICE = '{"id": 844424930131969, "label": "Person", "properties": {"name": "Alice", "age": 30}}::vertex'
BOB = '{"id": 844424930131970, "label": "Person", "properties": {"name": "Bob", "age": 28}}::vertex'
KNOWS = (
    '{"id": 1125899906842625, "label": "KNOWS", "end_id": 844424930131970, '
    '"start_id": 844424930131969, "properties": {"since": 2020}}::edge'
)


class TestScalars:
    def test_string(self):
        assert loads('"Alice"') == "Alice"

    def test_numbers(self):
        assert loads("30") == 30
        assert loads("2.5") == 2.5

    def test_bool_and_null(self):
        assert loads("true") is True
        assert loads("null") is None

    def test_sql_null_passes_through(self):
        assert loads(None) is None

    def test_non_text_passes_through(self):
        assert loads(42) == 42

    def test_numeric(self):
        value = loads("3.14::numeric")
        assert value == Decimal("3.14")
        assert isinstance(value, Decimal)

    def test_negative_numeric(self):
        assert loads("-12::numeric") == Decimal("-12")

    def test_numeric_inside_map(self):
        assert loads('{"price": 9.99::numeric, "qty": 2}') == {"price": Decimal("9.99"), "qty": 2}

    def test_annotation_inside_string_is_text(self):
        assert loads('"not a ::vertex"') == "not a ::vertex"

    def test_escaped_quotes(self):
        assert loads(r'"say \"hi\" ::edge"') == 'say "hi" ::edge'

    def test_map_shaped_like_annotation_stays_a_map(self):
        text = '{"__agtype__": "numeric", "value": "1"}'
        assert loads(text) == {"__agtype__": "numeric", "value": "1"}
        assert loads(f'{{"meta": {text}, "n": 2::numeric}}') == {
            "meta": {"__agtype__": "numeric", "value": "1"},
            "n": Decimal("2"),
        }


class TestGraphValues:
    def test_vertex(self):
        v = loads(ALICE)
        assert v == Vertex(id=844424930131969, label="Person", properties={"name": "Alice", "age": 30})

    def test_edge(self):
        e = loads(KNOWS)
        assert isinstance(e, Edge)
        assert e.label == "KNOWS"
        assert e.start_id == 844424930131969
        assert e.end_id == 844424930131970
        assert e.properties == {"since": 2020}

    def test_path(self):
        p = loads(f"[{ALICE}, {KNOWS}, {BOB}]::path")
        assert isinstance(p, Path)
        assert len(p) == 1
        assert [v.properties["name"] for v in p.vertices] == ["Alice", "Bob"]
        assert p.edges[0].label == "KNOWS"

    def test_list_of_vertices_is_not_a_path(self):
        value = loads(f"[{ALICE}, {BOB}]")
        assert isinstance(value, list)
        assert all(isinstance(v, Vertex) for v in value)

    def test_vertex_inside_map(self):
        value = loads(f'{{"person": {ALICE}, "score": 1}}')
        assert value["person"].label == "Person"
        assert value["score"] == 1

    def test_empty_properties(self):
        v = loads('{"id": 1, "label": "Thing", "properties": {}}::vertex')
        assert v.properties == {}


class TestMalformed:
    @pytest.mark.parametrize(
        "text",
        [
            '{"a": 1',
            '{"a": 1}}',
            '"unterminated',
            "1::widget",
            "not json",
            '{"label": "Person"}::vertex',
        ],
    )
    def test_rejected(self, text):
        with pytest.raises(AgtypeDecodeError):
            loads(text)
