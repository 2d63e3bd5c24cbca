"""Test dashboard parsing and datasource extraction."""

import json

import pytest

from grafana_backup.board import Board, Panel, Row, extract_datasources, parse_board
from grafana_backup.errors import ParseError


def test_extract_collapses_duplicates_and_ignores_empty():
    board = Board(title="Infra", rows=(
        Row(panels=(Panel(datasource="A"), Panel(datasource="A"), Panel(datasource="B"))),
        Row(panels=(Panel(),)),
    ))

    assert extract_datasources(board) == {"A", "B"}


def test_extract_empty_board():
    assert extract_datasources(Board()) == set()


def test_parse_legacy_rows():
    raw = json.dumps({
        "title": "Legacy",
        "rows": [
            {"panels": [{"title": "cpu", "datasource": "prom"}, {"title": "text"}]},
            {"panels": []},
        ],
    })

    board = parse_board(raw.encode('utf-8'))

    assert board.title == "Legacy"
    assert len(board.rows) == 2
    assert board.rows[0].panels[0] == Panel(title="cpu", datasource="prom")
    assert board.rows[0].panels[1].datasource is None


def test_parse_top_level_and_collapsed_panels():
    raw = json.dumps({
        "title": "Modern",
        "panels": [
            {"type": "graph", "datasource": "prom"},
            {"type": "row", "collapsed": True, "panels": [{"type": "table", "datasource": "postgres"}]},
            {"type": "stat", "datasource": {"uid": "abc", "type": "loki"}},
        ],
    })

    assert extract_datasources(parse_board(raw)) == {"prom", "postgres"}


def test_empty_string_reference_is_ignored():
    raw = json.dumps({"rows": [{"panels": [{"datasource": ""}, {"datasource": None}]}]})

    assert extract_datasources(parse_board(raw)) == set()


@pytest.mark.parametrize("raw", [
    b"not json",
    b"[1, 2, 3]",
    b'{"rows": {"panels": []}}',
    b'{"rows": [{"panels": "graph"}]}',
    b'{"rows": [{"panels": [42]}]}',
    b'\xff\xfe',
])
def test_malformed_dashboards_raise_parse_error(raw):
    with pytest.raises(ParseError) as exc:
        parse_board(raw, "broken-board")

    assert exc.value.identifier == "broken-board"
    assert exc.value.kind == "parse"
