"""
Dashboard structure parsing and datasource discovery.

Only the parts of the dashboard model needed to find datasource references
are parsed: rows, their panels, and each panel's datasource name. Legacy
dashboards keep panels inside "rows"; newer ones keep them at the top level
and nest the panels of collapsed rows inside a panel of type "row".
"""

import json
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from grafana_backup.errors import ParseError


@dataclass(frozen=True)
class Panel:
    title: str = ""
    datasource: Optional[str] = None


@dataclass(frozen=True)
class Row:
    panels: Tuple[Panel, ...] = ()


@dataclass(frozen=True)
class Board:
    title: str = ""
    rows: Tuple[Row, ...] = ()


def _as_list(value, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{what}' is {type(value).__name__}, expected a list")
    return value


def _parse_panel(item) -> Panel:
    if not isinstance(item, dict):
        raise ValueError(f"panel is {type(item).__name__}, expected an object")
    ref = item.get('datasource')
    # Object references ({"uid": ..., "type": ...}) carry no datasource name
    datasource = ref if isinstance(ref, str) and ref else None
    return Panel(title=str(item.get('title') or ''), datasource=datasource)


def _parse_rows(data: dict) -> List[Row]:
    rows = []
    for row in _as_list(data.get('rows'), 'rows'):
        if not isinstance(row, dict):
            raise ValueError(f"row is {type(row).__name__}, expected an object")
        panels = _as_list(row.get('panels'), 'rows.panels')
        rows.append(Row(panels=tuple(_parse_panel(p) for p in panels)))

    loose = []
    for item in _as_list(data.get('panels'), 'panels'):
        if isinstance(item, dict) and item.get('type') == 'row':
            nested = _as_list(item.get('panels'), 'panels.panels')
            rows.append(Row(panels=tuple(_parse_panel(p) for p in nested)))
        else:
            loose.append(_parse_panel(item))
    if loose:
        rows.append(Row(panels=tuple(loose)))
    return rows


def parse_board(raw: bytes, identifier: str = "dashboard") -> Board:
    """Parse raw dashboard JSON into its row/panel structure.

    Raises ParseError if the document is not JSON or its rows and panels
    have an unexpected shape.
    """
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"dashboard is {type(data).__name__}, expected an object")
        return Board(title=str(data.get('title') or ''), rows=tuple(_parse_rows(data)))
    except ValueError as e:
        raise ParseError(identifier, cause=e) from e


def extract_datasources(board: Board) -> Set[str]:
    """Return the distinct datasource names referenced by a board's panels."""
    names = set()
    for row in board.rows:
        for panel in row.panels:
            if panel.datasource:
                names.add(panel.datasource)
    return names
