"""Records exchanged between the Grafana client and the backup passes."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class SearchFilter:
    """Dashboard search restrictions; empty values mean no restriction."""

    title: str = ""
    starred: bool = False
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BackupRequest:
    """Resolved intent of one backup run."""

    directory: str
    hierarchical: bool = False
    dashboards: bool = False
    datasources: bool = False
    users: bool = False
    search: SearchFilter = field(default_factory=SearchFilter)
    verbose: bool = False


@dataclass(frozen=True)
class DashboardSummary:
    """One dashboard search hit."""

    title: str
    uid: str = ""
    uri: str = ""

    @property
    def slug(self) -> str:
        return self.uri.rsplit('/', 1)[-1] if self.uri else ""

    @property
    def identifier(self) -> str:
        return self.uid or self.uri or self.title


@dataclass(frozen=True)
class DashboardDocument:
    """Dashboard model exactly as the server sent it, plus its metadata."""

    raw: bytes
    meta: Dict[str, Any]

    @property
    def slug(self) -> str:
        return str(self.meta.get('slug') or '')


def _to_json(data: Dict[str, Any]) -> bytes:
    return json.dumps(data, indent=2, ensure_ascii=False).encode('utf-8')


@dataclass(frozen=True)
class DatasourceRecord:
    name: str
    org_id: int
    data: Dict[str, Any]

    def to_json(self) -> bytes:
        return _to_json(self.data)


@dataclass(frozen=True)
class UserRecord:
    login: str
    name: str
    org_id: int
    data: Dict[str, Any]

    def to_json(self) -> bytes:
        return _to_json(self.data)
