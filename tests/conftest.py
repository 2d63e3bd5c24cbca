"""Shared fakes for the backup tests."""

import json

import pytest

from grafana_backup.client import GrafanaAPIError
from grafana_backup.models import (
    DashboardDocument,
    DashboardSummary,
    DatasourceRecord,
    UserRecord,
)
from grafana_backup.storage import LocalFilesystem


def board_json(title, *rows):
    """Dashboard model with legacy rows; each row is a list of datasource names."""
    return json.dumps({
        "title": title,
        "rows": [{"panels": [{"datasource": ds} for ds in row]} for row in rows],
    }, indent=4).encode('utf-8')


class FakeGrafana:
    """In-memory stand-in for GrafanaClient."""

    def __init__(self, dashboards=None, datasources=None, users=None):
        self.dashboards = dashboards or {}
        self.datasources = datasources or []
        self.users = users or []
        self.fail_fetch = set()
        self.fail_search = False
        self.fail_datasources = False
        self.fail_users = False
        self.calls = []
        self.meta_slugs = {}

    def search_dashboards(self, title="", starred=False, tags=()):
        self.calls.append(('search', title, starred, tuple(tags)))
        if self.fail_search:
            raise GrafanaAPIError("search exploded")
        return [DashboardSummary(title=slug.title(), uid=f"uid-{slug}", uri=f"db/{slug}") for slug in self.dashboards]

    def fetch_dashboard(self, summary):
        self.calls.append(('fetch', summary.slug))
        if summary.slug in self.fail_fetch:
            raise GrafanaAPIError(f"404 for {summary.slug}")
        meta = {'slug': self.meta_slugs.get(summary.slug, summary.slug)}
        return DashboardDocument(raw=self.dashboards[summary.slug], meta=meta)

    def list_datasources(self):
        self.calls.append(('datasources',))
        if self.fail_datasources:
            raise GrafanaAPIError("datasources exploded")
        return list(self.datasources)

    def list_users(self):
        self.calls.append(('users',))
        if self.fail_users:
            raise GrafanaAPIError("users exploded")
        return list(self.users)


def datasource(name, org_id=1, **extra):
    data = {"name": name, "orgId": org_id, "type": "prometheus"}
    data.update(extra)
    return DatasourceRecord(name=name, org_id=org_id, data=data)


def user(login, org_id=1, name=None):
    data = {"login": login, "name": name or login.title(), "orgId": org_id}
    return UserRecord(login=login, name=data["name"], org_id=org_id, data=data)


class RecordingFilesystem(LocalFilesystem):
    """Real filesystem that records calls and can fail or hook specific writes."""

    def __init__(self):
        self.ensured = []
        self.written = []
        self.fail_paths = set()
        self.after_write = None

    def ensure_directory(self, directory):
        self.ensured.append(str(directory))
        return super().ensure_directory(directory)

    def write_file(self, path, data):
        if path.name in self.fail_paths:
            raise OSError(28, "No space left on device")
        super().write_file(path, data)
        self.written.append(path.name)
        if self.after_write:
            self.after_write(len(self.written))


@pytest.fixture
def fs():
    return RecordingFilesystem()
