"""Grafana HTTP API client used by the backup passes."""

import json
import re
from typing import Dict, Iterable, List, Optional

import requests

from grafana_backup.models import (
    DashboardDocument,
    DashboardSummary,
    DatasourceRecord,
    UserRecord,
)

SEARCH_LIMIT = 5000
USERS_PAGE_SIZE = 1000

_WS = re.compile(r'[ \t\n\r]*')


class GrafanaAPIError(Exception):
    """Transport or protocol failure talking to Grafana."""


def _as_org_id(value, path: str) -> int:
    # bool is an int subclass but never a valid org id
    if isinstance(value, bool):
        raise GrafanaAPIError(f"GET {path} returned a non-numeric org id: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise GrafanaAPIError(f"GET {path} returned a non-numeric org id: {value!r}") from e


def split_members(text: str) -> Dict[str, str]:
    """Split a JSON object into the raw source text of each top-level member.

    Lets a member be written out without being re-serialized, so the server's
    formatting survives byte for byte.
    """
    decoder = json.JSONDecoder()
    members = {}

    idx = _WS.match(text, 0).end()
    if text[idx:idx + 1] != '{':
        raise ValueError("expected a JSON object")
    idx = _WS.match(text, idx + 1).end()
    if text[idx:idx + 1] == '}':
        return members

    while True:
        key, idx = decoder.raw_decode(text, idx)
        if not isinstance(key, str):
            raise ValueError(f"expected a member name at offset {idx}")
        idx = _WS.match(text, idx).end()
        if text[idx:idx + 1] != ':':
            raise ValueError(f"expected ':' at offset {idx}")
        start = _WS.match(text, idx + 1).end()
        _, end = decoder.raw_decode(text, start)
        members[key] = text[start:end]

        idx = _WS.match(text, end).end()
        sep = text[idx:idx + 1]
        if sep == '}':
            return members
        if sep != ',':
            raise ValueError(f"expected ',' or '}}' at offset {idx}")
        idx = _WS.match(text, idx + 1).end()


class GrafanaClient:
    """Thin wrapper around the Grafana REST endpoints needed for backups."""

    def __init__(self, url: str, token: Optional[str] = None, user: Optional[str] = None,
                 password: Optional[str] = None, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        if token:
            self.session.headers.update({'Authorization': f'Bearer {token}'})
        elif user and password:
            self.session.auth = (user, password)
        self._org_id = None

    def _get(self, path: str, params=None) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise GrafanaAPIError(f"GET {path} failed: {e}") from e
        return response

    def _get_json(self, path: str, params=None):
        response = self._get(path, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise GrafanaAPIError(f"GET {path} returned invalid JSON: {e}") from e

    def _get_objects(self, path: str, params=None) -> List[dict]:
        """GET a JSON list whose every element must be an object."""
        items = self._get_json(path, params=params)
        if not isinstance(items, list):
            raise GrafanaAPIError(f"GET {path} did not return a list")
        for item in items:
            if not isinstance(item, dict):
                raise GrafanaAPIError(f"GET {path} returned a {type(item).__name__} item, expected an object")
        return items

    def current_org_id(self) -> int:
        """Id of the organization the credentials act in (cached)."""
        if self._org_id is None:
            org = self._get_json('/api/org')
            if not isinstance(org, dict):
                raise GrafanaAPIError("GET /api/org did not return an object")
            self._org_id = _as_org_id(org.get('id', 0), '/api/org')
        return self._org_id

    def _org_of(self, item: dict, path: str) -> int:
        org_id = item.get('orgId')
        if org_id is None:
            return self.current_org_id()
        return _as_org_id(org_id, path)

    def search_dashboards(self, title: str = "", starred: bool = False,
                          tags: Iterable[str] = ()) -> List[DashboardSummary]:
        """Search dashboards by title substring, starred flag and tags, page by page."""
        params = [('type', 'dash-db'), ('limit', SEARCH_LIMIT)]
        if title:
            params.append(('query', title))
        if starred:
            params.append(('starred', 'true'))
        for tag in tags:
            params.append(('tag', tag))

        found = []
        page = 1
        while True:
            hits = self._get_objects('/api/search', params=params + [('page', page)])
            found.extend(
                DashboardSummary(title=str(hit.get('title') or ''), uid=str(hit.get('uid') or ''),
                                 uri=str(hit.get('uri') or ''))
                for hit in hits
            )
            if len(hits) < SEARCH_LIMIT:
                return found
            page += 1

    def fetch_dashboard(self, summary: DashboardSummary) -> DashboardDocument:
        """Fetch one dashboard, keeping its model exactly as sent."""
        if summary.uid:
            path = f"/api/dashboards/uid/{summary.uid}"
        elif summary.uri:
            path = f"/api/dashboards/{summary.uri}"
        else:
            raise GrafanaAPIError(f"dashboard '{summary.title}' has neither uid nor uri")

        response = self._get(path)
        try:
            members = split_members(response.content.decode('utf-8'))
            meta = json.loads(members.get('meta', '{}'))
        except ValueError as e:
            raise GrafanaAPIError(f"GET {path} returned invalid JSON: {e}") from e
        if 'dashboard' not in members:
            raise GrafanaAPIError(f"GET {path} response has no dashboard")
        if not isinstance(meta, dict):
            raise GrafanaAPIError(f"GET {path} returned {type(meta).__name__} meta, expected an object")

        if not meta.get('slug') and summary.slug:
            meta['slug'] = summary.slug
        return DashboardDocument(raw=members['dashboard'].encode('utf-8'), meta=meta)

    def list_datasources(self) -> List[DatasourceRecord]:
        items = self._get_objects('/api/datasources')
        return [
            DatasourceRecord(name=str(item.get('name') or ''), org_id=self._org_of(item, '/api/datasources'),
                             data=item)
            for item in items
        ]

    def list_users(self) -> List[UserRecord]:
        """List every user, following the API's pagination."""
        users = []
        page = 1
        while True:
            items = self._get_objects('/api/users', params={'perpage': USERS_PAGE_SIZE, 'page': page})
            for item in items:
                users.append(UserRecord(
                    login=str(item.get('login') or ''),
                    name=str(item.get('name') or ''),
                    org_id=self._org_of(item, '/api/users'),
                    data=item,
                ))
            if len(items) < USERS_PAGE_SIZE:
                return users
            page += 1
