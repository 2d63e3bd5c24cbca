"""Deterministic backup filenames for dashboards, datasources and users."""

from typing import Optional

from slugify import slugify

DASHBOARD = "dashboard"
DATASOURCE = "datasource"
USER = "user"


def name(kind: str, identifier: str, org_id: Optional[int] = None) -> str:
    """Build the relative filename for one backed-up entity.

    Dashboards keep the slug Grafana already assigned and need no org id.
    Datasource names and user logins are only unique inside an organization,
    so the org id is part of their filename.
    """
    if kind == DASHBOARD:
        return f"{identifier}.db.json"

    if kind not in (DATASOURCE, USER):
        raise ValueError(f"Unknown entity kind: {kind}")
    if org_id is None:
        raise ValueError(f"{kind} '{identifier}' needs an organization id")

    slug = slugify(identifier)
    if kind == DATASOURCE:
        return f"{slug}.ds.{org_id}.json"
    return f"{slug}.user.{org_id}.json"
