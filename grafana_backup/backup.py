"""
Backup orchestration.

Runs the dashboard, datasource and user passes for one BackupRequest. In
hierarchical mode the dashboard pass collects the datasource names its
dashboards reference and only those datasources are backed up.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Set

from grafana_backup import naming
from grafana_backup.board import extract_datasources, parse_board
from grafana_backup.cancel import CancelToken
from grafana_backup.client import GrafanaAPIError
from grafana_backup.errors import (
    BackupError,
    FetchError,
    ListError,
    ParseError,
    SerializeError,
    SetupError,
    WriteError,
)
from grafana_backup.models import BackupRequest
from grafana_backup.storage import LocalFilesystem

EXIT_FAILURE = 1


def report(error: BackupError) -> None:
    """Print a backup error with the entity it concerns to stderr."""
    print(f"ERROR: [{error.kind}] {error}", file=sys.stderr)


def is_safe_slug(slug: str) -> bool:
    """A server-provided slug must name a file inside the output directory."""
    return slug not in ('.', '..') and '/' not in slug and '\\' not in slug and '\x00' not in slug


@dataclass
class PassSummary:
    name: str
    total: int = 0
    written: int = 0
    failed: int = 0


class BackupRunner:
    """Executes the backup passes selected by a BackupRequest."""

    def __init__(self, request: BackupRequest, client, cancel: Optional[CancelToken] = None, fs=None):
        self.request = request
        self.client = client
        self.cancel = cancel or CancelToken()
        self.fs = fs or LocalFilesystem()

    def _say(self, message: str) -> None:
        if self.request.verbose:
            print(message)

    def _fail(self, summary: PassSummary, error: BackupError) -> None:
        summary.failed += 1
        report(error)

    def _write(self, summary: PassSummary, path: Path, data: bytes) -> bool:
        try:
            self.fs.write_file(path, data)
        except WriteError as e:
            self._fail(summary, e)
            return False
        except OSError as e:
            self._fail(summary, WriteError(str(path), cause=e))
            return False
        summary.written += 1
        return True

    def _finish(self, summary: PassSummary) -> PassSummary:
        line = f"Backup of {summary.name} complete: {summary.written}/{summary.total} saved"
        if summary.failed:
            line += f" ({summary.failed} failed)"
        print(line)
        return summary

    # ========================================================================
    # Passes
    # ========================================================================

    def backup_dashboards(self, references: Optional[Set[str]] = None) -> PassSummary:
        """Back up every dashboard matching the search filter.

        When a reference set is given, each dashboard is also parsed and the
        datasource names it uses are added to the set.
        """
        directory = Path(self.fs.ensure_directory(self.request.directory))
        search = self.request.search
        try:
            found = self.client.search_dashboards(search.title, search.starred, search.tags)
        except GrafanaAPIError as e:
            raise ListError("dashboard search", cause=e) from e
        self._say(f"Found {len(found)} dashboards that matched the conditions.")

        summary = PassSummary('dashboards', total=len(found))
        for link in found:
            self.cancel.check()
            try:
                document = self.client.fetch_dashboard(link)
            except GrafanaAPIError as e:
                self._fail(summary, FetchError(link.identifier, cause=e))
                continue
            if not document.slug:
                self._fail(summary, FetchError(link.identifier, message="dashboard metadata has no slug"))
                continue
            if not is_safe_slug(document.slug):
                self._fail(summary, FetchError(link.identifier, message=f"unsafe dashboard slug '{document.slug}'"))
                continue

            if references is not None:
                try:
                    board = parse_board(document.raw, document.slug)
                except ParseError as e:
                    # The raw backup is still written
                    report(e)
                else:
                    for ds_name in sorted(extract_datasources(board)):
                        self._say(f"  Found datasource [{ds_name}] in dashboard [{board.title}]: adding to backup list.")
                        references.add(ds_name)

            path = directory / naming.name(naming.DASHBOARD, document.slug)
            if self._write(summary, path, document.raw):
                self._say(f"  ✓ {document.slug} written into {path}")
        return self._finish(summary)

    def backup_datasources(self, only: Optional[Set[str]] = None) -> PassSummary:
        """Back up all datasources, or only those named in `only`."""
        directory = Path(self.fs.ensure_directory(self.request.directory))
        try:
            datasources = self.client.list_datasources()
        except GrafanaAPIError as e:
            raise ListError("datasource list", cause=e) from e
        self._say(f"Found {len(datasources)} datasources.")

        if only is not None:
            datasources = [ds for ds in datasources if ds.name in only]

        summary = PassSummary('datasources', total=len(datasources))
        for ds in datasources:
            self.cancel.check()
            try:
                data = ds.to_json()
            except (TypeError, ValueError) as e:
                self._fail(summary, SerializeError(f"datasource '{ds.name}'", cause=e))
                continue

            path = directory / naming.name(naming.DATASOURCE, ds.name, ds.org_id)
            if self._write(summary, path, data):
                self._say(f"  ✓ {ds.name} written into {path}")
        return self._finish(summary)

    def backup_users(self) -> PassSummary:
        directory = Path(self.fs.ensure_directory(self.request.directory))
        try:
            users = self.client.list_users()
        except GrafanaAPIError as e:
            raise ListError("user list", cause=e) from e
        self._say(f"Found {len(users)} users.")

        summary = PassSummary('users', total=len(users))
        for user in users:
            self.cancel.check()
            try:
                data = user.to_json()
            except (TypeError, ValueError) as e:
                self._fail(summary, SerializeError(f"user '{user.login}'", cause=e))
                continue

            path = directory / naming.name(naming.USER, user.login, user.org_id)
            if self._write(summary, path, data):
                self._say(f"  ✓ {user.name or user.login} written into {path}")
        return self._finish(summary)

    # ========================================================================
    # Orchestration
    # ========================================================================

    def _run_pass(self, backup_pass, *args) -> Optional[PassSummary]:
        try:
            return backup_pass(*args)
        except ListError as e:
            report(e)
            return None

    def run(self) -> None:
        """Run the selected passes; exits the process on setup failure."""
        request = self.request
        try:
            if request.hierarchical:
                references = set()
                try:
                    self.backup_dashboards(references)
                except ListError as e:
                    report(e)
                    sys.exit(EXIT_FAILURE)
                self._run_pass(self.backup_datasources, references)
                return

            if request.dashboards:
                self._run_pass(self.backup_dashboards)
            if request.datasources:
                self._run_pass(self.backup_datasources)
            if request.users:
                self._run_pass(self.backup_users)
        except SetupError as e:
            report(e)
            sys.exit(EXIT_FAILURE)


def run(request: BackupRequest, client, cancel: Optional[CancelToken] = None, fs=None) -> None:
    BackupRunner(request, client, cancel=cancel, fs=fs).run()
