#!/usr/bin/env python3
"""
Grafana Backup Utility

Backs up dashboards, the datasources they use, and users from the Grafana API
into a directory of JSON files. Designed to run via cron for automated backups.

Usage:
  ./scripts/backup-grafana.py [--apply-for auto|all|dashboards,datasources,users] [--dir DIR]

Environment variables (from .env):
  GRAFANA_URL - Grafana base URL (default: http://localhost:3000)
  GRAFANA_TOKEN - API token (preferred)
  GRAFANA_ADMIN_USER - Admin username (default: admin)
  GRAFANA_ADMIN_PASSWORD - Admin password (required without a token)
"""

import sys
from pathlib import Path

# Allow running from a checkout without installing the package
SCRIPT_DIR = Path(__file__).parent
REPO_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(REPO_ROOT))

from grafana_backup.cli import main  # noqa: E402


if __name__ == '__main__':
    sys.exit(main())
