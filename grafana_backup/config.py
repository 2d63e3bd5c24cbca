"""
Connection settings for the backup tool.

Values come from the environment, falling back to a .env file in the working
directory:
  GRAFANA_URL - Grafana base URL (default: http://localhost:3000)
  GRAFANA_TOKEN - API/service account token (preferred over basic auth)
  GRAFANA_ADMIN_USER - Admin username (default: admin)
  GRAFANA_ADMIN_PASSWORD - Admin password
  GRAFANA_TIMEOUT - HTTP timeout in seconds (default: 10)
  GRAFANA_BACKUP_DIR - Output directory (default: backup)
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_FILE = ".env"


class ConfigError(Exception):
    """Settings are missing or malformed."""


def get_env_value(key: str, default: Optional[str] = None, env_file: str = ENV_FILE) -> Optional[str]:
    """Read a setting from the environment, then the .env file, then default."""
    value = os.getenv(key)
    if value:
        return value

    if not os.path.exists(env_file):
        return default

    try:
        with open(env_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line.startswith('#') or '=' not in line:
                    continue
                if line.startswith(f"{key}="):
                    # Strip quotes if present
                    return line.split('=', 1)[1].strip('"\'')
    except OSError as e:
        print(f"Warning: Error reading {env_file} file: {e}", file=sys.stderr)

    return default


@dataclass(frozen=True)
class Settings:
    url: str
    token: Optional[str]
    user: str
    password: Optional[str]
    timeout: float
    directory: str


def load_settings(env_file: str = ENV_FILE) -> Settings:
    """Collect settings, failing early when no credentials are configured."""
    token = get_env_value('GRAFANA_TOKEN', env_file=env_file)
    password = get_env_value('GRAFANA_ADMIN_PASSWORD', env_file=env_file)
    if not token and not password:
        raise ConfigError(
            "Neither GRAFANA_TOKEN nor GRAFANA_ADMIN_PASSWORD is set. "
            f"Set one in {env_file} or export it."
        )

    raw_timeout = get_env_value('GRAFANA_TIMEOUT', '10', env_file=env_file)
    try:
        timeout = float(raw_timeout)
    except ValueError:
        raise ConfigError(f"GRAFANA_TIMEOUT must be a number, got '{raw_timeout}'")

    return Settings(
        url=get_env_value('GRAFANA_URL', 'http://localhost:3000', env_file=env_file),
        token=token,
        user=get_env_value('GRAFANA_ADMIN_USER', 'admin', env_file=env_file),
        password=password,
        timeout=timeout,
        directory=str(Path(get_env_value('GRAFANA_BACKUP_DIR', 'backup', env_file=env_file))),
    )
