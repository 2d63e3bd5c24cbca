"""
Grafana Backup

Exports dashboards, the datasources they depend on, and user accounts from a
Grafana instance into a flat directory of JSON files.
"""

__version__ = "1.0.0"
