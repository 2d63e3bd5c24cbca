import sys

from grafana_backup.cli import main

sys.exit(main())
