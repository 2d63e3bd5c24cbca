"""Error kinds raised and reported during a backup run."""

from typing import Optional


class BackupError(Exception):
    """Base class for every failure the backup passes report."""

    kind = "backup"

    def __init__(self, identifier: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.identifier = identifier
        self.cause = cause
        if message is None:
            message = str(cause) if cause is not None else "unknown error"
        self.message = message
        super().__init__(f"{message} for {identifier}")


class SetupError(BackupError):
    """Output directory could not be verified or created."""

    kind = "setup"


class ListError(BackupError):
    """Search or list call failed at the start of a pass."""

    kind = "list"


class FetchError(BackupError):
    """A single dashboard could not be retrieved."""

    kind = "fetch"


class ParseError(BackupError):
    """A fetched dashboard could not be parsed into rows and panels."""

    kind = "parse"


class SerializeError(BackupError):
    """A datasource or user could not be marshalled to JSON."""

    kind = "serialize"


class WriteError(BackupError):
    """Writing a backup file failed."""

    kind = "write"
