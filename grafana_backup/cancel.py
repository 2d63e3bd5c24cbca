"""Cooperative cancellation for backup loops."""

import signal
import sys

EXIT_INTERRUPTED = 130


class CancelToken:
    """Cancellation flag polled once per item by every backup pass."""

    def __init__(self):
        self._cancelled = False
        self.signum = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, signum=None) -> None:
        self._cancelled = True
        self.signum = signum

    def check(self) -> None:
        """Return if the run may continue, otherwise exit the process."""
        if not self._cancelled:
            return
        if self.signum is not None:
            print(f"\nInterrupted by signal {self.signum}, stopping backup.", file=sys.stderr)
        else:
            print("\nBackup cancelled.", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)


def install_signal_handlers(token: CancelToken) -> None:
    """Trip the token on SIGINT/SIGTERM instead of raising mid-write."""

    def _handle_signal(signum, frame):
        token.cancel(signum)

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
