"""Line-oriented console output of a run.

Results go to stdout, errors to stderr prefixed with ``ERROR: `` so that
both streams can be separated or grepped.
"""

import json

from rich.console import Console

from .models import UserRecord
from .parser import ParseError
from .registration import NetworkError, Registered, Rejected, RegistrationOutcome
from .summary import RunSummary

ERROR_MARKER = "ERROR: "


class RunReporter:
    """Prints request, result and error lines plus the summary block."""

    def __init__(self, console: Console | None = None, error_console: Console | None = None):
        self.console = console or Console(highlight=False)
        self.error_console = error_console or Console(stderr=True, highlight=False)

    def _out(self, text: str) -> None:
        self.console.print(text, markup=False, emoji=False, highlight=False, soft_wrap=True)

    def _err(self, text: str) -> None:
        self.error_console.print(
            f"{ERROR_MARKER}{text}", markup=False, emoji=False, highlight=False, soft_wrap=True
        )

    def parse_error(self, error: ParseError) -> None:
        self._err(f"could not parse line {error.line_number} ({error.reason}):  {error.raw_text}")

    def registration_request(self, entry_number: int, record: UserRecord) -> None:
        self._out(
            f">REGISTRATION-REQUEST #{entry_number} for user {record.username}: {record.to_json()}"
        )

    def registration_outcome(self, outcome: RegistrationOutcome) -> None:
        username = outcome.record.username
        if isinstance(outcome, Registered):
            self._out(
                f"<REGISTRATION-RESULT successfully registered user {username}: "
                f"{json.dumps(outcome.server_echo)}"
            )
        elif isinstance(outcome, Rejected):
            text = f"<REGISTRATION-ERROR for user {username} (Code={outcome.http_status}): {outcome.status_text}"
            if outcome.message:
                text += f" - {outcome.message}"
            self._err(text)
        elif isinstance(outcome, NetworkError):
            self._err(f"<REGISTRATION-ERROR for user {username}: {outcome.reason}")

    def auth_error(self, reason: str, server: str) -> None:
        self._err(f"authentication probe failed: {reason}; using default server {server}")

    def summary(self, summary: RunSummary) -> None:
        for line in summary.format_lines():
            self._out(line)
