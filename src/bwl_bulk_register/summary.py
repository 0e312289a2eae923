"""Run counters and the final summary block."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RunSummary:
    """Snapshot of the run counters."""

    lines_processed: int = 0
    user_entries: int = 0
    valid_entries: int = 0
    registered: int = 0

    def format_lines(self) -> list[str]:
        return [
            "=============== SUMMARY ===============",
            f" lines processed : {self.lines_processed}",
            f" user entries    : {self.user_entries}",
            f" valid entries   : {self.valid_entries}",
            f" registered users: {self.registered}",
            "=======================================",
        ]


class RunAggregator:
    """Counter bookkeeping for one run.

    Once :meth:`finalize` has been called the counters are frozen and any
    further update raises ``RuntimeError``.
    """

    def __init__(self) -> None:
        self.lines_processed = 0
        self.user_entries = 0
        self.valid_entries = 0
        self.registered = 0
        self._final: RunSummary | None = None

    def _check_open(self) -> None:
        if self._final is not None:
            raise RuntimeError("run summary already finalized")

    def on_line(self) -> None:
        self._check_open()
        self.lines_processed += 1

    def on_user_entry(self) -> None:
        self._check_open()
        self.user_entries += 1

    def on_valid_entry(self) -> None:
        self._check_open()
        self.valid_entries += 1

    def on_registered(self) -> None:
        self._check_open()
        self.registered += 1

    def summary(self) -> RunSummary:
        """Current counters as an immutable snapshot."""
        if self._final is not None:
            return self._final
        return RunSummary(
            lines_processed=self.lines_processed,
            user_entries=self.user_entries,
            valid_entries=self.valid_entries,
            registered=self.registered,
        )

    def finalize(self) -> RunSummary:
        if self._final is None:
            self._final = self.summary()
        return self._final

    @property
    def finalized(self) -> bool:
        return self._final is not None
