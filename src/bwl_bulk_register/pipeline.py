"""End-to-end driver of a bulk registration run.

States::

    INIT -> LIST_LOADED -> ENDPOINT_RESOLVED (skipped when check-only)
         -> PROCESSING -> SUMMARIZED

Lines are handled strictly in file order, one at a time. A bad line or a
failed registration never stops the run.
"""

import logging
from enum import StrEnum

from .auth import resolve_service_provider
from .client import BlueworksClient
from .config import RunConfig
from .errors import AuthError
from .parser import Blank, ParseError, Valid, parse_line, read_user_list
from .registration import Registered, register_user
from .reporting import RunReporter
from .summary import RunAggregator, RunSummary

logger = logging.getLogger(__name__)


class PipelineState(StrEnum):
    INIT = "init"
    LIST_LOADED = "list_loaded"
    ENDPOINT_RESOLVED = "endpoint_resolved"
    PROCESSING = "processing"
    SUMMARIZED = "summarized"


class BulkRegistrationPipeline:
    """Runs one bulk registration: read, resolve, parse, register, summarize."""

    def __init__(
        self,
        config: RunConfig,
        client: BlueworksClient | None = None,
        reporter: RunReporter | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: run configuration
            client: API client to use; created from ``config`` when omitted
                and the run is not check-only
            reporter: console reporter; defaults to stdout/stderr
        """
        self.config = config
        self.reporter = reporter or RunReporter()
        self.aggregator = RunAggregator()
        self.state = PipelineState.INIT
        self.service_provider_address: str | None = None
        self._client = client
        self._owns_client = False

    def _get_client(self) -> BlueworksClient:
        if self._client is None:
            self._client = BlueworksClient(self.config)
            self._owns_client = True
        return self._client

    def load(self) -> list[str]:
        """Read the user list. Raises ``FileError`` before anything is sent."""
        lines = read_user_list(self.config.user_list_file)
        self.state = PipelineState.LIST_LOADED
        return lines

    def resolve_endpoint(self) -> str | None:
        """Probe the Auth API; any failure falls back to the default server."""
        try:
            self.service_provider_address = resolve_service_provider(self._get_client())
        except AuthError as e:
            logger.info(f"Authentication probe failed: {e}")
            self.reporter.auth_error(str(e), self.config.server)
            self.service_provider_address = None
        self.state = PipelineState.ENDPOINT_RESOLVED
        return self.service_provider_address

    def process_line(self, line_number: int, raw_line: str) -> None:
        """Handle one physical line, updating counters and reporting."""
        self.aggregator.on_line()
        outcome = parse_line(line_number, raw_line, self.config)

        if isinstance(outcome, Blank):
            return

        self.aggregator.on_user_entry()

        if isinstance(outcome, ParseError):
            self.reporter.parse_error(outcome)
            return

        if isinstance(outcome, Valid):
            self.aggregator.on_valid_entry()
            self.reporter.registration_request(self.aggregator.user_entries, outcome.record)
            if self.config.check_only:
                return

            result = register_user(self._get_client(), outcome.record, self.service_provider_address)
            self.reporter.registration_outcome(result)
            if isinstance(result, Registered):
                self.aggregator.on_registered()

    def process(self, lines: list[str]) -> None:
        self.state = PipelineState.PROCESSING
        for line_number, raw_line in enumerate(lines, start=1):
            self.process_line(line_number, raw_line)

    def summarize(self) -> RunSummary:
        summary = self.aggregator.finalize()
        self.reporter.summary(summary)
        self.state = PipelineState.SUMMARIZED
        logger.info(
            f"Run finished: {summary.lines_processed} lines, {summary.user_entries} entries, "
            f"{summary.valid_entries} valid, {summary.registered} registered"
        )
        return summary

    def run(self) -> RunSummary:
        """Execute the whole run.

        Raises:
            FileError: the user list could not be read
        """
        if self.state != PipelineState.INIT:
            raise RuntimeError(f"pipeline already run (state={self.state})")

        try:
            lines = self.load()
            if not self.config.check_only:
                self.resolve_endpoint()
            self.process(lines)
            return self.summarize()
        finally:
            if self._owns_client and self._client is not None:
                self._client.close()
