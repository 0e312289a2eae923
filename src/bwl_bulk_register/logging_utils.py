"""Per-run log files with credential redaction."""

import base64
import logging
import uuid
from datetime import date, timedelta
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
MAX_LOG_AGE_DAYS = 14
REDACTED = "***REDACTED***"


def generate_run_id() -> str:
    """Return an 8-character hex run identifier."""
    return uuid.uuid4().hex[:8]


def basic_auth_token(username: str, password: str) -> str:
    """The base64 part of an HTTP Basic ``Authorization`` header."""
    return base64.b64encode(f"{username}:{password}".encode()).decode("ascii")


class SecretRedactionFilter(logging.Filter):
    """Logging filter that replaces secrets with ``***REDACTED***``."""

    def __init__(self, *secrets: str) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def _redact(self, value: object) -> object:
        text = str(value)
        if not any(s in text for s in self._secrets):
            return value
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(record.msg)
        if record.args:
            if isinstance(record.args, tuple):
                record.args = tuple(self._redact(a) for a in record.args)
            elif isinstance(record.args, dict):
                record.args = {k: self._redact(v) for k, v in record.args.items()}
        return True


def log_file_name(run_id: str, day: date | None = None) -> str:
    return f"{(day or date.today()).isoformat()}_{run_id}.log"


def _log_file_date(path: Path) -> date | None:
    """Date encoded in a run log file name, None for foreign files."""
    day, sep, _ = path.stem.partition("_")
    if not sep:
        return None
    try:
        return date.fromisoformat(day)
    except ValueError:
        return None


def create_file_handler(
    log_dir: Path,
    run_id: str,
    secrets: tuple[str, ...] = (),
    level: int = logging.DEBUG,
) -> logging.FileHandler:
    """File handler for one run in *log_dir*; stale run logs are pruned first."""
    log_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    cleanup_old_logs(log_dir)

    handler = logging.FileHandler(log_dir / log_file_name(run_id), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if secrets:
        handler.addFilter(SecretRedactionFilter(*secrets))
    return handler


def cleanup_old_logs(log_dir: Path, max_age_days: int = MAX_LOG_AGE_DAYS) -> list[Path]:
    """Remove run logs in *log_dir* dated more than *max_age_days* ago."""
    cutoff = date.today() - timedelta(days=max_age_days)
    removed = []
    for path in sorted(log_dir.glob("*.log")):
        day = _log_file_date(path)
        if day is not None and day < cutoff:
            path.unlink(missing_ok=True)
            removed.append(path)
    return removed
