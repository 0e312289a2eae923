"""Reading the user list and turning its lines into user records.

Line format (no header row, no escaping of embedded commas)::

    username[,fullname[,role[,admin]]]

Blank lines are ignored. Missing fields take the run defaults; a role is
matched by prefix (see :func:`~bwl_bulk_register.roles.normalize_role`).
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import RunConfig
from .errors import FileError
from .models import UserRecord
from .roles import UnknownRoleError, normalize_role

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ","


@dataclass(frozen=True)
class Blank:
    """A line holding only whitespace."""

    line_number: int


@dataclass(frozen=True)
class ParseError:
    """A non-blank line that could not be turned into a record."""

    line_number: int
    raw_text: str
    reason: str


@dataclass(frozen=True)
class Valid:
    """A line that produced a record ready for registration."""

    line_number: int
    record: UserRecord


LineOutcome = Blank | ParseError | Valid


def read_user_list(path: Path) -> list[str]:
    """Read the whole user list file and split it into physical lines.

    Raises:
        FileError: the file is missing, unreadable or not valid UTF-8
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Reading {path} failed: {e}")
        raise FileError(f"could not read file {path}") from e

    # Text mode already turns \r\n and \r into \n; other separators stay in the line.
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    logger.debug(f"Read {len(lines)} lines from {path}")
    return lines


def parse_bool(text: str) -> bool:
    """Lenient boolean: ``true`` in any case is True, anything else False."""
    return text.strip().lower() == "true"


def split_fields(line: str) -> list[str]:
    """Split on commas, trim each field and drop trailing empty fields."""
    fields = [field.strip() for field in line.split(FIELD_SEPARATOR)]
    while len(fields) > 1 and not fields[-1]:
        fields.pop()
    return fields


def parse_line(line_number: int, raw_line: str, config: RunConfig) -> LineOutcome:
    """Parse one line of the user list.

    Args:
        line_number: 1-based physical line number
        raw_line: line text as read from the file
        config: run configuration supplying the default role and admin flag

    Returns:
        ``Blank`` for whitespace-only lines, ``ParseError`` for lines with an
        unknown role or no username, ``Valid`` otherwise
    """
    line = raw_line.strip()
    if not line:
        return Blank(line_number)

    fields = split_fields(line)
    username = fields[0]
    if not username:
        return ParseError(line_number, line, "missing username")

    fullname = fields[1] if len(fields) > 1 else ""

    role = config.default_role
    if len(fields) > 2:
        try:
            role = normalize_role(fields[2])
        except UnknownRoleError as e:
            return ParseError(line_number, line, str(e))

    admin = parse_bool(fields[3]) if len(fields) > 3 else config.default_admin

    record = UserRecord(username=username, fullname=fullname, role=role, admin=admin)
    return Valid(line_number, record)
