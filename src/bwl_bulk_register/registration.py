"""Provisioning of single users and classification of the server's answer."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from .client import BlueworksClient
from .models import ErrorResponse, UserRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registered:
    """The server accepted the user and echoed the provisioned object."""

    record: UserRecord
    server_echo: Any


@dataclass(frozen=True)
class Rejected:
    """The server answered with a status other than 200."""

    record: UserRecord
    http_status: int
    status_text: str
    message: str | None = None


@dataclass(frozen=True)
class NetworkError:
    """No usable answer: transport failure or malformed response."""

    record: UserRecord
    reason: str


RegistrationOutcome = Registered | Rejected | NetworkError


def _error_message(response: httpx.Response) -> str | None:
    """Extract ``message`` from an error body, or the raw body if it has none."""
    if not response.content:
        return None

    try:
        error = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text.strip() or None

    return error.message or response.text.strip()


def register_user(
    client: BlueworksClient,
    record: UserRecord,
    service_provider_address: str | None = None,
) -> RegistrationOutcome:
    """Register one user; exactly one network round trip, never raises for HTTP problems.

    Example answers of the provisioning API:

    * 200: ``{"license": "EDITOR", "admin": false, "active": true, "fullname": "", "username": "test@ibm.com"}``
    * 400: ``{"message": "The provided user name is already a member of this account."}``
    * 400: ``{"message": "There are no remaining licenses for the requested license type."}``
    """
    try:
        response = client.provision_user(record.to_request_body(), service_provider_address)
    except httpx.RequestError as e:
        logger.debug(f"Provisioning {record.username} failed: {e!r}")
        return NetworkError(record, str(e) or type(e).__name__)

    if response.status_code == httpx.codes.OK:
        try:
            echo = response.json()
        except ValueError as e:
            return NetworkError(record, f"malformed response: {e}")
        return Registered(record, echo)

    return Rejected(
        record,
        http_status=response.status_code,
        status_text=response.reason_phrase,
        message=_error_message(response),
    )
