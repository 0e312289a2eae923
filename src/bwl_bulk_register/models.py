"""Pydantic models for the request and response bodies of the REST API."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .roles import Role


class UserRecord(BaseModel):
    """One validated user entry from the user list.

    Serializes to the provisioning request body, where the role is sent
    as ``license``.
    """

    username: str = Field(min_length=1)
    fullname: str = ""
    role: Role = Field(serialization_alias="license")
    admin: bool = False

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    def to_request_body(self) -> dict[str, Any]:
        """Body for ``PUT /scr/api/provision/user/``."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return json.dumps(self.to_request_body())


class AuthResponse(BaseModel):
    """Answer of the ``/api/Auth`` probe."""

    result: str
    service_provider_address: str | None = Field(default=None, alias="serviceProviderAddress")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def authenticated(self) -> bool:
        return self.result == "authenticated"


class ErrorResponse(BaseModel):
    """Error body returned with a non-200 provisioning response."""

    message: str | None = None
