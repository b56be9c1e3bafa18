"""Pydantic models and small value types shared across authpark.

Request side:
    :class:`RequestConfig` -- the description of one outgoing request, the
    unit that is parked and replayed.

Classification:
    :class:`RejectionCategory` and :class:`AuthNotification`, the payload
    broadcast when a failed response is in scope for auth handling.

Settings:
    :class:`ClientSettings`, loaded by :func:`authpark.config.load_settings`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from authpark.exceptions import HTTPRejection


class RequestConfig(BaseModel):
    """Transport-level description of a request.

    Only :attr:`ignore_auth_module` is interpreted by the interception
    pipeline; everything else is handed to the transport untouched.
    ``metadata`` is free-form and is never sent over the wire.
    """

    model_config = ConfigDict(populate_by_name=True)

    method: str = "GET"
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)
    json_body: Any = None
    content: Optional[str | bytes] = None
    timeout: Optional[float] = None
    ignore_auth_module: bool = Field(
        default=False,
        alias="ignoreAuthModule",
        description="Opt this request out of all auth handling",
    )
    metadata: dict[str, Any] = Field(default_factory=dict)


class RejectionCategory(str, enum.Enum):
    """How a failed response is treated by the interception pipeline."""

    MISSING_PARAMETER = "missing-parameter"
    LOGIN_REQUIRED = "login-required"
    FORBIDDEN = "forbidden"
    UNCLASSIFIED = "unclassified"

    @property
    def parks(self) -> bool:
        """Whether requests failing with this category are buffered for replay."""
        return self in (RejectionCategory.MISSING_PARAMETER, RejectionCategory.LOGIN_REQUIRED)


@dataclass(frozen=True)
class AuthNotification:
    """Payload of the ``missingParameter``, ``loginRequired`` and ``forbidden`` events.

    Attributes:
        category: The rejection category that triggered the event.
        rejection: The original failure, including its request config.
    """

    category: RejectionCategory
    rejection: HTTPRejection


class ClientSettings(BaseModel):
    """Connection settings for :class:`~authpark.client.AsyncClient`."""

    base_url: str = Field(default="", description="Prefix for relative request URLs")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = True
    token_env: Optional[str] = Field(
        default=None,
        description="Environment variable holding a bearer token used on login-required",
    )
