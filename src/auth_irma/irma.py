"""
Client for the IRMA server session API.

Starts disclosure sessions and retrieves their raw results. This module only
speaks the protocol; interpreting a result is done in ``validation``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .attributes import ConDisCon
from .exceptions import TransportError

logger = logging.getLogger(__name__)

DISCLOSURE_CONTEXT = "https://irma.app/ld/request/disclosure/v2"


class SessionStatus(str, Enum):
    INITIALIZED = "INITIALIZED"
    PAIRING = "PAIRING"
    CONNECTED = "CONNECTED"
    CANCELLED = "CANCELLED"
    DONE = "DONE"
    TIMEOUT = "TIMEOUT"


class ProofStatus(str, Enum):
    VALID = "VALID"
    INVALID = "INVALID"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
    UNMATCHED_REQUEST = "UNMATCHED_REQUEST"
    MISSING_ATTRIBUTES = "MISSING_ATTRIBUTES"
    EXPIRED = "EXPIRED"


class SessionType(str, Enum):
    DISCLOSING = "disclosing"
    SIGNING = "signing"
    ISSUING = "issuing"


class SessionPointer(BaseModel):
    """Pointer the IRMA app uses to join a session."""

    u: str
    irmaqr: SessionType


class SessionResponse(BaseModel):
    """Body returned by ``POST /session``."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    session_ptr: SessionPointer = Field(alias="sessionPtr")


class DisclosedAttribute(BaseModel):
    id: str
    rawvalue: str


class RawSessionResult(BaseModel):
    """Body returned by ``GET /session/{token}/result``."""

    model_config = ConfigDict(populate_by_name=True)

    status: SessionStatus
    proof_status: ProofStatus | None = Field(default=None, alias="proofStatus")
    disclosed: list[list[DisclosedAttribute]] = Field(default_factory=list)

    @field_validator("disclosed", mode="before")
    @classmethod
    def _null_disclosed(cls, value: Any) -> Any:
        # Sessions that did not finish report ``disclosed: null``
        return [] if value is None else value


@dataclass(frozen=True)
class DisclosureRequest:
    """An IRMA disclosure session request."""

    disclose: ConDisCon
    return_url: str | None = None
    augment_return: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "@context": DISCLOSURE_CONTEXT,
            "disclose": self.disclose,
            "clientReturnUrl": self.return_url,
            "augmentReturnUrl": self.augment_return,
        }


@dataclass(frozen=True)
class SessionHandle:
    """A started session: the pointer for the IRMA app and the requestor token."""

    qr: str
    token: str


class IrmaServer:
    """
    Thin async client for an IRMA server.

    One ``httpx.AsyncClient`` is opened per call; the instance itself holds
    only immutable settings and can be shared between concurrent requests.
    """

    def __init__(
        self,
        server_url: str,
        auth_token: str | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _headers(self) -> dict[str, str]:
        if self.auth_token:
            return {"Authorization": self.auth_token}
        return {}

    async def start(self, request: DisclosureRequest) -> SessionHandle:
        """Start a disclosure session."""
        return await self._post_session(request.to_json())

    async def start_with_callback(
        self, request: DisclosureRequest, callback_url: str
    ) -> SessionHandle:
        """Start a disclosure session the server reports back on at ``callback_url``."""
        return await self._post_session(
            {"callbackUrl": callback_url, "request": request.to_json()}
        )

    async def get_result(self, token: str) -> RawSessionResult:
        """Fetch the result of the session identified by ``token``."""
        url = f"{self.server_url}/session/{quote(token, safe='')}/result"
        body = await self._request("GET", url)
        try:
            return RawSessionResult.model_validate(body)
        except ValidationError as e:
            raise TransportError("Malformed session result from IRMA server") from e

    async def _post_session(self, payload: dict[str, Any]) -> SessionHandle:
        body = await self._request("POST", f"{self.server_url}/session", json=payload)
        try:
            response = SessionResponse.model_validate(body)
        except ValidationError as e:
            raise TransportError("Malformed session response from IRMA server") from e

        qr = json.dumps(response.session_ptr.model_dump(mode="json"), separators=(",", ":"))
        logger.debug("Started IRMA session of type %s", response.session_ptr.irmaqr.value)
        return SessionHandle(qr=qr, token=response.token)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            async with self._client() as client:
                response = await client.request(method, url, headers=self._headers(), **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            # The URL is not logged, it carries the session token
            logger.warning("%s request to IRMA server failed: %s", method, type(e).__name__)
            raise TransportError(f"IRMA server request failed: {type(e).__name__}") from e
        except ValueError as e:
            raise TransportError("IRMA server returned invalid JSON") from e
