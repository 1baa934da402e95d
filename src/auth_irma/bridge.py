"""
IRMA authentication bridge.

Composes attribute mapping, the IRMA session client, result validation,
result sealing and the continuation codec into the two supported flows:

- in-band: the IRMA UI sends the user back to ``/decorated_continue`` with the
  session token appended; the bridge fetches the result and redirects the
  user to the caller's continuation with the sealed result attached.
- out-of-band: the IRMA server calls ``/session_complete`` when the session
  ends; the bridge fetches the result and POSTs the sealed result to the
  caller's ``attr_url``. The user is returned to the continuation directly by
  the IRMA UI.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

import httpx

from .config import BridgeConfig
from .continuation import (
    ContinuationState,
    append_query_parameter,
    auth_ui_url,
    decode_segment,
)
from .exceptions import SessionError
from .irma import DisclosureRequest, IrmaServer
from .jwe import AuthResult, seal_auth_result
from .metrics import BridgeMetrics
from .validation import validate_result

logger = logging.getLogger(__name__)

IN_BAND = "in_band"
OUT_OF_BAND = "out_of_band"
RESULT_PARAMETER = "result"


class IrmaBridge:
    """Stateless orchestrator of IRMA disclosure sessions."""

    def __init__(
        self,
        config: BridgeConfig,
        metrics: BridgeMetrics | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        delivery_timeout: float = 30.0,
    ) -> None:
        """
        Args:
            config: Loaded bridge configuration
            metrics: Metrics collector, a private one is created if omitted
            transport: httpx transport for all outgoing requests (tests)
            delivery_timeout: Timeout of the out-of-band result POST in seconds
        """
        self.config = config
        self.metrics = metrics or BridgeMetrics()
        self.irma_server = IrmaServer(
            config.irma_server.url, config.irma_server.auth_token, transport=transport
        )
        self._transport = transport
        self.delivery_timeout = delivery_timeout

    async def start_authentication(
        self, attributes: Sequence[str], continuation: str, attr_url: str | None = None
    ) -> str:
        """
        Start a disclosure session and return the URL to send the user to.

        Raises:
            UnknownAttribute: If an attribute is not configured
            DuplicateAttribute: If an attribute is requested twice
            TransportError: If the IRMA server cannot be reached
        """
        state = ContinuationState(
            continuation=continuation, attributes=tuple(attributes), attr_url=attr_url
        )
        if attr_url is None:
            return await self._start_in_band(state)
        return await self._start_out_of_band(state)

    async def _start_in_band(self, state: ContinuationState) -> str:
        continuation_url = state.decorated_continue_url(self.config.server_url)
        request = DisclosureRequest(
            disclose=self.config.attributes.map_attributes(state.attributes),
            return_url=continuation_url,
            augment_return=True,
        )

        with self.metrics.time_irma_request("start"):
            session = await self.irma_server.start(request)
        self.metrics.session_started(IN_BAND)
        logger.info("Started in-band session for attributes %s", list(state.attributes))

        return auth_ui_url(
            self.config.server_url,
            session.qr,
            append_query_parameter(continuation_url, "token", session.token),
        )

    async def _start_out_of_band(self, state: ContinuationState) -> str:
        request = DisclosureRequest(
            disclose=self.config.attributes.map_attributes(state.attributes),
            return_url=state.continuation,
            augment_return=False,
        )
        callback_url = state.session_complete_url(self.config.internal_url)

        with self.metrics.time_irma_request("start"):
            session = await self.irma_server.start_with_callback(request, callback_url)
        self.metrics.session_started(OUT_OF_BAND)
        logger.info("Started out-of-band session for attributes %s", list(state.attributes))

        return auth_ui_url(self.config.server_url, session.qr, state.continuation)

    def auth_ui_redirect(self, qr: str, continuation: str) -> str:
        """
        Build the redirect into the IRMA disclosure UI.

        The decoded session pointer and continuation are passed to the UI as a
        JWT signed by the bridge, so the page can trust its parameters.

        Raises:
            DecodeError: If a path segment is malformed
        """
        claims = {
            "iat": int(datetime.now(timezone.utc).timestamp()),
            "continuation": decode_segment(continuation),
            "qr": decode_segment(qr),
        }
        token = self.config.signer.sign(claims)
        return f"{self.config.ui_irma_url}?{token}"

    async def decorated_continue(self, attributes: str, continuation: str, token: str) -> str:
        """
        Finish an in-band session and return the caller redirect URL.

        Session and validation failures still produce a redirect, carrying a
        sealed failed result.

        Raises:
            DecodeError: If a path segment is malformed
            TransportError: If the result cannot be fetched
            PackagingError: If the result cannot be sealed
        """
        state = ContinuationState.from_decorated_continue(attributes, continuation)
        sealed = await self._sealed_result(state, token, IN_BAND)
        return append_query_parameter(state.continuation, RESULT_PARAMETER, sealed)

    async def session_complete(self, attributes: str, attr_url: str, token: str) -> bool:
        """
        Finish an out-of-band session and deliver the sealed result.

        Returns:
            Whether the delivery POST succeeded; failures are only logged

        Raises:
            DecodeError: If a path segment is malformed
            TransportError: If the result cannot be fetched
            PackagingError: If the result cannot be sealed
        """
        state = ContinuationState.from_session_complete(attributes, attr_url)
        sealed = await self._sealed_result(state, token, OUT_OF_BAND)
        return await self._deliver(state.attr_url, sealed)

    async def _sealed_result(self, state: ContinuationState, token: str, flow: str) -> str:
        with self.metrics.time_irma_request("result"):
            raw = await self.irma_server.get_result(token)

        try:
            disclosed = validate_result(self.config.attributes, state.attributes, raw)
        except SessionError as e:
            logger.info("%s session failed: %s", flow, e.message)
            result = AuthResult.failed(e.reason)
            outcome = e.reason
        else:
            result = AuthResult.success(disclosed)
            outcome = result.status.value

        sealed = seal_auth_result(
            result,
            self.config.signer,
            self.config.encrypter,
            validity=self.config.result_validity,
        )
        self.metrics.session_result(flow, outcome)
        return sealed

    async def _deliver(self, attr_url: str, sealed: str) -> bool:
        try:
            async with httpx.AsyncClient(
                timeout=self.delivery_timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    attr_url,
                    content=sealed,
                    headers={"Content-Type": "application/jwt"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            self.metrics.delivery_failed()
            logger.error("Failure reporting results to %s: %s", attr_url, type(e).__name__)
            return False

        logger.info("Delivered authentication result to %s", attr_url)
        return True
