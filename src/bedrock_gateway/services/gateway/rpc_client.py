"""
RPC dispatcher for the Bedrock cluster.

Opens one TCP connection per attempt with asyncio streams and walks the host pool
with a Tenacity retry loop, blacklisting every endpoint that fails.
"""

import asyncio
from collections.abc import Mapping
import contextlib
import logging
import time
import uuid

from opentelemetry import trace
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from bedrock_gateway.config import ClusterConfig, HostEndpoint
from bedrock_gateway.enums import FailureReason, Priority, WriteConsistency

from .codec import decode_reply, encode_request, read_reply
from .errors import EndpointUnavailableError, MalformedReplyError, NoCandidateError
from .host_pool import Blacklist, HostPool
from .metrics import blacklist_counter, rpc_duration_histogram, transport_failure_counter
from .schemas import DispatchResult, MalformedReply, RpcRequest, RpcResponse, TransportFailure


logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class Dispatcher:
    """
    Sends commands to the first reachable endpoint of the cluster.

    Features:
    - Primary endpoints before failover endpoints
    - Separate connection and read timeouts (whole seconds, 0 = do not wait)
    - Failed endpoints are blacklisted for every request served by this instance
    - Never raises for transport or parse errors; returns a result value instead
    """

    def __init__(self, config: ClusterConfig, blacklist: Blacklist | None = None) -> None:
        """
        Initialize the dispatcher.

        Args:
            config: Validated cluster configuration
            blacklist: Shared blacklist; a new one using config.blacklist_timeout if omitted
        """
        self.config = config
        self.pool = HostPool(config.primary, config.failover)
        self.blacklist = blacklist if blacklist is not None else Blacklist(config.blacklist_timeout)

        logger.info(
            "Dispatcher initialized: cluster=%s, primary=%s, failover=%s, "
            "connection_timeout=%ds, read_timeout=%ds, blacklist_timeout=%ds",
            config.cluster_name,
            ",".join(str(e) for e in config.primary),
            ",".join(str(e) for e in config.failover) or "-",
            config.connection_timeout,
            config.read_timeout,
            config.blacklist_timeout,
        )

    def build_request(
        self,
        command: str,
        params: Mapping[str, str] | None = None,
        priority: Priority | None = None,
        write_consistency: WriteConsistency | None = None,
        request_id: str | None = None,
    ) -> RpcRequest:
        """
        Build a request, filling priority and consistency from the cluster defaults.

        Raises:
            ValueError: If the command or a parameter cannot be sent on the wire
        """
        return RpcRequest(
            command=command,
            params=dict(params or {}),
            priority=priority or self.config.default_priority,
            write_consistency=write_consistency or self.config.default_write_consistency,
            request_id=request_id or uuid.uuid4().hex,
        )

    async def dispatch(self, request: RpcRequest) -> DispatchResult:
        """
        Send a request to the cluster.

        Each configured endpoint is tried at most once per call. An endpoint that
        fails to connect or to reply within its timeout is blacklisted and the next
        candidate is tried.

        Args:
            request: The command to send

        Returns:
            RpcResponse from the endpoint that replied, TransportFailure when no
            endpoint replied, or MalformedReply when the reply could not be parsed
        """
        attempted: list[HostEndpoint] = []

        with tracer.start_as_current_span(
            "bedrock.dispatch",
            attributes={
                "bedrock.cluster": self.config.cluster_name,
                "bedrock.command": request.command,
                "bedrock.request_id": request.request_id,
            },
        ) as span:
            try:
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception_type(EndpointUnavailableError),
                    stop=stop_after_attempt(len(self.pool)),
                    reraise=True,
                ):
                    with attempt:
                        endpoint = self.pool.next_candidate(self.blacklist, exclude=attempted)
                        if endpoint is None:
                            msg = "every configured endpoint is blacklisted or already tried"
                            raise NoCandidateError(msg)
                        attempted.append(endpoint)
                        response = await self._call_endpoint(endpoint, request)

            except NoCandidateError:
                reason = (
                    FailureReason.ALL_HOSTS_FAILED if attempted else FailureReason.NO_HOSTS_AVAILABLE
                )
                return self._transport_failure(request, reason, attempted, span)

            except EndpointUnavailableError:
                return self._transport_failure(
                    request, FailureReason.ALL_HOSTS_FAILED, attempted, span
                )

            except MalformedReplyError as e:
                endpoint = attempted[-1]
                logger.error(
                    "Malformed reply from %s for %s (request_id=%s): %s",
                    endpoint,
                    request.command,
                    request.request_id,
                    e,
                )
                span.set_attribute("bedrock.outcome", "malformed")
                return MalformedReply(detail=str(e), endpoint=endpoint)

            span.set_attribute("bedrock.outcome", "reply")
            span.set_attribute("bedrock.endpoint", str(response.endpoint))
            span.set_attribute("bedrock.code", response.numeric_code)
            logger.debug(
                "%s answered %s (request_id=%s): %s",
                response.endpoint,
                request.command,
                request.request_id,
                response.status_line,
            )
            return response

    async def _call_endpoint(self, endpoint: HostEndpoint, request: RpcRequest) -> RpcResponse:
        """
        Run one connect/send/receive round trip.

        Raises:
            EndpointUnavailableError: On connect or read failure (endpoint is blacklisted)
            MalformedReplyError: If the reply cannot be parsed
        """
        payload = encode_request(request, self.config.command_timeout)
        started = time.perf_counter()
        outcome = "unavailable"
        logger.debug(
            "Sending %s to %s (request_id=%s)", request.command, endpoint, request.request_id
        )

        try:
            try:
                reader, writer = await asyncio.wait_for(
                    asyncio.open_connection(endpoint.address, endpoint.port),
                    timeout=self.config.connection_timeout,
                )
            except TimeoutError as e:
                raise self._unavailable(endpoint, "connection timed out") from e
            except OSError as e:
                raise self._unavailable(endpoint, f"connection failed: {e}") from e

            try:
                head, body = await asyncio.wait_for(
                    self._exchange(reader, writer, payload),
                    timeout=self.config.read_timeout,
                )
            except MalformedReplyError:
                outcome = "malformed"
                raise
            except TimeoutError as e:
                raise self._unavailable(endpoint, "read timed out") from e
            except asyncio.IncompleteReadError as e:
                raise self._unavailable(endpoint, "connection closed before reply completed") from e
            except OSError as e:
                raise self._unavailable(endpoint, f"read failed: {e}") from e
            finally:
                writer.close()
                with contextlib.suppress(OSError):
                    await writer.wait_closed()

            try:
                response = decode_reply(head, body, endpoint)
            except MalformedReplyError:
                outcome = "malformed"
                raise
            outcome = "reply"
            return response

        finally:
            rpc_duration_histogram.labels(endpoint=str(endpoint), outcome=outcome).observe(
                time.perf_counter() - started
            )

    @staticmethod
    async def _exchange(
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        payload: bytes,
    ) -> tuple[bytes, bytes]:
        writer.write(payload)
        await writer.drain()
        return await read_reply(reader)

    def _unavailable(self, endpoint: HostEndpoint, reason: str) -> EndpointUnavailableError:
        self.blacklist.add(endpoint)
        blacklist_counter.labels(endpoint=str(endpoint)).inc()
        logger.warning("Endpoint %s unavailable: %s", endpoint, reason)
        return EndpointUnavailableError(endpoint, reason)

    def _transport_failure(
        self,
        request: RpcRequest,
        reason: FailureReason,
        attempted: list[HostEndpoint],
        span: trace.Span,
    ) -> TransportFailure:
        transport_failure_counter.labels(reason=reason.value).inc()
        span.set_attribute("bedrock.outcome", reason.value)
        logger.error(
            "No backend reply for %s (request_id=%s): %s after trying %s",
            request.command,
            request.request_id,
            reason.value,
            ",".join(str(e) for e in attempted) or "no endpoints",
        )
        return TransportFailure(reason=reason, attempted=tuple(attempted))
