"""
Provider adapters.

Every naming backend talks to its remote endpoint through one contract:

    await provider.request(RequestArguments(method, params)) -> raw result

The adapters in this module turn the transport shapes found in the wild
into that contract. Each adapter checks for the method it needs when it is
constructed, so a wrong transport fails at configuration time rather than
on the first lookup.

Supported shapes:
- request(args)                  passed through unchanged
- send_async(payload, callback)  legacy web3 0.x style
- send(payload, callback)        legacy web3 1.x style
- call(tx)                       ethers provider, first positional param only
- send(method, params)           ethers JSON-RPC provider
"""

import asyncio
import inspect
from typing import Any, Optional, Protocol, runtime_checkable

import httpx

from .audit_logger import AuditLogger
from .enums import (
    ConfigurationErrorCode,
    NamingServiceName,
    ProviderErrorCode,
    ResolutionErrorCode,
)
from .exceptions import (
    ConfigurationError,
    ProviderError,
    ResolutionError,
    ResolutionLibError,
)
from .models import ProviderParams, RequestArguments


@runtime_checkable
class Provider(Protocol):
    """Anything that can answer a JSON-RPC shaped request."""

    async def request(self, args: RequestArguments) -> Any:
        ...


def normalize_params(params: ProviderParams) -> list:
    """Legacy JSON-RPC requires positional params."""
    if params is None:
        return []
    if isinstance(params, (list, tuple)):
        return list(params)
    return [params]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def transport_error(method: str, error: BaseException) -> ProviderError:
    return ProviderError(
        ProviderErrorCode.TRANSPORT_ERROR,
        f"Transport failed: {error}",
        {"method": method, "error": str(error)},
    )


class ProviderAdapter:
    """Base class for adapters wrapping a caller-supplied transport."""

    REQUIRED_METHOD = "request"

    def __init__(self, transport: Any) -> None:
        """
        Wrap a transport object.

        Args:
            transport: Object exposing REQUIRED_METHOD

        Raises:
            ConfigurationError: IncorrectProvider if the method is missing
        """
        if not callable(getattr(transport, self.REQUIRED_METHOD, None)):
            raise ConfigurationError(
                ConfigurationErrorCode.INCORRECT_PROVIDER,
                {
                    "expected": self.REQUIRED_METHOD,
                    "provider": type(transport).__name__,
                },
            )
        self._transport = transport

    @property
    def transport(self) -> Any:
        return self._transport

    async def request(self, args: RequestArguments) -> Any:
        """
        Forward a request to the transport.

        Raises:
            ProviderError: TRANSPORT_ERROR for any failure raised by the
                transport itself; library errors pass through unchanged
        """
        try:
            return await self._request(args)
        except ResolutionLibError:
            raise
        except Exception as e:
            raise transport_error(args.method, e) from e

    async def _request(self, args: RequestArguments) -> Any:
        raise NotImplementedError


class RequestProviderAdapter(ProviderAdapter):
    """Capability-request style provider, passed through unchanged."""

    REQUIRED_METHOD = "request"

    async def _request(self, args: RequestArguments) -> Any:
        return await _maybe_await(self._transport.request(args))


class _CallbackProviderAdapter(ProviderAdapter):
    """Bridges payload/callback transports onto an awaitable."""

    def _send(self, payload: dict, callback) -> Any:
        raise NotImplementedError

    async def _request(self, args: RequestArguments) -> Any:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def settle(error: Optional[BaseException], response: Any) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(transport_error(args.method, error))
                return
            if response is None:
                response = {}
            if not isinstance(response, dict):
                future.set_exception(
                    ProviderError(
                        ProviderErrorCode.TRANSPORT_ERROR,
                        f"Malformed JSON-RPC response: {response!r}",
                        {"method": args.method, "response": repr(response)},
                    )
                )
                return
            if response.get("error"):
                future.set_exception(
                    ProviderError(
                        ProviderErrorCode.RPC_ERROR,
                        f"JSON-RPC error: {response['error']}",
                        {"method": args.method, "error": response["error"]},
                    )
                )
                return
            future.set_result(response.get("result"))

        def callback(error: Optional[BaseException], response: Any = None) -> None:
            # Callbacks may fire from transport threads
            loop.call_soon_threadsafe(settle, error, response)

        payload = {
            "jsonrpc": "2.0",
            "method": args.method,
            "params": normalize_params(args.params),
            "id": 1,
        }
        await _maybe_await(self._send(payload, callback))
        return await future


class Web3Version0ProviderAdapter(_CallbackProviderAdapter):
    """web3 0.x provider implementing send_async(payload, callback)."""

    REQUIRED_METHOD = "send_async"

    def _send(self, payload: dict, callback) -> Any:
        return self._transport.send_async(payload, callback)


class Web3Version1ProviderAdapter(_CallbackProviderAdapter):
    """web3 1.x provider implementing send(payload, callback)."""

    REQUIRED_METHOD = "send"

    def _send(self, payload: dict, callback) -> Any:
        return self._transport.send(payload, callback)


class EthersProviderAdapter(ProviderAdapter):
    """ethers provider implementing call(tx); only eth_call is meaningful."""

    REQUIRED_METHOD = "call"

    async def _request(self, args: RequestArguments) -> Any:
        params = normalize_params(args.params)
        tx = params[0] if params else None
        return await _maybe_await(self._transport.call(tx))


class JsonRpcSendProviderAdapter(ProviderAdapter):
    """ethers JSON-RPC provider implementing send(method, params)."""

    REQUIRED_METHOD = "send"

    async def _request(self, args: RequestArguments) -> Any:
        return await _maybe_await(
            self._transport.send(args.method, normalize_params(args.params))
        )


class HttpProvider:
    """
    JSON-RPC 2.0 over HTTP POST.

    Transport failures surface as NamingServiceDown attributed to the
    naming service this provider was built for. A caller-supplied
    httpx.AsyncClient is used as-is and never closed here.
    """

    def __init__(
        self,
        name: NamingServiceName,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self.name = name
        self.url = url
        self._client = client
        self._timeout = timeout
        self._logger = logger

    async def request(self, args: RequestArguments) -> Any:
        body = {
            "jsonrpc": "2.0",
            "id": "1",
            "method": args.method,
            "params": args.params if args.params is not None else [],
        }
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=body)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
                    response = await client.post(self.url, json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.TransportError, httpx.HTTPStatusError, ValueError) as e:
            if self._logger:
                self._logger.log_error(
                    "HttpProvider",
                    f"{self.name.value} endpoint unreachable",
                    error=e,
                    request_url=self.url,
                )
            raise ResolutionError(
                ResolutionErrorCode.NAMING_SERVICE_DOWN,
                {"method": self.name.value, "url": self.url},
            ) from e

        if isinstance(payload, dict) and payload.get("error"):
            raise ProviderError(
                ProviderErrorCode.RPC_ERROR,
                f"JSON-RPC error: {payload['error']}",
                {"method": args.method, "error": payload["error"]},
            )
        return payload.get("result") if isinstance(payload, dict) else None
