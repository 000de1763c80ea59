"""
Remote resolution API backend.

Used instead of the blockchain backends when direct chain access is
disabled. The API answers GET <url>/<domain> with the domain's addresses,
meta information and records.
"""

import re
from typing import Any, Optional

import httpx

from . import __version__
from . import hashing
from .audit_logger import AuditLogger
from .config import DEFAULT_API_URL
from .enums import NamingServiceName, ResolutionErrorCode
from .exceptions import ResolutionError
from .models import CryptoRecords, NodeHash, ResolutionMeta, ResolutionResponse
from .naming_service import NamingService

USER_AGENT = f"chain-resolution/{__version__}"

_DOMAIN_PATTERN = re.compile(r"^[^-]*\.(zil|crypto|eth|luxe|xyz|kred)$")


class UnstoppableApi(NamingService):
    """Remote HTTP API backend."""

    name = NamingServiceName.UDAPI

    def __init__(
        self,
        url: str = DEFAULT_API_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._client = client
        self._timeout = timeout
        self._logger = logger

    def is_supported_domain(self, domain: str) -> bool:
        return bool(_DOMAIN_PATTERN.match(domain)) and all(domain.split("."))

    def is_supported_network(self) -> bool:
        return True

    def namehash(self, domain: str) -> NodeHash:
        self.ensure_supported_domain(domain)
        if domain.endswith(".zil"):
            return hashing.namehash(domain, digest=hashing.sha256)
        return hashing.namehash(domain)

    def childhash(self, parent: NodeHash, label: str) -> NodeHash:
        # a parent node hash does not say whether it is keccak or sha256 based
        raise self._unsupported(label, "childhash")

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        data = await self._fetch(domain)
        meta = data.get("meta") or {}
        addresses = data.get("addresses") or {}
        records = data.get("records") or {}
        return ResolutionResponse(
            addresses={str(k).upper(): str(v) for k, v in addresses.items() if v},
            meta=ResolutionMeta(
                owner=meta.get("owner") or None,
                type=meta.get("type") or "",
                ttl=int(meta.get("ttl") or 0),
                namehash=meta.get("namehash"),
            ),
            records={str(k): str(v) for k, v in records.items()},
        )

    async def address(self, domain: str, currency_ticker: str) -> str:
        response = await self.resolve(domain)
        address = response.addresses.get(currency_ticker.upper())
        if not address:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                {"domain": domain, "currency_ticker": currency_ticker},
            )
        return address

    async def owner(self, domain: str) -> Optional[str]:
        response = await self.resolve(domain)
        return response.meta.owner

    async def record(self, domain: str, key: str) -> str:
        response = await self.resolve(domain)
        return self.ensure_record_presence(domain, key, response.records.get(key))

    async def records(self, domain: str, keys: list[str]) -> CryptoRecords:
        response = await self.resolve(domain)
        return {key: response.records.get(key, "") for key in keys}

    async def _fetch(self, domain: str) -> dict[str, Any]:
        url = f"{self.url}/{domain}"
        headers = {"X-user-agent": USER_AGENT}
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
                    response = await client.get(url, headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.TransportError, httpx.HTTPStatusError, ValueError) as e:
            if self._logger:
                self._logger.log_error(
                    "UnstoppableApi",
                    "Resolution API unreachable",
                    error=e,
                    request_url=url,
                )
            raise self._service_down() from e
        return data if isinstance(data, dict) else {}
