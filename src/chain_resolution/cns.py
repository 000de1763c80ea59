"""
CNS naming backend.

Resolves .crypto domains. The registry is an ERC-721 contract whose token
id is the domain's namehash; each token points at a resolver holding the
domain's flat key/value records.
"""

import asyncio
import re
from typing import Optional

from . import hashing
from .contract import Contract, ContractMethod
from .enums import LabelEncoding, NamingServiceName, ResolutionErrorCode
from .exceptions import ResolutionError
from .models import CryptoRecords, NodeHash, ResolutionMeta, ResolutionResponse
from .naming_service import (
    EthereumNamingService,
    NamingServiceSource,
    currency_record_key,
    is_null_address,
)
from .providers import Provider

REGISTRY_METHODS = {
    "ownerOf": ContractMethod("ownerOf", ("uint256",), ("address",)),
    "resolverOf": ContractMethod("resolverOf", ("uint256",), ("address",)),
}

RESOLVER_METHODS = {
    "get": ContractMethod("get", ("string", "uint256"), ("string",)),
    "getMany": ContractMethod("getMany", ("string[]", "uint256"), ("string[]",)),
}

# Currencies reported by resolve()
RESOLVED_CURRENCIES = ("BTC", "ETH", "ZIL", "LTC", "BCH", "XRP", "DOGE", "ADA", "XLM", "EOS")

_DOMAIN_PATTERN = re.compile(r"^[^-]*\.crypto$")


class Cns(EthereumNamingService):
    """Crypto Name Service backend."""

    name = NamingServiceName.CNS

    REGISTRY_ADDRESSES = {
        "mainnet": "0xD1E5b0FF1287aA9f9A268759062E4Ab08b9Dacbe",
    }

    def __init__(self, source: NamingServiceSource = True, provider: Optional[Provider] = None) -> None:
        super().__init__(source, provider)
        self.registry_contract: Optional[Contract] = None
        if self.registry_address:
            self.registry_contract = self.build_contract(self.registry_address, REGISTRY_METHODS)

    def is_supported_domain(self, domain: str) -> bool:
        return domain == "crypto" or (
            domain.find(".") > 0
            and bool(_DOMAIN_PATTERN.match(domain))
            and all(domain.split("."))
        )

    def namehash(self, domain: str) -> NodeHash:
        self.ensure_supported_domain(domain)
        return hashing.namehash(domain)

    def childhash(self, parent: NodeHash, label: str) -> NodeHash:
        return hashing.childhash(parent, label, encoding=LabelEncoding.TEXT)

    def token_id(self, domain: str) -> int:
        return int(self.namehash(domain), 16)

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        if not self.is_supported_domain(domain) or not self.is_supported_network():
            return None
        owner, resolver = await asyncio.gather(
            self.owner(domain), self._get_resolver(domain)
        )
        if owner is None:
            return None
        addresses: dict[str, str] = {}
        if not is_null_address(resolver):
            keys = [currency_record_key(ticker) for ticker in RESOLVED_CURRENCIES]
            values = await self._get_records(resolver, domain, keys)
            addresses = {
                ticker: values[key]
                for ticker, key in zip(RESOLVED_CURRENCIES, keys)
                if values.get(key)
            }
        return ResolutionResponse(
            addresses=addresses,
            meta=ResolutionMeta(
                owner=owner,
                type=self.name.value,
                ttl=0,
                namehash=self.namehash(domain),
            ),
        )

    async def address(self, domain: str, currency_ticker: str) -> str:
        key = currency_record_key(currency_ticker)
        value = await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND, self.record(domain, key)
        )
        if not value:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                {"domain": domain, "currency_ticker": currency_ticker},
            )
        return value

    async def owner(self, domain: str) -> Optional[str]:
        owner = await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(self._registry(), "ownerOf", [self.token_id(domain)]),
        )
        return None if is_null_address(owner) else owner

    async def resolver(self, domain: str) -> str:
        owner, resolver = await asyncio.gather(
            self.owner(domain), self._get_resolver(domain)
        )
        if is_null_address(resolver):
            if owner is None:
                raise ResolutionError(
                    ResolutionErrorCode.UNREGISTERED_DOMAIN, {"domain": domain}
                )
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_RESOLVER, {"domain": domain}
            )
        return resolver

    async def record(self, domain: str, key: str) -> str:
        resolver = await self.resolver(domain)
        contract = self.build_contract(resolver, RESOLVER_METHODS)
        value = await self.call_method(contract, "get", [key, self.token_id(domain)])
        return self.ensure_record_presence(domain, key, value)

    async def records(self, domain: str, keys: list[str]) -> CryptoRecords:
        """Fetch several records at once; missing ones come back as ''."""
        resolver = await self.resolver(domain)
        return await self._get_records(resolver, domain, keys)

    async def _get_records(self, resolver: str, domain: str, keys: list[str]) -> CryptoRecords:
        if not keys:
            return {}
        contract = self.build_contract(resolver, RESOLVER_METHODS)
        values = await self.call_method(
            contract, "getMany", [list(keys), self.token_id(domain)]
        )
        return dict(zip(keys, values))

    async def _get_resolver(self, domain: str) -> Optional[str]:
        return await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(self._registry(), "resolverOf", [self.token_id(domain)]),
        )

    def _registry(self) -> Contract:
        if self.registry_contract is None:
            raise self._service_down()
        return self.registry_contract
