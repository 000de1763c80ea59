"""
ZNS naming backend.

Resolves .zil domains through the Zilliqa registry contract. Contract state
is read with the GetSmartContractSubState JSON-RPC method; the registry maps
a sha256 namehash to [owner, resolver] and the resolver holds the flat
record map.
"""

import re
from typing import Any, Optional

from . import hashing
from .config import SourceConfig
from .enums import (
    ConfigurationErrorCode,
    LabelEncoding,
    NamingServiceName,
    ProviderErrorCode,
    ResolutionErrorCode,
)
from .exceptions import ConfigurationError, ProviderError, ResolutionError
from .models import CryptoRecords, NodeHash, RequestArguments, ResolutionMeta, ResolutionResponse
from .naming_service import (
    NamingService,
    NamingServiceSource,
    currency_record_key,
    is_null_address,
)
from .providers import HttpProvider, Provider

DEFAULT_URL = "https://api.zilliqa.com"
REGISTRY_ADDRESSES = {
    "mainnet": "0x9611c53BE6d1b32058b2747bdeCECed7e1216793",
}
NETWORK_NAMES = {1: "mainnet"}

_ADDRESS_KEY = re.compile(r"^crypto\.([^.]+)\.address$")


def _contract_id(address: str) -> str:
    return address[2:].lower() if address.lower().startswith("0x") else address.lower()


class Zns(NamingService):
    """Zilliqa Name Service backend."""

    name = NamingServiceName.ZNS

    def __init__(self, source: NamingServiceSource = True, provider: Optional[Provider] = None) -> None:
        config = self._normalize_source(source)
        self.network = config.network
        self.url = config.url
        if not self.network:
            raise ConfigurationError(
                ConfigurationErrorCode.UNSPECIFIED_NETWORK, {"method": self.name.value}
            )
        if not self.url and provider is None:
            raise ConfigurationError(
                ConfigurationErrorCode.UNSPECIFIED_URL, {"method": self.name.value}
            )
        self.registry_address = config.registry or REGISTRY_ADDRESSES.get(self.network)
        self.provider = provider or HttpProvider(self.name, self.url)

    def _normalize_source(self, source: NamingServiceSource) -> SourceConfig:
        if source is True or source is None:
            return SourceConfig(url=DEFAULT_URL, network="mainnet")
        if isinstance(source, str):
            return SourceConfig(url=source, network="mainnet")
        network = source.network
        if isinstance(network, str) and network.isdigit():
            network = int(network)
        if isinstance(network, int):
            network = NETWORK_NAMES.get(network)
            if network is None:
                raise ConfigurationError(
                    ConfigurationErrorCode.UNSUPPORTED_NETWORK,
                    {"method": self.name.value, "network": source.network},
                )
        url = source.url
        if not network and not url:
            network = "mainnet"
        if not url and network == "mainnet":
            url = DEFAULT_URL
        if not network and url:
            network = "mainnet" if url.rstrip("/") == DEFAULT_URL else None
        return SourceConfig(url=url, network=network, registry=source.registry)

    def is_supported_domain(self, domain: str) -> bool:
        labels = domain.split(".")
        return labels[-1] == "zil" and all(labels)

    def is_supported_network(self) -> bool:
        return self.registry_address is not None

    def namehash(self, domain: str) -> NodeHash:
        self.ensure_supported_domain(domain)
        return hashing.namehash(domain, digest=hashing.sha256)

    def childhash(self, parent: NodeHash, label: str) -> NodeHash:
        return hashing.childhash(
            parent, label, digest=hashing.sha256, encoding=LabelEncoding.TEXT
        )

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        if not self.is_supported_domain(domain) or not self.is_supported_network():
            return None
        entry = await self._get_record_addresses(domain)
        if entry is None or is_null_address(entry[0]):
            return None
        owner, resolver = entry
        records = {} if is_null_address(resolver) else await self._get_resolver_records(resolver)
        addresses = {}
        for key, value in records.items():
            match = _ADDRESS_KEY.match(key)
            if match and value:
                addresses[match.group(1).upper()] = value
        return ResolutionResponse(
            addresses=addresses,
            meta=ResolutionMeta(
                owner=owner,
                type=self.name.value,
                ttl=self._parse_ttl(records.get("ttl")),
                namehash=self.namehash(domain),
            ),
            records=records,
        )

    async def address(self, domain: str, currency_ticker: str) -> str:
        records = await self._all_records(domain)
        value = records.get(currency_record_key(currency_ticker))
        if not value:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                {"domain": domain, "currency_ticker": currency_ticker},
            )
        return value

    async def owner(self, domain: str) -> Optional[str]:
        entry = await self._get_record_addresses(domain)
        if entry is None or is_null_address(entry[0]):
            return None
        return entry[0]

    async def resolver(self, domain: str) -> str:
        entry = await self._get_record_addresses(domain)
        if entry is None or is_null_address(entry[0]):
            raise ResolutionError(
                ResolutionErrorCode.UNREGISTERED_DOMAIN, {"domain": domain}
            )
        if is_null_address(entry[1]):
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_RESOLVER, {"domain": domain}
            )
        return entry[1]

    async def record(self, domain: str, key: str) -> str:
        records = await self._all_records(domain)
        return self.ensure_record_presence(domain, key, records.get(key))

    async def records(self, domain: str, keys: list[str]) -> CryptoRecords:
        records = await self._all_records(domain)
        return {key: records.get(key, "") for key in keys}

    async def _all_records(self, domain: str) -> CryptoRecords:
        return await self._get_resolver_records(await self.resolver(domain))

    async def _get_record_addresses(self, domain: str) -> Optional[tuple[str, str]]:
        if not self.is_supported_network():
            raise self._service_down()
        node = self.namehash(domain)
        state = await self._get_contract_field(self.registry_address, "records", [node])
        entry = (state or {}).get(node)
        if not entry:
            return None
        arguments = entry.get("arguments") or []
        if len(arguments) != 2:
            return None
        return arguments[0], arguments[1]

    async def _get_resolver_records(self, resolver: str) -> CryptoRecords:
        state = await self._get_contract_field(resolver, "records")
        return dict(state or {})

    async def _get_contract_field(
        self, address: str, field_name: str, keys: Optional[list] = None
    ) -> Any:
        try:
            result = await self.provider.request(
                RequestArguments(
                    method="GetSmartContractSubState",
                    params=[_contract_id(address), field_name, keys or []],
                )
            )
        except ProviderError as e:
            if e.error_code is ProviderErrorCode.TRANSPORT_ERROR:
                raise self._service_down() from e
            raise
        if not isinstance(result, dict):
            return None
        return result.get(field_name)

    @staticmethod
    def _parse_ttl(raw: Optional[str]) -> int:
        try:
            return int(raw) if raw else 0
        except (TypeError, ValueError):
            return 0
