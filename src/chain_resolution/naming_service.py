"""
Naming service base classes.

A NamingService owns one backend: its suffix pattern, its transport and
its record model. The dispatcher only relies on the capability set defined
here; every method a backend does not implement raises UnsupportedMethod.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Optional, Union

from .config import INFURA_URL_TEMPLATE, NETWORK_ID_MAP, SourceConfig
from .contract import Contract, ContractMethod
from .enums import (
    ConfigurationErrorCode,
    NamingServiceName,
    ProviderErrorCode,
    ResolutionErrorCode,
)
from .exceptions import ConfigurationError, ProviderError, ResolutionError
from .models import CryptoRecords, NodeHash, ResolutionResponse
from .providers import HttpProvider, Provider

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

NamingServiceSource = Union[bool, str, SourceConfig, None]

_INFURA_NETWORK = re.compile(r"^https?://(\w+)\.infura\.io", re.IGNORECASE)

# Standard record keys
IPFS_HASH_KEY = "ipfs.html.value"
REDIRECT_URL_KEY = "ipfs.redirect_domain.value"
EMAIL_KEY = "whois.email.value"
CHAT_ID_KEY = "gundb.username.value"
CHAT_PK_KEY = "gundb.public_key.value"


def currency_record_key(currency_ticker: str) -> str:
    return f"crypto.{currency_ticker.upper()}.address"


def is_null_address(address: Optional[str]) -> bool:
    if not address:
        return True
    return address.lower() in (NULL_ADDRESS, "0x", "0x0")


class NamingService(ABC):
    """Capability set shared by every naming backend."""

    name: NamingServiceName

    @abstractmethod
    def is_supported_domain(self, domain: str) -> bool:
        """Whether the domain belongs to this backend, without network access."""

    @abstractmethod
    def is_supported_network(self) -> bool:
        """Whether the backend is configured well enough to be queried."""

    @abstractmethod
    def namehash(self, domain: str) -> NodeHash:
        ...

    @abstractmethod
    def childhash(self, parent: NodeHash, label: str) -> NodeHash:
        ...

    @abstractmethod
    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        ...

    @abstractmethod
    async def address(self, domain: str, currency_ticker: str) -> str:
        ...

    @abstractmethod
    async def owner(self, domain: str) -> Optional[str]:
        ...

    async def resolver(self, domain: str) -> str:
        raise self._unsupported(domain, "resolver")

    async def record(self, domain: str, key: str) -> str:
        raise self._unsupported(domain, "record")

    async def records(self, domain: str, keys: list[str]) -> CryptoRecords:
        raise self._unsupported(domain, "records")

    async def ipfs_hash(self, domain: str) -> str:
        return await self.record(domain, IPFS_HASH_KEY)

    async def http_url(self, domain: str) -> str:
        return await self.record(domain, REDIRECT_URL_KEY)

    async def email(self, domain: str) -> str:
        return await self.record(domain, EMAIL_KEY)

    async def chat_id(self, domain: str) -> str:
        return await self.record(domain, CHAT_ID_KEY)

    async def chat_pk(self, domain: str) -> str:
        return await self.record(domain, CHAT_PK_KEY)

    def service_name(self, domain: str) -> NamingServiceName:
        self.ensure_supported_domain(domain)
        return self.name

    def ensure_supported_domain(self, domain: str) -> None:
        if not self.is_supported_domain(domain):
            raise ResolutionError(
                ResolutionErrorCode.UNSUPPORTED_DOMAIN, {"domain": domain}
            )

    def ensure_record_presence(self, domain: str, record: str, value: Any) -> Any:
        if value is None or value == "":
            raise ResolutionError(
                ResolutionErrorCode.RECORD_NOT_FOUND,
                {"domain": domain, "record": record},
            )
        return value

    async def ignore_resolution_error(
        self,
        code: ResolutionErrorCode,
        pending: Awaitable[Any],
    ) -> Any:
        """Await pending and turn a ResolutionError with code into None."""
        try:
            return await pending
        except ResolutionError as e:
            if e.error_code is code:
                return None
            raise

    def _unsupported(self, domain: str, method_name: str) -> ResolutionError:
        return ResolutionError(
            ResolutionErrorCode.UNSUPPORTED_METHOD,
            {"domain": domain, "method_name": method_name, "method": self.name.value},
        )

    def _service_down(self) -> ResolutionError:
        return ResolutionError(
            ResolutionErrorCode.NAMING_SERVICE_DOWN, {"method": self.name.value}
        )


class EthereumNamingService(NamingService):
    """Shared plumbing for backends living on an Ethereum network."""

    DEFAULT_NETWORK = "mainnet"
    REGISTRY_ADDRESSES: dict[str, str] = {}

    def __init__(self, source: NamingServiceSource = True, provider: Optional[Provider] = None) -> None:
        config = self.normalize_source(source)
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
        self.registry_address = config.registry or self.REGISTRY_ADDRESSES.get(self.network)
        if provider is None:
            provider = HttpProvider(self.name, self.url)
        self.provider = provider

    def normalize_source(self, source: NamingServiceSource) -> SourceConfig:
        """
        Expand a backend source into a full SourceConfig.

        True means defaults, a string is the url, a SourceConfig may omit
        the network (inferred from an infura url) or the url (derived from
        a known network).
        """
        if source is True or source is None:
            config = SourceConfig()
        elif isinstance(source, str):
            config = SourceConfig(url=source)
        else:
            config = SourceConfig(
                url=source.url,
                network=source.network,
                registry=source.registry,
            )

        network = config.network
        if isinstance(network, str) and network.isdigit():
            network = int(network)
        if isinstance(network, int):
            network = NETWORK_ID_MAP.get(network)
            if network is None:
                raise ConfigurationError(
                    ConfigurationErrorCode.UNSUPPORTED_NETWORK,
                    {"method": self.name.value, "network": config.network},
                )
        if not network and config.url:
            match = _INFURA_NETWORK.match(config.url)
            network = match.group(1).lower() if match else None
        if not network and not config.url:
            network = self.DEFAULT_NETWORK

        url = config.url
        if not url and network in NETWORK_ID_MAP.values():
            url = INFURA_URL_TEMPLATE.format(network=network)

        return SourceConfig(url=url, network=network, registry=config.registry)

    def is_supported_network(self) -> bool:
        return self.registry_address is not None

    def build_contract(self, address: str, methods: dict[str, ContractMethod]) -> Contract:
        return Contract(self.provider, address, methods)

    async def call_method(self, contract: Contract, method: str, args: list) -> Any:
        """Call a contract, attributing transport failures to this backend."""
        try:
            return await contract.call(method, args)
        except ProviderError as e:
            if e.error_code is ProviderErrorCode.TRANSPORT_ERROR:
                raise self._service_down() from e
            raise
