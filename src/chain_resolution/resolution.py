"""
Resolution dispatcher.

Routes each domain to the naming backend responsible for it and forwards
the request. Backends are fixed at construction time and checked in
priority order (ENS, ZNS, CNS), or the remote API alone when blockchain
access is disabled. The dispatcher keeps no state between calls.

Example:
    resolution = Resolution.infura("<project id>")
    address = await resolution.address("brad.crypto", "BTC")
"""

from typing import Any, Optional, Sequence, Union

import idna

from .audit_logger import AuditLogger
from .cns import Cns
from .config import (
    ApiConfig,
    BlockchainConfig,
    ResolutionConfig,
    SourceConfig,
    signed_infura_link,
)
from .dns_records import DnsUtils, record_keys
from .ens import Ens
from .enums import DnsRecordType, NamingServiceName, ResolutionErrorCode
from .exceptions import ResolutionError
from .models import (
    CryptoRecords,
    DnsRecord,
    NodeHash,
    ResolutionResponse,
    unclaimed_domain_response,
)
from .naming_service import NamingService
from .providers import (
    EthersProviderAdapter,
    HttpProvider,
    JsonRpcSendProviderAdapter,
    ProviderAdapter,
    RequestProviderAdapter,
    Web3Version0ProviderAdapter,
    Web3Version1ProviderAdapter,
)
from .unstoppable_api import UnstoppableApi
from .zns import Zns

# Failures that address() reports as "no address" instead of raising
NULLABLE_ADDRESS_ERRORS = frozenset({
    ResolutionErrorCode.UNSUPPORTED_DOMAIN,
    ResolutionErrorCode.RECORD_NOT_FOUND,
    ResolutionErrorCode.UNSPECIFIED_CURRENCY,
    ResolutionErrorCode.UNREGISTERED_DOMAIN,
    ResolutionErrorCode.UNSPECIFIED_RESOLVER,
})


def prepare_domain(domain: Optional[str]) -> str:
    """
    Normalize a domain: trimmed and lowercase.

    Non-ASCII input is additionally UTS-46 mapped so that visually
    equivalent names hash identically.
    """
    if not domain:
        return ""
    domain = domain.strip().lower()
    if domain.isascii():
        return domain
    try:
        return idna.uts46_remap(domain, std3_rules=False, transitional=False)
    except idna.IDNAError as e:
        raise ResolutionError(
            ResolutionErrorCode.UNSUPPORTED_DOMAIN,
            {"domain": domain, "idna_error": str(e)},
        )


class Resolution:
    """
    Blockchain domain resolution facade.

    Selects the naming backend for a domain by its syntax and delegates
    every lookup to it.
    """

    def __init__(
        self,
        blockchain: Union[bool, BlockchainConfig] = True,
        api: Optional[ApiConfig] = None,
        logger: Optional[AuditLogger] = None,
        services: Optional[Sequence[NamingService]] = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            blockchain: True for default backends, a BlockchainConfig to
                configure them, or False to use the remote API only
            api: Remote API configuration, used when blockchain is False
            logger: Optional logger for routing and outcome messages
            services: Prebuilt backends in priority order; overrides
                blockchain/api when given

        Raises:
            ConfigurationError: If any enabled backend is misconfigured
        """
        self._logger = logger
        self.ens: Optional[Ens] = None
        self.zns: Optional[Zns] = None
        self.cns: Optional[Cns] = None
        self.api: Optional[UnstoppableApi] = None

        if services is not None:
            self.blockchain = any(s.name is not NamingServiceName.UDAPI for s in services)
            self._services: tuple[NamingService, ...] = tuple(services)
            return

        self.blockchain = bool(blockchain)
        if blockchain:
            if blockchain is True:
                blockchain = BlockchainConfig()
            provider = blockchain.provider
            if provider is not None and not isinstance(provider, (ProviderAdapter, HttpProvider)):
                provider = RequestProviderAdapter(provider)
            if blockchain.ens:
                self.ens = Ens(blockchain.ens, provider)
            if blockchain.zns:
                self.zns = Zns(blockchain.zns)
            if blockchain.cns:
                self.cns = Cns(blockchain.cns, provider)
            self._services = tuple(s for s in (self.ens, self.zns, self.cns) if s is not None)
        else:
            api = api or ApiConfig()
            self.api = UnstoppableApi(api.url, logger=logger)
            self._services = (self.api,)

    # Factories

    @classmethod
    def from_config(
        cls, config: ResolutionConfig, logger: Optional[AuditLogger] = None
    ) -> "Resolution":
        """Create a resolution from a loaded configuration."""
        return cls(
            blockchain=config.blockchain if config.blockchain is not None else False,
            api=config.api,
            logger=logger,
        )

    @classmethod
    def infura(cls, project_id: str, network: str = "mainnet") -> "Resolution":
        """Create a resolution with ENS and CNS pointed at infura."""
        url = signed_infura_link(project_id, network)
        return cls(
            blockchain=BlockchainConfig(
                ens=SourceConfig(url=url, network=network),
                cns=SourceConfig(url=url, network=network),
            )
        )

    @classmethod
    def from_provider(cls, provider: Any) -> "Resolution":
        """Create a resolution from a provider implementing request(args)."""
        return cls._with_adapter(RequestProviderAdapter(provider))

    @classmethod
    def from_web3_version0_provider(cls, provider: Any) -> "Resolution":
        """Create a resolution from a provider implementing send_async(payload, callback)."""
        return cls._with_adapter(Web3Version0ProviderAdapter(provider))

    @classmethod
    def from_web3_version1_provider(cls, provider: Any) -> "Resolution":
        """Create a resolution from a provider implementing send(payload, callback)."""
        return cls._with_adapter(Web3Version1ProviderAdapter(provider))

    @classmethod
    def from_ethers_provider(cls, provider: Any) -> "Resolution":
        """Create a resolution from a provider implementing call(tx)."""
        return cls._with_adapter(EthersProviderAdapter(provider))

    @classmethod
    def from_ethers_json_rpc_provider(cls, provider: Any) -> "Resolution":
        """Create a resolution from a provider implementing send(method, params)."""
        return cls._with_adapter(JsonRpcSendProviderAdapter(provider))

    @classmethod
    def _with_adapter(cls, adapter: ProviderAdapter) -> "Resolution":
        return cls(blockchain=BlockchainConfig(provider=adapter))

    @property
    def services(self) -> tuple[NamingService, ...]:
        return self._services

    # Resolution

    async def resolve(self, domain: str) -> ResolutionResponse:
        """
        Resolve a domain to its addresses and meta information.

        Returns:
            The backend's response, or an unclaimed response when the
            backend knows nothing about the domain
        """
        domain = prepare_domain(domain)
        method = self._get_reachable_method_or_throw(domain)
        result = await method.resolve(domain)
        self._log_info("Resolved domain", {"domain": domain, "found": result is not None})
        return result or unclaimed_domain_response()

    async def address(self, domain: str, currency_ticker: str) -> Optional[str]:
        """
        Resolve a currency address, or None if the domain has none.

        Unsupported domains and missing records yield None; configuration
        and transport failures still raise.
        """
        try:
            return await self.address_or_throw(domain, currency_ticker)
        except ResolutionError as e:
            if e.error_code in NULLABLE_ADDRESS_ERRORS:
                return None
            raise

    async def address_or_throw(self, domain: str, currency_ticker: str) -> str:
        """
        Resolve a currency address.

        Raises:
            ResolutionError: UnsupportedDomain, NamingServiceDown,
                UnsupportedCurrency, UnspecifiedCurrency, ...
        """
        domain = prepare_domain(domain)
        method = self._get_reachable_method_or_throw(domain)
        address = await method.address(domain, currency_ticker)
        self._log_info(
            "Resolved address",
            {"domain": domain, "currency": currency_ticker.upper(), "method": method.name.value},
        )
        return address

    async def owner(self, domain: str) -> Optional[str]:
        domain = prepare_domain(domain)
        return (await self._get_reachable_method_or_throw(domain).owner(domain)) or None

    async def resolver(self, domain: str) -> str:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).resolver(domain)

    async def record(self, domain: str, key: str) -> str:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).record(domain, key)

    async def records(self, domain: str, keys: list[str]) -> CryptoRecords:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).records(domain, keys)

    async def dns(self, domain: str, types: Sequence[DnsRecordType]) -> list[DnsRecord]:
        """
        Fetch and decode the DNS records of the given types.

        Raises:
            DnsRecordsError: If the stored records are corrupted
        """
        domain = prepare_domain(domain)
        method = self._get_reachable_method_or_throw(domain)
        flat = await method.records(domain, record_keys(types))
        return DnsUtils().to_list(flat)

    async def ipfs_hash(self, domain: str) -> str:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).ipfs_hash(domain)

    async def http_url(self, domain: str) -> str:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).http_url(domain)

    async def email(self, domain: str) -> str:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).email(domain)

    async def chat_id(self, domain: str) -> str:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).chat_id(domain)

    async def chat_pk(self, domain: str) -> str:
        domain = prepare_domain(domain)
        return await self._get_reachable_method_or_throw(domain).chat_pk(domain)

    async def reverse(self, address: str, currency_ticker: str) -> Optional[str]:
        """Find the ENS name registered for an address."""
        ens = self._require_service(NamingServiceName.ENS)
        return await ens.reverse(address, currency_ticker)

    # Hashing and routing

    def namehash(self, domain: str) -> NodeHash:
        """
        Produce the namehash of a domain for its naming backend.

        Raises:
            ResolutionError: UnsupportedDomain if no backend claims it
        """
        domain = prepare_domain(domain)
        return self._get_naming_method_or_throw(domain).namehash(domain)

    def childhash(self, parent: NodeHash, label: str, method: NamingServiceName) -> NodeHash:
        """Produce a child node hash in the namespace of the given backend."""
        return self._require_service(method).childhash(parent, label)

    def is_valid_hash(self, domain: str, hash_: str) -> bool:
        """Check whether a hash obtained from a chain belongs to a domain."""
        return self.namehash(domain) == hash_.lower()

    def is_supported_domain(self, domain: str) -> bool:
        return self._get_naming_method(prepare_domain(domain)) is not None

    def is_supported_domain_in_network(self, domain: str) -> bool:
        method = self._get_naming_method(prepare_domain(domain))
        return method is not None and method.is_supported_network()

    def service_name(self, domain: str) -> NamingServiceName:
        domain = prepare_domain(domain)
        return self._get_naming_method_or_throw(domain).service_name(domain)

    def _get_naming_method(self, domain: str) -> Optional[NamingService]:
        if not domain:
            return None
        for method in self._services:
            if method.is_supported_domain(domain):
                return method
        return None

    def _get_naming_method_or_throw(self, domain: str) -> NamingService:
        method = self._get_naming_method(domain)
        if method is None:
            self._log_debug("No naming service for domain", {"domain": domain})
            raise ResolutionError(
                ResolutionErrorCode.UNSUPPORTED_DOMAIN, {"domain": domain}
            )
        self._log_debug(
            "Selected naming service", {"domain": domain, "method": method.name.value}
        )
        return method

    def _get_reachable_method_or_throw(self, domain: str) -> NamingService:
        method = self._get_naming_method_or_throw(domain)
        if not method.is_supported_network():
            raise ResolutionError(
                ResolutionErrorCode.NAMING_SERVICE_DOWN,
                {"method": method.name.value, "domain": domain},
            )
        return method

    def _require_service(self, name: NamingServiceName) -> Any:
        for method in self._services:
            if method.name is name:
                return method
        raise ResolutionError(
            ResolutionErrorCode.NAMING_SERVICE_DOWN, {"method": name.value}
        )

    def _log_debug(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.debug("Resolution", message, data)

    def _log_info(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.info("Resolution", message, data)
