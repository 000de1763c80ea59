"""
ENS naming backend.

Resolves .eth/.luxe/.xyz/.kred domains through the ENS registry and the
resolver contract each domain points to.
"""

import asyncio
import re
from typing import Optional

from . import hashing
from .address_formats import COIN_FORMATS_BY_TYPE, coin_format
from .content_hash import decode_ipfs_hash
from .contract import Contract, ContractMethod
from .enums import LabelEncoding, NamingServiceName, ResolutionErrorCode
from .exceptions import ResolutionError
from .models import NodeHash, ResolutionMeta, ResolutionResponse
from .naming_service import (
    EthereumNamingService,
    NamingServiceSource,
    is_null_address,
)
from .providers import Provider

ETH_COIN_TYPE = 60

REGISTRY_METHODS = {
    "owner": ContractMethod("owner", ("bytes32",), ("address",)),
    "resolver": ContractMethod("resolver", ("bytes32",), ("address",)),
    "ttl": ContractMethod("ttl", ("bytes32",), ("uint64",)),
}

RESOLVER_METHODS = {
    "addr": ContractMethod("addr", ("bytes32",), ("address",)),
    "addr_coin": ContractMethod("addr", ("bytes32", "uint256"), ("bytes",)),
    "text": ContractMethod("text", ("bytes32", "string"), ("string",)),
    "name": ContractMethod("name", ("bytes32",), ("string",)),
    "contenthash": ContractMethod("contenthash", ("bytes32",), ("bytes",)),
}

_DOMAIN_PATTERN = re.compile(r"^[^-]*\.(eth|luxe|xyz|kred)$")


def _node_bytes(node: NodeHash) -> bytes:
    return bytes.fromhex(node[2:])


class Ens(EthereumNamingService):
    """Ethereum Name Service backend."""

    name = NamingServiceName.ENS

    REGISTRY_ADDRESSES = {
        "mainnet": "0x00000000000C2E074eC69A0bFb2997BA6C7d2e1e",
        "ropsten": "0x00000000000C2E074eC69A0bFb2997BA6C7d2e1e",
        "rinkeby": "0x00000000000C2E074eC69A0bFb2997BA6C7d2e1e",
        "goerli": "0x00000000000C2E074eC69A0bFb2997BA6C7d2e1e",
    }

    def __init__(self, source: NamingServiceSource = True, provider: Optional[Provider] = None) -> None:
        super().__init__(source, provider)
        self.registry_contract: Optional[Contract] = None
        if self.registry_address:
            self.registry_contract = self.build_contract(self.registry_address, REGISTRY_METHODS)

    def is_supported_domain(self, domain: str) -> bool:
        return domain == "eth" or (
            domain.find(".") > 0
            and bool(_DOMAIN_PATTERN.match(domain))
            and all(domain.split("."))
        )

    def namehash(self, domain: str) -> NodeHash:
        self.ensure_supported_domain(domain)
        return hashing.namehash(domain)

    def childhash(self, parent: NodeHash, label: str) -> NodeHash:
        return hashing.childhash(parent, label, encoding=LabelEncoding.TEXT)

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        if not self.is_supported_domain(domain) or not self.is_supported_network():
            return None
        node = self.namehash(domain)
        owner, ttl, resolver = await asyncio.gather(
            self.owner(domain),
            self._get_ttl(node),
            self._get_resolver(node),
        )
        address = await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self._fetch_address(resolver, node, ETH_COIN_TYPE),
        )
        return ResolutionResponse(
            addresses={"ETH": address} if address else {},
            meta=ResolutionMeta(
                owner=owner,
                type=self.name.value,
                ttl=int(ttl or 0),
                namehash=node,
            ),
        )

    async def address(self, domain: str, currency_ticker: str) -> str:
        node = self.namehash(domain)
        coin_type = self.get_coin_type(currency_ticker)
        resolver = await self.resolver(domain)
        address = await self._fetch_address(resolver, node, coin_type)
        if not address:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                {"domain": domain, "currency_ticker": currency_ticker},
            )
        return address

    async def owner(self, domain: str) -> Optional[str]:
        node = self.namehash(domain)
        owner = await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(self._registry(), "owner", [_node_bytes(node)]),
        )
        return None if is_null_address(owner) else owner

    async def resolver(self, domain: str) -> str:
        node = self.namehash(domain)
        owner, resolver = await asyncio.gather(
            self.owner(domain), self._get_resolver(node)
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

    async def email(self, domain: str) -> str:
        return await self._text_record(domain, "email")

    async def http_url(self, domain: str) -> str:
        return await self._text_record(domain, "url")

    async def ipfs_hash(self, domain: str) -> str:
        node = self.namehash(domain)
        contract = self.build_contract(await self.resolver(domain), RESOLVER_METHODS)
        raw = await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(contract, "contenthash", [_node_bytes(node)]),
        )
        try:
            ipfs_hash = decode_ipfs_hash(raw or b"")
        except (KeyError, ValueError):
            ipfs_hash = None
        return self.ensure_record_presence(domain, "IPFS hash", ipfs_hash)

    async def chat_id(self, domain: str) -> str:
        raise self._unsupported(domain, "chat_id")

    async def chat_pk(self, domain: str) -> str:
        raise self._unsupported(domain, "chat_pk")

    async def reverse(self, address: str, currency_ticker: str) -> Optional[str]:
        """
        Find the ENS name an address points back to.

        Args:
            address: Ethereum address, with or without '0x'
            currency_ticker: Only 'ETH' is supported

        Returns:
            The reverse-registered domain name or None
        """
        if currency_ticker.upper() != "ETH":
            raise ResolutionError(
                ResolutionErrorCode.UNSUPPORTED_CURRENCY,
                {"currency_ticker": currency_ticker},
            )
        if address.lower().startswith("0x"):
            address = address[2:]
        node = hashing.namehash(f"{address.lower()}.addr.reverse")
        resolver = await self._get_resolver(node)
        if is_null_address(resolver):
            return None
        contract = self.build_contract(resolver, RESOLVER_METHODS)
        name = await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(contract, "name", [_node_bytes(node)]),
        )
        return name or None

    def _registry(self) -> Contract:
        if self.registry_contract is None:
            raise self._service_down()
        return self.registry_contract

    def get_coin_type(self, currency_ticker: str) -> int:
        coin = coin_format(currency_ticker)
        if coin is None:
            raise ResolutionError(
                ResolutionErrorCode.UNSUPPORTED_CURRENCY,
                {"currency_ticker": currency_ticker},
            )
        return coin.coin_type

    async def _text_record(self, domain: str, key: str) -> str:
        node = self.namehash(domain)
        contract = self.build_contract(await self.resolver(domain), RESOLVER_METHODS)
        value = await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(contract, "text", [_node_bytes(node), key]),
        )
        return self.ensure_record_presence(domain, key, value)

    async def _get_ttl(self, node: NodeHash) -> Optional[int]:
        return await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(self._registry(), "ttl", [_node_bytes(node)]),
        )

    async def _get_resolver(self, node: NodeHash) -> Optional[str]:
        return await self.ignore_resolution_error(
            ResolutionErrorCode.RECORD_NOT_FOUND,
            self.call_method(self._registry(), "resolver", [_node_bytes(node)]),
        )

    async def _fetch_address(
        self, resolver: Optional[str], node: NodeHash, coin_type: int
    ) -> Optional[str]:
        if is_null_address(resolver):
            return None
        contract = self.build_contract(resolver, RESOLVER_METHODS)
        if coin_type == ETH_COIN_TYPE:
            address = await self.call_method(contract, "addr", [_node_bytes(node)])
            return None if is_null_address(address) else address
        raw = await self.call_method(contract, "addr_coin", [_node_bytes(node), coin_type])
        if not raw:
            return None
        try:
            return COIN_FORMATS_BY_TYPE[coin_type].encode(raw)
        except ValueError:
            # bytes that do not form an address of this coin count as unset
            return None
