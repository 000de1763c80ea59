"""
Tests for the ENS and CNS naming backends.

The backends run against an in-memory chain that answers eth_call by
decoding the selector and arguments with eth-abi, so every contract call
goes through the same encoding as it would on a real node.
"""

import asyncio

import pytest
from eth_abi import decode, encode
from eth_utils import to_checksum_address
from hypothesis import given, settings
from hypothesis import strategies as st

from chain_resolution import cns as cns_module
from chain_resolution import ens as ens_module
from chain_resolution.cns import Cns
from chain_resolution.config import SourceConfig
from chain_resolution.contract import Contract, ContractMethod
from chain_resolution.enums import (
    ConfigurationErrorCode,
    DnsRecordType,
    NamingServiceName,
    ProviderErrorCode,
    ResolutionErrorCode,
)
from chain_resolution.exceptions import ConfigurationError, ProviderError, ResolutionError
from chain_resolution.models import DnsRecord, RequestArguments
from chain_resolution.hashing import namehash
from chain_resolution.naming_service import NULL_ADDRESS
from chain_resolution.resolution import Resolution


OWNER = "0x8aad44321a86b170879d7a244c1e8d360c99dda8"
RESOLVER = "0x226159d592e2b063810a10ebf6dcbada94ed68b8"
ETH_ADDRESS = "0xb0e7a465d255aa9e3c6f2d2b0b0c2b8b8a3b1c2d"
ETC_ADDRESS = "0x1111111111111111111111111111111111111111"

# scriptPubKey of the genesis coinbase output, 1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa
BTC_SCRIPT = bytes.fromhex("76a91462e907b15cbf27d5425399ebf6f0fb50ebb88f1888ac")
BTC_ADDRESS = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
IPFS_CONTENT_HASH = bytes.fromhex(
    "e3010170122029f2d17be6139079dc48696d1f582a8530eb9805b561eda517e22a892c7e3f1f"
)
IPFS_HASH = "QmRAQB6YaCyidP37UdDnjFY5vQuiBrcqdyoW1CuDgwxkD4"


class FakeChain:
    """In-memory eth_call responder keyed by contract address and selector."""

    def __init__(self) -> None:
        self._handlers = {}
        self.calls = []

    def on(self, address: str, method: ContractMethod, handler) -> None:
        self._handlers[(address.lower(), method.selector.hex())] = (method, handler)

    async def request(self, args):
        assert args.method == "eth_call"
        tx, block = args.params
        assert block == "latest"
        data = tx["data"][2:]
        key = (tx["to"].lower(), data[:8])
        self.calls.append(key)
        if key not in self._handlers:
            return "0x"
        method, handler = self._handlers[key]
        inputs = decode(list(method.inputs), bytes.fromhex(data[8:]))
        value = handler(*inputs)
        if value is None:
            return "0x"
        return "0x" + encode(list(method.outputs), [value]).hex()


class DownChain:
    """Transport whose every request fails."""

    async def request(self, args):
        raise ProviderError(ProviderErrorCode.TRANSPORT_ERROR, "connection reset")


def node_bytes(domain: str) -> bytes:
    return bytes.fromhex(namehash(domain)[2:])


def run(coro):
    return asyncio.run(coro)


# ENS fixtures

def build_ens_chain() -> FakeChain:
    """ENS registry: brad.eth fully configured, blank.eth with an empty resolver, nores.eth without one."""
    registry = ens_module.Ens.REGISTRY_ADDRESSES["mainnet"]
    owners = {
        node_bytes("brad.eth"): OWNER,
        node_bytes("nores.eth"): OWNER,
        node_bytes("blank.eth"): OWNER,
    }
    resolvers = {node_bytes("brad.eth"): RESOLVER, node_bytes("blank.eth"): RESOLVER}
    reverse_node = node_bytes(f"{ETH_ADDRESS[2:]}.addr.reverse")
    resolvers[reverse_node] = RESOLVER

    chain = FakeChain()
    methods = ens_module.REGISTRY_METHODS
    chain.on(registry, methods["owner"], lambda node: owners.get(node, NULL_ADDRESS))
    chain.on(registry, methods["resolver"], lambda node: resolvers.get(node, NULL_ADDRESS))
    chain.on(registry, methods["ttl"], lambda node: 300 if node in owners else 0)

    texts = {"email": "brad@example.com", "url": "https://brad.example"}
    methods = ens_module.RESOLVER_METHODS
    chain.on(
        RESOLVER,
        methods["addr"],
        lambda node: ETH_ADDRESS if node == node_bytes("brad.eth") else NULL_ADDRESS,
    )
    coins = {61: bytes.fromhex(ETC_ADDRESS[2:]), 0: BTC_SCRIPT, 2: b"\x00\x01"}
    chain.on(RESOLVER, methods["addr_coin"], lambda node, coin: coins.get(coin, b""))
    chain.on(
        RESOLVER,
        methods["contenthash"],
        lambda node: IPFS_CONTENT_HASH if node == node_bytes("brad.eth") else b"",
    )
    chain.on(RESOLVER, methods["text"], lambda node, key: texts.get(key, ""))
    chain.on(
        RESOLVER,
        methods["name"],
        lambda node: "brad.eth" if node == reverse_node else "",
    )
    return chain


class TestContract:

    def test_known_selectors(self) -> None:
        assert ens_module.REGISTRY_METHODS["owner"].selector.hex() == "02571be3"
        assert ens_module.REGISTRY_METHODS["resolver"].selector.hex() == "0178b8bf"
        assert ens_module.RESOLVER_METHODS["addr"].selector.hex() == "3b3b57de"
        assert ens_module.RESOLVER_METHODS["text"].selector.hex() == "59d1d43c"
        assert cns_module.REGISTRY_METHODS["ownerOf"].selector.hex() == "6352211e"

    def test_encode_call(self) -> None:
        contract = Contract(FakeChain(), RESOLVER, ens_module.RESOLVER_METHODS)
        data = contract.encode_call("addr", [node_bytes("brad.eth")])
        assert data == "0x3b3b57de" + namehash("brad.eth")[2:]

    def test_empty_result_is_record_not_found(self) -> None:
        contract = Contract(FakeChain(), RESOLVER, ens_module.RESOLVER_METHODS)
        with pytest.raises(ResolutionError) as exc_info:
            run(contract.call("addr", [node_bytes("brad.eth")]))
        assert exc_info.value.error_code is ResolutionErrorCode.RECORD_NOT_FOUND


class TestEnsDomains:
    """
    **Feature: chain-resolution, Property 7: Backends claim domains by syntax alone**
    """

    @given(label=st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=1, max_size=20),
           tld=st.sampled_from(["eth", "luxe", "xyz", "kred"]))
    @settings(max_examples=100)
    def test_supported_suffixes(self, label: str, tld: str) -> None:
        ens = ens_module.Ens(provider=FakeChain())
        assert ens.is_supported_domain(f"{label}.{tld}")

    @pytest.mark.parametrize("domain", ["brad.crypto", "brad.zil", ".eth", "bra-d.eth", "brad..eth", ""])
    def test_unsupported(self, domain: str) -> None:
        assert not ens_module.Ens(provider=FakeChain()).is_supported_domain(domain)

    def test_bare_tld(self) -> None:
        assert ens_module.Ens(provider=FakeChain()).is_supported_domain("eth")


class TestEnsConfiguration:

    def test_defaults_to_mainnet_infura(self) -> None:
        ens = ens_module.Ens(provider=FakeChain())
        assert ens.network == "mainnet"
        assert ens.url == "https://mainnet.infura.io"
        assert ens.is_supported_network()

    def test_network_inferred_from_infura_url(self) -> None:
        ens = ens_module.Ens("https://goerli.infura.io/v3/abcdef0123456789")
        assert ens.network == "goerli"
        assert ens.is_supported_network()

    def test_network_id(self) -> None:
        assert ens_module.Ens(SourceConfig(network=3)).network == "ropsten"
        assert ens_module.Ens(SourceConfig(network="4")).network == "rinkeby"

    def test_unknown_network_id(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ens_module.Ens(SourceConfig(network=99))
        assert exc_info.value.error_code is ConfigurationErrorCode.UNSUPPORTED_NETWORK

    def test_custom_url_without_network(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ens_module.Ens(SourceConfig(url="https://rpc.example.org"))
        assert exc_info.value.error_code is ConfigurationErrorCode.UNSPECIFIED_NETWORK

    def test_custom_network_without_url(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ens_module.Ens(SourceConfig(network="private"))
        assert exc_info.value.error_code is ConfigurationErrorCode.UNSPECIFIED_URL

    def test_network_without_registry(self) -> None:
        ens = ens_module.Ens(SourceConfig(network="kovan"), provider=FakeChain())
        assert ens.registry_address is None
        assert not ens.is_supported_network()

    def test_explicit_registry(self) -> None:
        ens = ens_module.Ens(
            SourceConfig(network="kovan", registry=RESOLVER), provider=FakeChain()
        )
        assert ens.is_supported_network()


class TestEnsResolution:

    def setup_method(self) -> None:
        self.chain = build_ens_chain()
        self.ens = ens_module.Ens(provider=self.chain)

    def test_resolve(self) -> None:
        response = run(self.ens.resolve("brad.eth"))

        assert response.addresses["ETH"].lower() == ETH_ADDRESS
        assert response.meta.owner.lower() == OWNER
        assert response.meta.type == "ENS"
        assert response.meta.ttl == 300
        assert response.meta.namehash == namehash("brad.eth")

    def test_eth_address(self) -> None:
        assert run(self.ens.address("brad.eth", "eth")).lower() == ETH_ADDRESS

    def test_evm_coin_address(self) -> None:
        assert run(self.ens.address("brad.eth", "ETC")) == to_checksum_address(ETC_ADDRESS)

    def test_coin_without_address(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.ens.address("brad.eth", "RSK"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSPECIFIED_CURRENCY

    def test_bitcoin_address(self) -> None:
        assert run(self.ens.address("brad.eth", "btc")) == BTC_ADDRESS

    def test_undecodable_coin_address(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.ens.address("brad.eth", "LTC"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSPECIFIED_CURRENCY

    def test_unsupported_currency(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.ens.address("brad.eth", "XRP"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSUPPORTED_CURRENCY

    def test_unregistered_domain(self) -> None:
        assert run(self.ens.owner("nobody.eth")) is None
        with pytest.raises(ResolutionError) as exc_info:
            run(self.ens.resolver("nobody.eth"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNREGISTERED_DOMAIN

    def test_owned_domain_without_resolver(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.ens.address("nores.eth", "ETH"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSPECIFIED_RESOLVER

    def test_text_records(self) -> None:
        assert run(self.ens.email("brad.eth")) == "brad@example.com"
        assert run(self.ens.http_url("brad.eth")) == "https://brad.example"

    def test_ipfs_hash_from_contenthash(self) -> None:
        assert run(self.ens.ipfs_hash("brad.eth")) == IPFS_HASH

    def test_missing_contenthash(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.ens.ipfs_hash("blank.eth"))
        assert exc_info.value.error_code is ResolutionErrorCode.RECORD_NOT_FOUND

    def test_unsupported_methods(self) -> None:
        for method in (self.ens.chat_id, self.ens.chat_pk):
            with pytest.raises(ResolutionError) as exc_info:
                run(method("brad.eth"))
            assert exc_info.value.error_code is ResolutionErrorCode.UNSUPPORTED_METHOD

    def test_reverse(self) -> None:
        assert run(self.ens.reverse(ETH_ADDRESS, "ETH")) == "brad.eth"
        assert run(self.ens.reverse(OWNER, "ETH")) is None

    def test_reverse_other_currency(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.ens.reverse(ETH_ADDRESS, "BTC"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSUPPORTED_CURRENCY

    def test_transport_failure_is_service_down(self) -> None:
        ens = ens_module.Ens(provider=DownChain())
        with pytest.raises(ResolutionError) as exc_info:
            run(ens.address("brad.eth", "ETH"))

        error = exc_info.value
        assert error.error_code is ResolutionErrorCode.NAMING_SERVICE_DOWN
        assert error.details["method"] == "ENS"
        assert isinstance(error.__cause__, ProviderError)


# CNS fixtures

CNS_RECORDS = {
    "crypto.BTC.address": "bc1q359khn0phg58xgezyqsuuaha28zkwx047c0c3y",
    "crypto.ETH.address": ETH_ADDRESS,
    "ipfs.html.value": "QmVaAtQbi3EtsfpKoLzALm6vXphdi2KjMgxEDKeGg6wHuK",
    "dns.ttl": "128",
    "dns.A": '["10.0.0.1","10.0.0.2"]',
    "dns.A.ttl": "90",
    "dns.AAAA": '["10.0.0.120"]',
}


def build_cns_chain() -> FakeChain:
    """CNS registry with brad.crypto configured and nores.crypto without resolver."""
    registry = Cns.REGISTRY_ADDRESSES["mainnet"]
    brad = int(namehash("brad.crypto"), 16)
    nores = int(namehash("nores.crypto"), 16)
    owners = {brad: OWNER, nores: OWNER}
    resolvers = {brad: RESOLVER, nores: NULL_ADDRESS}

    chain = FakeChain()
    methods = cns_module.REGISTRY_METHODS
    # ownerOf reverts for tokens that were never minted
    chain.on(registry, methods["ownerOf"], lambda token: owners.get(token))
    chain.on(registry, methods["resolverOf"], lambda token: resolvers.get(token))

    methods = cns_module.RESOLVER_METHODS
    chain.on(RESOLVER, methods["get"], lambda key, token: CNS_RECORDS.get(key, ""))
    chain.on(
        RESOLVER,
        methods["getMany"],
        lambda keys, token: [CNS_RECORDS.get(key, "") for key in keys],
    )
    return chain


class TestCnsResolution:

    def setup_method(self) -> None:
        self.chain = build_cns_chain()
        self.cns = Cns(provider=self.chain)

    def test_supported_domains(self) -> None:
        assert self.cns.is_supported_domain("brad.crypto")
        assert self.cns.is_supported_domain("crypto")
        assert not self.cns.is_supported_domain("brad.eth")
        assert not self.cns.is_supported_domain("br-ad.crypto")

    def test_token_id_is_namehash(self) -> None:
        assert self.cns.token_id("brad.crypto") == int(namehash("brad.crypto"), 16)

    def test_resolve(self) -> None:
        response = run(self.cns.resolve("brad.crypto"))

        assert response.addresses == {
            "BTC": CNS_RECORDS["crypto.BTC.address"],
            "ETH": ETH_ADDRESS,
        }
        assert response.meta.owner.lower() == OWNER
        assert response.meta.type == "CNS"

    def test_resolve_unregistered(self) -> None:
        assert run(self.cns.resolve("nobody.crypto")) is None

    def test_address(self) -> None:
        assert run(self.cns.address("brad.crypto", "btc")) == CNS_RECORDS["crypto.BTC.address"]

    def test_missing_currency(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.cns.address("brad.crypto", "LTC"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSPECIFIED_CURRENCY

    def test_record(self) -> None:
        assert run(self.cns.ipfs_hash("brad.crypto")) == CNS_RECORDS["ipfs.html.value"]

    def test_missing_record(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.cns.email("brad.crypto"))

        error = exc_info.value
        assert error.error_code is ResolutionErrorCode.RECORD_NOT_FOUND
        assert error.details["record"] == "whois.email.value"

    def test_records_fill_missing_with_empty(self) -> None:
        records = run(self.cns.records("brad.crypto", ["crypto.BTC.address", "crypto.XRP.address"]))
        assert records == {
            "crypto.BTC.address": CNS_RECORDS["crypto.BTC.address"],
            "crypto.XRP.address": "",
        }

    def test_owned_domain_without_resolver(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.cns.record("nores.crypto", "ipfs.html.value"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSPECIFIED_RESOLVER

    def test_unregistered_domain(self) -> None:
        with pytest.raises(ResolutionError) as exc_info:
            run(self.cns.record("nobody.crypto", "ipfs.html.value"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNREGISTERED_DOMAIN

    def test_network_without_registry(self) -> None:
        cns = Cns(SourceConfig(network="ropsten"), provider=self.chain)
        assert not cns.is_supported_network()


class TestResolutionOverProviders:
    """The dispatcher driving the ENS and CNS backends through adapters."""

    def test_from_provider(self) -> None:
        chain = build_cns_chain()
        resolution = Resolution.from_provider(chain)

        address = run(resolution.address("Brad.Crypto", "BTC"))

        assert address == CNS_RECORDS["crypto.BTC.address"]
        assert chain.calls

    def test_from_ethers_json_rpc_provider(self) -> None:
        chain = build_ens_chain()

        class Transport:
            async def send(self, method, params):
                return await chain.request(RequestArguments(method, params))

        resolution = Resolution.from_ethers_json_rpc_provider(Transport())
        assert run(resolution.address("brad.eth", "ETH")).lower() == ETH_ADDRESS

    def test_dns(self) -> None:
        resolution = Resolution(services=[Cns(provider=build_cns_chain())])

        records = run(resolution.dns("brad.crypto", [DnsRecordType.A, DnsRecordType.AAAA]))

        assert records == [
            DnsRecord(type=DnsRecordType.A, TTL=90, data="10.0.0.1"),
            DnsRecord(type=DnsRecordType.A, TTL=90, data="10.0.0.2"),
            DnsRecord(type=DnsRecordType.AAAA, TTL=128, data="10.0.0.120"),
        ]

    def test_unclaimed_resolve(self) -> None:
        resolution = Resolution(services=[Cns(provider=build_cns_chain())])

        response = run(resolution.resolve("nobody.crypto"))

        assert response.addresses == {}
        assert response.meta.owner is None

    def test_nullable_address(self) -> None:
        resolution = Resolution(services=[
            ens_module.Ens(provider=build_ens_chain()),
            Cns(provider=build_cns_chain()),
        ])

        assert run(resolution.address("nobody.eth", "ETH")) is None
        assert run(resolution.address("nores.eth", "ETH")) is None
        assert run(resolution.address("brad.crypto", "LTC")) is None
        assert run(resolution.address("brad.unknown", "ETH")) is None

    def test_nullable_address_propagates_other_failures(self) -> None:
        resolution = Resolution(services=[ens_module.Ens(provider=build_ens_chain())])

        with pytest.raises(ResolutionError) as exc_info:
            run(resolution.address("brad.eth", "XRP"))
        assert exc_info.value.error_code is ResolutionErrorCode.UNSUPPORTED_CURRENCY

        down = Resolution(services=[ens_module.Ens(provider=DownChain())])
        with pytest.raises(ResolutionError) as exc_info:
            run(down.address("brad.eth", "ETH"))
        assert exc_info.value.error_code is ResolutionErrorCode.NAMING_SERVICE_DOWN

    def test_reverse(self) -> None:
        resolution = Resolution(services=[ens_module.Ens(provider=build_ens_chain())])
        assert run(resolution.reverse(ETH_ADDRESS, "ETH")) == "brad.eth"

    def test_service_names(self) -> None:
        resolution = Resolution.from_provider(build_cns_chain())
        assert resolution.service_name("brad.crypto") is NamingServiceName.CNS
        assert resolution.service_name("brad.eth") is NamingServiceName.ENS
        assert resolution.service_name("brad.zil") is NamingServiceName.ZNS


class RefusingTransport:
    """Transport exposing every call shape, all failing like a dead socket."""

    def _fail(self, *args):
        raise ConnectionError("connection refused")

    request = _fail
    call = _fail
    send = _fail


class TestTransportFailureThroughFactories:

    @pytest.mark.parametrize("factory", [
        Resolution.from_provider,
        Resolution.from_ethers_provider,
        Resolution.from_ethers_json_rpc_provider,
    ])
    @pytest.mark.parametrize("domain,method", [("brad.crypto", "CNS"), ("brad.eth", "ENS")])
    def test_raised_errors_become_service_down(self, factory, domain, method) -> None:
        resolution = factory(RefusingTransport())

        for call in (resolution.address_or_throw, resolution.address):
            with pytest.raises(ResolutionError) as exc_info:
                run(call(domain, "ETH"))

            error = exc_info.value
            assert error.error_code is ResolutionErrorCode.NAMING_SERVICE_DOWN
            assert error.details["method"] == method
            assert isinstance(error.__cause__, ProviderError)
