"""
Minimal smart-contract caller.

Encodes a call with a keccak-derived selector and eth-abi, sends it as an
eth_call through a provider and decodes the return data.
"""

from dataclasses import dataclass
from typing import Any

from eth_abi import decode, encode
from eth_hash.auto import keccak

from .enums import ResolutionErrorCode
from .exceptions import ResolutionError
from .models import RequestArguments
from .providers import Provider


@dataclass(frozen=True)
class ContractMethod:
    """Signature of one contract function."""

    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return keccak(self.signature.encode("ascii"))[:4]


class Contract:
    """A deployed contract reachable through a provider."""

    def __init__(
        self,
        provider: Provider,
        address: str,
        methods: dict[str, ContractMethod],
    ) -> None:
        self.provider = provider
        self.address = address
        self._methods = methods

    def encode_call(self, method: str, args: list) -> str:
        method_abi = self._methods[method]
        data = method_abi.selector + encode(list(method_abi.inputs), list(args))
        return "0x" + data.hex()

    async def call(self, method: str, args: list) -> Any:
        """
        Call a read-only contract method.

        Returns:
            The decoded value; a tuple when the method has several outputs

        Raises:
            ResolutionError: RecordNotFound when the call returns no data
        """
        method_abi = self._methods[method]
        tx = {"to": self.address, "data": self.encode_call(method, args)}
        raw = await self.provider.request(
            RequestArguments(method="eth_call", params=[tx, "latest"])
        )
        if not raw or raw == "0x":
            raise ResolutionError(
                ResolutionErrorCode.RECORD_NOT_FOUND,
                {"record": method_abi.name, "domain": self.address},
                message=f"Contract {self.address} returned no data for {method_abi.signature}",
            )
        data = bytes.fromhex(raw[2:] if raw.startswith("0x") else raw)
        decoded = decode(list(method_abi.outputs), data)
        return decoded[0] if len(decoded) == 1 else decoded
