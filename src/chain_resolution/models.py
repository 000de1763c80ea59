"""
Data models for the resolution library.

This module defines the structures passed between the dispatcher, the
naming backends and the provider adapters.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .enums import DnsRecordType

# Flat record map as stored on-chain, e.g. {"crypto.BTC.address": "bc1..."}
CryptoRecords = dict[str, str]

# Hex-encoded 32 byte digest, "0x" prefixed
NodeHash = str

ProviderParams = Union[list, tuple, dict, None]


@dataclass
class RequestArguments:
    """A JSON-RPC shaped request sent through a provider."""

    method: str
    params: ProviderParams = None


@dataclass
class ResolutionMeta:
    """Meta information about a resolved domain."""

    owner: Optional[str]
    type: str
    ttl: int
    namehash: Optional[str] = None


@dataclass
class ResolutionResponse:
    """Currency addresses and meta information attached to a domain."""

    addresses: dict[str, str]
    meta: ResolutionMeta
    records: CryptoRecords = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert response to a JSON-serializable dictionary."""
        data: dict[str, Any] = {
            "addresses": dict(self.addresses),
            "meta": {
                "owner": self.meta.owner,
                "type": self.meta.type,
                "ttl": self.meta.ttl,
            },
        }
        if self.meta.namehash:
            data["meta"]["namehash"] = self.meta.namehash
        if self.records:
            data["records"] = dict(self.records)
        return data


def unclaimed_domain_response() -> ResolutionResponse:
    """Return a fresh response describing a domain nobody owns."""
    return ResolutionResponse(
        addresses={},
        meta=ResolutionMeta(owner=None, type="", ttl=0),
    )


@dataclass
class DnsRecord:
    """A single typed DNS resource record."""

    type: DnsRecordType
    TTL: int
    data: str

    def to_dict(self) -> dict:
        return {"type": self.type.value, "TTL": self.TTL, "data": self.data}
