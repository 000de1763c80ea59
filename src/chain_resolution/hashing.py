"""
Hierarchical name hashing.

Implements the recursive namehash algorithm used as the primary lookup key
by the registry contracts. Labels are folded from the top-level label down
to the leftmost one:

    node = H(node || H(label))

starting from 32 zero bytes. ENS and CNS use keccak256 as H, ZNS uses
sha256. A node hash is only meaningful together with the naming service
that produced it.
"""

import hashlib
from typing import Callable

from eth_hash.auto import keccak

from .enums import LabelEncoding

DigestFunction = Callable[[bytes], bytes]

ZERO_HASH = b"\x00" * 32
ZERO_NODE = "0x" + ZERO_HASH.hex()


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _to_bytes(node: str) -> bytes:
    node = node[2:] if node.startswith(("0x", "0X")) else node
    raw = bytes.fromhex(node)
    if len(raw) != 32:
        raise ValueError(f"Node hash must be 32 bytes, got {len(raw)}")
    return raw


def _format(digest: bytes, prefix: bool) -> str:
    return ("0x" if prefix else "") + digest.hex()


def label_hash(label: str, digest: DigestFunction = keccak) -> bytes:
    """Hash a single label."""
    return digest(label.encode("utf-8"))


def _child(parent: bytes, label: bytes, digest: DigestFunction) -> bytes:
    return digest(parent + label)


def namehash(
    domain: str,
    digest: DigestFunction = keccak,
    prefix: bool = True,
) -> str:
    """
    Compute the node hash of a domain.

    Args:
        domain: Normalized domain name (e.g. 'brad.eth')
        digest: Hash function used for labels and nodes
        prefix: Whether to prepend '0x' to the hex output

    Returns:
        Hex encoded 32 byte node hash; the empty domain maps to zeros
    """
    node = ZERO_HASH
    if domain:
        for label in reversed(domain.split(".")):
            node = _child(node, label_hash(label, digest), digest)
    return _format(node, prefix)


def childhash(
    parent: str,
    label: str,
    digest: DigestFunction = keccak,
    encoding: LabelEncoding = LabelEncoding.TEXT,
    prefix: bool = True,
) -> str:
    """
    Compute one step of the namehash recursion.

    Args:
        parent: Node hash of the parent, with or without '0x'
        label: Child label, plain text or an already hashed label
        digest: Hash function used by the naming service
        encoding: TEXT hashes the label first, HASH uses it as raw bytes
        prefix: Whether to prepend '0x' to the hex output

    Returns:
        Node hash of the child
    """
    if encoding is LabelEncoding.HASH:
        label_bytes = _to_bytes(label)
    else:
        label_bytes = label_hash(label, digest)
    return _format(_child(_to_bytes(parent), label_bytes, digest), prefix)
