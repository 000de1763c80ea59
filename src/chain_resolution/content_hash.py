"""
Content hash decoding.

An ENS contenthash is a multicodec tagged value: a varint namespace code
followed by the content identifier. Only the ipfs-ns namespace is
meaningful here; its payload is a binary CID whose multihash is rendered
as the familiar base58 "Qm..." form.
"""

from typing import Optional

from multiformats import CID, multibase, multicodec

IPFS_NAMESPACE = "ipfs-ns"


def get_codec(content_hash: bytes) -> Optional[str]:
    """Name of the namespace a content hash is tagged with, or None."""
    if not content_hash:
        return None
    try:
        codec, _ = multicodec.unwrap(content_hash)
    except (KeyError, ValueError):
        return None
    return codec.name


def decode_ipfs_hash(content_hash: bytes) -> Optional[str]:
    """
    Decode an ipfs-ns content hash.

    Returns:
        Base58 encoded multihash of the content, or None when the value is
        empty or tagged with another namespace

    Raises:
        ValueError: When the value is tagged ipfs-ns but the CID is malformed
    """
    if get_codec(content_hash) != IPFS_NAMESPACE:
        return None
    _, payload = multicodec.unwrap(content_hash)
    cid = CID.decode(bytes(payload))
    # strip the multibase prefix character
    return multibase.encode(cid.digest, "base58btc")[1:]
