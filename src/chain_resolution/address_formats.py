"""
Coin address formats.

ENS resolvers store non-ETH addresses as raw bytes keyed by SLIP-44 coin
type. EVM chains store the 20 byte account, bitcoin style chains store the
output script. This module maps a ticker to its coin type and turns the
stored bytes back into the address users know.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import base58
import bech32
from eth_utils import to_checksum_address

AddressEncoder = Callable[[bytes], str]

_P2PKH_PREFIX = b"\x76\xa9\x14"
_P2PKH_SUFFIX = b"\x88\xac"
_P2SH_PREFIX = b"\xa9\x14"
_P2SH_SUFFIX = b"\x87"


@dataclass(frozen=True)
class CoinFormat:
    """A SLIP-44 coin and the encoder for its stored address bytes."""

    ticker: str
    coin_type: int
    encode: AddressEncoder


def encode_evm_address(data: bytes) -> str:
    if len(data) != 20:
        raise ValueError(f"EVM address must be 20 bytes, got {len(data)}")
    return to_checksum_address(data)


def bitcoin_encoder(
    p2pkh_version: int,
    p2sh_version: int,
    hrp: Optional[str] = None,
) -> AddressEncoder:
    """
    Build an encoder for a bitcoin style output script.

    Args:
        p2pkh_version: Base58 version byte of pay-to-pubkey-hash addresses
        p2sh_version: Base58 version byte of pay-to-script-hash addresses
        hrp: Bech32 human readable part, None when the chain has no segwit

    Returns:
        Function turning a scriptPubKey into an address
    """

    def encode(script: bytes) -> str:
        if (
            len(script) == 25
            and script.startswith(_P2PKH_PREFIX)
            and script.endswith(_P2PKH_SUFFIX)
        ):
            payload = bytes([p2pkh_version]) + script[3:23]
            return base58.b58encode_check(payload).decode("ascii")
        if (
            len(script) == 23
            and script.startswith(_P2SH_PREFIX)
            and script.endswith(_P2SH_SUFFIX)
        ):
            payload = bytes([p2sh_version]) + script[2:22]
            return base58.b58encode_check(payload).decode("ascii")
        if hrp and len(script) >= 4 and script[1] == len(script) - 2:
            # OP_0 or OP_1..OP_16 followed by a single push of the program
            opcode = script[0]
            if opcode == 0 or 0x51 <= opcode <= 0x60:
                version = 0 if opcode == 0 else opcode - 0x50
                address = bech32.encode(hrp, version, list(script[2:]))
                if address:
                    return address
        raise ValueError(f"Unrecognized output script: {script.hex()}")

    return encode


COIN_FORMATS: dict[str, CoinFormat] = {
    coin.ticker: coin
    for coin in (
        CoinFormat("BTC", 0, bitcoin_encoder(0x00, 0x05, "bc")),
        CoinFormat("LTC", 2, bitcoin_encoder(0x30, 0x32, "ltc")),
        CoinFormat("DOGE", 3, bitcoin_encoder(0x1E, 0x16)),
        CoinFormat("ETH", 60, encode_evm_address),
        CoinFormat("ETC", 61, encode_evm_address),
        CoinFormat("RSK", 137, encode_evm_address),
        CoinFormat("XDAI", 700, encode_evm_address),
    )
}

COIN_FORMATS_BY_TYPE: dict[int, CoinFormat] = {
    coin.coin_type: coin for coin in COIN_FORMATS.values()
}


def coin_format(currency_ticker: str) -> Optional[CoinFormat]:
    return COIN_FORMATS.get(currency_ticker.upper())
