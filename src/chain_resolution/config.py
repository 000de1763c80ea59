"""
Configuration dataclasses for the resolution library.

This module defines the configuration structures for the naming backends,
the remote API fallback and logging, plus helpers to load them from a JSON
file or from RESOLUTION_* environment variables.
"""

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv

DEFAULT_API_URL = "https://unstoppabledomains.com/api/v1"
INFURA_URL_TEMPLATE = "https://{network}.infura.io"
INFURA_SIGNED_URL_TEMPLATE = "https://{network}.infura.io/v3/{project_id}"

NETWORK_ID_MAP: dict[int, str] = {
    1: "mainnet",
    3: "ropsten",
    4: "rinkeby",
    5: "goerli",
    42: "kovan",
}


def signed_infura_link(project_id: str, network: str = "mainnet") -> str:
    """Build an infura endpoint url for a project id."""
    return INFURA_SIGNED_URL_TEMPLATE.format(network=network, project_id=project_id)


@dataclass
class SourceConfig:
    """Where a naming backend lives."""

    url: Optional[str] = None
    network: Optional[Union[str, int]] = None
    registry: Optional[str] = None


# A backend entry: disabled, defaults, a url, or a full source
BackendSource = Union[bool, str, SourceConfig]


@dataclass
class BlockchainConfig:
    """Naming backends queried directly on their blockchains."""

    ens: BackendSource = True
    zns: BackendSource = True
    cns: BackendSource = True
    provider: Optional[Any] = None


@dataclass
class ApiConfig:
    """Remote resolution API used when blockchain access is disabled."""

    url: str = DEFAULT_API_URL


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class ResolutionConfig:
    """Main configuration combining all sub-configurations."""

    blockchain: Optional[BlockchainConfig] = field(default_factory=BlockchainConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_source(data: Any) -> BackendSource:
    if isinstance(data, (bool, str)):
        return data
    if data is None:
        return True
    if not isinstance(data, dict):
        raise TypeError(f"Invalid backend source: {data!r}")
    if data.get("enabled") is False:
        return False
    return SourceConfig(
        url=data.get("url"),
        network=data.get("network"),
        registry=data.get("registry"),
    )


def _dump_source(source: BackendSource) -> Any:
    if isinstance(source, SourceConfig):
        return {
            "url": source.url,
            "network": source.network,
            "registry": source.registry,
        }
    return source


def config_from_dict(data: dict) -> ResolutionConfig:
    """
    Build a ResolutionConfig from plain data.

    Raises:
        TypeError/KeyError: If the data has the wrong shape
    """
    blockchain_data = data.get("blockchain", True)
    blockchain: Optional[BlockchainConfig]
    if blockchain_data is False:
        blockchain = None
    elif blockchain_data is True or blockchain_data is None:
        blockchain = BlockchainConfig()
    else:
        blockchain = BlockchainConfig(
            ens=_parse_source(blockchain_data.get("ens")),
            zns=_parse_source(blockchain_data.get("zns")),
            cns=_parse_source(blockchain_data.get("cns")),
        )

    api_data = data.get("api", {}) or {}
    logging_data = data.get("logging", {}) or {}

    return ResolutionConfig(
        blockchain=blockchain,
        api=ApiConfig(url=api_data.get("url", DEFAULT_API_URL)),
        logging=LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        ),
    )


def config_to_dict(config: ResolutionConfig) -> dict:
    """Convert a ResolutionConfig to JSON-serializable data."""
    blockchain: Any = False
    if config.blockchain is not None:
        blockchain = {
            "ens": _dump_source(config.blockchain.ens),
            "zns": _dump_source(config.blockchain.zns),
            "cns": _dump_source(config.blockchain.cns),
        }
    return {
        "blockchain": blockchain,
        "api": {"url": config.api.url},
        "logging": {
            "level": config.logging.level,
            "output_format": config.logging.output_format,
        },
    }


def load_config_from_file(config_path: Path) -> Optional[ResolutionConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        ResolutionConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise TypeError("Configuration root must be an object")
        return config_from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def save_config_to_file(config: ResolutionConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Returns:
        True if saved successfully, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config_to_dict(config), f, indent=2)
        return True
    except OSError as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def _env_source(prefix: str) -> BackendSource:
    if os.getenv(f"{prefix}_ENABLED", "1") == "0":
        return False
    url = os.getenv(f"{prefix}_URL", "").strip() or None
    network = os.getenv(f"{prefix}_NETWORK", "").strip() or None
    registry = os.getenv(f"{prefix}_REGISTRY", "").strip() or None
    if not (url or network or registry):
        return True
    return SourceConfig(url=url, network=network, registry=registry)


def load_config_from_env(dotenv_path: Optional[Path] = None) -> ResolutionConfig:
    """
    Load configuration from RESOLUTION_* environment variables.

    A .env file is read first when present. RESOLUTION_INFURA_PROJECT_ID
    fills in the ENS and CNS urls unless they are set explicitly.
    """
    load_dotenv(dotenv_path)

    blockchain: Optional[BlockchainConfig] = None
    if os.getenv("RESOLUTION_USE_BLOCKCHAIN", "1") != "0":
        ens = _env_source("RESOLUTION_ENS")
        cns = _env_source("RESOLUTION_CNS")
        project_id = os.getenv("RESOLUTION_INFURA_PROJECT_ID", "").strip()
        if project_id:
            if ens is True:
                ens = SourceConfig(url=signed_infura_link(project_id), network="mainnet")
            if cns is True:
                cns = SourceConfig(url=signed_infura_link(project_id), network="mainnet")
        blockchain = BlockchainConfig(
            ens=ens,
            zns=_env_source("RESOLUTION_ZNS"),
            cns=cns,
        )

    return ResolutionConfig(
        blockchain=blockchain,
        api=ApiConfig(url=os.getenv("RESOLUTION_API_URL", DEFAULT_API_URL)),
        logging=LoggingConfig(
            level=os.getenv("RESOLUTION_LOG_LEVEL", "info").lower(),
            output_format=os.getenv("RESOLUTION_LOG_FORMAT", "text").lower(),
        ),
    )
