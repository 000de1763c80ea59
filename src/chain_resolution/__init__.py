"""
Chain Resolution - blockchain domain name resolution.

This package resolves domains such as brad.eth, brad.zil and brad.crypto to
currency addresses and records by routing each domain to its naming
service (ENS, ZNS, CNS or a remote API) over a normalized provider layer.
"""

__version__ = "0.1.0"
__author__ = "Chain Resolution Team"

from chain_resolution.exceptions import (
    ResolutionLibError,
    ResolutionError,
    ConfigurationError,
    DnsRecordsError,
    ProviderError,
)
from chain_resolution.enums import (
    NamingServiceName,
    ResolutionErrorCode,
    ConfigurationErrorCode,
    DnsRecordsErrorCode,
    ProviderErrorCode,
    LabelEncoding,
    DnsRecordType,
    LogLevel,
)
from chain_resolution.config import (
    SourceConfig,
    BlockchainConfig,
    ApiConfig,
    LoggingConfig,
    ResolutionConfig,
    load_config_from_file,
    load_config_from_env,
    save_config_to_file,
)
from chain_resolution.models import (
    CryptoRecords,
    DnsRecord,
    NodeHash,
    RequestArguments,
    ResolutionMeta,
    ResolutionResponse,
    unclaimed_domain_response,
)
from chain_resolution.hashing import (
    namehash,
    childhash,
    ZERO_NODE,
)
from chain_resolution.dns_records import DnsUtils
from chain_resolution.providers import (
    Provider,
    ProviderAdapter,
    RequestProviderAdapter,
    Web3Version0ProviderAdapter,
    Web3Version1ProviderAdapter,
    EthersProviderAdapter,
    JsonRpcSendProviderAdapter,
    HttpProvider,
)
from chain_resolution.audit_logger import (
    AuditLogger,
    LogEntry,
)
from chain_resolution.naming_service import NamingService
from chain_resolution.ens import Ens
from chain_resolution.cns import Cns
from chain_resolution.zns import Zns
from chain_resolution.unstoppable_api import UnstoppableApi
from chain_resolution.resolution import Resolution

__all__ = [
    # Exceptions
    "ResolutionLibError",
    "ResolutionError",
    "ConfigurationError",
    "DnsRecordsError",
    "ProviderError",
    # Enums
    "NamingServiceName",
    "ResolutionErrorCode",
    "ConfigurationErrorCode",
    "DnsRecordsErrorCode",
    "ProviderErrorCode",
    "LabelEncoding",
    "DnsRecordType",
    "LogLevel",
    # Configuration
    "SourceConfig",
    "BlockchainConfig",
    "ApiConfig",
    "LoggingConfig",
    "ResolutionConfig",
    "load_config_from_file",
    "load_config_from_env",
    "save_config_to_file",
    # Models
    "CryptoRecords",
    "DnsRecord",
    "NodeHash",
    "RequestArguments",
    "ResolutionMeta",
    "ResolutionResponse",
    "unclaimed_domain_response",
    # Hashing
    "namehash",
    "childhash",
    "ZERO_NODE",
    # DNS
    "DnsUtils",
    # Providers
    "Provider",
    "ProviderAdapter",
    "RequestProviderAdapter",
    "Web3Version0ProviderAdapter",
    "Web3Version1ProviderAdapter",
    "EthersProviderAdapter",
    "JsonRpcSendProviderAdapter",
    "HttpProvider",
    # Logging
    "AuditLogger",
    "LogEntry",
    # Naming services
    "NamingService",
    "Ens",
    "Cns",
    "Zns",
    "UnstoppableApi",
    # Dispatcher
    "Resolution",
]
