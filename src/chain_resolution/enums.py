"""
Enumeration types for the resolution library.

These enums provide type-safe constants for naming service identities,
error codes, DNS resource record types and logging options.
"""

from enum import Enum


class NamingServiceName(Enum):
    """Identity of a naming backend."""

    ENS = "ENS"
    CNS = "CNS"
    ZNS = "ZNS"
    UDAPI = "UDAPI"


class ResolutionErrorCode(Enum):
    """Error codes for failed resolutions."""

    UNSUPPORTED_DOMAIN = "UnsupportedDomain"
    NAMING_SERVICE_DOWN = "NamingServiceDown"
    RECORD_NOT_FOUND = "RecordNotFound"
    UNSUPPORTED_CURRENCY = "UnsupportedCurrency"
    UNSPECIFIED_CURRENCY = "UnspecifiedCurrency"
    UNREGISTERED_DOMAIN = "UnregisteredDomain"
    UNSPECIFIED_RESOLVER = "UnspecifiedResolver"
    UNSUPPORTED_METHOD = "UnsupportedMethod"


class ConfigurationErrorCode(Enum):
    """Error codes for construction-time misconfiguration."""

    INCORRECT_PROVIDER = "IncorrectProvider"
    UNSPECIFIED_NETWORK = "UnspecifiedNetwork"
    UNSPECIFIED_URL = "UnspecifiedUrl"
    UNSUPPORTED_NETWORK = "UnsupportedNetwork"


class DnsRecordsErrorCode(Enum):
    """Error codes for the DNS record codec."""

    DNS_RECORD_CORRUPTED = "DnsRecordCorrupted"
    INCONSISTENT_TTL = "InconsistentTtl"


class ProviderErrorCode(Enum):
    """Error codes raised by provider adapters."""

    TRANSPORT_ERROR = "transport_error"
    RPC_ERROR = "rpc_error"


class LabelEncoding(Enum):
    """How a label passed to childhash is interpreted."""

    TEXT = "text"  # plain label, hashed before combining
    HASH = "hash"  # label is already a hex-encoded label hash


class DnsRecordType(Enum):
    """Supported DNS resource record types."""

    A = "A"
    AAAA = "AAAA"
    AFSDB = "AFSDB"
    APL = "APL"
    CAA = "CAA"
    CDNSKEY = "CDNSKEY"
    CDS = "CDS"
    CERT = "CERT"
    CNAME = "CNAME"
    CSYNC = "CSYNC"
    DHCID = "DHCID"
    DLV = "DLV"
    DNAME = "DNAME"
    DNSKEY = "DNSKEY"
    DS = "DS"
    EUI48 = "EUI48"
    EUI64 = "EUI64"
    HINFO = "HINFO"
    HIP = "HIP"
    HTTPS = "HTTPS"
    IPSECKEY = "IPSECKEY"
    KEY = "KEY"
    KX = "KX"
    LOC = "LOC"
    MX = "MX"
    NAPTR = "NAPTR"
    NS = "NS"
    NSEC = "NSEC"
    NSEC3 = "NSEC3"
    NSEC3PARAM = "NSEC3PARAM"
    OPENPGPKEY = "OPENPGPKEY"
    PTR = "PTR"
    RP = "RP"
    RRSIG = "RRSIG"
    SIG = "SIG"
    SMIMEA = "SMIMEA"
    SOA = "SOA"
    SRV = "SRV"
    SSHFP = "SSHFP"
    SVCB = "SVCB"
    TA = "TA"
    TKEY = "TKEY"
    TLSA = "TLSA"
    TSIG = "TSIG"
    TXT = "TXT"
    URI = "URI"
    ZONEMD = "ZONEMD"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
