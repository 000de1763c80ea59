"""
DNS record codec.

Converts between the flat record map stored for a domain and a list of
typed DNS resource records. The flat form uses three kinds of keys:

    dns.ttl          global default TTL
    dns.<TYPE>       JSON array of record values for one type
    dns.<TYPE>.ttl   TTL override for one type

Decoding never silently defaults a malformed value and encoding never
picks one of several conflicting TTLs.
"""

import json
import re
from typing import Iterable, Optional

from .enums import DnsRecordsErrorCode, DnsRecordType
from .exceptions import DnsRecordsError
from .models import CryptoRecords, DnsRecord

DNS_PREFIX = "dns."
GLOBAL_TTL_KEY = "dns.ttl"

_TTL_PATTERN = re.compile(r"[0-9]+")
_TYPES_BY_TAG = {record_type.value: record_type for record_type in DnsRecordType}


def record_key(record_type: DnsRecordType) -> str:
    return f"{DNS_PREFIX}{record_type.value}"


def ttl_key(record_type: DnsRecordType) -> str:
    return f"{DNS_PREFIX}{record_type.value}.ttl"


def record_keys(types: Iterable[DnsRecordType]) -> list[str]:
    """All flat keys needed to decode the given record types."""
    keys = [GLOBAL_TTL_KEY]
    for record_type in types:
        keys.append(record_key(record_type))
        keys.append(ttl_key(record_type))
    return keys


class DnsUtils:
    """Bidirectional transform between flat records and DnsRecord lists."""

    def to_list(self, records: CryptoRecords) -> list[DnsRecord]:
        """
        Decode a flat record map into typed DNS records.

        Args:
            records: Flat record map; non-DNS keys are ignored

        Returns:
            Records grouped by type in the order the type keys appear

        Raises:
            DnsRecordsError: DnsRecordCorrupted on malformed values or TTLs
        """
        result: list[DnsRecord] = []
        default_ttl: Optional[int] = None
        default_ttl_parsed = False

        for key in records:
            record_type = self._parse_type_key(key)
            if record_type is None:
                continue

            values = self._parse_values(record_type, records.get(key))
            if not values:
                continue

            ttl = self._parse_ttl(records.get(ttl_key(record_type)), ttl_key(record_type))
            if ttl is None:
                if not default_ttl_parsed:
                    default_ttl = self._parse_ttl(records.get(GLOBAL_TTL_KEY), GLOBAL_TTL_KEY)
                    default_ttl_parsed = True
                if default_ttl is None:
                    raise DnsRecordsError(
                        DnsRecordsErrorCode.DNS_RECORD_CORRUPTED,
                        f"No TTL configured for {record_type.value} records",
                        {"record_type": record_type.value},
                    )
                ttl = default_ttl

            result.extend(
                DnsRecord(type=record_type, TTL=ttl, data=value) for value in values
            )

        return result

    def to_crypto(self, records: Iterable[DnsRecord]) -> CryptoRecords:
        """
        Encode typed DNS records into a flat record map.

        Args:
            records: DNS records; every record of one type must share a TTL

        Returns:
            Flat map with dns.<TYPE> and dns.<TYPE>.ttl keys

        Raises:
            DnsRecordsError: InconsistentTtl when TTLs of one type differ,
                DnsRecordCorrupted when a record could not be decoded back
        """
        groups: dict[DnsRecordType, list[DnsRecord]] = {}
        for record in records:
            self._check_record(record)
            groups.setdefault(record.type, []).append(record)

        flat: CryptoRecords = {}
        for record_type, group in groups.items():
            ttls = list(dict.fromkeys(record.TTL for record in group))
            if len(ttls) > 1:
                raise DnsRecordsError(
                    DnsRecordsErrorCode.INCONSISTENT_TTL,
                    f"Inconsistent TTL for {record_type.value} records: "
                    + ", ".join(str(ttl) for ttl in ttls),
                    {"record_type": record_type.value, "ttls": ttls},
                )
            flat[record_key(record_type)] = json.dumps(
                [record.data for record in group],
                separators=(",", ":"),
                ensure_ascii=False,
            )
            flat[ttl_key(record_type)] = str(ttls[0])
        return flat

    def _parse_type_key(self, key: str) -> Optional[DnsRecordType]:
        if not key.startswith(DNS_PREFIX):
            return None
        return _TYPES_BY_TAG.get(key[len(DNS_PREFIX):])

    def _parse_values(self, record_type: DnsRecordType, raw: Optional[str]) -> list[str]:
        if not raw:
            return []
        try:
            values = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise DnsRecordsError(
                DnsRecordsErrorCode.DNS_RECORD_CORRUPTED,
                f"{record_type.value} records are not valid JSON: {e}",
                {"record_type": record_type.value, "value": raw},
            )
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise DnsRecordsError(
                DnsRecordsErrorCode.DNS_RECORD_CORRUPTED,
                f"{record_type.value} records must be a JSON array of strings",
                {"record_type": record_type.value, "value": raw},
            )
        return values

    def _parse_ttl(self, raw: Optional[str], key: str) -> Optional[int]:
        if raw is None or raw == "":
            return None
        if not isinstance(raw, str) or not _TTL_PATTERN.fullmatch(raw.strip()):
            raise DnsRecordsError(
                DnsRecordsErrorCode.DNS_RECORD_CORRUPTED,
                f"{key} is not a non-negative integer: {raw!r}",
                {"key": key, "value": raw},
            )
        return int(raw.strip())

    def _check_record(self, record: DnsRecord) -> None:
        # bool is an int subclass but would encode as "True"
        ttl = record.TTL
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0:
            raise DnsRecordsError(
                DnsRecordsErrorCode.DNS_RECORD_CORRUPTED,
                f"TTL of {record.type.value} record is not a non-negative integer: {ttl!r}",
                {"record_type": record.type.value, "ttl": ttl},
            )
        if not isinstance(record.data, str):
            raise DnsRecordsError(
                DnsRecordsErrorCode.DNS_RECORD_CORRUPTED,
                f"Data of {record.type.value} record is not a string: {record.data!r}",
                {"record_type": record.type.value, "value": record.data},
            )
