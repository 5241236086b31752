from .core import (
    DnsConfig,
    DnsQuery,
    create_resolver,
)
from .records import (
    AddressFamily,
    AddressRecord,
    CnameRecord,
    RecordKind,
    ResourceRecord,
    ServiceTargetRecord,
)

__all__ = [
    "DnsConfig",
    "DnsQuery",
    "create_resolver",
    "AddressFamily",
    "AddressRecord",
    "CnameRecord",
    "RecordKind",
    "ResourceRecord",
    "ServiceTargetRecord",
]
