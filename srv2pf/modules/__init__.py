from .targets import (
    DomainName,
    LiteralAddress,
    ServiceSpec,
    classify_target,
)
from .resolution import (
    AddressSetBuilder,
    ResolveOptions,
    ResolverContext,
    build_address_list,
)
from .pf_table import SyncOptions, TableSynchronizer
from .models import PfctlCommand, SyncOutcome, SyncResult

__all__ = [
    "DomainName",
    "LiteralAddress",
    "ServiceSpec",
    "classify_target",
    "AddressSetBuilder",
    "ResolveOptions",
    "ResolverContext",
    "build_address_list",
    "SyncOptions",
    "TableSynchronizer",
    "PfctlCommand",
    "SyncOutcome",
    "SyncResult",
]
