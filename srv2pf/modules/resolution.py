from __future__ import annotations

import dataclasses as dc
from collections.abc import Iterable
from typing import Self

import dns.rdatatype
from loguru import logger

from srv2pf.core.errors import CycleDetectedError
from srv2pf.modules.dns_search import (
    AddressFamily,
    AddressRecord,
    CnameRecord,
    DnsConfig,
    DnsQuery,
    ServiceTargetRecord,
)
from srv2pf.modules.dns_search.parser import normalize_name
from srv2pf.modules.targets import (
    DomainName,
    LiteralAddress,
    ServiceSpec,
    Target,
    classify_targets,
    literal_address,
)


@dc.dataclass(slots=True)
class ResolveOptions:
    '''
    Address families to resolve, both by default.
    '''
    ipv4: bool = True
    ipv6: bool = True

    @property
    def families(self) -> tuple[AddressFamily, ...]:
        families: list[AddressFamily] = []
        if self.ipv4:
            families.append(AddressFamily.IPV4)
        if self.ipv6:
            families.append(AddressFamily.IPV6)
        return tuple(families)

    @property
    def rtypes(self) -> tuple[dns.rdatatype.RdataType, ...]:
        '''
        The record types queried for every name, CNAME first.
        '''
        rtypes = [dns.rdatatype.CNAME]
        if self.ipv4:
            rtypes.append(dns.rdatatype.A)
        if self.ipv6:
            rtypes.append(dns.rdatatype.AAAA)
        return tuple(rtypes)


def order_addresses(addresses: Iterable[str]) -> list[str]:
    '''
    Orders addresses deterministically, IPv4 entries sorted as strings
    first, then IPv6 entries sorted as strings.

    Parameters
    ----------
    addresses : Iterable[str]

    Returns
    -------
    list[str]
    '''
    unique = set(addresses)
    ipv4 = sorted(a for a in unique if ":" not in a)
    ipv6 = sorted(a for a in unique if ":" in a)
    return ipv4 + ipv6


@dc.dataclass(slots=True)
class ResolverContext:
    '''
    Owns everything a single run resolves with: the DNS adapter,
    the address family options and the per-run cache of resolved
    names. Nothing in here outlives the run.
    '''
    query: DnsQuery
    options: ResolveOptions = dc.field(default_factory=ResolveOptions)
    cache: dict[str, frozenset[str]] = dc.field(default_factory=dict)

    @classmethod
    def create(
        cls,
        *,
        dns_config: DnsConfig | None = None,
        options: ResolveOptions | None = None,
        query: DnsQuery | None = None,
    ) -> Self:
        return cls(
            query=query or DnsQuery.create(config=dns_config),
            options=options or ResolveOptions(),
        )

    def resolve(
        self,
        domain_name: str,
        *,
        chain: tuple[str, ...] = (),
    ) -> frozenset[str]:
        '''
        Resolves `domain_name` to its addresses, following CNAMEs.

        Parameters
        ----------
        domain_name : str
        chain : tuple[str, ...], optional
            _The names whose resolution is in progress above this
            call, used to detect CNAME cycles_

        Returns
        -------
        frozenset[str]

        Raises
        ------
        CycleDetectedError
            _`domain_name` is an alias of itself_
        '''
        if (address := literal_address(domain_name)) is not None:
            return frozenset((address,))

        name = normalize_name(domain_name)
        if (cached := self.cache.get(name)) is not None:
            logger.debug(f"cache hit for {name}")
            return cached

        if name in chain:
            raise CycleDetectedError(chain + (name,))

        chain = chain + (name,)
        families = self.options.families
        result: set[str] = set()
        for rtype in self.options.rtypes:
            for record in self.query.query(name, rtype):
                match record:
                    case CnameRecord(target=target):
                        result |= self.resolve(target, chain=chain)
                    case AddressRecord(family=family, address=address) if family in families:
                        result.add(address)

        resolved = frozenset(result)
        self.cache[name] = resolved
        return resolved

    def resolve_srv(self, name: str, service: str, transport: str) -> set[str]:
        '''
        Resolves `_service._transport.name` to the target host names
        of its SRV records, and of any CNAMEs in the answer.

        Parameters
        ----------
        name : str
        service : str
        transport : str

        Returns
        -------
        set[str]
            _Empty when the lookup failed or had no answer_
        '''
        qname = f"_{service}._{transport}.{normalize_name(name)}"
        hosts: set[str] = set()
        for record in self.query.query(qname, dns.rdatatype.SRV):
            match record:
                case ServiceTargetRecord(target=target) | CnameRecord(target=target):
                    # "." means the service is not offered here
                    if target:
                        hosts.add(target)
        logger.debug(f"SRV {qname}: {sorted(hosts) or 'no targets'}")
        return hosts


@dc.dataclass(slots=True)
class AddressSetBuilder:
    '''
    Turns classified targets into the ordered address list
    that is synchronized into the table.
    '''
    context: ResolverContext
    addresses: set[str] = dc.field(default_factory=set)

    def add_target(self, target: Target) -> None:
        match target:
            case LiteralAddress(address=address):
                self.addresses.add(address)
            case DomainName(name=name):
                self.addresses |= self.context.resolve(name)
            case ServiceSpec():
                self.add_service(target)

    def add_service(self, spec: ServiceSpec) -> None:
        for service, transport in spec.pairs():
            for host in sorted(self.context.resolve_srv(spec.name, service, transport)):
                self.addresses |= self.context.resolve(host)

        # the base name is always included, SRV or not
        self.addresses |= self.context.resolve(spec.name)

    def build(self, targets: Iterable[Target]) -> list[str]:
        '''
        Resolves every target and returns the deduplicated,
        ordered address list.

        Parameters
        ----------
        targets : Iterable[Target]

        Returns
        -------
        list[str]
        '''
        for target in targets:
            self.add_target(target)
        return order_addresses(self.addresses)


def build_address_list(
    tokens: list[str],
    *,
    context: ResolverContext,
) -> list[str]:
    '''
    Classifies and resolves `tokens`, all tokens are validated
    before the first query is issued.

    Parameters
    ----------
    tokens : list[str]
    context : ResolverContext

    Returns
    -------
    list[str]

    Raises
    ------
    ValidationError
    '''
    targets = classify_targets(tokens)
    return AddressSetBuilder(context=context).build(targets)
