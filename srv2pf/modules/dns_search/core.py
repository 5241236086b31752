from __future__ import annotations

import contextlib
import dataclasses as dc
from collections.abc import Iterator
from typing import Self

import dns.exception
import dns.rdataclass
import dns.rdatatype
import dns.resolver
from loguru import logger

from srv2pf.modules.dns_search import parser
from srv2pf.modules.dns_search.records import ResourceRecord


@dc.dataclass(slots=True)
class DnsConfig:
    '''
    Options for DNS lookups.
    '''
    filename: str = "/etc/resolv.conf"
    configure: bool = True
    lifetime: float = 5.0
    search: bool | None = None
    tcp: bool = False


def create_resolver(options: DnsConfig | None = None) -> dns.resolver.Resolver:
    options = options or DnsConfig()
    resolver = dns.resolver.Resolver(
        configure=options.configure,
        filename=options.filename,
    )
    resolver.lifetime = options.lifetime
    return resolver


@dc.dataclass(slots=True)
class DnsQuery:
    '''
    Issues single queries of one record type against the
    configured resolver. Any failure to get an answer is
    recorded as a warning and turned into an empty answer.
    '''
    resolver: dns.resolver.Resolver
    options: DnsConfig
    warnings: list[str] = dc.field(default_factory=list)
    rtypes_queried: list[tuple[str, str]] = dc.field(default_factory=list)

    @classmethod
    def create(
        cls,
        *,
        config: DnsConfig | None = None,
        resolver: dns.resolver.Resolver | None = None,
    ) -> Self:
        config = config or DnsConfig()
        if not resolver:
            resolver = create_resolver(config)

        return cls(resolver=resolver, options=config)

    def _warn(self, message: str) -> None:
        logger.debug(message)
        self.warnings.append(message)

    @contextlib.contextmanager
    def _catch_errors(
        self,
        domain_name: str,
        rtype: dns.rdatatype.RdataType,
    ) -> Iterator[None]:
        '''
        Wraps a single query and degrades DNS and
        network errors into warnings.

        Parameters
        ----------
        domain_name : str
        rtype : dns.rdatatype.RdataType
        '''
        rtype_text = dns.rdatatype.to_text(rtype)
        self.rtypes_queried.append((domain_name, rtype_text))
        try:
            yield
        except dns.resolver.NXDOMAIN:
            self._warn(f"Domain {domain_name} does not exist ({rtype_text})")
        except dns.resolver.NoAnswer:
            self._warn(f"No answer for {rtype_text} record of {domain_name}")
        except dns.resolver.NoNameservers:
            self._warn(f"No nameservers available for {rtype_text} record of {domain_name}")
        except dns.exception.Timeout:
            self._warn(f"Timeout while querying {rtype_text} record of {domain_name}")
        except (dns.exception.DNSException, OSError) as e:
            self._warn(f"Error querying {rtype_text} record of {domain_name}: {e}")

    def query(
        self,
        domain_name: str,
        rtype: dns.rdatatype.RdataType,
    ) -> list[ResourceRecord]:
        '''
        Queries `domain_name` for `rtype` over class IN.

        Parameters
        ----------
        domain_name : str
        rtype : dns.rdatatype.RdataType

        Returns
        -------
        list[ResourceRecord]
            _Every usable record of the answer section, empty when
            the query failed or had no answer_
        '''
        records: list[ResourceRecord] = []
        with self._catch_errors(domain_name, rtype):
            answer = self.resolver.resolve(
                domain_name,
                rtype,
                dns.rdataclass.IN,
                tcp=self.options.tcp,
                raise_on_no_answer=False,
                lifetime=self.options.lifetime,
                search=self.options.search,
            )
            records = parser.parse_answer_section(answer.response.answer)
            logger.debug(
                f"{dns.rdatatype.to_text(rtype)} {domain_name}: "
                f"{len(records)} record(s)"
            )
        return records

    def reset(self) -> None:
        '''
        Resets the recorded warnings and queries.
        '''
        self.warnings.clear()
        self.rtypes_queried.clear()
