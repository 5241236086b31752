"""
Shared fixtures: an in-memory zone served through the same
interface as dns.resolver.Resolver.resolve.
"""

from collections import Counter
from types import SimpleNamespace

import dns.message
import dns.rdatatype
import dns.resolver
import dns.rrset
import pytest
from loguru import logger

from srv2pf.modules.dns_search import DnsConfig, DnsQuery
from srv2pf.modules.resolution import ResolveOptions, ResolverContext


def _key(name: str) -> str:
    return str(name).lower().rstrip(".")


class FakeResolver:
    """
    Answers queries from a dict of records and follows CNAMEs for
    non-CNAME queries, putting the chain into the answer section
    like a recursive resolver does.
    """

    def __init__(self):
        self.zone: dict[str, list[tuple[str, str]]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: Counter = Counter()

    def add(self, name: str, rtype: str, value: str) -> "FakeResolver":
        self.zone.setdefault(_key(name), []).append((rtype, value))
        return self

    def fail(self, name: str, rtype: str, exc: Exception) -> "FakeResolver":
        self.failures[(_key(name), rtype)] = exc
        return self

    def _rrset(self, owner: str, rtype: str) -> dns.rrset.RRset | None:
        values = [v for t, v in self.zone.get(owner, []) if t == rtype]
        if not values:
            return None
        return dns.rrset.from_text(owner + ".", 300, "IN", rtype, *values)

    def resolve(self, qname, rdtype, rdclass=None, **kwargs):
        name = _key(qname)
        qtype = dns.rdatatype.to_text(rdtype)
        self.calls[(name, qtype)] += 1

        if (name, qtype) in self.failures:
            raise self.failures[(name, qtype)]
        if name not in self.zone:
            raise dns.resolver.NXDOMAIN()

        response = dns.message.make_response(dns.message.make_query(name, rdtype))
        owner = name
        for _ in range(8):
            if (rrset := self._rrset(owner, qtype)) is not None:
                response.answer.append(rrset)
                break
            cname = self._rrset(owner, "CNAME")
            if cname is None or qtype == "CNAME":
                break
            response.answer.append(cname)
            owner = _key(cname[0].target)
        return SimpleNamespace(response=response)

    def count(self, name: str, rtype: str) -> int:
        return self.calls[(_key(name), rtype)]


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def make_context(fake_resolver):
    def _make(*, ipv4: bool = True, ipv6: bool = True) -> ResolverContext:
        return ResolverContext(
            query=DnsQuery(resolver=fake_resolver, options=DnsConfig()),  # type: ignore[arg-type]
            options=ResolveOptions(ipv4=ipv4, ipv6=ipv6),
        )

    return _make


@pytest.fixture
def log_records():
    """Collects loguru records emitted during the test"""
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
