from __future__ import annotations

import dns.name
import dns.rdatatype
from dns.rdata import Rdata

from srv2pf.modules.dns_search.records import (
    AddressFamily,
    AddressRecord,
    CnameRecord,
    ResourceRecord,
    ServiceTargetRecord,
)


def normalize_name(name: str | dns.name.Name) -> str:
    return str(name).strip().lower().rstrip('.')


def parse_rdata(owner: dns.name.Name, rdata: Rdata) -> ResourceRecord | None:
    '''
    Converts one answer from a dnspython response into a record,
    returns None for record types that play no part in address
    resolution.

    Parameters
    ----------
    owner : dns.name.Name
        _The owner name of the rrset the rdata belongs to_
    rdata : Rdata

    Returns
    -------
    ResourceRecord | None
    '''
    owner_name = normalize_name(owner)
    match rdata.rdtype:
        case dns.rdatatype.CNAME:
            return CnameRecord(
                owner=owner_name,
                target=normalize_name(rdata.target),  # type: ignore[attr-defined]
            )
        case dns.rdatatype.A:
            return AddressRecord(
                owner=owner_name,
                family=AddressFamily.IPV4,
                address=rdata.address,  # type: ignore[attr-defined]
            )
        case dns.rdatatype.AAAA:
            return AddressRecord(
                owner=owner_name,
                family=AddressFamily.IPV6,
                address=rdata.address,  # type: ignore[attr-defined]
            )
        case dns.rdatatype.SRV:
            return ServiceTargetRecord(
                owner=owner_name,
                target=normalize_name(rdata.target),  # type: ignore[attr-defined]
                port=rdata.port,  # type: ignore[attr-defined]
                priority=rdata.priority,  # type: ignore[attr-defined]
                weight=rdata.weight,  # type: ignore[attr-defined]
            )
    return None


def parse_answer_section(rrsets) -> list[ResourceRecord]:
    '''
    Parses every rrset of a response's answer section, this includes
    the CNAME chain a recursive resolver returns in front of the
    requested type.

    Parameters
    ----------
    rrsets : Iterable[dns.rrset.RRset]

    Returns
    -------
    list[ResourceRecord]
    '''
    records: list[ResourceRecord] = []
    for rrset in rrsets:
        for rdata in rrset:
            if (record := parse_rdata(rrset.name, rdata)) is not None:
                records.append(record)
    return records
