from __future__ import annotations

import dataclasses as dc
from enum import StrEnum


class RecordKind(StrEnum):
    CNAME = 'CNAME'
    ADDRESS = 'ADDRESS'
    SERVICE_TARGET = 'SERVICE_TARGET'


class AddressFamily(StrEnum):
    IPV4 = 'A'
    IPV6 = 'AAAA'


@dc.dataclass(slots=True, frozen=True)
class CnameRecord:
    '''
    An alias from `owner` to `target`.
    '''
    owner: str
    target: str
    kind: RecordKind = dc.field(default=RecordKind.CNAME, init=False)


@dc.dataclass(slots=True, frozen=True)
class AddressRecord:
    '''
    An A or AAAA answer.
    '''
    owner: str
    family: AddressFamily
    address: str
    kind: RecordKind = dc.field(default=RecordKind.ADDRESS, init=False)


@dc.dataclass(slots=True, frozen=True)
class ServiceTargetRecord:
    '''
    An SRV answer, only `target` is used for address resolution.
    '''
    owner: str
    target: str
    port: int
    priority: int = 0
    weight: int = 0
    kind: RecordKind = dc.field(default=RecordKind.SERVICE_TARGET, init=False)


ResourceRecord = CnameRecord | AddressRecord | ServiceTargetRecord
