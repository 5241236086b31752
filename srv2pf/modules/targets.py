"""
Classification of command line target tokens into literal
addresses, domain names and service specifications.
"""

from __future__ import annotations

import dataclasses as dc
import ipaddress
import re
from typing import Final

from srv2pf.core.errors import ValidationError

DEFAULT_SERVICES: Final[str] = "http,https"
DEFAULT_TRANSPORTS: Final[str] = "tcp"

TRANSPORT_LISTS: Final[dict[str, tuple[str, ...]]] = {
    "tcp": ("tcp",),
    "udp": ("udp",),
    "tcp,udp": ("tcp", "udp"),
    "udp,tcp": ("udp", "tcp"),
}

_LABEL = r"[A-Za-z0-9_](?:[A-Za-z0-9_-]{0,61}[A-Za-z0-9_])?"
_DOMAIN_RE: Final = re.compile(rf"^{_LABEL}(?:\.{_LABEL})*\.?$")
_SERVICE_RE: Final = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


@dc.dataclass(slots=True, frozen=True)
class LiteralAddress:
    address: str

    @property
    def version(self) -> int:
        return ipaddress.ip_address(self.address).version


@dc.dataclass(slots=True, frozen=True)
class DomainName:
    name: str


@dc.dataclass(slots=True, frozen=True)
class ServiceSpec:
    '''
    `name:services:transports`, the service and transport
    lists keep the order they were given in without duplicates.
    '''
    name: str
    services: tuple[str, ...] = tuple(DEFAULT_SERVICES.split(","))
    transports: tuple[str, ...] = TRANSPORT_LISTS[DEFAULT_TRANSPORTS]

    def pairs(self) -> list[tuple[str, str]]:
        return [
            (service, transport)
            for service in self.services
            for transport in self.transports
        ]


Target = LiteralAddress | DomainName | ServiceSpec


def literal_address(token: str) -> str | None:
    '''
    Returns the canonical text of `token` if it is an IPv4 or IPv6
    literal, so different spellings of one address compare equal.
    Brackets around IPv6 literals are removed.

    Parameters
    ----------
    token : str

    Returns
    -------
    str | None
    '''
    candidate = token
    if candidate.startswith("[") and candidate.endswith("]"):
        candidate = candidate[1:-1]
        if "." in candidate and ":" not in candidate:
            return None
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return None
    return str(address)


def is_domain_name(name: str) -> bool:
    return len(name.rstrip(".")) <= 253 and bool(_DOMAIN_RE.match(name))


def _ordered_unique(items: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


def parse_service_spec(token: str) -> ServiceSpec:
    '''
    Parses a `name[:service-list[:transport-list]]` token.

    Parameters
    ----------
    token : str

    Returns
    -------
    ServiceSpec

    Raises
    ------
    ValidationError
        _The field that failed validation is named in the error_
    '''
    fields = token.split(":")
    if len(fields) > 3:
        raise ValidationError("target", token, "expected name[:services[:transports]]")

    name = fields[0]
    services = fields[1] if len(fields) > 1 and fields[1] else DEFAULT_SERVICES
    transports = fields[2] if len(fields) > 2 and fields[2] else DEFAULT_TRANSPORTS

    if not is_domain_name(name):
        raise ValidationError("name", name, "not a valid domain name")

    service_list = services.split(",")
    for service in service_list:
        if not _SERVICE_RE.match(service):
            raise ValidationError("service", services, "expected a comma separated list of service names")

    if transports not in TRANSPORT_LISTS:
        raise ValidationError(
            "transport", transports, "expected one of " + ", ".join(TRANSPORT_LISTS)
        )

    return ServiceSpec(
        name=name.rstrip(".").lower(),
        services=_ordered_unique(service_list),
        transports=TRANSPORT_LISTS[transports],
    )


def classify_target(token: str) -> Target:
    '''
    Decides whether `token` is a literal address, a bare domain
    name or a service specification.

    Parameters
    ----------
    token : str

    Returns
    -------
    Target

    Raises
    ------
    ValidationError
        _The token is none of the three_
    '''
    if (address := literal_address(token)) is not None:
        return LiteralAddress(address=address)

    if ":" not in token and is_domain_name(token):
        return DomainName(name=token.rstrip(".").lower())

    return parse_service_spec(token)


def classify_targets(tokens: list[str]) -> list[Target]:
    '''
    Classifies every token, the first invalid token aborts.
    '''
    return [classify_target(token) for token in tokens]
