"""
Tests for the srv2pf command line
"""

import logging
import subprocess
from types import SimpleNamespace

import pytest

from srv2pf.cli import app as cli_app
from srv2pf.core._logging import (
    _InterceptHandler,
    configure_lib_logger,
    disable_lib_logger,
)
from srv2pf.modules.dns_search import DnsQuery


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    disable_lib_logger()


@pytest.fixture
def pfctl_calls(monkeypatch):
    calls: list[list[str]] = []

    def fake_run(argv, check=False):
        calls.append(list(argv))
        return SimpleNamespace(returncode=0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    return calls


@pytest.fixture
def resolver_options(monkeypatch, fake_resolver):
    """Routes the CLI's resolver context through the fake resolver"""
    fake_resolver.add("example.com", "A", "203.0.113.9")
    fake_resolver.add("example.com", "AAAA", "2001:db8::1")
    seen = {}

    original = cli_app.ResolverContext.create

    def create(*, dns_config=None, options=None, query=None):
        seen["dns_config"] = dns_config
        seen["options"] = options
        return original(
            options=options,
            query=DnsQuery(resolver=fake_resolver, options=dns_config),
        )

    monkeypatch.setattr(cli_app.ResolverContext, "create", create)
    return seen


def test_updates_table(pfctl_calls, resolver_options):
    code = cli_app.main(["-t", "web", "198.51.100.5", "example.com"])

    assert code == 0
    assert pfctl_calls == [
        ["/sbin/pfctl", "-q", "-t", "web", "-T", "replace",
         "198.51.100.5", "203.0.113.9", "2001:db8::1"]
    ]


def test_writes_file(pfctl_calls, resolver_options, tmp_path):
    out = tmp_path / "web.txt"

    code = cli_app.main(["-t", "web", "-f", str(out), "--pfctl", "pfctl", "example.com"])

    assert code == 0
    assert out.read_text() == "203.0.113.9\n2001:db8::1\n"
    assert pfctl_calls[0][0] == "pfctl"


def test_ipv4_only(pfctl_calls, resolver_options):
    cli_app.main(["-4", "-t", "web", "example.com"])

    assert resolver_options["options"].ipv6 is False
    assert pfctl_calls[0][-1] == "203.0.113.9"


def test_both_family_flags_mean_both(pfctl_calls, resolver_options):
    cli_app.main(["-4", "-6", "-t", "web", "example.com"])

    options = resolver_options["options"]
    assert options.ipv4 and options.ipv6


def test_resolver_settings(pfctl_calls, resolver_options):
    cli_app.main(["-t", "web", "--lifetime", "1.5", "--tcp", "example.com"])

    assert resolver_options["dns_config"].lifetime == 1.5
    assert resolver_options["dns_config"].tcp is True


def test_dry_run(pfctl_calls, resolver_options, tmp_path):
    out = tmp_path / "web.txt"

    code = cli_app.main(["-n", "-t", "web", "-f", str(out), "example.com"])

    assert code == 0
    assert pfctl_calls == []
    assert not out.exists()


def test_never_flush_on_empty(pfctl_calls, resolver_options):
    code = cli_app.main(["-N", "-t", "web", "missing.example.com"])

    assert code == 0
    assert pfctl_calls == []


def test_pfctl_status_is_exit_code(monkeypatch, resolver_options):
    monkeypatch.setattr(
        subprocess, "run", lambda argv, check=False: SimpleNamespace(returncode=4)
    )
    assert cli_app.main(["-t", "web", "example.com"]) == 4


def test_invalid_target_exits_before_side_effects(pfctl_calls, resolver_options, fake_resolver):
    code = cli_app.main(["-t", "web", "example.com", "example.com:ldap:sctp"])

    assert code == 1
    assert pfctl_calls == []
    assert sum(fake_resolver.calls.values()) == 0


def test_invalid_table(pfctl_calls, resolver_options, fake_resolver):
    assert cli_app.main(["-t", "bad table", "example.com"]) == 1
    assert pfctl_calls == []
    assert sum(fake_resolver.calls.values()) == 0


def test_cname_cycle_is_fatal(pfctl_calls, resolver_options, fake_resolver):
    fake_resolver.add("loop.example.com", "CNAME", "loop.example.com.")

    assert cli_app.main(["-t", "web", "loop.example.com"]) == 1
    assert pfctl_calls == []


@pytest.mark.parametrize(
    "argv",
    [
        ["example.com"],
        ["-t", "web"],
        ["-t", "web", "--bogus", "example.com"],
    ],
)
def test_usage_errors(argv, pfctl_calls):
    assert cli_app.main(argv) == 1
    assert pfctl_calls == []


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli_app.main(["--version"])
    assert exc_info.value.code == 0
    assert "srv2pf" in capsys.readouterr().out


def test_lookup_failures_are_quiet_by_default(capfd, pfctl_calls, resolver_options):
    code = cli_app.main(["-t", "web", "missing.example.com"])

    assert code == 0
    assert pfctl_calls == [["/sbin/pfctl", "-q", "-t", "web", "-T", "flush"]]
    assert capfd.readouterr().err == ""


def test_verbose_logs_lookup_failures(capfd, pfctl_calls, resolver_options):
    code = cli_app.main(["-v", "-t", "web", "missing.example.com"])

    assert code == 0
    err = capfd.readouterr().err
    assert "Domain missing.example.com does not exist" in err
    assert "DEBUG" in err


def test_pfctl_failure_is_logged(capfd, monkeypatch, resolver_options):
    monkeypatch.setattr(
        subprocess, "run", lambda argv, check=False: SimpleNamespace(returncode=4)
    )

    assert cli_app.main(["-t", "web", "example.com"]) == 4
    err = capfd.readouterr().err
    assert "ERROR" in err
    assert "/sbin/pfctl exited with status 4" in err


@pytest.mark.parametrize("pfctl", ["", "  "])
def test_empty_pfctl_path_is_rejected(pfctl, pfctl_calls, resolver_options, fake_resolver):
    assert cli_app.main(["-t", "web", "--pfctl", pfctl, "example.com"]) == 1
    assert pfctl_calls == []
    assert sum(fake_resolver.calls.values()) == 0


def test_logger_routes_only_the_dns_library():
    configure_lib_logger(level_name="DEBUG")

    assert [type(h) for h in logging.getLogger("dns").handlers] == [_InterceptHandler]
    assert logging.getLogger("asyncio").handlers == []
