import argparse
from dataclasses import dataclass

import dns.exception
from loguru import logger
from rich.markup import escape

from srv2pf import __version__
from srv2pf.cli.internals import ArgparseModel, CLICommand, cli_arg
from srv2pf.core._logging import configure_lib_logger
from srv2pf.core.errors import ValidationError
from srv2pf.modules.dns_search import DnsConfig
from srv2pf.modules.pf_table import SyncOptions, TableSynchronizer
from srv2pf.modules.resolution import (
    ResolveOptions,
    ResolverContext,
    build_address_list,
)


@dataclass
class Srv2PfArgs(ArgparseModel):
    targets: list[str] = cli_arg(
        nargs="+",
        help="Targets: an address, a domain name, or name[:services[:transports]]",
    )
    table: str = cli_arg(
        "-t",
        "--table",
        required=True,
        help="Name of the pf table to update",
    )
    file: str | None = cli_arg(
        "-f",
        "--file",
        help="Also write the addresses to this file, one per line",
    )
    ipv4_only: bool = cli_arg(
        "-4",
        default=False,
        action="store_true",
        help="Include IPv4 addresses (alone: only IPv4)",
    )
    ipv6_only: bool = cli_arg(
        "-6",
        default=False,
        action="store_true",
        help="Include IPv6 addresses (alone: only IPv6)",
    )
    dry_run: bool = cli_arg(
        "-n",
        "--dry-run",
        default=False,
        action="store_true",
        help="Resolve and compare, but do not write the file or run pfctl",
    )
    never_flush: bool = cli_arg(
        "-N",
        "--never-flush",
        default=False,
        action="store_true",
        help="Leave the table and file alone if nothing resolves",
    )
    preserve: bool = cli_arg(
        "-p",
        "--preserve",
        default=False,
        action="store_true",
        help="Add to the table instead of replacing it, implies --never-flush",
    )
    verbose: bool = cli_arg(
        "-v",
        "--verbose",
        default=False,
        action="store_true",
        help="Log every query and let pfctl report what it does",
    )
    resolv_conf: str = cli_arg(
        "--resolv-conf",
        default="/etc/resolv.conf",
        help="Resolver configuration file",
    )
    lifetime: float = cli_arg(
        "--lifetime",
        default=5.0,
        type=float,
        help="Seconds to spend on a single query, retries included",
    )
    tcp: bool = cli_arg(
        "--tcp",
        default=False,
        action="store_true",
        help="Query over TCP instead of UDP",
    )
    pfctl: str | None = cli_arg(
        "--pfctl",
        help="Path to pfctl (default: $SRV2PF_PFCTL or /sbin/pfctl)",
    )

    def resolve_options(self) -> ResolveOptions:
        if self.ipv4_only == self.ipv6_only:
            return ResolveOptions(ipv4=True, ipv6=True)
        return ResolveOptions(ipv4=self.ipv4_only, ipv6=self.ipv6_only)

    def dns_config(self) -> DnsConfig:
        return DnsConfig(
            filename=self.resolv_conf,
            lifetime=self.lifetime,
            tcp=self.tcp,
        )

    def sync_options(self) -> SyncOptions:
        options = SyncOptions(
            never_flush=self.never_flush,
            preserve=self.preserve,
            dry_run=self.dry_run,
            verbose=self.verbose,
        )
        if self.pfctl is not None:
            if not self.pfctl.strip():
                raise ValidationError("pfctl", self.pfctl, "empty path")
            options.pfctl = self.pfctl
        return options


class Srv2PfCommand(CLICommand[Srv2PfArgs]):
    model = Srv2PfArgs

    def routine(self, args: Srv2PfArgs) -> int:
        configure_lib_logger(level_name="DEBUG" if args.verbose else "WARNING")
        logger.debug(args.show())

        try:
            synchronizer = TableSynchronizer.create(
                table=args.table,
                file=args.file,
                options=args.sync_options(),
            )
            context = ResolverContext.create(
                dns_config=args.dns_config(),
                options=args.resolve_options(),
            )
            addresses = build_address_list(args.targets, context=context)
        except ValidationError as e:
            self.console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
            return 1
        except dns.exception.DNSException as e:
            self.console.print(f"[red]Resolver error:[/red] {escape(str(e))}", highlight=False)
            return 1

        result = synchronizer.sync(addresses)
        if args.dry_run or args.verbose:
            self.console.print(result.render(), highlight=False)
        return result.returncode


def create_app() -> Srv2PfCommand:
    parser = argparse.ArgumentParser(
        prog="srv2pf",
        description="Create and update pf tables from DNS records",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return Srv2PfCommand(parser)


def main(argv: list[str] | None = None) -> int:
    app = create_app()
    try:
        return app(argv)
    except SystemExit as e:
        # argparse exits with 2 on usage errors
        if e.code == 2:
            return 1
        raise


def run() -> None:
    raise SystemExit(main())
