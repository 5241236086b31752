from __future__ import annotations

import abc
import dataclasses
from enum import StrEnum


class Renderable(abc.ABC):
    @abc.abstractmethod
    def render(self) -> str:
        pass

    def __str__(self) -> str:
        return self.render()


class SyncOutcome(StrEnum):
    UPDATED = "updated"
    NOOP_FILE = "unchanged"
    FLUSHED = "flushed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclasses.dataclass(slots=True, frozen=True)
class PfctlCommand:
    '''
    One invocation of pfctl against a table, `argv` is passed
    to the process as is and never through a shell.
    '''
    pfctl: str
    table: str
    action: str
    addresses: tuple[str, ...] = ()
    quiet: bool = True

    @property
    def argv(self) -> list[str]:
        argv = [self.pfctl]
        if self.quiet:
            argv.append("-q")
        argv += ["-t", self.table, "-T", self.action]
        argv += self.addresses
        return argv

    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclasses.dataclass
class SyncResult(Renderable):
    '''
    What a synchronization run did, or would have done in dry-run mode.
    '''
    table: str
    addresses: list[str]
    file: str | None = None
    file_outcome: SyncOutcome | None = None
    table_outcome: SyncOutcome | None = None
    command: PfctlCommand | None = None
    returncode: int = 0
    dry_run: bool = False
    warnings: list[str] = dataclasses.field(default_factory=list)

    @property
    def outcome(self) -> SyncOutcome:
        if self.table_outcome is not None:
            return self.table_outcome
        if self.file_outcome is not None:
            return self.file_outcome
        return SyncOutcome.SKIPPED

    def render(self) -> str:
        prefix = "[yellow](dry run)[/yellow] " if self.dry_run else ""
        output = (
            f"{prefix}[bold underline]Table {self.table}[/bold underline]\n"
            f"[bold]Outcome:[/bold] {self.outcome}\n"
            f"[bold]Addresses:[/bold] {len(self.addresses)}\n"
        )
        for address in self.addresses:
            output += f" - {address}\n"
        if self.file is not None:
            output += f"[bold]File:[/bold] {self.file} ({self.file_outcome})\n"
        if self.command is not None:
            output += f"[bold]Command:[/bold] {self.command}\n"
        if self.warnings:
            output += "Warnings:\n"
            for warning in self.warnings:
                output += f" - {warning}\n"
        return output
