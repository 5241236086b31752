"""
Synchronization of a resolved address list into a pf table
and, optionally, a flat file.
"""

from __future__ import annotations

import dataclasses as dc
import os
import pathlib
import re
import subprocess
from typing import Final, Self

from loguru import logger

from srv2pf.core import fs_utils
from srv2pf.core.errors import FileWriteError, ValidationError
from srv2pf.modules.models import PfctlCommand, SyncOutcome, SyncResult

DEFAULT_PFCTL: Final[str] = "/sbin/pfctl"
PFCTL_ENV: Final[str] = "SRV2PF_PFCTL"

# PF_TABLE_NAME_SIZE is 32 including the terminating NUL
_TABLE_NAME_RE: Final = re.compile(r"^[A-Za-z0-9_.-]{1,31}$")


def default_pfctl() -> str:
    return os.environ.get(PFCTL_ENV) or DEFAULT_PFCTL


def validate_table_name(table: str) -> str:
    if not _TABLE_NAME_RE.match(table):
        raise ValidationError(
            "table", table, "expected 1-31 letters, digits, '_', '-' or '.'"
        )
    return table


@dc.dataclass(slots=True)
class SyncOptions:
    '''
    Options controlling how the table and file are updated.

    Parameters
    ----------
    never_flush : bool
        _Do nothing at all when no addresses were resolved_
    preserve : bool
        _Only add addresses to the table, implies `never_flush`_
    dry_run : bool
        _Report what would be done without doing it_
    verbose : bool
        _Let pfctl report what it does_
    pfctl : str
        _Path to the pfctl binary_
    '''
    never_flush: bool = False
    preserve: bool = False
    dry_run: bool = False
    verbose: bool = False
    pfctl: str = dc.field(default_factory=default_pfctl)

    @property
    def keep_on_empty(self) -> bool:
        return self.never_flush or self.preserve


def render_file_content(addresses: list[str]) -> str:
    if not addresses:
        return ""
    return "\n".join(addresses) + "\n"


@dc.dataclass(slots=True)
class TableSynchronizer:
    '''
    Brings a pf table, and optionally a file, in line with
    a freshly resolved address list.
    '''
    table: str
    file: pathlib.Path | None = None
    options: SyncOptions = dc.field(default_factory=SyncOptions)

    @classmethod
    def create(
        cls,
        *,
        table: str,
        file: str | None = None,
        options: SyncOptions | None = None,
    ) -> Self:
        '''
        Validates the table name and file path and returns a synchronizer.

        Raises
        ------
        ValidationError
        '''
        return cls(
            table=validate_table_name(table),
            file=fs_utils.validate_output_path(file) if file is not None else None,
            options=options or SyncOptions(),
        )

    def plan_command(self, addresses: list[str]) -> PfctlCommand | None:
        '''
        The pfctl command for `addresses`, None when the
        table must be left alone.
        '''
        if addresses:
            action = "add" if self.options.preserve else "replace"
        elif self.options.preserve:
            return None
        else:
            action = "flush"

        return PfctlCommand(
            pfctl=self.options.pfctl,
            table=self.table,
            action=action,
            addresses=tuple(addresses),
            quiet=not self.options.verbose,
        )

    def sync_file(
        self,
        path: pathlib.Path,
        addresses: list[str],
        result: SyncResult,
    ) -> None:
        content = render_file_content(addresses)
        try:
            if fs_utils.read_text(path) == content:
                logger.debug(f"{path} is up to date")
                result.file_outcome = SyncOutcome.NOOP_FILE
                return

            if self.options.dry_run:
                logger.info(f"would write {len(addresses)} address(es) to {path}")
                result.file_outcome = SyncOutcome.UPDATED
                return

            fs_utils.write_text_atomic(path=path, content=content)
        except (FileWriteError, OSError, UnicodeDecodeError) as exc:
            logger.warning(str(exc))
            result.warnings.append(str(exc))
            result.file_outcome = SyncOutcome.FAILED
            return

        logger.debug(f"wrote {len(addresses)} address(es) to {path}")
        result.file_outcome = SyncOutcome.UPDATED

    def run_command(self, command: PfctlCommand) -> int:
        '''
        Runs pfctl, its output goes straight to our stdout and stderr.

        Returns
        -------
        int
            _pfctl's exit status, 1 if it could not be started_
        '''
        logger.debug(f"running {command}")
        try:
            completed = subprocess.run(command.argv, check=False)
        except OSError as exc:
            logger.error(f"could not run {command.pfctl}: {exc}")
            return 1

        if completed.returncode != 0:
            logger.error(f"{command.pfctl} exited with status {completed.returncode}")
        return completed.returncode

    def sync_table(self, addresses: list[str], result: SyncResult) -> None:
        command = self.plan_command(addresses)
        if command is None:
            logger.debug(f"no addresses, leaving table {self.table} as it is")
            result.table_outcome = SyncOutcome.SKIPPED
            return

        result.command = command
        if self.options.dry_run:
            logger.info(f"would run {command}")
        else:
            result.returncode = self.run_command(command)

        if result.returncode != 0:
            result.table_outcome = SyncOutcome.FAILED
        elif command.action == "flush":
            result.table_outcome = SyncOutcome.FLUSHED
        else:
            result.table_outcome = SyncOutcome.UPDATED

    def sync(self, addresses: list[str]) -> SyncResult:
        '''
        Updates the file (if any) and then the table.

        Parameters
        ----------
        addresses : list[str]
            _The ordered address list_

        Returns
        -------
        SyncResult
        '''
        result = SyncResult(
            table=self.table,
            addresses=list(addresses),
            file=str(self.file) if self.file is not None else None,
            dry_run=self.options.dry_run,
        )
        if not addresses and self.options.keep_on_empty:
            logger.warning(f"no addresses resolved, not touching table {self.table}")
            result.table_outcome = SyncOutcome.SKIPPED
            if self.file is not None:
                result.file_outcome = SyncOutcome.SKIPPED
            return result

        if self.file is not None:
            self.sync_file(self.file, addresses, result)

        self.sync_table(addresses, result)
        return result
