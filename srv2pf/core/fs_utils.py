"""
file system operations used by the table synchronizer
"""

from __future__ import annotations

import contextlib
import os
import pathlib
import stat
import tempfile

from srv2pf.core.errors import FileWriteError, ValidationError


def normalize_pathname(path: str) -> pathlib.Path:
    '''
    Normalize a pathname, expanding the user directory.

    Parameters
    ----------
    path : str

    Returns
    -------
    pathlib.Path
    '''
    return pathlib.Path(path).expanduser().resolve()


def validate_output_path(path: str) -> pathlib.Path:
    '''
    Checks that `path` can be used as the output file.

    Parameters
    ----------
    path : str

    Returns
    -------
    pathlib.Path
        _The normalized path_

    Raises
    ------
    ValidationError
        _Empty path, a directory, or a missing parent directory_
    '''
    if not path or '\0' in path:
        raise ValidationError('file', path, 'not a usable path name')

    norm_path = normalize_pathname(path)
    if norm_path.is_dir():
        raise ValidationError('file', path, 'is a directory')

    if not norm_path.parent.is_dir():
        raise ValidationError(
            'file', path, f'parent directory {norm_path.parent} does not exist'
        )
    return norm_path


def read_text(path: pathlib.Path, *, encoding: str = 'utf-8') -> str:
    '''
    Read text from a file, a file that does not exist reads as
    an empty string.

    Parameters
    ----------
    path : pathlib.Path
    encoding : str, optional
         by default 'utf-8'

    Returns
    -------
    str
    '''
    try:
        return path.read_text(encoding=encoding)
    except FileNotFoundError:
        return ''


def _file_mode(path: pathlib.Path) -> int:
    # tempfile creates 0600, keep whatever mode the target had
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o644


def write_text_atomic(
    *,
    path: pathlib.Path,
    content: str,
    encoding: str = 'utf-8',
) -> None:
    '''
    Write `content` to a temporary sibling of `path` and rename it
    over `path`, readers see either the old or the new content.

    Parameters
    ----------
    path : pathlib.Path
    content : str
    encoding : str, optional
        by default 'utf-8'

    Raises
    ------
    FileWriteError
        _The temporary file could not be written or renamed, the
        temporary file has been removed_
    '''
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding=encoding,
            dir=path.parent,
            prefix=f'.{path.name}.',
            delete=False,
        ) as f:
            tmp_name = f.name
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, _file_mode(path))
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
        raise FileWriteError(f'Failed to write {path}: {exc}') from exc
