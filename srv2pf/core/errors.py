from __future__ import annotations


class ValidationError(Exception):
    '''
    Raised when user supplied input cannot be used, before any
    resolution or mutation takes place.

    Parameters
    ----------
    field : str
        _The name of the offending input field_
    value : str
        _The rejected value_
    message : str
    '''

    def __init__(self, field: str, value: str, message: str) -> None:
        super().__init__(f'invalid {field} {value!r}: {message}')
        self.field = field
        self.value = value


class CycleDetectedError(ValidationError):
    '''
    Raised when a CNAME chain loops back onto a name
    that is still being resolved.
    '''

    def __init__(self, chain: tuple[str, ...]) -> None:
        super().__init__(
            'name',
            chain[-1],
            'CNAME cycle detected: ' + ' -> '.join(chain),
        )
        self.chain = chain


class FileWriteError(Exception): ...
