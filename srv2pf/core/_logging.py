import logging
import sys

from loguru import logger
from rich.traceback import install as rich_tb_install

_LOG_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss}</green> | '
    '<level>{level: <8}</level> | '
    '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - '
    '<level>{message}</level>'
)

_NOISEY_LOGGERS = (
    'dns',
)

class _InterceptHandler(logging.Handler):
    """
    Ensures stdlib logging goes through loguru,
    so records from the dns library end up in the
    same sink as ours.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_lib_logger(
    *,
    level_name: str = "WARNING",
    rich_tracebacks: bool = False,
) -> None:
    '''
    Configures the root logger of srv2pf when run
    from the CLI. Diagnostics go to stderr so they never
    mix with anything printed on stdout.

    Parameters
    ----------
    level_name : str, optional
        by default "WARNING"
    rich_tracebacks : bool, optional
        by default False
    '''
    root_logger = logging.getLogger()
    root_logger.handlers = [_InterceptHandler()]
    root_logger.setLevel(level_name)

    for handle in _NOISEY_LOGGERS:
        logging.getLogger(handle).handlers = [_InterceptHandler()]
        logging.getLogger(handle).setLevel(level_name)

    logger.remove()
    logger.add(
        sys.stderr,
        format=_LOG_FORMAT,
        level=level_name,
        colorize=True,
        backtrace=False,
        diagnose=False,
        catch=True,
    )
    if rich_tracebacks:
        rich_tb_install(show_locals=True, word_wrap=True)

    logger.debug('srv2pf logger configured.')

def disable_lib_logger() -> None:
    '''
    Turns off the srv2pf logger
    for when it is used as a library.
    '''
    logger.remove()
    logging.getLogger().handlers = []
    for handle in _NOISEY_LOGGERS:
        logging.getLogger(handle).handlers = []
