"""Logging configuration for linsysjax.

Provides the package logger plus named category loggers:
- Default: WARNING level only (quiet)
- Verbose: DEBUG level with flush after every record (optionally with
  perf_counter timestamps for correlating with JAX traces)

Related messages can be bracketed in a message block. Records emitted
inside a block are indented by the package formatter:

    from linsysjax._logging import ls_logger, message_block

    with message_block(ls_logger, logging.INFO, "initialize linear system solvers"):
        ls_logger.info("system 0: size 3")

    # initialize linear system solvers
    # | system 0: size 3
"""

import logging
import sys
import threading
import time
from contextlib import contextmanager

# Create the linsysjax logger
logger = logging.getLogger("linsysjax")

# Linear-system diagnostic stream
ls_logger = logger.getChild("ls")

# Default: WARNING level only (quiet operation)
logger.setLevel(logging.WARNING)

# Message-block nesting is tracked per thread
_block_state = threading.local()


class BlockDepthFilter(logging.Filter):
    """Stamp the current message-block depth on every record."""

    def filter(self, record):
        record.block_depth = get_block_depth()
        return True


class BlockFormatter(logging.Formatter):
    """Formatter that indents records by their message-block depth."""

    def format(self, record):
        text = super().format(record)
        depth = getattr(record, "block_depth", 0)
        if depth:
            return "| " * depth + text
        return text


class FlushingHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit."""

    def emit(self, record):
        super().emit(record)
        self.flush()


class PerfCounterHandler(logging.StreamHandler):
    """StreamHandler that prepends time.perf_counter() and flushes after every emit."""

    def emit(self, record):
        record.msg = f"[{time.perf_counter():.6f}] {record.msg}"
        super().emit(record)
        self.flush()


for _log in (logger, ls_logger):
    if not any(isinstance(f, BlockDepthFilter) for f in _log.filters):
        _log.addFilter(BlockDepthFilter())

# Add a default handler if none exists
if not logger.handlers:
    _default_handler = logging.StreamHandler(sys.stdout)
    _default_handler.setLevel(logging.WARNING)
    _default_handler.setFormatter(BlockFormatter("%(message)s"))
    logger.addHandler(_default_handler)


def get_block_depth() -> int:
    """Message-block nesting depth of the calling thread."""
    return getattr(_block_state, "depth", 0)


@contextmanager
def message_block(log: logging.Logger, level: int, msg: str, *args):
    """Open a message block: log ``msg`` and indent everything until exit.

    The header is only emitted when ``level`` is enabled for ``log``, but the
    block is always opened so that nesting stays balanced.
    """
    log.log(level, msg, *args)
    _block_state.depth = get_block_depth() + 1
    try:
        yield
    finally:
        _block_state.depth -= 1


def enable_verbose_logging(with_perf_counter: bool = False):
    """Enable DEBUG level logging with immediate flush.

    Args:
        with_perf_counter: If True, prepend time.perf_counter() timestamps.
            Useful for correlating log messages with JAX profiler traces.
    """
    logger.setLevel(logging.DEBUG)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    if with_perf_counter:
        handler = PerfCounterHandler(sys.stdout)
    else:
        handler = FlushingHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(BlockFormatter("%(message)s"))
    logger.addHandler(handler)


def set_log_level(level: int):
    """Set the logging level.

    Args:
        level: logging.DEBUG, logging.INFO, logging.WARNING, etc.
    """
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
