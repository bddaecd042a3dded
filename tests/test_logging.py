"""Tests for message blocks and the package loggers."""

import logging
import threading

import pytest

from linsysjax._logging import (
    BlockFormatter,
    get_block_depth,
    logger,
    ls_logger,
    message_block,
    set_log_level,
)


@pytest.fixture
def restore_level():
    level = logger.level
    handler_levels = [h.level for h in logger.handlers]
    yield
    logger.setLevel(level)
    for handler, lvl in zip(logger.handlers, handler_levels):
        handler.setLevel(lvl)


class TestMessageBlock:
    def test_depth_nesting(self):
        base = get_block_depth()
        with message_block(ls_logger, logging.DEBUG, "outer"):
            assert get_block_depth() == base + 1
            with message_block(ls_logger, logging.DEBUG, "inner"):
                assert get_block_depth() == base + 2
            assert get_block_depth() == base + 1
        assert get_block_depth() == base

    def test_depth_restored_on_error(self):
        base = get_block_depth()
        with pytest.raises(RuntimeError):
            with message_block(ls_logger, logging.INFO, "failing block"):
                raise RuntimeError("boom")
        assert get_block_depth() == base

    def test_header_and_body_depth(self, caplog):
        with caplog.at_level(logging.INFO, logger="linsysjax"):
            with message_block(ls_logger, logging.INFO, "header %d", 1):
                ls_logger.info("body")

        header, body = caplog.records
        assert header.getMessage() == "header 1"
        assert body.block_depth == header.block_depth + 1

    def test_disabled_header_still_nests(self, caplog):
        """Blocks stay balanced when their header level is filtered out."""
        base = get_block_depth()
        with caplog.at_level(logging.WARNING, logger="linsysjax"):
            with message_block(ls_logger, logging.DEBUG, "hidden"):
                ls_logger.warning("visible")

        assert [r.getMessage() for r in caplog.records] == ["visible"]
        assert caplog.records[0].block_depth == base + 1


    def test_depth_is_per_thread(self):
        """A block open in one thread does not indent records of another."""
        entered = threading.Event()
        release = threading.Event()
        seen = {}

        def worker():
            with message_block(ls_logger, logging.DEBUG, "worker block"):
                entered.set()
                release.wait(timeout=5)
                seen["worker"] = get_block_depth()

        base = get_block_depth()
        thread = threading.Thread(target=worker)
        thread.start()
        assert entered.wait(timeout=5)
        seen["main"] = get_block_depth()
        with message_block(ls_logger, logging.DEBUG, "main block"):
            seen["main_inner"] = get_block_depth()
        release.set()
        thread.join(timeout=5)

        assert seen == {"main": base, "main_inner": base + 1, "worker": 1}
        assert get_block_depth() == base


class TestBlockFormatter:
    def _record(self, msg, depth=None):
        record = logging.LogRecord("linsysjax.ls", logging.INFO, __file__, 1, msg, None, None)
        if depth is not None:
            record.block_depth = depth
        return record

    def test_indent_by_depth(self):
        fmt = BlockFormatter("%(message)s")
        assert fmt.format(self._record("top", 0)) == "top"
        assert fmt.format(self._record("nested", 2)) == "| | nested"

    def test_record_without_depth(self):
        fmt = BlockFormatter("%(message)s")
        assert fmt.format(self._record("plain")) == "plain"


class TestLogLevel:
    def test_quiet_by_default(self):
        assert not ls_logger.isEnabledFor(logging.INFO)
        assert ls_logger.isEnabledFor(logging.WARNING)

    def test_ls_logger_is_child(self):
        assert ls_logger.name == "linsysjax.ls"
        assert ls_logger.parent is logger

    def test_set_log_level(self, restore_level):
        set_log_level(logging.DEBUG)
        assert ls_logger.isEnabledFor(logging.DEBUG)
        assert all(h.level == logging.DEBUG for h in logger.handlers)
