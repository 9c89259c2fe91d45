import logging

import pytest

from taskpanel.core.log_setup import RepeatFilter, setup_logging


def record(message, level=logging.DEBUG):
    return logging.LogRecord("taskpanel", level, __file__, 1, message, None, None)


def test_repeated_debug_records_are_collapsed():
    repeat_filter = RepeatFilter(max_repeats=3)

    passed = [repeat_filter.filter(record("restack 4")) for _ in range(6)]

    assert passed == [True, True, True, False, False, False]


def test_new_message_or_higher_level_resets_the_burst():
    repeat_filter = RepeatFilter(max_repeats=1)

    assert repeat_filter.filter(record("hover"))
    assert not repeat_filter.filter(record("hover"))
    assert repeat_filter.filter(record("hover", logging.WARNING))
    assert repeat_filter.filter(record("hover"))
    assert repeat_filter.filter(record("other"))


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging_writes_json_lines(tmp_path, restore_root_logger):
    log_file = tmp_path / "state" / "taskpanel.log"

    logger = setup_logging(logging.INFO, log_file=str(log_file))
    logger.info("panel started", windows=3)
    for handler in logging.getLogger().handlers:
        handler.flush()

    content = log_file.read_text()
    assert '"event": "panel started"' in content
    assert '"windows": 3' in content
