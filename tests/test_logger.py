import logging
from pathlib import Path

from ultrachat.config import Config
from ultrachat.utils.logger import get_logger, log_file_for, setup_logger


def test_child_loggers_share_the_application_root():
    assert get_logger("chat_session").name == "ultrachat.chat_session"
    assert get_logger().name == "ultrachat"
    assert get_logger().handlers


def test_setup_writes_to_daily_file_in_log_dir(tmp_path):
    logger = setup_logger("ultrachat_file_check", log_level="DEBUG", log_dir=tmp_path / "logs")
    try:
        logger.debug("written to file")
        for handler in logger.handlers:
            handler.flush()

        log_file = log_file_for(tmp_path / "logs")
        assert log_file.exists()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_repeated_setup_updates_level_without_duplicate_handlers(tmp_path):
    logger = setup_logger("ultrachat_repeat_check", log_level="INFO", log_dir=tmp_path)
    try:
        count = len(logger.handlers)
        assert logger.level == logging.INFO

        setup_logger("ultrachat_repeat_check", log_level="WARNING", log_dir=tmp_path)
        assert len(logger.handlers) == count
        assert logger.level == logging.WARNING
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_default_log_dir_comes_from_config():
    file_handlers = [
        h for h in get_logger().handlers if isinstance(h, logging.FileHandler)
    ]
    if file_handlers:
        log_dir = Path(file_handlers[0].baseFilename).parent
        assert log_dir == Path(Config.LOGS_DIR).absolute()
