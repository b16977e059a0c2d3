# tests/test_logger_config.py
# 日志配置测试

import logging

import logger_config
from logger_config import configure_logging, get_logger, log_exception, print_colored_message


def test_configure_logging_applies_level_to_project_loggers():
    logger = get_logger("LevelTest")
    try:
        configure_logging({"log_level": "DEBUG", "log_dir": None})
        assert logger.level == logging.DEBUG
        assert get_logger("LevelTestLater").level == logging.DEBUG
    finally:
        configure_logging({"log_level": "INFO", "log_dir": None})
    assert logger.level == logging.INFO


def test_configure_logging_writes_rotating_file(tmp_path):
    log_dir = tmp_path / "logs"
    try:
        configure_logging({"log_level": "INFO", "log_dir": str(log_dir), "log_backup_count": 1})
        get_logger("FileTest").warning("written to file")
        logger_config._file_handler.flush()
        assert "written to file" in (log_dir / "app.log").read_text(encoding="utf-8")
    finally:
        configure_logging({"log_level": "INFO", "log_dir": None})
    assert logger_config._file_handler is None


def test_log_exception_formats_type_and_message(caplog):
    logger = get_logger("ExceptionTest")
    with caplog.at_level(logging.WARNING):
        log_exception(logger, "parse failed", ValueError("bad xml"), level="warning")
    assert "parse failed: ValueError: bad xml" in caplog.text


def test_success_level_logs_at_info(caplog):
    logger = get_logger("SuccessTest")
    with caplog.at_level(logging.INFO):
        logger.success("done")
    assert caplog.records[-1].levelno == logging.INFO


def test_print_colored_message_plain_when_not_a_tty(capsys):
    print_colored_message("10-17 12:00:00", "chat", "juliet@example.com", "hi")
    assert capsys.readouterr().out == "10-17 12:00:00 [chat] juliet@example.com：hi\n"
