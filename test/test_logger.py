import logging
from logging.handlers import RotatingFileHandler

import pytest

from opsdial.core.config import settings
from opsdial.core.logger import setup_logger


@pytest.fixture
def fresh_logger_name(request):
    name = f"opsdial.test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_file_handler_added(monkeypatch, tmp_path, fresh_logger_name):
    monkeypatch.setattr(settings, "LOG_TO_FILE", True)
    monkeypatch.setattr(settings, "LOG_DIR", tmp_path / "logs")

    logger = setup_logger(fresh_logger_name)

    assert any(isinstance(handler, RotatingFileHandler) for handler in logger.handlers)
    assert (tmp_path / "logs").is_dir()


def test_unwritable_log_dir_falls_back_to_stderr(monkeypatch, tmp_path, fresh_logger_name):
    blocker = tmp_path / "logs"
    blocker.write_text("not a directory")
    monkeypatch.setattr(settings, "LOG_TO_FILE", True)
    monkeypatch.setattr(settings, "LOG_DIR", blocker)

    logger = setup_logger(fresh_logger_name)

    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert not isinstance(logger.handlers[0], RotatingFileHandler)
