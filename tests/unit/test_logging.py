"""Tests for logging bootstrap."""

import logging

from response_envelope.config.logging import bootstrap_logging, get_logger

LOGGING_INI = """
[loggers]
keys=root,response_envelope

[handlers]
keys=console

[formatters]
keys=plain

[logger_root]
level=WARNING
handlers=console

[logger_response_envelope]
level=ERROR
handlers=
qualname=response_envelope

[handler_console]
class=StreamHandler
level=WARNING
formatter=plain
args=(sys.stderr,)

[formatter_plain]
format=%(levelname)s %(name)s %(message)s
"""


def test_log_level_override(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'debug')

    bootstrap_logging(force=True)

    assert logging.getLogger('response_envelope').level == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG


def test_invalid_log_level_falls_back_to_info(monkeypatch, capsys):
    monkeypatch.setenv('LOG_LEVEL', 'chatty')

    bootstrap_logging(force=True)

    assert logging.getLogger('response_envelope').level == logging.INFO
    assert "Invalid LOG_LEVEL 'CHATTY'" in capsys.readouterr().err


def test_logging_ini_loaded_then_level_applied(monkeypatch, tmp_path):
    (tmp_path / 'logging.ini').write_text(LOGGING_INI, encoding='utf-8')
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('LOG_LEVEL', 'WARNING')

    bootstrap_logging(force=True)

    # fileConfig pinned the package logger at ERROR; LOG_LEVEL wins
    assert logging.getLogger('response_envelope').level == logging.WARNING


def test_get_logger():
    assert get_logger('response_envelope.tests').name == 'response_envelope.tests'
