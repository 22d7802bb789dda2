"""Настройка логирования.

Библиотека только пишет в логгеры `ad_gateway.*`; приложение может вызвать
setup_logging(), чтобы получить консольный вывод в едином формате.
"""
from __future__ import annotations

import logging

from pydantic import ValidationError

from .env_settings import EnvSettings, get_env

_LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Отслеживаем установленный handler, чтобы при реконфигурации удалять старый.
_console_handler: logging.Handler | None = None


def normalize_level(level: str | None) -> str:
    level_str = (level or "INFO").strip().upper()
    return level_str if level_str in _LEVELS else "INFO"


def setup_logging(level: str = "INFO") -> logging.Handler:
    """Настраивает корневой логгер: один консольный handler, уровень для всех."""
    global _console_handler

    level_str = normalize_level(level)
    log_level = getattr(logging, level_str, logging.INFO)

    root = logging.getLogger()
    if _console_handler and _console_handler in root.handlers:
        root.removeHandler(_console_handler)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT))
    _console_handler = ch

    root.setLevel(log_level)
    root.addHandler(ch)

    # ldap3 очень шумный на DEBUG
    logging.getLogger("ldap3").setLevel(max(log_level, logging.WARNING))

    logging.getLogger("ad_gateway").info("Логирование настроено: уровень=%s", level_str)
    return ch


def setup_logging_from_env(env: EnvSettings | None = None) -> logging.Handler:
    """Настраивает логирование по LOG_LEVEL из окружения.

    Некорректное окружение не мешает логированию: используется INFO.
    """
    if env is None:
        try:
            env = get_env()
        except ValidationError:
            handler = setup_logging("INFO")
            logging.getLogger("ad_gateway").warning("Некорректные настройки окружения, уровень логов INFO", exc_info=True)
            return handler
    return setup_logging(env.log_level)
