"""Настройки приложения из окружения (.env) и настройка логирования.

Принципы:
- SRP: модуль только читает конфигурацию, сервисы получают готовый `Settings`.
- Неизменяемость: `Settings` — frozen dataclass.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

ENV_PREFIX = "PATTERN_STUDIO_"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Параметры запуска.

    Fields:
        preview_size: Сторона холста превью, px.
        preview_scale: Начальный масштаб превью (1–100).
        output_dir: Каталог для сохранения паттернов по умолчанию.
        max_workers: Размер пула потоков для генерации вариаций.
        http_timeout: Таймаут HTTP-запросов, секунды.
        ai_endpoint: URL сервиса AI-паттернов, если есть.
        ai_token: Bearer-токен для AI-сервиса, если нужен.
        log_level: Уровень логирования ("INFO", "DEBUG", ...).
        log_file: Путь к файлу журнала, если нужен.
    """
    preview_size: int = 512
    preview_scale: int = 50
    output_dir: Path = Path("patterns")
    max_workers: int = 4
    http_timeout: float = 30.0
    ai_endpoint: Optional[str] = None
    ai_token: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _get(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} должно быть целым числом, получено: {raw!r}") from exc


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _get(env, name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} должно быть числом, получено: {raw!r}") from exc


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> Settings:
    """Собирает `Settings` из переменных окружения.

    Args:
        env: Источник переменных; по умолчанию `os.environ`.
        dotenv: Подгружать ли `.env` из текущего каталога (только для `os.environ`).

    Raises:
        ValueError: если числовая переменная не парсится.
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    output_dir = _get(env, "OUTPUT_DIR")
    log_file = _get(env, "LOG_FILE")
    return Settings(
        preview_size=_get_int(env, "PREVIEW_SIZE", 512),
        preview_scale=_get_int(env, "PREVIEW_SCALE", 50),
        output_dir=Path(output_dir) if output_dir else Path("patterns"),
        max_workers=_get_int(env, "MAX_WORKERS", 4),
        http_timeout=_get_float(env, "HTTP_TIMEOUT", 30.0),
        ai_endpoint=_get(env, "AI_ENDPOINT"),
        ai_token=_get(env, "AI_TOKEN"),
        log_level=(_get(env, "LOG_LEVEL") or "INFO").upper(),
        log_file=Path(log_file) if log_file else None,
    )


def configure_logging(settings: Settings) -> None:
    """Настраивает корневой логгер: консоль и, при необходимости, файл."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
