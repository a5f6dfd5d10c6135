"""Иерархия исключений приложения.

Сервисы только выбрасывают эти ошибки; перехватывает их контроллер на границе с UI.
"""
from __future__ import annotations


class PatternStudioError(Exception):
    """Базовая ошибка приложения."""


class LoadError(PatternStudioError):
    """Источник изображения недоступен или не декодируется."""


class PatternError(PatternStudioError):
    """Вырожденный вход для алгоритма тайлинга (например, кроп 0×0)."""


class AIPatternError(PatternStudioError):
    """AI-сервис не настроен, недоступен или вернул некорректный ответ."""
