"""Контроллер приложения: оркестрация UI и сервисов.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без пиксельной логики).
- DIP: зависит от сервисов как от ролей; конкретные реализации передаются снаружи.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы.
- Генерация идёт в фоновом потоке, результат возвращается в UI через `window.after`.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from tkinter import filedialog, TclError
from typing import Any, Callable, Dict, List, Optional, Tuple

import customtkinter as ctk
from PIL import Image

from pattern_studio.errors import PatternStudioError
from pattern_studio.models.image_model import SourceImage
from pattern_studio.models.pattern_model import PatternVariation
from pattern_studio.services.ai_pattern_service import AIPatternService
from pattern_studio.services.pattern_service import DEFAULT_FILENAME, PatternService
from pattern_studio.ui.bottom_bar import BottomBar, VIEW_PREVIEW
from pattern_studio.ui.image_viewer import ImageViewer
from pattern_studio.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллер).
    - Загрузка исходника и генерация вариаций через `PatternService`.
    - Превью повторения при смене масштаба и сохранение выбранного тайла.
    - Запрос AI-варианта через `AIPatternService`, если он настроен.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk
    pattern_service: PatternService
    ai_service: AIPatternService
    preview_size: int = 512

    _current_image: Optional[SourceImage] = None
    _variations: List[PatternVariation] = field(default_factory=list)
    _tile_cache: Dict[str, Image.Image] = field(default_factory=dict)

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами.

        Компоненты UI ничего не знают друг о друге, общаются через контроллер.
        """
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_variation_change = self._handle_variation_change
        self.sidebar.on_ai_enhance = self._handle_ai_enhance
        self.viewer.on_cursor_move = self._handle_cursor_move

        self.bottom.on_scale_change = self._handle_scale_change
        self.bottom.on_view_mode_change = self._handle_view_mode_change
        self.bottom.on_zoom_fit = self.viewer.set_zoom_to_fit
        self.bottom.on_save = self._handle_save

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        try:
            file_path = filedialog.askopenfilename(
                title="Выберите изображение",
                filetypes=(
                    ("Images", "*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.webp"),
                    ("All files", "*.*"),
                ),
            )
        except TclError:
            # Silent fail if dialog cannot open
            return

        if not file_path:
            return

        try:
            image = self.pattern_service.image_service.load_image(file_path)
        except PatternStudioError as exc:
            self._report_error(exc)
            return

        self._current_image = image
        self._variations = []
        self._tile_cache.clear()
        self.sidebar.set_image_info(image)
        self.sidebar.set_variations([])
        self.bottom.set_save_enabled(False)
        self.viewer.set_image(None)
        self.viewer.set_placeholder("Генерация вариаций…")
        self._start_generation(image)

    def _handle_variation_change(self, _variation_id: str) -> None:
        self._show_selected(keep_view=False)

    def _handle_scale_change(self, _scale: int) -> None:
        if self.bottom.get_view_mode() == VIEW_PREVIEW:
            self._show_selected(keep_view=True)

    def _handle_view_mode_change(self, _mode: str) -> None:
        self._show_selected(keep_view=False)

    def _handle_cursor_move(self, x: Optional[int], y: Optional[int], rgba: Optional[Tuple[int, int, int, int]]) -> None:
        self.sidebar.update_cursor_info(x, y, rgba)

    def _handle_save(self) -> None:
        variation = self.sidebar.get_selected_variation()
        if variation is None or variation.is_placeholder:
            return
        try:
            file_path = filedialog.asksaveasfilename(
                title="Сохранить тайл",
                defaultextension=".png",
                initialfile=f"{variation.id}-{DEFAULT_FILENAME}",
                filetypes=(("PNG", "*.png"),),
            )
        except TclError:
            return
        if not file_path:
            return

        path = Path(file_path)
        try:
            saved = self.pattern_service.download_texture(variation.url, path.name, path.parent)
        except (PatternStudioError, OSError) as exc:
            self._report_error(exc)
            return
        self.bottom.set_status(f"Сохранено: {saved}")

    def _handle_ai_enhance(self) -> None:
        if self._current_image is None or not self.ai_service.is_configured:
            return
        source = self._current_image.pil_image
        self.sidebar.set_ai_enabled(False)
        self.bottom.set_status("Запрос AI-варианта…")
        self._run_in_background(
            lambda: self.ai_service.enhance(source),
            self._on_ai_ready,
            on_done=lambda: self.sidebar.set_ai_enabled(True),
        )

    # ---- Background work ----
    def _start_generation(self, image: SourceImage) -> None:
        self.sidebar.set_busy(True)
        self.bottom.set_status("Генерация вариаций…")
        source = image.pil_image
        self._run_in_background(
            lambda: self.pattern_service.generate_all_variations(source),
            self._on_variations_ready,
            on_done=lambda: self.sidebar.set_busy(False),
        )

    def _run_in_background(
        self,
        work: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_done: Optional[Callable[[], None]] = None,
    ) -> None:
        """Выполняет `work` в потоке; колбэки вызываются в UI-потоке."""
        def runner() -> None:
            try:
                result = work()
            except PatternStudioError as exc:
                logger.error("Background task failed: %s", exc)
                self.window.after(0, lambda err=exc: self._finish(on_done, self._report_error, err))
                return
            except Exception as exc:
                # UI должен выйти из состояния «занят» при любой ошибке
                logger.exception("Unexpected error in background task")
                self.window.after(0, lambda err=exc: self._finish(on_done, self._report_error, err))
                return
            self.window.after(0, lambda: self._finish(on_done, on_success, result))

        threading.Thread(target=runner, daemon=True).start()

    def _finish(self, on_done: Optional[Callable[[], None]], callback: Callable[[Any], None], value: Any) -> None:
        if on_done is not None:
            on_done()
        callback(value)

    def _on_variations_ready(self, variations: List[PatternVariation]) -> None:
        self._variations = list(variations)
        self._tile_cache.clear()
        self.sidebar.set_variations(self._variations)
        self.sidebar.set_ai_enabled(self.ai_service.is_configured)
        self.bottom.set_status(f"Готово: {sum(not v.is_placeholder for v in self._variations)} вариации")
        self._show_selected(keep_view=False)

    def _on_ai_ready(self, variation: PatternVariation) -> None:
        self._variations = [variation if v.id == variation.id else v for v in self._variations]
        self._tile_cache.pop(variation.id, None)
        self.sidebar.update_variation(variation)
        self.sidebar.set_selected_variation(variation.id)
        self.bottom.set_status("AI-вариант готов")
        self._show_selected(keep_view=False)

    # ---- Helpers ----
    def _show_selected(self, keep_view: bool) -> None:
        """Показывает выбранную вариацию: сам тайл или превью повторения."""
        variation = self.sidebar.get_selected_variation()
        if variation is None or variation.is_placeholder:
            self.bottom.set_save_enabled(False)
            return
        tile = self._tile_for(variation)
        if tile is None:
            return
        if self.bottom.get_view_mode() == VIEW_PREVIEW:
            shown = self.pattern_service.render_tiled_preview(tile, self.bottom.get_scale(), self.preview_size)
        else:
            shown = tile
        self.viewer.set_image(shown, keep_view=keep_view)
        self.bottom.set_save_enabled(True)

    def _tile_for(self, variation: PatternVariation) -> Optional[Image.Image]:
        tile = self._tile_cache.get(variation.id)
        if tile is None:
            try:
                tile = self.pattern_service.image_service.load_image(variation.url).pil_image
            except PatternStudioError as exc:
                self._report_error(exc)
                return None
            self._tile_cache[variation.id] = tile
        return tile

    def _report_error(self, exc: object) -> None:
        logger.warning("%s", exc)
        self.bottom.set_status(f"Ошибка: {exc}")
        if self._current_image is not None and not self._variations:
            self.viewer.set_placeholder("Не удалось построить паттерн")
