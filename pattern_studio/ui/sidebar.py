"""Боковая панель: открытие файла, информация об исходнике, выбор вариации паттерна.

Принципы:
- SRP: управляет только UI выбора, не содержит алгоритмов.
- ISP: выдаёт выбор через `get_*`, события через `on_*`.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

import customtkinter as ctk

from pattern_studio.models.image_model import SourceImage
from pattern_studio.models.pattern_model import PatternVariation


def _rgba_to_hex(rgba: Tuple[int, int, int, int]) -> str:
    """Преобразует RGBA в HEX (без альфа)."""
    r, g, b, _a = rgba
    return f"#{r:02X}{g:02X}{b:02X}"


class Sidebar(ctk.CTkFrame):
    """Панель с блоками: файл, информация, вариации, курсор."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=280, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None
        self.on_variation_change: Optional[Callable[[str], None]] = None
        self.on_ai_enhance: Optional[Callable[[], None]] = None

        # Controls
        self._title = ctk.CTkLabel(self, text="Паттерн", font=ctk.CTkFont(size=16, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._open_btn = ctk.CTkButton(self, text="Открыть изображение…", command=self._emit_open_file)
        self._open_btn.grid(row=1, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Info section
        self._info_title = ctk.CTkLabel(self, text="Исходник", font=ctk.CTkFont(size=16, weight="bold"))
        self._info_title.grid(row=2, column=0, padx=8, pady=(8, 4), sticky="w")

        self._path_val = ctk.StringVar(value="—")
        self._size_val = ctk.StringVar(value="—")
        self._dims_val = ctk.StringVar(value="—")
        self._mode_val = ctk.StringVar(value="—")

        self._info_path = ctk.CTkLabel(self, textvariable=self._path_val, wraplength=250, anchor="w", justify="left")
        self._info_size = ctk.CTkLabel(self, textvariable=self._size_val, anchor="w", justify="left")
        self._info_dims = ctk.CTkLabel(self, textvariable=self._dims_val, anchor="w", justify="left")
        self._info_mode = ctk.CTkLabel(self, textvariable=self._mode_val, anchor="w", justify="left")

        self._info_path.grid(row=3, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_size.grid(row=4, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_dims.grid(row=5, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._info_mode.grid(row=6, column=0, padx=8, pady=(0, 10), sticky="ew")

        # Variations
        self._var_title = ctk.CTkLabel(self, text="Вариации", font=ctk.CTkFont(size=16, weight="bold"))
        self._var_title.grid(row=7, column=0, padx=8, pady=(8, 4), sticky="w")

        self._selected = ctk.StringVar(value="")
        self._var_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._var_frame.grid(row=8, column=0, padx=8, pady=(0, 8), sticky="ew")
        self._var_frame.grid_columnconfigure(0, weight=1)
        self._var_buttons: Dict[str, ctk.CTkRadioButton] = {}
        self._var_desc = ctk.StringVar(value="")
        self._var_desc_label = ctk.CTkLabel(self, textvariable=self._var_desc, wraplength=250, anchor="w", justify="left")
        self._var_desc_label.grid(row=9, column=0, padx=8, pady=(0, 6), sticky="ew")

        self._ai_btn = ctk.CTkButton(self, text="Сгенерировать AI-вариант", command=self._emit_ai_enhance, state="disabled")
        self._ai_btn.grid(row=10, column=0, padx=8, pady=(0, 12), sticky="ew")

        # Cursor section
        self._cursor_title = ctk.CTkLabel(self, text="Курсор", font=ctk.CTkFont(size=16, weight="bold"))
        self._cursor_title.grid(row=11, column=0, padx=8, pady=(8, 4), sticky="w")

        self._cursor_xy_val = ctk.StringVar(value="—")
        self._cursor_rgba_val = ctk.StringVar(value="—")
        self._cursor_hex_val = ctk.StringVar(value="—")

        self._cursor_xy = ctk.CTkLabel(self, textvariable=self._cursor_xy_val, anchor="w", justify="left")
        self._cursor_rgba = ctk.CTkLabel(self, textvariable=self._cursor_rgba_val, anchor="w", justify="left")
        self._cursor_hex = ctk.CTkLabel(self, textvariable=self._cursor_hex_val, anchor="w", justify="left")

        self._cursor_xy.grid(row=12, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._cursor_rgba.grid(row=13, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._cursor_hex.grid(row=14, column=0, padx=8, pady=(0, 2), sticky="ew")

        # filler
        self.grid_rowconfigure(99, weight=1)

        self._variations: Dict[str, PatternVariation] = {}

    # ---- Public API ----
    def set_image_info(self, image: SourceImage) -> None:
        self._path_val.set(f"Источник: {image.source}")
        self._size_val.set(f"Размер: {self._format_size(image.size_bytes)}")
        self._dims_val.set(f"Размеры: {image.width} × {image.height} px")
        self._mode_val.set(f"Режим: {image.mode}")

    def set_variations(self, variations: List[PatternVariation]) -> None:
        """Перестраивает список вариаций; выбирается рекомендованная."""
        for button in self._var_buttons.values():
            button.destroy()
        self._var_buttons.clear()
        self._variations = {v.id: v for v in variations}

        for row, variation in enumerate(variations):
            label = variation.name + (" ★" if variation.is_recommended else "")
            button = ctk.CTkRadioButton(
                self._var_frame,
                text=label,
                variable=self._selected,
                value=variation.id,
                command=self._emit_variation_change,
                state="disabled" if variation.is_placeholder else "normal",
            )
            button.grid(row=row, column=0, padx=6, pady=2, sticky="w")
            self._var_buttons[variation.id] = button

        recommended = next((v for v in variations if v.is_recommended and not v.is_placeholder), None)
        if recommended is not None:
            self.set_selected_variation(recommended.id)

    def update_variation(self, variation: PatternVariation) -> None:
        """Подменяет одну вариацию (например, заполненную AI)."""
        self._variations[variation.id] = variation
        button = self._var_buttons.get(variation.id)
        if button is not None:
            button.configure(state="disabled" if variation.is_placeholder else "normal")

    def set_selected_variation(self, variation_id: str) -> None:
        self._selected.set(variation_id)
        variation = self._variations.get(variation_id)
        self._var_desc.set(variation.description if variation else "")

    def get_selected_variation(self) -> Optional[PatternVariation]:
        return self._variations.get(self._selected.get())

    def set_ai_enabled(self, enabled: bool) -> None:
        self._ai_btn.configure(state="normal" if enabled else "disabled")

    def set_busy(self, busy: bool) -> None:
        self._open_btn.configure(state="disabled" if busy else "normal")

    def update_cursor_info(self, x: Optional[int], y: Optional[int], rgba: Optional[Tuple[int, int, int, int]]) -> None:
        if x is None or y is None or rgba is None:
            self._cursor_xy_val.set("—")
            self._cursor_rgba_val.set("—")
            self._cursor_hex_val.set("—")
            return
        self._cursor_xy_val.set(f"X: {x}, Y: {y}")
        self._cursor_rgba_val.set(f"RGBA: {rgba}")
        self._cursor_hex_val.set(f"HEX: {_rgba_to_hex(rgba)}")

    # ---- Events ----
    def _emit_open_file(self) -> None:
        if self.on_open_file:
            self.on_open_file()

    def _emit_variation_change(self) -> None:
        variation_id = self._selected.get()
        self.set_selected_variation(variation_id)
        if self.on_variation_change:
            self.on_variation_change(variation_id)

    def _emit_ai_enhance(self) -> None:
        if self.on_ai_enhance:
            self.on_ai_enhance()

    def _format_size(self, size_bytes: Optional[int]) -> str:
        if size_bytes is None:
            return "—"
        thresholds = [("Б", 1024), ("КБ", 1024**2), ("МБ", 1024**3), ("ГБ", 1024**4)]
        for label, limit in thresholds:
            if size_bytes < limit:
                if label == "Б":
                    return f"{size_bytes} {label}"
                value = size_bytes / (limit // 1024)
                return f"{value:.1f} {label}"
        value = size_bytes / (1024**4)
        return f"{value:.1f} ГБ"
