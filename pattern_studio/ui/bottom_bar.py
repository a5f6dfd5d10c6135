from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

VIEW_TILE = "Тайл"
VIEW_PREVIEW = "Превью"


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, initial_scale: int = 50, **kwargs) -> None:
        super().__init__(master, height=64, **kwargs)

        # callbacks
        self.on_scale_change: Optional[Callable[[int], None]] = None
        self.on_view_mode_change: Optional[Callable[[str], None]] = None
        self.on_zoom_fit: Optional[Callable[[], None]] = None
        self.on_save: Optional[Callable[[], None]] = None

        # layout
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)  # slider stretches

        # Preview scale (1..100)
        self._scale_label = ctk.CTkLabel(self, text="Масштаб паттерна")
        self._scale_label.grid(row=0, column=0, padx=(10, 6), pady=8, sticky="w")

        self._scale_value = ctk.StringVar(value=str(initial_scale))
        self._scale_slider = ctk.CTkSlider(self, from_=1, to=100, number_of_steps=99, command=self._on_slider_change)
        self._scale_slider.set(initial_scale)
        self._scale_slider.grid(row=0, column=1, padx=6, pady=8, sticky="ew")
        self._scale_value_label = ctk.CTkLabel(self, textvariable=self._scale_value, width=36, anchor="w")
        self._scale_value_label.grid(row=0, column=2, padx=(6, 12), pady=8, sticky="w")

        self._view_buttons = ctk.CTkSegmentedButton(
            self, values=[VIEW_TILE, VIEW_PREVIEW], command=self._on_view_mode
        )
        self._view_buttons.set(VIEW_PREVIEW)
        self._view_buttons.grid(row=0, column=3, padx=6, pady=8, sticky="w")

        self._fit_btn = ctk.CTkButton(self, text="Fit", width=48, command=self._emit_zoom_fit)
        self._fit_btn.grid(row=0, column=4, padx=6, pady=8, sticky="w")

        self._save_btn = ctk.CTkButton(self, text="Сохранить тайл…", command=self._emit_save, state="disabled")
        self._save_btn.grid(row=0, column=5, padx=6, pady=8, sticky="w")

        self._status = ctk.StringVar(value="")
        self._status_label = ctk.CTkLabel(self, textvariable=self._status, anchor="w")
        self._status_label.grid(row=1, column=0, columnspan=6, padx=10, pady=(0, 6), sticky="ew")

    # public API (sync from controller)
    def get_scale(self) -> int:
        return int(round(self._scale_slider.get()))

    def get_view_mode(self) -> str:
        return self._view_buttons.get()

    def set_save_enabled(self, enabled: bool) -> None:
        self._save_btn.configure(state="normal" if enabled else "disabled")

    def set_status(self, text: str) -> None:
        self._status.set(text)

    # events
    def _on_slider_change(self, value: float) -> None:
        scale = int(round(value))
        self._scale_value.set(str(scale))
        if self.on_scale_change:
            self.on_scale_change(scale)

    def _on_view_mode(self, value: str) -> None:
        if self.on_view_mode_change:
            self.on_view_mode_change(value)

    def _emit_zoom_fit(self) -> None:
        if self.on_zoom_fit:
            self.on_zoom_fit()

    def _emit_save(self) -> None:
        if self.on_save:
            self.on_save()
