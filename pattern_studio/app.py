"""Главное окно: сборка сервисов, контроллера и UI-компонентов."""
import customtkinter as ctk

from pattern_studio.config import Settings
from pattern_studio.controllers.app_controller import AppController
from pattern_studio.services.ai_pattern_service import AIPatternService
from pattern_studio.services.pattern_service import PatternService
from pattern_studio.ui.image_viewer import ImageViewer
from pattern_studio.ui.sidebar import Sidebar
from pattern_studio.ui.bottom_bar import BottomBar


class PatternStudioApp(ctk.CTk):
    def __init__(self, settings: Settings) -> None:
        super().__init__()
        ctk.set_appearance_mode("system")
        ctk.set_default_color_theme("blue")

        self.title("Pattern Studio")
        self.minsize(900, 600)

        # root layout: left viewer, right sidebar
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=0)

        self._viewer = ImageViewer(self)
        self._viewer.grid(row=0, column=0, sticky="nsew", padx=(12, 6), pady=(12, 6))

        self._sidebar = Sidebar(self)
        self._sidebar.grid(row=0, column=1, sticky="ns", padx=(6, 12), pady=(12, 6))

        self._bottom = BottomBar(self, initial_scale=settings.preview_scale)
        self._bottom.grid(row=1, column=0, columnspan=2, sticky="ew", padx=12, pady=(0, 12))

        self._controller = AppController(
            viewer=self._viewer,
            sidebar=self._sidebar,
            bottom=self._bottom,
            window=self,
            pattern_service=PatternService.from_settings(settings),
            ai_service=AIPatternService.from_settings(settings),
            preview_size=settings.preview_size,
        )
        self._controller.bind_events()
