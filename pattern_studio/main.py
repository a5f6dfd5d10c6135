"""Точка входа: GUI по умолчанию, пакетный режим при `--input`."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pattern_studio.config import configure_logging, load_settings
from pattern_studio.errors import PatternStudioError
from pattern_studio.services.pattern_service import PatternService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pattern-studio",
        description="Seamless pattern generator: GUI, or batch export with --input.",
    )
    parser.add_argument("--input", "-i", help="Image path, http(s) URL or data URL (batch mode)")
    parser.add_argument("--output", "-o", type=Path, default=None, help="Output directory (default: PATTERN_STUDIO_OUTPUT_DIR)")
    parser.add_argument("--scale", type=int, default=None, help="Also export tiled previews at this scale (1-100)")
    parser.add_argument("--preview-size", type=int, default=None, help="Preview canvas size, px")
    return parser


def run_batch(args: argparse.Namespace, service: PatternService, preview_size: int) -> int:
    """Генерирует вариации и сохраняет их в каталог. Возвращает код выхода."""
    try:
        variations = service.generate_all_variations(args.input)
        saved = service.export_variations(variations, args.output, scale=args.scale, preview_size=preview_size)
    except PatternStudioError as exc:
        logger.error("Pattern generation failed: %s", exc)
        return 1
    for path in saved:
        print(path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Создаёт и запускает главное окно приложения или пакетный экспорт."""
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(settings)

    if args.input:
        preview_size = args.preview_size or settings.preview_size
        return run_batch(args, PatternService.from_settings(settings), preview_size)

    # GUI импортируется лениво: пакетный режим работает без дисплея
    from pattern_studio.app import PatternStudioApp

    app = PatternStudioApp(settings)
    app.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
