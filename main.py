"""
Cornermark Eraser - Main Entry Point
====================================
Headless batch tool that removes the corner watermark from images.

Usage:
    python main.py photo1.png photo2.jpg -o cleaned/
    python main.py big.png --mode large --strength 1.4 --logo mylogo.png

Architecture:
    - Model: eraser/core/ (pure algorithms)
    - Workers: eraser/workers/ (QThread kernel, routing, sessions)
    - Controller: This file (argument parsing, signal/slot connections)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PIL import Image
from PyQt6.QtCore import QCoreApplication

from eraser import __app_name__, __version__
from eraser.core import AssetLoadError, ForceMode, LogoOverlay, ProcessingConfig
from eraser.workers import BatchController, ImageSession

logger = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).parent / "assets"


class EraserController:
    """
    Controller that feeds images to the batch and writes the results.

    Responsibilities:
    - Decode input files (acquisition is outside the engine)
    - Start the engine and report a mask failure once
    - Export every READY session when the batch settles
    """

    def __init__(self, app: QCoreApplication, args: argparse.Namespace):
        self.app = app
        self.args = args
        self.batch = BatchController()
        self.batch.session_settled.connect(self._on_session_settled)
        self.batch.batch_settled.connect(self._on_batch_settled)
        self.exit_code = 0

    def run(self) -> int:
        try:
            self.batch.start(self.args.mask_small, self.args.mask_large)
        except AssetLoadError as e:
            logger.error("Failed to load watermark masks: %s", e)
            return 2

        try:
            config = ProcessingConfig(
                force_mode=ForceMode(self.args.mode),
                alpha_gain=self.args.strength
            )
            overlay = self._load_overlay()
        except (OSError, ValueError) as e:
            logger.error("Invalid options: %s", e)
            self.batch.shutdown()
            return 2

        if overlay is not None:
            self.batch.set_overlay(overlay)

        for path in self.args.images:
            try:
                with Image.open(path) as image:
                    image.load()
                    self.batch.add_image(image, name=path.name, config=config)
            except OSError as e:
                logger.warning("Skipping %s: %s", path, e)
                self.exit_code = 1

        if not self.batch.sessions:
            self.batch.shutdown()
            return self.exit_code or 1

        if not self.batch.all_settled():
            self.app.exec()
        self.batch.shutdown()
        return self.exit_code

    def _load_overlay(self) -> Optional[LogoOverlay]:
        if self.args.logo is None:
            return None
        with Image.open(self.args.logo) as logo:
            logo.load()
            return LogoOverlay(
                image=logo.convert("RGBA"),
                opacity=self.args.logo_opacity,
                scale=self.args.logo_scale
            )

    def _on_session_settled(self, session: ImageSession):
        if session.result is not None:
            try:
                output_path = session.export(self.args.output_dir)
            except OSError as e:
                logger.error("%s export failed: %s", session.name, e)
                self.exit_code = 1
                return
            logger.info("%s -> %s", session.name, output_path)
        else:
            logger.error("%s failed: %s", session.name, session.error_message)
            self.exit_code = 1

    def _on_batch_settled(self):
        self.app.quit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cornermark-eraser",
        description="Remove the corner watermark from images."
    )
    parser.add_argument("images", nargs="+", type=Path, help="Input image files")
    parser.add_argument("-o", "--output-dir", type=Path, default=Path("cleaned"),
                        help="Directory for the cleaned PNG files")
    parser.add_argument("--mode", choices=[m.value for m in ForceMode],
                        default=ForceMode.AUTO.value,
                        help="Watermark size (auto picks from image size)")
    parser.add_argument("--strength", type=float, default=1.0,
                        help="Removal strength between 1.0 and 3.0")
    parser.add_argument("--logo", type=Path, help="Replacement logo image")
    parser.add_argument("--logo-opacity", type=float, default=0.8)
    parser.add_argument("--logo-scale", type=float, default=1.0)
    parser.add_argument("--mask-small", type=Path, default=ASSETS_DIR / "mask_48.png")
    parser.add_argument("--mask-large", type=Path, default=ASSETS_DIR / "mask_96.png")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName(__app_name__)
    app.setApplicationVersion(__version__)

    return EraserController(app, args).run()


if __name__ == "__main__":
    sys.exit(main())
