from __future__ import annotations

import argparse
import os
import secrets
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QApplication

from screen_overlay.config import Endpoint, StreamSettings, apply_env_overrides, load_settings
from screen_overlay.logging_utils import configure_logging, get_logger, resolve_logs_dir
from screen_overlay.overlay_manager import OverlayManager
from screen_overlay.overlay_window import OverlayWindow
from screen_overlay.prompt_window import PromptWindow
from screen_overlay.render_context import QtRenderContext
from screen_overlay.screen_capture import surface_size
from screen_overlay.stream_client import AnnotationStreamClient
from screen_overlay.version import __version__

PACKAGE_DIR = Path(__file__).resolve().parent
ROOT_DIR = PACKAGE_DIR.parent
SETTINGS_ENV_VAR = "SCREEN_OVERLAY_SETTINGS"

_LOGGER = get_logger("Launcher")


def resolve_settings_path(args_settings: Optional[str]) -> Path:
    if args_settings:
        return Path(args_settings).expanduser().resolve()
    env_override = os.getenv(SETTINGS_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return (ROOT_DIR / "overlay_settings.json").resolve()


def apply_cli_overrides(settings: StreamSettings, args: argparse.Namespace) -> StreamSettings:
    updates = {}
    if args.url:
        updates["endpoint"] = Endpoint.from_url(args.url)
    if args.surface_height is not None:
        updates["surface_height"] = args.surface_height
    if args.scale is not None:
        updates["scale"] = args.scale
    if args.render_all:
        updates["render_all"] = True
    return replace(settings, **updates) if updates else settings


def generate_verification_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Screen Overlay client")
    parser.add_argument("--url", help="WebSocket endpoint streaming bounding boxes (default ws://localhost:8000/ws)")
    parser.add_argument("--settings", help="Path to overlay_settings.json")
    parser.add_argument("--surface-height", type=float, help="Render surface height used for the y flip")
    parser.add_argument("--scale", type=float, help="Producer-to-render unit scale factor")
    parser.add_argument("--render-all", action="store_true", help="Outline every streamed box, not just the first")
    parser.add_argument("--skip-verification", action="store_true", help="Do not show the verification code at launch")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.scale is not None and args.scale <= 0:
        parser.error("--scale must be positive")
    if args.surface_height is not None and args.surface_height <= 0:
        parser.error("--surface-height must be positive")

    settings_path = resolve_settings_path(args.settings)
    try:
        settings = apply_cli_overrides(apply_env_overrides(load_settings(settings_path)), args)
    except ValueError as exc:
        parser.error(str(exc))

    configure_logging(resolve_logs_dir(ROOT_DIR), retention=settings.log_retention, debug=args.debug)
    _LOGGER.info("Starting screen overlay %s (pid=%s)", __version__, os.getpid())
    _LOGGER.debug("Loaded settings from %s: %s", settings_path, settings)

    app = QApplication(sys.argv[:1])
    surface_height = settings.surface_height or float(surface_size()[1])
    _LOGGER.debug("Render surface height %.1f, scale %.3f", surface_height, settings.scale)

    render_context = QtRenderContext()
    client = AnnotationStreamClient(
        render_context,
        surface_height=surface_height,
        endpoint=settings.endpoint,
        scale=settings.scale,
        reconnect=settings.reconnect,
        open_timeout=settings.open_timeout,
    )
    box_window = OverlayWindow(render_all=settings.render_all, surface_height=surface_height)
    client.subscribe(box_window.show_boxes)
    client.subscribe_state(lambda state: _LOGGER.debug("Stream state -> %s", state.value))

    manager = OverlayManager(watermark=settings.watermark)
    prompt_window = PromptWindow(manager)

    def _on_verified(success: bool) -> None:
        if not success:
            _LOGGER.error("Verification failed or was cancelled; exiting")
            QTimer.singleShot(0, lambda: app.exit(1))
            return
        manager.hide_overlay()
        prompt_window.show()
        prompt_window.raise_()
        prompt_window.activateWindow()

    if args.skip_verification:
        _on_verified(True)
    else:
        manager.show_verification_overlay(generate_verification_code(), _on_verified)

    client.connect()
    exit_code = app.exec()
    client.close()
    if not client.wait_closed(timeout=2.0):
        _LOGGER.warning("Stream thread still running at exit (state=%s)", client.state.value)
    manager.hide_overlay()
    _LOGGER.info("Screen overlay exiting with code %s", exit_code)
    return int(exit_code)
