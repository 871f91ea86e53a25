"""Entry point for the voice-controlled accessible games."""

from __future__ import annotations

import argparse
import os
import sys
import threading
from pathlib import Path

from dotenv import load_dotenv

from command_controller.controller import AppController
from utils.log_utils import log
from voice_module.recognizers import TextRecognizer


def _is_enabled(name: str, default: bool = True) -> bool:
    """Read a boolean-like environment variable (1/0/true/false)."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _load_env_files() -> None:
    """Load .env files from common locations (repo, module dir, home)."""
    candidates: list[Path] = []
    cwd = Path.cwd()
    candidates.extend([cwd / "env/.env", cwd / ".env"])

    module_root = Path(__file__).resolve().parent
    candidates.extend([module_root / "env/.env", module_root / ".env"])

    home = Path.home()
    candidates.append(home / ".accessible-games.env")

    for path in candidates:
        if path.exists():
            load_dotenv(dotenv_path=str(path), override=False)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Voice-controlled accessible chess and memory games.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--api", action="store_true", help="Serve the HTTP API with uvicorn.")
    mode.add_argument(
        "--console",
        action="store_true",
        help="Read transcripts from stdin (text recognizer), one command per line.",
    )
    parser.add_argument("--host", default=None, help="API host (default: API_HOST or 127.0.0.1).")
    parser.add_argument("--port", type=int, default=None, help="API port (default: API_PORT or 8000).")
    return parser


def _run_console(controller: AppController) -> None:
    print("Type a spoken command (e.g. 'start chess', 'pawn to e4'); Ctrl-D to quit.")
    for line in sys.stdin:
        text = line.strip()
        if not text:
            continue
        controller.submit_transcript(text)


def _run_api(controller: AppController, host: str, port: int) -> None:
    import uvicorn

    from api.server import create_app

    uvicorn.run(create_app(controller), host=host, port=port)


def bootstrap(argv: list[str] | None = None) -> int:
    """Wire up core modules, start listening, and run the chosen front end."""
    _load_env_files()
    args = _build_parser().parse_args(argv)

    overrides = {}
    if args.console:
        overrides["recognizer"] = TextRecognizer()
    elif not _is_enabled("ENABLE_VOICE", True):
        overrides["recognizer"] = None
    controller = AppController.from_env(**overrides)
    controller.start()

    try:
        if args.api or (not args.console and _is_enabled("ENABLE_API", False)):
            host = args.host or os.getenv("API_HOST", "127.0.0.1")
            port = args.port or int(os.getenv("API_PORT", "8000"))
            _run_api(controller, host, port)
        elif isinstance(controller.recognizer, TextRecognizer):
            _run_console(controller)
        else:
            log("MAIN", "Listening; press Ctrl-C to quit.")
            threading.Event().wait()
    except KeyboardInterrupt:
        log("MAIN", "Received interrupt. Shutting down...")
    finally:
        controller.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(bootstrap())
