"""FastAPI server exposing the games, settings and voice session to a UI."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from command_controller.controller import AppController
from ui.views import Page


class TranscriptRequest(BaseModel):
    text: str = Field(min_length=1)
    final: bool = True


class NavigateRequest(BaseModel):
    page: Page


class SquareRequest(BaseModel):
    square: str = Field(min_length=2, max_length=3)


class FlipRequest(BaseModel):
    card: int = Field(ge=1, description="1-based card number")


class SettingsRequest(BaseModel):
    speech_rate: Optional[float] = Field(default=None, ge=0.5, le=2.0)
    vibration_enabled: Optional[bool] = None
    vibration_intensity: Optional[float] = Field(default=None, ge=0.5, le=2.0)


class VoiceRequest(BaseModel):
    index: int = Field(ge=0)


def create_app(controller: AppController | None = None) -> FastAPI:
    """Build the API around controller; without one, build and run one from env."""
    owns_controller = controller is None
    ctrl = controller or AppController.from_env()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if owns_controller:
            ctrl.start()
        try:
            yield
        finally:
            if owns_controller:
                ctrl.stop()

    app = FastAPI(title="Accessible Games API", version="0.1.0", lifespan=lifespan)
    app.state.controller = ctrl

    # Allow local dev origins (Vite, Tauri webview, etc.)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=HTMLResponse)
    def root():
        return "<html><body><h1>Accessible Games API</h1><p>Status: OK</p></body></html>"

    @app.get("/status")
    def status():
        return ctrl.status()

    @app.post("/recognition/start")
    def start_recognition():
        if not ctrl.session.is_initialized() and not ctrl.session.initialize():
            raise HTTPException(status_code=400, detail="Speech recognition not supported")
        return {"started": ctrl.session.start(), **ctrl.session.status()}

    @app.post("/recognition/stop")
    def stop_recognition():
        return {"stopped": ctrl.session.stop(), **ctrl.session.status()}

    @app.post("/transcripts")
    def submit_transcript(req: TranscriptRequest):
        try:
            accepted = ctrl.submit_transcript(req.text, final=req.final)
        except RuntimeError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        if not accepted:
            raise HTTPException(status_code=409, detail="Recognizer is not listening")
        return {"status": "ok", "page": ctrl.navigator.current_page, "spoken": ctrl.speech.last_spoken()}

    @app.get("/transcripts/recent")
    def recent_transcripts():
        return {
            "items": [
                {"text": entry.text, "final": entry.final} for entry in ctrl.feed.entries()
            ]
        }

    @app.post("/navigate")
    def navigate(req: NavigateRequest):
        ctrl.navigate(req.page)
        return {"page": ctrl.navigator.current_page}

    @app.get("/chess")
    def chess_state():
        return ctrl.chess.snapshot()

    @app.post("/chess/click")
    def chess_click(req: SquareRequest):
        try:
            moved = ctrl.chess.click_square(req.square)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return {"moved": moved, "spoken": ctrl.speech.last_spoken(), **ctrl.chess.snapshot()}

    @app.post("/chess/reset")
    def chess_reset():
        ctrl.chess.reset()
        return ctrl.chess.snapshot()

    @app.get("/memory")
    def memory_state():
        return ctrl.memory.snapshot()

    @app.post("/memory/flip")
    def memory_flip(req: FlipRequest):
        if req.card > len(ctrl.memory.cards):
            raise HTTPException(status_code=400, detail=f"Card {req.card} does not exist")
        flipped = ctrl.memory.flip(req.card - 1)
        return {"flipped": flipped, "spoken": ctrl.speech.last_spoken(), **ctrl.memory.snapshot()}

    @app.post("/memory/reset")
    def memory_reset():
        ctrl.memory.reset()
        return ctrl.memory.snapshot()

    @app.get("/settings")
    def get_settings():
        return {
            "speech_rate": ctrl.speech.rate,
            "vibration_enabled": ctrl.haptics.enabled,
            "vibration_intensity": ctrl.haptics.intensity,
            "vibration_supported": ctrl.haptics.supported(),
            "voice_index": ctrl.speech.voice_index,
        }

    @app.post("/settings")
    def update_settings(req: SettingsRequest):
        view = ctrl.settings_view
        if req.speech_rate is not None:
            view.set_speech_rate(req.speech_rate)
        if req.vibration_enabled is not None:
            view.set_vibration_enabled(req.vibration_enabled)
        if req.vibration_intensity is not None:
            view.set_vibration_intensity(req.vibration_intensity)
        return get_settings()

    @app.get("/voices")
    def list_voices():
        return {
            "items": [
                {"index": i, "id": v.id, "name": v.name, "language": v.language}
                for i, v in enumerate(ctrl.speech.list_voices())
            ],
            "selected": ctrl.speech.voice_index,
        }

    @app.post("/voices/select")
    def select_voice(req: VoiceRequest):
        if not ctrl.settings_view.select_voice(req.index):
            raise HTTPException(status_code=400, detail=f"Voice {req.index} not available")
        return {"selected": ctrl.speech.voice_index}

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.server:create_app", factory=True, host="0.0.0.0", port=8000)
