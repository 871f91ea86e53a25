"""Pages of the application and the voice commands each one listens to.

A view subscribes its handlers to the dispatch bus when it is mounted and
releases every subscription when it is unmounted, so only the visible page
reacts to speech.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from command_controller.dispatch import CommandDispatchBus
from command_controller.grammar import CommandCategory
from feedback_module.haptics import HapticFeedback
from games.chess import ChessGame
from games.memory import MemoryGame
from utils.event_bus import Subscription
from utils.log_utils import log
from voice_module.speech_output import SpeechOutput

SPEECH_RATES = {"slow": 0.7, "normal": 1.0, "fast": 1.3}
VIBRATION_LEVELS = {"low": 0.7, "medium": 1.0, "high": 1.5}


class Page(str, Enum):
    HOME = "home"
    GAMES = "games"
    CHESS = "chess"
    MEMORY = "memory"
    SETTINGS = "settings"


@dataclass
class ViewContext:
    bus: CommandDispatchBus
    speech: SpeechOutput
    haptics: HapticFeedback
    chess: ChessGame
    memory: MemoryGame
    navigate: Callable[[Page], bool]
    save_settings: Callable[..., Any]


class View:
    page: Page
    title = ""

    def __init__(self, ctx: ViewContext) -> None:
        self.ctx = ctx
        self._subscriptions: list[Subscription] = []

    @property
    def mounted(self) -> bool:
        return bool(self._subscriptions)

    def handlers(self) -> list[tuple[CommandCategory, Callable[[str], None]]]:
        return []

    def mount(self) -> None:
        self._subscriptions = [
            self.ctx.bus.subscribe(category, callback) for category, callback in self.handlers()
        ]
        self.on_mount()

    def unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []

    def on_mount(self) -> None:
        if self.title:
            self.ctx.speech.speak(self.title)


class HomeView(View):
    page = Page.HOME

    def handlers(self):
        return [(CommandCategory.NAVIGATION, self.handle_navigation)]

    def on_mount(self) -> None:
        self.ctx.speech.speak("Welcome to Accessible Gaming. Say start or play to begin.")

    def handle_navigation(self, command: str) -> None:
        if "start" in command or "play" in command:
            if "chess" in command:
                self.ctx.navigate(Page.CHESS)
            elif "memory" in command:
                self.ctx.navigate(Page.MEMORY)
            else:
                self.ctx.navigate(Page.GAMES)
        elif "settings" in command:
            self.ctx.navigate(Page.SETTINGS)


class GamesView(View):
    page = Page.GAMES
    title = "Games. Say chess or memory to choose a game."

    def handlers(self):
        return [(CommandCategory.NAVIGATION, self.handle_navigation)]

    def handle_navigation(self, command: str) -> None:
        if "chess" in command:
            self.ctx.navigate(Page.CHESS)
        elif "memory" in command:
            self.ctx.navigate(Page.MEMORY)
        elif "back" in command or "home" in command:
            self.ctx.navigate(Page.HOME)


class _GameView(View):
    def handle_navigation(self, command: str) -> None:
        if "home" in command:
            self.ctx.navigate(Page.HOME)
        elif "back" in command or "exit" in command:
            self.ctx.navigate(Page.GAMES)


class ChessView(_GameView):
    page = Page.CHESS

    def handlers(self):
        return [
            (CommandCategory.NAVIGATION, self.handle_navigation),
            (CommandCategory.CHESS, self.ctx.chess.handle_command),
        ]

    def on_mount(self) -> None:
        self.ctx.chess.new_game()
        self.ctx.chess.announce_start()


class MemoryView(_GameView):
    page = Page.MEMORY

    def handlers(self):
        return [
            (CommandCategory.NAVIGATION, self.handle_navigation),
            (CommandCategory.MEMORY, self.ctx.memory.handle_command),
        ]

    def on_mount(self) -> None:
        self.ctx.memory.new_game()
        self.ctx.memory.announce_start()


class SettingsView(View):
    page = Page.SETTINGS
    title = "Accessibility Settings"

    def handlers(self):
        return [
            (CommandCategory.NAVIGATION, self.handle_navigation),
            (CommandCategory.SETTINGS, self.handle_settings),
        ]

    def handle_navigation(self, command: str) -> None:
        if "back" in command or "home" in command or "exit" in command:
            self.ctx.navigate(Page.HOME)

    def handle_settings(self, command: str) -> None:
        words = set(command.split())
        if words & {"speed", "rate"}:
            for name in ("slow", "fast", "normal"):
                if name in words:
                    self.set_speech_rate(SPEECH_RATES[name])
                    return
        elif words & {"vibration", "haptic", "haptics"}:
            if words & {"off", "disable"}:
                self.set_vibration_enabled(False)
            elif words & {"on", "enable"}:
                self.set_vibration_enabled(True)
            elif words & {"high", "strong"}:
                self.set_vibration_intensity(VIBRATION_LEVELS["high"])
            elif words & {"low", "gentle"}:
                self.set_vibration_intensity(VIBRATION_LEVELS["low"])
            elif words & {"medium", "normal"}:
                self.set_vibration_intensity(VIBRATION_LEVELS["medium"])
        elif "save" in words:
            self.save()

    def set_speech_rate(self, rate: float) -> bool:
        if not self.ctx.speech.set_rate(rate):
            return False
        self.ctx.save_settings(speech_rate=rate)
        label = {value: name for name, value in SPEECH_RATES.items()}.get(rate, f"{rate:.1f}")
        self.ctx.speech.speak(f"Speech rate set to {label}")
        return True

    def set_vibration_enabled(self, enabled: bool) -> bool:
        self.ctx.haptics.set_enabled(enabled)
        self.ctx.save_settings(vibration_enabled=enabled)
        self.ctx.speech.speak(f"Vibration {'enabled' if enabled else 'disabled'}")
        if enabled:
            self.ctx.haptics.pulse()
        return True

    def set_vibration_intensity(self, intensity: float) -> bool:
        if not self.ctx.haptics.set_intensity(intensity):
            return False
        self.ctx.save_settings(vibration_intensity=intensity)
        label = {value: name for name, value in VIBRATION_LEVELS.items()}.get(
            intensity, f"{intensity:.1f}"
        )
        self.ctx.speech.speak(f"Vibration intensity set to {label}")
        self.ctx.haptics.pulse(50)
        return True

    def select_voice(self, index: int) -> bool:
        if not self.ctx.speech.select_voice(index):
            return False
        self.ctx.save_settings(voice_index=index)
        voice = self.ctx.speech.list_voices()[index]
        self.ctx.speech.speak(f"Voice set to {voice.name}")
        return True

    def save(self) -> None:
        log("SETTINGS", "settings saved")
        self.ctx.speech.speak("Settings saved")
        self.ctx.haptics.pulse(70)


VIEW_TYPES: dict[Page, type[View]] = {
    Page.HOME: HomeView,
    Page.GAMES: GamesView,
    Page.CHESS: ChessView,
    Page.MEMORY: MemoryView,
    Page.SETTINGS: SettingsView,
}
