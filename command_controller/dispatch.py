"""Per-category delivery of classified voice transcripts."""

from __future__ import annotations

from collections.abc import Callable
from typing import Mapping

from command_controller.grammar import COMMAND_GRAMMAR, CommandCategory, classify
from utils.event_bus import EventBus, Subscription
from utils.log_utils import log
from utils.settings_store import deep_log

CommandCallback = Callable[[str], None]


def command_topic(category: CommandCategory | str) -> str:
    return f"command.{CommandCategory(category).value}"


class CommandDispatchBus:
    """Broadcasts a transcript to every subscriber of every category it matches.

    Delivery is synchronous: all callbacks have run when classify_and_dispatch
    returns. Within a call, categories go in grammar order and subscribers in
    the order they subscribed.
    """

    def __init__(
        self,
        events: EventBus | None = None,
        grammar: Mapping[CommandCategory, tuple[str, ...]] = COMMAND_GRAMMAR,
    ) -> None:
        self.events = events or EventBus()
        self.grammar = grammar

    def subscribe(self, category: CommandCategory | str, callback: CommandCallback) -> Subscription:
        return self.events.subscribe(command_topic(category), callback)

    def subscriber_count(self, category: CommandCategory | str) -> int:
        return self.events.subscriber_count(command_topic(category))

    def classify(self, transcript: str) -> list[CommandCategory]:
        return classify(transcript, self.grammar)

    def classify_and_dispatch(self, transcript: str) -> list[CommandCategory]:
        if not transcript:
            return []
        categories = self.classify(transcript)
        if not categories:
            log("DISPATCH", f"no command category for '{transcript}'")
            return []
        log("DISPATCH", f"'{transcript}' -> {', '.join(c.value for c in categories)}")
        for category in categories:
            delivered = self.events.publish(command_topic(category), transcript)
            deep_log(f"[DEEP][DISPATCH] {category.value} delivered to {delivered} subscriber(s)")
        return categories
