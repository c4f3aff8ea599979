"""Keyboard command table — key chords to transport commands.

WHY: The player is driven from the keyboard (space, arrows, m/l/r,
Escape). The host window sees raw key events; the engine needs a fixed
mapping that ignores keys typed into a search box and tells the host
when to suppress the key's default action (page scroll on space/arrows).

HOW: KeyEvent carries a DOM-style key name and modifier flags.
resolve_command() looks the chord up in the binding table;
dispatch_key() checks the focus signal first, then runs the command on
a TransportController and reports what happened in a KeyResult.

RULES:
- in_text_field=True → no command fires and the default is not prevented
- Every bound key prevents the default action
- Space toggles play; ←/→ seek ∓SEEK_STEP_S; Shift+←/→ previous/next track
- ↑/↓ change volume by VOLUME_STEP (clamped; ↑ unmutes, ↓ to 0 mutes)
- m/M mute, l/L loop, r/R random, Escape exits the session
- Ctrl+R / Meta+R are reserved for "play random" in the catalog view
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

from lyricsync.config import SEEK_STEP_S, VOLUME_STEP

if TYPE_CHECKING:
    from lyricsync.transport.controller import TransportController

logger = logging.getLogger(__name__)

_SPACE_ALIASES = frozenset({" ", "Space", "Spacebar"})


class KeyCommand(str, enum.Enum):
    """Transport commands reachable from the keyboard."""

    TOGGLE_PLAY = "toggle_play"
    SEEK_BACK = "seek_back"
    SEEK_FORWARD = "seek_forward"
    PREVIOUS_TRACK = "previous_track"
    NEXT_TRACK = "next_track"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    TOGGLE_MUTE = "toggle_mute"
    TOGGLE_LOOP = "toggle_loop"
    TOGGLE_RANDOM = "toggle_random"
    EXIT = "exit"


@dataclass(frozen=True)
class KeyEvent:
    """A key press as reported by the host (DOM ``KeyboardEvent.key`` names)."""

    key: str
    shift: bool = False
    ctrl: bool = False
    alt: bool = False
    meta: bool = False


@dataclass(frozen=True)
class KeyResult:
    """What dispatch_key() did with an event.

    Attributes:
        command: The command that ran, or None.
        handled: True when a command ran.
        prevent_default: True when the host must suppress the key's
            default action.
    """

    command: Optional[KeyCommand] = None
    handled: bool = False
    prevent_default: bool = False


# Unmodified (or Shift-only for letters) bindings
_LETTER_BINDINGS: Dict[str, KeyCommand] = {
    "m": KeyCommand.TOGGLE_MUTE,
    "l": KeyCommand.TOGGLE_LOOP,
    "r": KeyCommand.TOGGLE_RANDOM,
}

_ARROW_BINDINGS: Dict[str, KeyCommand] = {
    "ArrowLeft": KeyCommand.SEEK_BACK,
    "ArrowRight": KeyCommand.SEEK_FORWARD,
    "ArrowUp": KeyCommand.VOLUME_UP,
    "ArrowDown": KeyCommand.VOLUME_DOWN,
}

_SHIFT_ARROW_BINDINGS: Dict[str, KeyCommand] = {
    "ArrowLeft": KeyCommand.PREVIOUS_TRACK,
    "ArrowRight": KeyCommand.NEXT_TRACK,
}


def resolve_command(event: KeyEvent) -> Optional[KeyCommand]:
    """Map a key chord to its command, or None when the chord is unbound."""
    key = event.key
    if key in _SPACE_ALIASES:
        return KeyCommand.TOGGLE_PLAY
    if key == "Escape":
        return KeyCommand.EXIT
    if key in _ARROW_BINDINGS:
        if event.shift and key in _SHIFT_ARROW_BINDINGS:
            return _SHIFT_ARROW_BINDINGS[key]
        return _ARROW_BINDINGS[key]
    if len(key) == 1 and key.lower() in _LETTER_BINDINGS:
        command = _LETTER_BINDINGS[key.lower()]
        if command is KeyCommand.TOGGLE_RANDOM and (event.ctrl or event.meta):
            return None
        return command
    return None


def run_command(controller: TransportController, command: KeyCommand) -> None:
    """Execute one keyboard command against the controller."""
    if command is KeyCommand.TOGGLE_PLAY:
        controller.toggle_play()
    elif command is KeyCommand.SEEK_BACK:
        controller.seek_relative(-SEEK_STEP_S)
    elif command is KeyCommand.SEEK_FORWARD:
        controller.seek_relative(SEEK_STEP_S)
    elif command is KeyCommand.PREVIOUS_TRACK:
        controller.previous_track()
    elif command is KeyCommand.NEXT_TRACK:
        controller.next_track()
    elif command is KeyCommand.VOLUME_UP:
        controller.step_volume(VOLUME_STEP)
    elif command is KeyCommand.VOLUME_DOWN:
        controller.step_volume(-VOLUME_STEP)
    elif command is KeyCommand.TOGGLE_MUTE:
        controller.toggle_mute()
    elif command is KeyCommand.TOGGLE_LOOP:
        controller.toggle_loop()
    elif command is KeyCommand.TOGGLE_RANDOM:
        controller.toggle_random()
    elif command is KeyCommand.EXIT:
        controller.request_exit()


def dispatch_key(
    controller: TransportController,
    event: KeyEvent,
    in_text_field: bool = False,
) -> KeyResult:
    """Route a key press to the controller.

    Args:
        controller: The session's transport controller.
        event: The key press.
        in_text_field: True when input focus is inside a text-entry field.

    Returns:
        KeyResult describing the command run and whether to prevent the
        key's default action.
    """
    if in_text_field:
        return KeyResult()

    command = resolve_command(event)
    if command is None:
        return KeyResult()

    logger.debug("Key %r -> %s", event.key, command.value)
    run_command(controller, command)
    return KeyResult(command=command, handled=True, prevent_default=True)
