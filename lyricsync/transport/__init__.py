"""Transport package — sink abstraction, controller, and keyboard surface.

WHY: Everything that touches the audio output lives here, so one place
owns the sink handle and every position/volume change goes through it.

HOW: sink.py defines the AudioSink interface and the per-track callback
subscription, controller.py holds TransportState and mediates commands
and sink callbacks, keyboard.py maps key chords to controller commands.

RULES:
- Only TransportController calls AudioSink methods
- Sink callbacks reach the controller through a SinkSubscription
"""

from lyricsync.transport.controller import TransportController
from lyricsync.transport.keyboard import KeyCommand, KeyEvent, KeyResult, dispatch_key
from lyricsync.transport.sink import AudioSink, MemorySink, SinkListeners, SinkSubscription

__all__ = [
    "AudioSink",
    "KeyCommand",
    "KeyEvent",
    "KeyResult",
    "MemorySink",
    "SinkListeners",
    "SinkSubscription",
    "TransportController",
    "dispatch_key",
]
