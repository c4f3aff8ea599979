"""Core data model, caption timing, and playlist state.

WHY: The core package contains the pure, clock-independent half of the
engine — the dataclasses, the SRT timing parser, the caption queries and
the playlist state machine. None of it touches the audio sink.

HOW: models.py defines the data structures, srt_parser.py builds caption
lists from raw text, caption_index.py answers "what is active at time t",
playlist.py owns track selection and random/loop rules.

RULES:
- Captions are immutable once parsed
- Nothing in core performs I/O
- Errors raised here are the typed ones from errors.py
"""
