"""lyricsync — synced-lyrics playback engine.

WHY: A lyric player has to keep a caption track in step with an audio
clock that fires many times per second, while the user skips, seeks,
shuffles and loops. Getting caption selection, random-without-repeat and
end-of-track advance subtly wrong is easy; this package keeps that logic
in one small, testable engine with no UI or storage attached.

HOW: Four layers, leaf-first:
  core.srt_parser     — SRT text → ordered Caption list
  core.caption_index  — "which caption is active at time t" + lookahead
  core.playlist       — track list, current index, random/loop rules
  transport           — play/pause/seek/volume/mute state, sink callbacks,
                        keyboard command table
The catalog client and HTTP server are thin collaborators around the engine.

RULES:
- The engine never talks to storage; it only consumes a PlaybackRequest
- The audio sink is owned exclusively by the TransportController
- Malformed caption blocks degrade to fewer captions, never to an error
"""

__version__ = "0.1.0"
