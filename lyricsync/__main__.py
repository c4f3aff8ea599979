"""Package entry point for ``python -m lyricsync``.

WHY: Users run ``python -m lyricsync captions song.srt`` or
``python -m lyricsync serve`` without installing a console script.

RULES:
- This file must exist for ``python -m lyricsync`` to work
- All argument handling lives in cli.main()
"""

import sys

from lyricsync.cli import main

if __name__ == "__main__":
    sys.exit(main())
