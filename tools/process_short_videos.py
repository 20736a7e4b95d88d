#!/usr/bin/env python3
"""
Process short videos missing media or AI fields.

Usage:
    python tools/process_short_videos.py --limit 25 --delay 5000
    python tools/process_short_videos.py --skip-media --dry-run

See `short_videos.cli` for all options.
"""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from short_videos.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
