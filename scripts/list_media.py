#!/usr/bin/env python3
"""
CLI to print the media listing (same JSON as GET /api/media) without running
the server.

Usage:
  python scripts/list_media.py \
    [--root /path/to/photos] \
    [--settings settings.json] \
    [--prefix /photos] [--indent 2]

Notes:
- --root overrides photosPath from the settings file.
- Respects SETTINGS_PATH if set; --settings overrides.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

import library  # noqa: E402
from config import SettingsError, load_settings  # noqa: E402


def resolve_root(args: argparse.Namespace) -> str:
    if args.root:
        return os.path.expanduser(args.root)
    return load_settings(args.settings).photos_path


def main(argv: list[str]) -> int:
    ap = argparse.ArgumentParser(description="List slideshow media as JSON")
    ap.add_argument("--root", help="Photos directory (overrides settings)")
    ap.add_argument("--settings", default=None, help="Settings JSON file")
    ap.add_argument("--prefix", default=library.MEDIA_PREFIX, help="Public mount prefix")
    ap.add_argument("--indent", type=int, default=None)
    args = ap.parse_args(argv)

    try:
        root = resolve_root(args)
    except SettingsError as e:
        print(f"[cli] ERROR: {e}", file=sys.stderr)
        return 2

    records = library.list_media(root, prefix=args.prefix)
    json.dump([r.as_json() for r in records], sys.stdout, indent=args.indent)
    sys.stdout.write("\n")
    print(f"[cli] {len(records)} file(s) under {root}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
