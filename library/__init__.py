"""Media discovery helpers for the slideshow backend.

Walks the photos directory, keeps files with a supported extension and
guesses a (year, month) for each one: from the filename first, then from
EXIF capture tags (images only), then from the file's mtime.
"""
from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

IMAGE_EXTS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"})
VIDEO_EXTS = frozenset({".mp4", ".webm", ".ogg", ".mov"})
MEDIA_EXTS = IMAGE_EXTS | VIDEO_EXTS

MEDIA_PREFIX = "/photos"

# YYYY-MM-DD / YYYYMMDD / IMG_20230515 ...
_YMD_RE = re.compile(r"(\d{4})[-_]?(\d{2})[-_]?(\d{2})", re.ASCII)
# DD-MM-YYYY / DDMMYYYY
_DMY_RE = re.compile(r"(\d{2})[-_]?(\d{2})[-_]?(\d{4})", re.ASCII)

_EXIF_IFD = 0x8769
_TAG_DATETIME_ORIGINAL = 0x9003
_TAG_DATETIME_DIGITIZED = 0x9004
_EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

PathLike = Union[str, "os.PathLike[str]"]


class DateGuess(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(ge=1, le=12)


class MediaRecord(BaseModel):
    """One entry of the ``/api/media`` listing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str
    filename: str
    is_video: bool = Field(alias="isVideo")
    date: Optional[DateGuess] = None

    def as_json(self) -> dict:
        return self.model_dump(by_alias=True)


def _ext(name: str) -> str:
    return os.path.splitext(name)[1].lower()


def is_supported(name: str) -> bool:
    return _ext(name) in MEDIA_EXTS


def is_video(name: str) -> bool:
    return _ext(name) in VIDEO_EXTS


def _valid(year: int, month: int) -> bool:
    return 1900 <= year <= 2100 and 1 <= month <= 12


def date_from_filename(filename: str) -> Optional[DateGuess]:
    """
    Guess (year, month) from a bare filename.

    Only the leftmost match of each pattern is considered; when it falls
    outside 1900..2100 or has a bad month the pattern yields nothing.
    """
    m = _YMD_RE.search(filename)
    if m:
        year, month = int(m.group(1)), int(m.group(2))
        if _valid(year, month):
            return DateGuess(year=year, month=month)
    m = _DMY_RE.search(filename)
    if m:
        month, year = int(m.group(2)), int(m.group(3))
        if _valid(year, month):
            return DateGuess(year=year, month=month)
    return None


def _parse_exif_datetime(value) -> Optional[DateGuess]:
    if isinstance(value, bytes):
        value = value.decode("ascii", "ignore")
    if not isinstance(value, str):
        return None
    # camera wall-clock time, taken as written; no epoch/timezone round trip
    try:
        dt = datetime.strptime(value.rstrip("\x00").strip(), _EXIF_DATE_FORMAT)
    except ValueError:
        return None
    return DateGuess(year=dt.year, month=dt.month)


def read_exif_date(path: PathLike) -> Optional[DateGuess]:
    """
    Capture date from EXIF: DateTimeOriginal, then DateTimeDigitized.

    Never raises. Anything Pillow can't open or that carries no usable tag
    yields None.
    """
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            if not exif:
                return None
            sub = exif.get_ifd(_EXIF_IFD)
            for tag in (_TAG_DATETIME_ORIGINAL, _TAG_DATETIME_DIGITIZED):
                raw = sub.get(tag, exif.get(tag))
                if raw is None:
                    continue
                guess = _parse_exif_datetime(raw)
                if guess is not None:
                    return guess
    except UnidentifiedImageError:
        return None
    except Exception as e:  # corrupt EXIF blocks surface as struct/Value errors
        logger.debug("[library] exif read failed path=%s err=%s", path, e)
    return None


def read_mtime_date(path: PathLike) -> Optional[DateGuess]:
    try:
        mtime = os.stat(path).st_mtime
    except OSError as e:
        logger.debug("[library] stat failed path=%s err=%s", path, e)
        return None
    dt = datetime.fromtimestamp(mtime)
    return DateGuess(year=dt.year, month=dt.month)


def resolve_date(path: PathLike, filename: str, video: bool) -> Optional[DateGuess]:
    """
    First hit wins: filename, EXIF (images only), mtime.
    """
    guess = date_from_filename(filename)
    if guess is None and not video:
        guess = read_exif_date(path)
    if guess is None:
        guess = read_mtime_date(path)
    return guess


def _public_path(rel: str, prefix: str) -> str:
    rel = rel.replace("\\", "/").replace(os.sep, "/")
    return prefix.rstrip("/") + "/" + rel.lstrip("/")


def list_media(root: PathLike, prefix: str = MEDIA_PREFIX) -> List[MediaRecord]:
    """
    Collect a MediaRecord for every supported file under ``root``.

    Depth-first over an explicit stack of directories. A directory that
    can't be listed is logged and skipped; the rest of the tree is still
    returned. Order follows the OS listing and is not sorted.
    """
    base = Path(root)
    records: List[MediaRecord] = []
    stack: List[Path] = [base]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            logger.warning("[library] error reading directory %s: %s", current, e)
            continue
        for entry in entries:
            try:
                is_dir = entry.is_dir()
            except OSError as e:
                logger.warning("[library] error reading entry %s: %s", entry.path, e)
                continue
            if is_dir:
                stack.append(Path(entry.path))
                continue
            ext = _ext(entry.name)
            if ext not in MEDIA_EXTS:
                continue
            video = ext in VIDEO_EXTS
            rel = os.path.relpath(entry.path, base)
            records.append(
                MediaRecord(
                    path=_public_path(rel, prefix),
                    filename=entry.name,
                    is_video=video,
                    date=resolve_date(entry.path, entry.name, video),
                )
            )
    return records
