import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import Image

DATETIME_ORIGINAL = 36867
DATETIME_DIGITIZED = 36868


def write_image(path: Path, *, original: Optional[datetime] = None,
                digitized: Optional[datetime] = None) -> Path:
    """Small JPEG, optionally carrying EXIF capture-time tags."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (8, 8), color="red")
    exif = img.getexif()
    if original is not None:
        exif[DATETIME_ORIGINAL] = original.strftime("%Y:%m:%d %H:%M:%S")
    if digitized is not None:
        exif[DATETIME_DIGITIZED] = digitized.strftime("%Y:%m:%d %H:%M:%S")
    if original is not None or digitized is not None:
        img.save(path, format="JPEG", exif=exif)
    else:
        img.save(path, format="JPEG")
    return path


def write_bytes(path: Path, data: bytes = b"00") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def set_mtime(path: Path, when: datetime) -> None:
    ts = when.timestamp()
    os.utime(path, (ts, ts))
