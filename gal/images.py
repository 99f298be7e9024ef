"""
The photo resize pipeline.

Each source photo becomes one output file per PhotoSize. ImageMagick
auto-orients, crops to the size's aspect ratio and scales; MozJPEG then
encodes the final JPEG. Variants newer than their source are left alone
so repeat builds only redo changed photos.
"""

import enum
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from PIL import Image, UnidentifiedImageError

from gal.config import GalConfig
from gal.errors import ImageError

logger = logging.getLogger(__name__)

JPEG_QUALITY = 85

# EXIF orientations that rotate the image by 90 or 270 degrees
_EXIF_ORIENTATION = 0x0112
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}


class PhotoGravity(str, enum.Enum):
    """Anchor for the crop, named as ImageMagick's -gravity expects."""

    CENTER = "Center"
    NORTH = "North"
    SOUTH = "South"
    EAST = "East"
    WEST = "West"


@dataclass(frozen=True)
class PhotoCropSettings:
    portrait: str = "2:3"
    landscape: str = "3:2"
    square: str = "1:1"

    def ratio_for(self, width: int, height: int) -> str:
        if width > height:
            return self.landscape
        if height > width:
            return self.portrait
        return self.square


@dataclass(frozen=True)
class PhotoSize:
    suffix: str
    width: int
    crop_settings: PhotoCropSettings | None = None


CROP_DEFAULT = PhotoCropSettings(portrait="2:3", landscape="3:2", square="1:1")

DEFAULT_PHOTO_SIZES = (
    PhotoSize(suffix="", width=400, crop_settings=CROP_DEFAULT),
    PhotoSize(suffix="@2x", width=800, crop_settings=CROP_DEFAULT),
)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def parse_ratio(ratio: str) -> tuple[int, int]:
    try:
        w, h = (int(part) for part in ratio.split(":"))
    except ValueError:
        raise ValueError(f"invalid crop ratio '{ratio}'") from None
    if w <= 0 or h <= 0:
        raise ValueError(f"invalid crop ratio '{ratio}'")
    return w, h


def crop_box(width: int, height: int, ratio: str) -> tuple[int, int]:
    """Largest (width, height) of the given ratio that fits inside the image."""
    rw, rh = parse_ratio(ratio)
    if width * rh > height * rw:
        # Too wide, keep the full height
        return height * rw // rh, height
    return width, width * rh // rw


def oriented_size(path: Path) -> tuple[int, int]:
    """Image dimensions as displayed, i.e. after EXIF rotation."""
    with Image.open(path) as img:
        width, height = img.size
        orientation = img.getexif().get(_EXIF_ORIENTATION)
    if orientation in _TRANSPOSED_ORIENTATIONS:
        return height, width
    return width, height


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def _is_current(src: Path, dst: Path) -> bool:
    return dst.exists() and dst.stat().st_mtime >= src.stat().st_mtime


def _run(cmd: list[str], input_path: Path) -> None:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ImageError(f"error running '{cmd[0]}' on '{input_path}': {e}", path=input_path) from e
    if proc.returncode != 0:
        output = proc.stderr.strip() or proc.stdout.strip()
        raise ImageError(f"error resizing '{input_path}' with '{cmd[0]}': {output}", path=input_path)


def build_magick_cmd(magick_bin: str, src: Path, dst: Path, gravity: PhotoGravity,
                     size: PhotoSize, dimensions: tuple[int, int]) -> list[str]:
    cmd = [magick_bin, str(src), "-auto-orient"]
    if size.crop_settings is not None:
        cw, ch = crop_box(*dimensions, size.crop_settings.ratio_for(*dimensions))
        cmd += ["-gravity", PhotoGravity(gravity).value, "-crop", f"{cw}x{ch}+0+0", "+repage"]
    cmd += ["-resize", f"{size.width}x", "-quality", "100", str(dst)]
    return cmd


def build_mozjpeg_cmd(mozjpeg_bin: str, src: Path, dst: Path) -> list[str]:
    return [mozjpeg_bin, "-quality", str(JPEG_QUALITY), "-outfile", str(dst), str(src)]


def resize_image(config: GalConfig, input_path: Path, target_dir: Path, base_name: str,
                 gravity: PhotoGravity, sizes: Sequence[PhotoSize]) -> bool:
    """Write one variant of ``input_path`` per size; return whether any was (re)written."""
    input_path = Path(input_path)
    target_dir = Path(target_dir)
    ext = input_path.suffix

    targets = [(size, target_dir / f"{base_name}{size.suffix}{ext}") for size in sizes]
    try:
        pending = [(size, dst) for size, dst in targets if not _is_current(input_path, dst)]
    except OSError as e:
        raise ImageError(f"error checking '{input_path}': {e}", path=input_path) from e
    if not pending:
        logger.debug("Photo up to date: %s", input_path)
        return False

    try:
        dimensions = oriented_size(input_path)
    except (OSError, UnidentifiedImageError) as e:
        raise ImageError(f"error reading image '{input_path}': {e}", path=input_path) from e

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ImageError(f"error creating directory '{target_dir}': {e}", path=target_dir) from e

    for size, dst in pending:
        tmp = dst.with_name(f".{dst.stem}.tmp{ext}")
        # A failed encode must not leave a fresh partial dst that looks up to date
        encoded = dst.with_name(f".{dst.stem}.enc{ext}")
        try:
            _run(build_magick_cmd(config.magick_bin, input_path, tmp, gravity, size, dimensions),
                 input_path)
            _run(build_mozjpeg_cmd(config.mozjpeg_bin, tmp, encoded), input_path)
            try:
                os.replace(encoded, dst)
            except OSError as e:
                raise ImageError(f"error writing '{dst}': {e}", path=dst) from e
        finally:
            tmp.unlink(missing_ok=True)
            encoded.unlink(missing_ok=True)
        logger.debug("Resized %s -> %s (%dpx)", input_path, dst, size.width)

    return True


class PhotoResizer:
    """Resize callable handed to the directory walker: default sizes, centre gravity."""

    def __init__(self, config: GalConfig, sizes: Sequence[PhotoSize] = DEFAULT_PHOTO_SIZES,
                 gravity: PhotoGravity = PhotoGravity.CENTER):
        config.require_image_bins()
        self.config = config
        self.sizes = tuple(sizes)
        self.gravity = gravity

    def __call__(self, input_path: Path, target_dir: Path) -> bool:
        input_path = Path(input_path)
        return resize_image(self.config, input_path, target_dir, input_path.stem,
                            self.gravity, self.sizes)
