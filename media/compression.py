"""Downscale and re-encode photos before upload.

Small images are stored exactly as uploaded. Larger ones go through a fixed
sequence of JPEG passes, each allowed a little more loss than the last, and
the first result that fits wins. All functions are pure: bytes in, bytes out.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional, Sequence

from PIL import Image, ImageOps, UnidentifiedImageError

from media.exceptions import ImageDecodeError, ImageTooLargeError, UnsupportedImageTypeError

logger = logging.getLogger(__name__)

MB = 1024 * 1024


@dataclass(frozen=True)
class CompressionPass:
    max_bytes: int
    max_dimension: int
    quality: int


DEFAULT_MAX_BYTES = int(4.9 * MB)

DEFAULT_PASSES = (
    CompressionPass(max_bytes=int(4.9 * MB), max_dimension=10000, quality=95),
    CompressionPass(max_bytes=int(4.9 * MB), max_dimension=4000, quality=92),
    CompressionPass(max_bytes=int(4.8 * MB), max_dimension=3000, quality=90),
)

AVATAR_MAX_DIMENSION = 500
AVATAR_QUALITY = 85
AVATAR_MAX_INPUT_BYTES = 20 * MB
AVATAR_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})


@dataclass(frozen=True)
class CompressedImage:
    data: bytes
    content_type: str
    filename: str
    width: int
    height: int
    compressed: bool = False
    pass_index: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.data)


def decode_image(data: bytes) -> Image.Image:
    """Open and fully load an image, or raise ImageDecodeError."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Could not read image: {e}") from e
    return image


def flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Composite transparency onto white; JPEG has no alpha channel."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB") if image.mode != "RGB" else image


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def _fit(image: Image.Image, max_dimension: int) -> Image.Image:
    if max(image.size) <= max_dimension:
        return image
    resized = image.copy()
    resized.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    return resized


def _jpeg_name(filename: str) -> str:
    return str(PurePosixPath(filename or "photo").with_suffix(".jpg"))


def compress_for_upload(
    data: bytes,
    *,
    filename: str = "photo.jpg",
    max_bytes: int = DEFAULT_MAX_BYTES,
    passes: Sequence[CompressionPass] = DEFAULT_PASSES,
) -> CompressedImage:
    """Return `data` unchanged when it fits, otherwise the first pass that fits.

    Raises ImageDecodeError for unreadable input and ImageTooLargeError when
    even the last pass is over its bound.
    """
    image = decode_image(data)
    if len(data) <= max_bytes:
        content_type = Image.MIME.get(image.format or "", "application/octet-stream")
        return CompressedImage(
            data=data,
            content_type=content_type,
            filename=filename,
            width=image.width,
            height=image.height,
        )

    upright = flatten_to_rgb(ImageOps.exif_transpose(image))
    for index, step in enumerate(passes):
        candidate = _fit(upright, step.max_dimension)
        encoded = encode_jpeg(candidate, step.quality)
        logger.debug(
            "Compression pass %d: %dpx q%d -> %d bytes (limit %d)",
            index + 1, step.max_dimension, step.quality, len(encoded), step.max_bytes,
        )
        if len(encoded) <= step.max_bytes:
            logger.info("Compressed %s from %d to %d bytes", filename, len(data), len(encoded))
            return CompressedImage(
                data=encoded,
                content_type="image/jpeg",
                filename=_jpeg_name(filename),
                width=candidate.width,
                height=candidate.height,
                compressed=True,
                pass_index=index,
            )
    raise ImageTooLargeError(
        f"Could not compress {filename} under {passes[-1].max_bytes if passes else max_bytes} bytes"
    )


def prepare_avatar(
    data: bytes,
    content_type: Optional[str],
    *,
    max_dimension: int = AVATAR_MAX_DIMENSION,
    quality: int = AVATAR_QUALITY,
) -> CompressedImage:
    """Square-bounded, upright JPEG for a profile picture."""
    if content_type not in AVATAR_CONTENT_TYPES:
        raise UnsupportedImageTypeError("Please choose a JPEG, PNG, WebP or GIF image")
    if len(data) > AVATAR_MAX_INPUT_BYTES:
        raise ImageTooLargeError("Image must be under 20MB")
    image = decode_image(data)
    upright = flatten_to_rgb(ImageOps.exif_transpose(image))
    resized = _fit(upright, max_dimension)
    return CompressedImage(
        data=encode_jpeg(resized, quality),
        content_type="image/jpeg",
        filename="avatar.jpg",
        width=resized.width,
        height=resized.height,
        compressed=True,
    )
