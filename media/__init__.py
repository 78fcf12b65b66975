from .compression import (
    DEFAULT_MAX_BYTES,
    DEFAULT_PASSES,
    CompressedImage,
    CompressionPass,
    compress_for_upload,
    prepare_avatar,
)
from .exceptions import (
    ImageDecodeError,
    ImageTooLargeError,
    MediaError,
    StorageError,
    UnsupportedImageTypeError,
)
from .storage import (
    StorageBucket,
    SupabaseStorage,
    extract_path_from_url,
    make_avatar_path,
    make_round_photo_path,
)

__all__ = [
    "DEFAULT_MAX_BYTES",
    "DEFAULT_PASSES",
    "CompressedImage",
    "CompressionPass",
    "compress_for_upload",
    "prepare_avatar",
    "ImageDecodeError",
    "ImageTooLargeError",
    "MediaError",
    "StorageError",
    "UnsupportedImageTypeError",
    "StorageBucket",
    "SupabaseStorage",
    "extract_path_from_url",
    "make_avatar_path",
    "make_round_photo_path",
]
