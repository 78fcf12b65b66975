class MediaError(Exception):
    """Base for image processing and storage errors."""


class ImageDecodeError(MediaError):
    """The upload is not an image we can read."""


class ImageTooLargeError(MediaError):
    """The image is over the input limit or could not be compressed under the target size."""


class UnsupportedImageTypeError(MediaError):
    """The declared content type is not an accepted image format."""


class StorageError(MediaError):
    """Object storage rejected or failed an upload or delete."""
