"""
Image Preprocessor

Turns an uploaded house photo into the tensor the price-tier classifier
expects: RGB, 224x224 (bilinear), float32 scaled to [0, 1], with a
leading batch dimension of 1.
"""

import io
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Generator, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from pricelens.core.constants import IMAGE_SIZE, PIXEL_SCALE
from pricelens.exceptions import DecodeError, UnsupportedFormatError
from pricelens.logging_config import get_logger

logger = get_logger(__name__)

RawImage = Union[bytes, bytearray, memoryview, BinaryIO, str, Path, Image.Image]


@contextmanager
def _open_image(raw_image: RawImage) -> Generator[Image.Image, None, None]:
    """Open and fully decode an image, closing it on exit.

    Already-open Pillow images are yielded as-is and left open for the
    caller that owns them.
    """
    if isinstance(raw_image, Image.Image):
        yield raw_image
        return

    if isinstance(raw_image, (bytes, bytearray, memoryview)):
        if len(raw_image) == 0:
            raise DecodeError("Image data is empty")
        source = io.BytesIO(bytes(raw_image))
    else:
        source = raw_image

    try:
        image = Image.open(source)
        # Image.open is lazy; force the decode so truncated files fail here
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Input is not a decodable image: {e}") from e
    except FileNotFoundError:
        raise
    except (OSError, SyntaxError) as e:
        raise DecodeError(f"Image data is corrupt or truncated: {e}") from e

    try:
        yield image
    finally:
        image.close()


def to_rgb(image: Image.Image) -> Image.Image:
    """Convert any Pillow mode to RGB, dropping alpha.

    Raises:
        UnsupportedFormatError: If Pillow cannot convert the mode.
    """
    if image.mode == "RGB":
        return image
    try:
        if image.mode == "P" and "transparency" in image.info:
            # Palette transparency has to go through RGBA before it can be dropped
            image = image.convert("RGBA")
        return image.convert("RGB")
    except (ValueError, OSError) as e:
        raise UnsupportedFormatError(
            f"Cannot convert image mode {image.mode} to RGB: {e}", mode=image.mode
        ) from e


def preprocess(raw_image: RawImage) -> np.ndarray:
    """Normalize an image into a (1, 224, 224, 3) float32 tensor.

    Args:
        raw_image: Encoded bytes, a binary file object, a path, or a
            Pillow image.

    Returns:
        Tensor with values in [0, 1].

    Raises:
        DecodeError: If the input is not a valid image.
        UnsupportedFormatError: If the image cannot be converted to RGB.
    """
    with _open_image(raw_image) as image:
        original_size, original_mode = image.size, image.mode
        rgb = to_rgb(image)
        resized = rgb.resize((IMAGE_SIZE, IMAGE_SIZE), Image.Resampling.BILINEAR)
        try:
            pixels = np.asarray(resized, dtype=np.float32)
        finally:
            if resized is not image:
                resized.close()
            if rgb is not image:
                rgb.close()

    tensor = np.expand_dims(pixels / PIXEL_SCALE, axis=0)
    logger.debug("Preprocessed %s image %s -> %s", original_mode, original_size, tensor.shape)
    return tensor


class ImagePreprocessor:
    """Scoped access to preprocessed tensors.

    Usage:
        with ImagePreprocessor().tensor(image_bytes) as tensor:
            prediction = classifier.classify(tensor)
    """

    @contextmanager
    def tensor(self, raw_image: RawImage) -> Generator[np.ndarray, None, None]:
        """Yield the preprocessed tensor for the duration of the block.

        The tensor is read-only and the preprocessor drops its own
        reference on every exit path, including when the caller raises.
        numpy frees the buffer once the caller's binding goes too, so
        callers should not keep the tensor past the block.
        """
        tensor = preprocess(raw_image)
        tensor.flags.writeable = False
        try:
            yield tensor
        finally:
            del tensor

    def __call__(self, raw_image: RawImage) -> np.ndarray:
        return preprocess(raw_image)
