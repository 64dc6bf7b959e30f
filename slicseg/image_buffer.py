"""RGBA image buffer with edge-clamped sampling and PNG I/O."""
import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from slicseg.types import Color, DecodeError, EncodeError

logger = logging.getLogger(__name__)


class ImageBuffer:
    """
    Width x height x 4 byte image, row-major, RGBA per pixel.

    Alpha is carried through unchanged; only RGB is ever written back.
    """

    def __init__(self, data: np.ndarray):
        if data.ndim != 3 or data.shape[2] != 4 or data.dtype != np.uint8:
            raise ValueError(f"Expected (H, W, 4) uint8 array, got {data.shape} {data.dtype}")
        self.data = np.ascontiguousarray(data)
        self.height, self.width = data.shape[:2]

    @classmethod
    def zeros(cls, width: int, height: int) -> "ImageBuffer":
        """Allocate a zero-filled buffer."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def from_array(cls, array: np.ndarray) -> "ImageBuffer":
        """
        Wrap an (H, W, 3) or (H, W, 4) uint8 array.

        RGB input gets an opaque alpha channel.
        """
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3) or (H, W, 4) array, got {array.shape}")

        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array.astype(np.uint8), alpha], axis=-1)

        return cls(array.astype(np.uint8, copy=True))

    @classmethod
    def from_png(cls, path: Union[str, Path]) -> "ImageBuffer":
        """
        Decode an image file into an RGBA buffer.

        Args:
            path: Path to a PNG (any format Pillow reads is accepted)

        Returns:
            Decoded ImageBuffer

        Raises:
            DecodeError: If the file is missing, unreadable or malformed
        """
        path = Path(path)

        if not path.is_file():
            raise DecodeError(f"Image file not found: {path}")

        try:
            with Image.open(path) as img:
                img.load()
                rgba = img.convert('RGBA')
                data = np.array(rgba, dtype=np.uint8)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeError(f"Failed to decode image {path}: {e}") from e

        logger.info(f"Decoded {path} ({data.shape[1]}x{data.shape[0]})")
        return cls(data)

    def save_png(self, path: Union[str, Path]) -> None:
        """
        Encode the buffer as a PNG.

        Raises:
            EncodeError: If the file cannot be written
        """
        path = Path(path)
        try:
            Image.fromarray(self.data).save(path, format='PNG')
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to write image {path}: {e}") from e

        logger.info(f"Saved {path}")

    def get_color(self, x: int, y: int) -> Color:
        """Edge-clamped read: out-of-range coordinates return the nearest edge pixel."""
        x = min(max(int(x), 0), self.width - 1)
        y = min(max(int(y), 0), self.height - 1)
        r, g, b = self.data[y, x, :3]
        return Color(float(r), float(g), float(b))

    def set_color(self, x: int, y: int, color: Color) -> None:
        """Write RGB at (x, y); values are clipped to 0..255 and truncated."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        rgb = np.clip(color.as_tuple(), 0, 255).astype(np.uint8)
        self.data[y, x, :3] = rgb

    def get_byte_buffer(self) -> bytes:
        """Raw RGBA bytes, 4 * width * height long."""
        return self.data.tobytes()

    def rgb_array(self) -> np.ndarray:
        """Colors as a float64 (H, W, 3) array."""
        return self.data[..., :3].astype(np.float64)

    def alpha(self) -> np.ndarray:
        return self.data[..., 3]

    def copy(self) -> "ImageBuffer":
        return ImageBuffer(self.data.copy())

    @property
    def shape(self):
        return (self.height, self.width)

    def __len__(self) -> int:
        return self.data.size

    def __repr__(self) -> str:
        return f"ImageBuffer({self.width}x{self.height})"
