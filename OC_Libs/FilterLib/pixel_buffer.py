"""
Pixel buffer data models for Open Canvas.

This module defines the in-memory image representation every filter pass
reads and writes, plus the rounding helpers that keep channel values inside
the byte range.

Classes:
    PixelBuffer: RGBA image, row-major, alpha last, one byte per channel
    EdgeMask: Single-channel edge strength / edge decision map

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
    RgbColor: A tuple of 3 integers representing RGB color values (0-255)

Rounding:
    Writing a float into a buffer clamps to [0, 255] and rounds half to even,
    the way a clamped byte array stores values (``to_channel``). Algorithms
    that explicitly round before storing use round-half-up (``round_half_up``).
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from OC_Libs.constants import CHANNEL_COUNT, CHANNEL_MAX, CHANNEL_MIN
from OC_Libs.FilterLib.errors import InvalidBufferError

RgbaColor = Tuple[int, int, int, int]
RgbColor = Tuple[int, int, int]
ColorLike = Union[Sequence[int], Sequence[float]]


def round_half_up(values: Any) -> np.ndarray:
    """Round to the nearest integer, ties away from zero for non-negatives."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def to_channel(values: Any) -> np.ndarray:
    """Clamp to the byte range and round half to even (byte storage)."""
    clipped = np.clip(np.asarray(values, dtype=np.float64), CHANNEL_MIN, CHANNEL_MAX)
    return np.rint(clipped).astype(np.uint8)


def clamp_round(values: Any) -> np.ndarray:
    """Round half up, then clamp to the byte range."""
    return np.clip(round_half_up(values), CHANNEL_MIN, CHANNEL_MAX).astype(np.uint8)


def normalize_color(color: ColorLike) -> RgbaColor:
    """
    Coerce an RGB or RGBA sequence into a clamped RGBA tuple.

    Args:
        color: 3 or 4 numeric channel values; alpha defaults to 255

    Returns:
        RGBA tuple with every channel in [0, 255]

    Raises:
        ValueError: If the color does not have 3 or 4 channels
    """
    values = [float(v) for v in color]
    if len(values) == 3:
        values.append(CHANNEL_MAX)
    if len(values) != CHANNEL_COUNT:
        raise ValueError(f"Color must have 3 or 4 channels, got {len(values)}")
    return tuple(int(v) for v in clamp_round(values))  # type: ignore[return-value]


def _check_dimension(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidBufferError(f"{name} must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise InvalidBufferError(f"{name} must be > 0, got {value}")
    return int(value)


@dataclass(eq=False)
class PixelBuffer:
    """
    RGBA pixel buffer.

    ``pixels`` is a ``numpy.uint8`` array of shape ``(height, width, 4)``.
    A flat row-major array of ``width * height * 4`` values is accepted and
    reshaped. Non-byte arrays are clamped and rounded on construction.

    Raises:
        InvalidBufferError: If width/height are not positive integers or the
                            pixel array does not match them
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        self.width = _check_dimension("width", self.width)
        self.height = _check_dimension("height", self.height)
        self.pixels = self._coerce_pixels(self.pixels)

    def _coerce_pixels(self, pixels: Any) -> np.ndarray:
        try:
            array = np.asarray(pixels)
        except (TypeError, ValueError) as e:
            raise InvalidBufferError(f"Pixel data is not array-like: {e}") from e

        expected = self.width * self.height * CHANNEL_COUNT
        if array.size != expected:
            raise InvalidBufferError(
                f"Pixel array has {array.size} values, expected "
                f"{self.width}x{self.height}x{CHANNEL_COUNT} = {expected}"
            )

        if array.ndim == 1:
            array = array.reshape(self.height, self.width, CHANNEL_COUNT)
        elif array.shape != (self.height, self.width, CHANNEL_COUNT):
            raise InvalidBufferError(
                f"Pixel array shape {array.shape} does not match "
                f"({self.height}, {self.width}, {CHANNEL_COUNT})"
            )

        if array.dtype != np.uint8:
            if not np.issubdtype(array.dtype, np.number):
                raise InvalidBufferError(f"Pixel array must be numeric, got {array.dtype}")
            array = to_channel(array)

        return np.ascontiguousarray(array)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new(cls, width: int, height: int, color: ColorLike = (0, 0, 0, 255)) -> "PixelBuffer":
        """Create a buffer filled with a single color."""
        width = _check_dimension("width", width)
        height = _check_dimension("height", height)
        pixels = np.empty((height, width, CHANNEL_COUNT), dtype=np.uint8)
        pixels[:, :] = normalize_color(color)
        return cls(width, height, pixels)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: Union[bytes, bytearray, Iterable[int]]) -> "PixelBuffer":
        """
        Create a buffer from flat row-major RGBA bytes.

        Args:
            width: Image width in pixels
            height: Image height in pixels
            data: ``width * height * 4`` channel values

        Returns:
            A new PixelBuffer owning a copy of the data
        """
        if isinstance(data, (bytes, bytearray, memoryview)):
            array = np.frombuffer(bytes(data), dtype=np.uint8).copy()
        else:
            array = np.array(list(data))
        return cls(width, height, array)

    def copy(self) -> "PixelBuffer":
        """Return an independent copy of this buffer."""
        return PixelBuffer(self.width, self.height, self.pixels.copy())

    def with_rgb(self, rgb: Any) -> "PixelBuffer":
        """
        Return a copy with RGB replaced and alpha kept.

        Float values are stored with byte semantics (clamp, round half even).
        """
        pixels = self.pixels.copy()
        rgb_array = np.asarray(rgb)
        pixels[..., :3] = rgb_array if rgb_array.dtype == np.uint8 else to_channel(rgb_array)
        return PixelBuffer(self.width, self.height, pixels)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def rgb(self) -> np.ndarray:
        """View of the RGB channels, shape ``(height, width, 3)``."""
        return self.pixels[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        """View of the alpha channel, shape ``(height, width)``."""
        return self.pixels[..., 3]

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> RgbaColor:
        if not self.contains(x, y):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        return tuple(int(v) for v in self.pixels[y, x])  # type: ignore[return-value]

    def set_pixel(self, x: int, y: int, color: ColorLike) -> None:
        if not self.contains(x, y):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        self.pixels[y, x] = normalize_color(color)

    def to_bytes(self) -> bytes:
        """Flat row-major RGBA bytes."""
        return self.pixels.tobytes()

    def validate(self) -> None:
        """
        Re-check the buffer invariants.

        Useful before a pass runs on a buffer whose ``pixels`` attribute was
        replaced after construction.

        Raises:
            InvalidBufferError: If the invariants no longer hold
        """
        _check_dimension("width", self.width)
        _check_dimension("height", self.height)
        if not isinstance(self.pixels, np.ndarray) or self.pixels.dtype != np.uint8:
            raise InvalidBufferError("Pixel array must be a uint8 numpy array")
        if self.pixels.shape != (self.height, self.width, CHANNEL_COUNT):
            raise InvalidBufferError(
                f"Pixel array shape {self.pixels.shape} does not match "
                f"({self.height}, {self.width}, {CHANNEL_COUNT})"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.pixels, other.pixels)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


@dataclass(eq=False)
class EdgeMask:
    """
    Single-channel edge map, shape ``(height, width)``.

    In binary form 0 marks an edge and 255 marks background; in magnitude
    form each value is the clamped Sobel gradient strength.
    """

    width: int
    height: int
    values: np.ndarray
    binary: bool = True

    def to_buffer(self, alpha: Optional[np.ndarray] = None) -> PixelBuffer:
        """Replicate the mask into RGB; alpha defaults to opaque."""
        pixels = np.empty((self.height, self.width, CHANNEL_COUNT), dtype=np.uint8)
        pixels[..., :3] = self.values[..., None]
        pixels[..., 3] = CHANNEL_MAX if alpha is None else alpha
        return PixelBuffer(self.width, self.height, pixels)

    def edge_count(self) -> int:
        """Number of pixels marked as edge (binary masks only)."""
        if not self.binary:
            raise ValueError("edge_count is only defined for binary masks")
        return int(np.count_nonzero(self.values == 0))
