"""Typed models for frames, matrix configuration and session state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from PIL import Image


ROTATIONS = (0, 90, 180, 270)


class DeviceError(RuntimeError):
    """Opening or writing to the display device failed."""


class SessionState(str, Enum):
    IDLE = "Idle"
    OPENING = "Opening"
    PLAYING = "Playing"
    CLOSED = "Closed"


@dataclass
class MatrixConfig:
    rows: int = 32
    cols: int = 32
    parallel: int = 1
    chain_length: int = 2
    brightness: int = 90
    hardware_mapping: str = "adafruit-hat"
    disable_hardware_pulsing: bool = True
    inverse_colors: bool = False
    pwm_bits: int = 5
    pwm_lsb_nanoseconds: int = 70
    show_refresh_rate: bool = False
    rotation: int = 0

    @property
    def width(self) -> int:
        return self.cols * self.chain_length

    @property
    def height(self) -> int:
        return self.rows * self.parallel


@dataclass(frozen=True)
class Frame:
    width: int
    height: int
    pixel_format: str
    bytes: bytes

    @classmethod
    def from_image(cls, image: Image.Image) -> "Frame":
        if image.mode != "RGB":
            image = image.convert("RGB")
        return cls(width=image.width, height=image.height, pixel_format="RGB888", bytes=image.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGB", (self.width, self.height), self.bytes)

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        offset = (y * self.width + x) * 3
        r, g, b = self.bytes[offset : offset + 3]
        return (r, g, b)

    def rotated(self, angle: int) -> "Frame":
        """Rotate counter-clockwise by a right angle; 0 returns the frame unchanged."""
        if angle not in ROTATIONS:
            raise ValueError(f"Unsupported rotation: {angle}")
        if angle == 0:
            return self
        transpose = {
            90: Image.Transpose.ROTATE_90,
            180: Image.Transpose.ROTATE_180,
            270: Image.Transpose.ROTATE_270,
        }[angle]
        return Frame.from_image(self.to_image().transpose(transpose))
