"""Matrix transport abstraction for HUB75 LED panels."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from .models import DeviceError, Frame, MatrixConfig

try:
    from rgbmatrix import RGBMatrix, RGBMatrixOptions  # type: ignore
except Exception:  # pragma: no cover
    RGBMatrix = None
    RGBMatrixOptions = None


def rgbmatrix_available() -> bool:
    return RGBMatrix is not None


class Transport(Protocol):
    @property
    def is_open(self) -> bool: ...

    def open(self, config: MatrixConfig) -> None: ...

    def blit(self, frame: Frame) -> None: ...

    def close(self) -> None: ...


class MatrixTransport:
    """Thin wrapper over rpi-rgb-led-matrix with the panel options applied once per open."""

    def __init__(self) -> None:
        self._matrix: Any | None = None
        self.config: MatrixConfig | None = None

    @property
    def is_open(self) -> bool:
        return self._matrix is not None

    @staticmethod
    def build_options(config: MatrixConfig) -> Any:
        options = RGBMatrixOptions()
        options.rows = config.rows
        options.cols = config.cols
        options.parallel = config.parallel
        options.chain_length = config.chain_length
        options.brightness = config.brightness
        options.hardware_mapping = config.hardware_mapping
        options.disable_hardware_pulsing = config.disable_hardware_pulsing
        options.inverse_colors = config.inverse_colors
        options.pwm_bits = config.pwm_bits
        options.pwm_lsb_nanoseconds = config.pwm_lsb_nanoseconds
        options.show_refresh_rate = config.show_refresh_rate
        options.drop_privileges = False
        return options

    def open(self, config: MatrixConfig) -> None:
        if RGBMatrix is None:
            raise DeviceError("rgbmatrix is required")
        if self.is_open:
            return
        self.config = config
        try:
            self._matrix = RGBMatrix(options=self.build_options(config))
        except Exception as exc:
            raise DeviceError(f"matrix open failed: {exc}") from exc

    def blit(self, frame: Frame) -> None:
        if not self.is_open:
            raise DeviceError("Matrix is not open")
        try:
            self._matrix.SetImage(frame.to_image())
        except Exception as exc:
            raise DeviceError(f"matrix blit failed: {exc}") from exc

    def close(self) -> None:
        if self._matrix is not None:
            matrix, self._matrix = self._matrix, None
            try:
                matrix.Clear()
            except Exception as exc:
                raise DeviceError(f"matrix close failed: {exc}") from exc


class FileTransport:
    """Dry-run transport: every blit is written to a PNG instead of the panel."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.config: MatrixConfig | None = None
        self.frames_written = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, config: MatrixConfig) -> None:
        self.config = config
        self._open = True

    def blit(self, frame: Frame) -> None:
        if not self._open:
            raise DeviceError("File transport is not open")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            frame.to_image().save(self.path, format="PNG")
        except OSError as exc:
            raise DeviceError(f"frame write failed: {exc}") from exc
        self.frames_written += 1

    def close(self) -> None:
        self._open = False
