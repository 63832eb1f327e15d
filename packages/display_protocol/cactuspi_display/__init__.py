"""Display package for HUB75 RGB LED matrix panels."""

from .models import ROTATIONS, DeviceError, Frame, MatrixConfig, SessionState
from .session import DisplaySession, DisplaySessionManager
from .transport import FileTransport, MatrixTransport, Transport, rgbmatrix_available

__all__ = [
    "ROTATIONS",
    "DeviceError",
    "DisplaySession",
    "DisplaySessionManager",
    "FileTransport",
    "Frame",
    "MatrixConfig",
    "MatrixTransport",
    "SessionState",
    "Transport",
    "rgbmatrix_available",
]
