"""Exception hierarchy for Repeat2Me.

Decode and capture failures are recoverable and carry enough context to be
shown to the user. ``RangeError`` signals a trim controller bug and is not
meant to be displayed.
"""

from typing import Any, Optional


class Repeat2MeError(Exception):
    """Base exception for all Repeat2Me errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class DecodeError(Repeat2MeError):
    """Raised when a resource cannot be fetched or is not decodable audio."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, details={"url": url})
        self.url = url


class ResourceNotFoundError(Repeat2MeError, KeyError):
    """Raised when a blob URL is unknown or has been revoked."""

    def __init__(self, url: str):
        super().__init__(f"Resource not found: {url}", details={"url": url})
        self.url = url

    def __str__(self) -> str:
        return self.message


class CaptureError(Repeat2MeError):
    """Raised when the microphone stream cannot be acquired."""

    user_message = "Could not start recording."

    def __init__(self, message: str, device_index: Optional[int] = None):
        super().__init__(message, details={"device_index": device_index})
        self.device_index = device_index


class PermissionDeniedError(CaptureError):
    """Microphone access was refused by the platform."""

    user_message = "Microphone access was denied. Allow microphone access and try again."


class DeviceNotFoundError(CaptureError):
    """No usable input device is available."""

    user_message = "No microphone was found. Connect a microphone and try again."


class UnsupportedError(CaptureError):
    """The device cannot record with the requested format."""

    user_message = "Recording is not supported with the current audio settings."


class RangeError(Repeat2MeError, ValueError):
    """Raised when a frame range is empty or out of bounds."""

    def __init__(self, message: str, start_frame: int, end_frame: int, frame_count: int):
        super().__init__(
            message,
            details={
                "start_frame": start_frame,
                "end_frame": end_frame,
                "frame_count": frame_count,
            },
        )
        self.start_frame = start_frame
        self.end_frame = end_frame
        self.frame_count = frame_count
