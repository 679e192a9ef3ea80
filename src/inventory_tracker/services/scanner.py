"""Camera barcode scanner session lifecycle."""

import asyncio
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from inventory_tracker.domain.scanner import (
    CameraDevice,
    CameraTarget,
    ScanConfig,
    ScannerState,
)

NO_CODE_FOUND = "No barcode or QR code found"
BACK_CAMERA_HINTS = ("back", "rear", "environment", "main", "primary")

PERMISSION_MESSAGE = (
    "Camera access was denied. Please allow camera access and try again."
)
NO_CAMERA_MESSAGE = (
    "No camera found. Please make sure your camera is connected and try again."
)
IN_USE_MESSAGE = (
    "Camera is in use by another application. "
    "Please close other apps using the camera and try again."
)
CONSTRAINT_MESSAGE = (
    "Camera does not meet the required specifications. "
    "Please try again with different camera settings."
)

_logger = logging.getLogger(__name__)


class ScannerError(Exception):
    """Camera scanning could not be started."""


class NoCameraError(ScannerError):
    """No camera device is available."""


class CameraPermissionError(ScannerError):
    """Camera access was denied."""


class CameraInUseError(ScannerError):
    """Camera is held by another application."""


class CameraConstraintError(ScannerError):
    """Camera cannot satisfy the requested constraints."""


class CameraUnknownError(ScannerError):
    """Unclassified camera failure."""


class CameraPlatformError(Exception):
    """Failure reported by a camera backend, tagged with a platform error name."""

    def __init__(self, name: str, message: str = "") -> None:
        super().__init__(message or name)
        self.name = name


class CameraBackend(Protocol):
    """Interface for a camera decoding library."""

    async def list_cameras(self) -> list[CameraDevice]:
        """Enumerate available cameras."""

    async def start(
        self,
        target: CameraTarget,
        config: ScanConfig,
        on_decoded: Callable[[str], None],
        on_frame_error: Callable[[str], None],
    ) -> None:
        """Open the camera and begin decoding frames."""

    async def stop(self) -> None:
        """Stop decoding and release the camera."""


@dataclass
class NoCameraBackend(CameraBackend):
    """Backend for hosts without a camera."""

    async def list_cameras(self) -> list[CameraDevice]:
        """Report no devices."""
        return []

    async def start(
        self,
        target: CameraTarget,
        config: ScanConfig,
        on_decoded: Callable[[str], None],
        on_frame_error: Callable[[str], None],
    ) -> None:
        """Fail as a missing device would."""
        raise CameraPlatformError("NotFoundError", "No camera backend configured")

    async def stop(self) -> None:
        """Nothing to release."""


class CameraSelection(Protocol):
    """Strategy choosing which camera a session opens."""

    async def select(self, backend: CameraBackend) -> CameraTarget:
        """Return the camera to open."""


@dataclass(frozen=True)
class FacingModeSelection(CameraSelection):
    """Request a camera by facing mode when enumeration is unreliable."""

    facing_mode: str = "environment"

    async def select(self, backend: CameraBackend) -> CameraTarget:
        """Return a facing-mode target without enumerating devices."""
        return CameraTarget(facing_mode=self.facing_mode)


@dataclass(frozen=True)
class EnumeratedCameraSelection(CameraSelection):
    """Enumerate cameras and prefer one that looks rear-facing."""

    hints: tuple[str, ...] = BACK_CAMERA_HINTS

    async def select(self, backend: CameraBackend) -> CameraTarget:
        """Return the preferred enumerated camera."""
        cameras = await backend.list_cameras()
        if not cameras:
            raise NoCameraError(NO_CAMERA_MESSAGE)
        camera = pick_camera(cameras, self.hints)
        _logger.info("Selected camera: %s", camera.label or camera.id)
        return CameraTarget(device_id=camera.id)


def pick_camera(
    cameras: list[CameraDevice], hints: tuple[str, ...] = BACK_CAMERA_HINTS
) -> CameraDevice:
    """Return the first camera whose label matches a hint, else the first one."""
    for camera in cameras:
        label = camera.label.lower()
        if any(hint in label for hint in hints):
            return camera
    return cameras[0]


def selection_for(enumeration_supported: bool) -> CameraSelection:
    """Pick the camera selection strategy for the platform."""
    if enumeration_supported:
        return EnumeratedCameraSelection()
    return FacingModeSelection()


_PLATFORM_ERRORS: dict[str, tuple[type[ScannerError], str]] = {
    "NotAllowedError": (CameraPermissionError, PERMISSION_MESSAGE),
    "NotFoundError": (NoCameraError, NO_CAMERA_MESSAGE),
    "NotReadableError": (CameraInUseError, IN_USE_MESSAGE),
    "OverconstrainedError": (CameraConstraintError, CONSTRAINT_MESSAGE),
}


def classify_camera_error(exc: Exception) -> ScannerError:
    """Translate a backend failure into a user-facing scanner error."""
    if isinstance(exc, ScannerError):
        return exc
    name = getattr(exc, "name", None)
    if isinstance(name, str) and name in _PLATFORM_ERRORS:
        error_type, message = _PLATFORM_ERRORS[name]
        return error_type(message)
    detail = str(exc) or "Unknown error"
    return CameraUnknownError(
        f"Failed to initialize camera: {detail}. "
        "Please check your camera permissions and try again."
    )


@dataclass
class ScanInbox:
    """Holds the most recently decoded barcode for the view layer."""

    barcode: str | None = None

    def record(self, barcode: str) -> None:
        """Store a decoded barcode, replacing the previous one."""
        self.barcode = barcode

    def latest(self) -> str | None:
        """Return the most recent barcode, if any."""
        return self.barcode

    def clear(self) -> None:
        """Forget the stored barcode."""
        self.barcode = None


@dataclass
class BarcodeScannerAdapter:
    """State machine around a single camera scanning session.

    Only one session exists at a time. ``start`` stops any running session
    before opening a new one, and ``stop`` always leaves the adapter able to
    start again even if the backend fails to release the camera.
    """

    backend: CameraBackend
    enumeration_supported: bool = True
    config: ScanConfig = field(default_factory=ScanConfig)
    state: ScannerState = field(default=ScannerState.IDLE, init=False)
    error_message: str | None = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _session_ids: "itertools.count[int]" = field(
        default_factory=lambda: itertools.count(1), init=False, repr=False
    )
    _session_id: int | None = field(default=None, init=False, repr=False)
    _on_barcode: Callable[[str], None] | None = field(
        default=None, init=False, repr=False
    )

    async def start(self, on_barcode: Callable[[str], None]) -> None:
        """Open a scanning session that reports barcodes to ``on_barcode``."""
        async with self._lock:
            await self._stop_session()
            session_id = next(self._session_ids)
            self._session_id = session_id
            self._on_barcode = on_barcode
            self.state = ScannerState.INITIALIZING
            self.error_message = None
            selection = selection_for(self.enumeration_supported)
            try:
                target = await selection.select(self.backend)
                await self.backend.start(
                    target,
                    self.config,
                    lambda text: self._handle_decoded(session_id, text),
                    lambda message: self._handle_frame_error(session_id, message),
                )
            except Exception as exc:
                error = classify_camera_error(exc)
                _logger.error("Camera initialization failed: %s", exc)
                self._session_id = None
                self._on_barcode = None
                await self._release()
                self.state = ScannerState.ERROR
                self.error_message = str(error)
                if error is exc:
                    raise
                raise error from exc
            self.state = ScannerState.ACTIVE
            _logger.info("Camera ready (session %s)", session_id)

    async def stop(self) -> None:
        """Stop the current session and return to idle."""
        async with self._lock:
            await self._stop_session()
            self.state = ScannerState.IDLE
            self.error_message = None

    async def close(self) -> None:
        """Release the camera when the owning view goes away."""
        await self.stop()

    @property
    def is_active(self) -> bool:
        """Return True while a session is decoding frames."""
        return self.state is ScannerState.ACTIVE

    async def _stop_session(self) -> None:
        if self._session_id is None:
            return
        self._session_id = None
        self._on_barcode = None
        await self._release()
        self.state = ScannerState.IDLE

    async def _release(self) -> None:
        try:
            await self.backend.stop()
        except Exception:
            _logger.exception("Error stopping scanner")

    def _handle_decoded(self, session_id: int, text: str) -> None:
        if session_id != self._session_id or self._on_barcode is None:
            return
        _logger.info("Barcode detected: %s", text)
        self._on_barcode(text)

    def _handle_frame_error(self, session_id: int, message: str) -> None:
        if session_id != self._session_id or NO_CODE_FOUND in message:
            return
        _logger.debug("Scanning error: %s", message)
