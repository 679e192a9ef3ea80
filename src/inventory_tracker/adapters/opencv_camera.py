"""OpenCV camera backend decoding frames with pyzbar."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import cv2
from pyzbar.pyzbar import ZBarSymbol, decode

from inventory_tracker.domain.scanner import (
    BarcodeFormat,
    CameraDevice,
    CameraTarget,
    ScanConfig,
    ScanRegion,
)
from inventory_tracker.services.scanner import (
    NO_CODE_FOUND,
    CameraBackend,
    CameraPlatformError,
)

_SYMBOLS = {
    BarcodeFormat.QR_CODE: ZBarSymbol.QRCODE,
    BarcodeFormat.EAN_13: ZBarSymbol.EAN13,
    BarcodeFormat.UPC_A: ZBarSymbol.UPCA,
    BarcodeFormat.CODE_128: ZBarSymbol.CODE128,
    BarcodeFormat.CODE_39: ZBarSymbol.CODE39,
    BarcodeFormat.EAN_8: ZBarSymbol.EAN8,
    BarcodeFormat.UPC_E: ZBarSymbol.UPCE,
    BarcodeFormat.ITF: ZBarSymbol.I25,
}

_logger = logging.getLogger(__name__)


@dataclass
class OpenCvCameraBackend(CameraBackend):
    """Camera backend reading frames with OpenCV.

    OpenCV cannot pick a camera by facing mode, so facing-mode targets open
    the default device.
    """

    max_devices: int = 4
    _capture: "cv2.VideoCapture | None" = field(default=None, init=False)
    _task: "asyncio.Task[None] | None" = field(default=None, init=False)

    async def list_cameras(self) -> list[CameraDevice]:
        """Probe device indices and return the ones that open."""
        return await asyncio.to_thread(self._probe_devices)

    async def start(
        self,
        target: CameraTarget,
        config: ScanConfig,
        on_decoded: Callable[[str], None],
        on_frame_error: Callable[[str], None],
    ) -> None:
        """Open the camera and run the decode loop in the background."""
        if self._task is not None:
            raise CameraPlatformError("NotReadableError", "Camera already streaming")
        index = int(target.device_id) if target.device_id is not None else 0
        capture = await asyncio.to_thread(cv2.VideoCapture, index)
        if not capture.isOpened():
            capture.release()
            raise CameraPlatformError("NotReadableError", f"Cannot open camera {index}")
        self._capture = capture
        _logger.info("Opened camera %s at %s fps", index, config.fps)
        symbols = [_SYMBOLS[symbol_format] for symbol_format in config.formats]
        self._task = asyncio.create_task(
            self._scan_loop(capture, config, symbols, on_decoded, on_frame_error)
        )

    async def stop(self) -> None:
        """Cancel the decode loop and release the device."""
        task, self._task = self._task, None
        capture, self._capture = self._capture, None
        try:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        finally:
            if capture is not None:
                await asyncio.to_thread(capture.release)

    def _probe_devices(self) -> list[CameraDevice]:
        cameras: list[CameraDevice] = []
        for index in range(self.max_devices):
            capture = cv2.VideoCapture(index)
            try:
                if capture.isOpened():
                    cameras.append(CameraDevice(id=str(index), label=f"Camera {index}"))
            finally:
                capture.release()
        return cameras

    async def _scan_loop(  # noqa: PLR0913
        self,
        capture: "cv2.VideoCapture",
        config: ScanConfig,
        symbols: list[ZBarSymbol],
        on_decoded: Callable[[str], None],
        on_frame_error: Callable[[str], None],
    ) -> None:
        interval = 1 / config.fps
        while True:
            try:
                await _scan_frame(capture, config, symbols, on_decoded, on_frame_error)
            except Exception as exc:
                _logger.warning("Frame scan failed: %s", exc)
                on_frame_error(f"Frame scan failed: {exc}")
            await asyncio.sleep(interval)


async def _scan_frame(
    capture: "cv2.VideoCapture",
    config: ScanConfig,
    symbols: list[ZBarSymbol],
    on_decoded: Callable[[str], None],
    on_frame_error: Callable[[str], None],
) -> None:
    """Read one frame and report what it decodes to."""
    ok, frame = await asyncio.to_thread(capture.read)
    if not ok:
        on_frame_error("Failed to read camera frame")
        return
    gray = cv2.cvtColor(_center_crop(frame, config.region), cv2.COLOR_BGR2GRAY)
    results = await asyncio.to_thread(decode, gray, symbols)
    if not results:
        on_frame_error(NO_CODE_FOUND)
    for result in results:
        on_decoded(result.data.decode("utf-8", errors="replace"))


def _center_crop(frame: object, region: ScanRegion) -> object:
    """Cut the central detection region out of a frame."""
    height, width = frame.shape[:2]  # type: ignore[attr-defined]
    crop_height = min(region.height, height)
    crop_width = min(region.width, width)
    top = (height - crop_height) // 2
    left = (width - crop_width) // 2
    return frame[top : top + crop_height, left : left + crop_width]  # type: ignore[index]
