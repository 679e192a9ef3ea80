"""Domain models for camera barcode scanning."""

from dataclasses import dataclass, field
from enum import StrEnum


class ScannerState(StrEnum):
    """Lifecycle state of a scanner session."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    ERROR = "error"


class BarcodeFormat(StrEnum):
    """Symbol formats requested from the decoding backend."""

    QR_CODE = "QR_CODE"
    EAN_13 = "EAN_13"
    UPC_A = "UPC_A"
    CODE_128 = "CODE_128"
    CODE_39 = "CODE_39"
    EAN_8 = "EAN_8"
    UPC_E = "UPC_E"
    ITF = "ITF"


@dataclass(frozen=True)
class CameraDevice:
    """Camera reported by device enumeration."""

    id: str
    label: str


@dataclass(frozen=True)
class CameraTarget:
    """Camera to open, either by device id or by facing mode."""

    device_id: str | None = None
    facing_mode: str | None = None


@dataclass(frozen=True)
class ScanRegion:
    """Central detection box in pixels."""

    width: int = 250
    height: int = 250


@dataclass(frozen=True)
class ScanConfig:
    """Session parameters passed to the decoding backend."""

    fps: int = 10
    region: ScanRegion = field(default_factory=ScanRegion)
    formats: tuple[BarcodeFormat, ...] = tuple(BarcodeFormat)
