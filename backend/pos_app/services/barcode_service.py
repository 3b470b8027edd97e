"""
Barcode acquisition: turns camera frames or uploaded photos into barcode
strings and feeds them to the cart engine.

Two sources share one forwarding path:
- CameraBarcodeSource: continuous decode loop over a live video device
- ImageBarcodeSource: single decode attempt over an uploaded still image

Symbol decoding uses ZBar (pyzbar); camera capture uses OpenCV.
"""
import logging
import sys
import threading
from abc import ABC
from io import BytesIO
from typing import Any, Callable, List, Optional, Protocol

from PIL import Image, UnidentifiedImageError

from pos_app.config import settings
from pos_app.exceptions import (
    CameraStreamError,
    DecodeFailedError,
    InvalidFileTypeError,
    NoBarcodeInImageError,
    NoCameraFoundError,
    PosError,
)
from pos_app.services.cart_engine import CartEngine, LineItemChange

logger = logging.getLogger(__name__)


class BarcodeDecoder(Protocol):
    def decode(self, image: Any) -> Optional[str]:
        """Return the first symbol found, or None when the image holds no symbol"""
        ...


class PyzbarDecoder:
    """ZBar-backed decoder for PIL images and OpenCV frames"""

    def decode(self, image: Any) -> Optional[str]:
        try:
            from pyzbar import pyzbar
        except ImportError as e:
            # Raised when the ZBar shared library is missing
            raise DecodeFailedError(f"Barcode decoder unavailable: {str(e)}")

        if getattr(image, "ndim", None) == 3:
            # OpenCV frames are BGR; ZBar needs a single 8-bit channel
            import cv2
            image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        try:
            symbols = pyzbar.decode(image)
        except Exception as e:
            raise DecodeFailedError(f"Barcode decoder error: {str(e)}")

        if not symbols:
            return None
        symbol = symbols[0]
        logger.debug(f"Decoded {symbol.type} symbol")
        return symbol.data.decode("utf-8", errors="replace")


class ConfirmationCue(Protocol):
    def play(self) -> None:
        ...


class TerminalBell:
    """Rings the terminal bell of the POS console"""

    def play(self) -> None:
        sys.stdout.write("\a")
        sys.stdout.flush()


def play_cue(cue: Optional[ConfirmationCue]) -> None:
    """Best-effort confirmation sound; a failing speaker never fails a scan"""
    if cue is None or not settings.scan_cue_enabled:
        return
    try:
        cue.play()
    except Exception as e:
        logger.debug(f"Confirmation cue failed: {str(e)}")


def downscale(image: Image.Image, max_dimension: int) -> Image.Image:
    """
    Shrink so the longest side is at most `max_dimension`, keeping aspect ratio.

    Nearest-neighbour resampling keeps bar edges hard; smoothing blurs them
    and hurts decoding. Images already within bounds are returned unchanged.
    """
    width, height = image.size
    longest = max(width, height)
    if longest <= max_dimension:
        return image
    scale = max_dimension / longest
    new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return image.resize(new_size, resample=Image.Resampling.NEAREST)


class BarcodeSource(ABC):
    """Common forwarding path from a decoded barcode to the cart engine"""

    def __init__(
        self,
        engine: CartEngine,
        decoder: Optional[BarcodeDecoder] = None,
        cue: Optional[ConfirmationCue] = None,
    ):
        self.engine = engine
        self.decoder = decoder or PyzbarDecoder()
        self.cue = cue

    def forward(self, barcode: str) -> LineItemChange:
        return self.engine.scan_barcode(barcode)


class ImageBarcodeSource(BarcodeSource):
    """One-shot decode of an uploaded photo"""

    def __init__(self, engine, decoder=None, cue=None, max_dimension: Optional[int] = None):
        super().__init__(engine, decoder, cue)
        self.max_dimension = max_dimension or settings.max_image_dimension

    def read_barcode(self, content: bytes, content_type: Optional[str]) -> str:
        """
        Decode a single barcode from image bytes without touching the bill.

        Raises:
            InvalidFileTypeError: media type is not image/*
            NoBarcodeInImageError: the image holds no readable symbol
            DecodeFailedError: the image could not be read or decoded
        """
        if not content_type or not content_type.lower().startswith("image/"):
            raise InvalidFileTypeError(
                f"Expected an image file, got {content_type or 'unknown type'}",
                content_type=content_type,
            )

        try:
            source = Image.open(BytesIO(content))
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            logger.warning(f"Uploaded file is not a readable image: {str(e)}")
            raise DecodeFailedError("Could not open the uploaded image")

        with source:
            try:
                source.load()
                resized = downscale(source, self.max_dimension)
            except (Image.DecompressionBombError, OSError) as e:
                logger.warning(f"Failed to load uploaded image: {str(e)}")
                raise DecodeFailedError("Could not read the uploaded image")
            try:
                logger.info(
                    f"Decoding uploaded image {source.size[0]}x{source.size[1]} "
                    f"(resampled to {resized.size[0]}x{resized.size[1]})"
                )
                barcode = self.decoder.decode(resized)
            finally:
                if resized is not source:
                    resized.close()

        if not barcode:
            raise NoBarcodeInImageError()
        return barcode

    def scan(self, content: bytes, content_type: Optional[str]) -> LineItemChange:
        barcode = self.read_barcode(content, content_type)
        play_cue(self.cue)
        logger.info(f"Barcode {barcode} read from uploaded image")
        return self.forward(barcode)


class VideoDeviceProvider(Protocol):
    def list_devices(self) -> List[int]:
        ...

    def open(self, device: int) -> Any:
        """Return an object with read() -> (ok, frame) and release()"""
        ...


class OpenCVDevices:
    """Video input devices reachable through OpenCV"""

    def __init__(self, probe_limit: Optional[int] = None):
        self.probe_limit = probe_limit or settings.camera_probe_limit

    def list_devices(self) -> List[int]:
        import cv2

        devices = []
        for index in range(self.probe_limit):
            capture = cv2.VideoCapture(index)
            try:
                if capture.isOpened():
                    devices.append(index)
            finally:
                capture.release()
        return devices

    def open(self, device: int) -> Any:
        import cv2

        capture = cv2.VideoCapture(device)
        if not capture.isOpened():
            capture.release()
            raise CameraStreamError(f"Could not open camera {device}", device=device)
        return capture


class CameraBarcodeSource(BarcodeSource):
    """
    Continuous scanning from the first available camera.

    The decode loop runs on a worker thread. Every decoded frame goes straight
    to the cart engine; repeat reads of the same code simply raise the
    quantity. A stream failure ends the loop and the camera stays off until
    start() is called again. The capture device is released in the worker's
    finally block, and stop() waits for the worker, so the device is free once
    stop() returns.
    """

    def __init__(
        self,
        engine,
        decoder=None,
        cue=None,
        devices: Optional[VideoDeviceProvider] = None,
        on_error: Optional[Callable[[PosError], None]] = None,
        frame_interval: Optional[float] = None,
    ):
        super().__init__(engine, decoder, cue)
        self.devices = devices or OpenCVDevices()
        self.on_error = on_error
        self.frame_interval = (
            frame_interval if frame_interval is not None else settings.camera_frame_interval_seconds
        )
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.device: Optional[int] = None
        self.last_barcode: Optional[str] = None
        self.last_error: Optional[PosError] = None
        self.scan_count = 0

    @property
    def active(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> int:
        """
        Open the first camera and begin decoding.

        Returns:
            Index of the device in use

        Raises:
            NoCameraFoundError: no video input device is available
            CameraStreamError: the device could not be opened
        """
        with self._state_lock:
            if self.active:
                return self.device

            devices = self.devices.list_devices()
            if not devices:
                raise NoCameraFoundError()

            device = devices[0]
            capture = self.devices.open(device)
            self.device = device
            self.last_error = None
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(capture, device, self._stop_event),
                name=f"camera-scan-{device}",
                daemon=True,
            )
            self._thread.start()
            logger.info(f"Camera scanning started on device {device}")
            return device

    def stop(self) -> None:
        """Cancel the decode loop and wait until the camera is released"""
        with self._state_lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()
            if thread is not threading.current_thread():
                thread.join(timeout=settings.camera_join_timeout_seconds)
                if thread.is_alive():
                    logger.warning(f"Camera worker on device {self.device} did not stop in time")
            self._thread = None
            logger.info(f"Camera scanning stopped on device {self.device}")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    def status(self) -> dict:
        return {
            "active": self.active,
            "device": self.device,
            "last_barcode": self.last_barcode,
            "last_error": self.last_error.message if self.last_error else None,
            "last_error_code": self.last_error.code if self.last_error else None,
            "scan_count": self.scan_count,
        }

    def _report(self, error: PosError) -> None:
        self.last_error = error
        if self.on_error is not None:
            try:
                self.on_error(error)
            except Exception:
                logger.exception("Camera error callback failed")

    def _handle_code(self, barcode: str) -> None:
        self.last_barcode = barcode
        try:
            self.forward(barcode)
        except PosError as e:
            # Unknown products and a closed bill are reported, scanning continues
            logger.info(f"Camera scan {barcode} rejected: {e.message}")
            self._report(e)
            return
        self.scan_count += 1
        play_cue(self.cue)

    def _run(self, capture: Any, device: int, stop_event: threading.Event) -> None:
        try:
            while not stop_event.is_set():
                ok, frame = capture.read()
                if not ok or frame is None:
                    raise CameraStreamError(f"Camera {device} stopped delivering frames", device=device)

                try:
                    barcode = self.decoder.decode(frame)
                except DecodeFailedError as e:
                    logger.debug(f"Frame decode failed: {e.message}")
                    barcode = None

                if barcode:
                    self._handle_code(barcode)
                stop_event.wait(self.frame_interval)
        except CameraStreamError as e:
            logger.error(f"Camera stream error: {e.message}")
            self._report(e)
        except Exception as e:
            logger.error(f"Camera stream error on device {device}: {str(e)}", exc_info=True)
            self._report(CameraStreamError(f"Camera {device} failed: {str(e)}", device=device))
        finally:
            capture.release()
            logger.info(f"Camera {device} released")
