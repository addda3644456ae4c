"""
Camera QR scanner.

Frames are decoded by OpenCV on a background thread; decoded codes are handed
to the main loop through a queue so that scan handling stays on one thread.
At most one camera session is active at a time.
"""

import time
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Iterator, Optional, Union

import cv2

logger = logging.getLogger(__name__)


class CameraError(Exception):
    """Camera could not be opened."""
    pass


@dataclass
class QRScanEvent:
    """Represents a QR scan event."""
    timestamp: float
    qr_code: str
    source: str = "camera"


class CameraScanner:
    """
    QR scanner reading frames from an OpenCV capture device.

    A session decodes until the first QR code is found, then releases the
    camera. ``stop_scanning`` is idempotent and safe to call on every exit path.
    """

    def __init__(self, source: Union[int, str] = 0, frame_interval: float = 0.05,
                 stop_timeout: float = 2.0):
        self.source = self._parse_source(source)
        self.frame_interval = frame_interval
        self.stop_timeout = stop_timeout
        self._scans: "Queue[QRScanEvent]" = Queue()
        self._stop_event = threading.Event()
        self._scanner_thread: Optional[threading.Thread] = None

        logger.info(f"Camera scanner configured for source {self.source!r}")

    @staticmethod
    def _parse_source(source: Union[int, str]) -> Union[int, str]:
        if isinstance(source, str) and source.strip().isdigit():
            return int(source.strip())
        return source

    def start_scanning(self):
        """Open the camera and start decoding; an active session is stopped first."""
        if self._scanner_thread is not None:
            logger.info("Camera session already active, restarting")
            self.stop_scanning()
            # The old thread still owns its capture until it exits
            if self._scanner_thread is not None:
                raise CameraError("Previous camera session is still releasing the camera")

        # Drop decodes left over from an earlier session
        self._drain()

        capture = cv2.VideoCapture(self.source)
        if not capture.isOpened():
            capture.release()
            raise CameraError(f"Cannot open camera source {self.source!r}")

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._scanner_thread = threading.Thread(
            target=self._scan_loop,
            args=(capture, stop_event),
            daemon=True,
            name="QRScannerCamera"
        )
        self._scanner_thread.start()
        logger.info(f"Camera scanning started on {self.source!r}")

    def _scan_loop(self, capture, stop_event: threading.Event):
        """Decode frames until a QR code is found or the session is stopped."""
        detector = cv2.QRCodeDetector()
        try:
            while not stop_event.is_set():
                ok, frame = capture.read()
                if not ok or frame is None:
                    stop_event.wait(self.frame_interval)
                    continue

                text, _points, _straight = detector.detectAndDecode(frame)
                if text and text.strip():
                    self._scans.put(QRScanEvent(timestamp=time.time(), qr_code=text.strip()))
                    logger.debug("QR code decoded from camera frame")
                    stop_event.set()
                    break

                stop_event.wait(self.frame_interval)

        except Exception as e:
            logger.error(f"Error in camera scan loop: {e}")
        finally:
            capture.release()
            logger.debug("Camera released")

    def stop_scanning(self):
        """Stop the active session, if any, and wait for the camera to be released."""
        thread = self._scanner_thread
        if thread is None:
            return

        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=self.stop_timeout)
            if thread.is_alive():
                # Keep the reference so no second capture is opened meanwhile
                logger.warning(f"Camera thread did not stop within {self.stop_timeout}s")
                return
        self._scanner_thread = None

        logger.info("Camera scanning stopped")

    @contextmanager
    def session(self) -> Iterator["CameraScanner"]:
        """Scoped camera session; the camera is released however the block exits."""
        self.start_scanning()
        try:
            yield self
        finally:
            self.stop_scanning()

    def wait_for_scan(self, timeout: Optional[float] = None) -> Optional[QRScanEvent]:
        """Block until a code is decoded or ``timeout`` elapses."""
        try:
            return self._scans.get(timeout=timeout)
        except Empty:
            return None

    def scan_once(self, timeout: Optional[float] = None) -> Optional[QRScanEvent]:
        """Open the camera, wait for one code, and release the camera."""
        with self.session():
            return self.wait_for_scan(timeout)

    def _drain(self):
        while True:
            try:
                self._scans.get_nowait()
            except Empty:
                return

    @property
    def is_running(self) -> bool:
        """Check if a camera session is active."""
        thread = self._scanner_thread
        return thread is not None and thread.is_alive() and not self._stop_event.is_set()
