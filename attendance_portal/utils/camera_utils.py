"""
Camera utilities for the attendance portal.
Provides the local camera stream, frame encoding and the photo capture state
shared by registration and attendance pages.
"""
import logging
import threading
import time
from enum import Enum
from queue import Empty, Queue
from typing import Optional, Tuple

import cv2
import numpy as np

from ..config.settings import (
    CAMERA_INDEX, FRAME_WIDTH, FRAME_HEIGHT, JPEG_QUALITY, CAPTURE_FILENAME
)
from ..errors import ValidationError
from .image_validation import PhotoFile, validate_photo

logger = logging.getLogger(__name__)


class CameraStream:
    """
    Thread-safe camera stream handler.
    """

    def __init__(self, camera_id: int = CAMERA_INDEX, width: int = FRAME_WIDTH,
                 height: int = FRAME_HEIGHT):
        """
        Initialize camera stream.

        Args:
            camera_id (int): Camera device ID
            width (int): Frame width
            height (int): Frame height
        """
        self.camera_id = camera_id
        self.width = width
        self.height = height
        self.cap = None
        self.stopped = True
        self.frame_queue = Queue(maxsize=1)

    def __enter__(self):
        if not self.start():
            raise RuntimeError(f"Could not open camera {self.camera_id}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def start(self) -> bool:
        """
        Start the camera stream.

        Returns:
            bool: True if started successfully
        """
        self.cap = cv2.VideoCapture(self.camera_id)
        if not self.cap.isOpened():
            logger.error("Could not open camera %s", self.camera_id)
            self.cap.release()
            self.cap = None
            return False

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self.stopped = False
        thread = threading.Thread(target=self._update, daemon=True)
        thread.start()
        logger.info("Camera %s started", self.camera_id)
        return True

    def _update(self):
        """Keep only the most recent frame in the queue."""
        while not self.stopped:
            cap = self.cap
            if cap is None:
                break

            ret, frame = cap.read()
            if not ret:
                logger.warning("Error reading frame from camera %s", self.camera_id)
                break

            if not self.frame_queue.empty():
                try:
                    self.frame_queue.get_nowait()
                except Empty:
                    pass
            self.frame_queue.put(frame)

            time.sleep(0.01)

    def read(self, timeout: float = 0.0) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Read the latest frame.

        Args:
            timeout (float): Seconds to wait for a frame

        Returns:
            Tuple of (success, frame)
        """
        if self.stopped or self.cap is None:
            return False, None
        try:
            if timeout > 0:
                return True, self.frame_queue.get(timeout=timeout)
            return True, self.frame_queue.get_nowait()
        except Empty:
            return False, None

    def stop(self):
        """Stop the camera stream and release the device."""
        self.stopped = True
        if self.cap is not None:
            self.cap.release()
            self.cap = None
            logger.info("Camera %s released", self.camera_id)


def encode_jpeg(frame: np.ndarray, quality: int = JPEG_QUALITY) -> bytes:
    """
    Encode a BGR frame as JPEG.

    Args:
        frame (np.ndarray): BGR image
        quality (int): JPEG quality 0-100

    Returns:
        bytes: Encoded image
    """
    if frame is None or frame.size == 0:
        raise ValidationError("No camera frame available.", field="photo")
    ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise ValidationError("Could not encode the camera frame.", field="photo")
    return buffer.tobytes()


def flip_frame(frame: np.ndarray, flip_code: int = 1) -> np.ndarray:
    """Mirror a frame horizontally (1) or vertically (0)."""
    return cv2.flip(frame, flip_code)


class CaptureState(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    CAPTURED = "captured"
    UPLOADED = "uploaded"


class CaptureSession:
    """
    Photo source for one form.

    A single mode decides what the form shows: nothing, the live camera,
    a captured frame or an uploaded file. Leaving the streaming mode
    always releases the camera stream.
    """

    def __init__(self, stream: Optional[CameraStream] = None):
        self.mode = CaptureState.IDLE
        self.photo: Optional[PhotoFile] = None
        self.stream = stream

    @property
    def has_photo(self) -> bool:
        return self.photo is not None and self.mode in (CaptureState.CAPTURED, CaptureState.UPLOADED)

    def open_camera(self, stream: Optional[CameraStream] = None) -> None:
        """
        Switch to live camera mode, dropping any previous photo.

        Args:
            stream (CameraStream): Local stream to start; the web UI passes
                None because its preview lives in the browser
        """
        self._release()
        self.photo = None
        if stream is not None:
            if not stream.start():
                self.mode = CaptureState.IDLE
                raise ValidationError("Could not access the camera.", field="photo")
            self.stream = stream
        self.mode = CaptureState.STREAMING

    def capture(self, frame: Optional[np.ndarray] = None) -> PhotoFile:
        """
        Take the current frame as the photo.

        Args:
            frame (np.ndarray): Frame to use; read from the stream if None

        Returns:
            PhotoFile: The captured JPEG
        """
        if self.mode != CaptureState.STREAMING:
            raise ValidationError("Open the camera before capturing.", field="photo")
        if frame is None and self.stream is not None:
            _, frame = self.stream.read(timeout=2.0)
        data = encode_jpeg(frame)
        photo = validate_photo(CAPTURE_FILENAME, data, "image/jpeg")
        self._release()
        self.photo = photo
        self.mode = CaptureState.CAPTURED
        return photo

    def accept_upload(self, name: str, data: bytes, mime_type: Optional[str] = None) -> PhotoFile:
        """
        Use a file picked by the user as the photo.

        Raises:
            ValidationError: Wrong type or too large; the previous state is kept
        """
        photo = validate_photo(name, data, mime_type)
        self._release()
        self.photo = photo
        self.mode = CaptureState.UPLOADED
        return photo

    def reset(self) -> None:
        self._release()
        self.photo = None
        self.mode = CaptureState.IDLE

    def _release(self) -> None:
        if self.stream is not None:
            self.stream.stop()
            self.stream = None
