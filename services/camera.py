from __future__ import annotations
import logging
from typing import Optional

import cv2
import numpy as np

from domain.errors import CaptureError

log = logging.getLogger(__name__)


class CameraCapture:
    """Scoped access to a local camera. The device is released on every exit path.

        with CameraCapture(0) as cam:
            frame = cam.capture()
    """

    def __init__(self, index: int = 0, width: int = 1280, height: int = 720) -> None:
        self.index = index
        self.width = width
        self.height = height
        self._cap: Optional[cv2.VideoCapture] = None

    def __enter__(self) -> "CameraCapture":
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CaptureError(f"camera {self.index} could not be opened (missing device or permission)")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap = cap
        return self

    def capture(self) -> np.ndarray:
        """Grab one still as an RGB array."""
        if self._cap is None:
            raise CaptureError("camera is not open")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise CaptureError(f"camera {self.index} returned no frame")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            log.debug("Camera %d released", self.index)

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def capture_still(index: int = 0) -> np.ndarray:
    with CameraCapture(index) as cam:
        return cam.capture()
