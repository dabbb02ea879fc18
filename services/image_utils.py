import numpy as np
import cv2

from domain.errors import InferenceError


def bytes_to_rgb(b: bytes) -> np.ndarray:
    """Decode an uploaded image into an HxWx3 RGB uint8 array."""
    arr = np.asarray(bytearray(b), dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR) if arr.size else None
    if img is None:
        raise InferenceError("image could not be decoded")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def file_to_rgb(path: str) -> np.ndarray:
    with open(path, "rb") as f:
        return bytes_to_rgb(f.read())
