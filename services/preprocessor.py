"""Image -> classifier input tensor.

The classifier was trained on RGB frames resized with nearest-neighbour sampling
and scaled to [0, 1]. Changing the interpolation or the channel order here does
not raise anywhere; it only makes predictions quietly worse.
"""
from __future__ import annotations
import numpy as np
import cv2

from domain.errors import InferenceError

INPUT_SIZE = 224
INPUT_SHAPE = (1, INPUT_SIZE, INPUT_SIZE, 3)


def _to_rgb3(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return np.stack([image] * 3, axis=-1)
    if image.ndim == 3 and image.shape[2] == 1:
        return np.repeat(image, 3, axis=2)
    if image.ndim == 3 and image.shape[2] == 4:
        return image[:, :, :3]
    if image.ndim == 3 and image.shape[2] == 3:
        return image
    raise InferenceError(f"unsupported image shape {image.shape}")


def preprocess(image: np.ndarray) -> np.ndarray:
    if not isinstance(image, np.ndarray) or image.size == 0:
        raise InferenceError("expected a non-empty image array")
    rgb = np.ascontiguousarray(_to_rgb3(image))
    resized = cv2.resize(rgb, (INPUT_SIZE, INPUT_SIZE), interpolation=cv2.INTER_NEAREST)
    tensor = resized.astype(np.float32) / 255.0
    return np.expand_dims(tensor, axis=0)
