from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import numpy as np

from domain.errors import InferenceError, ModelLoadError
from domain.palettes import ensure_palettes_for
from services.preprocessor import INPUT_SHAPE

log = logging.getLogger(__name__)


class IModel(Protocol):
    def predict(self, batch: np.ndarray, **kwargs: Any) -> Any:
        ...


class SkinToneClassifier:
    """Wraps a loaded image model; returns the skin-tone class with the highest probability."""

    def __init__(self, model: IModel) -> None:
        self.model = model

    def probabilities(self, tensor: np.ndarray) -> np.ndarray:
        try:
            out = self.model.predict(tensor, verbose=0)
        except Exception as exc:
            raise InferenceError(f"model inference failed: {exc}") from exc
        probs = np.asarray(out, dtype=np.float32).reshape(-1)
        if probs.size == 0 or not np.all(np.isfinite(probs)):
            raise InferenceError("model returned no usable probabilities")
        return probs

    def predict(self, tensor: np.ndarray) -> Tuple[int, np.ndarray]:
        probs = self.probabilities(tensor)
        # np.argmax picks the first maximum, so ties go to the lowest class id
        return int(np.argmax(probs)), probs

    def classify(self, tensor: np.ndarray) -> int:
        return self.predict(tensor)[0]

    def warm_up(self) -> int:
        """One all-zero inference; returns the number of classes the model emits."""
        return int(self.probabilities(np.zeros(INPUT_SHAPE, dtype=np.float32)).size)


def patch_input_layers(model_json: Dict[str, Any]) -> Dict[str, Any]:
    """Rename InputLayer `batch_shape` to `batch_input_shape` in a tfjs model.json."""
    patched = copy.deepcopy(model_json)
    layers = (
        patched.get("modelTopology", {})
        .get("model_config", {})
        .get("config", {})
        .get("layers")
    )
    if not isinstance(layers, list):
        return patched
    for layer in layers:
        config = layer.get("config") or {}
        if layer.get("class_name") == "InputLayer" and "batch_shape" in config:
            config["batch_input_shape"] = config.pop("batch_shape")
    return patched


class TfjsModelLoader:
    """TensorFlow.js layers model: model.json plus weight shards in the same directory."""

    def __init__(self, model_path: str) -> None:
        self.model_path = model_path

    def __call__(self) -> IModel:
        if not os.path.isfile(self.model_path):
            raise ModelLoadError(f"model file not found: {self.model_path}")
        try:
            with open(self.model_path, "r", encoding="utf-8") as f:
                model_json = json.load(f)
        except (OSError, ValueError) as exc:
            raise ModelLoadError(f"unreadable model topology {self.model_path}: {exc}") from exc

        from tensorflowjs.converters import load_keras_model  # lazy import

        weights_dir = os.path.dirname(os.path.abspath(self.model_path))
        fd, patched_path = tempfile.mkstemp(suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(patch_input_layers(model_json), f)
            return load_keras_model(patched_path, weights_path_prefix=weights_dir)
        except Exception as exc:
            raise ModelLoadError(f"failed to load tfjs model {self.model_path}: {exc}") from exc
        finally:
            os.remove(patched_path)


class KerasModelLoader:
    """Native Keras artifact (.keras / .h5)."""

    def __init__(self, model_path: str) -> None:
        self.model_path = model_path

    def __call__(self) -> IModel:
        if not os.path.exists(self.model_path):
            raise ModelLoadError(f"model file not found: {self.model_path}")
        import tensorflow as tf  # lazy import

        try:
            return tf.keras.models.load_model(self.model_path, compile=False)
        except Exception as exc:
            raise ModelLoadError(f"failed to load keras model {self.model_path}: {exc}") from exc


class ModelLoaderFactory:
    @staticmethod
    def create(backend: str, model_path: str) -> Callable[[], IModel]:
        b = (backend or "tfjs").lower()
        if b == "keras":
            return KerasModelLoader(model_path)
        if b == "tfjs":
            return TfjsModelLoader(model_path)
        raise ModelLoadError(f"unknown model backend: {backend}")


class ModelProvider:
    """Process-wide, lazily loaded classifier.

    Concurrent `get()` calls share one in-flight load, and a cancelled caller
    does not abandon it. A failed load leaves the provider empty so the next
    call retries.
    """

    def __init__(self, loader: Callable[[], IModel], executor: Optional[Executor] = None) -> None:
        self.loader = loader
        self.executor = executor
        self._classifier: Optional[SkinToneClassifier] = None
        self._loading: Optional[asyncio.Future] = None

    @property
    def ready(self) -> bool:
        return self._classifier is not None

    async def get(self) -> SkinToneClassifier:
        if self._classifier is not None:
            return self._classifier
        if self._loading is None:
            loop = asyncio.get_running_loop()
            self._loading = loop.run_in_executor(self.executor, self._load)
            self._loading.add_done_callback(self._on_loaded)
        return await asyncio.shield(self._loading)

    def _on_loaded(self, future: asyncio.Future) -> None:
        self._loading = None
        if not future.cancelled() and future.exception() is None:
            self._classifier = future.result()

    def _load(self) -> SkinToneClassifier:
        try:
            model = self.loader()
        except ModelLoadError:
            log.exception("Model load failed")
            raise
        except Exception as exc:
            log.exception("Model load failed")
            raise ModelLoadError(str(exc)) from exc
        classifier = SkinToneClassifier(model)
        try:
            num_classes = classifier.warm_up()
        except InferenceError as exc:
            raise ModelLoadError(f"warm-up inference failed: {exc}") from exc
        # fatal: a class without a palette must never reach the recommender
        ensure_palettes_for(num_classes)
        log.info("Model loaded and warmed up (%d classes)", num_classes)
        return classifier

