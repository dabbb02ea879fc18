class TrueShadeError(Exception):
    """Base class for analysis pipeline failures."""


class ModelLoadError(TrueShadeError):
    """Model artifact is missing or malformed. Serving stops until a reload succeeds."""


class InferenceError(TrueShadeError):
    """A single image could not be classified."""


class ConfigurationError(TrueShadeError):
    """The model and the palette registry disagree about the class set."""


class CaptureError(TrueShadeError):
    """Camera could not be opened or returned no frame."""
