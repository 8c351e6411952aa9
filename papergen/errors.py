"""Exceptions raised across papergen."""


class PapergenError(Exception):
    """Base class for all papergen errors."""


class ConfigError(PapergenError):
    """Raised when a settings or paper file is malformed."""


class ServiceError(PapergenError):
    """Raised when the AI text service fails or returns nothing usable."""


class ReferencesNotFoundError(ServiceError):
    """Raised when reference discovery output cannot be parsed."""


class ImageGenerationError(ServiceError):
    """Raised when the image service response carries no image payload."""
