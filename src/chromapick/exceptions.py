"""Exception types raised by Chromapick."""


class ChromapickError(Exception):
    """Base class for all Chromapick errors."""


class ImageDecodeError(ChromapickError):
    """The source image could not be decoded into pixels."""


class InvalidPixelBufferError(ChromapickError, ValueError):
    """A raw RGBA buffer does not match its declared dimensions."""


class ConfigError(ChromapickError):
    """A configuration file could not be loaded or is invalid."""
