"""
Exception types raised by the fingerprint and ranking pipeline.

Every error derives from FingerprintError so callers can catch the whole
family at once. Input-validation errors also derive from ValueError,
matching how the rest of the package signals bad arguments.
"""


class FingerprintError(Exception):
    """Base class for all fingerprint_search errors."""


class MalformedBuffer(FingerprintError, ValueError):
    """Sample count does not match height * width * channel_count."""


class InvalidChannelCount(FingerprintError, ValueError):
    """A buffer declared fewer than one color channel."""


class EmptyImage(FingerprintError, ValueError):
    """Average brightness requested for an image with no gray values."""


class EmptyHistogram(FingerprintError, ValueError):
    """A histogram with a zero total cannot be normalized or compared."""


class HistogramLengthMismatch(FingerprintError, ValueError):
    """Two histograms being compared have different bin counts."""


class ChannelCountMismatch(FingerprintError, ValueError):
    """Two fingerprints being compared have different channel layouts."""


class CorpusReadFailure(FingerprintError):
    """The corpus store could not be read."""


class CorpusWriteFailure(FingerprintError):
    """The corpus store could not be written."""


class ImageDecodeError(FingerprintError):
    """An image file could not be decoded into a pixel buffer."""


class WorkerFailure(FingerprintError, RuntimeError):
    """A worker raised during parallel execution.

    The original exception is available as ``__cause__`` and the index of
    the failing partition as ``partition``.
    """

    def __init__(self, message: str, partition: int = -1):
        super().__init__(message)
        self.partition = partition
