"""
Exception types raised by the Open Canvas filter pipeline.

Each error also derives from the built-in exception a caller would
naturally catch for that failure (ValueError, KeyError, IndexError), so
code written against plain Python exceptions keeps working.
"""


class PixelPipelineError(Exception):
    """Base class for every error raised by OC_Libs."""


class InvalidBufferError(PixelPipelineError, ValueError):
    """Buffer dimensions are non-positive or do not match the pixel array."""


class UnsupportedStyleError(PixelPipelineError, KeyError):
    """An unknown style name was requested."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class OutOfBoundsSeedError(PixelPipelineError, IndexError):
    """A flood fill seed lies outside the buffer."""


class StyleParameterError(PixelPipelineError, ValueError):
    """A style override names an unknown pass or parameter."""


class OperationCancelledError(PixelPipelineError):
    """A cancellation token was triggered while work was in progress."""


class RemoteStyleError(PixelPipelineError):
    """A remote style-transfer job failed, timed out or returned garbage."""


class StyleExecutionError(PixelPipelineError):
    """A pass inside a style raised an unexpected error."""
