"""Exceptions raised by the prism binary decoders."""


class FormatError(ValueError):
    """A binary file does not match the layout the decoder expects.

    ``expected`` and ``actual`` carry the compared values (signature, version
    tag, ...) so callers can log a useful diagnostic.
    """

    def __init__(self, message, expected=None, actual=None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class BufferBoundsError(FormatError):
    """A header-declared offset points outside of the file buffer."""

    def __init__(self, offset, size, buffer_size):
        super().__init__(
            f"Read of {size} bytes at offset {offset} is outside of "
            f"buffer ({buffer_size} bytes)",
            expected=buffer_size,
            actual=offset + size,
        )
        self.offset = offset
        self.size = size
        self.buffer_size = buffer_size
