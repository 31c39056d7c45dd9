# filename: huffman_errors.py


class HuffmanError(Exception):
    """Base class for every failure raised by the codec."""


class SourceUnavailable(HuffmanError, OSError):
    """The input path is missing or cannot be read."""


class ContainerMalformed(HuffmanError, ValueError):
    """The container header, tree section or declared bit length is invalid."""


class StreamCorruption(HuffmanError, ValueError):
    """The packed message bits do not resolve to symbols of the stored tree."""


class EndOfStream(HuffmanError, EOFError):
    """A fixed-width read ran past the end of the input."""
