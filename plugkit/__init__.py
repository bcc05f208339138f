"""protoc-plugkit — the protoc code-generator plugin protocol in Python."""

__version__ = "0.1.0"
