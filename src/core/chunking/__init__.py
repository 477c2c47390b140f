"""Stream chunking: header extraction and line-aligned chunk reading."""

from .header import HeaderExtractor
from .line_counter import LineCounter
from .reader import ChunkReader

__all__ = ["ChunkReader", "HeaderExtractor", "LineCounter"]
