"""AST scanners over the analyzed project's source tree."""

from .source import SourceFile, SourceIndex

__all__ = ["SourceFile", "SourceIndex"]
