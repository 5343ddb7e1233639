"""A small FAT16-style file system kept in a single image file, with a command shell."""

__version__ = "0.1.0"
__all__ = ["disk", "shell"]