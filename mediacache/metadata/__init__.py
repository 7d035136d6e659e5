"""Audio file metadata reading."""

from .reader import TagReader

__all__ = ['TagReader']
