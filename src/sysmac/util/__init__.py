"""Utility modules for the sysmac accelerator."""

from .bits import join_bytes, split_word, to_signed, to_unsigned, wrap_signed
from .stimulus import job_stimulus, normalize_vector

__all__ = [
    # Two's-complement helpers
    "to_signed",
    "to_unsigned",
    "wrap_signed",
    "split_word",
    "join_bytes",
    # Job stimulus
    "job_stimulus",
    "normalize_vector",
]
