# src/cache/fingerprint.py — v2
"""Content fingerprints used for change detection.

A fingerprint is a short identity string for a piece of extracted text: equal
text always yields an equal fingerprint. The default rolling hash is NOT
collision-resistant and must not be used for integrity or security checks;
it only signals "this text probably changed". Sha256Fingerprinter is the
drop-in replacement when a stronger identity is needed.
"""

from __future__ import annotations

import hashlib
import struct
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecfrcount.config.settings import Settings

FINGERPRINT_LENGTH = 10

_MASK_32 = 0xFFFFFFFF


class ContentFingerprinter(ABC):
    """Maps text to a deterministic, short content identity."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Algorithm identifier (for logs and settings)."""

    @abstractmethod
    def fingerprint(self, text: str) -> str:
        """Return the fingerprint of ``text``."""


class RollingHashFingerprinter(ContentFingerprinter):
    """Polynomial rolling hash: ``h = h * 31 + unit`` in signed 32-bit.

    Iterates UTF-16 code units so that non-BMP characters hash as surrogate
    pairs. The absolute value is rendered as lowercase hex and truncated.
    """

    def __init__(self, length: int = FINGERPRINT_LENGTH) -> None:
        self._length = length

    @property
    def name(self) -> str:
        return "rolling"

    def fingerprint(self, text: str) -> str:
        h = 0
        for (unit,) in struct.iter_unpack("<H", text.encode("utf-16-le")):
            h = (h * 31 + unit) & _MASK_32
        if h & 0x80000000:
            h -= 1 << 32
        return format(abs(h), "x")[: self._length]


class Sha256Fingerprinter(ContentFingerprinter):
    """Truncated SHA-256 of the UTF-8 text."""

    def __init__(self, length: int = 16) -> None:
        self._length = length

    @property
    def name(self) -> str:
        return "sha256"

    def fingerprint(self, text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()[: self._length]


_DEFAULT = RollingHashFingerprinter()


def fingerprint(text: str) -> str:
    """Fingerprint ``text`` with the default rolling hash."""
    return _DEFAULT.fingerprint(text)


def create_fingerprinter(settings: Settings | None = None) -> ContentFingerprinter:
    """Instantiate the configured fingerprint algorithm."""
    algorithm = "rolling" if settings is None else settings.fingerprint_algorithm
    if algorithm == "rolling":
        return RollingHashFingerprinter()
    if algorithm == "sha256":
        return Sha256Fingerprinter()
    raise ValueError(f"Unsupported fingerprint algorithm: {algorithm!r}")
