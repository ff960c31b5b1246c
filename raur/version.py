"""
Package version parsing and comparison.

Versions have the form ``[epoch:]upstream[-release]``. Upstream and release
are split into alphanumeric segments and compared segment by segment:

- runs of digits compare numerically, runs of letters compare lexically
- a digit run is newer than a letter run
- between segments of the same kind, the one preceded by more separators
  is newer, so ``1.0a`` is older than ``1.0.a``
- once one side runs out, it is older than a remaining digit run but newer
  than a remaining letter run, so ``1.0rc1`` is older than ``1.0`` while
  ``1.0.1`` is newer
- ``~`` marks a pre-release that sorts before anything, including the end
  of the string
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union


_TOKEN_RE = re.compile(r"([^A-Za-z0-9~]*)(~|[0-9]+|[A-Za-z]+)")

_TILDE = (0, 0, 0, "")
_END = (2, 0, 0, "")

SegmentKey = Tuple[Tuple[int, int, int, str], ...]


def _segment_key(text: str) -> SegmentKey:
    tokens = []
    for separators, token in _TOKEN_RE.findall(text):
        if token == "~":
            tokens.append(_TILDE)
        elif token.isdigit():
            tokens.append((3, len(separators), int(token), ""))
        else:
            tokens.append((1, len(separators), 0, token))
    tokens.append(_END)
    return tuple(tokens)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A parsed ``epoch:upstream-release`` version string."""

    epoch: int
    upstream: str
    release: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Version":
        text = text.strip()
        epoch = 0
        head, sep, tail = text.partition(":")
        if sep and head.isdigit():
            epoch = int(head)
            text = tail
        upstream, sep, release = text.rpartition("-")
        if not sep:
            return cls(epoch=epoch, upstream=release, release=None)
        return cls(epoch=epoch, upstream=upstream, release=release)

    def sort_key(self) -> Tuple[int, SegmentKey, SegmentKey]:
        return (self.epoch, _segment_key(self.upstream), _segment_key(self.release or ""))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __str__(self) -> str:
        text = self.upstream
        if self.epoch:
            text = f"{self.epoch}:{text}"
        if self.release is not None:
            text = f"{text}-{self.release}"
        return text


def compare(a: Union[str, Version], b: Union[str, Version]) -> int:
    """Compare two versions.

    Args:
        a: First version
        b: Second version

    Returns:
        -1 if a is older than b, 0 if they are equal, 1 if a is newer
    """
    if not isinstance(a, Version):
        a = Version.parse(a)
    if not isinstance(b, Version):
        b = Version.parse(b)
    key_a = a.sort_key()
    key_b = b.sort_key()
    if key_a < key_b:
        return -1
    if key_a > key_b:
        return 1
    return 0
