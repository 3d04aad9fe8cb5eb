"""Rectangle math over SyncTeX block coordinates.

All values live in the parsed (already scaled) page coordinate space, with
``top < bottom`` because TeX measures y downwards from the top of the page.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from texfeedback.core.synctex.parser import Block

# Sentinel extent used when aggregating, larger than any real coordinate
FAR = 2e16


@dataclass(frozen=True)
class Rectangle:
    top: float
    bottom: float
    left: float
    right: float

    def includes(self, other: Rectangle) -> bool:
        """True if *other* lies entirely inside this rectangle (edges may touch)."""
        return (
            self.left <= other.left
            and self.right >= other.right
            and self.bottom >= other.bottom
            and self.top <= other.top
        )

    def distance_from_center(self, x: float, y: float) -> float:
        cx = (self.left + self.right) / 2
        cy = (self.bottom + self.top) / 2
        return math.hypot(cx - x, cy - y)

    @classmethod
    def from_block(cls, block: Block) -> Rectangle:
        right = block.left + block.width if block.width else block.left
        return cls(
            top=block.bottom - block.height,
            bottom=block.bottom,
            left=block.left,
            right=right,
        )

    @classmethod
    def from_blocks(cls, blocks: Iterable[Block]) -> Rectangle:
        """Bounding box of the eligible blocks in *blocks*.

        Non-eligible blocks (kerns, rules, containers) are skipped. With no
        eligible block the result is the inverted sentinel box.
        """
        top, bottom, left, right = FAR, 0.0, FAR, 0.0
        for block in blocks:
            if not block.is_eligible:
                continue
            bottom = max(block.bottom, bottom)
            top = min(block.bottom - block.height, top)
            left = min(block.left, left)
            if block.width is not None:
                right = max(block.left + block.width, right)
        return cls(top=top, bottom=bottom, left=left, right=right)
