import math

import pytest

from texfeedback.core.synctex.geometry import FAR, Rectangle
from texfeedback.core.synctex.parser import Block


def _block(kind="x", left=0.0, bottom=0.0, width=None, height=0.0, elements=None):
    return Block(
        type=kind, file_number=1, line=1, left=left, bottom=bottom,
        height=height, page=1, width=width, elements=elements,
    )


def test_rectangle_includes_inner_and_touching_edges():
    outer = Rectangle(top=0, bottom=100, left=0, right=100)
    assert outer.includes(Rectangle(top=10, bottom=90, left=10, right=90))
    assert outer.includes(outer)
    assert not outer.includes(Rectangle(top=10, bottom=101, left=10, right=90))
    assert not Rectangle(top=10, bottom=90, left=10, right=90).includes(outer)


def test_distance_from_center():
    rect = Rectangle(top=0, bottom=10, left=0, right=20)
    assert rect.distance_from_center(10, 5) == 0
    assert rect.distance_from_center(13, 9) == pytest.approx(5.0)


def test_from_block_uses_height_above_baseline():
    rect = Rectangle.from_block(_block(left=5, bottom=50, width=20, height=10))
    assert rect == Rectangle(top=40, bottom=50, left=5, right=25)


def test_from_block_without_width_is_zero_wide():
    rect = Rectangle.from_block(_block(left=5, bottom=50, width=None, height=10))
    assert rect.left == rect.right == 5


def test_from_blocks_skips_kerns_rules_and_containers():
    blocks = [
        _block(left=10, bottom=50, width=10, height=5),
        _block(kind="k", left=0, bottom=500, width=900, height=5),
        _block(kind="r", left=0, bottom=600, width=900, height=5),
        _block(kind="horizontal", left=0, bottom=700, width=900, height=5, elements=[]),
        _block(left=30, bottom=60, width=5, height=5),
    ]
    rect = Rectangle.from_blocks(blocks)
    assert rect == Rectangle(top=45, bottom=60, left=10, right=35)


def test_from_blocks_with_nothing_eligible_is_sentinel():
    rect = Rectangle.from_blocks([_block(kind="k")])
    assert rect.top == FAR and rect.left == FAR
    assert math.isclose(rect.bottom, 0.0)
