"""Parser for the SyncTeX synchronization file body.

Turns the line-record text written by the TeX engine into a tree of
pages -> container blocks -> element records, plus two flat views used by
the navigator:

* ``block_index[input_path][line][page]`` -> element records, in file order
* ``horizontal_blocks`` -> every horizontal box, in file order

The parser is best effort: unknown records are skipped, element records
that reference an unknown input file are dropped, and a stray close record
is ignored. The only fatal condition is an offset record for an axis other
than X or Y, which makes :func:`parse_synctex` return ``None``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# SyncTeX stores dimensions in scaled points; one page unit is this many sp.
UNIT = 65781.76

VERTICAL = "vertical"
HORIZONTAL = "horizontal"
KERN = "k"
RULE = "r"
VOID_HBOX = "h"

_INPUT_RE = re.compile(r"Input:([0-9]+):(.+)")
_OFFSET_RE = re.compile(r"([A-Za-z]) Offset:(-?[0-9]+)")
_OPEN_PAGE_RE = re.compile(r"\{([0-9]+)$")
_CLOSE_PAGE_RE = re.compile(r"\}([0-9]+)$")
_OPEN_VBOX_RE = re.compile(
    r"\[([0-9]+),([0-9]+):(-?[0-9]+),(-?[0-9]+):(-?[0-9]+),(-?[0-9]+),(-?[0-9]+)"
)
_CLOSE_VBOX_RE = re.compile(r"\]$")
_OPEN_HBOX_RE = re.compile(
    r"\(([0-9]+),([0-9]+):(-?[0-9]+),(-?[0-9]+):(-?[0-9]+),(-?[0-9]+),(-?[0-9]+)"
)
_CLOSE_HBOX_RE = re.compile(r"\)$")
_ELEMENT_RE = re.compile(r"(.)([0-9]+),([0-9]+):(-?[0-9]+),(-?[0-9]+)(:?(-?[0-9]+))?")


@dataclass
class Block:
    """A container box or a single element record.

    Containers (``vertical``/``horizontal``) carry ``blocks`` and ``elements``
    lists; element records leave both as ``None``. ``parent`` is a
    back-reference to the enclosing container, ``None`` for boxes sitting
    directly on the page.
    """

    type: str
    file_number: int
    line: int
    left: float
    bottom: float
    height: float
    page: int
    width: float | None = None
    depth: int | None = None
    file: str | None = None
    blocks: list[Block] | None = None
    elements: list[Block] | None = None
    parent: Block | None = field(default=None, repr=False, compare=False)

    @property
    def is_container(self) -> bool:
        return self.elements is not None

    @property
    def is_eligible(self) -> bool:
        """Whether this block can be a navigation target.

        Kerns and rules are spacing, containers are aggregates; neither points
        at author-visible text.
        """
        return self.elements is None and self.type not in (KERN, RULE)


@dataclass
class Page:
    number: int
    blocks: list[Block] = field(default_factory=list)


@dataclass
class SyncObject:
    offset_x: float = 0.0
    offset_y: float = 0.0
    version: str = ""
    files: dict[int, str] = field(default_factory=dict)
    pages: dict[int, Page] = field(default_factory=dict)
    block_index: dict[str, dict[int, dict[int, list[Block]]]] = field(default_factory=dict)
    horizontal_blocks: list[Block] = field(default_factory=list)
    page_count: int = 0


def _container(match: re.Match, kind: str, page: Page, parent: Block | None,
               files: dict[int, str]) -> Block:
    file_number = int(match.group(1))
    return Block(
        type=kind,
        file_number=file_number,
        file=files.get(file_number),
        line=int(match.group(2)),
        left=int(match.group(3)) / UNIT,
        bottom=int(match.group(4)) / UNIT,
        width=int(match.group(5)) / UNIT,
        height=int(match.group(6)) / UNIT,
        depth=int(match.group(7)),
        page=page.number,
        blocks=[],
        elements=[],
        parent=parent,
    )


def parse_synctex(body: str | None) -> SyncObject | None:
    """Parse a SyncTeX body (already decompressed) into a :class:`SyncObject`.

    Empty or missing input yields an empty object rather than ``None``.
    """
    sync = SyncObject()
    if not body:
        return sync

    lines = body.split("\n")
    sync.version = lines[0].replace("SyncTeX Version:", "").strip()

    current_page: Page | None = None
    # Containers currently open on the page, innermost last
    open_blocks: list[Block] = []

    for line in lines[1:]:
        line = line.rstrip("\r")

        match = _INPUT_RE.search(line)
        if match:
            sync.files[int(match.group(1))] = match.group(2)
            continue

        match = _OFFSET_RE.search(line)
        if match:
            axis = match.group(1).lower()
            value = int(match.group(2)) / UNIT
            if axis == "x":
                sync.offset_x = value
            elif axis == "y":
                sync.offset_y = value
            else:
                logger.warning("synctex: unknown offset axis %r, aborting parse", match.group(1))
                return None
            continue

        match = _OPEN_PAGE_RE.search(line)
        if match:
            current_page = Page(number=int(match.group(1)))
            sync.page_count = max(sync.page_count, current_page.number)
            open_blocks.clear()
            continue

        match = _CLOSE_PAGE_RE.search(line)
        if match and current_page is not None:
            sync.pages[int(match.group(1))] = current_page
            current_page = None
            open_blocks.clear()
            continue

        match = _OPEN_VBOX_RE.search(line)
        if match:
            if current_page is not None:
                parent = open_blocks[-1] if open_blocks else None
                open_blocks.append(_container(match, VERTICAL, current_page, parent, sync.files))
            continue

        if _CLOSE_VBOX_RE.search(line) or _CLOSE_HBOX_RE.search(line):
            if open_blocks:
                closed = open_blocks.pop()
                if closed.parent is not None:
                    closed.parent.blocks.append(closed)
                elif current_page is not None:
                    current_page.blocks.append(closed)
            continue

        match = _OPEN_HBOX_RE.search(line)
        if match:
            if current_page is not None:
                parent = open_blocks[-1] if open_blocks else None
                block = _container(match, HORIZONTAL, current_page, parent, sync.files)
                sync.horizontal_blocks.append(block)
                open_blocks.append(block)
            continue

        match = _ELEMENT_RE.search(line)
        if match:
            if current_page is None or not open_blocks:
                continue
            container = open_blocks[-1]
            file_number = int(match.group(2))
            path = sync.files.get(file_number)
            if path is None:
                continue
            width = match.group(7)
            elem = Block(
                type=match.group(1),
                file_number=file_number,
                file=path,
                line=int(match.group(3)),
                left=int(match.group(4)) / UNIT,
                bottom=int(match.group(5)) / UNIT,
                width=int(width) / UNIT if width is not None else None,
                height=container.height,
                page=current_page.number,
                parent=container,
            )
            (
                sync.block_index
                .setdefault(path, {})
                .setdefault(elem.line, {})
                .setdefault(elem.page, [])
                .append(elem)
            )
            container.elements.append(elem)
            if elem.type == VOID_HBOX:
                sync.horizontal_blocks.append(elem)

    logger.debug(
        "synctex: parsed %d pages, %d input files, %d indexed files",
        sync.page_count, len(sync.files), len(sync.block_index),
    )
    return sync
