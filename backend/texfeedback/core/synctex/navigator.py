"""Source <-> PDF navigation on top of parsed SyncTeX data.

Forward sync maps a source line to a page position, inverse sync maps a
page position back to a source line. Every query returns ``None`` (or an
empty list) when no sync information is available; nothing here raises
for missing or corrupt data.
"""

import gzip
import logging
import os
import zlib
from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass

from texfeedback.config import settings
from texfeedback.core.synctex.cache import SyncCache
from texfeedback.core.synctex.geometry import FAR, Rectangle
from texfeedback.core.synctex.parser import Block, SyncObject, parse_synctex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForwardSyncResult:
    page: int
    x: float
    y: float


@dataclass(frozen=True)
class InverseSyncResult:
    file: str
    line: int
    column: int = 0


@dataclass(frozen=True)
class LineMapEntry:
    line: int
    page: int
    y: float


def first_eligible_block(page_blocks: dict[int, list[Block]]) -> Block | None:
    """Return the first eligible block recorded for one source line.

    Only the lowest page bucket is considered; a line normally lands on a
    single page. Blocks are scanned in typesetting order, which keeps
    outliers such as footers produced by ``\\maketitle`` from winning.
    """
    if not page_blocks:
        return None
    for block in page_blocks[min(page_blocks)]:
        if block.is_eligible:
            return block
    return None


class SyncNavigator:
    """Answers forward/inverse sync queries for compiled source files.

    Parsed data is held in the given :class:`SyncCache`; a miss reads the
    sync file that sits next to the source file.
    """

    def __init__(self, cache: SyncCache | None = None, suffixes: Sequence[str] | None = None):
        self.cache = cache if cache is not None else SyncCache()
        self.suffixes = tuple(suffixes) if suffixes is not None else tuple(settings.SYNCTEX_SUFFIXES)

    def clear_cache(self) -> None:
        self.cache.clear()

    def candidate_paths(self, source_path: str) -> list[str]:
        base, _ = os.path.splitext(source_path)
        return [base + suffix for suffix in self.suffixes]

    def load(self, source_path: str) -> SyncObject | None:
        """Return parsed sync data for *source_path*, reading it on a cache miss."""
        cached = self.cache.get(source_path)
        if cached is not None:
            logger.debug("synctex cache hit: %s", source_path)
            return cached

        sync_path = next((p for p in self.candidate_paths(source_path) if os.path.isfile(p)), None)
        if sync_path is None:
            logger.debug("synctex: no sync file for %s", source_path)
            return None

        try:
            body = _read_sync_file(sync_path)
        except (OSError, EOFError, zlib.error) as exc:
            logger.warning("synctex: failed to read %s: %s", sync_path, exc)
            return None

        sync_object = parse_synctex(body)
        if sync_object is None:
            logger.warning("synctex: could not parse %s", sync_path)
            return None

        self.cache.store(source_path, sync_object)
        logger.info("synctex: loaded %s (%d pages)", sync_path, sync_object.page_count)
        return sync_object

    def forward_sync(self, source_path: str, line: int) -> ForwardSyncResult | None:
        """Map *line* of *source_path* to a position on the rendered page.

        Lines without records of their own are placed by linear
        interpolation between the neighbouring recorded lines, as long as
        those appear top-to-bottom on the page.
        """
        sync = self.load(source_path)
        if sync is None:
            return None
        input_path = _find_input_path(source_path, sync)
        if input_path is None:
            return None

        line_blocks = sync.block_index[input_path]
        lines = sorted(line_blocks)
        if not lines:
            return None

        i = bisect_left(lines, line)
        if i == len(lines):
            return _position(sync, first_eligible_block(line_blocks[lines[-1]]))
        if i == 0 or lines[i] == line:
            return _position(sync, first_eligible_block(line_blocks[lines[i]]))

        line0, line1 = lines[i - 1], lines[i]
        block0 = first_eligible_block(line_blocks[line0])
        block1 = first_eligible_block(line_blocks[line1])
        if block1 is None:
            return None

        bottom = block1.bottom
        # Multi-column layouts can put the later line above the earlier one
        if block0 is not None and block0.bottom < block1.bottom:
            ratio = (line - line0) / (line1 - line0)
            bottom = block0.bottom + (block1.bottom - block0.bottom) * ratio

        return ForwardSyncResult(
            page=block1.page,
            x=block1.left + sync.offset_x,
            y=bottom + sync.offset_y,
        )

    def inverse_sync(self, source_path: str, page: int, x: float, y: float) -> InverseSyncResult | None:
        """Map a point on *page* back to the source line that produced it.

        All eligible blocks of the page are scanned. A block takes over from
        the current best when the best rectangle contains it (prefer the
        finer box), or when it is closer to the point without itself
        containing the current best.
        """
        sync = self.load(source_path)
        if sync is None or not sync.block_index:
            return None

        x0 = x - sync.offset_x
        y0 = y - sync.offset_y

        best_file = ""
        best_line = 0
        best_distance = FAR
        best_rect = Rectangle(top=0, bottom=FAR, left=0, right=FAR)

        for input_path, line_blocks in sync.block_index.items():
            for line_number, page_blocks in line_blocks.items():
                for block in page_blocks.get(page, ()):
                    if not block.is_eligible:
                        continue
                    rect = Rectangle.from_block(block)
                    distance = rect.distance_from_center(x0, y0)
                    if best_rect.includes(rect) or (
                        distance < best_distance and not rect.includes(best_rect)
                    ):
                        best_file = input_path
                        best_line = line_number
                        best_distance = distance
                        best_rect = rect

        if not best_file:
            return None

        sync_dir = os.path.dirname(os.path.abspath(source_path))
        resolved = os.path.abspath(os.path.join(sync_dir, best_file))
        if not os.path.exists(resolved):
            logger.debug("synctex: inverse match %s no longer exists", resolved)
            return None
        return InverseSyncResult(file=resolved, line=best_line, column=0)

    def build_line_map(self, source_path: str) -> list[LineMapEntry]:
        """One entry per recorded line of *source_path*, ascending by line."""
        sync = self.load(source_path)
        if sync is None:
            return []
        input_path = _find_input_path(source_path, sync)
        if input_path is None:
            return []

        entries: list[LineMapEntry] = []
        line_blocks = sync.block_index[input_path]
        for line in sorted(line_blocks):
            block = first_eligible_block(line_blocks[line])
            if block is None:
                continue
            entries.append(LineMapEntry(line=line, page=block.page, y=block.bottom + sync.offset_y))
        return entries


def _read_sync_file(sync_path: str) -> str:
    if sync_path.endswith(".gz"):
        with gzip.open(sync_path, "rt", encoding="utf-8", errors="replace") as f:
            return f.read()
    with open(sync_path, encoding="utf-8", errors="replace") as f:
        return f.read()


def _find_input_path(source_path: str, sync: SyncObject) -> str | None:
    """Find the recorded input path that names *source_path*.

    Recorded paths may be relative to the sync file's directory. Comparison
    is case-insensitive on every platform so Windows paths line up.
    """
    sync_dir = os.path.dirname(os.path.abspath(source_path))
    wanted = os.path.abspath(source_path).lower()
    for input_path in sync.block_index:
        if os.path.abspath(os.path.join(sync_dir, input_path)).lower() == wanted:
            return input_path
    return None


def _position(sync: SyncObject, block: Block | None) -> ForwardSyncResult | None:
    if block is None:
        return None
    return ForwardSyncResult(
        page=block.page,
        x=block.left + sync.offset_x,
        y=block.bottom + sync.offset_y,
    )
