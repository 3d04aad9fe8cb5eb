"""Async entry points for the feedback engines.

Both engines are blocking pure-Python code, so they run in a worker thread
to keep the event loop responsive on large logs and sync files.
"""

import asyncio
import logging

from texfeedback.core.logparser.parser import Diagnostic, parse_latex_log
from texfeedback.core.logparser.patterns import DiagnosticSeverity
from texfeedback.core.synctex.navigator import (
    ForwardSyncResult,
    InverseSyncResult,
    LineMapEntry,
    SyncNavigator,
)

logger = logging.getLogger(__name__)


async def collect_diagnostics(log: str, root_file: str) -> list[Diagnostic]:
    diagnostics = await asyncio.to_thread(parse_latex_log, log, root_file)
    counts = count_by_severity(diagnostics)
    logger.info(
        "Parsed log for %s: %d errors, %d warnings, %d infos",
        root_file,
        counts[DiagnosticSeverity.ERROR],
        counts[DiagnosticSeverity.WARNING],
        counts[DiagnosticSeverity.INFO],
    )
    return diagnostics


def count_by_severity(diagnostics: list[Diagnostic]) -> dict[DiagnosticSeverity, int]:
    counts = {severity: 0 for severity in DiagnosticSeverity}
    for diagnostic in diagnostics:
        counts[diagnostic.severity] += 1
    return counts


async def forward_sync(navigator: SyncNavigator, source_path: str, line: int) -> ForwardSyncResult | None:
    return await asyncio.to_thread(navigator.forward_sync, source_path, line)


async def inverse_sync(
    navigator: SyncNavigator, source_path: str, page: int, x: float, y: float
) -> InverseSyncResult | None:
    return await asyncio.to_thread(navigator.inverse_sync, source_path, page, x, y)


async def build_line_map(navigator: SyncNavigator, source_path: str) -> list[LineMapEntry]:
    return await asyncio.to_thread(navigator.build_line_map, source_path)


def compilation_started(navigator: SyncNavigator) -> None:
    """Forget cached sync data; the next query re-reads the new sync file."""
    navigator.clear_cache()
    logger.debug("SyncTeX cache cleared for new compilation")
