"""LaTeX log parser.

Consumes the engine's log one line at a time and produces a flat list of
:class:`Diagnostic` in log order. Messages may span several lines, so the
parser keeps one pending entry and flushes it when the next message starts
or at end of input. The file each message belongs to is inferred from the
parenthesis nesting the engine prints while opening and closing inputs.

Never raises; lines it does not recognise only feed the file tracker.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from texfeedback.core.logparser.patterns import (
    BAD_BOX_OUTPUT_PATTERNS,
    BAD_BOX_PATTERNS,
    BIBER_MISSING_ENTRY,
    EMPTY_BIBLIOGRAPHY,
    ERROR_CONTEXT_LINE,
    LATEX_ERROR,
    LATEX_WARNING,
    MISSING_CHARACTER,
    NO_PAGES_OF_OUTPUT,
    PACKAGE_WARNING_CONTINUATION,
    UNDEFINED_REFERENCE,
    UNDEFINED_REFERENCES_SUMMARY,
    DiagnosticSeverity,
    LogEntry,
    map_severity,
    parse_file_stack,
)

_NEWLINE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class Diagnostic:
    file: str
    line: int
    severity: DiagnosticSeverity
    message: str
    # l.NNN context of an error, or the key of an undefined reference
    error_pos_text: str | None = None


class LatexLogParser:
    """Stateful line consumer; use :func:`parse_latex_log` for whole logs."""

    def __init__(self, root_file: str):
        self.root_file = root_file
        self.root_dir = os.path.dirname(root_file)
        self.search_empty_line = False
        self.inside_box_warning = False
        self.inside_error = False
        self.current = LogEntry()
        self.nested = 0
        self.file_stack: list[str] = [root_file]
        self.entries: list[LogEntry] = []

    def feed(self, line: str) -> None:
        """Process one physical log line.

        Some messages leave more to parse on the same line; the remainder
        is fed back in. It shrinks on every pass, so the loop is bounded.
        """
        remaining: str | None = line
        for _ in range(len(line) + 1):
            remaining = self._parse_line(remaining)
            if remaining is None:
                break

    def finish(self) -> list[Diagnostic]:
        # An empty bibliography at the very end is noise for citation-free documents
        if self.current.type and not EMPTY_BIBLIOGRAPHY.search(self.current.text):
            self.entries.append(self.current)
        self.current = LogEntry()
        return [
            Diagnostic(
                file=entry.file,
                line=entry.line,
                severity=map_severity(entry.type),
                message=entry.text.strip(),
                error_pos_text=entry.error_pos_text,
            )
            for entry in self.entries
        ]

    @property
    def current_file(self) -> str:
        top = self.file_stack[-1] if self.file_stack else self.root_file
        return os.path.abspath(os.path.join(self.root_dir, top))

    def _start(self, entry: LogEntry) -> None:
        if self.current.type:
            self.entries.append(self.current)
        self.current = entry

    def _parse_line(self, line: str) -> str | None:
        """Dispatch one line; returns a remainder still to be parsed, if any."""
        # The engine prints one line of box content after these warnings
        if self.inside_box_warning:
            self.inside_box_warning = False
            return None

        if self.search_empty_line:
            self._continue_message(line)
            return None

        if line == UNDEFINED_REFERENCES_SUMMARY:
            return None
        match = UNDEFINED_REFERENCE.match(line)
        if match:
            self._start(LogEntry(
                type="warning",
                file=self.current_file,
                line=int(match.group(3)),
                text=f"Cannot find {match.group(1).lower()} `{match.group(2)}`.",
                error_pos_text=match.group(2),
            ))
            self.search_empty_line = False
            return None

        for pattern in BAD_BOX_PATTERNS:
            match = pattern.match(line)
            if match is None:
                continue
            if pattern in BAD_BOX_OUTPUT_PATTERNS:
                page = match.group(2)
                self._start(LogEntry(
                    type="typesetting",
                    file=self.current_file,
                    line=1,
                    text=f"{match.group(1)} in page {page}" if page else match.group(1),
                ))
                return line[match.end():]
            self._start(LogEntry(
                type="typesetting",
                file=self.current_file,
                line=int(match.group(2)),
                text=match.group(1),
            ))
            self.inside_box_warning = True
            self.search_empty_line = False
            return None

        match = NO_PAGES_OF_OUTPUT.match(line)
        if match:
            self._start(LogEntry(type="error", file=self.current_file, line=1, text=match.group(0)))
            self.search_empty_line = True
            self.inside_error = True
            return None

        match = MISSING_CHARACTER.match(line)
        if match:
            self._start(LogEntry(type="warning", file=self.current_file, line=1, text=match.group(1)))
            self.search_empty_line = False
            return None

        match = LATEX_WARNING.match(line)
        if match:
            emitter, kind, body, line_number, punctuation = match.groups()
            self._start(LogEntry(
                type="warning" if kind == "Warning" else "info",
                file=self.current_file,
                line=int(line_number) if line_number else 1,
                text=f"{emitter}: {body}{punctuation}",
            ))
            self.search_empty_line = True
            return None

        match = BIBER_MISSING_ENTRY.match(line)
        if match:
            self._start(LogEntry(
                type="warning",
                file="",
                line=1,
                text=f"No bib entry found for '{match.group(1)}'",
            ))
            self.search_empty_line = False
            return line[match.end():]

        match = LATEX_ERROR.match(line)
        if match:
            path, line_number, module, body = match.groups()
            self._start(LogEntry(
                type="error",
                file=os.path.abspath(os.path.join(self.root_dir, path)) if path else self.current_file,
                line=int(line_number) if line_number else 1,
                text=f"{module}: {body}" if module and module != "LaTeX" else body,
            ))
            self.search_empty_line = True
            self.inside_error = True
            return None

        self.nested = parse_file_stack(line, self.file_stack, self.nested)
        if not self.file_stack:
            self.file_stack.append(self.root_file)
        return None

    def _continue_message(self, line: str) -> None:
        if not line.strip() or (self.inside_error and line[:1].isspace()):
            self.current.text += "\n"
            self.search_empty_line = False
            self.inside_error = False
            return

        match = PACKAGE_WARNING_CONTINUATION.match(line)
        if match:
            module, body, line_number, period = match.groups()
            self.current.text += f"\n({module})\t{body}{'.' if period else ''}"
            # Without its own "on input line N" the continuation keeps the warning's line
            if line_number:
                self.current.line = int(line_number)
            return

        if self.inside_error:
            match = ERROR_CONTEXT_LINE.match(line)
            if match:
                self.current.line = int(match.group(1))
                self.current.error_pos_text = match.group(3)
                self.search_empty_line = False
                self.inside_error = False
                return

        self.current.text += "\n" + line


def parse_latex_log(log: str, root_file: str) -> list[Diagnostic]:
    """Parse a complete engine log into diagnostics, in log order.

    ``root_file`` is the absolute path of the main document; relative input
    paths printed in the log are resolved against its directory.
    """
    parser = LatexLogParser(root_file)
    for line in _NEWLINE.split(log or ""):
        parser.feed(line)
    return parser.finish()
