"""Line grammar of LaTeX engine logs.

The patterns follow what pdfTeX/XeTeX/LuaTeX, LaTeX kernel warnings and
Biber actually print; the output format is undocumented and drifts between
versions, so these regexes are the working definition. Keep them in sync
with real log samples.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

# "./chapter.tex:12: Undefined control sequence." (file:line:error style)
# or "! LaTeX Error: File `foo.sty' not found."
LATEX_ERROR = re.compile(r"^(?:(.*):(\d+):|!)(?:\s?(.+) [Ee]rror:)? (.+?)$")

OVERFULL_BOX = re.compile(r"^(Overfull \\[vh]box \([^)]*\)) in paragraph at lines (\d+)--(\d+)$")
OVERFULL_BOX_ALT = re.compile(r"^(Overfull \\[vh]box \([^)]*\)) detected at line (\d+)$")
OVERFULL_BOX_OUTPUT = re.compile(
    r"^(Overfull \\[vh]box \([^)]*\)) has occurred while \\output is active(?: \[(\d+)\])?"
)
UNDERFULL_BOX = re.compile(r"^(Underfull \\[vh]box \([^)]*\)) in paragraph at lines (\d+)--(\d+)$")
UNDERFULL_BOX_ALT = re.compile(r"^(Underfull \\[vh]box \([^)]*\)) detected at line (\d+)$")
UNDERFULL_BOX_OUTPUT = re.compile(
    r"^(Underfull \\[vh]box \([^)]*\)) has occurred while \\output is active(?: \[(\d+)\])?"
)

BAD_BOX_PATTERNS = (
    OVERFULL_BOX,
    OVERFULL_BOX_ALT,
    OVERFULL_BOX_OUTPUT,
    UNDERFULL_BOX,
    UNDERFULL_BOX_ALT,
    UNDERFULL_BOX_OUTPUT,
)
# Box warnings printed from inside the output routine; may be followed by a
# page marker on the same physical line.
BAD_BOX_OUTPUT_PATTERNS = (OVERFULL_BOX_OUTPUT, UNDERFULL_BOX_OUTPUT)

LATEX_WARNING = re.compile(
    r"^((?:(?:Class|Package|Module) \S*)|LaTeX(?: \S*)?|LaTeX3) (Warning|Info):\s+(.*?)"
    r"(?: on(?: input)? line (\d+))?(\.|\?|)$"
)
# "(hyperref)                removing `\foo' on input line 7."
PACKAGE_WARNING_CONTINUATION = re.compile(r"^\((.*)\)\s+(.*?)(?: +on input line (\d+))?(\.)?$")
MISSING_CHARACTER = re.compile(r"^\s*(Missing character:.*?!)")
NO_PAGES_OF_OUTPUT = re.compile(r"^No pages of output\.$")
EMPTY_BIBLIOGRAPHY = re.compile(r"Empty `thebibliography' environment")
BIBER_MISSING_ENTRY = re.compile(r"^Biber warning:.*?WARN - I didn't find a database entry for '([^']+)'")
UNDEFINED_REFERENCE = re.compile(
    r"^LaTeX Warning: (Reference|Citation) `(.*?)' on page (?:\d+) undefined on input line (\d+).$"
)
UNDEFINED_REFERENCES_SUMMARY = "LaTeX Warning: There were undefined references."
# "l.12 \foo" context marker printed after an error message
ERROR_CONTEXT_LINE = re.compile(r"^l\.(\d+)\s(\.\.\.)?(.*)$")

_FILE_PATH = re.compile(r'^"?((?:(?:[a-zA-Z]:|\.|/)?(?:/|\\\\?))[^"()\[\]]*)')
# MiKTeX prints bare names such as "(article.cls"
_BARE_FILE_NAME = re.compile(r'^"?([^"()\[\]]*\.[a-z]{3,})')
_PAREN = re.compile(r"[()]")


class DiagnosticSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class LogEntry:
    """A diagnostic still being assembled by the parser.

    ``type`` is ``"error"``, ``"warning"``, ``"info"`` or ``"typesetting"``
    (bad boxes); an empty type means no entry is pending.
    """

    type: str = ""
    file: str = ""
    text: str = ""
    line: int = 1
    error_pos_text: str | None = None


def map_severity(entry_type: str) -> DiagnosticSeverity:
    if entry_type == "error":
        return DiagnosticSeverity.ERROR
    if entry_type == "warning":
        return DiagnosticSeverity.WARNING
    return DiagnosticSeverity.INFO


def parse_file_stack(line: str, file_stack: list[str], nested: int) -> int:
    """Track file inclusion from the parentheses in one log line.

    ``(`` followed by something path-shaped pushes that file onto
    *file_stack*; any other ``(`` bumps the *nested* counter so that its
    matching ``)`` does not pop a real file. Mutates *file_stack* in place
    and returns the updated counter.
    """
    remaining = line
    while True:
        match = _PAREN.search(remaining)
        if match is None:
            break
        remaining = remaining[match.end():]
        if match.group(0) == "(":
            path_match = _FILE_PATH.match(remaining)
            bare_match = _BARE_FILE_NAME.match(remaining)
            if path_match:
                file_stack.append(path_match.group(1).strip())
            elif bare_match:
                file_stack.append(f"./{bare_match.group(1).strip()}")
            else:
                nested += 1
        elif nested > 0:
            nested -= 1
        elif file_stack:
            file_stack.pop()
    return nested
