from texfeedback.core.logparser.parser import Diagnostic, LatexLogParser, parse_latex_log
from texfeedback.core.logparser.patterns import DiagnosticSeverity, LogEntry, map_severity, parse_file_stack

ROOT = "/proj/main.tex"


def test_empty_log_has_no_diagnostics():
    assert parse_latex_log("", ROOT) == []


def test_undefined_control_sequence_with_context_marker():
    diagnostics = parse_latex_log("! Undefined control sequence.\nl.12 \\foo", ROOT)
    assert diagnostics == [
        Diagnostic(
            file=ROOT,
            line=12,
            severity=DiagnosticSeverity.ERROR,
            message="Undefined control sequence.",
            error_pos_text="\\foo",
        )
    ]


def test_error_message_accumulates_until_blank_line():
    log = "\n".join([
        "! Missing $ inserted.",
        "<inserted text> ",
        "                $",
        "l.8 a_",
        "",
    ])
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.message == "Missing $ inserted.\n<inserted text>"
    assert diagnostic.line == 1


def test_error_with_module_infix():
    [diagnostic] = parse_latex_log("! Package babel Error: Unknown option `klingon'.\n\n", ROOT)
    assert diagnostic.message == "Package babel: Unknown option `klingon'."
    assert diagnostic.severity == DiagnosticSeverity.ERROR


def test_latex_error_infix_is_dropped():
    [diagnostic] = parse_latex_log("! LaTeX Error: File `missing.sty' not found.\n\n", ROOT)
    assert diagnostic.message == "File `missing.sty' not found."


def test_file_line_error_style_resolves_against_root_directory():
    log = "./sections/intro.tex:15: Undefined control sequence.\nl.15 \\oops\n"
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.file == "/proj/sections/intro.tex"
    assert diagnostic.line == 15
    assert diagnostic.message == "Undefined control sequence."


def test_overfull_box_in_paragraph_skips_next_line():
    log = "\n".join([
        "Overfull \\hbox (5.2pt too wide) in paragraph at lines 10--12",
        "! LaTeX Error: this garbage line must be ignored.",
        "",
    ])
    assert parse_latex_log(log, ROOT) == [
        Diagnostic(
            file=ROOT,
            line=10,
            severity=DiagnosticSeverity.INFO,
            message="Overfull \\hbox (5.2pt too wide)",
        )
    ]


def test_underfull_box_detected_at_line():
    log = "Underfull \\vbox (badness 10000) detected at line 33\n[]\n"
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.line == 33
    assert diagnostic.message == "Underfull \\vbox (badness 10000)"
    assert diagnostic.severity == DiagnosticSeverity.INFO


def test_box_warning_while_output_active_keeps_parsing():
    log = "\n".join([
        "Overfull \\vbox (12.0pt too high) has occurred while \\output is active [3]",
        "Package foo Warning: next one on input line 2.",
        "",
    ])
    first, second = parse_latex_log(log, ROOT)
    assert first.message == "Overfull \\vbox (12.0pt too high) in page 3"
    assert first.line == 1
    assert second.message == "Package foo: next one."
    assert second.line == 2


def test_package_warning():
    [diagnostic] = parse_latex_log("Package foo Warning: bar baz on input line 7.\n", ROOT)
    assert diagnostic.severity == DiagnosticSeverity.WARNING
    assert diagnostic.line == 7
    assert diagnostic.message == "Package foo: bar baz."


def test_package_warning_continuation_lines():
    log = "\n".join([
        "Package hyperref Warning: Token not allowed in a PDF string (Unicode):",
        "(hyperref)                removing `\\textbf' on input line 21.",
        "",
    ])
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.line == 21
    assert diagnostic.message == (
        "Package hyperref: Token not allowed in a PDF string (Unicode):\n"
        "(hyperref)\tremoving `\\textbf'."
    )


def test_continuation_without_line_keeps_line_number():
    log = "\n".join([
        "Class memoir Warning: Odd layout on input line 4.",
        "(memoir)              Check your margins",
        "",
    ])
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.line == 4


def test_info_messages_map_to_info():
    log = "LaTeX Font Info:    Checking defaults for OML/cmm/m/it on input line 5.\n"
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.severity == DiagnosticSeverity.INFO
    assert diagnostic.message == "LaTeX Font: Checking defaults for OML/cmm/m/it."
    assert diagnostic.line == 5


def test_undefined_reference_and_citation():
    log = "\n".join([
        "LaTeX Warning: Reference `fig:arch' on page 3 undefined on input line 42.",
        "LaTeX Warning: Citation `knuth84' on page 4 undefined on input line 50.",
        "",
        "LaTeX Warning: There were undefined references.",
    ])
    reference, citation = parse_latex_log(log, ROOT)
    assert reference.message == "Cannot find reference `fig:arch`."
    assert reference.line == 42
    assert reference.error_pos_text == "fig:arch"
    assert reference.severity == DiagnosticSeverity.WARNING
    assert citation.message == "Cannot find citation `knuth84`."
    assert citation.error_pos_text == "knuth84"


def test_no_pages_of_output_is_error():
    [diagnostic] = parse_latex_log("No pages of output.\n", ROOT)
    assert diagnostic.severity == DiagnosticSeverity.ERROR
    assert diagnostic.line == 1
    assert diagnostic.message == "No pages of output."


def test_missing_character_warning():
    log = "Missing character: There is no ^^A in font cmr10!\n"
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.severity == DiagnosticSeverity.WARNING
    assert diagnostic.message == "Missing character: There is no ^^A in font cmr10!"


def test_biber_missing_entry_has_no_file():
    log = "Biber warning: [102] Biber.pm:1234> WARN - I didn't find a database entry for 'lamport94' (section 0)\n"
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.file == ""
    assert diagnostic.message == "No bib entry found for 'lamport94'"
    assert diagnostic.severity == DiagnosticSeverity.WARNING


def test_biber_line_with_several_missing_entries():
    log = (
        "Biber warning: x WARN - I didn't find a database entry for 'a'"
        "Biber warning: y WARN - I didn't find a database entry for 'b'\n"
    )
    first, second = parse_latex_log(log, ROOT)
    assert first.message == "No bib entry found for 'a'"
    assert second.message == "No bib entry found for 'b'"


def test_empty_bibliography_dropped_only_at_end():
    trailing = "LaTeX Warning: Empty `thebibliography' environment on input line 20.\n"
    assert parse_latex_log(trailing, ROOT) == []

    followed = trailing + "\nPackage foo Warning: later on input line 30.\n"
    first, second = parse_latex_log(followed, ROOT)
    assert "thebibliography" in first.message
    assert second.line == 30


def test_final_pending_diagnostic_is_flushed():
    [diagnostic] = parse_latex_log("! Emergency stop.", ROOT)
    assert diagnostic.message == "Emergency stop."


def test_file_stack_attributes_errors_to_included_file():
    log = "\n".join([
        "(./chapter1.tex",
        "! Undefined control sequence.",
        "l.3 \\bar",
        "",
        ")",
        "! Undefined control sequence.",
        "l.9 \\baz",
    ])
    first, second = parse_latex_log(log, ROOT)
    assert first.file == "/proj/chapter1.tex"
    assert first.line == 3
    assert second.file == ROOT
    assert second.line == 9


def test_unattributable_parens_do_not_pop_files():
    log = "\n".join([
        "(./chapter2.tex (see the transcript file for details)",
        "! Undefined control sequence.",
        "l.4 \\qux",
    ])
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.file == "/proj/chapter2.tex"


def test_bare_filename_goes_on_stack():
    log = "(article.cls\n! Undefined control sequence.\nl.1 \\x\n"
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.file == "/proj/article.cls"


def test_file_stack_never_empties():
    log = "))))\n! Undefined control sequence.\nl.2 \\y\n"
    [diagnostic] = parse_latex_log(log, ROOT)
    assert diagnostic.file == ROOT


def test_crlf_logs():
    [diagnostic] = parse_latex_log("Package foo Warning: bar baz on input line 7.\r\n\r\n", ROOT)
    assert diagnostic.message == "Package foo: bar baz."


def test_garbage_input_is_inert():
    log = "This is pdfTeX, Version 3.141592653\n)(]}{[\n\x00\x01 random ((( )))\n"
    assert parse_latex_log(log, ROOT) == []


def test_parser_can_be_fed_incrementally():
    parser = LatexLogParser(ROOT)
    parser.feed("Package foo Warning: bar baz on input line 7.")
    parser.feed("")
    [diagnostic] = parser.finish()
    assert diagnostic.line == 7


def test_map_severity():
    assert map_severity("error") == DiagnosticSeverity.ERROR
    assert map_severity("warning") == DiagnosticSeverity.WARNING
    assert map_severity("typesetting") == DiagnosticSeverity.INFO
    assert map_severity("info") == DiagnosticSeverity.INFO


def test_parse_file_stack_tracks_nesting():
    stack = ["/proj/main.tex"]
    nested = parse_file_stack("(/usr/share/texmf/tex/latex/base/article.cls (size10.clo) (x)", stack, 0)
    assert stack == ["/proj/main.tex", "/usr/share/texmf/tex/latex/base/article.cls"]
    assert nested == 0
    nested = parse_file_stack("(size11.clo", stack, nested)
    assert stack[-1] == "./size11.clo"
    nested = parse_file_stack("))", stack, nested)
    assert stack == ["/proj/main.tex"]


def test_parse_file_stack_windows_path():
    stack: list[str] = []
    parse_file_stack('("C:\\texlive\\doc.tex"', stack, 0)
    assert stack == ["C:\\texlive\\doc.tex"]


def test_log_entry_defaults_to_not_pending():
    assert LogEntry().type == ""
