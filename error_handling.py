"""
Parse error reporting for the AQA pseudocode parser
Turns pyparsing exceptions into AQAParseError with a source excerpt and hints
"""

import re
from typing import List, Optional

from pyparsing import ParseBaseException


KEYWORDS = (
    "CONSTANT", "SUBROUTINE", "ENDSUBROUTINE", "RETURN", "IF", "THEN", "ELSE",
    "ENDIF", "WHILE", "ENDWHILE", "REPEAT", "UNTIL", "OUTPUT", "AND", "OR", "NOT",
)

# Block opener -> the keyword that closes it
BLOCK_CLOSERS = {
    "IF": "ENDIF",
    "WHILE": "ENDWHILE",
    "SUBROUTINE": "ENDSUBROUTINE",
    "REPEAT": "UNTIL",
}


class AQAParseError(Exception):
    """Raised when source text cannot be turned into a syntax tree"""

    def __init__(self, message: str, filename: Optional[str] = None, line: int = 0,
                 column: int = 0, found: Optional[str] = None, excerpt: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.line = line
        self.column = column
        self.found = found
        self.excerpt = excerpt
        self.suggestions = list(suggestions or [])

    def __str__(self) -> str:
        header = "Parse error"
        if self.filename:
            header += f" in {self.filename}"
        if self.line:
            header += f" at line {self.line}, column {self.column}"
        lines = [f"{header}: {self.message}"]
        if self.found:
            lines.append(f"  Found: {self.found}")
        if self.excerpt:
            lines.append(self.excerpt)
        lines.extend(f"  Hint: {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)


def source_excerpt(source_text: str, line: int, column: int) -> Optional[str]:
    """The offending line with a caret under the failing column"""
    if not 0 < line <= source_text.count('\n') + 1:
        return None
    gutter = f"{line:4d} | "
    return f"{gutter}{line_at(source_text, line)}\n{' ' * (len(gutter) + column - 1)}^"


def line_at(source_text: str, line: int) -> str:
    lines = source_text.split('\n')
    return lines[line - 1] if 0 < line <= len(lines) else ""


def suggest_fixes(source_text: str, line_text: str) -> List[str]:
    """Hints for the mistakes people commonly make writing AQA pseudocode"""
    hints = []
    words = line_text.split()
    first_word = words[0] if words else ""

    if ":=" in line_text or re.match(r"\s*[A-Za-z]\w*\s*=", line_text):
        hints.append("Use '<-' for assignment; '=' is the equality relation")

    if any(symbol in line_text for symbol in "{};"):
        hints.append("Blocks are closed with keywords (ENDIF, ENDWHILE, ENDSUBROUTINE), not braces or semicolons")

    for opener, closer in BLOCK_CLOSERS.items():
        opened = len(re.findall(rf"\b{opener}\b", source_text))
        closed = len(re.findall(rf"\b{closer}\b", source_text))
        if opened > closed:
            hints.append(f"Every {opener} needs a matching {closer}")

    for text in source_text.split('\n'):
        if re.search(r"\bIF\b", text) and not re.search(r"\bTHEN\b", text):
            hints.append("IF conditions are followed by THEN on the same line")
            break

    if first_word.islower() and first_word.upper() in KEYWORDS:
        hints.append("Keywords are written in upper case (e.g. OUTPUT, WHILE)")

    return hints


def parse_error_from(exc: ParseBaseException, source_text: str,
                     filename: Optional[str] = None) -> AQAParseError:
    """Convert a pyparsing exception into an AQAParseError for source_text"""
    fragment = source_text[exc.loc:].split('\n', 1)[0].strip()
    if fragment:
        found = repr(fragment[:20])
    elif source_text[exc.loc:].strip():
        found = "end of line"
    else:
        found = "end of input"

    return AQAParseError(
        message=exc.msg,
        filename=None if filename == "<input>" else filename,
        line=exc.lineno,
        column=exc.column,
        found=found,
        excerpt=source_excerpt(source_text, exc.lineno, exc.column),
        suggestions=suggest_fixes(source_text, line_at(source_text, exc.lineno))
    )
