"""
Error handling for the NL front end and interpreter
Exception hierarchy plus helpers that render errors with source context
"""

from typing import List, Optional, Dict, Any
from syntax import SourceSpan, Token, TokenType


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    filename: str = "<input>"
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'filename': filename
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    if error['line']:
        error_msg = f"Parse error at {error['filename']}:{error['line']}:{error['column']} (token {error['location']}):\n"
    else:
        error_msg = f"Parse error at token {error['location']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        if i == line_num - 1:
            context_parts.append(f"{line_prefix}{lines[i]}")
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")
        else:
            context_parts.append(f"{line_prefix}{lines[i]}")

    return '\n'.join(context_parts)


def end_of_source_position(source_text: str) -> Dict[str, int]:
    """Line and column just past the last character of the source"""
    lines = source_text.split('\n')
    return {'line': len(lines), 'column': len(lines[-1]) + 1}


def describe_expected(expected: Any) -> str:
    """Render an expected token kind (or free text) for messages"""
    if isinstance(expected, TokenType):
        if expected == TokenType.IDENTIFIER:
            return "identifier"
        if expected == TokenType.END_OF_FILE:
            return "end of input"
        return f"'{expected.value}'"
    if isinstance(expected, Token):
        return expected.describe()
    return str(expected)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class NLError(Exception):
    """Base class of every NL error"""

    def __init__(self, message: str, span: Optional[SourceSpan] = None):
        self.message = message
        self.span = span
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.span:
            return f"{self.span}: {self.message}"
        return self.message


class NLLiteralError(NLError):
    """Integer literal that does not fit a 32-bit signed integer"""

    def __init__(self, text: str, span: Optional[SourceSpan] = None):
        self.text = text
        super().__init__(f"Integer literal {text} is out of range", span)


class NLParseError(NLError):
    """Grammar mismatch; carries expected vs found token and the token index"""

    def __init__(self, message: str, expected: Any = None, found: Optional[Token] = None,
                 position: int = 0):
        self.expected = expected
        self.found = found
        self.position = position
        self.line = 0
        self.column = 0
        self.filename = "<input>"
        self.context = None
        span = found.span if found is not None else None
        if span is not None:
            self.line, self.column, self.filename = span.line, span.column, span.filename
        super().__init__(message, span)

    def attach_source(self, source_text: str, filename: Optional[str] = None) -> "NLParseError":
        """Fill in line, column and context lines from the source text"""
        if filename:
            self.filename = filename
        if not self.line:
            if self.found is not None and self.found.type != TokenType.END_OF_FILE:
                return self
            position = end_of_source_position(source_text)
            self.line, self.column = position['line'], position['column']
        self.context = get_context_lines(source_text, self.line, self.column)
        return self

    def to_dict(self) -> Dict:
        return make_parse_error(
            message=self.message,
            location=self.position,
            line=self.line,
            column=self.column,
            expected=[describe_expected(self.expected)] if self.expected is not None else None,
            got=self.found.describe() if self.found is not None else None,
            context=self.context,
            filename=self.filename
        )

    def __str__(self) -> str:
        return format_parse_error(self.to_dict())


class NLUnexpectedEndError(NLParseError):
    """Parser ran past the final token"""
    pass


class NLNestingError(NLParseError):
    """Parentheses or blocks nested deeper than the parser accepts"""
    pass



class NLRuntimeError(NLError):
    """Evaluation fault; aborts the run without rolling back earlier output"""

    UNDEFINED_VARIABLE = "undefined variable"
    TYPE_MISMATCH = "type mismatch"
    DIVISION_BY_ZERO = "division by zero"
    INTEGER_OVERFLOW = "integer overflow"
    INVALID_CONDITION = "invalid condition"

    def __init__(self, kind: str, detail: str = "", span: Optional[SourceSpan] = None):
        self.kind = kind
        self.detail = detail
        message = f"{kind}: {detail}" if detail else kind
        super().__init__(message, span)
