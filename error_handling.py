"""
Error handling for toypl with detailed error messages
Three error kinds: lexical, syntax and runtime, all fatal to the current call
"""

from typing import List, Optional, Dict


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ToyplError(Exception):
    """Base class for every error raised by tokenize, parse or evaluate"""
    kind = "toypl"

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        super().__init__(message)


class ToyplLexError(ToyplError):
    """Unrecognized character in the source text"""
    kind = "Lexical"


class ToyplParseError(ToyplError):
    """Token stream does not match the grammar"""
    kind = "Syntax"

    def __init__(self, message: str, line: Optional[int] = None,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None):
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        super().__init__(message, line)

    def __str__(self) -> str:
        if not self.context and not self.suggestions:
            return self.message
        error_dict = make_parse_error(
            self.message, self.line or 0, self.expected, self.got,
            self.context, self.suggestions
        )
        return format_parse_error(error_dict)


class ToyplRuntimeError(ToyplError):
    """Failure while evaluating an AST"""
    kind = "Runtime"


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    line: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'line': line,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or []
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    error_msg = f"{error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg.rstrip("\n")


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    if not 1 <= line_num <= len(lines):
        return ""
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:  # Error line
            indent = len(lines[i]) - len(lines[i].lstrip())
            context_parts.append(f"{'':6}{' ' * indent}^ Error here")

    return '\n'.join(context_parts)


def generate_suggestions(error: ToyplParseError) -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []
    expected = error.expected
    got = error.got or ""

    if "then" in expected:
        suggestions.append("if needs both branches: if <test> then <expr> else <expr>")

    if "else" in expected:
        suggestions.append("The else branch of an if expression cannot be omitted")

    if "IDENTIFIER" in expected and got in ("def", "set", "mut", "if", "while", "do", "class", "new"):
        suggestions.append(f"'{got}' is a keyword and cannot be used as a name")

    if "IDENTIFIER" in expected and got.isdigit():
        suggestions.append("Names cannot start with a digit")

    if got == ",":
        suggestions.append("Arguments and parameters are separated by spaces, not commas")

    if "EOF" in got or "end of input" in error.message:
        suggestions.append("Check for an unfinished expression or a missing closing bracket")

    return suggestions


# ============================================================================
# ERROR HANDLER
# ============================================================================

class ToyplErrorHandler:
    """Attaches source context to errors raised while processing one source text"""

    def __init__(self, source_text: str, filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def enhance_parse_error(self, error: ToyplParseError) -> ToyplParseError:
        """Return a copy of error carrying context lines and suggestions"""
        context = get_context_lines(self.source_text, error.line) if error.line else ""
        return ToyplParseError(
            message=error.message,
            line=error.line,
            expected=error.expected,
            got=error.got,
            context=context or None,
            suggestions=generate_suggestions(error)
        )

    def format(self, error: ToyplError) -> str:
        """Render any toypl error for display on the command line"""
        if isinstance(error, ToyplParseError):
            error = self.enhance_parse_error(error)
        location = f"{self.filename}:{error.line}: " if error.line else f"{self.filename}: "
        return f"{error.kind} error in {location}{error}"
