"""
NL syntax model
Token vocabulary and AST node shapes shared by the tokenizer, parser and interpreter
"""

from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum


# ============================================================================
# TOKENS
# ============================================================================

class TokenType(Enum):
    """Closed set of token kinds"""
    # Keywords
    LET = "let"
    PRINT = "print"
    IF = "if"
    ELSE = "else"

    # Punctuation
    ASSIGN = "="
    EQUAL_EQUAL = "=="
    NOT_EQUAL = "!="
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    LESS = "<"
    GREATER = ">"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    COMMA = ","
    SEMICOLON = ";"

    # Payload carrying
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"

    END_OF_FILE = "end of input"
    UNKNOWN = "unknown"


KEYWORDS = {
    "let": TokenType.LET,
    "print": TokenType.PRINT,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
}

PAYLOAD_TYPES = (TokenType.IDENTIFIER, TokenType.NUMBER, TokenType.STRING)


@dataclass(frozen=True)
class SourceSpan:
    """Source location of a token"""
    filename: str
    line: int
    column: int
    offset: int
    text: str = ""

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Token:
    """NL token; the span is diagnostic only and ignored by equality"""
    type: TokenType
    value: Any = None
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    def describe(self) -> str:
        """Human readable form used in error messages"""
        if self.type == TokenType.IDENTIFIER:
            return f"identifier '{self.value}'"
        if self.type == TokenType.NUMBER:
            return f"number {self.value}"
        if self.type == TokenType.STRING:
            return f'string "{self.value}"'
        if self.type == TokenType.END_OF_FILE:
            return "end of input"
        if self.type == TokenType.UNKNOWN:
            if self.span and self.span.text:
                return f"unknown character {self.span.text!r}"
            return "unknown character"
        return f"'{self.type.value}'"

    def __str__(self) -> str:
        if self.type in PAYLOAD_TYPES:
            return f"{self.type.name}({self.value!r})"
        return self.type.name


def make_token(token_type: TokenType, value: Any = None) -> Token:
    """Create a span-less token (tests, synthetic operators)"""
    return Token(token_type, value)


# ============================================================================
# AST NODES
# ============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    value: int


@dataclass(frozen=True)
class StringLiteral:
    value: str


@dataclass(frozen=True)
class Identifier:
    name: str
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOperation:
    left: "Expression"
    operator: Token
    right: "Expression"


@dataclass(frozen=True)
class VariableDeclaration:
    name: str
    initializer: "Expression"


@dataclass(frozen=True)
class Assignment:
    name: str
    value: "Expression"


@dataclass(frozen=True)
class Print:
    expression: "Expression"


@dataclass(frozen=True)
class If:
    condition: "Expression"
    then_branch: Tuple["Statement", ...]


@dataclass(frozen=True)
class IfElse:
    condition: "Expression"
    then_branch: Tuple["Statement", ...]
    else_branch: Tuple["Statement", ...]


@dataclass(frozen=True)
class Program:
    statements: Tuple["Statement", ...] = ()


Literal = Union[NumberLiteral, StringLiteral]
Expression = Union[NumberLiteral, StringLiteral, Identifier, BinaryOperation]
Statement = Union[VariableDeclaration, Assignment, Print, If, IfElse]
ASTNode = Union[Program, Statement, Expression]

BINARY_OPERATORS = (
    TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH,
    TokenType.PERCENT, TokenType.LESS, TokenType.GREATER,
    TokenType.EQUAL_EQUAL, TokenType.NOT_EQUAL,
)


class UnknownNodeError(TypeError):
    """Raised when a consumer meets a value outside the closed node set"""

    def __init__(self, node: Any):
        self.node = node
        super().__init__(f"Unexpected AST node: {node!r}")


# ============================================================================
# TREE UTILITIES
# ============================================================================

def children_of(node: ASTNode) -> Tuple[ASTNode, ...]:
    """Direct child nodes, in source order"""
    if isinstance(node, Program):
        return node.statements
    if isinstance(node, VariableDeclaration):
        return (node.initializer,)
    if isinstance(node, Assignment):
        return (node.value,)
    if isinstance(node, Print):
        return (node.expression,)
    if isinstance(node, If):
        return (node.condition,) + node.then_branch
    if isinstance(node, IfElse):
        return (node.condition,) + node.then_branch + node.else_branch
    if isinstance(node, BinaryOperation):
        return (node.left, node.right)
    if isinstance(node, (NumberLiteral, StringLiteral, Identifier)):
        return ()
    raise UnknownNodeError(node)


def unwind_operations(node: Expression) -> Tuple[Expression, List[Tuple[Token, Expression]]]:
    """
    Split a left-grouped operation chain into its first operand and the
    (operator, right operand) steps applied to it, in evaluation order.

    ((a + b) * c) unwinds to (a, [(+, b), (*, c)]). Walks the left spine in a
    loop, so arbitrarily long chains never deepen the Python stack.
    """
    steps = []
    while isinstance(node, BinaryOperation):
        steps.append((node.operator, node.right))
        node = node.left
    steps.reverse()
    return node, steps


EQUALITY_OPERATORS = (TokenType.EQUAL_EQUAL, TokenType.NOT_EQUAL)


def _format_expression(node: Expression, nested: bool = False) -> str:
    if isinstance(node, NumberLiteral):
        return str(node.value)
    if isinstance(node, StringLiteral):
        return f'"{node.value}"'
    if isinstance(node, Identifier):
        return node.name
    if isinstance(node, BinaryOperation):
        first, steps = unwind_operations(node)
        text = _format_expression(first, True)
        # The term rule folds '==' and '!=' before any other operator, so a
        # run of them is only safe at the start of the chain; anything after
        # another operator needs the left side in parentheses.
        term_only = True
        for operator, right in steps:
            equality = operator.type in EQUALITY_OPERATORS
            if equality and not term_only:
                text = f"({text})"
                term_only = True
            text = f"{text} {operator.type.value} {_format_expression(right, True)}"
            term_only = term_only and equality
        return f"({text})" if nested else text
    raise UnknownNodeError(node)


def _format_block(statements: Tuple[Statement, ...], indent: int) -> str:
    if not statements:
        return "{ }"
    body = "\n".join(_format_statement(s, indent + 1) for s in statements)
    return "{\n" + body + "\n" + "    " * indent + "}"


def _format_statement(node: Statement, indent: int) -> str:
    pad = "    " * indent
    if isinstance(node, VariableDeclaration):
        return f"{pad}let {node.name} = {_format_expression(node.initializer)};"
    if isinstance(node, Assignment):
        return f"{pad}{node.name} = {_format_expression(node.value)};"
    if isinstance(node, Print):
        return f"{pad}print {_format_expression(node.expression)};"
    if isinstance(node, If):
        return f"{pad}if {_format_expression(node.condition)} {_format_block(node.then_branch, indent)}"
    if isinstance(node, IfElse):
        return (f"{pad}if {_format_expression(node.condition)} {_format_block(node.then_branch, indent)}"
                f" else {_format_block(node.else_branch, indent)}")
    raise UnknownNodeError(node)


def format_source(node: ASTNode) -> str:
    """Re-serialise a tree to NL source text"""
    if isinstance(node, Program):
        return "\n".join(_format_statement(s, 0) for s in node.statements)
    if isinstance(node, (VariableDeclaration, Assignment, Print, If, IfElse)):
        return _format_statement(node, 0)
    return _format_expression(node)


def _node_label(node: ASTNode) -> str:
    if isinstance(node, (NumberLiteral, StringLiteral)):
        return f"{type(node).__name__}({node.value!r})"
    if isinstance(node, Identifier):
        return f"Identifier({node.name!r})"
    if isinstance(node, (VariableDeclaration, Assignment)):
        return f"{type(node).__name__}({node.name!r})"
    if isinstance(node, BinaryOperation):
        return f"BinaryOperation({node.operator.type.value!r})"
    return type(node).__name__


def pretty_print_ast(node: ASTNode, indent: int = 0) -> str:
    """Pretty print an AST node for debugging"""
    lines = []
    # Work stack of (node, indent) pairs and plain heading strings
    pending: List[Any] = [(node, indent)]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            lines.append(item)
            continue

        current, depth = item
        lines.append("  " * depth + _node_label(current))
        if isinstance(current, (If, IfElse)):
            sections = [("condition:", (current.condition,)), ("then:", current.then_branch)]
            if isinstance(current, IfElse):
                sections.append(("else:", current.else_branch))
            for heading, children in reversed(sections):
                pending.extend((child, depth + 2) for child in reversed(children))
                pending.append("  " * (depth + 1) + heading)
        else:
            pending.extend((child, depth + 1) for child in reversed(children_of(current)))

    return "".join(line + "\n" for line in lines)


def ast_to_dict(node: ASTNode) -> Dict[str, Any]:
    """Convert an AST to a dictionary representation"""
    if isinstance(node, Program):
        return {"type": "Program", "statements": [ast_to_dict(s) for s in node.statements]}
    if isinstance(node, VariableDeclaration):
        return {"type": "VariableDeclaration", "name": node.name,
                "initializer": ast_to_dict(node.initializer)}
    if isinstance(node, Assignment):
        return {"type": "Assignment", "name": node.name, "value": ast_to_dict(node.value)}
    if isinstance(node, Print):
        return {"type": "Print", "expression": ast_to_dict(node.expression)}
    if isinstance(node, If):
        return {"type": "If", "condition": ast_to_dict(node.condition),
                "then": [ast_to_dict(s) for s in node.then_branch]}
    if isinstance(node, IfElse):
        return {"type": "IfElse", "condition": ast_to_dict(node.condition),
                "then": [ast_to_dict(s) for s in node.then_branch],
                "else": [ast_to_dict(s) for s in node.else_branch]}
    if isinstance(node, BinaryOperation):
        return {"type": "BinaryOperation", "operator": node.operator.type.value,
                "left": ast_to_dict(node.left), "right": ast_to_dict(node.right)}
    if isinstance(node, Identifier):
        return {"type": "Identifier", "name": node.name}
    if isinstance(node, NumberLiteral):
        return {"type": "NumberLiteral", "value": node.value}
    if isinstance(node, StringLiteral):
        return {"type": "StringLiteral", "value": node.value}
    raise UnknownNodeError(node)
