"""
NL Programming Language Parser
Recursive descent over the token sequence with one token of lookahead and no
backtracking. The first mismatch aborts the whole parse.
"""

from typing import List, Tuple, Type

from syntax import (
    Assignment, ASTNode, BinaryOperation, Expression, Identifier, If, IfElse,
    NumberLiteral, Print, Program, Statement, StringLiteral, Token, TokenType,
    VariableDeclaration, children_of,
)
from tokenizer import NLTokenizer, scan
from error_handling import NLNestingError, NLParseError, NLUnexpectedEndError, describe_expected
from utilities import debug_trace


# Operators folded at the expression level; '==' and '!=' are also folded
# one level down in parse_term, so equality binds to its neighbouring factors
# before the expression loop sees it.
EXPRESSION_OPERATORS = (
    TokenType.PLUS, TokenType.MINUS, TokenType.EQUAL_EQUAL, TokenType.NOT_EQUAL,
    TokenType.STAR, TokenType.SLASH, TokenType.PERCENT, TokenType.LESS,
    TokenType.GREATER,
)
TERM_OPERATORS = (TokenType.EQUAL_EQUAL, TokenType.NOT_EQUAL)

# Each level of parentheses or braces costs three parser frames
MAX_NESTING_DEPTH = 200


class NLGrammar:
    """Recursive descent parser for one token sequence"""

    def __init__(self, tokens: List[Token], debug: bool = False, color: bool = True):
        self.tokens = tokens
        self.current = 0
        self.depth = 0
        self.debug = debug
        self.color = color

    # ------------------------------------------------------------------
    # Program and statements
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        statements = []

        while self.current_token().type != TokenType.END_OF_FILE:
            statements.append(self.parse_statement())

        if self.debug:
            debug_trace(f"parsed {len(statements)} statements from {len(self.tokens)} tokens", self.color)
        return Program(tuple(statements))

    def parse_statement(self) -> Statement:
        token_type = self.current_token().type
        if token_type == TokenType.LET:
            return self.parse_variable_declaration()
        if token_type == TokenType.PRINT:
            return self.parse_print_statement()
        if token_type == TokenType.IF:
            return self.parse_if_statement()
        return self.parse_assignment()

    def parse_variable_declaration(self) -> VariableDeclaration:
        self.expect_token(TokenType.LET)
        identifier = self.expect_identifier()
        self.expect_token(TokenType.ASSIGN)
        value = self.parse_expression()
        self.expect_token(TokenType.SEMICOLON)

        return VariableDeclaration(identifier, value)

    def parse_print_statement(self) -> Print:
        self.expect_token(TokenType.PRINT)
        expression = self.parse_expression()
        self.expect_token(TokenType.SEMICOLON)

        return Print(expression)

    def parse_assignment(self) -> Assignment:
        identifier = self.expect_identifier()
        self.expect_token(TokenType.ASSIGN)
        expression = self.parse_expression()
        self.expect_token(TokenType.SEMICOLON)

        return Assignment(identifier, expression)

    def parse_if_statement(self) -> Statement:
        self.expect_token(TokenType.IF)
        condition = self.parse_expression()
        then_branch = self.parse_block()

        if self.current_token().type == TokenType.ELSE:
            self.next_token()
            else_branch = self.parse_block()
            return IfElse(condition, then_branch, else_branch)

        return If(condition, then_branch)

    def parse_block(self) -> Tuple[Statement, ...]:
        self.enter_nesting()
        self.expect_token(TokenType.LEFT_BRACE)
        statements = []

        while self.current_token().type != TokenType.RIGHT_BRACE:
            if self.current_token().type == TokenType.END_OF_FILE:
                raise NLUnexpectedEndError(
                    "Unterminated block: expected '}' before end of input",
                    expected=TokenType.RIGHT_BRACE,
                    found=self.current_token(),
                    position=self.current
                )
            statements.append(self.parse_statement())

        self.expect_token(TokenType.RIGHT_BRACE)
        self.depth -= 1
        return tuple(statements)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        left_node = self.parse_term()

        while self.current_token().type in EXPRESSION_OPERATORS:
            operator = self.current_token()
            self.next_token()

            right_node = self.parse_term()
            left_node = BinaryOperation(left_node, operator, right_node)

        return left_node

    def parse_term(self) -> Expression:
        left_node = self.parse_factor()

        while self.current_token().type in TERM_OPERATORS:
            operator = self.current_token()
            self.next_token()

            right_node = self.parse_factor()
            left_node = BinaryOperation(left_node, operator, right_node)

        return left_node

    def parse_factor(self) -> Expression:
        token = self.current_token()

        if token.type == TokenType.NUMBER:
            self.next_token()
            return NumberLiteral(token.value)
        if token.type == TokenType.STRING:
            self.next_token()
            return StringLiteral(token.value)
        if token.type == TokenType.IDENTIFIER:
            self.next_token()
            return Identifier(token.value, token.span)
        if token.type == TokenType.LEFT_PAREN:
            self.enter_nesting()
            self.next_token()
            expression = self.parse_expression()
            self.expect_token(TokenType.RIGHT_PAREN)
            self.depth -= 1
            return expression

        raise NLParseError(
            f"Unexpected token {token.describe()} at {self.current}",
            expected="expression",
            found=token,
            position=self.current
        )

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def enter_nesting(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            token = self.current_token()
            raise NLNestingError(
                f"Nesting deeper than {MAX_NESTING_DEPTH} levels at {self.current}",
                expected=f"at most {MAX_NESTING_DEPTH} nested parentheses or blocks",
                found=token,
                position=self.current
            )

    def expect_token(self, token_type: TokenType) -> Token:
        token = self.current_token()
        if token.type != token_type:
            raise NLParseError(
                f"Expected token {describe_expected(token_type)} but found {token.describe()} at {self.current}",
                expected=token_type,
                found=token,
                position=self.current
            )
        self.next_token()
        return token

    def expect_identifier(self) -> str:
        token = self.current_token()
        if token.type != TokenType.IDENTIFIER:
            raise NLParseError(
                f"Expected identifier but found {token.describe()} at {self.current}",
                expected=TokenType.IDENTIFIER,
                found=token,
                position=self.current
            )
        self.next_token()
        return token.value

    def current_token(self) -> Token:
        if self.current >= len(self.tokens):
            raise NLUnexpectedEndError("Unexpected end of input", position=self.current)
        return self.tokens[self.current]

    def next_token(self) -> None:
        if self.current < len(self.tokens) - 1:
            self.current += 1
        else:
            raise NLUnexpectedEndError(
                "Unexpected end of input",
                found=self.current_token(),
                position=self.current
            )


def parse(tokens: List[Token], debug: bool = False, color: bool = True) -> Program:
    """Parse a token sequence into a Program"""
    return NLGrammar(tokens, debug, color).parse()


def scan_and_parse(source: str, filename: str = "<input>", debug: bool = False,
                   color: bool = True) -> Program:
    """Scan and parse NL source text; parse errors carry source context"""
    tokens = scan(source, filename)
    if debug:
        debug_trace(f"scanned {len(tokens)} tokens from {filename}", color)
    try:
        return parse(tokens, debug, color)
    except NLParseError as e:
        e.attach_source(source, filename)
        raise


class NLParser:
    """Main NL parser combining tokenizer and grammar"""

    def __init__(self, debug: bool = False, color: bool = True):
        self.debug = debug
        self.color = color

    def parse_file(self, filepath: str) -> Program:
        """Parse an NL source file"""
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_string(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> Program:
        """Parse NL source code from string"""
        return scan_and_parse(text, filename, self.debug, self.color)

    def tokenize(self, text: str, filename: str = "<input>") -> List[Token]:
        """Tokenize NL source code"""
        return NLTokenizer(filename).tokenize(text)


# Factory functions for creating parsers
def create_parser(debug: bool = False, color: bool = True) -> NLParser:
    """Create an NL parser"""
    return NLParser(debug=debug, color=color)


def create_debug_parser() -> NLParser:
    """Create an NL parser with debug enabled"""
    return NLParser(debug=True)


def find_nodes_by_type(node: ASTNode, node_type: Type) -> List[ASTNode]:
    """Find all nodes of a specific class in a tree, in source order"""
    result = []
    pending = [node]

    while pending:
        current = pending.pop()
        if isinstance(current, node_type):
            result.append(current)
        pending.extend(reversed(children_of(current)))

    return result
