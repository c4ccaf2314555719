"""
NL tokenizer
Token rules are a pyparsing grammar; every character of the source ends up in
exactly one token or in skipped whitespace, so scanning never fails on input
it does not recognise.
"""

from bisect import bisect_right
from typing import List
import re

from pyparsing import MatchFirst, ParserElement, Regex, ZeroOrMore

from syntax import KEYWORDS, SourceSpan, Token, TokenType
from error_handling import NLLiteralError


WHITESPACE = " \t\n\r"
INT32_MAX = 2 ** 31 - 1

# Longer operators first so "==" and "!=" win over "="
PUNCTUATION = (
    ("==", TokenType.EQUAL_EQUAL),
    ("!=", TokenType.NOT_EQUAL),
    ("=", TokenType.ASSIGN),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("*", TokenType.STAR),
    ("/", TokenType.SLASH),
    ("%", TokenType.PERCENT),
    ("<", TokenType.LESS),
    (">", TokenType.GREATER),
    ("(", TokenType.LEFT_PAREN),
    (")", TokenType.RIGHT_PAREN),
    ("{", TokenType.LEFT_BRACE),
    ("}", TokenType.RIGHT_BRACE),
    ("[", TokenType.LEFT_BRACKET),
    ("]", TokenType.RIGHT_BRACKET),
    (",", TokenType.COMMA),
    (";", TokenType.SEMICOLON),
)
PUNCTUATION_TYPES = dict(PUNCTUATION)


class NLTokenizer:
    """NL tokenizer built from pyparsing elements"""

    def __init__(self, filename: str = "<input>"):
        self.filename = filename
        self._line_starts = [0]
        self._setup_token_grammar()

    def _element(self, element: ParserElement) -> ParserElement:
        return element.set_whitespace_chars(WHITESPACE)

    def _setup_token_grammar(self):
        """Setup the token patterns, in priority order"""
        # A letter starts a word; letters, digits and '_' extend it
        word = self._element(Regex(r"[^\W\d_]\w*")).set_parse_action(self._make_word)

        number = self._element(Regex(r"[0-9]+")).set_parse_action(self._make_number)

        punctuation = self._element(
            Regex("|".join(re.escape(text) for text, _ in PUNCTUATION))
        ).set_parse_action(self._make_punctuation)

        # No escapes; an unterminated literal runs to the end of the source
        string_literal = self._element(Regex(r'"(?P<body>[^"]*)"?')).set_parse_action(self._make_string)

        unknown = self._element(Regex(r".", re.DOTALL)).set_parse_action(self._make_unknown)

        # Alternatives start on disjoint characters apart from the unknown fallback
        self.token = self._element(MatchFirst([word, number, punctuation, string_literal, unknown]))
        self.stream = self._element(ZeroOrMore(self.token)).parse_with_tabs()

    def _span(self, text: str, loc: int, matched: str) -> SourceSpan:
        line = bisect_right(self._line_starts, loc)
        column = loc - self._line_starts[line - 1] + 1
        return SourceSpan(self.filename, line, column, loc, matched)

    def _make_punctuation(self, s, loc, toks):
        text = toks[0]
        return Token(PUNCTUATION_TYPES[text], None, self._span(s, loc, text))

    def _make_string(self, s, loc, toks):
        return Token(TokenType.STRING, toks["body"], self._span(s, loc, toks[0]))

    def _make_number(self, s, loc, toks):
        text = toks[0]
        value = int(text)
        span = self._span(s, loc, text)
        if value > INT32_MAX:
            raise NLLiteralError(text, span)
        return Token(TokenType.NUMBER, value, span)

    def _make_word(self, s, loc, toks):
        text = toks[0]
        span = self._span(s, loc, text)
        if text in KEYWORDS:
            return Token(KEYWORDS[text], None, span)
        return Token(TokenType.IDENTIFIER, text, span)

    def _make_unknown(self, s, loc, toks):
        return Token(TokenType.UNKNOWN, None, self._span(s, loc, toks[0]))

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize NL source, always ending with an end-of-input token"""
        self._line_starts = [0] + [match.end() for match in re.finditer("\n", text)]
        tokens = list(self.stream.parse_string(text, parse_all=True))
        tokens.append(Token(TokenType.END_OF_FILE, None, self._span(text, len(text), "")))
        return tokens


def scan(source: str, filename: str = "<input>") -> List[Token]:
    """Scan source text into tokens"""
    return NLTokenizer(filename).tokenize(source)


def format_tokens(tokens: List[Token]) -> str:
    """Token dump for debugging, one token per line"""
    lines = []
    for index, token in enumerate(tokens):
        where = f"{token.span.line}:{token.span.column}" if token.span else "-"
        lines.append(f"{index:4d}  {where:<8} {token}")
    return "\n".join(lines)
