import re
import logging
from typing import List

from Engine.expression_ast import (
    BinaryOp, Number, Op, SUPPORTED_FUNCTIONS, UnaryFunc, Variable,
)

# --- Logger Setup ---
logger = logging.getLogger(__name__)


class ParseError(ValueError):
    def __init__(self, message, position=None):
        super().__init__(message)
        self.position = position


# --- Tokenizer: Breaking the Expression into Tokens ---
TOKEN_NUMBER = 'NUMBER'
TOKEN_IDENT = 'IDENT'
TOKEN_OPERATOR = 'OPERATOR'
TOKEN_LPAREN = 'LPAREN'
TOKEN_RPAREN = 'RPAREN'
TOKEN_EOF = 'EOF'


class Token:
    def __init__(self, type, value, position):
        self.type = type
        self.value = value
        self.position = position

    def __repr__(self):
        return f"Token({self.type}, '{self.value}', {self.position})"


class Tokenizer:
    # Identifiers are letters only, so "x2" is the variable x followed by 2.
    TOKEN_SPECS = [
        (r'[0-9.]+', TOKEN_NUMBER),
        (r'[a-zA-Z]+', TOKEN_IDENT),
        (r'[\+\-\*\/^]', TOKEN_OPERATOR),
        (r'\(', TOKEN_LPAREN),
        (r'\)', TOKEN_RPAREN),
        (r'\s+', None),  # Skip whitespace
    ]
    _COMPILED_SPECS = [(re.compile(pattern), ttype) for pattern, ttype in TOKEN_SPECS]

    def __init__(self, text: str):
        self.text = text
        self.tokens = self._tokenize()
        self.index = 0

    def _tokenize(self) -> List[Token]:
        tokens = []
        pos = 0
        while pos < len(self.text):
            match_found = False
            for regex, ttype in self._COMPILED_SPECS:
                match = regex.match(self.text, pos)
                if match:
                    if ttype:
                        tokens.append(Token(ttype, match.group(0), pos))
                    pos = match.end()
                    match_found = True
                    break
            if not match_found:
                raise ParseError(f"Unexpected character at position {pos}: '{self.text[pos]}'", pos)
        tokens.append(Token(TOKEN_EOF, "", len(self.text)))
        return tokens

    def next(self) -> Token:
        if self.index < len(self.tokens):
            token = self.tokens[self.index]
            self.index += 1
            return token
        return Token(TOKEN_EOF, "", len(self.text))

    def peek(self) -> Token:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return Token(TOKEN_EOF, "", len(self.text))


# --- Parser: Building the AST from Tokens ---
class Parser:
    """Recursive-descent parser.

    Precedence, low to high: additive, multiplicative (explicit or implicit),
    power (right-associative), unary sign, primary.
    """

    def __init__(self, tokenizer: Tokenizer):
        self.tokenizer = tokenizer
        self.current_token = self.tokenizer.next()

    def _advance(self):
        self.current_token = self.tokenizer.next()

    def _is_operator(self, *values):
        return self.current_token.type == TOKEN_OPERATOR and self.current_token.value in values

    def parse(self):
        result = self._expr()
        if self.current_token.type != TOKEN_EOF:
            pos = self.current_token.position
            raise ParseError(f"Unexpected character at position {pos}: '{self.current_token.value}'", pos)
        return result

    def _expr(self):  # Handles Addition (+) and Subtraction (-)
        node = self._term()
        while self._is_operator('+', '-'):
            op = Op.ADD if self.current_token.value == '+' else Op.SUB
            self._advance()
            right = self._term()
            node = BinaryOp(op, node, right)
        return node

    def _term(self):  # Handles Multiplication (*) and Division (/) and implicit multiplication
        node = self._power()

        while True:
            # explicit * or /
            if self._is_operator('*', '/'):
                op = Op.MUL if self.current_token.value == '*' else Op.DIV
                self._advance()
                right = self._power()
                node = BinaryOp(op, node, right)
                continue

            # implicit multiplication: 2x, 2(x+1), x cos(x)
            if self.current_token.type in (TOKEN_IDENT, TOKEN_LPAREN):
                right = self._power()
                node = BinaryOp(Op.MUL, node, right)
                continue

            break

        return node

    def _power(self):  # Handles exponentiation (^)
        node = self._factor()
        if self._is_operator('^'):
            self._advance()
            right = self._power()  # Right-associativity
            node = BinaryOp(Op.POW, node, right)
        return node

    def _factor(self):  # Handles unary sign
        if self._is_operator('-'):
            self._advance()
            # Represent as multiplication by -1
            return BinaryOp(Op.MUL, Number(-1.0), self._factor())
        if self._is_operator('+'):
            self._advance()
            return self._factor()
        return self._primary()

    def _expect_rparen(self):
        if self.current_token.type != TOKEN_RPAREN:
            pos = self.current_token.position
            raise ParseError(f"Expected closing parenthesis at position {pos}", pos)
        self._advance()

    def _primary(self):
        token = self.current_token
        if token.type == TOKEN_NUMBER:
            self._advance()
            try:
                return Number(float(token.value))
            except ValueError:
                raise ParseError(f"Invalid number '{token.value}' at position {token.position}", token.position)
        if token.type == TOKEN_LPAREN:
            self._advance()
            node = self._expr()
            self._expect_rparen()
            return node
        if token.type == TOKEN_IDENT:
            name = token.value
            self._advance()
            if self.current_token.type != TOKEN_LPAREN:
                return Variable(name)
            self._advance()
            arg = self._expr()
            self._expect_rparen()
            if name not in SUPPORTED_FUNCTIONS:
                raise ParseError(f"Unknown function: {name}", token.position)
            return UnaryFunc(SUPPORTED_FUNCTIONS[name], arg)
        if token.type == TOKEN_EOF:
            raise ParseError("Unexpected end of expression", token.position)

        raise ParseError(f"Unexpected character at position {token.position}: '{token.value}'", token.position)


def parse(text: str):
    """Parse an infix expression into an expression tree, raising ParseError on malformed input."""
    tokenizer = Tokenizer(text)
    node = Parser(tokenizer).parse()
    logger.debug(f"Parsed '{text}' -> {node}")
    return node
