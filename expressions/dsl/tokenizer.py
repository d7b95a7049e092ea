from ..exceptions import ParseError
from .tokens import Token, TokenType

TWO_CHAR_TOKENS = {
    '>=': TokenType.GTE,
    '<=': TokenType.LTE,
    '==': TokenType.EQ,
    '!=': TokenType.NE,
    '&&': TokenType.AND,
    '||': TokenType.OR,
}

ONE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.MUL,
    '/': TokenType.DIV,
    '%': TokenType.MOD,
    '^': TokenType.POW,
    '>': TokenType.GT,
    '<': TokenType.LT,
    '!': TokenType.NOT,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
    ',': TokenType.COMMA,
}

class Tokenizer:
    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.current = text[0] if text else None

    def advance(self):
        self.pos += 1
        self.current = self.text[self.pos] if self.pos < len(self.text) else None

    def peek(self, offset=1):
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else None

    def skip_spaces(self):
        while self.current and self.current.isspace():
            self.advance()

    def number(self):
        start = self.pos
        while self.current and (self.current.isdigit() or self.current == '.'):
            self.advance()

        # Exponent, as written by str(float) ("1e+20") or Java ("1.0E20")
        if self.current in ('e', 'E'):
            sign = self.peek()
            digit = self.peek(2) if sign in ('+', '-') else sign
            if digit and digit.isdigit():
                self.advance()
                if self.current in ('+', '-'):
                    self.advance()
                while self.current and self.current.isdigit():
                    self.advance()

        literal = self.text[start:self.pos]
        try:
            return Token(TokenType.NUMBER, float(literal), start)
        except ValueError:
            raise ParseError(f"Invalid number '{literal}'", self.text, start)

    def identifier(self):
        start = self.pos
        while self.current and (self.current.isalnum() or self.current == '_'):
            self.advance()
        return Token(TokenType.IDENTIFIER, self.text[start:self.pos], start)

    def generate_tokens(self):
        tokens = []
        while self.current:
            if self.current.isspace():
                self.skip_spaces()
                continue

            if self.current.isdigit() or (self.current == '.' and (self.peek() or '').isdigit()):
                tokens.append(self.number())
                continue

            if self.current.isalpha() or self.current == '_':
                tokens.append(self.identifier())
                continue

            # Two-char operators first
            two_char = self.text[self.pos:self.pos + 2]
            if two_char in TWO_CHAR_TOKENS:
                tokens.append(Token(TWO_CHAR_TOKENS[two_char], two_char, self.pos))
                self.advance(); self.advance()
                continue

            if self.current not in ONE_CHAR_TOKENS:
                raise ParseError(f"Unexpected character '{self.current}'", self.text, self.pos)

            tokens.append(Token(ONE_CHAR_TOKENS[self.current], self.current, self.pos))
            self.advance()

        tokens.append(Token(TokenType.EOF, None, self.pos))
        return tokens
