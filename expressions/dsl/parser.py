from ..exceptions import ParseError
from .tokens import TokenType
from .ast_nodes import (
    NumberNode, BooleanNode, VarNode, ListNode, UnaryOpNode, BinaryOpNode, FunctionCallNode,
)

COMPARISON_OPERATORS = (
    TokenType.GT, TokenType.LT,
    TokenType.GTE, TokenType.LTE,
    TokenType.EQ, TokenType.NE,
)

BOOLEAN_LITERALS = {"true": True, "false": False}

class Parser:
    """
    Recursive descent parser, lowest precedence first:
    ``||``, ``&&``, comparisons, ``+ -``, ``* / %``, unary ``- + !``, ``^``.
    """

    def __init__(self, tokens, text=""):
        self.tokens = tokens
        self.text = text
        self.index = 0
        self.current = tokens[0]

    def error(self, reason, token=None):
        token = token or self.current
        return ParseError(reason, self.text, token.pos)

    def eat(self, type_):
        if self.current.type == type_:
            self.index += 1
            self.current = self.tokens[self.index]
        else:
            raise self.error(f"Unexpected token {self.current}, expected {type_}")

    def parse(self):
        if self.current.type == TokenType.EOF:
            raise self.error("Empty expression")
        result = self.logical_or()
        if self.current.type != TokenType.EOF:
            raise self.error("Extra tokens after expression")
        return result

    def logical_or(self):
        node = self.logical_and()

        while self.current.type == TokenType.OR:
            op = self.current
            self.eat(op.type)
            node = BinaryOpNode(node, op, self.logical_and())

        return node

    def logical_and(self):
        node = self.comparison()

        while self.current.type == TokenType.AND:
            op = self.current
            self.eat(op.type)
            node = BinaryOpNode(node, op, self.comparison())

        return node

    def comparison(self):
        node = self.expression()

        while self.current.type in COMPARISON_OPERATORS:
            op = self.current
            self.eat(op.type)
            node = BinaryOpNode(node, op, self.expression())

        return node

    def expression(self):
        node = self.term()

        while self.current.type in (TokenType.PLUS, TokenType.MINUS):
            op = self.current
            self.eat(op.type)
            node = BinaryOpNode(node, op, self.term())

        return node

    def term(self):
        node = self.unary()

        while self.current.type in (TokenType.MUL, TokenType.DIV, TokenType.MOD):
            op = self.current
            self.eat(op.type)
            node = BinaryOpNode(node, op, self.unary())

        return node

    def unary(self):
        if self.current.type in (TokenType.MINUS, TokenType.PLUS, TokenType.NOT):
            op = self.current
            self.eat(op.type)
            return UnaryOpNode(op, self.unary())

        return self.power()

    def power(self):
        node = self.factor()

        # Right associative: 2^3^2 == 2^(3^2)
        if self.current.type == TokenType.POW:
            op = self.current
            self.eat(op.type)
            node = BinaryOpNode(node, op, self.unary())

        return node

    def arguments(self, closing):
        args = []
        if self.current.type != closing:
            args.append(self.logical_or())
            while self.current.type == TokenType.COMMA:
                self.eat(TokenType.COMMA)
                args.append(self.logical_or())
        self.eat(closing)
        return args

    def factor(self):
        token = self.current

        if token.type == TokenType.NUMBER:
            self.eat(TokenType.NUMBER)
            return NumberNode(token.value)

        if token.type == TokenType.IDENTIFIER:
            name = token.value
            self.eat(TokenType.IDENTIFIER)

            # Function call?
            if self.current.type == TokenType.LPAREN:
                self.eat(TokenType.LPAREN)
                return FunctionCallNode(name, self.arguments(TokenType.RPAREN), token.pos)

            if name in BOOLEAN_LITERALS:
                return BooleanNode(BOOLEAN_LITERALS[name])

            return VarNode(name, token.pos)

        if token.type == TokenType.LBRACKET:
            self.eat(TokenType.LBRACKET)
            return ListNode(self.arguments(TokenType.RBRACKET))

        if token.type == TokenType.LPAREN:
            self.eat(TokenType.LPAREN)
            expr = self.logical_or()
            self.eat(TokenType.RPAREN)
            return expr

        raise self.error(f"Unexpected token: {token}")
