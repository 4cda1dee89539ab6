"""
toypl Parser
Recursive descent parser with one token of lookahead, building the AST from a Scanner
"""

from typing import List, Optional, Union

from error_handling import ToyplParseError
from scanning import Scanner, Token, TokenType
from syntax import (
    BlockExpression, BooleanLiteral, CallExpression, CallMemberExpression,
    ClassExpression, DefinitionExpression, DoWhileExpression, FunctionExpression,
    Identifier, IfExpression, MethodDefinition, Node, NewExpression, NullLiteral,
    NumericLiteral, Program, SetExpression, StringLiteral, WhileExpression,
)


class Parser:
    """Main toypl parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.scanner: Optional[Scanner] = None
        self.lookahead: Optional[Token] = None

    def parse(self, source: Union[Scanner, str]) -> Program:
        """Parse a whole program from a Scanner or from source text"""
        self.scanner = Scanner(source) if isinstance(source, str) else source
        self.lookahead = self.scanner.get_next_token()
        program = self.program()
        if self.debug:
            print(f"Parsed {len(program.body)} expressions")
        return program

    # ------------------------------------------------------------------
    # Program structure
    # ------------------------------------------------------------------

    def program(self) -> Program:
        return Program(tuple(self.expression_list()))

    def expression_list(self, stop: Optional[TokenType] = None) -> List[Node]:
        """One or more expressions, up to EOF or the stop token"""
        expressions = [self.expression()]

        while self.lookahead.type not in (TokenType.EOF, stop):
            expressions.append(self.expression())
        return expressions

    def expression(self) -> Node:
        """Dispatch on the leading token"""
        token_type = self.lookahead.type
        if self.debug:
            print(f"Parsing expression at {self.lookahead}")

        if token_type == TokenType.NUMBER:
            return self.numeric_literal()
        elif token_type == TokenType.STRING:
            return self.string_literal()
        elif token_type == TokenType.TRUE:
            return self.boolean_literal(True)
        elif token_type == TokenType.FALSE:
            return self.boolean_literal(False)
        elif token_type == TokenType.NULL:
            return self.null_literal()
        elif token_type == TokenType.DEF:
            return self.definition_expression()
        elif token_type == TokenType.SET:
            return self.set_expression()
        elif token_type == TokenType.IF:
            return self.if_expression()
        elif token_type == TokenType.WHILE:
            return self.while_expression()
        elif token_type == TokenType.DO:
            return self.do_while_expression()
        elif token_type == TokenType.LAMBDA:
            return self.function_expression()
        elif token_type == TokenType.LEFT_BRACE:
            return self.block_expression()
        elif token_type == TokenType.CLASS:
            return self.class_expression()
        elif token_type == TokenType.NEW:
            return self.new_expression()
        elif token_type == TokenType.IDENTIFIER:
            return self.identifier_expression()

        if token_type == TokenType.EOF:
            raise self._error("Unexpected end of input, expected an expression",
                              ["expression"])
        raise self._error(
            f'Unexpected token: "{self.lookahead.value}" on line {self.lookahead.line}, '
            f'expected an expression',
            ["expression"]
        )

    # ------------------------------------------------------------------
    # Definitions and assignment
    # ------------------------------------------------------------------

    def definition_expression(self) -> DefinitionExpression:
        """'def' ['mut'] IdentifierExpression Expression"""
        self._eat(TokenType.DEF)
        mutable = False
        if self.lookahead.type == TokenType.MUT:
            self._eat(TokenType.MUT)
            mutable = True
        target = self.identifier_expression()
        initializer = self.expression()
        return DefinitionExpression(target, initializer, mutable)

    def set_expression(self) -> SetExpression:
        """'set' IdentifierExpression Expression"""
        self._eat(TokenType.SET)
        target = self.identifier_expression()
        value = self.expression()
        return SetExpression(target, value)

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    def block_expression(self) -> BlockExpression:
        self._eat(TokenType.LEFT_BRACE)
        body = []
        if self.lookahead.type != TokenType.RIGHT_BRACE:
            body = self.expression_list(TokenType.RIGHT_BRACE)
        self._eat(TokenType.RIGHT_BRACE)
        return BlockExpression(tuple(body))

    def if_expression(self) -> IfExpression:
        self._eat(TokenType.IF)
        test = self.expression()
        self._eat(TokenType.THEN)
        consequent = self.expression()
        self._eat(TokenType.ELSE)
        alternate = self.expression()
        return IfExpression(test, consequent, alternate)

    def while_expression(self) -> WhileExpression:
        self._eat(TokenType.WHILE)
        test = self.expression()
        body = self.expression()
        return WhileExpression(test, body)

    def do_while_expression(self) -> DoWhileExpression:
        self._eat(TokenType.DO)
        body = self.expression()
        self._eat(TokenType.WHILE)
        test = self.expression()
        return DoWhileExpression(body, test)

    # ------------------------------------------------------------------
    # Functions and classes
    # ------------------------------------------------------------------

    def function_expression(self) -> FunctionExpression:
        """'lambda' '(' Identifier* ')' Expression"""
        self._eat(TokenType.LAMBDA)
        self._eat(TokenType.LEFT_PAREN)
        params = self.formal_parameter_list()
        self._eat(TokenType.RIGHT_PAREN)
        body = self.expression()
        return FunctionExpression(params, body)

    def formal_parameter_list(self) -> tuple:
        params = []
        while self.lookahead.type != TokenType.RIGHT_PAREN:
            params.append(self.identifier().name)
        return tuple(params)

    def class_expression(self) -> ClassExpression:
        self._eat(TokenType.CLASS)
        self._eat(TokenType.LEFT_BRACE)
        methods = []
        while self.lookahead.type != TokenType.RIGHT_BRACE:
            methods.append(self.method_definition())
        self._eat(TokenType.RIGHT_BRACE)
        return ClassExpression(tuple(methods))

    def method_definition(self) -> MethodDefinition:
        """Identifier '(' Identifier* ')' Expression"""
        name = self.identifier()
        self._eat(TokenType.LEFT_PAREN)
        params = self.formal_parameter_list()
        self._eat(TokenType.RIGHT_PAREN)
        body = self.expression()
        return MethodDefinition(name, params, body)

    def new_expression(self) -> NewExpression:
        self._eat(TokenType.NEW)
        callee = self.identifier()
        return NewExpression(callee, self.arguments())

    # ------------------------------------------------------------------
    # Identifier-led expressions
    # ------------------------------------------------------------------

    def identifier_expression(self) -> Node:
        """Bare identifier, call, or member access chain"""
        identifier = self.identifier()

        if self.lookahead.type == TokenType.LEFT_PAREN:
            return self.call_expression(identifier)
        if self.lookahead.type in (TokenType.DOT, TokenType.LEFT_BRACKET):
            return self.call_member_expression(identifier)
        return identifier

    def call_expression(self, callee: Node) -> CallExpression:
        """Each trailing argument group wraps the previous call"""
        call = CallExpression(callee, self.arguments())
        while self.lookahead.type == TokenType.LEFT_PAREN:
            call = CallExpression(call, self.arguments())
        return call

    def call_member_expression(self, receiver: Node) -> CallMemberExpression:
        """Each newest access wraps the previous chain as its receiver"""
        member = receiver
        while self.lookahead.type in (TokenType.DOT, TokenType.LEFT_BRACKET):
            if self.lookahead.type == TokenType.DOT:
                self._eat(TokenType.DOT)
                member = CallMemberExpression(member, self.expression(), False)
            else:
                self._eat(TokenType.LEFT_BRACKET)
                message = self.expression()
                self._eat(TokenType.RIGHT_BRACKET)
                member = CallMemberExpression(member, message, True)
        return member

    def arguments(self) -> tuple:
        self._eat(TokenType.LEFT_PAREN)
        args = []
        if self.lookahead.type != TokenType.RIGHT_PAREN:
            args = self.expression_list(TokenType.RIGHT_PAREN)
        self._eat(TokenType.RIGHT_PAREN)
        return tuple(args)

    def identifier(self) -> Identifier:
        return Identifier(self._eat(TokenType.IDENTIFIER).value)

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def numeric_literal(self) -> NumericLiteral:
        return NumericLiteral(float(self._eat(TokenType.NUMBER).value))

    def string_literal(self) -> StringLiteral:
        return StringLiteral(self._eat(TokenType.STRING).value[1:-1])

    def boolean_literal(self, value: bool) -> BooleanLiteral:
        self._eat(TokenType.TRUE if value else TokenType.FALSE)
        return BooleanLiteral(value)

    def null_literal(self) -> NullLiteral:
        self._eat(TokenType.NULL)
        return NullLiteral()

    # ------------------------------------------------------------------
    # Token protocol
    # ------------------------------------------------------------------

    def _eat(self, expected: TokenType) -> Token:
        """Consume the lookahead if it has the expected type"""
        token = self.lookahead

        if token.type == TokenType.EOF and expected != TokenType.EOF:
            raise self._error(f'Unexpected end of input, expected: "{expected.value}"',
                              [expected.value])
        if token.type != expected:
            raise self._error(
                f'Unexpected token: "{token.value}" on line {token.line}, '
                f'expected: "{expected.value}"',
                [expected.value]
            )

        self.lookahead = self.scanner.get_next_token()
        return token

    def _error(self, message: str, expected: List[str]) -> ToyplParseError:
        token = self.lookahead
        got = token.value if token.value is not None else token.type.value
        return ToyplParseError(message, token.line, expected=expected, got=got)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> Parser:
    """Create a toypl parser"""
    return Parser(debug=debug)


def create_debug_parser() -> Parser:
    """Create a toypl parser with debug enabled"""
    return Parser(debug=True)


def parse(text: str) -> Program:
    """Parse toypl source code into a Program"""
    return create_parser().parse(text)
