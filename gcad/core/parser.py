"""
GCAD parser for building a concrete syntax tree from a token stream.

Rules with a single child are inlined (mathExpr, term, power, unary, postfix),
so the tree only holds nodes that carry structure.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from gcad.core.lexer import Token, TokenType
from gcad.utils.errors import ScriptSyntaxError


@dataclass
class SyntaxNode:
    """A node of the concrete syntax tree, named after its grammar rule."""
    rule: str
    line_number: int
    column: int
    children: List[Union['SyntaxNode', Token]] = field(default_factory=list)

    def format_tree(self, indent: int = 0) -> str:
        """Render the tree one node per line, for debug logging."""
        prefix = "|    " * max(indent - 1, 0) + ("|----" if indent > 0 else "")
        lines = [f"{prefix}{self.rule}"]
        for child in self.children:
            if isinstance(child, SyntaxNode):
                lines.append(child.format_tree(indent + 1))
            else:
                child_prefix = "|    " * indent + "|----"
                unit = child.unit or ''
                lines.append(f"{child_prefix}{child.type.name}: {child.value}{unit}")
        return "\n".join(lines)


class ScriptParser:
    """Parses tokens into a concrete syntax tree for one program."""

    ADDITIVE = {TokenType.PLUS, TokenType.MINUS}
    MULTIPLICATIVE = {TokenType.STAR, TokenType.SLASH}

    def __init__(self):
        self.tokens: List[Token] = []
        self.position = 0

    def parse(self, tokens: List[Token]) -> SyntaxNode:
        """Parse a full program; raises ScriptSyntaxError on the first problem."""
        self.tokens = tokens
        self.position = 0

        program = SyntaxNode('program', 1, 1)
        while not self._check(TokenType.EOF):
            program.children.append(self._statement())
        return program

    # Token helpers

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.position + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type == token_type

    def _advance(self) -> Token:
        token = self._peek()
        if token.type != TokenType.EOF:
            self.position += 1
        return token

    def _expect(self, token_type: TokenType, expected: Optional[str] = None) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(expected or token_type.value)

    def _error(self, expected: str) -> ScriptSyntaxError:
        token = self._peek()
        return ScriptSyntaxError(
            f"expected {expected}, found {token}",
            token.line_number, token.column, expected=expected)

    # Grammar rules

    def _statement(self) -> SyntaxNode:
        if self._check(TokenType.FOR):
            return self._for_loop()

        expr = self._expr()
        self._expect(TokenType.SEMICOLON, "';' after expression")
        return expr

    def _for_loop(self) -> SyntaxNode:
        keyword = self._advance()
        node = SyntaxNode('forLoop', keyword.line_number, keyword.column)
        node.children.append(self._expect(TokenType.IDENT, "loop variable name"))
        self._expect(TokenType.IN, "'in'")
        node.children.append(self._expr())
        node.children.append(self._block())
        return node

    def _block(self) -> SyntaxNode:
        brace = self._expect(TokenType.LBRACE, "'{' to open loop body")
        node = SyntaxNode('block', brace.line_number, brace.column)
        while not self._check(TokenType.RBRACE):
            if self._check(TokenType.EOF):
                raise self._error("'}' to close block")
            node.children.append(self._statement())
        self._advance()
        return node

    def _expr(self) -> SyntaxNode:
        if self._check(TokenType.IDENT) and self._peek(1).type == TokenType.EQUALS:
            return self._assign()
        return self._math_expr()

    def _assign(self) -> SyntaxNode:
        name = self._advance()
        self._advance()
        node = SyntaxNode('assign', name.line_number, name.column)
        node.children.extend([name, self._expr()])
        return node

    def _binary_chain(self, rule: str, operand, operators) -> SyntaxNode:
        first = operand()
        if self._peek().type not in operators:
            return first

        node = SyntaxNode(rule, first.line_number, first.column, [first])
        while self._peek().type in operators:
            node.children.append(self._advance())
            node.children.append(operand())
        return node

    def _math_expr(self) -> SyntaxNode:
        return self._binary_chain('mathExpr', self._term, self.ADDITIVE)

    def _term(self) -> SyntaxNode:
        return self._binary_chain('term', self._power, self.MULTIPLICATIVE)

    def _power(self) -> SyntaxNode:
        base = self._unary()
        if not self._check(TokenType.CARET):
            return base
        operator = self._advance()
        return SyntaxNode('power', base.line_number, base.column,
                          [base, operator, self._power()])

    def _unary(self) -> SyntaxNode:
        if self._check(TokenType.MINUS):
            operator = self._advance()
            return SyntaxNode('unary', operator.line_number, operator.column,
                              [operator, self._unary()])
        return self._postfix()

    def _postfix(self) -> SyntaxNode:
        node = self._primary()
        while self._check(TokenType.BANG):
            operator = self._advance()
            node = SyntaxNode('postfix', node.line_number, node.column, [node, operator])
        return node

    def _primary(self) -> SyntaxNode:
        token = self._peek()

        if token.type == TokenType.STRING:
            self._advance()
            return SyntaxNode('string', token.line_number, token.column, [token])

        if token.type == TokenType.NUMBER:
            self._advance()
            rule = 'unitNumber' if token.unit else 'unitlessNumber'
            return SyntaxNode(rule, token.line_number, token.column, [token])

        if token.type == TokenType.LPAREN:
            self._advance()
            inner = self._expr()
            self._expect(TokenType.RPAREN, "')'")
            return inner

        if token.type == TokenType.IDENT:
            if self._peek(1).type == TokenType.LPAREN:
                return self._func_call()
            self._advance()
            return SyntaxNode('ident', token.line_number, token.column, [token])

        raise self._error("an expression")

    def _func_call(self) -> SyntaxNode:
        name = self._advance()
        self._advance()
        node = SyntaxNode('funcCall', name.line_number, name.column, [name])

        params = SyntaxNode('params', self._peek().line_number, self._peek().column)
        if not self._check(TokenType.RPAREN):
            params.children.append(self._param())
            while self._check(TokenType.COMMA):
                self._advance()
                params.children.append(self._param())
        self._expect(TokenType.RPAREN, "',' or ')' in parameter list")

        node.children.append(params)
        return node

    def _param(self) -> SyntaxNode:
        token = self._peek()
        if token.type == TokenType.IDENT and self._peek(1).type == TokenType.EQUALS:
            self._advance()
            self._advance()
            return SyntaxNode('namedParam', token.line_number, token.column,
                              [token, self._expr()])
        return SyntaxNode('positionalParam', token.line_number, token.column,
                          [self._expr()])
