"""
Lowers the concrete syntax tree into typed AST nodes.

One method per grammar rule, named after the rule. Function calls are bound to
their Builtin here, and their shape is checked against the declared schema.
"""
from typing import List, Optional, Union

from gcad.core import ast_nodes as ast
from gcad.core.lexer import Token
from gcad.core.parser import SyntaxNode
from gcad.core.values import String
from gcad.handlers.builtins import Builtin
from gcad.utils.errors import GCadError, ScriptNameError, ScriptSyntaxError
from gcad.utils.units import Number


class AstBuilder:
    """Transforms a SyntaxNode tree into an ast.Program."""

    def build(self, tree: SyntaxNode, source_name: Optional[str] = None) -> ast.Program:
        if tree.rule != 'program':
            raise ScriptSyntaxError(f"expected a program node, got '{tree.rule}'",
                                    tree.line_number, tree.column)
        statements = tuple(self._lower(child) for child in tree.children)
        return ast.Program(tree.line_number, tree.column, statements, source_name)

    def _lower(self, node: Union[SyntaxNode, Token]):
        if not isinstance(node, SyntaxNode):
            raise ScriptSyntaxError(f"unexpected token {node}", node.line_number, node.column)

        handler = getattr(self, node.rule, None)
        if handler is None:
            raise ScriptSyntaxError(f"unexpected syntax node '{node.rule}'",
                                    node.line_number, node.column)
        try:
            return handler(node)
        except GCadError as error:
            error.attach_location(node.line_number, node.column)
            raise

    # Statements

    def forLoop(self, node: SyntaxNode) -> ast.ForLoop:
        variable, source, body = node.children
        return ast.ForLoop(node.line_number, node.column, variable.value,
                           self._lower(source), self._lower(body))

    def block(self, node: SyntaxNode) -> ast.Block:
        statements = tuple(self._lower(child) for child in node.children)
        return ast.Block(node.line_number, node.column, statements)

    def assign(self, node: SyntaxNode) -> ast.Assignment:
        name, value = node.children
        return ast.Assignment(node.line_number, node.column, name.value, self._lower(value))

    # Operators

    def _fold_left(self, node: SyntaxNode):
        children = node.children
        result = self._lower(children[0])
        for index in range(1, len(children), 2):
            operator = children[index]
            right = self._lower(children[index + 1])
            result = ast.BinaryOp(operator.line_number, operator.column,
                                  operator.value, result, right)
        return result

    def mathExpr(self, node: SyntaxNode) -> ast.BinaryOp:
        return self._fold_left(node)

    def term(self, node: SyntaxNode) -> ast.BinaryOp:
        return self._fold_left(node)

    def power(self, node: SyntaxNode) -> ast.BinaryOp:
        base, operator, exponent = node.children
        return ast.BinaryOp(operator.line_number, operator.column, operator.value,
                            self._lower(base), self._lower(exponent))

    def unary(self, node: SyntaxNode) -> ast.UnaryOp:
        operator, operand = node.children
        return ast.UnaryOp(node.line_number, node.column, operator.value, self._lower(operand))

    def postfix(self, node: SyntaxNode) -> ast.UnaryOp:
        operand, operator = node.children
        return ast.UnaryOp(operator.line_number, operator.column, operator.value,
                           self._lower(operand))

    # Primaries

    def string(self, node: SyntaxNode) -> ast.Literal:
        token = node.children[0]
        return ast.Literal(node.line_number, node.column, String(token.value))

    def unitlessNumber(self, node: SyntaxNode) -> ast.Literal:
        token = node.children[0]
        if '.' in token.value:
            value = Number(float(token.value))
        else:
            value = Number(int(token.value))
        return ast.Literal(node.line_number, node.column, value)

    def unitNumber(self, node: SyntaxNode) -> ast.Literal:
        token = node.children[0]
        return ast.Literal(node.line_number, node.column,
                           Number.length(float(token.value), token.unit))

    def ident(self, node: SyntaxNode) -> ast.Identifier:
        return ast.Identifier(node.line_number, node.column, node.children[0].value)

    def funcCall(self, node: SyntaxNode) -> ast.FunctionCall:
        name_token, params = node.children
        name = name_token.value

        builtin = Builtin.lookup(name)
        if builtin is None:
            raise ScriptNameError(f"unknown function '{name}'")

        arguments: List = []
        for param in params.children:
            if param.rule == 'namedParam':
                param_name, value = param.children
                arguments.append(ast.NamedArgument(param.line_number, param.column,
                                                   param_name.value, self._lower(value)))
            else:
                arguments.append(self._lower(param.children[0]))

        call = ast.FunctionCall(node.line_number, node.column, name, builtin, tuple(arguments))
        builtin.schema.check_call(len(call.positional), [arg.name for arg in call.named])
        return call
