"""
Tests for the parser and the AST builder, including call binding.
"""

import pytest

from gcad.core import ast_nodes as ast
from gcad.core.ast_builder import AstBuilder
from gcad.core.lexer import ScriptLexer
from gcad.core.parser import ScriptParser
from gcad.core.values import String
from gcad.handlers.builtins import Builtin
from gcad.utils.errors import BindingError, ScriptNameError, ScriptSyntaxError


def parse_tree(text):
    return ScriptParser().parse(ScriptLexer().tokenize(text))


def build(text):
    return AstBuilder().build(parse_tree(text), "test.gcad")


def first_expr(text):
    return build(text).statements[0]


class TestParser:
    """Tests for the concrete syntax tree."""

    def test_program_of_statements(self):
        tree = parse_tree("a = 1; b = 2;")
        assert tree.rule == "program"
        assert [child.rule for child in tree.children] == ["assign", "assign"]

    def test_single_child_rules_are_inlined(self):
        tree = parse_tree("x;")
        assert tree.children[0].rule == "ident"

    def test_for_loop(self):
        loop = parse_tree("for i in xs { drill(i, i, 1mm); }").children[0]
        assert loop.rule == "forLoop"
        assert loop.children[0].value == "i"
        assert loop.children[2].rule == "block"

    def test_format_tree(self):
        dump = parse_tree("a = 1mm;").format_tree()
        assert dump.splitlines()[0] == "program"
        assert "unitNumber" in dump
        assert "NUMBER: 1mm" in dump

    def test_unterminated_call(self):
        """A call missing its closing parenthesis is a syntax error at the ';'."""
        with pytest.raises(ScriptSyntaxError) as info:
            parse_tree("circle_pocket(10mm, 10mm;")
        error = info.value
        assert (error.line, error.column) == (1, 25)
        assert "')'" in error.expected

    def test_missing_semicolon(self):
        with pytest.raises(ScriptSyntaxError) as info:
            parse_tree("a = 1\nb = 2;")
        assert info.value.line == 2

    def test_unclosed_block(self):
        with pytest.raises(ScriptSyntaxError) as info:
            parse_tree("for i in xs { a = i;")
        assert "'}'" in info.value.expected

    def test_missing_operand(self):
        with pytest.raises(ScriptSyntaxError):
            parse_tree("a = 1 + ;")


class TestAstBuilder:
    """Tests for lowering to AST nodes."""

    def test_left_associative_subtraction(self):
        node = first_expr("10 - 4 - 3;")
        assert isinstance(node, ast.BinaryOp)
        assert node.operator == "-"
        assert isinstance(node.left, ast.BinaryOp)
        assert node.right.value.value == 3

    def test_precedence(self):
        node = first_expr("1 + 2 * 3;")
        assert node.operator == "+"
        assert node.right.operator == "*"

    def test_power_is_right_associative(self):
        node = first_expr("2 ^ 3 ^ 2;")
        assert node.operator == "^"
        assert isinstance(node.right, ast.BinaryOp)
        assert node.right.operator == "^"

    def test_unary_binds_tighter_than_power(self):
        node = first_expr("-2 ^ 2;")
        assert node.operator == "^"
        assert isinstance(node.left, ast.UnaryOp)

    def test_postfix_factorial(self):
        node = first_expr("3!;")
        assert isinstance(node, ast.UnaryOp)
        assert node.operator == "!"

    def test_parentheses(self):
        node = first_expr("(1 + 2) * 3;")
        assert node.operator == "*"
        assert node.left.operator == "+"

    def test_literals(self):
        assert first_expr("'hi';").value == String("hi")
        assert isinstance(first_expr("7;").value.value, int)
        assert isinstance(first_expr("7.0;").value.value, float)
        assert first_expr("1in;").value.value == pytest.approx(25.4)

    def test_assignment(self):
        node = first_expr("depth = 3mm;")
        assert isinstance(node, ast.Assignment)
        assert node.name == "depth"

    def test_node_positions(self):
        program = build("a = 1;\n  b = 2;")
        assert (program.statements[1].line, program.statements[1].column) == (2, 3)
        assert program.source_name == "test.gcad"

    def test_call_resolves_builtin(self):
        node = first_expr("drill(1mm, 2mm, depth=3mm);")
        assert isinstance(node, ast.FunctionCall)
        assert node.builtin is Builtin.DRILL
        assert len(node.positional) == 2
        assert [arg.name for arg in node.named] == ["depth"]


class TestCallBinding:
    """Tests for static call-shape checks against built-in schemas."""

    def test_unknown_function(self):
        with pytest.raises(ScriptNameError) as info:
            build("a = 1;\nfrobnicate(1);")
        assert "frobnicate" in info.value.message
        assert info.value.line == 2

    def test_too_many_positional(self):
        with pytest.raises(BindingError):
            build("drill(1mm, 2mm, 3mm, 4mm, 5mm);")

    def test_slot_filled_twice(self):
        with pytest.raises(BindingError) as info:
            build("drill(1mm, 2mm, 3mm, depth=4mm);")
        assert "multiple values" in info.value.message

    def test_unknown_named_parameter(self):
        with pytest.raises(BindingError):
            build("drill(1mm, 2mm, 3mm, speed=4);")

    def test_missing_required_parameter(self):
        with pytest.raises(BindingError) as info:
            build("drill(1mm, 2mm);")
        assert "depth" in info.value.message

    def test_binding_error_in_loop_body_fails_before_running(self):
        with pytest.raises(BindingError):
            build("for i in linspace(0, 1, 2) { comment(); }")

    def test_named_only_call(self):
        node = first_expr("circle_pocket(x=1mm, y=1mm, diameter=10mm, depth=2mm);")
        assert node.builtin is Builtin.CIRCLE_POCKET
