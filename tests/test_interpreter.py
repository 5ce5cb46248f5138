"""
Tests for expression evaluation, scoping and error locations.
"""

import pytest

from gcad.core.canonical import LinearFeed, RapidMove
from gcad.core.interpreter import GCadInterpreter
from gcad.core.values import Sequence, String
from gcad.utils.errors import (ConfigError, ScriptNameError, ScriptRuntimeError,
                               ScriptTypeError)
from gcad.utils.units import Number


def run(text, name="test.gcad"):
    interpreter = GCadInterpreter()
    interpreter.compile([(text, name)])
    return interpreter


def global_value(text, identifier):
    return run(text).scopes.global_scope.bindings[identifier]


def drill_xs(interpreter):
    """X of every plunge start, in execution order."""
    return [seg.start_pos['x'] for seg in interpreter.get_all_segments()
            if isinstance(seg, LinearFeed) and seg.start_pos['z'] > 0]


class TestExpressions:
    """Tests for operator evaluation in scripts."""

    def test_mixed_units_add(self):
        value = global_value("a = 1in + 1mm;", "a")
        assert value.value == pytest.approx(26.4)
        assert value.is_length

    def test_precedence_and_power(self):
        assert global_value("a = 1 + 2 * 3 ^ 2;", "a").value == 19

    def test_power_right_associative(self):
        assert global_value("a = 2 ^ 3 ^ 2;", "a").value == 512

    def test_negation_before_power(self):
        assert global_value("a = -2 ^ 2;", "a").value == 4

    def test_factorial(self):
        assert global_value("a = 4! + 1;", "a").value == 25

    def test_string_concatenation(self):
        assert global_value("a = 'ab' + 'cd';", "a") == String("abcd")

    def test_assignment_is_an_expression(self):
        interpreter = run("a = b = 2mm;")
        bindings = interpreter.scopes.global_scope.bindings
        assert bindings["a"] == bindings["b"] == Number.length(2.0)

    def test_unitless_plus_length_is_type_error(self):
        with pytest.raises(ScriptTypeError):
            run("a = 1 + 1mm;")

    def test_string_times_number_is_type_error(self):
        with pytest.raises(ScriptTypeError) as info:
            run("a = 'x' * 2;")
        assert "string and number" in info.value.message

    def test_division_by_zero(self):
        with pytest.raises(ScriptRuntimeError):
            run("a = 1mm / 0;")

    def test_huge_integer_mixed_with_float(self):
        with pytest.raises(ScriptRuntimeError) as info:
            run("x = 2 ^ 1000;\ny = x * x * 1.5;")
        assert info.value.line == 2
        assert "overflows" in info.value.message

    def test_power_beyond_number_range(self):
        with pytest.raises(ScriptRuntimeError):
            run("a = 9 ^ 9 ^ 9;")

    def test_large_factorial(self):
        with pytest.raises(ScriptRuntimeError):
            run("a = 1000000!;")

    def test_linspace_value(self):
        value = global_value("s = linspace(0mm, 1in, 3);", "s")
        assert isinstance(value, Sequence)
        assert [n.value for n in value] == pytest.approx([0.0, 12.7, 25.4])


class TestScoping:
    """Tests for nested scopes and for-loops."""

    def test_loop_body_bindings_do_not_leak(self):
        with pytest.raises(ScriptNameError) as info:
            run("for i in linspace(1, 3, 3) { inner = i; }\nx = inner;")
        assert "inner" in info.value.message
        assert info.value.line == 2

    def test_loop_variable_does_not_leak(self):
        with pytest.raises(ScriptNameError):
            run("for i in linspace(1, 3, 3) { }\nx = i;")

    def test_reassigning_loop_variable(self):
        """Rebinding the loop variable does not change the next iteration's value."""
        interpreter = run(
            "for i in linspace(1, 3, 3) {\n"
            "  drill(i * 1mm, 0mm, 1mm);\n"
            "  i = 100;\n"
            "}\n")
        assert drill_xs(interpreter) == pytest.approx([1.0, 2.0, 3.0])

    def test_loop_sees_outer_variables(self):
        interpreter = run("d = 2mm;\nfor x in linspace(0mm, 10mm, 2) { drill(x, 0mm, d); }")
        stats = interpreter.get_statistics()
        assert stats['processing']['statements_executed'] == 4

    def test_inner_assignment_shadows_outer(self):
        bindings = run("a = 1;\nfor i in linspace(0, 1, 2) { a = 5; }").scopes.global_scope.bindings
        assert bindings["a"].value == 1

    def test_iteration_values(self):
        interpreter = run("for y in linspace(0mm, 10mm, 3) { drill(0mm, y, 1mm); }")
        starts = [seg.end_pos['y'] for seg in interpreter.get_all_segments()
                  if isinstance(seg, RapidMove) and seg.end_pos['z'] == 5.0]
        assert sorted(set(starts)) == pytest.approx([0.0, 5.0, 10.0])

    def test_loop_scopes_are_popped(self):
        interpreter = run("for i in linspace(1, 3, 3) { a = i; }")
        assert interpreter.scopes.depth == 1

    def test_loop_scope_popped_on_error(self):
        interpreter = GCadInterpreter()
        with pytest.raises(ScriptNameError):
            interpreter.compile([("for i in linspace(1, 2, 2) { x = nope; }", "t.gcad")])
        assert interpreter.scopes.depth == 1

    def test_non_sequence_loop_source(self):
        with pytest.raises(ScriptTypeError):
            run("for i in 3 { }")

    def test_undefined_variable(self):
        with pytest.raises(ScriptNameError) as info:
            run("a = 1;\nb = a + c;")
        assert (info.value.line, info.value.column) == (2, 9)
        assert info.value.source_name == "test.gcad"


class TestCallEvaluation:
    """Tests for runtime argument checks."""

    def test_wrong_argument_kind(self):
        with pytest.raises(ScriptTypeError) as info:
            run("drill(1, 2mm, 3mm);")
        assert "'x'" in info.value.message
        assert "length" in info.value.message

    def test_string_parameter_needs_string(self):
        with pytest.raises(ScriptTypeError):
            run("material(3);")

    def test_error_reports_innermost_location(self):
        with pytest.raises(ScriptTypeError) as info:
            run("drill(0mm, 0mm,\n      1mm + 2);")
        assert info.value.line == 2

    def test_linspace_count_zero(self):
        with pytest.raises(ScriptRuntimeError):
            run("s = linspace(0, 1, 0);")

    def test_linspace_count_not_integral(self):
        with pytest.raises(ScriptRuntimeError):
            run("s = linspace(0, 1, 2.5);")

    def test_linspace_mixed_kinds(self):
        with pytest.raises(ScriptTypeError):
            run("s = linspace(0, 1mm, 2);")

    def test_arguments_evaluated_in_source_order(self):
        """A named argument may bind a variable read by a later positional one."""
        interpreter = run("drill(depth=(v=2mm), 0mm, v);")
        assert interpreter.scopes.global_scope.bindings["v"] == Number.length(2.0)
        plunges = [seg for seg in interpreter.get_all_segments()
                   if isinstance(seg, LinearFeed) and seg.start_pos['z'] > 0]
        assert plunges[0].start_pos['y'] == pytest.approx(2.0)

    def test_huge_integer_argument(self):
        with pytest.raises(ScriptRuntimeError) as info:
            run("n = 2 ^ 1000;\nrpm(n * n);")
        assert info.value.line == 2

    def test_unknown_material(self):
        with pytest.raises(ConfigError) as info:
            run("material('UNOBTAINIUM');")
        assert "UNOBTAINIUM" in info.value.message


class TestMultipleSources:
    """Tests for running a prelude before the main script."""

    def test_prelude_shares_scope_and_state(self):
        interpreter = GCadInterpreter()
        interpreter.compile([
            ("define_material('foam', 0.5, 5mm, 2000, 800, 10000);\nd = 4mm;", "materials.gcad"),
            ("material('foam');\ndrill(0mm, 0mm, d);", "main.gcad"),
        ])
        assert interpreter.machine_state.material.name == "foam"
        assert interpreter.get_statistics()['processing']['sources'] == [
            "materials.gcad", "main.gcad"]

    def test_error_names_failing_source(self):
        interpreter = GCadInterpreter()
        with pytest.raises(ScriptNameError) as info:
            interpreter.compile([("a = 1;", "prelude.gcad"), ("b = missing;", "main.gcad")])
        assert info.value.source_name == "main.gcad"
        assert str(info.value) == "NameError at main.gcad:1:5: undefined variable 'missing'"
