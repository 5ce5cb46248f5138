"""
Main GCAD interpreter that coordinates all components.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from gcad.config.machine_config import MachineConfig
from gcad.core import ast_nodes as ast
from gcad.core.ast_builder import AstBuilder
from gcad.core.canonical import AbsoluteDistanceMode, MachineCoordinateMove, MetricUnits, ProgramEnd
from gcad.core.lexer import ScriptLexer
from gcad.core.machine_state import MachiningState
from gcad.core.parser import ScriptParser
from gcad.core.toolpath import ToolpathBuffer
from gcad.core.values import NULL, Sequence, Value, kind_of
from gcad.handlers.motion import retract_to_safe, stop_spindle
from gcad.handlers.operations import OperationHandlers
from gcad.utils.errors import GCadError, ScriptTypeError
from gcad.utils.expressions import ExpressionEvaluator
from gcad.utils.variables import ScopeStack

logger = logging.getLogger(__name__)


class GCadInterpreter:
    """Main interpreter that compiles GCAD scripts into toolpath segments."""

    def __init__(self, config: Optional[MachineConfig] = None):
        self.config = config or MachineConfig()

        # Core components
        self.machine_state = MachiningState(self.config)
        self.toolpath = ToolpathBuffer()

        # Expression and scope system
        self.scopes = ScopeStack()
        self.expression_evaluator = ExpressionEvaluator()

        # Processing components
        self.lexer = ScriptLexer()
        self.parser = ScriptParser()
        self.ast_builder = AstBuilder()
        self.operations = OperationHandlers()

        self.evaluators = {
            ast.Literal: self._eval_literal,
            ast.Identifier: self._eval_identifier,
            ast.BinaryOp: self._eval_binary,
            ast.UnaryOp: self._eval_unary,
            ast.Assignment: self._eval_assignment,
            ast.FunctionCall: self._eval_call,
            ast.ForLoop: self._eval_for_loop,
            ast.Block: self._eval_block,
        }

        # State tracking
        self.programs: List[ast.Program] = []
        self.source_name: Optional[str] = None
        self.statements_executed = 0

    def compile(self, sources: Iterable[Tuple[str, str]]) -> ToolpathBuffer:
        """
        Run one or more scripts in order as a single program.

        Scripts share scopes and machining state, so a prelude of material
        definitions can precede the main script.

        Args:
            sources: (text, source_name) pairs

        Returns:
            The completed toolpath buffer, header and footer included

        Raises:
            GCadError: the first error in any script
        """
        self.reset()
        self.begin_program()
        for text, source_name in sources:
            self.run_source(text, source_name)
        self.end_program()
        return self.toolpath

    def begin_program(self):
        """Append the program header."""
        self.toolpath.append(AbsoluteDistanceMode(0))
        self.toolpath.append(MetricUnits(0))
        if self.config.machine_safe_z is not None:
            self.toolpath.append(MachineCoordinateMove(0, {'z': self.config.machine_safe_z}))

    def end_program(self):
        """Retract, stop the spindle and end the program."""
        retract_to_safe(self.machine_state, self.toolpath)
        stop_spindle(self.machine_state, self.toolpath)
        self.toolpath.append(ProgramEnd(self.machine_state.current_line))

    def run_source(self, text: str, source_name: Optional[str] = None) -> ast.Program:
        """Parse, bind and execute one script against the current state."""
        self.source_name = source_name
        try:
            program = self.parse(text, source_name)
            for statement in program.statements:
                self.execute(statement)
        except GCadError as error:
            if error.source_name is None:
                error.source_name = source_name
            raise
        self.programs.append(program)
        return program

    def parse(self, text: str, source_name: Optional[str] = None) -> ast.Program:
        """Tokenize, parse and lower a script without executing it."""
        tokens = self.lexer.tokenize(text)
        tree = self.parser.parse(tokens)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Parse tree for %s:\n%s", source_name or '<script>', tree.format_tree())
        return self.ast_builder.build(tree, source_name)

    def execute(self, statement: ast.Node) -> Value:
        """Execute one top-level statement."""
        self.statements_executed += 1
        return self.evaluate(statement)

    def evaluate(self, node: ast.Node) -> Value:
        evaluator = self.evaluators[type(node)]
        try:
            return evaluator(node)
        except GCadError as error:
            error.attach_location(node.line, node.column, self.source_name)
            raise

    # Expressions

    def _eval_literal(self, node: ast.Literal) -> Value:
        return node.value

    def _eval_identifier(self, node: ast.Identifier) -> Value:
        return self.scopes.lookup(node.name)

    def _eval_binary(self, node: ast.BinaryOp) -> Value:
        lhs = self.evaluate(node.left)
        rhs = self.evaluate(node.right)
        return self.expression_evaluator.apply_binary(node.operator, lhs, rhs)

    def _eval_unary(self, node: ast.UnaryOp) -> Value:
        operand = self.evaluate(node.operand)
        return self.expression_evaluator.apply_unary(node.operator, operand)

    def _eval_assignment(self, node: ast.Assignment) -> Value:
        value = self.evaluate(node.value)
        self.scopes.assign(node.name, value)
        return value

    def _eval_call(self, node: ast.FunctionCall) -> Value:
        positional = []
        named = []
        for arg in node.arguments:
            if isinstance(arg, ast.NamedArgument):
                named.append((arg.name, self.evaluate(arg.value)))
            else:
                positional.append(self.evaluate(arg))
        args = node.builtin.schema.bind(positional, named)

        # Arguments may contain calls, so the line is set once they are done
        self.machine_state.current_line = node.line
        return self.operations.execute(node.builtin, args, self.machine_state, self.toolpath)

    # Statements

    def _eval_for_loop(self, node: ast.ForLoop) -> Value:
        source = self.evaluate(node.source)
        if not isinstance(source, Sequence):
            raise ScriptTypeError(f"for-loop source must be a sequence, got {kind_of(source)}")

        for item in source:
            with self.scopes.scoped(f"for {node.variable}"):
                self.scopes.assign(node.variable, item)
                self._eval_block(node.body)
        return NULL

    def _eval_block(self, node: ast.Block) -> Value:
        result = NULL
        for statement in node.statements:
            result = self.execute(statement)
        return result

    # Public interface methods

    def get_all_segments(self):
        """Get all generated segments."""
        return list(self.toolpath.segments)

    def get_segments_for_line(self, line_number: int):
        return self.toolpath.get_segments_for_line(line_number)

    def get_statistics(self):
        """Get processing and toolpath statistics."""
        return {
            'processing': {
                'sources': [program.source_name for program in self.programs],
                'total_statements': sum(len(p.statements) for p in self.programs),
                'statements_executed': self.statements_executed,
            },
            'toolpath': self.toolpath.get_statistics(),
            'machine_state': self.machine_state.get_state_summary(),
        }

    def reset(self):
        """Reset interpreter to initial state."""
        self.toolpath.clear()
        self.machine_state.reset()
        self.scopes.clear()
        self.programs.clear()
        self.source_name = None
        self.statements_executed = 0
