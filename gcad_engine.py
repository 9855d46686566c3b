"""
GCAD Engine Module - Script interpreter and compilation context.

ScriptEngine owns everything one compilation needs: the global variable
environment, the materials registry and the GcodeState receiving the
program. Scripts are parsed completely, then executed top to bottom; the
first error aborts the run.
"""

import logging
from typing import Dict, List, Optional, TextIO

from gcad_ast import (
    Assign,
    BinaryOp,
    Block,
    Call,
    Factorial,
    ForLoop,
    Identifier,
    Negate,
    Node,
    NumberLiteral,
    Program,
    StringLiteral,
)
from gcad_builtins import BUILTINS
from gcad_errors import GcadError, ScriptNameError, ScriptSyntaxError, ScriptTypeError
from gcad_gcode import GcodeState, Material
from gcad_materials import BUILTIN_MATERIALS
from gcad_parser import build_program, format_parse_tree, parse_tree
from gcad_utils import PathLike, read_script
from gcad_values import NULL, NumberValue, RangeValue, ScriptValue, StringValue


class ScriptEngine:
    """
    Compilation context for one G-code program.

    Typical use:
        engine = ScriptEngine()
        engine.write_header()
        engine.run(BUILTIN_MATERIALS, "<materials>")
        engine.run_file("part.gcad")
        program = engine.finish()
    """

    def __init__(self, output: Optional[TextIO] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize the engine.

        Args:
            output: Text stream receiving G-code, in-memory buffer if None
            logger: Logger instance to use, creates new one if None
        """
        self.logger = logger or logging.getLogger(__name__)
        self.variables: Dict[str, ScriptValue] = {}
        self.materials: Dict[str, Material] = {}
        self.gcode = GcodeState(output, logger=self.logger.getChild("gcode"))
        self.verbose = False

    def write_header(self) -> None:
        self.gcode.write_header()

    def finish(self) -> str:
        """
        Emit the program end and return the program text.

        Returns:
            The complete program when writing to the in-memory buffer,
            an empty string for caller supplied streams
        """
        self.gcode.finish()
        self.logger.info(f"Program finished, {self.gcode.line_count} lines")
        getvalue = getattr(self.gcode.output, "getvalue", None)
        return getvalue() if getvalue is not None else ""

    def run(self, source: str, name: str = "<script>") -> None:
        """
        Parse and execute script text.

        Args:
            source: Script text
            name: Script name for log messages

        Raises:
            GcadError: On the first syntax or runtime error
        """
        self.logger.info(f"Running {name}")
        tree = parse_tree(source)
        if self.verbose:
            self.logger.debug(f"Parse tree of {name}:\n{format_parse_tree(tree)}")
        program = build_program(tree)
        self.execute(program)

    def run_file(self, filename: PathLike) -> None:
        """
        Read and execute a script file.

        Raises:
            ScriptIOError: If the file cannot be read
            GcadError: On the first syntax or runtime error
        """
        self.run(read_script(filename), str(filename))

    def execute(self, program: Program) -> None:
        for statement in program.statements:
            if isinstance(statement, ForLoop) or self._is_expression(statement):
                self.logger.debug(f"Executing {type(statement).__name__} at {statement.span}")
                self.exec(statement)
            else:
                raise ScriptSyntaxError(
                    f"Unexpected top-level construct: {type(statement).__name__}", statement.span
                )

    @staticmethod
    def _is_expression(node: Node) -> bool:
        return isinstance(
            node, (Assign, BinaryOp, Negate, Factorial, NumberLiteral, StringLiteral, Identifier, Call)
        )

    def exec(self, node: Node) -> ScriptValue:
        """
        Evaluate a node, performing its side effects.

        Args:
            node: Parse node

        Returns:
            Value of the node, NULL for blocks, loops and side-effecting calls
        """
        if isinstance(node, NumberLiteral):
            return NumberValue(node.number)

        elif isinstance(node, StringLiteral):
            return StringValue(node.text)

        elif isinstance(node, Identifier):
            value = self.variables.get(node.name)
            if value is None:
                raise ScriptNameError(f"Variable not found: {node.name}", node.span)
            return value

        elif isinstance(node, Assign):
            value = self.exec(node.value)
            self.variables[node.target.name] = value
            return value

        elif isinstance(node, BinaryOp):
            lhs = self.exec(node.lhs)
            rhs = self.exec(node.rhs)
            return self._with_span(node, lambda: lhs.binary_op(node.operator, rhs))

        elif isinstance(node, Negate):
            operand = self.exec(node.operand)
            return self._with_span(node, operand.negate)

        elif isinstance(node, Factorial):
            operand = self.exec(node.operand)
            return self._with_span(node, operand.factorial)

        elif isinstance(node, Call):
            return self._call(node)

        elif isinstance(node, ForLoop):
            return self._for_loop(node)

        elif isinstance(node, Block):
            for statement in node.statements:
                self.exec(statement)
            return NULL

        raise ScriptSyntaxError(f"Unexpected node: {type(node).__name__}", node.span)

    def _with_span(self, node: Node, operation):
        try:
            return operation()
        except GcadError as e:
            if e.span is None:
                e.span = node.span
            raise

    def _call(self, node: Call) -> ScriptValue:
        # Positional arguments left to right, then named ones in written order
        args: List[ScriptValue] = [self.exec(arg) for arg in node.positional]
        named: Dict[str, ScriptValue] = {}
        for arg in node.named:
            named[arg.name] = self.exec(arg.value)

        name = node.name.name
        builtin = BUILTINS.get(name)
        if builtin is None:
            raise ScriptNameError(f"Function not found: {name}", node.name.span)

        return self._with_span(node, lambda: builtin(self, args, named))

    def _for_loop(self, node: ForLoop) -> ScriptValue:
        iterable = self.exec(node.iterable)
        if not isinstance(iterable, RangeValue):
            raise ScriptTypeError(
                f"for loop expects a range, got {iterable.type_name}", node.iterable.span
            )

        name = node.variable.name
        self.logger.debug(f"for {name} in {iterable!r}")
        for value in iterable:
            self.variables[name] = NumberValue(value)
            self.exec(node.body)
        return NULL


def compile_script(
    source: str,
    builtin_materials: bool = True,
    logger: Optional[logging.Logger] = None,
) -> str:
    """
    Compile script text to a complete G-code program.

    Args:
        source: User script text
        builtin_materials: Run the builtin materials script first
        logger: Logger instance to use

    Returns:
        Program text terminated by the program end instruction

    Raises:
        GcadError: On the first error
    """
    engine = ScriptEngine(logger=logger)
    engine.write_header()
    if builtin_materials:
        engine.run(BUILTIN_MATERIALS, "<materials>")
    engine.run(source)
    return engine.finish()
