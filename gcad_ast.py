"""
GCAD AST Module - Parse nodes produced by the script parser.

Each node keeps the SourceSpan of the text it was parsed from so that
runtime errors can point back at the script.
"""

from typing import List, Optional, Tuple, Union

from gcad_errors import SourceSpan
from gcad_numbers import Number


class Node:
    """Base class for parse nodes."""

    fields: Tuple[str, ...] = ()

    def __init__(self, span: Optional[SourceSpan] = None):
        self.span = span

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self.fields)

    def __repr__(self) -> str:
        args = ", ".join(f"{f}={getattr(self, f)!r}" for f in self.fields)
        return f"{type(self).__name__}({args})"


class NumberLiteral(Node):
    fields = ("number",)

    def __init__(self, number: Number, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.number = number


class StringLiteral(Node):
    fields = ("text",)

    def __init__(self, text: str, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.text = text


class Identifier(Node):
    fields = ("name",)

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.name = name


class Assign(Node):
    fields = ("target", "value")

    def __init__(self, target: Identifier, value: Node, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.target = target
        self.value = value


class BinaryOp(Node):
    """Arithmetic on two operands; operator is one of + - * / ^."""

    fields = ("operator", "lhs", "rhs")

    def __init__(self, operator: str, lhs: Node, rhs: Node, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.operator = operator
        self.lhs = lhs
        self.rhs = rhs


class Negate(Node):
    fields = ("operand",)

    def __init__(self, operand: Node, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.operand = operand


class Factorial(Node):
    fields = ("operand",)

    def __init__(self, operand: Node, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.operand = operand


class NamedArgument(Node):
    fields = ("name", "value")

    def __init__(self, name: str, value: Node, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.name = name
        self.value = value


class Call(Node):
    """
    Builtin invocation.

    `name` is the called Identifier (with its own span), `positional` the
    bare arguments and `named` the name=value arguments in written order.
    """

    fields = ("name", "positional", "named")

    def __init__(
        self,
        name: Identifier,
        positional: List[Node],
        named: List[NamedArgument],
        span: Optional[SourceSpan] = None,
    ):
        super().__init__(span)
        self.name = name
        self.positional = positional
        self.named = named


class Block(Node):
    fields = ("statements",)

    def __init__(self, statements: List[Node], span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.statements = statements


class ForLoop(Node):
    fields = ("variable", "iterable", "body")

    def __init__(self, variable: Identifier, iterable: Node, body: Block, span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.variable = variable
        self.iterable = iterable
        self.body = body


class Program(Node):
    fields = ("statements",)

    def __init__(self, statements: List[Node], span: Optional[SourceSpan] = None):
        super().__init__(span)
        self.statements = statements


Expression = Union[NumberLiteral, StringLiteral, Identifier, Assign, BinaryOp, Negate, Factorial, Call]
