"""
GCAD Parser Module - Grammar and parse-tree construction for scripts.

The grammar is compiled once with lark's LALR parser. Parsing produces a
lark Tree (kept for verbose dumps) which is then transformed into the
node classes of gcad_ast, each annotated with its SourceSpan.
"""

import logging
import re
from typing import Optional, Union

from lark import Lark, Token, Transformer, Tree, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError

from gcad_ast import (
    Assign,
    BinaryOp,
    Block,
    Call,
    Factorial,
    ForLoop,
    Identifier,
    NamedArgument,
    Negate,
    NumberLiteral,
    Program,
    StringLiteral,
)
from gcad_errors import GcadError, ScriptSyntaxError, SourceSpan
from gcad_numbers import Number, Unit

logger = logging.getLogger(__name__)

GRAMMAR = r"""
    // The last statement of a script or block may omit its ";"
    start: _statement* expr?

    _statement: expr ";"
              | for_loop

    for_loop: "for" NAME "in" sum block
    block: "{" _statement* expr? "}"

    ?expr: assign
         | sum

    assign: NAME "=" expr

    // Precedence climbing, loosest first
    ?sum: product
        | sum (PLUS | MINUS) product      -> binary_op

    ?product: unary
            | product (STAR | SLASH) unary -> binary_op

    ?unary: power
          | MINUS unary                   -> negate

    ?power: postfix
          | postfix CARET unary           -> binary_op

    ?postfix: atom
            | postfix "!"                 -> factorial

    ?atom: NUMBER                         -> number
         | STRING                         -> string
         | call
         | NAME                           -> identifier
         | "(" expr ")"

    call: NAME "(" (argument ("," argument)*)? ")"

    argument: sum                         -> positional
            | NAME "=" sum                -> named

    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /\d+(\.\d+)?(mm|cm|m|in|ft|yd)?(?![A-Za-z0-9_])/
    STRING: /'(?:[^']|'')*'/

    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    CARET: "^"

    COMMENT: /(#|\/\/)[^\n]*/

    %import common.WS
    %ignore WS
    %ignore COMMENT
"""

NUMBER_PAT = re.compile(r"^(\d+)(\.\d+)?([a-z]*)$")

_parser = Lark(GRAMMAR, parser="lalr", propagate_positions=True)


def _span(item: Union[Tree, Token, None]) -> Optional[SourceSpan]:
    if isinstance(item, Token):
        return SourceSpan(
            item.start_pos, item.end_pos, item.line, item.column, item.end_line, item.end_column
        )
    meta = getattr(item, "meta", item)
    if meta is None or getattr(meta, "empty", True):
        return None
    return SourceSpan(
        meta.start_pos, meta.end_pos, meta.line, meta.column, meta.end_line, meta.end_column
    )


def parse_number(text: str) -> Number:
    """
    Convert a numeric literal such as "12", "2.5" or "3.2mm" to a Number.

    Args:
        text: Literal text as matched by the grammar

    Returns:
        Integer Number without fraction, Float Number with one

    Raises:
        ScriptSyntaxError: If the text is not a numeric literal
    """
    match = NUMBER_PAT.match(text)
    if match is None:
        raise ScriptSyntaxError(f"Invalid number literal: {text!r}")
    whole, fraction, suffix = match.groups()
    unit = Unit.parse(suffix)
    if fraction:
        return Number(float(whole + fraction), unit)
    return Number(int(whole), unit)


def parse_string(text: str) -> str:
    """Strip the quotes from a string literal and unescape doubled quotes."""
    return text[1:-1].replace("''", "'")


@v_args(meta=True)
class AstBuilder(Transformer):
    """Transforms the lark parse tree into gcad_ast nodes."""

    def start(self, meta, children):
        return Program(list(children), _span(meta))

    def block(self, meta, children):
        return Block(list(children), _span(meta))

    def for_loop(self, meta, children):
        name, iterable, body = children
        return ForLoop(Identifier(str(name), _span(name)), iterable, body, _span(meta))

    def assign(self, meta, children):
        name, value = children
        return Assign(Identifier(str(name), _span(name)), value, _span(meta))

    def binary_op(self, meta, children):
        lhs, operator, rhs = children
        return BinaryOp(str(operator), lhs, rhs, _span(meta))

    def negate(self, meta, children):
        return Negate(children[-1], _span(meta))

    def factorial(self, meta, children):
        return Factorial(children[0], _span(meta))

    def number(self, meta, children):
        token = children[0]
        return NumberLiteral(parse_number(str(token)), _span(token))

    def string(self, meta, children):
        token = children[0]
        return StringLiteral(parse_string(str(token)), _span(token))

    def identifier(self, meta, children):
        token = children[0]
        return Identifier(str(token), _span(token))

    def call(self, meta, children):
        name, arguments = children[0], children[1:]
        positional = [arg for arg in arguments if not isinstance(arg, NamedArgument)]
        named = [arg for arg in arguments if isinstance(arg, NamedArgument)]
        return Call(Identifier(str(name), _span(name)), positional, named, _span(meta))

    def positional(self, meta, children):
        return children[0]

    def named(self, meta, children):
        name, value = children
        return NamedArgument(str(name), value, _span(meta))


def _syntax_error(source: str, error: UnexpectedInput) -> ScriptSyntaxError:
    if isinstance(error, UnexpectedEOF) or getattr(error, "line", -1) < 1:
        lines = source.splitlines() or [""]
        line, column = len(lines), len(lines[-1]) + 1
        position = len(source)
        message = "Unexpected end of script"
    else:
        line, column = error.line, error.column
        position = getattr(error, "pos_in_stream", None) or 0
        if isinstance(error, UnexpectedToken):
            if error.token.type == "$END":
                message = "Unexpected end of script"
            else:
                message = f"Unexpected {str(error.token)!r}"
            expected = sorted(error.accepts or error.expected)
            if expected:
                message += f", expected one of: {', '.join(expected)}"
        elif isinstance(error, UnexpectedCharacters):
            message = f"Unexpected character {source[position:position + 1]!r}"
        else:
            message = "Invalid syntax"
    return ScriptSyntaxError(message, SourceSpan(position, position + 1, line, column))


def parse_tree(source: str) -> Tree:
    """
    Parse script text into the raw lark tree.

    Raises:
        ScriptSyntaxError: If the text does not match the grammar
    """
    try:
        return _parser.parse(source)
    except UnexpectedInput as e:
        raise _syntax_error(source, e) from e


def build_program(tree: Tree) -> Program:
    """Convert a lark tree from parse_tree into a Program node."""
    try:
        return AstBuilder().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, GcadError):
            raise e.orig_exc
        raise


def parse(source: str) -> Program:
    """
    Parse script text into a Program node.

    Args:
        source: Script text

    Returns:
        Program whose statements are expression nodes and ForLoop nodes

    Raises:
        ScriptSyntaxError: If the text does not match the grammar
    """
    program = build_program(parse_tree(source))
    logger.debug(f"Parsed {len(program.statements)} top-level statements")
    return program


def format_parse_tree(tree: Tree) -> str:
    """Indented rendering of a raw parse tree for verbose output."""
    return tree.pretty()
