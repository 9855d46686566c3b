"""
GCAD Builtins Module - Argument binding and builtin functions.

Each builtin declares an ordered parameter table. bind_arguments resolves
a call's positional and named arguments against that table and coerces
them to native types; the builtin functions then validate units, convert
everything to millimeters and drive the GcodeState of the engine.
"""

from typing import Callable, Dict, List, Optional

from gcad_errors import (
    ArgumentError,
    ArityError,
    ScriptNameError,
    ScriptTypeError,
    UnitError,
    UnknownArgumentError,
)
from gcad_gcode import Material
from gcad_numbers import Number
from gcad_values import NULL, RangeValue, ScriptValue

# Parameter kinds
NUMBER = "number"
STRING = "string"


class Param:
    """One declared builtin parameter."""

    def __init__(self, name: str, kind: str = NUMBER, required: bool = True):
        self.name = name
        self.kind = kind
        self.required = required

    def __repr__(self) -> str:
        marker = "" if self.required else "?"
        return f"{self.name}{marker}:{self.kind}"


def optional(name: str, kind: str = NUMBER) -> Param:
    return Param(name, kind, required=False)


class Builtin:
    """A builtin function and its parameter table."""

    def __init__(self, name: str, params: List[Param], function: Callable):
        self.name = name
        self.params = params
        self.function = function

    def __call__(self, engine, args: List[ScriptValue], named: Dict[str, ScriptValue]) -> ScriptValue:
        bound = bind_arguments(self.name, self.params, args, named)
        engine.logger.debug(f"Calling {self.name}({_format_bound(bound)})")
        return self.function(engine, **bound)


def _format_bound(bound: Dict[str, object]) -> str:
    return ", ".join(f"{name}={value}" for name, value in bound.items() if value is not None)


def coerce(value: ScriptValue, kind: str):
    """
    Convert a script value to the native type of a parameter kind.

    Raises:
        ScriptTypeError: If the value is of another variant
    """
    if kind == NUMBER:
        return value.as_number()
    if kind == STRING:
        return value.as_text()
    raise ValueError(f"Unknown parameter kind: {kind}")


def bind_arguments(
    name: str,
    params: List[Param],
    args: List[ScriptValue],
    named: Dict[str, ScriptValue],
) -> Dict[str, object]:
    """
    Bind call arguments to a builtin's declared parameters.

    A parameter takes the positional argument at its index; a named
    argument of the same name overrides it. Unresolved optional
    parameters are bound to None.

    Args:
        name: Builtin name, used in error messages
        params: Declared parameters in order
        args: Positional argument values
        named: Named argument values

    Returns:
        Mapping of parameter name to coerced value or None

    Raises:
        ArgumentError: If a required parameter is not given
        ArityError: If there are more positional arguments than parameters
        UnknownArgumentError: If a named argument matches no parameter
        ScriptTypeError: If a value cannot be coerced
    """
    remaining = dict(named)
    resolved: Dict[str, Optional[ScriptValue]] = {}

    for index, param in enumerate(params):
        value = args[index] if index < len(args) else None
        if param.name in remaining:
            value = remaining.pop(param.name)
        if value is None and param.required:
            raise ArgumentError(f"{name}: {param.name} is required")
        resolved[param.name] = value

    if len(args) > len(params):
        raise ArityError(
            f"{name}: too many arguments, expected {len(params)}, got {len(args)}",
            expected=len(params),
            actual=len(args),
        )

    if remaining:
        argument = next(iter(remaining))
        raise UnknownArgumentError(f"{name}: unknown named argument {argument}", argument=argument)

    bound: Dict[str, object] = {}
    for index, param in enumerate(params):
        value = resolved[param.name]
        if value is None:
            bound[param.name] = None
            continue
        try:
            bound[param.name] = coerce(value, param.kind)
        except ScriptTypeError:
            raise ScriptTypeError(
                f"{name}: argument {index} ({param.name}) is not the correct type, "
                f"expected {param.kind}, got {value.type_name}"
            )
    return bound


def require_units(builtin: str, **numbers: Number) -> None:
    """
    Raises:
        UnitError: Naming the first unitless number
    """
    for param, number in numbers.items():
        if not number.has_unit:
            raise UnitError(f"{builtin}: {param} must have a unit")


def require_unitless(builtin: str, **numbers: Number) -> None:
    """
    Raises:
        UnitError: Naming the first number carrying a unit
    """
    for param, number in numbers.items():
        if number.has_unit:
            raise UnitError(f"{builtin}: {param} must not have a unit")


# --------------------------------------------------------------------------
# Builtin functions
# --------------------------------------------------------------------------
def builtin_rpm(engine, rpm: Number) -> ScriptValue:
    require_unitless("rpm", rpm=rpm)
    engine.gcode.set_rpm(rpm.as_float())
    return NULL


def builtin_material(engine, name: str) -> ScriptValue:
    material = engine.materials.get(name)
    if material is None:
        raise ScriptNameError(f"Unknown material: {name}")
    engine.gcode.apply_material(material)
    return NULL


def builtin_cutter_diameter(engine, diameter: Number) -> ScriptValue:
    require_units("cutter_diameter", diameter=diameter)
    engine.gcode.cutter_diameter = diameter.to_mm()
    return NULL


def builtin_contour_line(
    engine,
    x1: Number,
    y1: Number,
    x2: Optional[Number],
    y2: Optional[Number],
    depth: Number,
    up: Optional[Number],
) -> ScriptValue:
    if up is not None:
        require_units("contour_line", up=up)
        x2, y2 = x1, y1 + up
    elif x2 is None or y2 is None:
        raise ArgumentError("contour_line: either x2/y2 or up must be specified")

    require_units("contour_line", x1=x1, y1=y1, x2=x2, y2=y2, depth=depth)
    engine.gcode.contour_line(x1.to_mm(), y1.to_mm(), x2.to_mm(), y2.to_mm(), depth.to_mm())
    return NULL


def builtin_drill(engine, x: Number, y: Number, depth: Number) -> ScriptValue:
    require_units("drill", x=x, y=y, depth=depth)
    engine.gcode.drill(x.to_mm(), y.to_mm(), depth.to_mm())
    return NULL


def builtin_circle_pocket(
    engine,
    cx: Number,
    cy: Number,
    diameter: Optional[Number],
    radius: Optional[Number],
    depth: Number,
) -> ScriptValue:
    if diameter is not None and radius is not None:
        raise ArgumentError("circle_pocket: specify either diameter or radius, not both")
    if diameter is None:
        if radius is None:
            raise ArgumentError("circle_pocket: either diameter or radius must be specified")
        diameter = radius * Number(2)

    require_units("circle_pocket", cx=cx, cy=cy, diameter=diameter, depth=depth)
    engine.gcode.circle_pocket(cx.to_mm(), cy.to_mm(), diameter.to_mm(), depth.to_mm())
    return NULL


def builtin_groove_pocket(engine, x: Number, y: Number, width: Number, height: Number, depth: Number) -> ScriptValue:
    require_units("groove_pocket", x=x, y=y, width=width, height=height, depth=depth)
    engine.gcode.groove_pocket(x.to_mm(), y.to_mm(), width.to_mm(), height.to_mm(), depth.to_mm())
    return NULL


def builtin_define_material(
    engine,
    name: str,
    stepover: Number,
    depth_per_pass: Number,
    feed_rate: Number,
    plunge_rate: Number,
    rpm: Number,
) -> ScriptValue:
    require_unitless(
        "define_material",
        stepover=stepover,
        depth_per_pass=depth_per_pass,
        feed_rate=feed_rate,
        plunge_rate=plunge_rate,
        rpm=rpm,
    )
    engine.materials[name] = Material(
        stepover=stepover.as_float(),
        depth_per_pass=depth_per_pass.as_float(),
        feed_rate=feed_rate.as_float(),
        plunge_rate=plunge_rate.as_float(),
        rpm=rpm.as_float(),
    )
    engine.logger.debug(f"Registered material {name!r}: {engine.materials[name]}")
    return NULL


def builtin_comment(engine, text: str) -> ScriptValue:
    engine.gcode.write_comment(text)
    return NULL


def builtin_linspace(engine, start: Number, stop: Number, num: Number) -> ScriptValue:
    require_unitless("linspace", num=num)
    if start.has_unit and not stop.has_unit:
        raise UnitError("linspace: stop must have a unit if start has a unit")
    if stop.has_unit and not start.has_unit:
        raise UnitError("linspace: start must have a unit if stop has a unit")
    if not num.is_integer:
        raise ScriptTypeError("linspace: num must be an integer")

    stop = stop.convert_unit(start.unit)
    count = num.magnitude
    # count == 1 divides by zero and yields an infinite/NaN step
    step = (stop - start) / Number(count - 1)
    if count < 1:
        raise ScriptTypeError("linspace: num must be a positive integer")
    return RangeValue(start, step, count)


def builtin_scale(engine, x: Number, y: Number) -> ScriptValue:
    require_unitless("scale", x=x, y=y)
    engine.gcode.set_scale(x.as_float(), y.as_float())
    return NULL


BUILTINS: Dict[str, Builtin] = {
    "rpm": Builtin("rpm", [Param("rpm")], builtin_rpm),
    "material": Builtin("material", [Param("name", STRING)], builtin_material),
    "cutter_diameter": Builtin("cutter_diameter", [Param("diameter")], builtin_cutter_diameter),
    "contour_line": Builtin(
        "contour_line",
        [Param("x1"), Param("y1"), optional("x2"), optional("y2"), Param("depth"), optional("up")],
        builtin_contour_line,
    ),
    "drill": Builtin("drill", [Param("x"), Param("y"), Param("depth")], builtin_drill),
    "circle_pocket": Builtin(
        "circle_pocket",
        [Param("cx"), Param("cy"), optional("diameter"), optional("radius"), Param("depth")],
        builtin_circle_pocket,
    ),
    "groove_pocket": Builtin(
        "groove_pocket",
        [Param("x"), Param("y"), Param("width"), Param("height"), Param("depth")],
        builtin_groove_pocket,
    ),
    "define_material": Builtin(
        "define_material",
        [
            Param("name", STRING),
            Param("stepover"),
            Param("depth_per_pass"),
            Param("feed_rate"),
            Param("plunge_rate"),
            Param("rpm"),
        ],
        builtin_define_material,
    ),
    "comment": Builtin("comment", [Param("text", STRING)], builtin_comment),
    "linspace": Builtin("linspace", [Param("start"), Param("stop"), Param("num")], builtin_linspace),
    "scale": Builtin("scale", [Param("x"), Param("y")], builtin_scale),
}
