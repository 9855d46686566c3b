"""
GCAD G-code Module - Modal G-code emission and toolpath generation.

GcodeState keeps the live machining parameters, the XY coordinate
transform and the modal state of the emitted program. Every primitive
writes at most one line and only includes the words whose value changed
since the last emitted line.
"""

import io
import logging
import math
from typing import List, Optional, TextIO, Tuple

import numpy as np

from gcad_errors import DomainError
from gcad_utils import format_number

# Z margin above the previous pass when stepping down in a groove pocket
RETRACT = 0.25

# Z heights (mm) used by the toolpaths
SAFE_Z = 5.0
DRILL_APPROACH_Z = 0.25
POCKET_APPROACH_Z = 2.5
MACHINE_SAFE_Z = -5.0

# Commands
RAPID = "G0"
LINEAR = "G1"
ARC_CCW = "G3"
METRIC = "G21"
MACHINE_COORDINATES = "G53"
ABSOLUTE = "G90"
PROGRAM_END = "M02"
SPINDLE_ON = "M03"
SPINDLE_STOP = "M05"

AXES = ("X", "Y", "Z")


class Material:
    """Named machining parameter preset (unitless, millimeter based)."""

    def __init__(
        self,
        stepover: float,
        depth_per_pass: float,
        feed_rate: float,
        plunge_rate: float,
        rpm: float,
    ):
        self.stepover = stepover
        self.depth_per_pass = depth_per_pass
        self.feed_rate = feed_rate
        self.plunge_rate = plunge_rate
        self.rpm = rpm

    def __repr__(self) -> str:
        return (
            f"Material(stepover={self.stepover}, depth_per_pass={self.depth_per_pass}, "
            f"feed_rate={self.feed_rate}, plunge_rate={self.plunge_rate}, rpm={self.rpm})"
        )


class GcodeState:
    """
    G-code program writer with modal diffing.

    Machining parameters are in millimeters (and mm/min for rates).
    Tracked X/Y positions are in transformed (machine program) space.
    """

    def __init__(self, output: Optional[TextIO] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize the writer.

        Args:
            output: Text stream receiving G-code lines, a StringIO if None
            logger: Logger instance to use, creates new one if None
        """
        self.logger = logger or logging.getLogger(__name__)
        self.output = output if output is not None else io.StringIO()

        self.stepover = 0.0
        self.depth_per_pass = 0.0
        self.feed_rate = 0.0
        self.plunge_rate = 0.0
        self.cutter_diameter = 0.0

        self.transformation = np.identity(3)

        self.init_modal()

    def init_modal(self) -> None:
        """Forget all modal state; every axis becomes unknown."""
        self.last_command: Optional[str] = None
        self.last_feed: Optional[float] = None
        self.last_speed: Optional[float] = None
        self.position = {axis: None for axis in AXES}
        # Last programmed XY before the transform, used to resolve omitted axes
        self.program_xy: List[Optional[float]] = [None, None]
        self.line_count = 0

    # ----------------------------------------------------------------------
    # Parameters
    # ----------------------------------------------------------------------
    def set_scale(self, x: float, y: float) -> None:
        """Replace the XY transform with a non-uniform scale."""
        self.transformation = np.diag([float(x), float(y), 1.0])

    def transform_point(self, x: float, y: float) -> Tuple[float, float]:
        point = self.transformation @ np.array([x, y, 1.0])
        return float(point[0]), float(point[1])

    def apply_material(self, material: Material) -> None:
        """Adopt a material preset, including its spindle speed."""
        self.stepover = material.stepover
        self.depth_per_pass = material.depth_per_pass
        self.feed_rate = material.feed_rate
        self.plunge_rate = material.plunge_rate
        self.set_rpm(material.rpm)

    def getvalue(self) -> str:
        """Program text written so far (only for StringIO outputs)."""
        return self.output.getvalue()

    # ----------------------------------------------------------------------
    # Low level emission
    # ----------------------------------------------------------------------
    def _write(self, pieces: List[str]) -> None:
        line = " ".join(pieces)
        self.logger.debug(f"G-code: {line}")
        self.output.write(line + "\n")
        self.line_count += 1

    def _same(self, current: Optional[float], value: float) -> bool:
        return current is not None and format_number(current) == format_number(value)

    def _resolve_xy(self, x: Optional[float], y: Optional[float]):
        """Fill omitted X/Y from the last programmed position and transform."""
        if x is None and y is None:
            return None, None
        px = x if x is not None else self.program_xy[0]
        py = y if y is not None else self.program_xy[1]
        tx, ty = self.transform_point(0.0 if px is None else px, 0.0 if py is None else py)
        if px is not None:
            self.program_xy[0] = px
        if py is not None:
            self.program_xy[1] = py
        return (tx if px is not None else None), (ty if py is not None else None)

    def _motion(
        self,
        command: str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        z: Optional[float] = None,
        feed: Optional[float] = None,
        offsets: Optional[List[Tuple[str, float]]] = None,
    ) -> bool:
        """
        Emit one motion line with modal diffing.

        Args:
            command: Motion command word
            x, y: Target in transformed space, None keeps the axis
            z: Target Z, None keeps the axis
            feed: Feed rate for feed moves
            offsets: Non-modal words (I/J) always written when the line is

        Returns:
            True if a line was written
        """
        target = {"X": x, "Y": y, "Z": z}
        pieces = []
        for axis in AXES:
            value = target[axis]
            if value is not None and not self._same(self.position[axis], value):
                pieces.append(f"{axis}{format_number(value)}")

        # Target equals the current position on every touched axis
        if not pieces:
            return False

        for letter, value in offsets or ():
            pieces.append(f"{letter}{format_number(value)}")
        if feed is not None and not self._same(self.last_feed, feed):
            pieces.append(f"F{format_number(feed)}")
            self.last_feed = feed
        if command != self.last_command:
            pieces.insert(0, command)
            self.last_command = command

        for axis in AXES:
            if target[axis] is not None:
                self.position[axis] = target[axis]
        self._write(pieces)
        return True

    # ----------------------------------------------------------------------
    # Primitives
    # ----------------------------------------------------------------------
    def write_header(self) -> None:
        """Put the machine in a known state: absolute, metric, safe Z, spindle off."""
        self._write([ABSOLUTE])
        self.last_command = ABSOLUTE
        self._write([METRIC])
        self.last_command = METRIC
        self.write_comment("Move to safe Z")
        self.machine_rapid_z(MACHINE_SAFE_Z)
        self.spindle_stop()

    def machine_rapid_z(self, z: float) -> None:
        """
        Rapid Z move in machine coordinates (G53).

        G53 is non-modal, the next motion command is always written, and
        the work Z position is unknown afterwards.
        """
        self._write([MACHINE_COORDINATES, RAPID, f"Z{format_number(z)}"])
        self.last_command = None
        self.position["Z"] = None

    def spindle_stop(self) -> None:
        if self.last_command != SPINDLE_STOP:
            self._write([SPINDLE_STOP])
            self.last_command = SPINDLE_STOP
        self.last_speed = None

    def set_rpm(self, rpm: float) -> None:
        """Turn the spindle on clockwise at the given speed."""
        if self._same(self.last_speed, rpm):
            return
        pieces = [f"S{format_number(rpm)}"]
        if self.last_command != SPINDLE_ON:
            pieces.insert(0, SPINDLE_ON)
            self.last_command = SPINDLE_ON
        self.last_speed = rpm
        self._write(pieces)

    def write_comment(self, comment: str) -> None:
        text = " ".join(comment.splitlines())
        self._write([f"({text})"])

    def rapid_move(self, x: Optional[float] = None, y: Optional[float] = None, z: Optional[float] = None) -> bool:
        tx, ty = self._resolve_xy(x, y)
        return self._motion(RAPID, tx, ty, z)

    def cutting_move(self, x: Optional[float] = None, y: Optional[float] = None, z: Optional[float] = None) -> bool:
        tx, ty = self._resolve_xy(x, y)
        return self._motion(LINEAR, tx, ty, z, feed=self.feed_rate)

    def plunge(self, z: float) -> bool:
        return self._motion(LINEAR, z=z, feed=self.plunge_rate)

    def arc_cut(self, x: float, y: float, cx: float, cy: float) -> bool:
        """
        Counter-clockwise arc to (x, y) around (cx, cy).

        The center is written as I/J offsets from the current position.

        Raises:
            DomainError: If the current X/Y position is unknown
        """
        current_x, current_y = self.position["X"], self.position["Y"]
        if current_x is None or current_y is None:
            raise DomainError("Cannot generate G3 arc without current position")
        tx, ty = self._resolve_xy(x, y)
        tcx, tcy = self.transform_point(cx, cy)
        offsets = [("I", tcx - current_x), ("J", tcy - current_y)]
        return self._motion(ARC_CCW, tx, ty, feed=self.feed_rate, offsets=offsets)

    def finish(self) -> None:
        """Terminate the program."""
        self._write([PROGRAM_END])
        self.last_command = PROGRAM_END
        self.output.flush()

    # ----------------------------------------------------------------------
    # Toolpaths
    # ----------------------------------------------------------------------
    def _pass_count(self, depth: float) -> int:
        if self.depth_per_pass <= 0:
            raise DomainError("depth_per_pass must be positive, select a material first")
        return math.ceil(depth / self.depth_per_pass)

    def _require_cutter(self) -> None:
        if self.cutter_diameter <= 0:
            raise DomainError("cutter diameter must be set before pocketing")

    def drill(self, x: float, y: float, depth: float) -> None:
        self.logger.debug(f"drill at ({x}, {y}) depth {depth}")
        self.rapid_move(x, y)
        self.rapid_move(x, y, DRILL_APPROACH_Z)
        self.plunge(-depth)
        self.rapid_move(x, y, SAFE_Z)

    def contour_line(self, x1: float, y1: float, x2: float, y2: float, depth: float) -> None:
        """Cut a straight line, re-cutting it at increasing depth each pass."""
        n_passes = self._pass_count(depth)
        self.logger.debug(f"contour_line ({x1}, {y1}) -> ({x2}, {y2}) in {n_passes} passes")

        for layer in range(1, n_passes + 1):
            z = -(depth * layer / n_passes)
            self.rapid_move(x1, y1)
            self.plunge(z)
            self.cutting_move(x2, y2)
            self.rapid_move(x2, y2, SAFE_Z)

    def circle_pocket(self, cx: float, cy: float, diameter: float, depth: float) -> None:
        """
        Clear a circular pocket with concentric half-circle arcs.

        Raises:
            DomainError: If the diameter does not exceed the cutter diameter
        """
        self._require_cutter()
        if diameter <= self.cutter_diameter:
            raise DomainError(
                f"Diameter must be greater than cutter diameter "
                f"({format_number(diameter)} <= {format_number(self.cutter_diameter)})"
            )

        cutter = self.cutter_diameter
        n_circles = math.floor(diameter / cutter)
        n_passes = self._pass_count(depth)
        x_offset = (diameter / 2.0) - (cutter * n_circles / 2.0)
        self.logger.debug(
            f"circle_pocket at ({cx}, {cy}) diameter {diameter}: "
            f"{n_circles} circles, {n_passes} passes"
        )

        self.rapid_move(cx + x_offset, cy)
        self.plunge(POCKET_APPROACH_Z)

        for i in range(1, n_passes + 1):
            self.plunge(-(depth * i / n_passes))

            for j in range(1, n_circles + 1):
                self.arc_cut(cx - x_offset - cutter * (j - 1) / 2.0, cy, cx, cy)

                if j == n_circles:
                    self.arc_cut(cx + x_offset + cutter * (j - 1) / 2.0, cy, cx, cy)
                else:
                    self.arc_cut(cx + x_offset + cutter * j / 2.0, cy, cx + cutter / 4.0, cy)

            if i < n_passes:
                self.cutting_move(cx + x_offset, cy)

        self.rapid_move(cx + x_offset + cutter * (n_circles - 1) / 2.0, cy, SAFE_Z)

    def groove_pattern(self, x: float, y: float, width: float, height: float) -> List[Tuple[float, float]]:
        """
        Spiral rectangle pattern for a pocket with lower-left corner (x, y).

        Rings are built from the outermost tool-center rectangle inward by
        `stepover` per ring, then the whole list is reversed so cutting
        starts on the innermost ring.
        """
        pattern = []
        c_x = x + self.cutter_diameter / 2.0
        c_y = y + self.cutter_diameter / 2.0
        c_width = width - self.cutter_diameter
        c_height = height - self.cutter_diameter
        n_loops = 1 + math.ceil(((width / 2.0) - self.cutter_diameter) / self.stepover)

        for _ in range(n_loops):
            # The ring count follows the width, a low groove runs out of height first
            if c_width < 0 or c_height < 0:
                raise DomainError(
                    f"Groove {format_number(width)}x{format_number(height)} cannot be cleared "
                    f"with a {format_number(self.cutter_diameter)} cutter at stepover "
                    f"{format_number(self.stepover)}, make it at least as high as it is wide"
                )
            pattern.append((c_x, c_y))
            c_x += c_width
            pattern.append((c_x, c_y))
            c_y += c_height
            pattern.append((c_x, c_y))
            c_x -= c_width
            pattern.append((c_x, c_y))
            c_y -= c_height
            pattern.append((c_x, c_y))
            c_x += self.stepover
            c_y += self.stepover
            c_width -= 2.0 * self.stepover
            c_height -= 2.0 * self.stepover

        pattern.reverse()
        return pattern

    def groove_pocket(self, x: float, y: float, width: float, height: float, depth: float) -> None:
        """
        Clear a rectangular pocket along a spiral pattern.

        Raises:
            DomainError: If no material is active or the groove is too
                small for the cutter
        """
        self._require_cutter()
        if self.stepover <= 0:
            raise DomainError("stepover must be positive, select a material first")
        n_passes = self._pass_count(depth)
        pattern = self.groove_pattern(x, y, width, height)
        if not pattern:
            raise DomainError(
                f"Groove {format_number(width)}x{format_number(height)} is too small "
                f"for a {format_number(self.cutter_diameter)} cutter"
            )
        self.logger.debug(
            f"groove_pocket at ({x}, {y}) {width}x{height}: "
            f"{len(pattern)} pattern points, {n_passes} passes"
        )

        start_x, start_y = pattern[0]
        for layer in range(1, n_passes + 1):
            z = -(depth * layer / n_passes)

            self.rapid_move(start_x, start_y)
            if layer == 1:
                self.rapid_move(start_x, start_y, SAFE_Z)
            self.plunge(z)

            for px, py in pattern[1:]:
                self.cutting_move(px, py)

            if layer == n_passes:
                self.rapid_move(start_x, start_y, SAFE_Z)
            else:
                self.rapid_move(start_x, start_y, z + RETRACT)
