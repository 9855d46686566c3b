"""
Unit tests for G-code emission.

These tests verify modal diffing, the coordinate transform and the
drilling, contour and pocket toolpaths.
"""

import io
import unittest

from gcad_errors import DomainError
from gcad_gcode import GcodeState, Material


def lines(state):
    return state.getvalue().splitlines()


class TestModalEmission(unittest.TestCase):
    """Test cases for modal G-code primitives."""

    def setUp(self):
        """Set up test fixtures."""
        self.state = GcodeState()
        self.state.feed_rate = 500.0
        self.state.plunge_rate = 100.0

    def test_header(self):
        """Test the program header."""
        self.state.write_header()
        self.assertEqual(
            lines(self.state),
            ["G90", "G21", "(Move to safe Z)", "G53 G0 Z-5", "M05"],
        )

    def test_rapid_move_suppresses_repeats(self):
        """Test that a move to the current position writes nothing."""
        self.assertTrue(self.state.rapid_move(1, 2, 3))
        self.assertFalse(self.state.rapid_move(1, 2, 3))
        self.state.rapid_move(1, 2, 5)
        self.assertEqual(lines(self.state), ["G0 X1 Y2 Z3", "Z5"])
        self.assertEqual(self.state.line_count, 2)

    def test_cutting_moves(self):
        """Test that command and feed are only written when they change."""
        self.state.cutting_move(1, 0)
        self.state.cutting_move(2, 0)
        self.state.rapid_move(2, 0, 5)
        self.state.cutting_move(3, 0)
        self.assertEqual(
            lines(self.state),
            ["G1 X1 Y0 F500", "X2", "G0 Z5", "G1 X3"],
        )

    def test_plunge_switches_feed(self):
        """Test plunge and cutting feed rates alternate."""
        self.state.rapid_move(0, 0)
        self.state.plunge(-1)
        self.state.cutting_move(5, 0)
        self.assertEqual(lines(self.state), ["G0 X0 Y0", "G1 Z-1 F100", "X5 F500"])

    def test_number_formatting(self):
        """Test rounding in emitted words."""
        self.state.rapid_move(1.23456, -0.0001)
        self.state.rapid_move(1.2349, 0)
        self.assertEqual(lines(self.state), ["G0 X1.235 Y0"])

    def test_arc(self):
        """Test arc centers written as offsets."""
        self.state.feed_rate = 300.0
        self.state.rapid_move(10, 0)
        self.state.arc_cut(-10, 0, 0, 0)
        self.assertEqual(lines(self.state), ["G0 X10 Y0", "G3 X-10 I-10 J0 F300"])

    def test_arc_without_position(self):
        """Test that an arc needs a known position."""
        with self.assertRaises(DomainError):
            self.state.arc_cut(1, 0, 0, 0)

    def test_machine_move_resets_command(self):
        """Test that G53 forces the next command and Z to be written."""
        self.state.rapid_move(0, 0, 5)
        self.state.machine_rapid_z(-5)
        self.state.rapid_move(0, 0, 5)
        self.assertEqual(lines(self.state), ["G0 X0 Y0 Z5", "G53 G0 Z-5", "G0 Z5"])

    def test_comment(self):
        """Test comment lines."""
        self.state.write_comment("pocket\none")
        self.assertEqual(lines(self.state), ["(pocket one)"])

    def test_finish(self):
        """Test the program end."""
        self.state.finish()
        self.assertEqual(lines(self.state), ["M02"])

    def test_external_output(self):
        """Test writing to a caller supplied stream."""
        output = io.StringIO()
        state = GcodeState(output)
        state.rapid_move(1, 1)
        self.assertEqual(output.getvalue(), "G0 X1 Y1\n")


class TestSpindle(unittest.TestCase):
    """Test cases for spindle control."""

    def test_set_rpm(self):
        """Test that spindle speed is only written when it changes."""
        state = GcodeState()
        state.set_rpm(12000)
        state.set_rpm(12000)
        state.set_rpm(10000)
        self.assertEqual(lines(state), ["M03 S12000", "S10000"])

    def test_stop_then_start(self):
        """Test that the spindle is restarted after a stop."""
        state = GcodeState()
        state.set_rpm(12000)
        state.spindle_stop()
        state.set_rpm(12000)
        self.assertEqual(lines(state), ["M03 S12000", "M05", "M03 S12000"])

    def test_apply_material(self):
        """Test that a material sets rates and speed."""
        state = GcodeState()
        state.apply_material(Material(1.5, 0.3, 400, 100, 18000))
        self.assertEqual(state.stepover, 1.5)
        self.assertEqual(state.depth_per_pass, 0.3)
        self.assertEqual(state.feed_rate, 400)
        self.assertEqual(state.plunge_rate, 100)
        self.assertEqual(lines(state), ["M03 S18000"])


class TestTransform(unittest.TestCase):
    """Test cases for the XY transform."""

    def test_scale(self):
        """Test a non-uniform scale."""
        state = GcodeState()
        state.set_scale(2, 3)
        state.rapid_move(1, 1)
        self.assertEqual(lines(state), ["G0 X2 Y3"])

    def test_omitted_axis(self):
        """Test that an omitted axis keeps its programmed value."""
        state = GcodeState()
        state.set_scale(2, 2)
        state.rapid_move(1, 1)
        state.rapid_move(y=2)
        self.assertEqual(lines(state), ["G0 X2 Y2", "Y4"])

    def test_transform_point(self):
        """Test the identity default."""
        state = GcodeState()
        self.assertEqual(state.transform_point(3.5, -2), (3.5, -2.0))


class TestToolpaths(unittest.TestCase):
    """Test cases for generated toolpaths."""

    def setUp(self):
        """Set up test fixtures."""
        self.state = GcodeState()
        self.state.feed_rate = 500.0
        self.state.plunge_rate = 100.0
        self.state.depth_per_pass = 1.0
        self.state.stepover = 1.0

    def test_drill(self):
        """Test a drilled hole."""
        self.state.drill(0, 0, 5)
        self.assertEqual(
            lines(self.state),
            ["G0 X0 Y0", "Z0.25", "G1 Z-5 F100", "G0 Z5"],
        )

    def test_contour_line(self):
        """Test a line cut in two passes."""
        self.state.contour_line(0, 0, 10, 0, 2)
        self.assertEqual(
            lines(self.state),
            [
                "G0 X0 Y0",
                "G1 Z-1 F100",
                "X10 F500",
                "G0 Z5",
                "X0",
                "G1 Z-2 F100",
                "X10 F500",
                "G0 Z5",
            ],
        )

    def test_pass_count_rounds_up(self):
        """Test that a partial pass depth still gets a pass."""
        self.assertEqual(self.state._pass_count(2.5), 3)
        self.assertEqual(self.state._pass_count(2), 2)

    def test_missing_material(self):
        """Test that toolpaths need a positive depth per pass."""
        self.state.depth_per_pass = 0.0
        with self.assertRaises(DomainError):
            self.state.contour_line(0, 0, 10, 0, 2)

    def test_circle_pocket(self):
        """Test a circular pocket with two rings."""
        self.state.cutter_diameter = 6.0
        self.state.depth_per_pass = 5.0
        self.state.feed_rate = 300.0
        self.state.circle_pocket(0, 0, 12, 3)
        self.assertEqual(
            lines(self.state),
            [
                "G0 X0 Y0",
                "G1 Z2.5 F100",
                "Z-3",
                "G3 X3 I1.5 J0 F300",
                "X-3 I-3 J0",
                "X3 I3 J0",
                "G0 Z5",
            ],
        )

    def test_circle_pocket_too_small(self):
        """Test that the pocket must be wider than the cutter."""
        self.state.cutter_diameter = 5.0
        with self.assertRaises(DomainError):
            self.state.circle_pocket(0, 0, 5, 1)
        with self.assertRaises(DomainError):
            self.state.circle_pocket(0, 0, 4, 1)

    def test_circle_pocket_needs_cutter(self):
        """Test that pocketing needs a cutter diameter."""
        with self.assertRaises(DomainError):
            self.state.circle_pocket(0, 0, 10, 1)

    def test_groove_pattern(self):
        """Test the spiral pattern starts on the innermost ring."""
        self.state.cutter_diameter = 2.0
        pattern = self.state.groove_pattern(0, 0, 6, 4)
        self.assertEqual(
            pattern,
            [
                (2, 2), (2, 2), (4, 2), (4, 2), (2, 2),
                (1, 1), (1, 3), (5, 3), (5, 1), (1, 1),
            ],
        )

    def test_groove_pocket(self):
        """Test a rectangular pocket in two layers."""
        self.state.cutter_diameter = 2.0
        self.state.groove_pocket(0, 0, 6, 4, 2)
        layer_cuts = ["X4 F500", "X2", "X1 Y1", "Y3", "X5", "Y1", "X1"]
        self.assertEqual(
            lines(self.state),
            ["G0 X2 Y2", "Z5", "G1 Z-1 F100"]
            + layer_cuts
            + ["G0 X2 Y2 Z-0.75", "G1 Z-2 F100"]
            + layer_cuts
            + ["G0 X2 Y2 Z5"],
        )

    def test_groove_too_small(self):
        """Test a groove no wider than the cutter."""
        self.state.cutter_diameter = 6.0
        with self.assertRaises(DomainError):
            self.state.groove_pocket(0, 0, 6, 6, 1)

    def test_groove_wider_than_tall(self):
        """Test that a low, wide groove is rejected instead of overcut."""
        self.state.cutter_diameter = 6.0
        self.state.stepover = 2.5
        with self.assertRaises(DomainError):
            self.state.groove_pocket(10, 60, 80, 20, 1.5)
        self.assertEqual(self.state.getvalue(), "")

    def test_groove_pattern_inside_pocket(self):
        """Test that every tool center of a tall groove stays in the pocket."""
        self.state.cutter_diameter = 6.0
        self.state.stepover = 2.5
        pattern = self.state.groove_pattern(10, 55, 20, 30)
        self.assertEqual(len(pattern), 15)
        for px, py in pattern:
            self.assertTrue(13 <= px <= 27)
            self.assertTrue(58 <= py <= 82)


if __name__ == "__main__":
    unittest.main()
