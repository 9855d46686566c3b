"""
GCAD Materials Module - Builtin material presets.

BUILTIN_MATERIALS is ordinary script text executed before the user script.
Values are unitless: stepover and depth_per_pass in millimeters, feed and
plunge rates in millimeters per minute, spindle speed in rpm.
"""

BUILTIN_MATERIALS = """\
# name, stepover, depth_per_pass, feed_rate, plunge_rate, rpm
define_material('aluminium', 1.5, 0.3, 400, 100, 18000);
define_material('brass', 1.5, 0.25, 300, 80, 16000);
define_material('acrylic', 2, 1, 800, 200, 16000);
define_material('hardwood', 2.5, 1.5, 1200, 300, 18000);
define_material('softwood', 3, 2, 1500, 400, 18000);
define_material('plywood', 2.5, 1.5, 1200, 300, 18000);
define_material('mdf', 3, 2, 1500, 400, 16000);
define_material('pcb', 0.5, 0.2, 300, 60, 12000);
"""
