#!/usr/bin/env python3
"""
GCAD command line compiler.

Compiles a machining script to a G-code program:

    gcad part.gcad -o part.nc
"""

import argparse
import logging
import sys
from typing import List, Optional

from gcad_config import CompilerConfig, load_config
from gcad_engine import ScriptEngine
from gcad_errors import GcadError
from gcad_materials import BUILTIN_MATERIALS
from gcad_utils import humansize, read_script, write_program

logger = logging.getLogger("gcad")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcad", description="Compile a machining script to G-code"
    )
    parser.add_argument("input", help="Script file to compile")
    parser.add_argument("-o", "--output", required=True, help="G-code file to write")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging and dump parse trees"
    )
    parser.add_argument("--config", "-c", help="YAML compiler configuration file")
    parser.add_argument(
        "--materials",
        action="append",
        default=[],
        metavar="PATH",
        help="Extra material preset script, may be repeated",
    )
    parser.add_argument(
        "--no-builtin-materials",
        action="store_true",
        help="Do not define the builtin material presets",
    )
    return parser


def compile_file(config: CompilerConfig, input_file: str, output_file: str, verbose: bool = False) -> int:
    """
    Compile one script file and write the program.

    Errors are logged with the offending source line before being raised.

    Returns:
        Number of bytes written

    Raises:
        GcadError: On the first error; nothing is written in that case
    """
    engine = ScriptEngine(logger=logger)
    engine.verbose = verbose
    source = None

    try:
        engine.write_header()

        if config.builtin_materials:
            source = BUILTIN_MATERIALS
            engine.run(source, "<materials>")
        for filename in config.material_files:
            source = read_script(filename)
            engine.run(source, filename)

        source = read_script(input_file)
        engine.run(source, input_file)
        source = None

        program = engine.finish()
        size = write_program(output_file, program)
    except GcadError as e:
        logger.error(e.describe(source))
        raise

    logger.info(f"Wrote {output_file}: {engine.gcode.line_count} lines, {humansize(size)}")
    return size


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config) if args.config else CompilerConfig()
    except GcadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.no_builtin_materials:
        config.builtin_materials = False
    config.material_files.extend(args.materials)

    log_level = logging.DEBUG if args.verbose else config.logging_level
    logging.basicConfig(level=log_level, format=config.log_format)

    try:
        compile_file(config, args.input, args.output, verbose=args.verbose)
    except GcadError:
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
