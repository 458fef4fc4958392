#!/usr/bin/env python3
"""
johnnyscript.py  -  compile JohnnyScript (.jns) to Johnny Simulator RAM (.ram)

Usage:
    johnnyscript input.jns [-o output.ram] [-v]

Source lines:
    #name value        declare a variable (value 0..999)
    MNEMONIC #name     instruction addressing a variable
    name:              jump point
    JMP name           jump to a jump point (forward or backward)
    MNEMONIC [addr]    plain instruction
    value              raw data word
    // comment         ignored to end of line

Mnemonics: TAKE ADD SUB SAVE JMP TST INC DEC NULL HLT
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from johnny_assembler import (
    OUTPUT_EXTENSION,
    SOURCE_EXTENSION,
    JohnnyScriptError,
    UnresolvedJumpsError,
    compile_lines,
    write_ram,
)

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='johnnyscript',
        description='JohnnyScript compiler for the Johnny Simulator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__)
    parser.add_argument('input', help=f'JohnnyScript source file ({SOURCE_EXTENSION})')
    parser.add_argument('-o', '--output',
                        help=f'Output file (default: <input name>{OUTPUT_EXTENSION} in the current directory)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def output_path_for(source):
    return Path.cwd() / (Path(source).stem + OUTPUT_EXTENSION)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr)

    source = Path(args.input)
    if not source.is_file() or not os.access(source, os.R_OK):
        print(f'Error: Invalid filename: {source.name}', file=sys.stderr)
        return 1
    if source.suffix != SOURCE_EXTENSION:
        logger.warning('%s does not have the %s extension', source.name, SOURCE_EXTENSION)

    out_path = Path(args.output) if args.output else output_path_for(source)

    try:
        lines = source.read_text().splitlines()
        image = compile_lines(lines)
        write_ram(image, out_path)
    except UnresolvedJumpsError as e:
        for name in e.names:
            print(f"Error: Unresolved jump point '{name}'", file=sys.stderr)
        return 1
    except JohnnyScriptError as e:
        print(str(e), file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    logger.debug('compiled %d source lines', len(lines))
    print(f'Wrote {len(image)} words to {out_path}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
