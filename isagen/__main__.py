#!/usr/bin/env python3
# Control store ROM generator
#
# Copyright (c) 2024 The isagen authors
#
# This program is GPL licensed (GPL-3.0-or-later).

import argparse
import sys

from .isa import dump_isa, first_rev, load_isa
from .render import dump, render_png
from .rom import build_rom


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='isagen',
        description="Generate the control store ROM of the 8-bit CPU.")
    parser.add_argument('--isa', help="Instruction table YAML (default: "
                        "built-in first revision).")
    parser.add_argument('-o', '--out', help="Write the table dump to this "
                        "file instead of stdout.")
    parser.add_argument('--annotate', action='store_true',
                        help="Append control signal mnemonics to each line.")
    parser.add_argument('--png', help="Also render the table to a PNG.")
    parser.add_argument('--dump-isa', help="Write the instruction table "
                        "as YAML.")
    args = parser.parse_args(argv)

    isa = load_isa(args.isa) if args.isa else first_rev()
    rom = build_rom(isa)

    if args.out:
        with open(args.out, 'w') as f:
            dump(rom, f, args.annotate)
        print(f"Control store written: {args.out}", file=sys.stderr)
    else:
        dump(rom, sys.stdout, args.annotate)

    if args.png:
        render_png(rom, args.png)
        print(f"Image written: {args.png}", file=sys.stderr)

    if args.dump_isa:
        with open(args.dump_isa, 'w') as f:
            dump_isa(isa, f)
        print(f"Instruction table written: {args.dump_isa}", file=sys.stderr)

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
