# Control store dump
#
# Copyright (c) 2024 The isagen authors
#
# This program is GPL licensed (GPL-3.0-or-later).

from PIL import Image, ImageDraw

from .rom import (FLAG_BITS, NFLAGS, NSTEPS, OPCODE_BITS, STEP_BITS,
                  split_address)
from .vocab import FIELD_BITS, WORD_BITS, unpack


ADDRESS_GROUPS = (OPCODE_BITS, STEP_BITS, FLAG_BITS)
WORD_GROUPS = (FIELD_BITS,) * (WORD_BITS // FIELD_BITS)


def format_bits(v, groups):
    bs = f'{v:0{sum(groups)}b}'
    out = []
    i = 0
    for g in groups:
        out.append(bs[i:i + g])
        i += g
    return '_'.join(out)


def dump(rom, f, annotate=False):
    f.write("Address (binary) : Control Bits (binary)\n")
    f.write("=" * 80 + "\n")

    for addr, v in rom.nonzero():
        line = f"{format_bits(addr, ADDRESS_GROUPS)} : {format_bits(v, WORD_GROUPS)}"
        if annotate:
            try:
                line += ' ; ' + ' | '.join(unpack(v))
            except ValueError:
                line += f' ; {v:#010x}'
            opcode, step, flags = split_address(addr)
            if step == 0 and rom.names.get(opcode):
                line += f'    ({rom.names[opcode]})'
        f.write(line + "\n")


######################################################################
# One row per address, one column per control bit

FIELD_SHADES = [(0, 0, 0), (48, 48, 64)]
BIT_COLOR = (255, 255, 255)

def render_png(rom, path=None, scale=4):
    last = max((addr for addr, v in rom.nonzero()), default=0)
    block = NSTEPS * NFLAGS
    rows = (last // block + 1) * block

    img = Image.new('RGB', (WORD_BITS * scale, rows))
    d = ImageDraw.Draw(img)
    for i in range(WORD_BITS // FIELD_BITS):
        x0 = i * FIELD_BITS * scale
        d.rectangle((x0, 0, x0 + FIELD_BITS * scale - 1, rows - 1),
                    fill=FIELD_SHADES[i % 2])

    for y in range(rows):
        v = rom[y]
        for bit in range(WORD_BITS):
            if v >> (WORD_BITS - 1 - bit) & 1:
                x0 = bit * scale
                d.line((x0, y, x0 + scale - 1, y), fill=BIT_COLOR)

    if path is not None:
        img.save(path)
    return img
