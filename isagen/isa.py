# Instruction table
#
# Copyright (c) 2024 The isagen authors
#
# This program is GPL licensed (GPL-3.0-or-later).

# TODO (second revision):
# . SSR on ~CLK to save the final clock of every instruction
# . MAR on ~CLK instead of ASY to save one clock for zero page
# . ADD/SUB with carry in from the flag register

import yaml

from .rom import check_opcode, microprogram
from .vocab import IsaError, unpack


class DuplicateOpcode(IsaError):
    pass


class instruction_set():
    def __init__(self):
        self.progs = {}

    def ins(self, opcode, name, steps):
        check_opcode(opcode)
        if opcode in self.progs:
            raise DuplicateOpcode(f'opcode 0x{opcode:02x} ({name}) already '
                                  f'defined as {self.progs[opcode].name}')
        self.progs[opcode] = microprogram(steps, name)

    def items(self):
        return self.progs.items()

    def __len__(self):
        return len(self.progs)

    def __contains__(self, opcode):
        return opcode in self.progs

    def __getitem__(self, opcode):
        return self.progs[opcode]


######################################################################
# Instruction base

def ld(isa, opcode, reg):
    isa.ins(opcode, f'LD{reg} #00',
            [f'PCO | MIO | {reg}RI'])
    isa.ins(opcode + 1, f'LD{reg} $00',
            ['MAR',
             'PCO | MIO | MLI | PCE',
             f'MAO | MIO | {reg}RI'])
    isa.ins(opcode + 2, f'LD{reg} $0000',
            ['PCO | MIO | MLI | PCE',
             'PCO | MIO | MMI | PCE',
             f'MAO | MIO | {reg}RI'])

def mov(isa, opcode, src, dst):
    isa.ins(opcode, f'MOV {src} to {dst}', [f'{src}RO | {dst}RI'])


def first_rev():
    isa = instruction_set()

    isa.ins(0x00, 'NOP', ['NOP'])                 # NOP

    ld(isa, 0x01, 'A')                            # LDA #00, $00, $0000
    ld(isa, 0x04, 'B')                            # LDB
    ld(isa, 0x07, 'C')                            # LDC
    ld(isa, 0x0a, 'D')                            # LDD

    mov(isa, 0x0d, 'A', 'B')
    mov(isa, 0x0e, 'A', 'C')
    mov(isa, 0x0f, 'A', 'D')
    mov(isa, 0x10, 'B', 'A')
    mov(isa, 0x11, 'B', 'C')
    mov(isa, 0x12, 'B', 'D')
    mov(isa, 0x13, 'C', 'A')
    mov(isa, 0x14, 'C', 'B')
    mov(isa, 0x15, 'C', 'D')
    mov(isa, 0x16, 'D', 'A')
    mov(isa, 0x17, 'D', 'B')
    mov(isa, 0x18, 'D', 'C')

    return isa


######################################################################
# Instruction table files

def parse_opcode(v):
    if isinstance(v, str):
        return int(v, 0)
    return v

def load_isa(path):
    with open(path) as f:
        doc = yaml.safe_load(f)

    isa = instruction_set()
    for r in doc['instructions']:
        isa.ins(parse_opcode(r['opcode']), r.get('mnemonic', ''),
                r.get('steps') or [])
    return isa

def step_text(s):
    try:
        return ' | '.join(unpack(s)) or 'NOP'
    except ValueError:
        return s                # no mnemonic spelling, keep the raw word

def dump_isa(isa, f):
    rows = []
    for opcode, prog in isa.items():
        steps = [step_text(s) for s in prog]
        rows.append({'opcode': f'0x{opcode:02x}', 'mnemonic': prog.name,
                     'steps': steps})
    yaml.safe_dump({'instructions': rows}, f, sort_keys=False)
