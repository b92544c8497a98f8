# Control store ROM
#
# Copyright (c) 2024 The isagen authors
#
# This program is GPL licensed (GPL-3.0-or-later).

# Address (15 bits):
#   [I7..I0] opcode, [S2..S0] step, [F3..F0] flags
#
# Every instruction starts with the fetch step. The sequencer reset step
# follows the last microstep, so an opcode gets at most 6 of its own.

from .vocab import IsaError, FETCH, NOP, SSR, pack, word


OPCODE_BITS = 8
STEP_BITS = 3
FLAG_BITS = 4

NOPCODES = 1 << OPCODE_BITS
NSTEPS = 1 << STEP_BITS
NFLAGS = 1 << FLAG_BITS
ROM_SIZE = 1 << (OPCODE_BITS + STEP_BITS + FLAG_BITS)

MAX_USTEPS = NSTEPS - 2         # less fetch and reset


class OpcodeOutOfRange(IsaError):
    pass

class MicroprogramTooLong(IsaError):
    pass


def address(opcode, step, flags):
    return opcode << (STEP_BITS + FLAG_BITS) | step << FLAG_BITS | flags

def split_address(addr):
    return (addr >> (STEP_BITS + FLAG_BITS),
            (addr >> FLAG_BITS) & (NSTEPS - 1),
            addr & (NFLAGS - 1))

def check_opcode(opcode):
    if not isinstance(opcode, int) or isinstance(opcode, bool):
        raise TypeError(f'opcode must be an int, got {opcode!r}')
    if not 0 <= opcode < NOPCODES:
        raise OpcodeOutOfRange(f'opcode {opcode} not in [0, {NOPCODES - 1}]')


class microprogram():
    def __init__(self, steps=(), name=''):
        if isinstance(steps, (str, dict)):
            raise TypeError('steps must be a sequence of control words')
        steps = list(steps)
        if len(steps) > MAX_USTEPS:
            raise MicroprogramTooLong(
                f'{name or "microprogram"}: {len(steps)} steps, '
                f'at most {MAX_USTEPS} fit before the sequencer reset')
        self.name = name
        self.steps = tuple(pack(s) if isinstance(s, int) else pack(word(s))
                           for s in steps)

    def __len__(self):
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __getitem__(self, i):
        return self.steps[i]

    def __eq__(self, other):
        if not isinstance(other, microprogram):
            return NotImplemented
        return self.steps == other.steps and self.name == other.name

    def __repr__(self):
        steps = ', '.join(f'{s:#010x}' for s in self.steps)
        return f'microprogram([{steps}], name={self.name!r})'

def as_microprogram(prog):
    if isinstance(prog, microprogram):
        return prog
    return microprogram(prog)


class control_rom():
    def __init__(self):
        self.words = [NOP] * ROM_SIZE
        self.names = {}

    def __len__(self):
        return len(self.words)

    def __getitem__(self, addr):
        return self.words[addr]

    def __iter__(self):
        return iter(self.words)

    def step(self, opcode, step, flags):
        check_opcode(opcode)
        if not 0 <= step < NSTEPS:
            raise ValueError(f'step {step} not in [0, {NSTEPS - 1}]')
        if not 0 <= flags < NFLAGS:
            raise ValueError(f'flags {flags} not in [0, {NFLAGS - 1}]')
        return self.words[address(opcode, step, flags)]

    def nonzero(self):
        for addr, v in enumerate(self.words):
            if v != NOP:
                yield addr, v

    def encode_flag(self, opcode, flags, prog):
        """Write steps 0..7 of one (opcode, flags) pair."""
        check_opcode(opcode)
        prog = as_microprogram(prog)
        if not 0 <= flags < NFLAGS:
            raise ValueError(f'flags {flags} not in [0, {NFLAGS - 1}]')

        self.words[address(opcode, 0, flags)] = FETCH
        for step in range(1, NSTEPS):
            remaining = len(prog) + 1 - step
            if remaining > 0:
                v = prog[step - 1]
            elif remaining == 0:
                v = SSR
            else:
                v = NOP
            self.words[address(opcode, step, flags)] = v

    def encode(self, opcode, prog, name=None):
        """Write the same microprogram for every flag combination.

        Encoding an opcode again replaces its earlier definition; only
        instruction_set.ins rejects duplicate opcodes.
        """
        check_opcode(opcode)
        prog = as_microprogram(prog)
        for flags in range(NFLAGS):
            self.encode_flag(opcode, flags, prog)
        self.names[opcode] = prog.name if name is None else name

    def encode_cond(self, opcode, progs, name=''):
        """Write one microprogram per flag value.

        progs is a sequence of NFLAGS microprograms, or a function from
        the flag value to its microprogram. Nothing is written unless all
        of them are valid.
        """
        check_opcode(opcode)
        if callable(progs):
            progs = [progs(flags) for flags in range(NFLAGS)]
        progs = [as_microprogram(p) for p in progs]
        if len(progs) != NFLAGS:
            raise ValueError(f'opcode {opcode}: expected {NFLAGS} '
                             f'microprograms, got {len(progs)}')
        for flags, prog in enumerate(progs):
            self.encode_flag(opcode, flags, prog)
        self.names[opcode] = name


def build_rom(isa):
    rom = control_rom()
    for opcode, prog in isa.items():
        rom.encode(opcode, prog)
    return rom
