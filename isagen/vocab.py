# Control word vocabulary
#
# Copyright (c) 2024 The isagen authors
#
# This program is GPL licensed (GPL-3.0-or-later).

import os
import re

import yaml


LAYOUT_FILE = os.path.join(os.path.dirname(__file__), 'ctl-fixed.yaml')

WORD_BITS = 32
FIELD_BITS = 4


class IsaError(ValueError):
    pass

class UnknownSignal(IsaError):
    pass

class FieldConflict(IsaError):
    pass


def get_type(doc, name):
    for t in doc['types']:
        if t['name'] == name:
            return t
    raise KeyError(name)


class layout():
    def __init__(self, doc):
        self.fields = [f['name'] for f in doc['fields']]
        if len(self.fields) != WORD_BITS // FIELD_BITS:
            raise ValueError(f"expected {WORD_BITS // FIELD_BITS} fields, "
                             f"got {len(self.fields)}")
        self.columns = {}
        self.mnemonics = {}

        # Columns are MSB first, like a packed struct
        msb = WORD_BITS
        for c in doc['control']['columns']:
            name = c['name']
            if 'type' in c:
                te = get_type(doc, c['type'])
                w = te['width']
                values = list(te['values'])
                if len(values) > 1 << w:
                    raise ValueError(f"type {te['name']} has {len(values)} "
                                     f"values, too many for {w} bits")
            else:
                w = c['width']
                values = ['NONE', name.upper()] if w == 1 else None
            lsb = msb - w
            if lsb < 0:
                raise ValueError(f"column {name} overflows the "
                                 f"{WORD_BITS}-bit word")
            if lsb // FIELD_BITS != (msb - 1) // FIELD_BITS:
                raise ValueError(f"column {name} straddles a field boundary")
            msb = lsb
            if name.startswith('_'):
                continue

            field = self.fields[(WORD_BITS - 1 - lsb) // FIELD_BITS]
            self.columns[name] = {'name': name, 'lsb': lsb, 'width': w,
                                  'values': values, 'field': field,
                                  'desc': c.get('desc', '')}
            for code, v in enumerate(values or []):
                if v == 'NONE':
                    continue
                if v in self.mnemonics:
                    raise ValueError(f"mnemonic {v} defined twice")
                self.mnemonics[v] = (name, code)
        if msb != 0:
            raise ValueError(f"columns cover {WORD_BITS - msb} bits, "
                             f"expected {WORD_BITS}")

    def signal(self, mn):
        try:
            col = self.mnemonics[mn][0]
        except KeyError:
            raise UnknownSignal(f"unknown control signal '{mn}'") from None
        return {col: mn}

    def merge(self, w, part):
        for col, v in part.items():
            if col not in self.columns:
                raise UnknownSignal(f"unknown control column '{col}'")
            if col in w and w[col] != v:
                raise FieldConflict(f"{self.columns[col]['field']}: "
                                    f"{w[col]} conflicts with {v}")
            w[col] = v
        return w

    def word(self, *parts):
        w = {}
        for p in parts:
            if isinstance(p, str):
                for mn in re.split(r'[|\s]+', p.strip()):
                    if mn and mn != 'NOP':
                        self.merge(w, self.signal(mn))
            elif isinstance(p, int):
                self.merge(w, self.decode(p))
            else:
                self.merge(w, p)
        return w

    def column_code(self, col, v):
        c = self.columns[col]
        if c['values'] is None:
            code = v
        elif isinstance(v, str):
            if v not in c['values']:
                raise UnknownSignal(f"'{v}' is not a {col} selector")
            code = c['values'].index(v)
        else:
            code = v
        if not 0 <= code < 1 << c['width']:
            raise ValueError(f"{col} value {v} does not fit {c['width']} bits")
        return code

    def pack(self, w):
        if isinstance(w, int):
            if not 0 <= w < 1 << WORD_BITS:
                raise ValueError(f"control word {w:#x} is not {WORD_BITS} bits")
            return w
        v = 0
        for col, sel in w.items():
            if col not in self.columns:
                raise UnknownSignal(f"unknown control column '{col}'")
            v |= self.column_code(col, sel) << self.columns[col]['lsb']
        return v

    def decode(self, v):
        if not 0 <= v < 1 << WORD_BITS:
            raise ValueError(f"control word {v:#x} is not {WORD_BITS} bits")
        w = {}
        rest = v
        for col, c in self.columns.items():
            m = (1 << c['width']) - 1
            code = (v >> c['lsb']) & m
            rest &= ~(m << c['lsb'])
            if code == 0:
                continue
            if c['values'] is None:
                w[col] = code
            elif code < len(c['values']):
                w[col] = c['values'][code]
            else:
                raise ValueError(f"{col} code {code} has no mnemonic")
        if rest:
            raise ValueError(f"control word {v:#010x} sets unused bits "
                             f"{rest:#010x}")
        return w

    def unpack(self, v):
        return [sel if isinstance(sel, str) else f'{col}={sel}'
                for col, sel in self.decode(v).items()]

    def mask(self, mn):
        return self.pack(self.signal(mn))


def load_layout(path=LAYOUT_FILE):
    with open(path) as f:
        doc = yaml.load(f, Loader=yaml.Loader)
    return layout(doc)


LAYOUT = load_layout()
MNEMONICS = LAYOUT.mnemonics

word = LAYOUT.word
pack = LAYOUT.pack
unpack = LAYOUT.unpack
mask = LAYOUT.mask

NOP = 0
SSR = mask('SSR')
FETCH = pack(word('PCO | MIO | INI | PCE'))
