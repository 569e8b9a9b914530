# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import contextlib
import math
import struct

import numpy as np

from . import base

_u16 = struct.Struct('<H')
_i16 = struct.Struct('<h')
_u32 = struct.Struct('<I')
_i32 = struct.Struct('<i')
_f32 = struct.Struct('<f')

# raw sample encodings, float16 is decoded by hand from the u16 pattern
_np_types = {'int16': np.dtype('<i2'),
             'int32': np.dtype('<i4'),
             'float16': np.dtype('<u2'),
             'float32': np.dtype('<f4')}

def dec_str(s):
    s = bytes(s)
    idx = s.find(b'\0')
    if idx >= 0:
        s = s[:idx]
    return s.decode('ascii', errors='replace').strip()

def half_to_float(bits):
    sign = -1. if bits & 0x8000 else 1.
    exponent = (bits >> 10) & 0x1f
    fraction = bits & 0x3ff
    if exponent == 0: # zero or subnormal
        return sign * math.ldexp(fraction / 1024, -14)
    if exponent == 0x1f:
        return math.nan if fraction else sign * math.inf
    return sign * math.ldexp(1 + fraction / 1024, exponent - 15)

def decode_halves(bits):
    """Vectorized half_to_float over an array of u16 bit patterns."""
    bits = np.asarray(bits, dtype=np.uint16).astype(np.int32)
    sign = np.where(bits & 0x8000, -1., 1.)
    exponent = (bits >> 10) & 0x1f
    fraction = (bits & 0x3ff) / 1024
    return np.select([exponent == 0, exponent == 0x1f],
                     [sign * np.ldexp(fraction, -14),
                      np.where(fraction != 0, np.nan, sign * np.inf)],
                     sign * np.ldexp(1 + fraction, exponent - 15))

class ByteCursor:
    """Random access reader over an immutable buffer.

    Only one traversal should use a cursor at a time.  The buffer itself
    is never written, so independent traversals just make their own
    cursor over the same bytes."""

    def __init__(self, buf, pos=0):
        self.buf = buf
        self.pos = pos

    def __len__(self):
        return len(self.buf)

    def _check(self, offset, width):
        if offset < 0 or width < 0 or offset + width > len(self.buf):
            raise base.OutOfBounds(offset, width, len(self.buf))

    def seek(self, offset):
        self.pos = offset

    def tell(self):
        return self.pos

    def skip(self, n):
        self.pos += n

    def remaining(self):
        return max(len(self.buf) - self.pos, 0)

    @contextlib.contextmanager
    def jump(self, offset):
        saved = self.pos
        self.pos = offset
        try:
            yield self
        finally:
            self.pos = saved

    def unpack(self, layout):
        self._check(self.pos, layout.size)
        ret = layout.unpack_from(self.buf, self.pos)
        self.pos += layout.size
        return ret

    def read_u16(self):
        return self.unpack(_u16)[0]

    def read_i16(self):
        return self.unpack(_i16)[0]

    def read_u32(self):
        return self.unpack(_u32)[0]

    def read_i32(self):
        return self.unpack(_i32)[0]

    def read_f32(self):
        return self.unpack(_f32)[0]

    def read_bytes(self, n):
        self._check(self.pos, n)
        ret = bytes(self.buf[self.pos:self.pos + n])
        self.pos += n
        return ret

    def read_str(self, n):
        return dec_str(self.read_bytes(n))

    def read_array(self, offset, count, dtype):
        """Read count raw samples at offset, leaving the cursor after them.

        float16 samples come back already converted to float64."""
        np_type = _np_types[dtype]
        self._check(offset, count * np_type.itemsize)
        if not count:
            data = np.zeros(0, dtype=np_type)
        else:
            data = np.frombuffer(self.buf, dtype=np_type, count=count, offset=offset)
        self.pos = offset + count * np_type.itemsize
        if dtype == 'float16':
            return decode_halves(data)
        return data
