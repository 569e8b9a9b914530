# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from dataclasses import dataclass, field
import logging
import struct
import threading
import typing

import numpy as np

from . import base
from .cursor import ByteCursor, dec_str

logger = logging.getLogger(__name__)

# prev, next, data ptr, data len, counter, dtype class, dtype width, freq,
# shift, mul, scale, dec, name, short name, unit, padding
_chan = struct.Struct('<IIIIxxHHHhhhh32s8s12s40x')
CHAN_SIZE = _chan.size

_int_classes = (0, 0x03, 0x05)
_float_class = 0x07

def resolve_dtype(dtype_class, dtype_width):
    if dtype_class == _float_class:
        return {2: 'float16', 4: 'float32'}.get(dtype_width)
    if dtype_class in _int_classes:
        return {2: 'int16', 4: 'int32'}.get(dtype_width)
    return None

def to_physical(raw, shift, mul, scale, dec):
    # (raw / scale * 10^-dec + shift) * mul, keeping the power of ten exact
    # dec is a full int16, so huge powers go to 0/inf like IEEE says
    values = np.divide(raw, scale, dtype=np.float64)
    with np.errstate(over='ignore', invalid='ignore'):
        if dec > 0:
            values /= np.power(10., dec)
        elif dec < 0:
            values *= np.power(10., -dec)
        return (values + shift) * mul

@dataclass(eq=False)
class ChannelMeta:
    meta_ptr: int
    prev_meta_ptr: int
    next_meta_ptr: int
    data_ptr: int
    data_len: int
    dtype: typing.Optional[str]
    freq: int
    shift: int
    mul: int
    scale: int
    dec: int
    name: str
    short_name: str
    unit: str
    dtype_class: int = 0
    dtype_width: int = 0
    buf: bytes = field(default=b'', repr=False)
    _data: typing.Optional[np.ndarray] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def peek(self):
        return self._data

    def force(self):
        data = self._data
        if data is not None:
            return data
        with self._lock:
            if self._data is None:
                self._data = self._materialize()
            return self._data

    @property
    def data(self):
        return self.force()

    @property
    def timecodes(self):
        if not self.freq:
            return None
        return np.arange(self.data_len) * (1000 / self.freq)

    def _materialize(self):
        if self.dtype is None:
            raise base.UnknownDataType(self.name)
        if self.scale == 0:
            raise base.InvalidScaling(self.name)
        raw = ByteCursor(self.buf).read_array(self.data_ptr, self.data_len, self.dtype)
        logger.debug('Loaded %d %s samples for channel %s', len(raw), self.dtype, self.name)
        return to_physical(raw, self.shift, self.mul, self.scale, self.dec)

    def __str__(self):
        return 'chan %s (%s) [%s], %d Hz' % (self.name, self.short_name, self.unit, self.freq)

def decode_channel(cursor, meta_ptr):
    cursor.seek(meta_ptr)
    (prev_ptr, next_ptr, data_ptr, data_len, dtype_class, dtype_width, freq,
     shift, mul, scale, dec, name, short_name, unit) = cursor.unpack(_chan)
    return ChannelMeta(meta_ptr=meta_ptr,
                       prev_meta_ptr=prev_ptr,
                       next_meta_ptr=next_ptr,
                       data_ptr=data_ptr,
                       data_len=data_len,
                       dtype=resolve_dtype(dtype_class, dtype_width),
                       freq=freq,
                       shift=shift,
                       mul=mul,
                       scale=scale,
                       dec=dec,
                       name=dec_str(name),
                       short_name=dec_str(short_name),
                       unit=dec_str(unit),
                       dtype_class=dtype_class,
                       dtype_width=dtype_width,
                       buf=cursor.buf)

def walk_channels(cursor, meta_ptr, max_channels):
    # a sane chain can't hold more records than fit in the file
    limit = min(max_channels, len(cursor) // CHAN_SIZE)
    channels = []
    visited = set()
    addr = meta_ptr
    while addr:
        if addr in visited:
            raise base.MalformedChannelChain(
                'Channel chain loops back to 0x%x after %d channels' % (addr, len(channels)))
        if len(channels) >= limit:
            raise base.MalformedChannelChain(
                'Channel chain longer than %d records' % limit)
        visited.add(addr)
        try:
            ch = decode_channel(cursor, addr)
        except base.OutOfBounds as err:
            raise base.MalformedChannelChain(
                'Channel record at 0x%x is outside the file: %s' % (addr, err)) from err
        channels.append(ch)
        addr = ch.next_meta_ptr
    return channels
