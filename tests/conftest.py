import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pytest

# Run against the local source tree
sys.path.insert(0, str(Path(__file__).parent.parent))

HEAD = struct.Struct('<I4xII20xI24xHHHI8sHHI4x16s16x16s16x64s64s64x64s64x1024xI2x64s64s126x')
EVENT = struct.Struct('<64s64s1024sH')
VENUE = struct.Struct('<64s1034xH')
VEHICLE = struct.Struct('<64s64s64xI32s32sH9H4xH')
CHAN = struct.Struct('<IIIIxxHHHhhhh32s8s12s40x')

EVENT_PTR = 0x800
VENUE_PTR = 0xd00
VEHICLE_PTR = 0x1200
META_PTR = 0x1400

DTYPES = {'int16': (0, 2, '<i2'),
          'int32': (3, 4, '<i4'),
          'float16': (7, 2, '<f2'),
          'float32': (7, 4, '<f4')}


@dataclass
class Chan:
    name: str
    values: list
    dtype: str = 'int16'
    freq: int = 10
    shift: int = 0
    mul: int = 1
    scale: int = 1
    dec: int = 0
    short_name: str = ''
    unit: str = ''
    dtype_class: int = None # override the class from dtype, e.g. for unknown types


@dataclass
class Vehicle:
    id: str = 'Car 7'
    desc: str = 'Formula Ford'
    weight: int = 540
    type: str = 'Open wheel'
    comment: str = 'Wet setup'
    diff: int = 3450
    gears: list = field(default_factory=lambda: [2910, 1940, 1450, 1170, 0, 0, 0, 0, 0])
    wheelbase: int = 2500


def build_ld(channels=(), driver='J.Doe', vehicle_id='FF1600', venue='Phillip Island',
             date='23/11/2005', time='09:53:00', short_comment='Practice',
             session='Q1', num_channels=None, marker=0x40,
             event=None, venue_rec=None, vehicle=None):
    """Lay out a synthetic .ld file.

    event/venue_rec are (name, ...) tuples: event=(name, session, comment),
    venue_rec=(name,).  A venue needs an event, a vehicle needs a venue."""
    channels = list(channels)
    data_ptr = META_PTR + CHAN.size * len(channels)
    buf = bytearray(data_ptr)

    HEAD.pack_into(buf, 0, marker,
                   META_PTR if channels else 0, data_ptr,
                   EVENT_PTR if event else 0,
                   1, 0x4240, 0xf,
                   12345, b'ADL', 420, 0xadb0,
                   len(channels) if num_channels is None else num_channels,
                   date.encode(), time.encode(), driver.encode(), vehicle_id.encode(),
                   venue.encode(), 0xc81a4, session.encode(), short_comment.encode())

    if event:
        EVENT.pack_into(buf, EVENT_PTR, event[0].encode(), event[1].encode(), event[2].encode(),
                        VENUE_PTR if venue_rec else 0)
    if venue_rec:
        VENUE.pack_into(buf, VENUE_PTR, venue_rec[0].encode(),
                        VEHICLE_PTR if vehicle else 0)
    if vehicle:
        VEHICLE.pack_into(buf, VEHICLE_PTR, vehicle.id.encode(), vehicle.desc.encode(),
                          vehicle.weight, vehicle.type.encode(), vehicle.comment.encode(),
                          vehicle.diff, *vehicle.gears, vehicle.wheelbase)

    for i, ch in enumerate(channels):
        dclass, width, np_type = DTYPES[ch.dtype]
        if ch.dtype_class is not None:
            dclass = ch.dtype_class
        raw = np.asarray(ch.values, dtype=np_type).tobytes()
        meta = META_PTR + i * CHAN.size
        CHAN.pack_into(buf, meta,
                       meta - CHAN.size if i else 0,
                       meta + CHAN.size if i + 1 < len(channels) else 0,
                       len(buf), len(ch.values),
                       dclass, width, ch.freq,
                       ch.shift, ch.mul, ch.scale, ch.dec,
                       ch.name.encode(), ch.short_name.encode(), ch.unit.encode())
        buf += raw
    return bytes(buf)


def meta_addr(index):
    return META_PTR + index * CHAN.size


@pytest.fixture
def scenario_bytes():
    return build_ld([Chan('Engine RPM', [10, 20, 30], dec=1, short_name='RPM', unit='rpm')])


@pytest.fixture
def full_bytes():
    return build_ld([Chan('Ground Speed', [0, 1000, 2500], dtype='int32', dec=1, unit='km/h',
                          freq=20),
                     Chan('Throttle Pos', [0.0, 50.5, 100.0], dtype='float32', unit='%'),
                     Chan('Lambda', [0.5, 1.0, -2.0, 1.5], dtype='float16'),
                     Chan('Coolant Temp', [850, 900], shift=-40, mul=2, scale=10, dec=-1,
                          unit='C')],
                    event=('Round 3', 'Race', 'Dry, 24 degrees'),
                    venue_rec=('Phillip Island GP',),
                    vehicle=Vehicle())


@pytest.fixture
def ld_file(tmp_path, full_bytes):
    path = tmp_path / 'session.ld'
    path.write_bytes(full_bytes)
    return path
