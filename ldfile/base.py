# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from dataclasses import dataclass, field
import datetime
import typing

import numpy as np

# Raw samples are handed to numpy with explicit little-endian dtypes.
# Make sure numpy agrees with us about the sizes we rely on.
assert np.dtype('<i2').itemsize == 2
assert np.dtype('<i4').itemsize == 4
assert np.dtype('<u2').itemsize == 2
assert np.dtype('<f4').itemsize == 4


class LdError(Exception):
    pass

class OutOfBounds(LdError):
    def __init__(self, offset, width, size):
        super().__init__('read of %d bytes at offset %d exceeds buffer of %d bytes'
                         % (width, offset, size))
        self.offset = offset
        self.width = width
        self.size = size

class UnknownDataType(LdError):
    def __init__(self, channel):
        super().__init__('Channel %s has unknown data type' % channel)
        self.channel = channel

class InvalidScaling(LdError):
    def __init__(self, channel):
        super().__init__('Channel %s has a scale of zero' % channel)
        self.channel = channel

class IndexOutOfRange(LdError, IndexError):
    pass

class ChannelNotFound(LdError, KeyError):
    def __str__(self):
        return str(self.args[0]) if self.args else ''

class AmbiguousChannelName(LdError, KeyError):
    def __str__(self):
        return str(self.args[0]) if self.args else ''

class MalformedHeader(LdError):
    pass

class MalformedChannelChain(LdError):
    pass


@dataclass(eq=False)
class Vehicle:
    id: str
    weight: int
    type: str
    comment: str
    desc: str = ''
    diff_ratio: float = 0.
    gear_ratios: typing.List[float] = field(default_factory=list)
    wheelbase: int = 0 # mm

    def __str__(self):
        return '%s (type: %s, weight: %d, %s)' % (self.id, self.type, self.weight, self.comment)

@dataclass(eq=False)
class Venue:
    name: str
    vehicle_ptr: int
    vehicle: typing.Optional[Vehicle]

    def __str__(self):
        return '%s; vehicle: %s' % (self.name, self.vehicle)

@dataclass(eq=False)
class Event:
    name: str
    session: str
    comment: str
    venue_ptr: int
    venue: typing.Optional[Venue]

    def __str__(self):
        return '%s; venue: %s' % (self.name, self.venue)

@dataclass(eq=False)
class Header:
    meta_ptr: int
    data_ptr: int
    event_ptr: int
    event: typing.Optional[Event]
    driver: str
    vehicle_id: str
    venue: str
    datetime: typing.Optional[datetime.datetime]
    short_comment: str
    # not needed for decoding, but nice to have around
    marker: int = 0
    device_serial: int = 0
    device_type: str = ''
    device_version: int = 0 # x100
    num_channels: int = 0
    session: str = ''
    date: str = ''
    time: str = ''

    def __str__(self):
        return '\n'.join([
            'driver:    %s' % self.driver,
            'vehicleid: %s' % self.vehicle_id,
            'venue:     %s' % self.venue,
            'event:     %s' % (self.event.name if self.event else 'N/A'),
            'session:   %s' % (self.event.session if self.event else 'N/A'),
            'short_comment: %s' % self.short_comment])
