# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import datetime
import logging
import re
import struct

from . import base
from .cursor import dec_str

logger = logging.getLogger(__name__)

LD_MARKER = 0x40

# marker, meta/data ptrs, event ptr, 3 static numbers, device serial/type/version,
# static number, num channels, date, time, driver, vehicle, venue, pro logging
# magic, session, short comment.  Everything else is padding or unknown.
_head = struct.Struct('<I4xII20xI24x6xI8sH2xI4x16s16x16s16x64s64s64x64s64x1024xI2x64s64s126x')
_event = struct.Struct('<64s64s1024sH')
_venue = struct.Struct('<64s1034xH')
_vehicle = struct.Struct('<64s64s64xI32s32s')
# follows the vehicle record: diff ratio, 9 gears, wheelbase
_vehicle_ext = struct.Struct('<H9H4xH')

# dd/mm/yyyy HH:MM[:SS], anywhere in the text
_datetime_re = re.compile(r"(\d{2})/(\d{2})/(\d{4})\s+(\d{2}):(\d{2})(?::(\d{2}))?")

def parse_vehicle(cursor):
    (vid, desc, weight, vtype, comment) = cursor.unpack(_vehicle)
    vehicle = base.Vehicle(id=dec_str(vid),
                           weight=weight,
                           type=dec_str(vtype),
                           comment=dec_str(comment),
                           desc=dec_str(desc))
    # Older loggers write a shorter vehicle record, and it may well be
    # the last thing in the file.
    if cursor.remaining() >= _vehicle_ext.size:
        diff, *rest = cursor.unpack(_vehicle_ext)
        vehicle.diff_ratio = diff / 1000
        vehicle.gear_ratios = [g / 1000 for g in rest[:9]]
        vehicle.wheelbase = rest[9]
    return vehicle

def parse_venue(cursor):
    name, vehicle_ptr = cursor.unpack(_venue)
    vehicle = None
    if vehicle_ptr:
        with cursor.jump(vehicle_ptr):
            vehicle = parse_vehicle(cursor)
    return base.Venue(dec_str(name), vehicle_ptr, vehicle)

def parse_event(cursor):
    name, session, comment, venue_ptr = cursor.unpack(_event)
    venue = None
    if venue_ptr:
        with cursor.jump(venue_ptr):
            venue = parse_venue(cursor)
    return base.Event(dec_str(name), dec_str(session), dec_str(comment), venue_ptr, venue)

def parse_datetime(date, time, fallback='now'):
    text = '%s %s' % (date, time)
    m = _datetime_re.search(text)
    if m:
        day, month, year, hour, minute, second = (int(g or 0) for g in m.groups())
        try:
            return datetime.datetime(year, month, day, hour, minute, second)
        except ValueError:
            pass # matched the pattern, but not a real date
    if fallback == 'error':
        raise base.MalformedHeader('Unable to parse log date/time %r' % text)
    if fallback == 'none':
        return None
    logger.warning('Unable to parse log date/time %r, using current time', text)
    return datetime.datetime.now()

def parse_header(cursor, options):
    cursor.seek(0)
    try:
        (marker, meta_ptr, data_ptr, event_ptr,
         device_serial, device_type, device_version, num_channels,
         date, time, driver, vehicle_id, venue, _pro_magic,
         session, short_comment) = cursor.unpack(_head)
        event = None
        if event_ptr:
            with cursor.jump(event_ptr):
                event = parse_event(cursor)
    except base.OutOfBounds as err:
        raise base.MalformedHeader('Truncated or corrupt header: %s' % err) from err

    if marker != LD_MARKER:
        logger.warning('Unexpected ld marker 0x%x', marker)

    date = dec_str(date)
    time = dec_str(time)
    head = base.Header(meta_ptr=meta_ptr,
                       data_ptr=data_ptr,
                       event_ptr=event_ptr,
                       event=event,
                       driver=dec_str(driver),
                       vehicle_id=dec_str(vehicle_id),
                       venue=dec_str(venue),
                       datetime=parse_datetime(date, time, options.datetime_fallback),
                       short_comment=dec_str(short_comment),
                       marker=marker,
                       device_serial=device_serial,
                       device_type=dec_str(device_type),
                       device_version=device_version,
                       num_channels=num_channels,
                       session=dec_str(session),
                       date=date,
                       time=time)
    logger.debug('Decoded header: meta_ptr=0x%x event_ptr=0x%x channels=%d',
                 meta_ptr, event_ptr, num_channels)
    return head
