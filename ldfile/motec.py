# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import logging
import numbers

from . import base
from . import chan
from . import config
from . import head
from .cursor import ByteCursor

logger = logging.getLogger(__name__)

def _set_if(meta, name, val, formatter=None):
    if val:
        meta[name] = formatter % val if formatter else val

class Document:
    def __init__(self, head, channels):
        self.head = head
        self.channels = channels
        self.records = {ch.meta_ptr: ch for ch in channels}

    @property
    def channel_count(self):
        return len(self.channels)

    def __len__(self):
        return len(self.channels)

    def __iter__(self):
        return iter(self.channels)

    def list_channel_names(self):
        return [ch.name for ch in self.channels]

    def get_channel(self, key):
        if isinstance(key, numbers.Integral):
            if not 0 <= key < len(self.channels):
                raise base.IndexOutOfRange('Channel index %d out of range' % key)
            return self.channels[key]

        matches = [ch for ch in self.channels if ch.name == key]
        if not matches:
            raise base.ChannelNotFound("Channel '%s' not found" % key)
        if len(matches) > 1:
            raise base.AmbiguousChannelName("Multiple channels with name '%s' found" % key)
        return matches[0]

    def metadata(self):
        h = self.head
        meta = {}
        meta['Device Serial'] = h.device_serial
        meta['Device Type'] = h.device_type
        meta['Device Version'] = '%.2f' % (h.device_version / 100)
        meta['Log Date'] = h.date
        meta['Log Time'] = h.time
        meta['Driver'] = h.driver
        meta['Vehicle'] = h.vehicle_id
        meta['Venue'] = h.venue
        meta['Session'] = h.session
        meta['Short Comment'] = h.short_comment

        if h.event:
            meta['Event Name'] = h.event.name
            meta['Event Session'] = h.event.session
            meta['Long Comment'] = h.event.comment
            venue = h.event.venue
            if venue:
                meta['Venue Name'] = venue.name
                vehicle = venue.vehicle
                if vehicle:
                    meta['Vehicle Id'] = vehicle.id
                    meta['Vehicle Desc'] = vehicle.desc
                    _set_if(meta, 'Vehicle Weight', vehicle.weight)
                    _set_if(meta, 'Vehicle Type', vehicle.type)
                    _set_if(meta, 'Vehicle Comment', vehicle.comment)
                    _set_if(meta, 'Diff Ratio', vehicle.diff_ratio, '%.3f')
                    for gear, ratio in enumerate(vehicle.gear_ratios, 1):
                        _set_if(meta, 'Gear %d' % gear, ratio, '%.3f')
                    _set_if(meta, 'Vehicle Wheelbase [mm]', vehicle.wheelbase)
        return meta

    def to_object(self):
        h = self.head
        return {
            'metadata': {
                'driver': h.driver,
                'vehicleId': h.vehicle_id,
                'venue': h.venue,
                'datetime': h.datetime.isoformat() if h.datetime else None,
                'shortComment': h.short_comment,
                'event': h.event.name if h.event else None,
                'session': h.event.session if h.event else None,
            },
            'channels': [{'name': ch.name,
                          'shortName': ch.short_name,
                          'unit': ch.unit,
                          'freq': ch.freq,
                          'data': ch.data}
                         for ch in self.channels],
        }

    def to_data_map(self):
        return {ch.name: ch.data for ch in self.channels}

    def __str__(self):
        return '%s\n\nChannels (%d):\n%s' % (
            self.head, len(self.channels),
            '\n'.join('  [%d] %s' % (idx, ch) for idx, ch in enumerate(self.channels)))

def decode(buf, options=None):
    if options is None:
        options = config.Options()
    buf = bytes(buf)
    ld_head = head.parse_header(ByteCursor(buf), options)
    channels = chan.walk_channels(ByteCursor(buf), ld_head.meta_ptr, options.max_channels)
    if ld_head.num_channels and ld_head.num_channels != len(channels):
        logger.warning('Header claims %d channels, found %d in the channel chain',
                       ld_head.num_channels, len(channels))
    return Document(ld_head, channels)

def load_document(fname, options=None):
    with open(fname, 'rb') as f:
        buf = f.read()
    logger.info('Read %d bytes from %s', len(buf), fname)
    return decode(buf, options)
