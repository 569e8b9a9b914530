# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

import configparser
from dataclasses import dataclass

# What to do when the header date/time text doesn't parse:
#   now   - substitute the current wall clock time (what MoTeC readers traditionally do)
#   none  - leave Header.datetime as None
#   error - raise MalformedHeader
datetime_fallbacks = ('now', 'none', 'error')

@dataclass
class Options:
    datetime_fallback: str = 'now'
    max_channels: int = 65536

    def __post_init__(self):
        if self.datetime_fallback not in datetime_fallbacks:
            raise ValueError('datetime_fallback must be one of %s, not %r'
                             % (', '.join(datetime_fallbacks), self.datetime_fallback))
        if self.max_channels <= 0:
            raise ValueError('max_channels must be positive')

def load_options(fname=None, section='ldfile'):
    config = configparser.ConfigParser()
    config[section] = {} # base structure initialization
    if fname is not None:
        config.read(fname)

    opts = {}
    try:
        opts['datetime_fallback'] = config.get(section, 'datetime_fallback').strip().lower()
    except configparser.NoOptionError:
        pass
    try:
        opts['max_channels'] = config.getint(section, 'max_channels')
    except configparser.NoOptionError:
        pass
    return Options(**opts)
