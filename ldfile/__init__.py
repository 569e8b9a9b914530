# Copyright 2024, Scott Smith.  MIT License (see LICENSE).

from .base import (LdError, OutOfBounds, UnknownDataType, InvalidScaling, IndexOutOfRange,
                   ChannelNotFound, AmbiguousChannelName, MalformedHeader, MalformedChannelChain)
from .config import Options, load_options
from .motec import Document, decode, load_document
