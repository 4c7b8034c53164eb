"""recall — spaced-repetition scheduling engine."""

from recall.consts import VERSION

__version__ = VERSION
