"""Accessory functions."""
# std imports
import importlib.metadata
import unicodedata
import logging

__all__ = ('make_logger', 'repr_mapping', 'strip_control_chars')


def get_version():
    return importlib.metadata.version("linemud")


def strip_control_chars(text):
    """
    Remove control characters from ``text``.

    Example::

        >>> strip_control_chars('north\\r\\x00')
        'north'
    """
    return ''.join(c for c in text if unicodedata.category(c) != 'Cc')


_DEFAULT_LOGFMT = ' '.join(('%(asctime)s',
                            '%(levelname)s',
                            '%(filename)s:%(lineno)d',
                            '%(message)s'))


def make_logger(name, loglevel='info', logfile=None, logfmt=_DEFAULT_LOGFMT):
    """Create and return simple logger for given arguments."""
    lvl = getattr(logging, loglevel.upper())
    logging.getLogger().setLevel(lvl)

    _cfg = {'format': logfmt}
    if logfile:
        _cfg['filename'] = logfile
    logging.basicConfig(**_cfg)
    return logging.getLogger(name)


def repr_mapping(mapping):
    """Return printable string, 'key=value [key=value ...]' for mapping."""
    return ' '.join('='.join(map(str, kv)) for kv in mapping.items())
