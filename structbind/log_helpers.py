# Copyright (c) 2026 NASK. All rights reserved.

import collections
import contextlib
import functools
import logging
import logging.config
import os.path
import sys

from structbind.const import (
    ETC_DIR,
    USER_DIR,
    TOPLEVEL_PACKAGES,
)


#
# Logging preparation'n'configuration

def early_Formatter_class_monkeypatching():  # called in structbind/__init__.py
    """
    Do logging.Formatter monkey-patching to use *always* UTC time.
    """
    from time import gmtime, strftime

    if getattr(logging.Formatter, '_structbind_monkeypatched', False):
        return

    @functools.wraps(logging.Formatter.formatTime)
    def formatTime(self, record, datefmt=None):
        converter = self.converter
        ct = converter(record.created)
        if datefmt:
            s = strftime(datefmt, ct)
        else:
            t = strftime("%Y-%m-%d %H:%M:%S", ct)
            s = "%s,%03d" % (t, record.msecs)
        if converter is gmtime:
            # the ' UTC' suffix is added *only* if it
            # is certain that we have a UTC time
            s += ' UTC'
        else:
            s += ' <UNCERTAIN TIMEZONE>'
        return s

    logging.Formatter.converter = gmtime
    logging.Formatter.formatTime = formatTime
    logging.Formatter._structbind_monkeypatched = True


def get_logger(name=None):
    """
    Like logging.getLogger(...) but replacing '__main__' with a sensible name.

    For example, if the script path is '/whatever/structbind/tools/foo.py'
    get_logger('__main__') is equivalent to logging.getLogger('structbind.tools.foo').
    """
    if name == '__main__':
        # try to get the script path from __main__.__file__
        script_path = getattr(sys.modules['__main__'], '__file__', None)
        if not script_path:
            # or, if __main__ does not have a non-blank __file__ attribute,
            # extract the script path from sys.argv...
            script_path = sys.argv[0]
        # strip off the filename extension...
        remaining = os.path.splitext(script_path)[0]
        # ..and pop path name segments up to
        # (and including) the toplevel package name
        aggregated_segments = collections.deque()
        while True:
            remaining, segment = os.path.split(remaining)
            segment = segment.replace('.', 'D')  # just in case of '.' or '..'
            aggregated_segments.appendleft(segment)
            if segment in TOPLEVEL_PACKAGES or remaining in ('', '/'):
                break
        name = '.'.join(aggregated_segments)
    return logging.getLogger(name)


_LOGGER = get_logger(__name__)

_loaded_configuration_paths = set()

def configure_logging(suffix=None):
    """
    Load the logging configuration from the `logging.conf` (or
    `logging-<suffix>.conf`) files that reside in the system-wide and
    user-specific configuration directories.

    A file that has already been loaded is not loaded again.

    Raises:
        :exc:`~exceptions.RuntimeError` if no configuration file has
        ever been loaded or if an error occurred when applying the
        configuration.
    """
    file_name = ('logging.conf' if suffix is None
                 else 'logging-{0}.conf'.format(suffix))
    file_paths = [os.path.join(config_dir, file_name)
                  for config_dir in (ETC_DIR, USER_DIR)]
    for path in file_paths:
        if path in _loaded_configuration_paths:
            _LOGGER.warning('ignored attempt to load logging configuration '
                            'file %a that has already been used', path)
            continue
        try:
            _try_reading(path)
        except OSError:
            pass
        else:
            try:
                logging.config.fileConfig(path, disable_existing_loggers=False)
            except Exception as exc:
                raise RuntimeError('error while configuring logging, '
                                   'using settings from configuration file {0!a}: {1}'
                                   .format(path, exc)) from exc
            else:
                _LOGGER.info('logging configuration loaded from %a', path)
                _loaded_configuration_paths.add(path)
    if not _loaded_configuration_paths:
        raise RuntimeError('logging configuration not loaded: '
                           'could not open any of the files: {0}'
                           .format(', '.join(map(ascii, file_paths))))


@contextlib.contextmanager
def logging_configured(suffix=None):
    """
    A context manager that calls :func:`configure_logging` and logs
    any exception that is about to terminate the program.
    """
    configure_logging(suffix)
    try:
        yield
    except SystemExit as exc:
        if exc.code:
            _LOGGER.critical(
                "SystemExit(%a) occurred. Exiting...",
                exc.code, exc_info=True)
        else:
            _LOGGER.info(
                "SystemExit(%a) occurred. Exiting...",
                exc.code)
        raise
    except KeyboardInterrupt:
        _LOGGER.warning("KeyboardInterrupt occurred. Exiting...")
        sys.exit(1)
    except Exception:
        _LOGGER.critical('Irrecoverable problem. Exiting...', exc_info=True)
        raise


def _try_reading(path):
    open(path).close()
