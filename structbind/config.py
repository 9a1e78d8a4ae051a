# Copyright (c) 2026 NASK. All rights reserved.

"""
Configuration: *config specs*, the :class:`Config` mapping of
:class:`ConfigSection` mappings, and the binding-related config
section (see: :func:`make_binding_config`).

A *config spec* is a string in the following format:

    [<section name>]
    <option name> = <default value> :: <converter name>
    <option name> :: <converter name>
    <option name> = <default value>

-- an option with no default value is required; the default
converter is ``str``; lines starting with ``;`` or ``#`` are comments.

The actual option values are taken either from a *settings* mapping
(e.g., Pyramid application settings), whose keys are in the
``<section name>.<option name>`` format, or -- if no settings are
given -- from the ``NN_*.conf`` files (*ConfigParser*-compatible ones)
placed in the ``/etc/structbind`` and ``~/.structbind`` directories.
"""

import configparser
import os
import os.path as osp
import re
from collections import namedtuple

from structbind.const import (
    DEFAULT_MAX_MULTIPART_MEMORY,
    ETC_DIR,
    TAG_FORM,
    TAG_JSON,
    TAG_QUERY,
    USER_DIR,
)
from structbind.encoding_helpers import (
    ascii_str,
    as_unicode,
    str_to_bool,
)
from structbind.log_helpers import get_logger


LOGGER = get_logger(__name__)



class ConfigError(Exception):

    """
    A generic, `Config`-related, exception class.

    >>> print(ConfigError('Some Message'))
    [configuration-related error] Some Message
    """

    def __str__(self):
        return '[configuration-related error] ' + super().__str__()


class NoConfigOptionError(ConfigError, KeyError):

    """
    Raised by `ConfigSection.__getitem__()` when the specified option is missing.

    >>> exc = NoConfigOptionError('mysect', 'myopt')
    >>> isinstance(exc, ConfigError) and isinstance(exc, KeyError)
    True
    >>> print(exc)
    [configuration-related error] no config option `myopt` in section `mysect`
    >>> exc.sect_name, exc.opt_name
    ('mysect', 'myopt')
    """

    def __init__(self, sect_name, opt_name):
        super().__init__('no config option `{0}` in section `{1}`'.format(opt_name, sect_name))
        self.sect_name = sect_name
        self.opt_name = opt_name

    def __str__(self):
        # (avoiding the `repr()`-applying `KeyError.__str__()`)
        return '[configuration-related error] ' + Exception.__str__(self)



#
# Config spec parsing

_OptSpec = namedtuple('_OptSpec', ('name', 'default', 'converter_spec'))

_SECT_HEADER_REGEX = re.compile(r'\A\[\s*(?P<name>[^\]\s]+)\s*\]\Z')
_OPT_REGEX = re.compile(
    r'''
    \A
    (?P<name> [^=:\s]+ )
    \s*
    (?:
        = \s* (?P<default> .*? )
    )?
    \s*
    (?:
        :: \s* (?P<converter_spec> \S+ )
    )?
    \Z
    ''', re.VERBOSE)


def parse_config_spec(config_spec):
    """
    Parse the given *config spec* string.

    Returns:
        A :class:`dict` that maps section names to lists of
        `_OptSpec(name, default, converter_spec)` named tuples
        (`default` is :obj:`None` for required options).

    Raises:
        :exc:`ConfigError` if the config spec is malformed.

    >>> parse_config_spec('''
    ...     [foo]
    ...     abc = 42 :: int
    ...     ; some comment
    ...     xyz :: list_of_str
    ...     spam = ham
    ... ''')  # doctest: +NORMALIZE_WHITESPACE
    {'foo': [_OptSpec(name='abc', default='42', converter_spec='int'),
             _OptSpec(name='xyz', default=None, converter_spec='list_of_str'),
             _OptSpec(name='spam', default='ham', converter_spec='str')]}
    """
    sect_name_to_opt_specs = {}
    opt_specs = None
    for line in config_spec.splitlines():
        line = line.strip()
        if not line or line.startswith((';', '#')):
            continue
        match = _SECT_HEADER_REGEX.search(line)
        if match is not None:
            opt_specs = sect_name_to_opt_specs.setdefault(match.group('name'), [])
            continue
        match = _OPT_REGEX.search(line)
        if match is None or opt_specs is None:
            raise ConfigError('malformed config spec line: {0!a}'.format(line))
        opt_specs.append(_OptSpec(
            match.group('name'),
            match.group('default'),
            match.group('converter_spec') or 'str'))
    return sect_name_to_opt_specs



#
# Config and ConfigSection

class ConfigSection(dict):

    """
    A subclass of `dict`; its instances are values of `Config` mappings.

    It keeps also the name of the configuration section it represents;
    lookup-by-key failures are signalled with `NoConfigOptionError`.

    >>> s = ConfigSection('some_sect', {'some_opt': 'FOO_bar,spam'})
    >>> s
    ConfigSection('some_sect', {'some_opt': 'FOO_bar,spam'})
    >>> s.sect_name
    'some_sect'
    >>> s == {'some_opt': 'FOO_bar,spam'}
    True
    >>> s['another_opt']     # doctest: +ELLIPSIS
    Traceback (most recent call last):
      ...
    structbind.config.NoConfigOptionError: [conf... `another_opt` in section `some_sect`
    """

    def __init__(self, sect_name, opt_name_to_value=None):
        super().__init__(opt_name_to_value or {})
        self.sect_name = sect_name

    def __missing__(self, key):
        raise NoConfigOptionError(self.sect_name, key)

    def __repr__(self):
        return '{0}({1!r}, {2})'.format(
            self.__class__.__qualname__,
            self.sect_name,
            super().__repr__())


def _make_list_converter(item_converter, name, delimiter=','):

    def converter(s):
        s = s.strip()
        if s.endswith(delimiter):
            # remove trailing delimiter
            s = s[:-len(delimiter)].rstrip()
        if s:
            return [item_converter(item.strip())
                    for item in s.split(delimiter)]
        else:
            return []

    converter.__name__ = name
    return converter


class Config(dict):

    """
    Parse the configuration and provide a `dict`-like access to it.

    A `Config` instance maps configuration section names (`str`) to
    `ConfigSection` instances.

    Args:
        `config_spec`:
            The *config spec* string (see the module docs).

    Kwargs:
        `settings` (default: :obj:`None`):
            A mapping of ``'<section name>.<option name>'`` keys to
            string values (e.g., Pyramid application settings).  If
            :obj:`None`, the configuration files are read.

    Raises:
        :exc:`ConfigError` -- for any configuration problem (missing
        required options, illegal options, conversion failures...).

    >>> config_spec = '''
    ... [foo]
    ... abc = 42 :: int
    ... flag = no :: bool'''
    >>> Config(config_spec, settings={'foo.abc': '123'})
    {'foo': ConfigSection('foo', {'abc': 123, 'flag': False})}
    """

    BASIC_CONVERTERS = {
        'str': str,
        'int': int,
        'bool': str_to_bool,
        'list_of_str': _make_list_converter(str, 'list_of_str'),
    }

    DEFAULT_CONFIG_FILENAME_REGEX = re.compile(r'\A[0-9][0-9]_.*\.conf\Z')

    def __init__(self, config_spec, *, settings=None):
        super().__init__()
        try:
            try:
                if settings is None:
                    sect_name_to_opt_dict = self._load_config_files()
                else:
                    sect_name_to_opt_dict = self._convert_settings_mapping(settings)
                self.update(
                    (config_sect.sect_name, config_sect)
                    for config_sect in self._make_config_sections(
                        sect_name_to_opt_dict,
                        parse_config_spec(config_spec),
                        self.BASIC_CONVERTERS))
            except ConfigError as exc:
                LOGGER.error('%s', ascii_str(exc))
                raise
            except Exception as exc:
                e = ConfigError('{0}: {1}'.format(type(exc).__qualname__, ascii_str(exc)))
                LOGGER.error('%s', e, exc_info=True)
                raise e from exc
        finally:
            e = None  # noqa   # To break a traceback-related reference cycle (if any).

    @classmethod
    def section(cls, config_spec, **kwargs):
        """
        A class method that creates a `Config` and picks its sole section.

        Raises:
            `ConfigError` -- also if there is no config section or more
            than one config section.

        >>> config_spec = '''
        ... [foo]
        ... abc = 42 :: int'''
        >>> Config.section(config_spec, settings={'foo.abc': '123'})
        ConfigSection('foo', {'abc': 123})
        >>> Config.section('', settings={})  # doctest: +ELLIPSIS
        Traceback (most recent call last):
          ...
        structbind.config.ConfigError: ...but no sections found
        """
        new = cls(config_spec, **kwargs)
        try:
            [section] = new.values()
        except ValueError:
            all_sections = sorted(new)
            sections_descr = (
                'the following sections found: {0}'.format(
                    ', '.join(map(repr, map(ascii_str, all_sections))))
                if all_sections else 'no sections found')
            raise ConfigError(
                'expected config spec that defines '
                'exactly one section but ' + sections_descr) from None
        return section


    #
    # non-public internals

    # internal sentinel object
    _NOT_CONVERTED = object()

    def _convert_settings_mapping(self, settings):
        sect_name_to_opt_dict = {}
        for key, value in settings.items():
            if not isinstance(key, str):
                LOGGER.warning('Ignoring non-`str` settings key %a', key)
                continue
            first, dotted, second = key.partition('.')
            if not dotted:
                # (not a `<section>.<option>` key, e.g., a Pyramid-specific one)
                continue
            if not isinstance(value, str):
                value = as_unicode(value)
            opt_name_to_value = sect_name_to_opt_dict.setdefault(first, {})
            opt_name_to_value[second] = value
        return sect_name_to_opt_dict

    def _make_config_sections(self, sect_name_to_opt_dict, conf_spec_data, converters):
        resultant_config_sections = []
        conversion_errors = []
        missing_opt_locations = []
        illegal_opt_locations = []

        for sect_name, opt_specs in conf_spec_data.items():
            input_opt_dict = sect_name_to_opt_dict.get(sect_name, {})
            resultant_config_sect = ConfigSection(sect_name)
            for opt_spec in opt_specs:
                opt_location = '{0}.{1}'.format(sect_name, opt_spec.name)
                opt_value = input_opt_dict.get(opt_spec.name)
                if opt_value is None:
                    if opt_spec.default is None:
                        missing_opt_locations.append(opt_location)
                        continue
                    opt_value = opt_spec.default
                try:
                    converter = converters[opt_spec.converter_spec]
                except KeyError:
                    conversion_errors.append(
                        'unknown config value converter '
                        '`{0}` (for option {1})'.format(opt_spec.converter_spec,
                                                        ascii_str(opt_location)))
                    continue
                opt_value = self._apply_value_converter(
                    opt_location,
                    opt_value,
                    converter,
                    conversion_errors)
                if opt_value is self._NOT_CONVERTED:
                    continue
                resultant_config_sect[opt_spec.name] = opt_value
            illegal_opt_locations.extend(
                '{0}.{1}'.format(sect_name, opt_name)
                for opt_name in sorted(
                    input_opt_dict.keys() - {opt_spec.name for opt_spec in opt_specs}))
            resultant_config_sections.append(resultant_config_sect)

        if conversion_errors or missing_opt_locations or illegal_opt_locations:
            error_msg = '; '.join(filter(None, [
                    ("missing required config options: {0}".format(
                        ", ".join(map(ascii_str, missing_opt_locations)))
                     if missing_opt_locations else None),
                    ("illegal config options: {0}".format(
                        ", ".join(map(ascii_str, illegal_opt_locations)))
                     if illegal_opt_locations else None)
                ] + conversion_errors))
            raise ConfigError(error_msg)

        return resultant_config_sections

    def _apply_value_converter(self, opt_location, opt_value, converter, conversion_errors):
        try:
            return converter(opt_value)
        except Exception as exc:
            conversion_errors.append(
                'error when applying config value converter {0!a} '
                'to option {1}={2!a} ({3}: {4})'.format(
                    getattr(converter, '__name__', converter),
                    ascii_str(opt_location),
                    opt_value,
                    type(exc).__qualname__,
                    ascii_str(exc)))
            # We use this special sentinel object because `None` is a valid value.
            return self._NOT_CONVERTED

    @classmethod
    def _load_config_files(cls):
        sect_name_to_opt_dict = {}
        config_parser = configparser.ConfigParser()
        config_files = []
        config_files.extend(cls._get_config_file_paths(ETC_DIR))
        config_files.extend(cls._get_config_file_paths(USER_DIR))
        if not config_files:
            LOGGER.warning('No config files to read')
            return sect_name_to_opt_dict
        ok_config_files = config_parser.read(config_files, encoding='utf-8')
        err_config_files = set(config_files).difference(ok_config_files)
        if err_config_files:
            LOGGER.warning(
                'Config files that could not be read '
                '(check their permission modes?): %s', ', '.join(
                    '"{0}"'.format(ascii_str(name))
                    for name in sorted(err_config_files, key=config_files.index)))
        if ok_config_files:
            LOGGER.info('Config files read properly: %s', ', '.join(
                '"{0}"'.format(ascii_str(name))
                for name in ok_config_files))
        for sect_name in config_parser.sections():
            sect_name_to_opt_dict[sect_name] = dict(config_parser.items(sect_name))
        return sect_name_to_opt_dict

    @classmethod
    def _get_config_file_paths(cls, path):
        config_files = []
        for directory, _, fnames in os.walk(path):
            for fname in fnames:
                if cls.DEFAULT_CONFIG_FILENAME_REGEX.search(fname):
                    config_files.append(osp.join(directory, fname))
        return sorted(config_files)



#
# The binding-related configuration

BINDING_CONFIG_SPEC = '''
    [binding]
    json_tag = {json_tag} :: str
    form_tag = {form_tag} :: str
    query_tag = {query_tag} :: str
    max_multipart_memory = {max_multipart_memory} :: int
'''.format(
    json_tag=TAG_JSON,
    form_tag=TAG_FORM,
    query_tag=TAG_QUERY,
    max_multipart_memory=DEFAULT_MAX_MULTIPART_MEMORY)


def make_binding_config(settings=None):
    """
    Get the binding-related config section (a :class:`ConfigSection`
    containing the `json_tag`, `form_tag`, `query_tag` and
    `max_multipart_memory` options).

    Args:
        `settings` (default: :obj:`None`):
            See the `settings` argument of :class:`Config`.

    >>> make_binding_config(settings={'binding.form_tag': 'post'})  # doctest: +NORMALIZE_WHITESPACE
    ConfigSection('binding', {'json_tag': 'json', 'form_tag': 'post',
                              'query_tag': 'query', 'max_multipart_memory': 33554432})
    """
    return Config.section(BINDING_CONFIG_SPEC, settings=settings)
