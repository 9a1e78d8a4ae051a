# Copyright (c) 2026 NASK. All rights reserved.

import os.path
import tempfile
import unittest
from unittest.mock import patch

from unittest_expander import (
    expand,
    foreach,
    param,
)

from structbind.config import (
    BINDING_CONFIG_SPEC,
    Config,
    ConfigError,
    ConfigSection,
    NoConfigOptionError,
    make_binding_config,
    parse_config_spec,
)
from structbind.tests._generic_helpers import TestCaseMixin


SOME_CONFIG_SPEC = '''
    [some_sect]
    some_int = 42 :: int
    some_flag = yes :: bool
    some_list = a, b :: list_of_str
    some_str = foo
    required_opt :: str

    [another_sect]
    ; some comment
    # another comment
    another_int = 1 :: int
'''


@expand
class TestConfig(TestCaseMixin, unittest.TestCase):

    def test_from_settings(self):
        config = Config(SOME_CONFIG_SPEC, settings={
            'some_sect.some_int': '7',
            'some_sect.required_opt': 'bar',
            'another_sect.another_int': '2',
            'pyramid.reload_templates': True,
            'debug_all': False,
        })
        self.assertEqual(sorted(config), ['another_sect', 'some_sect'])
        self.assertEqualIncludingTypes(config['some_sect'], ConfigSection('some_sect', {
            'some_int': 7,
            'some_flag': True,
            'some_list': ['a', 'b'],
            'some_str': 'foo',
            'required_opt': 'bar',
        }))
        self.assertEqualIncludingTypes(config['another_sect'], ConfigSection('another_sect', {
            'another_int': 2,
        }))
        self.assertEqual(config['some_sect'].sect_name, 'some_sect')

    @foreach(
        param(
            settings={'some_sect.some_int': '7'},
            expected_msg_part='missing required config options: some_sect.required_opt',
        ).label('missing required option'),

        param(
            settings={'some_sect.required_opt': 'x', 'some_sect.typo_opt': '1'},
            expected_msg_part='illegal config options: some_sect.typo_opt',
        ).label('illegal option'),

        param(
            settings={'some_sect.required_opt': 'x', 'some_sect.some_int': 'abc'},
            expected_msg_part='some_sect.some_int',
        ).label('conversion error'),

        param(
            settings={'some_sect.required_opt': 'x', 'some_sect.some_flag': 'maybe'},
            expected_msg_part='some_sect.some_flag',
        ).label('bool conversion error'),
    )
    def test_errors(self, settings, expected_msg_part):
        with patch('structbind.config.LOGGER'), \
             self.assertRaises(ConfigError) as cm:
            Config(SOME_CONFIG_SPEC, settings=settings)
        self.assertIn(expected_msg_part, str(cm.exception))

    def test_unknown_converter(self):
        with patch('structbind.config.LOGGER'), \
             self.assertRaisesRegex(ConfigError, 'unknown config value converter'):
            Config('[s]\nopt = 1 :: no_such_conv', settings={})

    def test_available_converters(self):
        self.assertEqual(sorted(Config.BASIC_CONVERTERS),
                         ['bool', 'int', 'list_of_str', 'str'])
        with self.assertRaises(TypeError):
            Config('[s]\nopt = 1 :: str', settings={}, custom_converters={})

    def test_malformed_spec(self):
        with patch('structbind.config.LOGGER'), \
             self.assertRaises(ConfigError):
            Config('opt_before_any_section = 1', settings={})

    def test_section(self):
        section = Config.section('[foo]\nabc = 42 :: int', settings={'foo.abc': '123'})
        self.assertEqual(section, ConfigSection('foo', {'abc': 123}))
        self.assertEqual(repr(section), "ConfigSection('foo', {'abc': 123})")

    def test_section_requires_exactly_one(self):
        with self.assertRaises(ConfigError):
            Config.section(SOME_CONFIG_SPEC, settings={'some_sect.required_opt': 'x'})

    def test_missing_option_lookup(self):
        section = ConfigSection('foo', {'abc': 1})
        with self.assertRaises(NoConfigOptionError) as cm:
            section['xyz']
        self.assertIsInstance(cm.exception, KeyError)
        self.assertEqual(str(cm.exception),
                         '[configuration-related error] no config option `xyz` in section `foo`')
        self.assertEqual(section.get('xyz', 'default'), 'default')

    def test_from_files(self):
        with tempfile.TemporaryDirectory() as etc_dir, \
             tempfile.TemporaryDirectory() as user_dir:
            with open(os.path.join(etc_dir, '01_binding.conf'), 'w') as f:
                f.write('[binding]\njson_tag = j\nform_tag = f\n')
            with open(os.path.join(user_dir, '02_binding.conf'), 'w') as f:
                f.write('[binding]\nform_tag = user_f\n')
            with open(os.path.join(user_dir, 'not_a_config.conf'), 'w') as f:
                f.write('[binding]\nquery_tag = ignored\n')
            with patch('structbind.config.ETC_DIR', etc_dir), \
                 patch('structbind.config.USER_DIR', user_dir), \
                 patch('structbind.config.LOGGER'):
                section = make_binding_config()
        self.assertEqual(section, {
            'json_tag': 'j',
            'form_tag': 'user_f',
            'query_tag': 'query',
            'max_multipart_memory': 33554432,
        })

    def test_no_files(self):
        with tempfile.TemporaryDirectory() as empty_dir, \
             patch('structbind.config.ETC_DIR', empty_dir), \
             patch('structbind.config.USER_DIR', empty_dir), \
             patch('structbind.config.LOGGER') as LOGGER_mock:
            section = make_binding_config()
        self.assertEqual(section['json_tag'], 'json')
        self.assertEqual(LOGGER_mock.warning.call_count, 1)


class Test__make_binding_config(TestCaseMixin, unittest.TestCase):

    def test_defaults(self):
        section = make_binding_config(settings={})
        self.assertEqualIncludingTypes(section, ConfigSection('binding', {
            'json_tag': 'json',
            'form_tag': 'form',
            'query_tag': 'query',
            'max_multipart_memory': 33554432,
        }))

    def test_from_settings(self):
        section = make_binding_config(settings={
            'binding.query_tag': 'form',
            'binding.max_multipart_memory': '1024',
        })
        self.assertEqual(section['query_tag'], 'form')
        self.assertEqual(section['max_multipart_memory'], 1024)

    def test_spec(self):
        self.assertEqual(list(parse_config_spec(BINDING_CONFIG_SPEC)), ['binding'])
