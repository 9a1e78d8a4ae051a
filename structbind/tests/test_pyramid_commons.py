# Copyright (c) 2026 NASK. All rights reserved.

import json
import unittest

import pyramid.testing
from pyramid.interfaces import IRequestExtensions
from pyramid.request import (
    Request,
    apply_request_extensions,
)
from unittest_expander import (
    expand,
    foreach,
    param,
)

from structbind.config import make_binding_config
from structbind.exceptions import (
    ConversionError,
    KeymapSourceError,
)
from structbind.fields import (
    BoolField,
    FloatField,
    IntField,
    ListField,
    StrField,
)
from structbind.pyramid_commons import (
    bind_request,
    bind_request_form,
    bind_request_json,
    bind_request_query,
    form_keymap,
    json_keymap,
    keymap_from_request,
    query_keymap,
)
from structbind.records import Record
from structbind.tests._generic_helpers import TestCaseMixin


class Person(Record):
    username = StrField(binding='required', tags={'json': 'login'})
    age = IntField(bits=8)
    tags = ListField(StrField())
    admin = BoolField()
    note = StrField(tags={'form': 'remark'})


def json_request(obj, path='/', content_type='application/json'):
    return Request.blank(
        path,
        method='POST',
        content_type=content_type,
        body=json.dumps(obj).encode('utf-8'))


class RequestHelperMixin(object):

    def prepare_pyramid_unittesting(self, settings=None):
        """
        Set up the `pyramid.testing` stuff and register a cleanup callback.

        Returns:
            A `pyramid.config.Configurator` instance.
        """
        assert isinstance(self, unittest.TestCase), f'test helper expectation failed by {self=!a}'
        pyramid_configurator = pyramid.testing.setUp(settings=settings)
        self.addCleanup(pyramid.testing.tearDown)
        return pyramid_configurator



#
# Tests of keymap extraction

@expand
class Test__keymaps(RequestHelperMixin, TestCaseMixin, unittest.TestCase):

    def setUp(self):
        self.prepare_pyramid_unittesting()

    def test_query_keymap(self):
        request = Request.blank('/?a=1&b=2&a=3&c=')
        self.assertEqualIncludingTypes(query_keymap(request), {
            'a': ['1', '3'],
            'b': ['2'],
            'c': [''],
        })

    def test_form_keymap_urlencoded(self):
        request = Request.blank('/?a=q1&z=q2', POST={'a': 'b1', 'y': 'b2'})
        self.assertTrue(request.content_type.startswith('application/x-www-form-urlencoded'))
        self.assertEqualIncludingTypes(form_keymap(request), {
            'a': ['b1', 'q1'],
            'y': ['b2'],
            'z': ['q2'],
        })

    def test_form_keymap_multipart_skips_uploads(self):
        request = Request.blank('/', POST={
            'username': 'bob',
            'avatar': ('avatar.png', b'\x89PNG...'),
        })
        self.assertTrue(request.content_type.startswith('multipart/form-data'))
        self.assertEqualIncludingTypes(form_keymap(request), {'username': ['bob']})

    def test_form_keymap_multipart_too_large(self):
        request = Request.blank('/', POST={
            'username': 'bob',
            'avatar': ('avatar.png', b'x' * 100),
        })
        config = make_binding_config(settings={'binding.max_multipart_memory': '50'})
        with self.assertRaises(KeymapSourceError):
            form_keymap(request, config)

    def _make_multipart_request_without_content_length(self, upload_size):
        request = Request.blank('/', POST={
            'username': 'bob',
            'avatar': ('avatar.png', b'x' * upload_size),
        })
        del request.environ['CONTENT_LENGTH']
        request.is_body_readable = True   # (as for a chunked body)
        assert request.content_length is None
        return request

    def test_form_keymap_multipart_too_large_without_content_length(self):
        request = self._make_multipart_request_without_content_length(100)
        config = make_binding_config(settings={'binding.max_multipart_memory': '50'})
        with self.assertRaises(KeymapSourceError):
            form_keymap(request, config)

    def test_form_keymap_multipart_without_content_length(self):
        request = self._make_multipart_request_without_content_length(10)
        self.assertEqualIncludingTypes(form_keymap(request), {'username': ['bob']})
        self.assertIsNotNone(request.content_length)

    def test_json_keymap(self):
        request = json_request({
            'login': 'bob',
            'age': 33,
            'ratio': 0.5,
            'admin': True,
            'guest': False,
            'note': None,
            'tags': ['a', 'b', 1],
        })
        self.assertEqualIncludingTypes(json_keymap(request), {
            'login': ['bob'],
            'age': ['33'],
            'ratio': ['0.5'],
            'admin': ['true'],
            'guest': ['false'],
            'note': [''],
            'tags': ['a', 'b', '1'],
        })

    @foreach(
        param(body=b'{"a": ').label('malformed JSON'),
        param(body=b'\xff\xfe').label('not UTF-8'),
        param(body=b'["a", "b"]').label('not an object'),
        param(body=b'"abc"').label('a string'),
        param(body=b'{"a": {"b": "c"}}').label('nested object'),
        param(body=b'{"a": [["b"]]}').label('nested array'),
        param(body=b'{"a": [{"b": "c"}]}').label('object in array'),
    )
    def test_json_keymap_errors(self, body):
        request = Request.blank('/', method='POST', content_type='application/json', body=body)
        with self.assertRaises(KeymapSourceError):
            json_keymap(request)

    @foreach(
        param(
            content_type='application/json',
            expected_keymap={'login': ['bob']},
            expected_tag='json',
        ),
        param(
            content_type='application/json; charset=utf-8',
            expected_keymap={'login': ['bob']},
            expected_tag='json',
        ),
    )
    def test_keymap_from_request_json(self, content_type, expected_keymap, expected_tag):
        request = json_request({'login': 'bob'}, content_type=content_type)
        keymap, tag = keymap_from_request(request)
        self.assertEqual(keymap, expected_keymap)
        self.assertEqual(tag, expected_tag)

    def test_keymap_from_request_form(self):
        request = Request.blank('/?x=1', POST={'login': 'bob'})
        keymap, tag = keymap_from_request(request)
        self.assertEqual(keymap, {'login': ['bob'], 'x': ['1']})
        self.assertEqual(tag, 'form')

    def test_keymap_from_request_custom_tags(self):
        config = make_binding_config(settings={'binding.form_tag': 'post'})
        request = Request.blank('/', POST={'login': 'bob'})
        keymap, tag = keymap_from_request(request, config)
        self.assertEqual(tag, 'post')

    @foreach(
        param(content_type='text/plain'),
        param(content_type='application/xml'),
        param(content_type=''),
    )
    def test_keymap_from_request_unsupported(self, content_type):
        request = Request.blank('/', method='POST', body=b'abc')
        request.content_type = content_type
        with self.assertRaises(KeymapSourceError) as cm:
            keymap_from_request(request)
        self.assertIn('Unsupported media type', cm.exception.public_message)



#
# Tests of binding requests

class Test__bind_request(RequestHelperMixin, unittest.TestCase):

    def setUp(self):
        self.prepare_pyramid_unittesting()

    def test_json(self):
        request = json_request({
            'login': 'bob',
            'age': 33,
            'tags': ['a', 'b'],
            'admin': True,
            'remark': 'not used in json',
        })
        self.assertEqual(bind_request(request, Person), Person(
            username='bob',
            age=33,
            tags=['a', 'b'],
            admin=True))
        self.assertEqual(bind_request_json(request, Person), bind_request(request, Person))

    def test_form(self):
        request = Request.blank('/?tags=c', POST=[
            ('username', 'bob'),
            ('tags', 'a'),
            ('tags', 'b'),
            ('remark', 'hello'),
            ('Admin', 'T'),
        ])
        expected = Person(
            username='bob',
            tags=['a', 'b', 'c'],
            admin=True,
            note='hello')
        self.assertEqual(bind_request(request, Person), expected)
        self.assertEqual(bind_request_form(request, Person), expected)

    def test_query(self):
        request = Request.blank('/?user_name=bob&age=7&note=n&remark=r')
        self.assertEqual(bind_request_query(request, Person),
                         Person(username='bob', age=7, note='n'))

    def test_query_with_custom_tag(self):
        config = make_binding_config(settings={'binding.query_tag': 'form'})
        request = Request.blank('/?username=bob&note=n&remark=r')
        self.assertEqual(bind_request_query(request, Person, config),
                         Person(username='bob', note='r'))

    def test_binding_error_propagates(self):
        request = Request.blank('/', POST={'username': 'bob', 'age': '1000'})
        with self.assertRaises(ConversionError) as cm:
            bind_request(request, Person)
        self.assertEqual(cm.exception.key, 'age')



#
# Tests of the Pyramid configuration hook

class Test__includeme(RequestHelperMixin, unittest.TestCase):

    class Measurement(Record):
        value = FloatField(tags={'f': 'v'})

    def _make_request(self, pyramid_configurator, *args, **kwargs):
        request = Request.blank(*args, **kwargs)
        request.registry = pyramid_configurator.registry
        apply_request_extensions(request)
        return request

    def test_bind_params(self):
        pyramid_configurator = self.prepare_pyramid_unittesting(settings={
            'binding.form_tag': 'f',
        })
        pyramid_configurator.include('structbind.pyramid_commons')
        self.assertIsNotNone(pyramid_configurator.registry.queryUtility(IRequestExtensions))
        self.assertEqual(pyramid_configurator.registry.binding_config['form_tag'], 'f')
        request = self._make_request(pyramid_configurator, '/', POST={'v': '2.5', 'value': '1'})
        self.assertEqual(request.bind_params(self.Measurement), self.Measurement(value=2.5))

    def test_default_settings(self):
        pyramid_configurator = self.prepare_pyramid_unittesting()
        pyramid_configurator.include('structbind.pyramid_commons')
        request = self._make_request(pyramid_configurator, '/', POST={'v': '2.5', 'value': '1'})
        self.assertEqual(request.bind_params(self.Measurement), self.Measurement(value=1.0))
