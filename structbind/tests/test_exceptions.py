# Copyright (c) 2026 NASK. All rights reserved.

import unittest

from unittest_expander import (
    expand,
    foreach,
    param,
)

from structbind.exceptions import (
    BindingError,
    ConversionError,
    CustomDecodeError,
    FieldValueError,
    KeymapSourceError,
    NotARecordError,
    RequiredFieldError,
    UnsupportedValueError,
)


@expand
class TestExceptionClasses(unittest.TestCase):

    @foreach(
        param(exc=NotARecordError(42)),
        param(exc=RequiredFieldError('k')),
        param(exc=UnsupportedValueError('k', 'record')),
        param(exc=ConversionError('k', 'v', 'integer')),
        param(exc=CustomDecodeError('k', 'v', ValueError())),
        param(exc=KeymapSourceError()),
    )
    def test_all_are_binding_errors(self, exc):
        self.assertIsInstance(exc, BindingError)
        self.assertIsInstance(exc, Exception)
        self.assertNotIsInstance(exc, ValueError)

    def test_field_value_error_is_value_error(self):
        self.assertIsInstance(FieldValueError(), ValueError)

    @foreach(
        param(
            exc=RequiredFieldError('user'),
            expected_message='Required but missing or empty parameter: "user".',
        ),
        param(
            exc=UnsupportedValueError('addr', 'record'),
            expected_message='Parameter "addr" cannot be bound (unsupported field type: record).',
        ),
        param(
            exc=ConversionError('age', 'x', 'integer', bits=8,
                                exc=FieldValueError(public_message='Bad number.')),
            expected_message='Problem with value "x" of parameter "age" (Bad number).',
        ),
        param(
            exc=ConversionError('age', 'x', 'integer', exc=ValueError('secret detail')),
            expected_message='Problem with value "x" of parameter "age".',
        ),
        param(
            exc=CustomDecodeError('since', 'żółw', ValueError('secret detail')),
            expected_message='Problem with value "\\u017c\\xf3\\u0142w" of parameter "since".',
        ),
        param(
            exc=RequiredFieldError('user', public_message='Custom.'),
            expected_message='Custom.',
        ),
    )
    def test_public_message(self, exc, expected_message):
        self.assertEqual(exc.public_message, expected_message)
        self.assertEqual(str(exc), expected_message)

    def test_attributes(self):
        err = ValueError()
        exc = ConversionError('age', 'x', 'float', bits=32, exc=err)
        self.assertEqual((exc.key, exc.value, exc.kind, exc.bits), ('age', 'x', 'float', 32))
        self.assertIs(exc.exc, err)
        self.assertEqual(exc.args, ('age', 'x', 'float'))
        exc = UnsupportedValueError('k', 'custom')
        self.assertEqual((exc.key, exc.kind), ('k', 'custom'))
        exc = NotARecordError(int)
        self.assertIs(exc.target, int)
        self.assertEqual(str(exc), 'Internal error.')

    def test_illegal_kwargs(self):
        with self.assertRaises(TypeError):
            BindingError(foo='bar')

    def test_repr(self):
        self.assertEqual(repr(RequiredFieldError('user')),
                         "<RequiredFieldError: args=('user',); "
                         "public_message='Required but missing or empty parameter: \"user\".'>")
