# Copyright (c) 2026 NASK. All rights reserved.

"""
Field specification classes -- to be used in the bodies of
:class:`structbind.records.Record` subclasses.

Each field instance describes the *native type* of a record field
(how a raw string value is coerced to it, what its *zero value* is)
as well as its *source tags* and *directive* (see :class:`Field`).
"""

import math
import re
import struct
from collections.abc import Mapping
from typing import (
    Any,
    Protocol,
    runtime_checkable,
)

from structbind.const import (
    DIRECTIVE_REQUIRED,
    DIRECTIVE_SKIP,
)
from structbind.encoding_helpers import ascii_str
from structbind.exceptions import FieldValueError
from structbind.keymap_helpers import normalize_key
from structbind.log_helpers import get_logger


LOGGER = get_logger(__name__)



#
# The custom decode capability

@runtime_checkable
class ParamUnmarshaler(Protocol):

    """
    The capability a type may provide to take over the decoding of a
    single raw parameter value.

    A type supports it when it has a callable `from_param` attribute
    (typically a class method) that takes one :class:`str` and returns
    a new instance of the type, raising an exception on failure:

    >>> import datetime
    >>> class Day(datetime.date):
    ...     @classmethod
    ...     def from_param(cls, param):
    ...         return cls.fromisoformat(param)
    ...
    >>> get_param_unmarshaler(Day)('2024-02-29') == datetime.date(2024, 2, 29)
    True
    >>> get_param_unmarshaler(datetime.date) is None
    True
    """

    @classmethod
    def from_param(cls, param: str) -> Any: ...


def get_param_unmarshaler(value_type):
    """
    Get the `from_param` callable of the given type (or :obj:`None` if
    the type does not support the :class:`ParamUnmarshaler` capability).
    """
    # (the protocol check only tells that the attribute exists)
    if isinstance(value_type, ParamUnmarshaler) and callable(value_type.from_param):
        return value_type.from_param
    return None



#
# The base field specification class

class Field(object):

    """
    The base class for all field specification classes.

    Constructors of all field classes accept the following keyword-only
    arguments:

    * `tags` (default: :obj:`None`):
          A dictionary that maps *source tag namespaces* (such as
          ``'form'``, ``'json'``, ``'query'``) to keys the field is to
          be looked up by (when the particular namespace is active);
          such a key is matched *literally* against the normalized keys
          of a keymap (so it should already be normalized: lower-case,
          without any ``_`` or ``-``); the special value ``'-'`` means
          that, when the particular namespace is active, the field is
          never bound.
    * `binding` (default: :obj:`None`):
          The field's *directive*, one of: ``'required'``, ``'-'``,
          :obj:`None`.  ``'required'`` means that the field must not be
          left with its zero value; ``'-'`` means that the field is
          never bound (whatever namespace is active).
    * `nullable` (default: :obj:`False`):
          If true, the field's zero value is :obj:`None` and its
          actual value is allocated on the first successful decode.
    * `custom_info` (default: an empty dictionary):
          A dictionary containing arbitrary data (accessible as the
          :attr:`custom_info` instance attribute).
    * **any** keyword arguments whose names are the names of class-level
      attributes (e.g., `value_type` or `bits`) -- then corresponding
      class-level attributes are overridden per instance.
    """

    #: A short label of the field's kind (used in error messages).
    kind = None

    #: The native type of the field's values.
    value_type = None

    #: Whether :meth:`coerce_param_value` can be used at all.
    supports_coercion = False

    def __init__(self, **kwargs):
        self._init_kwargs = kwargs
        self._set_public_attrs(**kwargs)

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__qualname__,
            ', '.join(
                '{}={!r}'.format(key, value)
                for key, value in sorted(self._init_kwargs.items())))


    #
    # overridable methods/attributes

    def coerce_param_value(self, value):
        """
        Convert a single raw parameter value to the field's native type.

        Args:
            `value`:
                A single parameter value (being *always* a :class:`str`
                instance).

        Returns:
            The converted value.

        Raises:
            :exc:`structbind.exceptions.FieldValueError` if the value
            cannot be converted.

        The default implementation just checks that the value is a
        :class:`str` and passes it unchanged.  This method can be
        extended (using :func:`super`) in subclasses.
        """
        assert isinstance(value, str)
        return value

    def make_zero_value(self):
        """
        Make a new zero value of the (non-nullable variant of the) field.

        The default implementation calls :attr:`value_type` with no
        arguments.
        """
        return self.value_type()

    def get_zero_value(self):
        """Get a new zero value of the field."""
        if self.nullable:
            return None
        return self.make_zero_value()

    def is_zero_value(self, value):
        """Check (by structural equality) whether `value` is the zero value."""
        zero = self.get_zero_value()
        if zero is None:
            return value is None
        return type(value) is type(zero) and value == zero

    @property
    def param_unmarshaler(self):
        """The `from_param` callable of :attr:`value_type` (or :obj:`None`)."""
        return get_param_unmarshaler(self.value_type)

    @property
    def is_record_field(self):
        return False

    def handle_binding_arg(self, binding):
        """
        The method called on instance initialization for the `binding`
        constructor argument.

        Raises:
            :exc:`~exceptions.ValueError` if `binding` is not one of:
            :obj:`None`, ``'required'``, ``'-'``.
        """
        if binding not in (None, DIRECTIVE_REQUIRED, DIRECTIVE_SKIP):
            raise ValueError(
                "{!a} is not one of: None, {!a}, {!a}"
                .format(binding, DIRECTIVE_REQUIRED, DIRECTIVE_SKIP))
        self.binding = binding

    def handle_tags_arg(self, tags):
        """
        The method called on instance initialization for the `tags`
        constructor argument.

        Raises:
            :exc:`~exceptions.TypeError` if `tags` is not a mapping of
            :class:`str` to :class:`str`.
        """
        if tags is None:
            tags = {}
        if not isinstance(tags, Mapping):
            raise TypeError('tags: {!a} is not a mapping'.format(tags))
        for namespace, key in tags.items():
            if not (isinstance(namespace, str) and isinstance(key, str)):
                raise TypeError(
                    'tags: {!a} -> {!a} is not a str -> str item'
                    .format(namespace, key))
            if key != DIRECTIVE_SKIP and key != normalize_key(key):
                LOGGER.warning(
                    'source tag %a (namespace %a) of %r is not normalized '
                    '(it can never match any key of a normalized keymap)',
                    key, namespace, self)
        self.tags = dict(tags)

    def verify_value_type(self):
        """
        The method called at the end of instance initialization to check
        that :attr:`value_type` is acceptable (by default: that it is a
        subclass of the class-level :attr:`value_type`).

        Raises:
            :exc:`~exceptions.TypeError` if it is not.
        """
        base = type(self).value_type
        if not (isinstance(self.value_type, type)
                and base is not None
                and issubclass(self.value_type, base)):
            raise TypeError(
                '{}: value_type={!a} is not a subclass of {!a}'
                .format(self.__class__.__qualname__, self.value_type, base))


    #
    # non-public internals

    def _set_public_attrs(self,
                          tags=None,
                          binding=None,
                          nullable=False,
                          custom_info=None,
                          **per_instance_attrs):
        self.handle_tags_arg(tags)
        self.handle_binding_arg(binding)
        self.nullable = bool(nullable)
        self.custom_info = (
            custom_info if custom_info is not None
            else {})
        self._set_per_instance_attrs(per_instance_attrs)
        self.verify_value_type()

    def _set_per_instance_attrs(self, per_instance_attrs):
        # per-instance customizations of class-level attributes
        cls = self.__class__
        for attr_name, obj in per_instance_attrs.items():
            if not hasattr(cls, attr_name):
                raise TypeError(
                    '{}.__init__() got an unexpected keyword argument {!a}'
                    .format(cls.__qualname__, attr_name))
            setattr(self, attr_name, obj)



#
# Concrete field specification classes: scalars

class _BitWidthMixin(Field):

    bits = 64
    legal_bits = (8, 16, 32, 64)

    @property
    def _bits_article(self):
        # "an 8-bit ...", "a 16-bit ..."
        return 'an' if str(self.bits).startswith('8') else 'a'

    def verify_value_type(self):
        super(_BitWidthMixin, self).verify_value_type()
        if self.bits not in self.legal_bits:
            raise ValueError(
                '{}: bits={!a} is not one of: {}'
                .format(self.__class__.__qualname__,
                        self.bits,
                        ', '.join(map(str, self.legal_bits))))


class IntField(_BitWidthMixin, Field):

    """
    For signed integer numbers of the given bit width (`bits`, one of:
    8, 16, 32, 64; default: 64).

    The value is parsed as a base-10 integer (an optional sign followed
    by ASCII digits); an empty string is coerced to 0.

    >>> IntField(bits=8).coerce_param_value('-128')
    -128
    >>> IntField().coerce_param_value('')
    0
    >>> IntField(bits=8).coerce_param_value('128')  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    structbind.exceptions.FieldValueError: ...
    """

    kind = 'integer'
    value_type = int
    supports_coercion = True

    _number_regex = re.compile(r'\A[+-]?[0-9]+\Z')

    @property
    def min_value(self):
        return -(1 << (self.bits - 1))

    @property
    def max_value(self):
        return (1 << (self.bits - 1)) - 1

    def coerce_param_value(self, value):
        value = super(IntField, self).coerce_param_value(value)
        if not value:
            return self.value_type(0)
        if self._number_regex.search(value) is None:
            raise FieldValueError(public_message=(
                '"{}" cannot be interpreted as '
                '{}'.format(ascii_str(value), self._get_number_descr())))
        number = int(value)
        if not self.min_value <= number <= self.max_value:
            raise FieldValueError(public_message=(
                '{} is out of the range of {}'
                .format(ascii_str(value), self._get_number_descr())))
        return self.value_type(number)

    def _get_number_descr(self):
        return '{} {}-bit integer number'.format(self._bits_article, self.bits)


class UintField(IntField):

    """
    For unsigned integer numbers of the given bit width (`bits`, one of:
    8, 16, 32, 64; default: 64).

    The value is parsed as a base-10 integer (ASCII digits only, no
    sign); an empty string is coerced to 0.

    >>> UintField(bits=8).coerce_param_value('255')
    255
    >>> UintField().coerce_param_value('-1')  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    structbind.exceptions.FieldValueError: ...
    """

    kind = 'unsigned integer'

    _number_regex = re.compile(r'\A[0-9]+\Z')

    @property
    def min_value(self):
        return 0

    @property
    def max_value(self):
        return (1 << self.bits) - 1

    def _get_number_descr(self):
        return '{} {}-bit unsigned integer number'.format(self._bits_article, self.bits)


class FloatField(_BitWidthMixin, Field):

    """
    For floating-point numbers of the given precision (`bits`, one of:
    32, 64; default: 64).

    The value is parsed as a decimal number (optionally in the exponent
    notation) or as one of the special values: ``inf``, ``infinity``,
    ``nan`` (case-insensitive, optionally signed); an empty string is
    coerced to 0.0.  Values that overflow the given precision are
    rejected; 32-bit values are rounded to the nearest single-precision
    number.

    >>> FloatField().coerce_param_value('1.5e3')
    1500.0
    >>> FloatField(bits=32).coerce_param_value('0.1')
    0.10000000149011612
    >>> FloatField().coerce_param_value('')
    0.0
    """

    kind = 'float'
    value_type = float
    supports_coercion = True
    legal_bits = (32, 64)

    _number_regex = re.compile(
        r'''
        \A
        [+-]?
        (?:
            (?:
                [0-9]+ (?: \. [0-9]* )?
            |
                \. [0-9]+
            )
            (?: [eE] [+-]? [0-9]+ )?
        |
            inf (?: inity )?
        |
            nan
        )
        \Z
        ''', re.VERBOSE | re.IGNORECASE)

    def coerce_param_value(self, value):
        value = super(FloatField, self).coerce_param_value(value)
        if not value:
            return self.value_type(0.0)
        if self._number_regex.search(value) is None:
            raise FieldValueError(public_message=(
                '"{}" cannot be interpreted as a '
                '{}-bit floating-point number'.format(ascii_str(value), self.bits)))
        number = float(value)
        if math.isinf(number) and 'inf' not in value.lower():
            raise self._out_of_range_error(value)
        if self.bits == 32:
            try:
                [number] = struct.unpack('<f', struct.pack('<f', number))
            except OverflowError:
                raise self._out_of_range_error(value) from None
        return self.value_type(number)

    def _out_of_range_error(self, value):
        return FieldValueError(public_message=(
            '{} is out of the range of a {}-bit '
            'floating-point number'.format(ascii_str(value), self.bits)))


class BoolField(Field):

    """
    For boolean flags.

    Only the following literals are accepted: ``1``, ``t``, ``T``,
    ``TRUE``, ``true``, ``True`` (=> :obj:`True`), ``0``, ``f``,
    ``F``, ``FALSE``, ``false``, ``False`` (=> :obj:`False`); an empty
    string is coerced to :obj:`False`.

    >>> BoolField().coerce_param_value('T')
    True
    >>> BoolField().coerce_param_value('')
    False
    >>> BoolField().coerce_param_value('yes')  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    structbind.exceptions.FieldValueError: ...
    """

    kind = 'boolean'
    value_type = bool
    supports_coercion = True

    LITERAL_TO_BOOL = {
        '1': True,
        't': True,
        'T': True,
        'TRUE': True,
        'true': True,
        'True': True,

        '0': False,
        'f': False,
        'F': False,
        'FALSE': False,
        'false': False,
        'False': False,
    }

    def coerce_param_value(self, value):
        value = super(BoolField, self).coerce_param_value(value)
        if not value:
            return False
        try:
            return self.LITERAL_TO_BOOL[value]
        except KeyError:
            raise FieldValueError(public_message=(
                '"{}" is not a valid boolean literal'.format(ascii_str(value)))) from None


class StrField(Field):

    """
    For arbitrary text data (assigned verbatim).
    """

    kind = 'string'
    value_type = str
    supports_coercion = True

    def coerce_param_value(self, value):
        value = super(StrField, self).coerce_param_value(value)
        if self.value_type is not str:
            value = self.value_type(value)
        return value



#
# Concrete field specification classes: non-scalars

class ListField(Field):

    """
    For lists of values -- each specified by the `item_field` (the
    first, obligatory, constructor argument, being an instance of a
    scalar field class or of :class:`ValueField`).

    All values present in a keymap for the resolved key are coerced,
    in their stored order, with the item field.

    >>> ListField(IntField(bits=8)).item_field
    IntField(bits=8)
    >>> ListField(ListField(StrField()))  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    TypeError: ...
    """

    kind = 'list'
    value_type = list

    def __init__(self, item_field, **kwargs):
        if not isinstance(item_field, Field):
            raise TypeError('{!a} is not a {} instance'.format(item_field, Field.__qualname__))
        if isinstance(item_field, (ListField, RecordField)):
            raise TypeError(
                'lists of {} are not supported'.format(item_field.kind))
        if item_field.tags or item_field.binding is not None:
            raise TypeError(
                'item field {!r} should specify neither '
                'tags nor directive'.format(item_field))
        self.item_field = item_field
        super(ListField, self).__init__(**kwargs)

    def __repr__(self):
        return '{}({!r}{})'.format(
            self.__class__.__qualname__,
            self.item_field,
            ''.join(
                ', {}={!r}'.format(key, value)
                for key, value in sorted(self._init_kwargs.items())))


class RecordField(Field):

    """
    For nested records -- of the record class being the first,
    obligatory, constructor argument (it becomes :attr:`value_type`).

    Unless the field is nullable or has a source tag in the active
    namespace, or its record class supports the *from_param* capability
    (see: :class:`ParamUnmarshaler`), the nested record is bound from
    the same keymap its parent record is being bound from.
    """

    kind = 'record'

    def __init__(self, record_class, **kwargs):
        if 'value_type' in kwargs:
            raise TypeError('{}.__init__() got an unexpected keyword argument {!a}'
                            .format(self.__class__.__qualname__, 'value_type'))
        self.value_type = record_class
        super(RecordField, self).__init__(**kwargs)

    def __repr__(self):
        return '{}({}{})'.format(
            self.__class__.__qualname__,
            getattr(self.value_type, '__qualname__', repr(self.value_type)),
            ''.join(
                ', {}={!r}'.format(key, value)
                for key, value in sorted(self._init_kwargs.items())))

    @property
    def is_record_field(self):
        return True

    @property
    def record_class(self):
        return self.value_type

    def verify_value_type(self):
        # (checking whether it is really a record class is
        # postponed until the record is to be bound recursively)
        if not isinstance(self.value_type, type):
            raise TypeError('{!a} is not a class'.format(self.value_type))


class ValueField(Field):

    """
    For values of any custom type (the first, obligatory, constructor
    argument, which becomes :attr:`value_type`) that supports the
    *from_param* capability (see: :class:`ParamUnmarshaler`).

    The zero value of such a field is always :obj:`None`.  If a value is
    present for a field whose type does not support the capability,
    :exc:`~structbind.exceptions.UnsupportedValueError` is raised by
    the binding machinery.
    """

    kind = 'custom'

    def __init__(self, value_type, **kwargs):
        if 'value_type' in kwargs:
            raise TypeError('{}.__init__() got an unexpected keyword argument {!a}'
                            .format(self.__class__.__qualname__, 'value_type'))
        self.value_type = value_type
        super(ValueField, self).__init__(**kwargs)

    def __repr__(self):
        return '{}({}{})'.format(
            self.__class__.__qualname__,
            getattr(self.value_type, '__qualname__', repr(self.value_type)),
            ''.join(
                ', {}={!r}'.format(key, value)
                for key, value in sorted(self._init_kwargs.items())))

    def get_zero_value(self):
        return None

    def verify_value_type(self):
        if not isinstance(self.value_type, type):
            raise TypeError('{!a} is not a class'.format(self.value_type))
