# Copyright (c) 2026 NASK. All rights reserved.

"""
The binding machinery: populating records (see:
:mod:`structbind.records`) from *keymaps*, i.e., mappings of string
keys to sequences of raw string values.

The main entry point is :func:`bind`:

>>> from structbind.fields import IntField, ListField, RecordField, StrField
>>> from structbind.records import Record
>>> class Address(Record):
...     street = StrField()
...
>>> class Person(Record):
...     user_name = StrField(binding='required')
...     age = IntField(bits=8, tags={'form': 'years'})
...     tags = ListField(StrField())
...     address = RecordField(Address)
...
>>> bind(Person, {'User-Name': ['alice'], 'years': ['33'],
...               'tags': ['a', 'b'], 'street': ['Main St']}, 'form')
Person(user_name='alice', age=33, tags=['a', 'b'], address=Address(street='Main St'))
"""

from collections import namedtuple

from structbind.const import (
    DIRECTIVE_REQUIRED,
    DIRECTIVE_SKIP,
)
from structbind.exceptions import (
    BindingError,
    ConversionError,
    CustomDecodeError,
    NotARecordError,
    RequiredFieldError,
    UnsupportedValueError,
)
from structbind.fields import ListField
from structbind.keymap_helpers import (
    normalize_key,
    normalize_keymap,
)
from structbind.log_helpers import get_logger
from structbind.records import Record


__all__ = [
    'ResolvedName',
    'bind',
    'bind_to',
    'check_required',
    'coerce_value',
    'is_settable',
    'normalize_key',
    'normalize_keymap',
    'resolve_field_name',
    'try_custom_decode',
]


LOGGER = get_logger(__name__)



#
# Field name resolution

ResolvedName = namedtuple('ResolvedName', ('key', 'skip', 'recursive'))


def is_settable(name):
    """
    Check whether a record field of the given name can be bound at all
    (fields whose names start with `_` are never bound).

    >>> is_settable('username'), is_settable('_secret')
    (True, False)
    """
    return not name.startswith('_')


def resolve_field_name(name, field, tag):
    """
    Determine how the given record field is to be looked up.

    Args:
        `name`:
            The field name (as declared in the record class).
        `field`:
            The field specification (a
            :class:`structbind.fields.Field` instance).
        `tag`:
            The active source tag namespace (e.g., ``'form'``), or
            :obj:`None`.

    Returns:
        A :class:`ResolvedName` named tuple: `key` -- the lookup key
        (the source tag value in the `tag` namespace, used literally,
        or -- if there is none -- the normalized field name); `skip` --
        whether the field must not be bound at all; `recursive` --
        whether the field is a nested record to be bound from the whole
        keymap (instead of being looked up by `key`).

    >>> from structbind.fields import StrField
    >>> resolve_field_name('user_name', StrField(), 'form')
    ResolvedName(key='username', skip=False, recursive=False)
    >>> resolve_field_name('login', StrField(tags={'form': 'user'}), 'form')
    ResolvedName(key='user', skip=False, recursive=False)
    >>> resolve_field_name('login', StrField(tags={'form': 'user'}), 'json')
    ResolvedName(key='login', skip=False, recursive=False)
    >>> resolve_field_name('login', StrField(tags={'json': '-'}), 'json').skip
    True
    >>> resolve_field_name('login', StrField(binding='-'), 'json').skip
    True
    """
    if field.binding == DIRECTIVE_SKIP:
        return ResolvedName(None, True, False)
    tag_value = field.tags.get(tag) if tag is not None else None
    if tag_value == DIRECTIVE_SKIP:
        return ResolvedName(None, True, False)
    if tag_value:
        return ResolvedName(tag_value, False, False)
    recursive = (field.is_record_field
                 and not field.nullable
                 and field.param_unmarshaler is None)
    return ResolvedName(normalize_key(name), False, recursive)



#
# Value coercion

def try_custom_decode(field, key, value):
    """
    Try to decode the raw `value` with the *from_param* capability of
    the field's value type (see: :class:`structbind.fields.ParamUnmarshaler`).

    Returns:
        A `(<handled?>, <decoded value or None>)` pair; `handled` is
        false if the field's value type does not support the
        capability.

    Raises:
        :exc:`~structbind.exceptions.CustomDecodeError` wrapping any
        exception raised by the decoder (except that instances of
        :exc:`~structbind.exceptions.BindingError` are propagated
        unchanged).
    """
    from_param = field.param_unmarshaler
    if from_param is None:
        return False, None
    try:
        return True, from_param(value)
    except BindingError:
        raise
    except Exception as exc:
        raise CustomDecodeError(key, value, exc) from exc


def coerce_value(field, key, value):
    """
    Convert a single raw `value` to the native type of the given
    (non-list) `field`.

    The *from_param* capability of the field's value type takes
    precedence; if it is not supported, the field's own
    :meth:`~structbind.fields.Field.coerce_param_value` is used.

    Raises:
        :exc:`~structbind.exceptions.CustomDecodeError`,
        :exc:`~structbind.exceptions.ConversionError` (the field cannot
        parse the value) or
        :exc:`~structbind.exceptions.UnsupportedValueError` (the field's
        type cannot be coerced from a string at all).

    >>> from structbind.fields import UintField
    >>> coerce_value(UintField(bits=16), 'port', '8080')
    8080
    >>> coerce_value(UintField(bits=16), 'port', '-1')  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    structbind.exceptions.ConversionError: ...
    """
    handled, result = try_custom_decode(field, key, value)
    if handled:
        return result
    if not field.supports_coercion:
        raise UnsupportedValueError(key, field.kind)
    try:
        return field.coerce_param_value(value)
    except ValueError as exc:
        raise ConversionError(
            key, value, field.kind,
            bits=getattr(field, 'bits', None),
            exc=exc) from exc



#
# Required fields validation

def check_required(instance, name, field, key):
    """
    Raise :exc:`~structbind.exceptions.RequiredFieldError` (with the
    given lookup `key`) if `field` is marked as ``required`` and the
    `name` attribute of `instance` has the field's zero value.
    """
    if field.binding != DIRECTIVE_REQUIRED:
        return
    if field.is_zero_value(getattr(instance, name)):
        raise RequiredFieldError(key)



#
# The actual binding

def bind_to(instance, keymap, tag, *, normalized=False):
    """
    Populate the fields of the given record `instance` from `keymap`.

    Args:
        `instance`:
            A :class:`structbind.records.Record` instance.
        `keymap`:
            A keymap (see:
            :func:`structbind.keymap_helpers.iter_keymap_items`).
        `tag`:
            The active source tag namespace (e.g., ``'form'``), or
            :obj:`None`.

    Kwargs:
        `normalized` (default: :obj:`False`):
            If true, `keymap` is assumed to be a :class:`dict` whose
            keys are already normalized (see:
            :func:`structbind.keymap_helpers.normalize_keymap`).

    Raises:
        :exc:`~structbind.exceptions.NotARecordError` if `instance`
        (or a nested record to be bound recursively) is not a record --
        raised before `keymap` is inspected; other
        :exc:`~structbind.exceptions.BindingError` subclasses for the
        first field (in the declaration order) that could not be bound.
        Note that, on error, `instance` may be left partially
        populated.
    """
    if not isinstance(instance, Record):
        raise NotARecordError(instance)
    if not normalized:
        keymap = normalize_keymap(keymap)
    for name, field in instance.field_specs:
        if not is_settable(name):
            continue
        resolved = resolve_field_name(name, field, tag)
        if resolved.skip:
            continue
        if resolved.recursive:
            bind_to(getattr(instance, name), keymap, tag, normalized=True)
            continue
        values = keymap.get(resolved.key)
        if values:
            _bind_values(instance, name, field, resolved.key, values)
        check_required(instance, name, field, resolved.key)


def bind(record_type, keymap, tag):
    """
    Make a new instance of the given record class, populated (see:
    :func:`bind_to`) from `keymap`.

    Args:
        `record_type`:
            A :class:`structbind.records.Record` subclass (or an
            instance of such a subclass -- then its class is used).
        `keymap`:
            A keymap.
        `tag`:
            The active source tag namespace, or :obj:`None`.

    Returns:
        The new record instance.

    Raises:
        :exc:`~structbind.exceptions.NotARecordError` if `record_type`
        is not a record class (the keymap is not inspected then);
        :exc:`~structbind.exceptions.BindingError` subclasses (see:
        :func:`bind_to`).
    """
    if isinstance(record_type, Record):
        record_type = type(record_type)
    if not (isinstance(record_type, type) and issubclass(record_type, Record)):
        raise NotARecordError(record_type)
    instance = record_type()
    LOGGER.debug('binding %s (source tag namespace: %a)',
                 record_type.__qualname__, tag)
    bind_to(instance, keymap, tag)
    return instance


def _bind_values(instance, name, field, key, values):
    handled, result = try_custom_decode(field, key, values[0])
    if handled:
        setattr(instance, name, result)
    elif isinstance(field, ListField):
        items = [coerce_value(field.item_field, key, val) for val in values]
        setattr(instance, name, field.value_type(items))
    else:
        setattr(instance, name, coerce_value(field, key, values[0]))
