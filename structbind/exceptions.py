# Copyright (c) 2026 NASK. All rights reserved.

from structbind.encoding_helpers import ascii_str, as_unicode


#
# Generic mix-ins
#

class _ErrorWithPublicMessageMixin(object):

    r"""
    A mix-in class that provides the :attr:`public_message` property.

    The value of this property is a :class:`str`.  It is taken either
    from the `public_message` constructor keyword argument or -- if the
    argument was not specified -- from the value of the
    :attr:`default_public_message` attribute.

    The public message should be a complete sentence (or several
    sentences): first word capitalized (if not being an identifier
    that begins with a lower case letter) + the period at the end.

    .. warning::

       Generally, the message is intended to be presented to clients.
       **Ensure that you do not disclose any sensitive details in the
       message.**

    The :class:`str` conversion provided by the class uses the value of
    :attr:`public_message`:

    >>> class SomeError(_ErrorWithPublicMessageMixin, Exception):
    ...     pass
    ...
    >>> str(SomeError('a', 'b'))  # using attribute default_public_message
    'Internal error.'
    >>> str(SomeError('a', 'b', public_message='Spąm.'))
    'Spąm.'

    The :func:`repr` conversion results in a programmer-readable
    representation (containing the class name, :func:`repr`-formatted
    constructor arguments and the :attr:`public_message` property):

    >>> SomeError('a', 'b')   # using class's default_public_message
    <SomeError: args=('a', 'b'); public_message='Internal error.'>
    >>> SomeError('a', 'b', public_message='Spam.')
    <SomeError: args=('a', 'b'); public_message='Spam.'>
    """

    #: (overridable in subclasses)
    default_public_message = 'Internal error.'

    def __init__(self, *args, **kwargs):
        try:
            public_message = kwargs.pop('public_message')
        except KeyError:
            pass
        else:
            self._public_message = as_unicode(public_message)
        try:
            super(_ErrorWithPublicMessageMixin, self).__init__(*args, **kwargs)
        except TypeError:
            if kwargs:
                raise TypeError(
                    'illegal keyword arguments for {} constructor: {}'.format(
                        self.__class__.__name__,
                        ', '.join(sorted(map(repr, kwargs)))))
            else:
                raise

    @property
    def public_message(self):
        """The aforementioned property."""
        try:
            return self._public_message
        except AttributeError:
            # (in subclasses `default_public_message` can also be a @property)
            self._public_message = as_unicode(self.default_public_message)
            return self._public_message

    def __str__(self):
        return self.public_message

    def __repr__(self):
        return ('<{0.__class__.__name__}: args={0.args!r}; '
                'public_message={0.public_message!r}>'.format(self))


class _FieldRelatedErrorMixin(object):

    """
    Mix-in for exception classes related to a particular keymap key.

    The first constructor argument, `key`, is the *lookup key* the
    offending field was resolved to; it is exposed as the :attr:`key`
    attribute (for possible later inspection).
    """

    def __init__(self, key, *args, **kwargs):
        self.key = key
        super(_FieldRelatedErrorMixin, self).__init__(key, *args, **kwargs)


#
# Actual exception classes
#

class FieldValueError(_ErrorWithPublicMessageMixin, ValueError):

    """
    Intended to be raised in :meth:`~.Field.coerce_param_value` methods
    of :class:`structbind.fields.Field` subclasses.

    It is recommended (though not required) to instantiate the exception
    specifying the `public_message` keyword argument.

    Typically, this exception is caught by the binding machinery and
    then :exc:`ConversionError` (with :attr:`public_message` including
    :attr:`public_message` of this exception) is raised.
    """


class BindingError(_ErrorWithPublicMessageMixin, Exception):

    """
    The base class for exceptions raised by the binding machinery
    (see: :mod:`structbind.binding`).

    >>> exc = BindingError('a', 'b')
    >>> exc.args
    ('a', 'b')
    >>> exc.public_message   # using attribute default_public_message
    'Invalid parameter(s).'
    >>> str(exc)
    'Invalid parameter(s).'

    >>> exc = BindingError('a', 'b', public_message='Spam.')
    >>> exc.public_message   # the message passed into the constructor
    'Spam.'
    """

    default_public_message = 'Invalid parameter(s).'


class NotARecordError(BindingError):

    """
    Raised when the binding target (or a field marked for recursive
    binding) is not a :class:`structbind.records.Record`.

    The offending object is exposed as the :attr:`target` attribute.

    .. note::

       It is a programming error rather than a client error, so
       :attr:`default_public_message` is the safe ``"Internal error."``.

    >>> exc = NotARecordError(42)
    >>> exc.target
    42
    >>> str(exc)
    'Internal error.'
    """

    default_public_message = 'Internal error.'

    def __init__(self, target, *args, **kwargs):
        self.target = target
        super(NotARecordError, self).__init__(target, *args, **kwargs)


class RequiredFieldError(_FieldRelatedErrorMixin, BindingError):

    """
    Raised when a field marked as ``required`` has its zero value after
    the binding attempt (also when the key is absent from the keymap).

    >>> exc = RequiredFieldError('username')
    >>> exc.key
    'username'
    >>> exc.public_message
    'Required but missing or empty parameter: "username".'
    """

    msg_template = 'Required but missing or empty parameter: "{key}".'

    @property
    def default_public_message(self):
        """A user-readable message that includes the key."""
        return self.msg_template.format(key=ascii_str(self.key))


class UnsupportedValueError(_FieldRelatedErrorMixin, BindingError):

    """
    Raised when a value is present for a field whose type cannot be
    coerced from a string (e.g., a nested record reached by a keymap
    lookup, or a custom type that provides no *from_param* capability).

    The field kind is exposed as the :attr:`kind` attribute.

    >>> exc = UnsupportedValueError('location', 'record')
    >>> exc.key, exc.kind
    ('location', 'record')
    >>> exc.public_message
    'Parameter "location" cannot be bound (unsupported field type: record).'
    """

    msg_template = 'Parameter "{key}" cannot be bound (unsupported field type: {kind}).'

    def __init__(self, key, kind, *args, **kwargs):
        self.kind = kind
        super(UnsupportedValueError, self).__init__(key, kind, *args, **kwargs)

    @property
    def default_public_message(self):
        """A user-readable message that includes the key and the kind."""
        return self.msg_template.format(key=ascii_str(self.key),
                                        kind=ascii_str(self.kind))


class ConversionError(_FieldRelatedErrorMixin, BindingError):

    r"""
    Raised when a present value cannot be parsed into the field's kind.

    Instances expose the following attributes: :attr:`key`,
    :attr:`value` (the offending raw string), :attr:`kind` (e.g.,
    ``'integer'``), :attr:`bits` (the bit width, or :obj:`None` if not
    applicable) and :attr:`exc` (the underlying exception, typically a
    :exc:`FieldValueError`, or :obj:`None`).

    >>> err = FieldValueError(public_message='"ł" is not an integer number.')
    >>> exc = ConversionError('age', 'ł', 'integer', bits=8, exc=err)
    >>> exc.key, exc.value, exc.kind, exc.bits
    ('age', 'ł', 'integer', 8)
    >>> exc.exc is err
    True
    >>> exc.public_message == (
    ...     'Problem with value "\\u0142" of parameter "age" '
    ...     '("\\u0142" is not an integer number).')
    True
    >>> ConversionError('age', 'xyz', 'integer').public_message
    'Problem with value "xyz" of parameter "age".'
    """

    msg_template = ('Problem with value "{value}" of parameter '
                    '"{key}"{optional_exc_public_message}.')

    def __init__(self, key, value, kind, *args, bits=None, exc=None, **kwargs):
        self.value = value
        self.kind = kind
        self.bits = bits
        self.exc = exc
        super(ConversionError, self).__init__(key, value, kind, *args, **kwargs)

    @property
    def default_public_message(self):
        """A user-readable message that includes the key and the value."""
        exc = self.exc
        return self.msg_template.format(
            key=ascii_str(self.key),
            value=ascii_str(self.value),
            optional_exc_public_message=(
                ' ({})'.format(ascii_str(exc.public_message).rstrip('.'))
                if isinstance(exc, _ErrorWithPublicMessageMixin)
                else ''))


class CustomDecodeError(_FieldRelatedErrorMixin, BindingError):

    """
    Raised when a type's own *from_param* decoder reports a failure.

    The decoder's exception is kept -- unchanged -- as the :attr:`exc`
    attribute (and is also chained as `__cause__` when the error is
    raised by the binding machinery); the offending raw string is
    exposed as :attr:`value`.

    >>> err = ValueError('not a date')
    >>> exc = CustomDecodeError('since', '2020-13-45', err)
    >>> exc.exc is err
    True
    >>> exc.public_message
    'Problem with value "2020-13-45" of parameter "since".'
    """

    msg_template = 'Problem with value "{value}" of parameter "{key}"{optional_exc_public_message}.'

    def __init__(self, key, value, exc, *args, **kwargs):
        self.value = value
        self.exc = exc
        super(CustomDecodeError, self).__init__(key, value, exc, *args, **kwargs)

    @property
    def default_public_message(self):
        """A user-readable message (including the decoder's public message, if any)."""
        exc = self.exc
        return self.msg_template.format(
            key=ascii_str(self.key),
            value=ascii_str(self.value),
            optional_exc_public_message=(
                ' ({})'.format(ascii_str(exc.public_message).rstrip('.'))
                if isinstance(exc, _ErrorWithPublicMessageMixin)
                else ''))


class KeymapSourceError(BindingError):

    """
    Raised by the keymap extraction helpers (see:
    :mod:`structbind.pyramid_commons`) when a request cannot be turned
    into a keymap (unsupported content type, malformed body...).

    >>> KeymapSourceError(public_message='Unsupported content type.').public_message
    'Unsupported content type.'
    """

    default_public_message = 'Request data could not be interpreted.'
