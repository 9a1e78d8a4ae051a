# Copyright (c) 2026 NASK. All rights reserved.

"""
The base class for *record* classes, i.e., binding targets.

A record class is a subclass of :class:`Record` whose body declares
fields as class attributes holding :class:`structbind.fields.Field`
instances, e.g.:

    class Address(Record):
        street = StrField()
        city = StrField(tags={'json': 'town'})

    class Person(Record):
        username = StrField(binding='required')
        age = UintField(bits=8)
        tags = ListField(StrField())
        address = RecordField(Address)
        nickname = StrField(nullable=True)
        internal_note = StrField(binding='-')

The *field descriptor table* (the :attr:`Record.field_specs` tuple of
`(<field name>, <field instance>)` pairs) is computed once, when a
record class is created: inherited fields come first, then the class's
own fields in their declaration order (a field redeclared in a subclass
keeps its original position; an inherited field can be removed by
assigning a non-field object, e.g. :obj:`None`, to its name).
"""

from structbind.fields import Field


class Record(object):

    """
    The base class for record classes.

    Instantiating a record class with no arguments gives a
    *zero-initialized* instance (each field set to a new zero value of
    its field specification); keyword arguments can be used to set some
    fields explicitly:

    >>> from structbind.fields import IntField, ListField, StrField
    >>> class Point(Record):
    ...     x = IntField()
    ...     y = IntField()
    ...     labels = ListField(StrField())
    ...
    >>> Point()
    Point(x=0, y=0, labels=[])
    >>> Point(y=5) == Point(x=0, y=5, labels=[])
    True
    >>> Point(y=5).as_dict()
    {'x': 0, 'y': 5, 'labels': []}
    >>> Point(z=1)  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
      ...
    TypeError: ...
    """

    #: The field descriptor table (set automatically for each subclass).
    field_specs = ()

    def __init_subclass__(cls, **kwargs):
        super(Record, cls).__init_subclass__(**kwargs)
        cls.field_specs = tuple(cls._iter_all_field_specs())
        cls._field_spec_map = dict(cls.field_specs)

    def __init__(self, **field_values):
        illegal = set(field_values).difference(self._field_spec_map)
        if illegal:
            raise TypeError(
                '{}.__init__() got unexpected keyword argument(s): {}'
                .format(self.__class__.__qualname__,
                        ', '.join(sorted(map(ascii, illegal)))))
        for name, field in self.field_specs:
            if name in field_values:
                value = field_values[name]
            else:
                value = field.get_zero_value()
            setattr(self, name, value)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._field_values() == other._field_values()

    __hash__ = None

    def __repr__(self):
        return '{}({})'.format(
            self.__class__.__qualname__,
            ', '.join(
                '{}={!r}'.format(name, value)
                for name, value in self._field_values()))

    @classmethod
    def get_field(cls, name):
        """
        Get the field specification for the given field name.

        Raises:
            :exc:`~exceptions.KeyError` if there is no such field.
        """
        return cls._field_spec_map[name]

    def as_dict(self):
        """
        Get a new :class:`dict` that maps field names to values (nested
        records are converted recursively).
        """
        return {
            name: self._value_as_plain_data(value)
            for name, value in self._field_values()}


    #
    # non-public internals

    _field_spec_map = {}

    @classmethod
    def _iter_all_field_specs(cls):
        name_to_field = {}
        for ac in reversed(cls.__mro__):
            for name, obj in vars(ac).items():
                if isinstance(obj, Field):
                    # (note: a redeclared field keeps its position)
                    name_to_field[name] = obj
                elif name in name_to_field:
                    # field was masked ("removed"), e.g. in a subclass
                    del name_to_field[name]
        return name_to_field.items()

    def _field_values(self):
        return [(name, getattr(self, name)) for name, _ in self.field_specs]

    @classmethod
    def _value_as_plain_data(cls, value):
        if isinstance(value, Record):
            return value.as_dict()
        if isinstance(value, list):
            return [cls._value_as_plain_data(v) for v in value]
        return value
