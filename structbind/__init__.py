# Copyright (c) 2026 NASK. All rights reserved.

from structbind.log_helpers import early_Formatter_class_monkeypatching

# Monkey-patch logging.Formatter to use UTC time.
early_Formatter_class_monkeypatching()


from structbind.binding import (
    bind,
    bind_to,
    normalize_key,
    normalize_keymap,
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
from structbind.fields import (
    Field,
    IntField,
    UintField,
    FloatField,
    BoolField,
    StrField,
    ListField,
    RecordField,
    ValueField,
    ParamUnmarshaler,
)
from structbind.records import Record


__all__ = [
    'bind',
    'bind_to',
    'normalize_key',
    'normalize_keymap',

    'BindingError',
    'ConversionError',
    'CustomDecodeError',
    'FieldValueError',
    'KeymapSourceError',
    'NotARecordError',
    'RequiredFieldError',
    'UnsupportedValueError',

    'Field',
    'IntField',
    'UintField',
    'FloatField',
    'BoolField',
    'StrField',
    'ListField',
    'RecordField',
    'ValueField',
    'ParamUnmarshaler',

    'Record',
]
