# Copyright (c) 2026 NASK. All rights reserved.

"""
Helpers that deal with *keymaps*, i.e., mappings of string keys to
sequences of raw string values (such as those produced by parsing URL
query strings or form bodies).
"""

from collections.abc import Mapping

from structbind.log_helpers import get_logger


LOGGER = get_logger(__name__)


_KEY_SEPARATOR_TRANSLATION = str.maketrans('', '', '_-')


def normalize_key(key):
    """
    Canonicalize a key, so that matching keys is insensitive to letter
    case and to the `_` and `-` separators.

    >>> normalize_key('user_name')
    'username'
    >>> normalize_key('User-Name')
    'username'
    >>> normalize_key('USERNAME')
    'username'
    >>> normalize_key('-_-')
    ''
    """
    return key.translate(_KEY_SEPARATOR_TRANSLATION).lower()


def iter_keymap_items(keymap):
    """
    Iterate over `(<key>, <list of values>)` pairs of a keymap.

    Args:
        `keymap`:
            Either a mapping of :class:`str` keys to sequences of
            :class:`str` values (a bare :class:`str` value is treated
            as a one-element sequence), or a *WebOb*-like multidict
            (i.e., an object that provides the `dict_of_lists()`
            method).

    Yields:
        `(<key>, <new list of values>)` pairs.

    Raises:
        :exc:`~exceptions.TypeError` if the keymap is not a mapping or
        contains any non-:class:`str` keys or values.

    >>> list(iter_keymap_items({'a': ['1', '2'], 'b': 'x'}))
    [('a', ['1', '2']), ('b', ['x'])]
    """
    dict_of_lists = getattr(keymap, 'dict_of_lists', None)
    if dict_of_lists is not None:
        keymap = dict_of_lists()
    if not isinstance(keymap, Mapping):
        raise TypeError('{!a} is not a mapping'.format(keymap))
    for key, values in keymap.items():
        if not isinstance(key, str):
            raise TypeError('keymap key {!a} is not a str'.format(key))
        if isinstance(values, str):
            values = [values]
        else:
            values = list(values)
        for val in values:
            if not isinstance(val, str):
                raise TypeError('value {!a} (for keymap key {!a}) is not a str'
                                .format(val, key))
        yield key, values


def normalize_keymap(keymap):
    """
    Make a new keymap whose keys are normalized with
    :func:`normalize_key`.

    If two distinct source keys normalize to the same string, the last
    one wins (that is *not* considered an error).  The given keymap is
    never modified.

    >>> normalize_keymap({'User_Name': ['foo'], 'Tags': ['a', 'b']})
    {'username': ['foo'], 'tags': ['a', 'b']}
    >>> normalize_keymap({'user_name': ['foo'], 'User-Name': ['bar']})
    {'username': ['bar']}
    """
    normalized = {}
    for key, values in iter_keymap_items(keymap):
        norm_key = normalize_key(key)
        if norm_key in normalized:
            LOGGER.debug('keymap keys collide after normalization (%a); '
                         'the values for %a take precedence', norm_key, key)
        normalized[norm_key] = values
    return normalized
