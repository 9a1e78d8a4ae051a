# Copyright (c) 2026 NASK. All rights reserved.

import json

from pyramid.threadlocal import get_current_registry

from structbind.binding import bind
from structbind.config import make_binding_config
from structbind.const import (
    MIME_APPLICATION_FORM,
    MIME_APPLICATION_JSON,
    MIME_MULTIPART_FORM,
)
from structbind.encoding_helpers import ascii_str
from structbind.exceptions import KeymapSourceError
from structbind.log_helpers import get_logger


LOGGER = get_logger(__name__)



#
# Keymap extraction

def query_keymap(request):
    """
    Get the keymap of the URL query parameters of the given request.
    """
    return _multidict_to_keymap(request.GET)


def form_keymap(request, config=None):
    """
    Get the keymap of the form fields of the given request
    (*application/x-www-form-urlencoded* or *multipart/form-data*),
    merged with its URL query parameters.

    For a key present in both, the body values come first.  File
    uploads are skipped.

    Raises:
        :exc:`~structbind.exceptions.KeymapSourceError` if the body of
        a multipart request is larger than the `max_multipart_memory`
        configuration option (a hard size cap; a body sent without
        the *Content-Length* header is measured after being read).
    """
    if request.content_type.startswith(MIME_MULTIPART_FORM):
        max_size = _get_binding_config(request, config)['max_multipart_memory']
        content_length = request.content_length
        if content_length is None and request.is_body_readable:
            # (no Content-Length, e.g., a chunked body: `copy_body()`
            # spools it -- possibly to a temporary file -- and sets the length)
            request.copy_body()
            content_length = request.content_length
        if content_length is not None and content_length > max_size:
            raise KeymapSourceError(public_message=(
                'Request body too large (the limit is {} bytes).'.format(max_size)))
    keymap = _multidict_to_keymap(request.POST, skip_uploads=True)
    for key, values in query_keymap(request).items():
        keymap.setdefault(key, []).extend(values)
    return keymap


def json_keymap(request):
    """
    Get the keymap from the JSON body of the given request.

    The body must be a JSON object whose values are strings, other
    scalars (rendered as JSON literals, e.g., ``true``, ``1.5``;
    ``null`` is rendered as an empty string) or arrays of those.

    Raises:
        :exc:`~structbind.exceptions.KeymapSourceError` if the body is
        not such an object.
    """
    try:
        body = request.json_body
    except ValueError as exc:
        raise KeymapSourceError(public_message=(
            'Request body is not valid JSON.')) from exc
    if not isinstance(body, dict):
        raise KeymapSourceError(public_message=(
            'Request body is not a JSON object.'))
    keymap = {}
    for key, value in body.items():
        if isinstance(value, list):
            keymap[key] = [_json_scalar_as_str(key, val) for val in value]
        else:
            keymap[key] = [_json_scalar_as_str(key, value)]
    return keymap


def keymap_from_request(request, config=None):
    """
    Get the keymap of the given request and the source tag namespace
    appropriate for it -- depending on the request's content type.

    Returns:
        A `(<keymap>, <source tag namespace>)` pair.

    Raises:
        :exc:`~structbind.exceptions.KeymapSourceError` if the content
        type is not supported or the body is malformed.
    """
    binding_config = _get_binding_config(request, config)
    content_type = request.content_type
    if content_type.startswith(MIME_APPLICATION_JSON):
        return json_keymap(request), binding_config['json_tag']
    if content_type.startswith((MIME_MULTIPART_FORM, MIME_APPLICATION_FORM)):
        return form_keymap(request, binding_config), binding_config['form_tag']
    raise KeymapSourceError(public_message=(
        'Unsupported media type: "{}".'.format(ascii_str(content_type))))



#
# Binding request data

def bind_request(request, record_type, config=None):
    """
    Bind the data of the given request (see: :func:`keymap_from_request`)
    to a new instance of `record_type`.
    """
    keymap, tag = keymap_from_request(request, config)
    return bind(record_type, keymap, tag)


def bind_request_json(request, record_type, config=None):
    binding_config = _get_binding_config(request, config)
    return bind(record_type, json_keymap(request), binding_config['json_tag'])


def bind_request_form(request, record_type, config=None):
    binding_config = _get_binding_config(request, config)
    return bind(record_type, form_keymap(request, binding_config), binding_config['form_tag'])


def bind_request_query(request, record_type, config=None):
    binding_config = _get_binding_config(request, config)
    return bind(record_type, query_keymap(request), binding_config['query_tag'])



#
# Pyramid configuration hook

def includeme(config):
    """
    The Pyramid configuration hook (to be used with `config.include()`).

    Reads the binding configuration from the application settings and
    adds the `bind_params(<record class>)` request method.
    """
    config.registry.binding_config = make_binding_config(
        settings=(config.registry.settings or {}))
    config.add_request_method(_bind_params, 'bind_params')


def _bind_params(request, record_type):
    return bind_request(request, record_type)



#
# Non-public helpers

def _get_binding_config(request, config):
    if config is not None:
        return config
    registry = getattr(request, 'registry', None)
    if registry is None:
        registry = get_current_registry()
    binding_config = getattr(registry, 'binding_config', None)
    if binding_config is None:
        binding_config = make_binding_config(
            settings=(getattr(registry, 'settings', None) or {}))
    return binding_config


def _multidict_to_keymap(multidict, skip_uploads=False):
    keymap = {}
    for key, value in multidict.items():
        if not isinstance(value, str):
            if skip_uploads:
                LOGGER.debug('skipping non-text (file upload?) field %a', key)
                continue
            raise KeymapSourceError(public_message=(
                'Parameter "{}" is not text.'.format(ascii_str(key))))
        keymap.setdefault(key, []).append(value)
    return keymap


def _json_scalar_as_str(key, value):
    if isinstance(value, str):
        return value
    if value is None:
        return ''
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    raise KeymapSourceError(public_message=(
        'Nested JSON values are not supported (parameter "{}").'.format(ascii_str(key))))
