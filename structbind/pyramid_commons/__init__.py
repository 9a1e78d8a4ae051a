# Copyright (c) 2026 NASK. All rights reserved.

"""
Glue between Pyramid (WebOb) requests and the binding machinery:
extracting keymaps from query strings, form bodies and JSON bodies,
and binding them to records.

To get the `request.bind_params(<record class>)` request method, add
this to your Pyramid application setup:

    config.include('structbind.pyramid_commons')
"""


from structbind.pyramid_commons._pyramid_commons import (
    query_keymap,
    form_keymap,
    json_keymap,
    keymap_from_request,

    bind_request,
    bind_request_json,
    bind_request_form,
    bind_request_query,

    includeme,
)


__all__ = [
    'query_keymap',
    'form_keymap',
    'json_keymap',
    'keymap_from_request',

    'bind_request',
    'bind_request_json',
    'bind_request_form',
    'bind_request_query',

    'includeme',
]
