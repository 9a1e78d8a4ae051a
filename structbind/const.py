# Copyright (c) 2026 NASK. All rights reserved.

import os.path as osp


ETC_DIR = '/etc/structbind'
USER_DIR = osp.expanduser('~/.structbind')

# field directives (see the `binding` argument of `structbind.fields.Field`)
DIRECTIVE_REQUIRED = 'required'
DIRECTIVE_SKIP = '-'

# conventional source tag namespaces
TAG_JSON = 'json'
TAG_FORM = 'form'
TAG_QUERY = 'query'

MIME_APPLICATION_FORM = 'application/x-www-form-urlencoded'
MIME_APPLICATION_JSON = 'application/json'
MIME_MULTIPART_FORM = 'multipart/form-data'

DEFAULT_MAX_MULTIPART_MEMORY = 32 << 20   # 32 MiB

TOPLEVEL_PACKAGES = ('structbind',)
