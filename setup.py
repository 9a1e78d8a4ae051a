# Copyright (c) 2026 NASK. All rights reserved.

import os.path as osp
import sys

from setuptools import setup, find_packages


setup_dir, setup_filename = osp.split(osp.abspath(__file__))
setup_human_readable_ref = osp.join(osp.basename(setup_dir), setup_filename)

def get_structbind_version(filename):
    path = osp.join(setup_dir, filename)
    try:
        with open(path, encoding='ascii') as f:
            return f.read().strip()
    except (OSError, UnicodeError) as exc:
        sys.exit('[{}] Cannot determine the structbind version '
                 '(an error occurred when trying to '
                 'read it from the file {!a} - {}).'
                 .format(setup_human_readable_ref,
                         path,
                         exc))


structbind_version = get_structbind_version('.structbind-version')

requirements = []
with open(osp.join(setup_dir, 'requirements'), encoding='ascii') as f:
    for raw_line in f:
        line = raw_line.strip()
        if not line or line.startswith('#'):
            continue
        requirements.append(line)


setup(
    name="structbind",
    version=structbind_version,

    packages=find_packages(include=['structbind', 'structbind.*']),
    install_requires=requirements,
    python_requires='>=3.9',
    include_package_data=True,
    zip_safe=False,
    extras_require={
        'test': ['pytest', 'unittest_expander'],
    },

    description='Binding of multi-valued string keymaps (query strings, '
                'form and JSON bodies) to declarative typed records.',
    classifiers=[
        'Framework :: Pyramid',
        'Intended Audience :: Developers',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries',
    ],
    keywords='binding form query json keymap record pyramid',
)
