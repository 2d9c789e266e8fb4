#!/usr/bin/env python3
"""
Setup script for yamlbind.

yamlbind is pure Python: the reader, scanner, parser, composer, resolver and
decoder are all plain modules, so there is no extension to build.

Install for development with the test dependencies:
    pip install -e '.[test]'
"""

import os
import re
from setuptools import setup

def read_version():
    """Read __version__ from the package without importing it."""
    path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                        'yamlbind', '__init__.py')
    with open(path, encoding='utf-8') as f:
        match = re.search(r"^__version__ = '([^']+)'", f.read(), re.M)
    return match.group(1)

setup(
    name='yamlbind',
    version=read_version(),
    description='YAML 1.1 decoder that binds documents onto typed Python values',
    packages=['yamlbind'],
    package_data={'yamlbind': ['__init__.pyi']},
    python_requires='>=3.10',
    install_requires=[],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['yamlbind=yamlbind.__main__:main'],
    },
)
