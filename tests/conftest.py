import sys
import os

import pytest

_tests_dir = os.path.dirname(os.path.abspath(__file__))
_src_dir   = os.path.abspath(os.path.join(_tests_dir, '..'))

# Test the source tree, not whatever yamlbind happens to be installed.
sys.path.insert(0, _src_dir)


@pytest.fixture
def compose_root():
    """Compose a document and return its root node."""
    import yamlbind

    def compose_root(data):
        document = yamlbind.compose(data)
        return document.root if document is not None else None
    return compose_root
