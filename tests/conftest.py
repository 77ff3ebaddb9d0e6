import logging
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
