"""
Register pytest plugins, fixtures, and hooks to be used during test execution.

The application reads its settings at import time, so the test database and
storage locations are put into the environment here, before any fixture
module imports ``cloudimega``.
"""

import os
import sys
import tempfile
from pathlib import Path

THIS_DIR = Path(__file__).parent
TESTS_DIR_PARENT = (THIS_DIR / "..").resolve()

# add the parent directory of tests/ to PYTHONPATH
# so that we can use "from tests.<module> import ..." in our tests and fixtures
sys.path.insert(0, str(TESTS_DIR_PARENT))

_TEST_ROOT = tempfile.mkdtemp(prefix="cloudimega-tests-")
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(_TEST_ROOT, "test.db")
os.environ["STORAGE_PATH"] = os.path.join(_TEST_ROOT, "storage")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BASE_URL"] = "http://share.test"
# Cheapest bcrypt cost keeps the suite fast
os.environ["BCRYPT_ROUNDS"] = "4"

pytest_plugins = [
    # Database, app and client
    "tests.fixtures.app_fixtures",
    # Users, files, folders and shares
    "tests.fixtures.share_fixtures",
]
