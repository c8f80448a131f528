import os
import stat
import sys

import pytest

_tests_dir = os.path.dirname(__file__)

# Add fetchers/ to the import path so tests can import modules directly
sys.path.insert(0, os.path.join(_tests_dir, '..', 'fetchers'))
# Add tests/ itself so helpers.py can be imported
sys.path.insert(0, _tests_dir)

STUB_ENGINE = os.path.join(_tests_dir, 'fixtures', 'stub_engine.py')


@pytest.fixture
def stub_engine(tmp_path):
    """Return a factory that writes an executable launcher for the stub engine.

    The launcher runs fixtures/stub_engine.py in the given mode with the
    current interpreter, so it can be passed to UCISession as an engine path.
    """
    if sys.platform == 'win32':
        pytest.skip("stub engine launcher needs a POSIX shell")

    def make(mode="normal"):
        launcher = tmp_path / f"engine-{mode}"
        launcher.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{STUB_ENGINE}" {mode}\n')
        launcher.chmod(launcher.stat().st_mode | stat.S_IXUSR)
        return str(launcher)

    return make
