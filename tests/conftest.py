# SPDX-License-Identifier: GPL-2.0-or-later
import logging
import os
import sys
from pathlib import Path

import pytest

_THIS_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _THIS_DIR.parent

for _p in (_REPO_ROOT, _THIS_DIR):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

os.environ.setdefault("PYTHONPATH", str(_REPO_ROOT))

_VSPHERE_ENV = ("VSPHERE_HOST", "VSPHERE_USERNAME", "VSPHERE_PASSWORD", "VSPHERE_INSECURE")


@pytest.fixture(autouse=True)
def _no_vsphere_env(monkeypatch):
    # credential fallbacks must not leak in from the developer's shell
    for name in _VSPHERE_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def logger():
    return logging.getLogger("mcm_vsphere.test")
