"""Each entry point must import on its own, without a warmed-up package."""

import os
import subprocess
import sys
from pathlib import Path

import pytest

SRC = Path(__file__).parent.parent / "src"


class TestStandaloneImports:
    """Fresh-interpreter imports of the modules other code starts from."""

    @pytest.mark.parametrize(
        "module",
        [
            "launchproxy.main",
            "launchproxy.api.app",
            "launchproxy.workflow",
            "launchproxy.audit",
            "launchproxy.services",
            "launchproxy.services.recovery",
        ],
    )
    def test_module_imports_cleanly(self, module):
        env = {**os.environ, "PYTHONPATH": os.pathsep.join([str(SRC), os.environ.get("PYTHONPATH", "")])}

        result = subprocess.run(
            [sys.executable, "-c", f"import {module}"],
            capture_output=True,
            text=True,
            env=env,
            timeout=60,
        )

        assert result.returncode == 0, result.stderr
