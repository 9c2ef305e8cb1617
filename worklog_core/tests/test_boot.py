import os
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.parametrize(
    "first_import",
    [
        "worklog_core.common.policy",
        "worklog_core.common.scope",
        "worklog_core.common.api.exceptions",
        "worklog_core.iam.auth",
    ],
)
def test_django_setup_in_a_fresh_interpreter(first_import):
    # Import cycles only show up on a cold start, so this runs outside the test process.
    code = (
        "import django\n"
        "django.setup()\n"
        f"import {first_import}\n"
        "from django.urls import resolve\n"
        "resolve('/api/v1/customers/')\n"
    )
    env = {**os.environ, "DJANGO_SETTINGS_MODULE": "config.settings.test"}
    result = subprocess.run(
        [sys.executable, "-c", code],
        cwd=REPO_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=120,
    )

    assert result.returncode == 0, result.stderr
