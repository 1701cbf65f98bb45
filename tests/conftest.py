"""Root test configuration for the sensitive files blocker.

Every test runs from an empty working directory with no SFBLOCKER_* overrides,
so config discovery never picks up a developer's real `.sfblocker/` files.
"""

from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture(autouse=True)
def isolate_config_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    monkeypatch.delenv("SFBLOCKER_CONFIG", raising=False)
    monkeypatch.delenv("SFBLOCKER_PORT", raising=False)
    monkeypatch.chdir(tmp_path)
