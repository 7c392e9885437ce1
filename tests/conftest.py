"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from tests.helpers import FakeSession, make_bridge


@pytest.fixture
def fake() -> FakeSession:
    return FakeSession()


@pytest.fixture
def bridge(fake: FakeSession):
    return make_bridge(fake)


@pytest.fixture
def shell_bridge(fake: FakeSession):
    return make_bridge(fake, allow_shell_commands=True)
