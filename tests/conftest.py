"""Shared fixtures: a fake requests session serving canned responses."""
from __future__ import annotations

from typing import Dict, Union
from unittest.mock import MagicMock

import pytest


def make_response(status_code: int, content: bytes = b"") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    return resp


def make_session(routes: Dict[str, Union[MagicMock, Exception]]) -> MagicMock:
    """Build a session whose get() answers from routes, keyed by URL."""
    session = MagicMock()

    def fake_get(url, **kwargs):
        outcome = routes[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    session.get.side_effect = fake_get
    return session


@pytest.fixture
def page():
    """Wrap an HTML body fragment into a 200 response."""
    def _page(body: str) -> MagicMock:
        html = f"<!DOCTYPE html><html><head><title>t</title></head><body>{body}</body></html>"
        return make_response(200, html.encode("utf-8"))
    return _page


@pytest.fixture
def response():
    return make_response


@pytest.fixture
def fake_session():
    return make_session
