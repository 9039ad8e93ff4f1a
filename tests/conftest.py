"""
Shared fixtures: a fake requests session that serves canned JSON per URL.
"""
from unittest.mock import MagicMock

import pytest
import requests


def make_response(payload=None, status=200, bad_json=False):
    response = MagicMock()
    response.status_code = status
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Server Error")
    if bad_json:
        response.json.side_effect = requests.JSONDecodeError("Expecting value", "<html>", 0)
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def fake_session():
    """
    Returns a factory: fake_session({url_suffix: payload_or_response_or_exc}).

    A payload is wrapped in a 200 response; an exception instance is raised
    from .get(); a MagicMock is returned as-is.
    """
    def _build(routes):
        session = MagicMock()

        def _get(url, **kwargs):
            for suffix, value in routes.items():
                if url.endswith(suffix):
                    if isinstance(value, Exception):
                        raise value
                    if isinstance(value, MagicMock):
                        return value
                    return make_response(value)
            raise requests.ConnectionError(f"no route for {url}")

        session.get.side_effect = _get
        return session

    return _build
