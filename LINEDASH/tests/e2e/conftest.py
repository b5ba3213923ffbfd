"""
Pytest configuration for LINEDASH E2E tests.
Provides a Playwright API request context bound to a running backend; the
tests are skipped when no backend is listening.
"""

import os
import socket

import pytest

FASTAPI_HOST = os.environ.get("FASTAPI_HOST", "127.0.0.1")
FASTAPI_PORT = os.environ.get("FASTAPI_PORT", "8000")

API_BASE_URL = f"http://{FASTAPI_HOST}:{FASTAPI_PORT}"


def backend_is_listening() -> bool:
    try:
        with socket.create_connection((FASTAPI_HOST, int(FASTAPI_PORT)), timeout=0.5):
            return True
    except OSError:
        return False


@pytest.fixture(scope="session")
def api_base_url() -> str:
    """Returns the base URL of the API."""
    return API_BASE_URL


@pytest.fixture
def api_context(playwright):
    """
    Creates an API request context for making direct HTTP calls against the
    running backend.
    """
    if not backend_is_listening():
        pytest.skip(f"No LINEDASH backend listening on {API_BASE_URL}")
    context = playwright.request.new_context(base_url=API_BASE_URL)
    yield context
    context.dispose()
