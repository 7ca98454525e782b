"""Pytest configuration and fixtures."""

# std imports
import socket

# 3rd party
import pytest


@pytest.fixture(scope="module", params=["127.0.0.1"])
def bind_host(request):
    """Localhost bind address."""
    return request.param


@pytest.fixture
def unused_tcp_port(bind_host):
    """A TCP port number not currently bound on ``bind_host``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((bind_host, 0))
        return sock.getsockname()[1]
