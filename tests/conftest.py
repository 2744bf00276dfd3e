"""Pytest configuration."""

import asyncio

import pytest


@pytest.fixture
def later():
    """Schedule a callback on the running loop after ``delay`` seconds."""

    def schedule(delay, callback, *args):
        return asyncio.get_running_loop().call_later(delay, callback, *args)

    return schedule
