import asyncio

import pytest


class CountingSource:
    """Async iterator counting how often it is pulled."""

    def __init__(self, items):
        self.items = list(items)
        self.calls = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        self.calls += 1
        if not self.items:
            raise StopAsyncIteration
        return self.items.pop(0)


class RecordingDestination:
    """Pipe destination recording writes (and the end) in a shared log."""

    def __init__(self, name, log=None, delay=0.0, fail_on=None):
        self.name = name
        self.log = log if log is not None else []
        self.delay = delay
        self.fail_on = fail_on
        self.items = []
        self.ended = False

    async def write(self, item):
        if self.delay:
            await asyncio.sleep(self.delay)
        if item == self.fail_on:
            raise ValueError(f"{self.name} rejected {item}")
        self.items.append(item)
        self.log.append((self.name, item))

    async def end(self):
        self.ended = True
        self.log.append((self.name, "end"))

    def __repr__(self):
        return f"RecordingDestination({self.name})"


@pytest.fixture
def counting_source():
    return CountingSource


@pytest.fixture
def recording_destination():
    return RecordingDestination
