import json
import logging

import pytest

from stateful_subscriptions import SubscriptionRegistry


class MockSocket:
    """Transport that records sent messages."""

    def __init__(self):
        self.messages = []

    def send(self, text):
        self.messages.append(json.loads(text))


@pytest.fixture
def socket():
    return MockSocket()


@pytest.fixture
def registry():
    return SubscriptionRegistry(
        [{"name": "onItems", "key": "offset"}],
        logger=logging.getLogger("tests.registry"),
    )
