"""Deferred execution chains."""

from fastest.chain.android import AndroidTester
from fastest.chain.poller import Poller
from fastest.chain.tester import Tester

__all__ = ["AndroidTester", "Poller", "Tester"]
