"""fastest — fluent, deferred UI test chains for Appium-style servers."""

from fastest.chain.android import AndroidTester
from fastest.chain.tester import Tester

__version__ = "0.1.0"

__all__ = ["AndroidTester", "Tester", "__version__"]
