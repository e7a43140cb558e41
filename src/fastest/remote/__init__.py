"""Automation server wire layer: connection, session, element."""

from fastest.remote.connection import Connection
from fastest.remote.element import Element
from fastest.remote.session import Session

__all__ = ["Connection", "Element", "Session"]
