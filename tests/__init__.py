# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_policy, make_resolver, FakeNetwork
"""

from .utils import FakeNetwork, make_policy, make_resolver

__all__ = ["FakeNetwork", "make_policy", "make_resolver"]
