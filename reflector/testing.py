"""
Helper tools to test the reflector and the code embedding it.

This module is a part of the library's public interface.
"""
from reflector._kits.memstores import Injection, MemoryStore

__all__ = [
    'Injection',
    'MemoryStore',
]
