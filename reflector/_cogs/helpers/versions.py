"""
Detecting the package's own version.

The version is determined only once at startup when the code is loaded.
"""
from typing import Optional

version: Optional[str] = None

try:
    import importlib.metadata
except ImportError:
    pass
else:
    try:
        version = importlib.metadata.version('config-reflector')
    except Exception:
        pass  # not installed, e.g. running from a source checkout.
