# libs/py_common/__init__.py
# Shared settings and logging setup for the wallet services.

__version__ = "0.1.0"
