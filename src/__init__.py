"""
DataEye Python package.

A client for Prophet (Webeye/Niagara) telemetry servers that requests data
definitions and live values for named data points and returns them as
normalized, merged records. See README.md for usage.
"""

from .__version__ import __version__

__all__ = ["__version__"]
