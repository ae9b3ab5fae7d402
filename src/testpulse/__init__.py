"""testpulse: test reliability monitoring from execution history."""

__version__ = "0.1.0"
