"""Multi-provider orchestration for AI ad creation."""

__version__ = "0.1.0"
