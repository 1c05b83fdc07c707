"""ratewindow: per-caller request rate limiting.

Six interchangeable strategies behind one `RateLimiter` contract, a factory
that connects their stores, and a FastAPI boundary that enforces the limit.
"""

__version__ = "0.1.0"
