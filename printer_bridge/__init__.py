"""Restaurant-side printer bridge: relay tunnel client and receipt printing."""

__version__ = "1.0.0"
