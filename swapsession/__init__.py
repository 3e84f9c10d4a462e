"""Session bookkeeping for block-exchange protocols: wants, peer choice, interest and sessions."""

__version__ = "0.1.0"