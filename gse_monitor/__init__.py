"""GSE Monitor - Ghana Stock Exchange dashboard backend."""

__version__ = "1.0.0"
