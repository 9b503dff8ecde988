"""edlkit — an interpreter for the Edit Description Language."""

__version__ = "0.1.0"
