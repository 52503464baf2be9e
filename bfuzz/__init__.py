"""bfuzz - Blazing Fast Basic Port Fuzzer."""

__version__ = "0.1.0"
