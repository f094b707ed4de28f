"""envbridge - replay a bash script's environment changes in fish."""

__version__ = "0.1.0"
