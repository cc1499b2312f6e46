"""Hotel Wi-Fi review acquisition and summarization pipeline."""

__version__ = "0.1.0"
