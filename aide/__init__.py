"""Agent orchestration pipeline with long-term semantic memory."""

__version__ = "0.1.0"
