"""LearnHub enrollment and progress service."""

__version__ = "0.1.0"
