"""
Veo Job Client CLI Tools

Tools:
- generate: Generate a video from a prompt and/or image with live progress
"""

from .generate import main, run_generation

__all__ = ["main", "run_generation"]
