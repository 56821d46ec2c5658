"""
Meeting Reporter: multi-agent calendar reporting with tool-calling language models.
"""

__version__ = "0.1.0"
