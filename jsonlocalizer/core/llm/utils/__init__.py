"""
LLM Utility Modules

Components:
    - extraction: JSON object extraction from LLM responses
"""

from .extraction import JsonObjectExtractor

__all__ = ['JsonObjectExtractor']
