"""
Core localization modules
"""
from .localization import DocumentLocalizer, localize_document
from .llm import LLMJsonTranslator, create_llm_provider

__all__ = [
    'DocumentLocalizer',
    'localize_document',
    'LLMJsonTranslator',
    'create_llm_provider',
]
