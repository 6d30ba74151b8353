"""
jsonlocalizer - translate every string of a JSON document with an LLM
while keeping markup, placeholders, links and structure intact.
"""

__version__ = "1.0.0"
