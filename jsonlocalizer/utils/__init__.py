"""
Utility modules

Import helpers directly from their module:

    from jsonlocalizer.utils.file_utils import localize_json_file
"""

__all__ = []
