"""
File utilities for JSON localization
"""
import json
import logging
from pathlib import Path
from typing import Optional

import aiofiles

from jsonlocalizer.config import LocalizationConfig
from jsonlocalizer.core.localization import DocumentLocalizer, EventBus, LocalizationResult
from jsonlocalizer.core.localization.interfaces import ITranslationCapability
from jsonlocalizer.core.localization.models import Value

logger = logging.getLogger(__name__)


def get_unique_output_path(output_path):
    """
    Generate a unique output path by adding a number suffix if the file already exists.

    Args:
        output_path (str): Desired output path

    Returns:
        str: Unique output path (original or with numeric suffix)

    Examples:
        menu.json -> menu.json (if doesn't exist)
        menu.json -> menu (1).json (if menu.json exists)
    """
    path = Path(output_path)
    if not path.exists():
        return output_path

    parent = path.parent
    stem = path.stem
    suffix = path.suffix

    counter = 1
    while True:
        new_path = parent / f"{stem} ({counter}){suffix}"
        if not new_path.exists():
            return str(new_path)
        counter += 1
        if counter > 9999:
            raise RuntimeError(f"Could not find unique filename after 9999 attempts for: {output_path}")


def default_output_path(input_path: str, target_language: str) -> str:
    """``strings.json`` -> ``strings_french.json``"""
    path = Path(input_path)
    suffix = path.suffix or '.json'
    language = target_language.lower().replace(' ', '_')
    return str(path.with_name(f"{path.stem}_{language}{suffix}"))


async def load_json_document(input_filepath: str) -> Value:
    async with aiofiles.open(input_filepath, 'r', encoding='utf-8') as f:
        content = await f.read()
    return json.loads(content)


async def save_json_document(output_filepath: str, document: Value) -> None:
    async with aiofiles.open(output_filepath, 'w', encoding='utf-8') as f:
        await f.write(json.dumps(document, ensure_ascii=False, indent=2))
        await f.write("\n")


async def localize_json_file(
    input_filepath: str,
    output_filepath: str,
    translator: ITranslationCapability,
    config: Optional[LocalizationConfig] = None,
    event_bus: Optional[EventBus] = None
) -> LocalizationResult:
    """
    Localize a JSON file and write the result.

    The output file is written whenever the result carries a document,
    including a partially translated one. Nothing is written on a binding
    mismatch.

    Raises:
        OSError: If the input cannot be read or the output cannot be written
        json.JSONDecodeError: If the input is not valid JSON
    """
    document = await load_json_document(input_filepath)
    logger.info(f"Loaded '{input_filepath}'")

    result = await DocumentLocalizer(translator, config, event_bus).localize(document)

    if result.data is not None:
        await save_json_document(output_filepath, result.data)
        logger.info(f"Localized document saved: '{output_filepath}'")
    return result
