"""
Command-line interface for JSON document localization
"""
import argparse
import asyncio
import json
import logging
import sys

from jsonlocalizer.config import (
    API_ENDPOINT,
    BATCH_SIZE,
    DEFAULT_MODEL,
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
    LLM_PROVIDER,
    MAX_JSON_CHARS,
    OPENAI_API_KEY,
    LocalizationConfig,
)
from jsonlocalizer.core.llm import LLMJsonTranslator, create_llm_provider
from jsonlocalizer.utils.file_utils import (
    default_output_path,
    get_unique_output_path,
    localize_json_file,
)

logger = logging.getLogger("translate_json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translate every string of a JSON file using an LLM.")
    parser.add_argument("-i", "--input", required=True, help="Path to the input JSON file.")
    parser.add_argument("-o", "--output", default=None, help="Path to the output file. If not specified, uses input filename with the target language as suffix.")
    parser.add_argument("-sl", "--source_lang", default=DEFAULT_SOURCE_LANGUAGE, help=f"Source language (default: {DEFAULT_SOURCE_LANGUAGE}).")
    parser.add_argument("-tl", "--target_lang", default=DEFAULT_TARGET_LANGUAGE, help=f"Target language (default: {DEFAULT_TARGET_LANGUAGE}).")
    parser.add_argument("-m", "--model", default=DEFAULT_MODEL, help=f"LLM model (default: {DEFAULT_MODEL}).")
    parser.add_argument("--provider", default=LLM_PROVIDER, choices=["ollama", "openai"], help=f"LLM provider to use (default: {LLM_PROVIDER}).")
    parser.add_argument("--api_endpoint", default=None, help=f"API endpoint (default for ollama: {API_ENDPOINT}).")
    parser.add_argument("--api_key", default=OPENAI_API_KEY, help="API key for the openai provider.")
    parser.add_argument("--topic", default=None, help="Subject of the document, used as a terminology hint.")
    parser.add_argument("--protect", action="append", default=[], metavar="KEY", help="Extra key never translated (substring, case-insensitive). Repeatable.")
    parser.add_argument("--batch-size", dest="batch_size", type=int, default=BATCH_SIZE, help=f"Chunks translated in parallel (default: {BATCH_SIZE}).")
    parser.add_argument("--max-chars", dest="max_chars", type=int, default=MAX_JSON_CHARS, help=f"Serialized size budget per chunk (default: {MAX_JSON_CHARS}).")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging.")
    return parser


async def run(args) -> int:
    """Localize the input file. Returns the process exit code."""
    try:
        config = LocalizationConfig.from_cli_args(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    provider = create_llm_provider(
        args.provider,
        model=args.model,
        api_endpoint=args.api_endpoint,
        api_key=args.api_key
    )
    translator = LLMJsonTranslator(provider)

    logger.info(
        f"Translating '{args.input}' from {args.source_lang} to {args.target_lang} "
        f"with {args.provider}/{args.model}"
    )
    try:
        result = await localize_json_file(args.input, args.output, translator, config)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Translation failed: {e}")
        return 1
    finally:
        await translator.close()

    for issue in result.issues:
        logger.warning(f"Soft issue - {issue.describe()}")
    if not result.success:
        logger.error(f"Translation failed: {result.error}")
        return 1

    print(result.summary or "Completed without issues")
    print(f"Output: {args.output}")
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.provider == "openai" and not args.api_key:
        parser.error("--api_key is required when using openai provider")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.output is None:
        args.output = default_output_path(args.input, args.target_lang)
    # Ensure output path is unique (add number suffix if file exists)
    args.output = get_unique_output_path(args.output)

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
