"""
Configuration for the localizer.

Module-level constants come from the environment, with a `.env` file in the
working directory loaded first. `LocalizationConfig` gathers the settings of
one run and is what the engine actually reads.
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

_config_logger = logging.getLogger('config')

# DEBUG_MODE set in the real environment turns logging on before .env is read
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("DEBUG_MODE enabled - verbose logging active")

_env_file = Path.cwd() / '.env'

_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"Looking for .env at: {_env_file.absolute()}")
    _config_logger.debug(f"load_dotenv() returned: {_dotenv_result}")

# LLM connection
LLM_PROVIDER = os.getenv('LLM_PROVIDER', 'ollama')  # 'ollama' or 'openai'
API_ENDPOINT = os.getenv('API_ENDPOINT', 'http://localhost:11434/api/chat')
DEFAULT_MODEL = os.getenv('DEFAULT_MODEL', 'qwen3:14b')
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '300'))
OLLAMA_NUM_CTX = int(os.getenv('OLLAMA_NUM_CTX', '8192'))  # Context window for Ollama models
MAX_TRANSLATION_ATTEMPTS = int(os.getenv('MAX_TRANSLATION_ATTEMPTS', '3'))
RETRY_DELAY_SECONDS = int(os.getenv('RETRY_DELAY_SECONDS', '2'))

# Chunk planning
MAX_JSON_CHARS = int(os.getenv('MAX_JSON_CHARS', '12000'))
INITIAL_CHUNK_SIZE = int(os.getenv('INITIAL_CHUNK_SIZE', '40'))
MIN_CHUNK_SIZE = int(os.getenv('MIN_CHUNK_SIZE', '8'))
SIZE_REDUCTION_FACTOR = float(os.getenv('SIZE_REDUCTION_FACTOR', '0.75'))

# Number of chunks sent to the LLM concurrently
BATCH_SIZE = int(os.getenv('BATCH_SIZE', '3'))

# Extra protected keys (comma separated substrings, case-insensitive)
PROTECTED_KEYS = [k.strip() for k in os.getenv('PROTECTED_KEYS', '').split(',') if k.strip()]

DEFAULT_SOURCE_LANGUAGE = os.getenv('DEFAULT_SOURCE_LANGUAGE', 'English')
DEFAULT_TARGET_LANGUAGE = os.getenv('DEFAULT_TARGET_LANGUAGE', 'French')

# .env may also enable it
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("Localizer configuration:")
    _config_logger.debug(f"   LLM_PROVIDER: {LLM_PROVIDER}")
    _config_logger.debug(f"   API_ENDPOINT: {API_ENDPOINT}")
    _config_logger.debug(f"   DEFAULT_MODEL: {DEFAULT_MODEL}")
    _config_logger.debug(f"   REQUEST_TIMEOUT: {REQUEST_TIMEOUT}")
    _config_logger.debug(f"   MAX_JSON_CHARS: {MAX_JSON_CHARS}")
    _config_logger.debug(f"   INITIAL_CHUNK_SIZE: {INITIAL_CHUNK_SIZE}")
    _config_logger.debug(f"   MIN_CHUNK_SIZE: {MIN_CHUNK_SIZE}")
    _config_logger.debug(f"   BATCH_SIZE: {BATCH_SIZE}")
    _config_logger.debug(f"   OPENAI_API_KEY: {'***' + OPENAI_API_KEY[-4:] if OPENAI_API_KEY else '(not set)'}")

# ============================================================================
# MARKUP TOKEN CONFIGURATION
# ============================================================================
# HTML tags are swapped for these tokens before a value is sent to the LLM.
# The LLM must keep them exactly as they are.

MARKUP_TOKEN_KEYWORD = "TAG"
"""The keyword used in markup tokens (e.g., TAG in __TAG0__)"""

MARKUP_TOKEN_PREFIX = f"__{MARKUP_TOKEN_KEYWORD}"
"""Prefix for markup tokens (e.g., __TAG in __TAG0__)"""

MARKUP_TOKEN_SUFFIX = "__"
"""Suffix for markup tokens"""

MARKUP_TOKEN_PATTERN = rf'__{MARKUP_TOKEN_KEYWORD}(\d+)__'
"""Regex pattern for detecting markup tokens in translated text"""


def create_markup_token(tag_num: int) -> str:
    """Create a markup token string for a given tag number."""
    return f"{MARKUP_TOKEN_PREFIX}{tag_num}{MARKUP_TOKEN_SUFFIX}"


# Leaf names that are never sent for translation (exact, case-insensitive)
BUILTIN_PROTECTED_KEYS = (
    'id', 'ids', 'icon', 'iconName', 'url', 'src', 'scene_type',
    'type', 'difficulty', 'headers', 'sender',
)

# Always protected, whatever the caller passes
ALWAYS_PROTECTED_KEYS = ('scene_type',)


@dataclass
class LocalizationConfig:
    """Per-invocation settings for the localization engine"""

    source_language: str = DEFAULT_SOURCE_LANGUAGE
    target_language: str = DEFAULT_TARGET_LANGUAGE
    topic: Optional[str] = None

    # Chunk planning
    max_json_chars: int = MAX_JSON_CHARS
    initial_chunk_size: int = INITIAL_CHUNK_SIZE
    min_chunk_size: int = MIN_CHUNK_SIZE
    size_reduction_factor: float = SIZE_REDUCTION_FACTOR

    # Concurrency
    batch_size: int = BATCH_SIZE

    # Caller-supplied protected keys (substring match)
    protected_keys: List[str] = field(default_factory=lambda: list(PROTECTED_KEYS))

    # Compare simple placeholders in order; False compares them as a multiset
    strict_placeholder_order: bool = True

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.min_chunk_size < 1:
            raise ValueError(f"min_chunk_size must be >= 1, got {self.min_chunk_size}")
        if self.initial_chunk_size < self.min_chunk_size:
            raise ValueError(
                f"initial_chunk_size ({self.initial_chunk_size}) must be >= "
                f"min_chunk_size ({self.min_chunk_size})"
            )
        if not 0 < self.size_reduction_factor < 1:
            raise ValueError(
                f"size_reduction_factor must be between 0 and 1, got {self.size_reduction_factor}"
            )

    @classmethod
    def from_cli_args(cls, args) -> 'LocalizationConfig':
        """Build the run settings from parsed `translate_json` arguments."""
        return cls(
            source_language=args.source_lang,
            target_language=args.target_lang,
            topic=getattr(args, 'topic', None),
            max_json_chars=getattr(args, 'max_chars', MAX_JSON_CHARS),
            batch_size=getattr(args, 'batch_size', BATCH_SIZE),
            protected_keys=list(PROTECTED_KEYS) + list(getattr(args, 'protect', None) or []),
        )

    def to_dict(self) -> dict:
        """Plain-dict view, used in debug logs."""
        return {
            'source_language': self.source_language,
            'target_language': self.target_language,
            'topic': self.topic,
            'max_json_chars': self.max_json_chars,
            'initial_chunk_size': self.initial_chunk_size,
            'min_chunk_size': self.min_chunk_size,
            'size_reduction_factor': self.size_reduction_factor,
            'batch_size': self.batch_size,
            'protected_keys': list(self.protected_keys),
            'strict_placeholder_order': self.strict_placeholder_order,
        }
