"""
Data model for document localization.

All objects here are created fresh for one invocation of the engine and
discarded afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

# A JSON-compatible document node. Mappings keep insertion order.
Value = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]

# One step of an address: a mapping key or a sequence index
PathSegment = Union[str, int]

# Location of a leaf inside a document
Address = Tuple[PathSegment, ...]


def format_address(address: Address) -> str:
    """Render an address as a dotted path, e.g. ``emails[0].content``."""
    parts = []
    for segment in address:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(segment)
    return "".join(parts)


class ContextTag(Enum):
    """Coarse role of a leaf, derived from its key name. Only steers style hints."""
    TITLE = "title"
    EMAIL_SUBJECT = "email_subject"
    DESCRIPTION = "description"
    CONTENT = "content"
    MESSAGE = "message"
    EXPLANATION = "explanation"
    TEXT = "text"


class MismatchKind(Enum):
    """Kinds of structural drift detected between source and translation."""
    PLACEHOLDER = "placeholder mismatch"
    URL = "url mismatch"
    EMAIL = "email mismatch"
    MARKUP_TOKEN = "markup token mismatch"


@dataclass
class ExtractedLeaf:
    """A translatable string and where it came from.

    Attributes:
        address: Path to the leaf in the original document
        source_value: Text to translate (markup already replaced by tokens)
        context: Role hint derived from the leaf's key
        markup_map: Token index -> original tag, when the leaf carried markup
    """
    address: Address
    source_value: str
    context: ContextTag = ContextTag.TEXT
    markup_map: Optional[Dict[int, str]] = None

    @property
    def has_markup(self) -> bool:
        return bool(self.markup_map)


@dataclass
class Chunk:
    """Contiguous slice of the extracted leaves sent in one request.

    Attributes:
        index: Zero-based chunk position
        start: Offset of the first leaf in the full leaf list
        leaves: The leaves of this chunk, in order
    """
    index: int
    start: int
    leaves: List[ExtractedLeaf] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.leaves)

    @property
    def number(self) -> int:
        """One-based chunk number used in logs and messages."""
        return self.index + 1


@dataclass(frozen=True)
class TranslationIssue:
    """A soft, reportable drift in one translated leaf."""
    chunk_index: int
    leaf_index: int
    kind: MismatchKind

    def describe(self) -> str:
        return f"chunk {self.chunk_index + 1} index {self.leaf_index}: {self.kind.value}"


@dataclass
class ChunkOutcome:
    """Settled result of one chunk.

    ``values`` always holds exactly one string per leaf of the chunk, either
    translated or the source fallback.
    """
    chunk_index: int
    values: List[str]
    issues: List[TranslationIssue] = field(default_factory=list)
    failed: bool = False
    error: Optional[str] = None
    attempts: int = 0


@dataclass
class LocalizationResult:
    """Outcome of a localization run.

    Attributes:
        success: False only on hard failure
        data: Localized document (None when binding was impossible)
        issues: Soft issues found during validation
        error: Hard-failure description
    """
    success: bool
    data: Value = None
    issues: List[TranslationIssue] = field(default_factory=list)
    error: Optional[str] = None
    failed_chunks: List[int] = field(default_factory=list)

    @property
    def summary(self) -> Optional[str]:
        """Non-fatal summary of soft issues, if any."""
        if not self.issues:
            return None
        return f"Completed with {len(self.issues)} soft issues"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return {
            'success': self.success,
            'data': self.data,
            'issues': [issue.describe() for issue in self.issues],
            'summary': self.summary,
            'error': self.error,
        }
