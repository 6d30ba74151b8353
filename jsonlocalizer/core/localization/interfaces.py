"""
Protocol interfaces for localization components.

Defines the contracts of the external collaborators the engine relies on,
so that alternative implementations (and test doubles) can be plugged in.
"""

from typing import Dict, Optional, Protocol


class ITranslationCapability(Protocol):
    """Interface for the external text-translation step."""

    async def translate(
        self,
        source_language: str,
        target_language: str,
        topic: Optional[str],
        request_map: Dict[str, str],
        context_hints: Optional[Dict[str, str]] = None,
        repair_hint: Optional[str] = None
    ) -> Dict[str, str]:
        """Translate every value of a numbered map.

        Args:
            source_language: Language of the values
            target_language: Language to translate into
            topic: Optional subject of the document, used as a style hint
            request_map: Keys "0".."n-1" mapped to source values
            context_hints: Optional key -> role hint ("title", "message"...)
            repair_hint: Description of what was wrong with a previous answer

        Returns:
            Mapping with the same keys as ``request_map``

        Raises:
            Any exception on transport or parse failure
        """
        ...


class IMarkupRepair(Protocol):
    """Interface for markup balance repair. Idempotent, never raises."""

    def __call__(self, html: str) -> str:
        ...
