"""
Prompt construction for numbered-map translation requests.
"""

import json
from typing import Dict, NamedTuple, Optional

from jsonlocalizer.config import create_markup_token

TAG0 = create_markup_token(0)
TAG1 = create_markup_token(1)

# Style guidance per leaf role
CONTEXT_GUIDANCE = {
    "title": "short, headline style",
    "email_subject": "email subject line, concise and natural",
    "description": "descriptive sentence",
    "content": "body text, keep paragraph structure",
    "message": "conversational message",
    "explanation": "clear explanatory tone",
}


class PromptPair(NamedTuple):
    """A pair of system and user prompts for LLM translation."""
    system: str
    user: str


PRESERVATION_SECTION = f"""# TOKEN PRESERVATION (CRITICAL)

Values may contain tokens like {TAG0}, {TAG1}. They stand for HTML tags
that have been temporarily removed.

**MANDATORY RULES:**
1. Keep ALL {TAG0}-style tokens EXACTLY as they appear, in a sensible position
2. Keep placeholders unchanged: %s, %d, {{name}}, {{{{name}}}}
3. In ICU blocks such as {{count, plural, one {{# item}} other {{# items}}}},
   translate only the text inside the branches
4. Keep URLs and email addresses unchanged
5. Keep leading and trailing spaces of each value

**Example:**
English: "Click {TAG0}here{TAG1} to reset, {{name}}"
✅ CORRECT: "Cliquez {TAG0}ici{TAG1} pour réinitialiser, {{name}}"
❌ WRONG: "Cliquez ici pour réinitialiser, {{nom}}" (tokens removed, placeholder translated)
"""


def _build_context_section(context_hints: Optional[Dict[str, str]]) -> str:
    """List the keys whose role calls for a particular style."""
    if not context_hints:
        return ""
    lines = [
        f'- "{key}": {CONTEXT_GUIDANCE[role]}'
        for key, role in context_hints.items()
        if role in CONTEXT_GUIDANCE
    ]
    if not lines:
        return ""
    return "# STYLE HINTS\n\n" + "\n".join(lines) + "\n\n"


def generate_json_translation_prompt(
    request_map: Dict[str, str],
    source_language: str = "English",
    target_language: str = "French",
    topic: Optional[str] = None,
    context_hints: Optional[Dict[str, str]] = None,
    repair_hint: Optional[str] = None
) -> PromptPair:
    """
    Generate the prompts for one numbered-map request.

    Args:
        request_map: Keys "0".."n-1" mapped to source values
        source_language: Source language name
        target_language: Target language name
        topic: Optional subject of the document
        context_hints: Optional key -> role ("title", "message"...)
        repair_hint: What was wrong with the previous answer, if any

    Returns:
        PromptPair: A named tuple with 'system' and 'user' prompts
    """
    if topic:
        topic_context = f"You are localizing content about {topic}. Use the terminology of this field."
    else:
        topic_context = "You are localizing user-facing application content."

    last_key = len(request_map) - 1

    system_prompt = f"""You are a professional {target_language} translator and localizer.

{topic_context}

# TRANSLATION PRINCIPLES

Translate {source_language} to {target_language}.

**PRIORITY ORDER:**
1. Preserve exact names
2. Match original tone and formality
3. Use natural {target_language} phrasing - never word-for-word
4. Translate idioms to {target_language} equivalents

{PRESERVATION_SECTION}
# OUTPUT FORMAT

**CRITICAL OUTPUT RULES:**
1. Respond with ONE valid JSON object and nothing else
2. Use exactly the keys "0".."{last_key}" of the input, one translated string per key
3. Do NOT add explanations, comments, notes, or markdown fences
4. **WRITE EVERY VALUE IN {target_language.upper()}**"""

    repair_block = ""
    if repair_hint:
        repair_block = f"# CORRECTION\n\n{repair_hint}\n\n"

    user_prompt = f"""{repair_block}{_build_context_section(context_hints)}# VALUES TO TRANSLATE

Localize these {source_language} values to {target_language} ONLY. Follow all system rules above.

INPUT:
{json.dumps(request_map, ensure_ascii=False, indent=2)}

OUTPUT ({target_language} ONLY, valid JSON object with keys "0".."{last_key}"):"""

    return PromptPair(system=system_prompt.strip(), user=user_prompt.strip())
