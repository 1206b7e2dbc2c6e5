"""
Prompt construction for code generation.
"""

import re

from promptcode.languages import LANGUAGES, get_language

SYSTEM_PROMPT = (
    "You are a code generator. Reply with raw source code only: "
    "no explanations, no markdown formatting, no code fences."
)

_FENCE = re.compile(r"^```[\w+#.-]*[ \t]*\r?\n(?P<body>.*?)\r?\n?```$", re.DOTALL)


def build_prompt(query: str, language: str) -> str:
    """Build the deterministic instruction prompt for *query* in *language*."""
    config = get_language(language)
    label = config.label if config else language

    conventions = "\n".join(
        f"    - For {cfg.label}, {cfg.conventions}" for cfg in LANGUAGES.values()
    )

    return f"""Generate complete, executable {label} code for the following request.
    The code should be production-ready, well-commented, and include all necessary imports/includes.
    Do not include any explanations or markdown formatting - only return the raw code.

    Request: {query}

    Requirements:
    - Include proper error handling
    - Add meaningful comments
    - Ensure the code is complete and runnable
{conventions}"""


def strip_code_fences(text: str) -> str:
    """Remove one markdown fence wrapping the whole reply, if the model added it."""
    stripped = text.strip()
    match = _FENCE.match(stripped)
    if match is None:
        return stripped
    return match.group("body").strip()
