"""
Static per-language configuration.

Plain lookup data shared by the prompt builder, the execution client,
the file store and the download endpoint.
"""

from dataclasses import dataclass
from typing import Literal

Language = Literal["python", "cpp", "java", "csharp"]


@dataclass(frozen=True)
class LanguageConfig:
    """Everything the server needs to know about one target language."""

    label: str
    extension: str
    executor_language: str
    version_index: str
    content_type: str
    conventions: str


LANGUAGES: dict[str, LanguageConfig] = {
    "python": LanguageConfig(
        label="Python",
        extension=".py",
        executor_language="python3",
        version_index="4",
        content_type="text/x-python",
        conventions="include proper imports",
    ),
    "cpp": LanguageConfig(
        label="C++",
        extension=".cpp",
        executor_language="cpp17",
        version_index="0",
        content_type="text/x-c++src",
        conventions="include the necessary headers and a main() function",
    ),
    "java": LanguageConfig(
        label="Java",
        extension=".java",
        executor_language="java",
        version_index="4",
        content_type="text/x-java-source",
        conventions="include a proper class structure with a public static void main method",
    ),
    "csharp": LanguageConfig(
        label="C#",
        extension=".cs",
        executor_language="csharp",
        version_index="4",
        content_type="text/x-csharp",
        conventions="include a proper namespace and class structure with a static Main method",
    ),
}

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(LANGUAGES)

CONTENT_TYPES: dict[str, str] = {
    config.extension: config.content_type for config in LANGUAGES.values()
}

DEFAULT_CONTENT_TYPE = "text/plain"


def get_language(language: str) -> LanguageConfig | None:
    """Return the config for *language*, or ``None`` if unsupported."""
    return LANGUAGES.get(language)


def content_type_for(file_name: str) -> str:
    """Infer a download content type from the file extension."""
    _, dot, ext = file_name.rpartition(".")
    if not dot:
        return DEFAULT_CONTENT_TYPE
    return CONTENT_TYPES.get(f".{ext}", DEFAULT_CONTENT_TYPE)
