"""
Program text selection and templating

Picks the language variant of a grabbed program's text and renders the
configured title and description templates from it.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from epg_updater.schemas import LanguageText


STAR_RATING_SYMBOLS = {
    1: "*",
    2: "*+",
    3: "**",
    4: "**+",
    5: "***",
    6: "***+",
    7: "****",
}

PLACEHOLDER_PATTERN = re.compile(
    r"%(TITLE|DESCRIPTION|GENRE|STARRATING_STR|STARRATING|CLASSIFICATION|PARENTALRATING|NEWLINE)%"
)


@dataclass(frozen=True, slots=True)
class ProgramText:
    """Text fields of the selected language variant."""
    title: str = ""
    description: str = ""
    genre: str = ""
    star_rating: int = 0
    classification: str = ""
    parental_rating: int = -1


@dataclass(frozen=True, slots=True)
class RenderedProgram:
    title: str
    description: str
    genre: str
    star_rating: int
    classification: str
    parental_rating: int


def star_rating_symbol(star_rating: int) -> str:
    return STAR_RATING_SYMBOLS.get(star_rating, "")


def select_language_text(texts: Sequence[LanguageText], epg_languages: str) -> ProgramText:
    """
    Choose which language variant of a program's text to use.

    An entry tagged "all" always wins. Otherwise the first entry whose tag
    occurs in ``epg_languages`` (case-insensitive), or the first entry when
    nothing matches or no languages are configured.
    """
    if not texts:
        return ProgramText()

    chosen = next((text for text in texts if text.language.lower() == "all"), None)
    if chosen is None:
        languages = epg_languages.lower()
        chosen = next(
            (text for text in texts if not languages or text.language.lower() in languages),
            texts[0],
        )

    return ProgramText(
        title=chosen.title or "",
        description=chosen.description or "",
        genre=chosen.genre or "",
        star_rating=chosen.star_rating,
        classification=chosen.classification or "",
        parental_rating=chosen.parental_rating,
    )


def render_template(template: str, values: dict[str, str]) -> str:
    """Replace every known %PLACEHOLDER% in one pass; substituted text is not re-expanded."""
    return PLACEHOLDER_PATTERN.sub(lambda match: values[match.group(0)], template)


def template_values(text: ProgramText) -> dict[str, str]:
    return {
        "%TITLE%": text.title,
        "%DESCRIPTION%": text.description,
        "%GENRE%": text.genre,
        "%STARRATING%": str(text.star_rating),
        "%STARRATING_STR%": star_rating_symbol(text.star_rating),
        "%CLASSIFICATION%": text.classification,
        "%PARENTALRATING%": str(text.parental_rating),
        "%NEWLINE%": "\n",
    }


class TemplateRenderer:
    def __init__(self, title_template: str, description_template: str, epg_languages: str = "") -> None:
        self.title_template = title_template
        self.description_template = description_template
        self.epg_languages = epg_languages

    @classmethod
    def from_config(cls, config) -> TemplateRenderer:
        return cls(config.title_template, config.description_template, config.epg_languages)

    def render(self, texts: Sequence[LanguageText]) -> RenderedProgram:
        text = select_language_text(texts, self.epg_languages)
        values = template_values(text)
        return RenderedProgram(
            title=render_template(self.title_template, values),
            description=render_template(self.description_template, values),
            genre=text.genre,
            star_rating=text.star_rating,
            classification=text.classification,
            parental_rating=text.parental_rating,
        )
