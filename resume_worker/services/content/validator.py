"""
Content validator.
Scores AI-generated text against length, format and forbidden-content rules.
"""
import logging
import math
import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

DEFAULT_FORBIDDEN_PHRASES: Dict[str, Tuple[str, ...]] = {
    "en": ("i don't know", "error", "unable to", "[placeholder]", "todo", "wip", "tbd"),
    "pt-BR": ("não sei", "erro", "incapaz de", "[placeholder]", "todo", "wip", "tbd"),
    "es": ("no sé", "error", "incapaz", "[placeholder]", "todo", "wip", "tbd"),
    "fr": ("ne sais pas", "erreur", "incapable", "[placeholder]", "todo", "wip", "tbd"),
}

_BULLET_LINE = re.compile(r"^[ \t]*[•\-*]", re.MULTILINE)

# Characters read per unit of estimated reading time
READING_RATE = 200


class IssueCode(str, Enum):
    TOO_SHORT = "TOO_SHORT"
    TOO_LONG = "TOO_LONG"
    WRONG_FORMAT = "WRONG_FORMAT"
    FORBIDDEN_PHRASE = "FORBIDDEN_PHRASE"
    MISSING_BULLETS = "MISSING_BULLETS"
    QUALITY_ISSUE = "QUALITY_ISSUE"


class BulletRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int
    max: int


class ValidationRules(BaseModel):
    """Rules for one (section, language) pair.

    ``forbidden_phrases=None`` means the language default list applies.
    """

    model_config = ConfigDict(frozen=True)

    min_length: Optional[int] = None
    max_length: Optional[int] = None
    required_format: Optional[Literal["bullet", "prose"]] = None
    bullet_point_count: Optional[BulletRange] = None
    forbidden_phrases: Optional[Tuple[str, ...]] = None
    required_keywords: Tuple[str, ...] = ()
    language: str = DEFAULT_LANGUAGE


class ValidationIssue(BaseModel):
    code: IssueCode
    message: str
    severity: Literal["error", "warning"]
    field: Optional[str] = None
    suggestion: Optional[str] = None


class ContentMetadata(BaseModel):
    length: int
    bullet_points: int
    format: Literal["bullet", "prose", "mixed"]
    estimated_reading_time: int


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    metadata: ContentMetadata


_SECTION_RULES: Dict[str, Dict[str, Any]] = {
    "experience": {
        "min_length": 100,
        "max_length": 300,
        "required_format": "bullet",
        "bullet_point_count": BulletRange(min=2, max=4),
    },
    "project": {
        "min_length": 80,
        "max_length": 250,
        "required_format": "bullet",
        "bullet_point_count": BulletRange(min=1, max=3),
    },
    "post": {"min_length": 40, "max_length": 150, "required_format": "prose"},
    "profile": {"min_length": 80, "max_length": 350, "required_format": "prose"},
    "publication": {"min_length": 50, "max_length": 200, "required_format": "prose"},
}

# First-person phrasing is never acceptable in a profile summary
_EXTRA_FORBIDDEN: Dict[str, Tuple[str, ...]] = {
    "profile": ("i am", "i have", "i think"),
}


def forbidden_phrases_for(language: str) -> Tuple[str, ...]:
    return DEFAULT_FORBIDDEN_PHRASES.get(language, DEFAULT_FORBIDDEN_PHRASES[DEFAULT_LANGUAGE])


def count_bullets(content: str) -> int:
    return len(_BULLET_LINE.findall(content))


def detect_format(content: str) -> str:
    """Classify content as bullet, mixed or prose by its share of bullet lines."""
    lines = [line for line in content.split("\n") if line.strip()]
    bullet_lines = [line for line in lines if _BULLET_LINE.match(line)]
    bullet_ratio = len(bullet_lines) / max(len(lines), 1)

    if bullet_ratio > 0.7:
        return "bullet"
    if bullet_ratio > 0.3:
        return "mixed"
    return "prose"


def content_metadata(content: str) -> ContentMetadata:
    text = content.strip() if isinstance(content, str) else ""
    length = len(text)
    return ContentMetadata(
        length=length,
        bullet_points=count_bullets(text),
        format=detect_format(text),
        estimated_reading_time=math.ceil(length / READING_RATE),
    )


class ContentValidator:
    """Stateless rule engine for generated resume content."""

    def validate(self, content: Any, rules: ValidationRules) -> ValidationResult:
        """
        Validate a piece of generated text.

        Args:
            content: Generated text
            rules: Rules for the content's section and language

        Returns:
            ValidationResult; ``is_valid`` is False iff at least one error
        """
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        if not content or not isinstance(content, str):
            errors.append(
                ValidationIssue(
                    code=IssueCode.QUALITY_ISSUE,
                    message="Response is empty or not a string",
                    severity="error",
                )
            )
            return ValidationResult(is_valid=False, errors=errors, metadata=content_metadata(""))

        trimmed = content.strip()
        lowered = trimmed.lower()
        length = len(trimmed)

        if rules.min_length and length < rules.min_length:
            errors.append(
                ValidationIssue(
                    code=IssueCode.TOO_SHORT,
                    message=f"Content too short: {length} chars (min: {rules.min_length})",
                    severity="error",
                    suggestion=f"Expand the response to at least {rules.min_length} characters",
                )
            )

        if rules.max_length and length > rules.max_length:
            errors.append(
                ValidationIssue(
                    code=IssueCode.TOO_LONG,
                    message=f"Content too long: {length} chars (max: {rules.max_length})",
                    severity="error",
                    suggestion=f"Reduce the response to {rules.max_length} characters or less",
                )
            )

        forbidden = (
            rules.forbidden_phrases
            if rules.forbidden_phrases is not None
            else forbidden_phrases_for(rules.language)
        )
        for phrase in forbidden:
            if phrase.lower() in lowered:
                errors.append(
                    ValidationIssue(
                        code=IssueCode.FORBIDDEN_PHRASE,
                        message=f'Contains forbidden phrase: "{phrase}"',
                        severity="error",
                    )
                )

        metadata = content_metadata(trimmed)
        bullet_count = metadata.bullet_points

        if rules.required_format == "bullet" and metadata.format != "bullet" and bullet_count == 0:
            errors.append(
                ValidationIssue(
                    code=IssueCode.WRONG_FORMAT,
                    message="Expected bullet-point format but received prose",
                    severity="error",
                    suggestion="Format response as bullet points starting with • or -",
                )
            )
        if rules.required_format == "prose" and metadata.format == "bullet":
            warnings.append(
                ValidationIssue(
                    code=IssueCode.WRONG_FORMAT,
                    message="Expected prose format but received bullet points",
                    severity="warning",
                    suggestion="Format response as continuous prose without bullet points",
                )
            )

        if rules.bullet_point_count is not None:
            low, high = rules.bullet_point_count.min, rules.bullet_point_count.max
            if bullet_count < low or bullet_count > high:
                errors.append(
                    ValidationIssue(
                        code=IssueCode.MISSING_BULLETS,
                        message=f"Expected {low}-{high} bullet points but got {bullet_count}",
                        severity="error",
                        suggestion="Add or remove bullet points to meet the requirement",
                    )
                )

        if rules.required_keywords:
            missing = [kw for kw in rules.required_keywords if kw.lower() not in lowered]
            if missing:
                warnings.append(
                    ValidationIssue(
                        code=IssueCode.QUALITY_ISSUE,
                        message=f"Missing keywords: {', '.join(missing)}",
                        severity="warning",
                    )
                )

        is_valid = not any(issue.severity == "error" for issue in errors)

        logger.debug(
            f"Validation result: valid={is_valid} errors={len(errors)} "
            f"warnings={len(warnings)} length={length} bullets={bullet_count}"
        )

        return ValidationResult(
            is_valid=is_valid,
            errors=errors,
            warnings=[w.message for w in warnings],
            metadata=metadata,
        )

    @staticmethod
    def get_rules_for_section(section: str, language: str = DEFAULT_LANGUAGE) -> ValidationRules:
        """Default rules for a section; unknown sections get an empty rule set."""
        base = _SECTION_RULES.get(section)
        if base is None:
            return ValidationRules(language=language, forbidden_phrases=())

        phrases = forbidden_phrases_for(language) + _EXTRA_FORBIDDEN.get(section, ())
        return ValidationRules(language=language, forbidden_phrases=phrases, **base)
