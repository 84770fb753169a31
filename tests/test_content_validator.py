"""Tests for the content validator."""
import pytest

from resume_worker.services.content.validator import (
    BulletRange,
    ContentValidator,
    IssueCode,
    ValidationRules,
    count_bullets,
    detect_format,
)

GOOD_EXPERIENCE = (
    "• Led migration of billing services to Kubernetes, cutting deploy time by 60%\n"
    "• Designed event-driven reconciliation pipeline processing 2M records per day"
)


@pytest.fixture
def validator():
    return ContentValidator()


class TestFormatDetection:
    def test_counts_each_bullet_marker(self):
        assert count_bullets("• one\n- two\n* three\nplain") == 3

    def test_indented_bullets_count(self):
        assert count_bullets("  - nested\n\t• tabbed") == 2

    def test_detect_format_ratios(self):
        assert detect_format("- a\n- b\n- c") == "bullet"
        assert detect_format("- a\n- b\nprose line\nanother") == "mixed"
        assert detect_format("Just a paragraph.\nAnd another one.") == "prose"


class TestContentValidator:
    def test_valid_experience(self, validator):
        rules = ContentValidator.get_rules_for_section("experience")
        result = validator.validate(GOOD_EXPERIENCE, rules)

        assert result.is_valid
        assert result.errors == []
        assert result.metadata.bullet_points == 2
        assert result.metadata.format == "bullet"

    def test_empty_content_is_quality_issue(self, validator):
        result = validator.validate("", ValidationRules())
        assert not result.is_valid
        assert [e.code for e in result.errors] == [IssueCode.QUALITY_ISSUE]

    def test_non_string_content_is_quality_issue(self, validator):
        result = validator.validate(None, ValidationRules())
        assert not result.is_valid
        assert result.errors[0].code == IssueCode.QUALITY_ISSUE

    def test_too_short_and_too_long(self, validator):
        rules = ValidationRules(min_length=20, max_length=30)
        assert validator.validate("short", rules).errors[0].code == IssueCode.TOO_SHORT
        assert validator.validate("x" * 31, rules).errors[0].code == IssueCode.TOO_LONG

    def test_length_ignores_surrounding_whitespace(self, validator):
        rules = ValidationRules(min_length=5, max_length=5)
        assert validator.validate("   hello \n", rules).is_valid

    def test_forbidden_phrase_case_insensitive(self, validator):
        rules = ValidationRules(language="en")
        result = validator.validate("Migration status: TBD after review", rules)
        assert not result.is_valid
        assert result.errors[0].code == IssueCode.FORBIDDEN_PHRASE
        assert "tbd" in result.errors[0].message

    def test_forbidden_phrases_follow_language(self, validator):
        text = "Não sei descrever este projeto"
        assert not validator.validate(text, ValidationRules(language="pt-BR")).is_valid
        assert validator.validate(text, ValidationRules(language="en")).is_valid

    def test_unknown_language_uses_english_list(self, validator):
        result = validator.validate("Unable to summarize", ValidationRules(language="de"))
        assert result.errors[0].code == IssueCode.FORBIDDEN_PHRASE

    def test_prose_for_bullet_section_has_single_format_error(self, validator):
        rules = ValidationRules(required_format="bullet")
        result = validator.validate("A paragraph describing work on billing services.", rules)

        assert not result.is_valid
        assert len(result.errors) == 1
        assert result.errors[0].code == IssueCode.WRONG_FORMAT

    def test_bullets_in_prose_section_only_warn(self, validator):
        rules = ValidationRules(required_format="prose")
        result = validator.validate("- first point\n- second point", rules)

        assert result.is_valid
        assert result.warnings == ["Expected prose format but received bullet points"]

    def test_bullet_count_out_of_range(self, validator):
        rules = ValidationRules(bullet_point_count=BulletRange(min=2, max=3))
        result = validator.validate("- only one bullet", rules)

        assert not result.is_valid
        assert result.errors[0].code == IssueCode.MISSING_BULLETS
        assert "2-3" in result.errors[0].message

    def test_missing_keywords_only_warn(self, validator):
        rules = ValidationRules(required_keywords=("Python", "Go"))
        result = validator.validate("Built services in Python", rules)

        assert result.is_valid
        assert result.warnings == ["Missing keywords: Go"]

    def test_reading_time_rounds_up(self, validator):
        result = validator.validate("x" * 201, ValidationRules())
        assert result.metadata.estimated_reading_time == 2


class TestSectionRules:
    def test_experience_defaults(self):
        rules = ContentValidator.get_rules_for_section("experience", "es")
        assert (rules.min_length, rules.max_length) == (100, 300)
        assert rules.required_format == "bullet"
        assert rules.bullet_point_count == BulletRange(min=2, max=4)
        assert "no sé" in rules.forbidden_phrases

    def test_profile_forbids_first_person(self, validator):
        rules = ContentValidator.get_rules_for_section("profile")
        assert "i am" in rules.forbidden_phrases

        text = "I am a backend engineer with a decade of experience building reliable payment systems."
        result = validator.validate(text, rules)
        assert any(e.code == IssueCode.FORBIDDEN_PHRASE for e in result.errors)

    def test_unknown_section_accepts_any_non_empty_content(self, validator):
        rules = ContentValidator.get_rules_for_section("hobbies")
        assert rules.forbidden_phrases == ()
        assert validator.validate("TODO: error", rules).is_valid
