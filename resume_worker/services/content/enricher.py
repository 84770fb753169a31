"""
Content enricher.
Requests an AI rewrite per item, validates it and resolves the field to use.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field, ValidationError

from resume_worker.config import Settings, settings as default_settings
from resume_worker.models.entities import EnhancementMetadata, EnhancementStatus, SourceEntity
from resume_worker.models.jobs import Job
from resume_worker.services.content.prompts import PromptContext, PromptRegistry, registry
from resume_worker.services.content.validator import BulletRange, ContentValidator, ValidationRules
from resume_worker.services.llm.base import (
    ContentGenerationRequest,
    ContentProvider,
    ContentType,
    UserContext,
)
from resume_worker.services.retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=SourceEntity)

FallbackPolicy = Literal["raw", "truncate", "skip"]

SECTION_CONTENT_TYPES: Dict[str, ContentType] = {
    "experience": ContentType.EXPERIENCE,
    "project": ContentType.EXPERIENCE,
    "post": ContentType.SUMMARY,
    "publication": ContentType.SUMMARY,
    "profile": ContentType.PROFILE,
}

# Lenient range used when a section asks for a bullet count but sets no range;
# generated text rarely hits an exact count.
LENIENT_BULLET_RANGE = BulletRange(min=1, max=50)


class SectionConfig(BaseModel):
    """How one section is enriched."""

    enable: bool = True
    format: Literal["bullet", "prose", "mixed"] = "prose"
    min_length: int = 0
    max_length: int = 500
    focus_on: List[str] = Field(default_factory=lambda: ["impact"])
    bullet_points: Optional[int] = None
    bullet_point_range: Optional[BulletRange] = None
    include_metrics: bool = False
    tone: Optional[Literal["formal", "casual", "technical", "business"]] = None


DEFAULT_SECTION_CONFIGS: Dict[str, SectionConfig] = {
    "experience": SectionConfig(
        format="bullet",
        min_length=100,
        max_length=300,
        focus_on=["impact", "technical"],
        bullet_points=2,
        include_metrics=True,
    ),
    "project": SectionConfig(
        format="bullet",
        min_length=80,
        max_length=250,
        focus_on=["technical", "business"],
        bullet_points=1,
        include_metrics=True,
    ),
    "post": SectionConfig(format="prose", min_length=40, max_length=150, focus_on=["learning", "technical"]),
    "publication": SectionConfig(format="prose", min_length=50, max_length=200, focus_on=["technical", "innovation"]),
    "profile": SectionConfig(format="prose", min_length=80, max_length=350, focus_on=["impact", "leadership"]),
}


class EnrichmentConfig(BaseModel):
    """Job-wide enrichment settings."""

    job_description: str
    target_role: Optional[str] = None
    target_industry: Optional[str] = None
    years_required: Optional[int] = None
    skill_keywords: List[str] = Field(default_factory=list)
    language: str = "en"
    fallback_on_validation_failure: FallbackPolicy = "raw"
    sections: Dict[str, SectionConfig] = Field(default_factory=dict)

    @classmethod
    def from_job(cls, job: Job, settings: Settings = default_settings) -> "EnrichmentConfig":
        """Read enrichment options from the job metadata, defaulting to settings."""
        meta = job.metadata or {}
        sections: Dict[str, SectionConfig] = {}
        overrides = meta.get("aiSections") if isinstance(meta.get("aiSections"), dict) else {}
        for section, default in DEFAULT_SECTION_CONFIGS.items():
            override = overrides.get(section)
            if not isinstance(override, dict):
                sections[section] = default
                continue
            try:
                sections[section] = SectionConfig.model_validate({**default.model_dump(), **override})
            except ValidationError as e:
                logger.warning(f"Ignoring invalid aiSections.{section} override for job {job.jobId}: {e}")
                sections[section] = default

        keywords = meta.get("skillKeywords")
        return cls(
            job_description=job.jobDescription,
            target_role=meta.get("targetRole"),
            target_industry=meta.get("targetIndustry"),
            years_required=meta.get("yearsRequired"),
            skill_keywords=[str(k) for k in keywords] if isinstance(keywords, list) else [],
            language=meta.get("language") or settings.AI_DEFAULT_LANGUAGE,
            fallback_on_validation_failure=(
                meta.get("fallbackOnValidationFailure") or settings.AI_FALLBACK_ON_VALIDATION_FAILURE
            ),
            sections=sections,
        )

    def section(self, name: str) -> SectionConfig:
        return self.sections.get(name) or DEFAULT_SECTION_CONFIGS.get(name) or SectionConfig(enable=False)


class ContentEnricher:
    """Rewrites item content with the AI provider and validates the result."""

    def __init__(
        self,
        provider: ContentProvider,
        validator: Optional[ContentValidator] = None,
        prompts: PromptRegistry = registry,
        retry_policy: Optional[RetryPolicy] = None,
        max_concurrency: int = 5,
    ):
        self.provider = provider
        self.validator = validator or ContentValidator()
        self.prompts = prompts
        self.retry_policy = retry_policy
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))

    def build_instruction(self, section: str, section_config: SectionConfig, job_config: EnrichmentConfig) -> str:
        context = PromptContext(
            target_role=job_config.target_role,
            skill_keywords=job_config.skill_keywords,
            focus_on=section_config.focus_on,
            min_length=section_config.min_length,
            max_length=section_config.max_length,
            bullet_points=section_config.bullet_points,
            include_metrics=section_config.include_metrics,
            tone=section_config.tone,
            target_industry=job_config.target_industry,
            years_required=job_config.years_required,
        )
        return self.prompts.build(section, job_config.language, context)

    def build_rules(self, section: str, section_config: SectionConfig, language: str) -> ValidationRules:
        """Section defaults overridden by the section's configured limits."""
        rules = ContentValidator.get_rules_for_section(section, language)
        update: Dict[str, Any] = {
            "min_length": section_config.min_length,
            "max_length": section_config.max_length,
            "required_format": section_config.format if section_config.format != "mixed" else None,
        }
        if section_config.bullet_point_range is not None:
            update["bullet_point_count"] = section_config.bullet_point_range
        elif section_config.bullet_points:
            update["bullet_point_count"] = LENIENT_BULLET_RANGE
        return rules.model_copy(update=update)

    def _metadata(
        self,
        status: EnhancementStatus,
        content: str,
        section_config: SectionConfig,
        job_config: EnrichmentConfig,
        **fields: Any,
    ) -> EnhancementMetadata:
        return EnhancementMetadata(
            status=status,
            validated=fields.pop("validated", False),
            length_original=len(content),
            length_optimized=fields.pop("length_optimized", 0),
            format=section_config.format,
            focus_on=",".join(section_config.focus_on),
            language=job_config.language,
            **fields,
        )

    async def enhance_item(
        self,
        item: E,
        content: str,
        section: str,
        section_config: SectionConfig,
        job_config: EnrichmentConfig,
    ) -> E:
        """
        Enhance a single item.

        Args:
            item: Source record
            content: Raw text to rewrite
            section: Section name (experience, project, post, publication, profile)
            section_config: Section enrichment settings
            job_config: Job-wide enrichment settings

        Returns:
            A copy of the item carrying ``optimized`` and ``enhancement``, or the
            item itself when the section is disabled or the fallback is ``skip``.
        """
        if not section_config.enable:
            logger.debug(f"Section {section} enhancement disabled, skipping item {item.id}")
            return item

        if not content or not content.strip():
            return item.model_copy(
                update={
                    "enhancement": self._metadata(
                        EnhancementStatus.SKIPPED, "", section_config, job_config, error="No content to enhance"
                    )
                }
            )

        try:
            request = ContentGenerationRequest(
                type=SECTION_CONTENT_TYPES.get(section, ContentType.EXPERIENCE),
                jobDescription=job_config.job_description,
                userContext=UserContext(experience=content, skills=job_config.skill_keywords),
                instruction=self.build_instruction(section, section_config, job_config),
            )

            logger.debug(
                f"Requesting AI enhancement for {section} item {item.id} "
                f"({len(content)} chars, language={job_config.language})"
            )
            async with self._semaphore:
                response = await with_retry(
                    lambda: self.provider.generate_content(request),
                    f"ai_enhance_{section}",
                    self.retry_policy,
                )

            rules = self.build_rules(section, section_config, job_config.language)
            validation = self.validator.validate(response.content, rules)

            logger.info(
                f"AI enhancement completed for {section} item {item.id}: "
                f"validated={validation.is_valid} length={len(response.content)} tokens={response.tokens_used}"
            )

            if validation.is_valid:
                return item.model_copy(
                    update={
                        "optimized": response.content,
                        "enhancement": self._metadata(
                            EnhancementStatus.SUCCESS,
                            content,
                            section_config,
                            job_config,
                            validated=True,
                            length_optimized=len(response.content),
                            tokens_used=response.tokens_used,
                            model=response.model,
                        ),
                    }
                )

            policy = job_config.fallback_on_validation_failure
            logger.warning(
                f"AI response validation failed for {section} item {item.id} "
                f"(fallback={policy}): {[e.message for e in validation.errors]}"
            )
            if policy == "skip":
                return item

            fallback = response.content[: section_config.max_length] if policy == "truncate" else content
            return item.model_copy(
                update={
                    "optimized": fallback,
                    "enhancement": self._metadata(
                        EnhancementStatus.FAILED,
                        content,
                        section_config,
                        job_config,
                        length_optimized=len(fallback),
                        tokens_used=response.tokens_used,
                        model=response.model,
                        error=validation.errors[0].message if validation.errors else "Validation failed",
                    ),
                }
            )

        except Exception as e:
            logger.warning(
                f"AI enhancement failed for {section} item {item.id}, using raw content: {e}"
            )
            return item.model_copy(
                update={
                    "enhancement": self._metadata(
                        EnhancementStatus.FAILED, content, section_config, job_config, tokens_used=0, error=str(e)
                    )
                }
            )

    async def enhance_items(
        self,
        items: Sequence[E],
        section: str,
        section_config: SectionConfig,
        job_config: EnrichmentConfig,
        extractor: Callable[[E], str] = lambda item: item.content,
    ) -> List[E]:
        """Enhance a batch concurrently, bounded by the enricher's concurrency cap.

        Results keep the input order. Disabled sections and empty batches pass
        through untouched.
        """
        if not section_config.enable or not items:
            return list(items)

        logger.info(f"Starting batch enhancement: {section} ({len(items)} items, language={job_config.language})")

        results = await asyncio.gather(
            *(
                self.enhance_item(item, extractor(item), section, section_config, job_config)
                for item in items
            )
        )

        success_count = sum(1 for r in results if r.enhancement is not None and r.enhancement.accepted)
        logger.info(f"Batch enhancement completed: {section} {success_count}/{len(items)} enhanced")
        return list(results)
