"""Content enrichment services."""

from .enricher import ContentEnricher, EnrichmentConfig, SectionConfig
from .validator import ContentValidator, ValidationResult, ValidationRules

__all__ = [
    'ContentEnricher',
    'ContentValidator',
    'EnrichmentConfig',
    'SectionConfig',
    'ValidationResult',
    'ValidationRules',
]
