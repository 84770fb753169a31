"""
Instruction templates for AI content enrichment.

Templates are registered per (section, language). Adding a language or a
section means registering new template functions; callers never change.
"""
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

DEFAULT_LANGUAGE = "en"


class PromptContext(BaseModel):
    """Values a template may interpolate."""

    target_role: Optional[str] = None
    skill_keywords: List[str] = Field(default_factory=list)
    focus_on: List[str] = Field(default_factory=list)
    min_length: int = 0
    max_length: int = 0
    bullet_points: Optional[int] = None
    include_metrics: bool = False
    tone: Optional[str] = None
    target_industry: Optional[str] = None
    years_required: Optional[int] = None

    @property
    def focus(self) -> str:
        return " and ".join(self.focus_on)

    @property
    def skills(self) -> str:
        return ", ".join(self.skill_keywords[:5])

    @property
    def length_range(self) -> str:
        return f"{self.min_length}-{self.max_length}"

    def bullet_range(self, default_low: int) -> str:
        if self.bullet_points:
            return f"{self.bullet_points}-{self.bullet_points + 1}"
        return f"{default_low}-{default_low + 1}"

    def role(self, default: str) -> str:
        return self.target_role or default

    def metrics(self, clause: str) -> str:
        return f" {clause}" if self.include_metrics else ""


Template = Callable[[PromptContext], str]


class PromptRegistry:
    """Map of (section, language) to template function."""

    def __init__(self, default_language: str = DEFAULT_LANGUAGE):
        self.default_language = default_language
        self._templates: Dict[Tuple[str, str], Template] = {}

    def register(self, section: str, language: str) -> Callable[[Template], Template]:
        def decorator(template: Template) -> Template:
            self._templates[(section, language)] = template
            return template

        return decorator

    def get(self, section: str, language: str) -> Optional[Template]:
        return self._templates.get((section, language)) or self._templates.get(
            (section, self.default_language)
        )

    def build(self, section: str, language: str, context: PromptContext) -> str:
        """
        Render the instruction for a section, falling back to the default language.

        Tone, target industry and required experience from the job are appended
        in the template's language.
        """
        if (section, language) not in self._templates:
            language = self.default_language
        template = self._templates.get((section, language))
        if template is None:
            return ""
        return template(context) + job_context(context, language)

    @property
    def languages(self) -> List[str]:
        return sorted({language for _, language in self._templates})


# Sentences appended when the job sets tone, industry or required experience
_JOB_CONTEXT_PHRASES: Dict[str, Dict[str, str]] = {
    "en": {
        "tone": "Tone: {}.",
        "industry": "Target industry: {}.",
        "years": "The role asks for {}+ years of experience.",
    },
    "pt-BR": {
        "tone": "Tom: {}.",
        "industry": "Setor alvo: {}.",
        "years": "A vaga pede {}+ anos de experiência.",
    },
    "es": {
        "tone": "Tono: {}.",
        "industry": "Sector objetivo: {}.",
        "years": "El puesto pide {}+ años de experiencia.",
    },
    "fr": {
        "tone": "Ton : {}.",
        "industry": "Secteur visé : {}.",
        "years": "Le poste demande {}+ ans d'expérience.",
    },
}


def job_context(context: PromptContext, language: str) -> str:
    phrases = _JOB_CONTEXT_PHRASES.get(language) or _JOB_CONTEXT_PHRASES[DEFAULT_LANGUAGE]
    parts = []
    if context.tone:
        parts.append(phrases["tone"].format(context.tone))
    if context.target_industry:
        parts.append(phrases["industry"].format(context.target_industry))
    if context.years_required:
        parts.append(phrases["years"].format(context.years_required))
    return "".join(f" {part}" for part in parts)


registry = PromptRegistry()


# English

@registry.register("experience", "en")
def _experience_en(c: PromptContext) -> str:
    return (
        f"Rewrite as {c.bullet_range(2)} bullet points emphasizing {c.focus}. "
        f"Target role: {c.role('a professional position')}. Key skills: {c.skills}. "
        f'Format: bullet points, {c.length_range} chars total, no "I" statements, use active verbs.'
        f"{c.metrics('Include metrics/outcomes.')}"
    )


@registry.register("project", "en")
def _project_en(c: PromptContext) -> str:
    return (
        f"Rewrite as {c.bullet_range(1)} bullet point(s) highlighting technical complexity, "
        f"business impact, and your role. Target role: {c.role('your position')}. "
        f"Format: bullet points, {c.length_range} chars total."
        f"{c.metrics('Include specific metrics or outcomes.')}"
    )


@registry.register("post", "en")
def _post_en(c: PromptContext) -> str:
    return (
        f"Write a {c.length_range} character summary of this publication/post. "
        f"Highlight the {c.focus} relevant to a {c.role('professional')}. "
        "Format: prose, no bullet points."
    )


@registry.register("profile", "en")
def _profile_en(c: PromptContext) -> str:
    return (
        f"Write a professional summary for a {c.role('resume')}. "
        f"Highlight core competencies and key achievements. Focus: {c.focus}. "
        f'Format: prose, {c.length_range} chars, no "I" statements, third-person or benefit-focused.'
    )


@registry.register("publication", "en")
def _publication_en(c: PromptContext) -> str:
    return (
        f"Write a {c.length_range} character description of this work. "
        f"Highlight technical insights or business value relevant to a {c.role('professional')}. "
        "Format: prose."
    )


# Brazilian Portuguese

@registry.register("experience", "pt-BR")
def _experience_pt(c: PromptContext) -> str:
    return (
        f"Reescreva como {c.bullet_range(2)} pontos destacando {c.focus}. "
        f"Cargo alvo: {c.role('uma posição profissional')}. Competências-chave: {c.skills}. "
        f'Formato: pontos com marcadores, {c.length_range} caracteres no total, sem "eu", '
        "use verbos no ativo."
        f"{c.metrics('Inclua métricas/resultados.')}"
    )


@registry.register("project", "pt-BR")
def _project_pt(c: PromptContext) -> str:
    return (
        f"Reescreva como {c.bullet_range(1)} ponto(s) destacando complexidade técnica, "
        f"impacto nos negócios e seu papel. Cargo alvo: {c.role('sua posição')}. "
        f"Formato: pontos com marcadores, {c.length_range} caracteres."
        f"{c.metrics('Inclua métricas ou resultados específicos.')}"
    )


@registry.register("post", "pt-BR")
def _post_pt(c: PromptContext) -> str:
    return (
        f"Escreva um resumo de {c.length_range} caracteres desta publicação/post. "
        f"Destaque o {c.focus} relevante para um {c.role('profissional')}. "
        "Formato: prosa, sem marcadores."
    )


@registry.register("profile", "pt-BR")
def _profile_pt(c: PromptContext) -> str:
    return (
        f"Escreva um resumo profissional para um {c.role('currículo')}. "
        f"Destaque competências principais e realizações. Foco: {c.focus}. "
        f'Formato: prosa, {c.length_range} caracteres, sem "eu", terceira pessoa ou focado em benefícios.'
    )


@registry.register("publication", "pt-BR")
def _publication_pt(c: PromptContext) -> str:
    return (
        f"Escreva uma descrição de {c.length_range} caracteres deste trabalho. "
        f"Destaque insights técnicos ou valor empresarial relevante para um {c.role('profissional')}. "
        "Formato: prosa."
    )


# Spanish

@registry.register("experience", "es")
def _experience_es(c: PromptContext) -> str:
    return (
        f"Reescribe como {c.bullet_range(2)} puntos destacando {c.focus}. "
        f"Rol objetivo: {c.role('una posición profesional')}. Habilidades clave: {c.skills}. "
        f'Formato: viñetas, {c.length_range} caracteres en total, sin "yo", usa verbos en voz activa.'
        f"{c.metrics('Incluya métricas/resultados.')}"
    )


@registry.register("project", "es")
def _project_es(c: PromptContext) -> str:
    return (
        f"Reescribe como {c.bullet_range(1)} viñeta(s) destacando complejidad técnica, "
        f"impacto empresarial y su rol. Rol objetivo: {c.role('su posición')}. "
        f"Formato: viñetas, {c.length_range} caracteres."
        f"{c.metrics('Incluya métricas o resultados específicos.')}"
    )


@registry.register("post", "es")
def _post_es(c: PromptContext) -> str:
    return (
        f"Escriba un resumen de {c.length_range} caracteres de esta publicación. "
        f"Destaque el {c.focus} relevante para un {c.role('profesional')}. "
        "Formato: prosa, sin viñetas."
    )


@registry.register("profile", "es")
def _profile_es(c: PromptContext) -> str:
    return (
        f"Escriba un resumen profesional para un {c.role('currículum')}. "
        f"Destaque competencias principales y logros. Enfoque: {c.focus}. "
        f'Formato: prosa, {c.length_range} caracteres, sin "yo", tercera persona o enfocado en beneficios.'
    )


@registry.register("publication", "es")
def _publication_es(c: PromptContext) -> str:
    return (
        f"Escriba una descripción de {c.length_range} caracteres de este trabajo. "
        f"Destaque ideas técnicas o valor empresarial relevante para un {c.role('profesional')}. "
        "Formato: prosa."
    )


# French

@registry.register("experience", "fr")
def _experience_fr(c: PromptContext) -> str:
    return (
        f"Réécrivez en {c.bullet_range(2)} points mettant l'accent sur {c.focus}. "
        f"Rôle cible: {c.role('une position professionnelle')}. Compétences clés: {c.skills}. "
        f'Format: points à puces, {c.length_range} caractères au total, pas de "je", '
        "utilisez des verbes à la voix active."
        f"{c.metrics('Incluez des métriques/résultats.')}"
    )


@registry.register("project", "fr")
def _project_fr(c: PromptContext) -> str:
    return (
        f"Réécrivez en {c.bullet_range(1)} point(s) mettant l'accent sur la complexité technique, "
        f"l'impact commercial et votre rôle. Rôle cible: {c.role('votre position')}. "
        f"Format: points à puces, {c.length_range} caractères."
        f"{c.metrics('Incluez des métriques ou résultats spécifiques.')}"
    )


@registry.register("post", "fr")
def _post_fr(c: PromptContext) -> str:
    return (
        f"Écrivez un résumé de {c.length_range} caractères de cette publication. "
        f"Mettez en évidence le {c.focus} pertinent pour un {c.role('professionnel')}. "
        "Format: prose, sans puces."
    )


@registry.register("profile", "fr")
def _profile_fr(c: PromptContext) -> str:
    return (
        f"Écrivez un résumé professionnel pour un {c.role('CV')}. "
        f"Mettez en évidence les compétences principales et les réalisations. Accent: {c.focus}. "
        f'Format: prose, {c.length_range} caractères, pas de "je", troisième personne ou axé sur les avantages.'
    )


@registry.register("publication", "fr")
def _publication_fr(c: PromptContext) -> str:
    return (
        f"Écrivez une description de {c.length_range} caractères de ce travail. "
        f"Mettez en évidence les idées techniques ou la valeur commerciale pertinente "
        f"pour un {c.role('professionnel')}. Format: prose."
    )
