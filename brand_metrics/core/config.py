from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STOPLIST = (
    "bank,card,credit,debit,prepaid,financial,money,capital,express,one,"
    "rewards,cashback,travel,business,personal,premium,elite,"
    "gold,silver,platinum,diamond,black,blue,red,green,white"
)

DEFAULT_POSITIVE_KEYWORDS = (
    "leading,best,excellent,outstanding,superior,premium,advanced,"
    "innovative,reliable,trusted,comprehensive,strong,well-regarded,"
    "excel,attractive,competitive,expert,specialized,dedicated"
)
DEFAULT_NEGATIVE_KEYWORDS = (
    "poor,bad,worst,inferior,weak,unreliable,expensive,limited,"
    "outdated,slow,problematic,issues,concerns,disappointing,failing"
)


def _split_words(value: str) -> frozenset[str]:
    return frozenset(w.strip().lower() for w in value.split(",") if w.strip())


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Brand matching
    generic_stoplist: str = DEFAULT_STOPLIST  # comma-separated, extend per industry
    known_abbreviations: dict[str, list[str]] = {
        "american express": ["amex"],
        "bank of america": ["bofa"],
        "jpmorgan chase": ["jpm"],
    }
    fuzzy_similarity_threshold: float = 0.7
    domain_fuzzy_threshold: float = 0.85

    # Sentiment of mention sentences
    positive_keywords: str = DEFAULT_POSITIVE_KEYWORDS  # comma-separated
    negative_keywords: str = DEFAULT_NEGATIVE_KEYWORDS

    # Citation weighting (typeWeight)
    brand_citation_weight: float = 1.0
    earned_citation_weight: float = 0.9
    social_citation_weight: float = 0.8

    # Statistical smoothing
    citation_min_sample: float = 10.0  # total weighted citations in scope
    visibility_min_sample: int = 20  # distinct prompts in scope
    visibility_prior: float = 50.0
    confidence_z: float = 1.96  # 95% Wald interval

    # Batch scoring
    scoring_max_workers: int = 1

    def get_stoplist(self) -> frozenset[str]:
        return _split_words(self.generic_stoplist)

    def get_positive_keywords(self) -> frozenset[str]:
        return _split_words(self.positive_keywords)

    def get_negative_keywords(self) -> frozenset[str]:
        return _split_words(self.negative_keywords)


settings = Settings()


def validate_settings() -> None:
    """Validate engine settings. Called by callers on startup."""
    errors: list[str] = []

    for name in ("fuzzy_similarity_threshold", "domain_fuzzy_threshold"):
        value = getattr(settings, name)
        if not 0.0 < value <= 1.0:
            errors.append(f"{name.upper()} must be in (0, 1], got {value}")

    if settings.citation_min_sample <= 0:
        errors.append("CITATION_MIN_SAMPLE must be positive")
    if settings.visibility_min_sample <= 0:
        errors.append("VISIBILITY_MIN_SAMPLE must be positive")
    if not 0.0 <= settings.visibility_prior <= 100.0:
        errors.append("VISIBILITY_PRIOR must be a percentage between 0 and 100")

    for name in ("brand_citation_weight", "earned_citation_weight", "social_citation_weight"):
        if getattr(settings, name) < 0:
            errors.append(f"{name.upper()} must not be negative")

    overlap = settings.get_positive_keywords() & settings.get_negative_keywords()
    if overlap:
        errors.append(f"Sentiment keywords listed as both positive and negative: {', '.join(sorted(overlap))}")

    if settings.scoring_max_workers < 1:
        errors.append("SCORING_MAX_WORKERS must be at least 1")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
