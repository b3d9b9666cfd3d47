import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    completion_model: str = os.getenv("COMPLETION_MODEL", "gpt-4o-mini")

    # Embedding
    embedding_backend: str = os.getenv("EMBEDDING_BACKEND", "openai")  # or "ollama"
    embedding_model: str | None = os.getenv("EMBEDDING_MODEL")  # None: provider default
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # Vector store
    vector_backend: str = os.getenv("VECTOR_BACKEND", "supabase")  # or "memory"
    vector_seed_file: str | None = os.getenv("VECTOR_SEED_FILE")

    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_key: str | None = os.getenv("SUPABASE_KEY")
    supabase_match_function: str = os.getenv("SUPABASE_MATCH_FUNCTION", "match_regulation_chunks")

    # Caches
    response_cache_size: int = int(os.getenv("RESPONSE_CACHE_SIZE", "100"))
    response_cache_ttl: int = int(os.getenv("RESPONSE_CACHE_TTL", "1800"))  # 30 min
    response_ttl_rag: int = int(os.getenv("RESPONSE_TTL_RAG", "3600"))
    response_ttl_plain: int = int(os.getenv("RESPONSE_TTL_PLAIN", "900"))
    embedding_cache_size: int = int(os.getenv("EMBEDDING_CACHE_SIZE", "500"))
    embedding_cache_ttl: int = int(os.getenv("EMBEDDING_CACHE_TTL", "86400"))  # 24 h
    cache_cleanup_interval: int = int(os.getenv("CACHE_CLEANUP_INTERVAL", "300"))
    fuzzy_match_threshold: float = float(os.getenv("FUZZY_MATCH_THRESHOLD", "0.6"))

    # Retrieval and ranking
    retrieval_threshold: float = float(os.getenv("RETRIEVAL_THRESHOLD", "0.3"))
    retrieval_max_results: int = int(os.getenv("RETRIEVAL_MAX_RESULTS", "5"))
    rank_top_k: int = int(os.getenv("RANK_TOP_K", "3"))
    similarity_weight: float = float(os.getenv("SIMILARITY_WEIGHT", "0.3"))
    lexical_weight: float = float(os.getenv("LEXICAL_WEIGHT", "0.7"))
    definition_bonus: float = float(os.getenv("DEFINITION_BONUS", "8.0"))
    article_bonus: float = float(os.getenv("ARTICLE_BONUS", "4.0"))
    housing_list_penalty: float = float(os.getenv("HOUSING_LIST_PENALTY", "2.0"))

    # Timeouts (seconds)
    draft_timeout: float = float(os.getenv("DRAFT_TIMEOUT", "12"))
    retrieval_timeout: float = float(os.getenv("RETRIEVAL_TIMEOUT", "10"))
    enhance_timeout: float = float(os.getenv("ENHANCE_TIMEOUT", "8"))
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "true")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _env_bool("LOG_JSON", "false")

    @property
    def retrieval_configured(self) -> bool:
        """Check whether a vector store can be built.

        Returns:
            True for the memory backend, or if both SUPABASE_URL and
            SUPABASE_KEY are set
        """
        if self.vector_backend == "memory":
            return True
        return bool(self.supabase_url and self.supabase_key)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        for name in ("fuzzy_match_threshold", "retrieval_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name.upper()} must be between 0 and 1, got {value}")

        for name in (
            "response_cache_size",
            "embedding_cache_size",
            "response_cache_ttl",
            "response_ttl_rag",
            "response_ttl_plain",
            "embedding_cache_ttl",
            "cache_cleanup_interval",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive")

        if self.embedding_backend not in ("openai", "ollama"):
            raise ValueError(
                f"EMBEDDING_BACKEND must be 'openai' or 'ollama', got {self.embedding_backend}"
            )

        if self.vector_backend not in ("supabase", "memory"):
            raise ValueError(
                f"VECTOR_BACKEND must be 'supabase' or 'memory', got {self.vector_backend}"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
