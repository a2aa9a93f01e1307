from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "BinderKeep"
    debug: bool = False

    # Device-local key-value store
    database_url: str = "sqlite+aiosqlite:///./binderkeep.db"

    # Remote per-user collection documents; falls back to database_url
    documents_database_url: str | None = None

    pokemon_tcg_api_url: str = "https://api.pokemontcg.io/v2"
    pokemon_tcg_api_key: str = ""
    tcgdex_api_url: str = "https://api.tcgdex.net/v2"
    pokeapi_url: str = "https://pokeapi.co/api/v2"
    http_timeout: float = 30.0

    # Private per-app file area. Image overrides are disabled when unset.
    documents_dir: Path | None = None
    overrides_root: str = "binderkeep-card-overrides"

    @property
    def resolved_documents_database_url(self) -> str:
        return self.documents_database_url or self.database_url


settings = Settings()


# =============================================================================
# CACHE LIFETIMES
# =============================================================================

# Persistent fallback-card entries older than this are re-fetched
FALLBACK_CACHE_MAX_AGE = timedelta(days=7)

# Catalog set/species data older than this triggers a refresh
CATALOG_CACHE_MAX_AGE = timedelta(hours=24)

# National dex size requested from PokeAPI during refresh
SPECIES_LIMIT = 1025
