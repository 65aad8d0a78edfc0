"""Centralized configuration for keyword-index using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from keyword_index.search.stopwords import default_unindexed_words, read_word_list
from keyword_index.search.storage import DEFAULT_INDEX_TABLE, validate_table_name


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``KEYWORD_INDEX_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KEYWORD_INDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Storage
    database_path: Path = Field(default=Path("keyword_index.sqlite"), description="SQLite index database")
    index_table: str = Field(default=DEFAULT_INDEX_TABLE, description="Table holding keyword rows")

    # Indexing policies
    max_word_length: int | None = Field(
        default=None,
        ge=1,
        description="Truncate indexed words to this many characters (unset means unbounded)",
    )
    stemmer: Literal["identity", "suffix", "snowball"] = Field(
        default="identity", description="Stemming backend applied to every keyword"
    )
    stemmer_language: str = Field(default="english", description="Language passed to the snowball stemmer")
    use_default_unindexed_words: bool = Field(
        default=True, description="Skip the packaged list of common words when indexing"
    )
    unindexed_words_file: Path | None = Field(
        default=None, description="Word-per-line file replacing the packaged unindexed word list"
    )

    # Spell assist
    spell_check_enabled: bool = Field(default=False, description="Record misspelled tokens while indexing")
    spell_check_language: str = Field(default="en", description="Dictionary language for the spell checker")
    personal_wordlist_path: Path | None = Field(
        default=None, description="File where the personal wordlist is persisted, one word per line"
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("index_table")
    @classmethod
    def _check_index_table(cls, value: str) -> str:
        return validate_table_name(value)

    def get_unindexed_words(self) -> tuple[str, ...]:
        """Return the configured list of words that are never indexed."""
        if not self.use_default_unindexed_words:
            return ()
        if self.unindexed_words_file is not None:
            return read_word_list(self.unindexed_words_file)
        return default_unindexed_words()
