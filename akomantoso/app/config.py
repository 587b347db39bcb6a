"""
Centralized configuration for the document engine.

Pydantic v2 settings management with strict validation and fast
failure on invalid configuration. Settings only shape serialization
output and ledger policy; they never alter assembled content.
"""

import codecs
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# -------------------------------------------------------------------------
# Settings Model
# -------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Engine settings parsed from the environment (``AKN_`` prefix).
    """

    # ---------------------------------------------------------------------
    # Serialization
    # ---------------------------------------------------------------------

    pretty_print: Annotated[
        bool,
        Field(
            default=True,
            description="Indent serialized XML.",
        ),
    ]

    xml_declaration: Annotated[
        bool,
        Field(
            default=True,
            description="Emit the <?xml ...?> declaration.",
        ),
    ]

    encoding: Annotated[
        str,
        Field(
            default="UTF-8",
            min_length=1,
            description="Character encoding declared and used for output.",
        ),
    ]

    # ---------------------------------------------------------------------
    # Document shape
    # ---------------------------------------------------------------------

    document_name: Annotated[
        str,
        Field(
            default="document",
            min_length=1,
            description="Value of the doc/@name attribute.",
        ),
    ]

    # ---------------------------------------------------------------------
    # Ledger policy
    # ---------------------------------------------------------------------

    reseed_signature_counter: Annotated[
        bool,
        Field(
            default=True,
            description=(
                "After parsing a document with conclusions, continue the "
                "signature counter past the highest parsed sequence so "
                "new signatures never reuse an existing identifier."
            ),
        ),
    ]

    model_config = SettingsConfigDict(
        env_prefix="AKN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as exc:
            raise ValueError(f"Unknown output encoding '{v}'") from exc
        return v


# -------------------------------------------------------------------------
# Settings Provider
# -------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return Settings()
