"""Invoice application configuration."""

import os

from pydantic import BaseModel, Field


class BrandingConfig(BaseModel):
    """
    Identity printed on every invoice.

    Company fields left blank on an invoice fall back to these values.
    """

    brand_name: str = Field(default="Invoice Studio", min_length=1)
    fallback_address: str | None = Field(
        default=None,
        description="Printed when the invoice company has no address",
    )
    fallback_phone: str | None = None
    fallback_website: str | None = None
    currency_symbol: str = Field(default="$", max_length=3)
    thank_you_message: str = "Thank you for shopping with us!"
    powered_by: str | None = Field(
        default="Powered by Invoice Studio",
        description="Small print at the bottom of thermal receipts",
    )
    empty_state_title: str = "No items added yet"
    empty_state_hint: str = "Add items using the form"


class InvoiceConfig(BaseModel):
    """
    Invoice service configuration.

    numbering_policy picks how invoice numbers are derived. Tests use
    'sequential' for determinism; deployments default to 'timestamp'.
    """

    numbering_policy: str = Field(
        default="timestamp",
        pattern="^(sequential|timestamp)$",
    )
    display_timezone: str = Field(
        default="America/Toronto",
        description="IANA zone for invoice numbers and printed dates",
    )
    store_backend: str = Field(
        default="memory",
        pattern="^(memory|postgres)$",
    )
    create_max_attempts: int = Field(
        default=2,
        description="Create attempts when the invoice number collides (1 retry)",
        ge=1,
        le=5,
    )
    branding: BrandingConfig = Field(default_factory=BrandingConfig)


def load_invoice_config() -> InvoiceConfig:
    """
    Build InvoiceConfig from INVOICE_* environment variables.

    Unset variables keep their defaults. Out-of-range values raise
    pydantic.ValidationError at startup.
    """
    values: dict = {}
    env_map = {
        "INVOICE_NUMBERING_POLICY": "numbering_policy",
        "INVOICE_DISPLAY_TIMEZONE": "display_timezone",
        "INVOICE_STORE_BACKEND": "store_backend",
        "INVOICE_CREATE_MAX_ATTEMPTS": "create_max_attempts",
    }
    for env_name, field in env_map.items():
        value = os.getenv(env_name)
        if value:
            values[field] = value

    branding: dict = {}
    branding_env = {
        "INVOICE_BRAND_NAME": "brand_name",
        "INVOICE_FALLBACK_ADDRESS": "fallback_address",
        "INVOICE_FALLBACK_PHONE": "fallback_phone",
        "INVOICE_FALLBACK_WEBSITE": "fallback_website",
        "INVOICE_CURRENCY_SYMBOL": "currency_symbol",
    }
    for env_name, field in branding_env.items():
        value = os.getenv(env_name)
        if value:
            branding[field] = value
    if branding:
        values["branding"] = branding

    return InvoiceConfig(**values)
