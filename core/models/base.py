"""Shared pydantic configuration for models that cross the wire.

Attributes are snake_case in Python and camelCase on the wire
(invoiceNumber, unitPrice, taxRate). Both spellings are accepted on input.
Decimal fields serialize as strings in JSON mode.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged with the REST layer."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
        "str_strip_whitespace": True,
    }

    def to_wire(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
