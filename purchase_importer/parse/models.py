"""Data models for credentials, scraped orders and imported products."""
from typing import Any, Optional
from pydantic import BaseModel, Field, SecretStr


class ImportCredentials(BaseModel):
    """Retailer login for a single import. Never persisted or logged."""

    retailer: str
    username: SecretStr
    password: SecretStr

    def clear(self) -> None:
        """Drop the secret values as soon as they are no longer needed."""
        self.username = SecretStr("")
        self.password = SecretStr("")

    @property
    def is_cleared(self) -> bool:
        return not self.username.get_secret_value() and not self.password.get_secret_value()


class RawOrderRecord(BaseModel):
    """One order card as scraped from the page, before any parsing."""

    product_name: str
    price: str = Field(..., description="Unparsed price text, e.g. '$19.99'")
    order_date: str = Field(..., description="Unparsed date text")
    image_url: Optional[str] = None
    order_id: str = Field(default="", description="Empty when the card shows no order id")


class ScrapedProduct(BaseModel):
    """Canonical product handed to the caller for persistence."""

    external_id: str
    name: str
    price: float = Field(..., ge=0)
    purchase_date: str = Field(..., description="ISO-8601 timestamp")
    image_url: Optional[str] = None
    retailer: str
    category: Optional[str] = None


class ImportResult(BaseModel):
    """Outcome of one successful import run."""

    retailer: str
    products: list[ScrapedProduct] = Field(default_factory=list)
    pages_loaded: int = 0
    metrics: dict[str, Any] = Field(default_factory=dict)
