from typing import Optional

from pydantic import BaseModel, ConfigDict


class Book(BaseModel):
    """Catalog view of a book, as returned by the catalog service."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    isbn: str
    title: str
    author: str
    price: float
    publisher: Optional[str] = None
