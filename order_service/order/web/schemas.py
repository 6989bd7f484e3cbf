from pydantic import BaseModel, Field, field_validator


class OrderRequest(BaseModel):
    isbn: str = Field(..., description="The book ISBN must be defined.")
    quantity: int = Field(..., ge=1, le=5, description="You can order between 1 and 5 items.")

    @field_validator("isbn")
    @classmethod
    def isbn_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("The book ISBN must be defined.")
        return value
