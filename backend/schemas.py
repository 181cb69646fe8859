# backend/schemas.py
"""
Request and response schemas.

Attribute names are snake_case in Python and camelCase on the wire, so
``Artisan(first_name=...)`` is sent and received as ``{"firstName": ...}``.
"""
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# ----- Artisans -----
class ArtisanBase(CamelModel):
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: EmailStr = Field(max_length=255)
    phone: str = Field(min_length=1, max_length=50)
    craft_specialty: str = Field(min_length=1, max_length=255)
    years_of_experience: str = Field(min_length=1, max_length=50)
    biography: str = Field(min_length=1)
    location: str | None = Field(default=None, max_length=255)


# Properties to receive on creation
class ArtisanCreate(ArtisanBase):
    portfolio_images: list[str] = Field(default_factory=list)


# Properties to receive on update, all are optional
class ArtisanUpdate(CamelModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, min_length=1, max_length=50)
    craft_specialty: str | None = Field(default=None, min_length=1, max_length=255)
    years_of_experience: str | None = Field(default=None, min_length=1, max_length=50)
    biography: str | None = Field(default=None, min_length=1)
    location: str | None = Field(default=None, max_length=255)
    ai_generated_story: str | None = None
    rating: int | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class Artisan(ArtisanCreate):
    id: str
    ai_generated_story: str | None = None
    rating: int = 5
    review_count: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=get_datetime_utc)


# Denormalized owner summary attached to product listings
class ArtisanSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    location: str | None = None


# ----- Products -----
class ProductCreate(CamelModel):
    artisan_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    price: int = Field(ge=0)  # minor currency units (paise)
    category: str = Field(min_length=1, max_length=100)
    images: list[str] = Field(default_factory=list)


class ProductUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    price: int | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    is_available: bool | None = None


class Product(ProductCreate):
    id: str
    ai_generated_description: str | None = None
    is_available: bool = True
    created_at: datetime = Field(default_factory=get_datetime_utc)


class ProductWithArtisan(Product):
    artisan: ArtisanSummary | None = None


# ----- Stories -----
class StoryCreate(CamelModel):
    artisan_id: str = Field(min_length=1)
    user_input: str = Field(min_length=1, max_length=5000)
    craft_type: str = Field(min_length=1, max_length=100)
    experience: str = Field(min_length=1, max_length=50)


class Story(StoryCreate):
    id: str
    generated_story: str = ""
    created_at: datetime = Field(default_factory=get_datetime_utc)


class StoryResult(CamelModel):
    story: str
    id: str


# ----- Marketing -----
class MarketingRequest(CamelModel):
    artisan_name: str = Field(min_length=1, max_length=255)
    craft_type: str = Field(min_length=1, max_length=100)
    product_name: str = Field(min_length=1, max_length=255)
    audience: str | None = Field(default=None, max_length=500)


class MarketingResult(CamelModel):
    content: str


# ----- Inquiries -----
class InquiryCreate(CamelModel):
    artisan_id: str = Field(min_length=1)
    buyer_name: str = Field(min_length=1, max_length=255)
    buyer_email: EmailStr = Field(max_length=255)
    message: str = Field(min_length=1, max_length=5000)
    product_id: str | None = None


# Status is free text; "pending" is the only defined value
class InquiryUpdate(CamelModel):
    status: str = Field(min_length=1, max_length=50)


class Inquiry(InquiryCreate):
    id: str
    status: str = "pending"
    created_at: datetime = Field(default_factory=get_datetime_utc)


# ----- Misc -----
class SearchResults(CamelModel):
    artisans: list[Artisan]
    products: list[Product]


# Generic message
class Message(CamelModel):
    message: str
