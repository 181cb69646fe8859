# backend/models.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from .db import Base


class Artisan(Base):
    __tablename__ = "artisans"
    id = Column(String, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    phone = Column(String, nullable=False)
    craft_specialty = Column(String, nullable=False, index=True)
    years_of_experience = Column(String, nullable=False)
    biography = Column(Text, nullable=False)
    location = Column(String, index=True)
    portfolio_images = Column(JSON, default=list)
    ai_generated_story = Column(Text)
    rating = Column(Integer, default=5)
    review_count = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True))
    products = relationship("Product", back_populates="artisan")


class Product(Base):
    __tablename__ = "products"
    id = Column(String, primary_key=True, index=True)
    artisan_id = Column(String, ForeignKey("artisans.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False)
    price = Column(Integer, nullable=False)  # minor units (paise)
    category = Column(String, nullable=False, index=True)
    images = Column(JSON, default=list)
    ai_generated_description = Column(Text)
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True))
    artisan = relationship("Artisan", back_populates="products")


class Story(Base):
    __tablename__ = "stories"
    id = Column(String, primary_key=True, index=True)
    artisan_id = Column(String, ForeignKey("artisans.id"), nullable=False, index=True)
    user_input = Column(Text, nullable=False)
    generated_story = Column(Text, nullable=False, default="")
    craft_type = Column(String, nullable=False)
    experience = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True))


class Inquiry(Base):
    __tablename__ = "inquiries"
    id = Column(String, primary_key=True, index=True)
    artisan_id = Column(String, ForeignKey("artisans.id"), nullable=False, index=True)
    buyer_name = Column(String, nullable=False)
    buyer_email = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    product_id = Column(String, ForeignKey("products.id"))
    status = Column(String, default="pending")
    created_at = Column(DateTime(timezone=True))
