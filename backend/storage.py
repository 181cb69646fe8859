# backend/storage.py
"""
Entity storage.

``Storage`` is the interface every request handler talks to. ``MemStorage``
keeps each collection in a dict; ``SqlStorage`` maps the same operations onto
the SQLAlchemy models in an in-memory SQLite database. Neither survives the
process.

Lookups and updates on an unknown id return ``None`` rather than raising.
"""
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from . import models
from .db import make_session_factory
from .schemas import (
    Artisan,
    ArtisanCreate,
    Inquiry,
    InquiryCreate,
    Product,
    ProductCreate,
    Story,
    StoryCreate,
    get_datetime_utc,
)

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6


class DuplicateEmailError(ValueError):
    def __init__(self, email: str):
        super().__init__(f"An artisan with email {email} already exists")
        self.email = email


def new_id() -> str:
    return str(uuid.uuid4())


class Storage(ABC):
    name = "abstract"

    # Artisans
    @abstractmethod
    def get_artisan(self, artisan_id: str) -> Optional[Artisan]: ...

    @abstractmethod
    def get_artisan_by_email(self, email: str) -> Optional[Artisan]: ...

    @abstractmethod
    def create_artisan(self, data: ArtisanCreate) -> Artisan: ...

    @abstractmethod
    def update_artisan(self, artisan_id: str, updates: Dict[str, Any]) -> Optional[Artisan]: ...

    @abstractmethod
    def get_all_artisans(self) -> List[Artisan]: ...

    @abstractmethod
    def get_featured_artisans(self) -> List[Artisan]: ...

    # Products
    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Product]: ...

    @abstractmethod
    def get_products_by_artisan(self, artisan_id: str, include_unavailable: bool = False) -> List[Product]: ...

    @abstractmethod
    def create_product(self, data: ProductCreate) -> Product: ...

    @abstractmethod
    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]: ...

    @abstractmethod
    def get_all_products(self) -> List[Product]: ...

    @abstractmethod
    def get_products_by_category(self, category: str) -> List[Product]: ...

    # Stories
    @abstractmethod
    def create_story(self, data: StoryCreate, generated_story: str = "") -> Story: ...

    @abstractmethod
    def get_story(self, story_id: str) -> Optional[Story]: ...

    @abstractmethod
    def get_stories_by_artisan(self, artisan_id: str) -> List[Story]: ...

    # Inquiries
    @abstractmethod
    def create_inquiry(self, data: InquiryCreate) -> Inquiry: ...

    @abstractmethod
    def get_inquiry(self, inquiry_id: str) -> Optional[Inquiry]: ...

    @abstractmethod
    def update_inquiry(self, inquiry_id: str, updates: Dict[str, Any]) -> Optional[Inquiry]: ...

    @abstractmethod
    def get_inquiries_by_artisan(self, artisan_id: str) -> List[Inquiry]: ...


class MemStorage(Storage):
    name = "memory"

    def __init__(self):
        self._lock = threading.RLock()
        self.artisans: Dict[str, Artisan] = {}
        self.products: Dict[str, Product] = {}
        self.stories: Dict[str, Story] = {}
        self.inquiries: Dict[str, Inquiry] = {}

    # -------- generic helpers --------
    def _get(self, items: dict, key: str):
        with self._lock:
            item = items.get(key)
            return item.model_copy() if item is not None else None

    def _update(self, items: dict, key: str, updates: Dict[str, Any]):
        with self._lock:
            item = items.get(key)
            if item is None:
                return None
            merged = item.model_copy(update=updates)
            items[key] = merged
            return merged.model_copy()

    def _scan(self, items: dict, predicate: Optional[Callable] = None) -> list:
        with self._lock:
            return [i.model_copy() for i in items.values() if predicate is None or predicate(i)]

    def _email_owner(self, email: str) -> Optional[Artisan]:
        email = email.lower()
        for artisan in self.artisans.values():
            if artisan.email.lower() == email:
                return artisan
        return None

    # -------- artisans --------
    def get_artisan(self, artisan_id):
        return self._get(self.artisans, artisan_id)

    def get_artisan_by_email(self, email):
        with self._lock:
            found = self._email_owner(email)
            return found.model_copy() if found else None

    def create_artisan(self, data):
        with self._lock:
            if self._email_owner(data.email):
                raise DuplicateEmailError(data.email)
            artisan = Artisan(
                **data.model_dump(),
                id=new_id(),
                rating=5,
                review_count=0,
                is_active=True,
                ai_generated_story=None,
                created_at=get_datetime_utc(),
            )
            self.artisans[artisan.id] = artisan
            return artisan.model_copy()

    def update_artisan(self, artisan_id, updates):
        with self._lock:
            email = updates.get("email")
            if email:
                owner = self._email_owner(email)
                if owner is not None and owner.id != artisan_id:
                    raise DuplicateEmailError(email)
            return self._update(self.artisans, artisan_id, updates)

    def get_all_artisans(self):
        return self._scan(self.artisans, lambda a: a.is_active)

    def get_featured_artisans(self):
        active = self.get_all_artisans()
        return sorted(active, key=lambda a: a.rating or 0, reverse=True)[:FEATURED_LIMIT]

    # -------- products --------
    def get_product(self, product_id):
        return self._get(self.products, product_id)

    def get_products_by_artisan(self, artisan_id, include_unavailable=False):
        return self._scan(
            self.products,
            lambda p: p.artisan_id == artisan_id and (include_unavailable or p.is_available),
        )

    def create_product(self, data):
        product = Product(
            **data.model_dump(),
            id=new_id(),
            is_available=True,
            ai_generated_description=None,
            created_at=get_datetime_utc(),
        )
        with self._lock:
            self.products[product.id] = product
        return product.model_copy()

    def update_product(self, product_id, updates):
        return self._update(self.products, product_id, updates)

    def get_all_products(self):
        return self._scan(self.products, lambda p: p.is_available)

    def get_products_by_category(self, category):
        return self._scan(self.products, lambda p: p.category == category and p.is_available)

    # -------- stories --------
    def create_story(self, data, generated_story=""):
        story = Story(
            **data.model_dump(),
            id=new_id(),
            generated_story=generated_story,
            created_at=get_datetime_utc(),
        )
        with self._lock:
            self.stories[story.id] = story
        return story.model_copy()

    def get_story(self, story_id):
        return self._get(self.stories, story_id)

    def get_stories_by_artisan(self, artisan_id):
        return self._scan(self.stories, lambda s: s.artisan_id == artisan_id)

    # -------- inquiries --------
    def create_inquiry(self, data):
        inquiry = Inquiry(
            **data.model_dump(),
            id=new_id(),
            status="pending",
            created_at=get_datetime_utc(),
        )
        with self._lock:
            self.inquiries[inquiry.id] = inquiry
        return inquiry.model_copy()

    def get_inquiry(self, inquiry_id):
        return self._get(self.inquiries, inquiry_id)

    def update_inquiry(self, inquiry_id, updates):
        return self._update(self.inquiries, inquiry_id, updates)

    def get_inquiries_by_artisan(self, artisan_id):
        return self._scan(self.inquiries, lambda i: i.artisan_id == artisan_id)


def _to_schema(schema, row):
    if row is None:
        return None
    return schema.model_validate({c.name: getattr(row, c.name) for c in row.__table__.columns})


class SqlStorage(Storage):
    name = "sql"

    def __init__(self):
        self.engine, self.SessionLocal = make_session_factory()
        # one shared SQLite connection, so serialize access to it
        self._lock = threading.RLock()

    @contextmanager
    def _session(self):
        with self._lock:
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

    def _get(self, model, schema, key):
        with self._session() as db:
            return _to_schema(schema, db.get(model, key))

    def _update(self, model, schema, key, updates):
        with self._session() as db:
            row = db.get(model, key)
            if row is None:
                return None
            for field, value in updates.items():
                setattr(row, field, value)
            db.commit()
            return _to_schema(schema, row)

    def _list(self, model, schema, *criteria):
        with self._session() as db:
            rows = db.query(model).filter(*criteria).order_by(model.created_at).all()
            return [_to_schema(schema, r) for r in rows]

    def _add(self, schema, row):
        with self._session() as db:
            db.add(row)
            db.commit()
            return _to_schema(schema, row)

    @staticmethod
    def _email_owner(db, email):
        return db.query(models.Artisan).filter(func.lower(models.Artisan.email) == email.lower()).first()

    # -------- artisans --------
    def get_artisan(self, artisan_id):
        return self._get(models.Artisan, Artisan, artisan_id)

    def get_artisan_by_email(self, email):
        with self._session() as db:
            return _to_schema(Artisan, self._email_owner(db, email))

    def create_artisan(self, data):
        with self._session() as db:
            if self._email_owner(db, data.email) is not None:
                raise DuplicateEmailError(data.email)
            row = models.Artisan(
                **data.model_dump(),
                id=new_id(),
                rating=5,
                review_count=0,
                is_active=True,
                created_at=get_datetime_utc(),
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicateEmailError(data.email)
            return _to_schema(Artisan, row)

    def update_artisan(self, artisan_id, updates):
        with self._lock:
            email = updates.get("email")
            if email:
                with self._session() as db:
                    owner = self._email_owner(db, email)
                    if owner is not None and owner.id != artisan_id:
                        raise DuplicateEmailError(email)
            return self._update(models.Artisan, Artisan, artisan_id, updates)

    def get_all_artisans(self):
        return self._list(models.Artisan, Artisan, models.Artisan.is_active.is_(True))

    def get_featured_artisans(self):
        with self._session() as db:
            rows = (
                db.query(models.Artisan)
                .filter(models.Artisan.is_active.is_(True))
                .order_by(models.Artisan.rating.desc())
                .limit(FEATURED_LIMIT)
                .all()
            )
            return [_to_schema(Artisan, r) for r in rows]

    # -------- products --------
    def get_product(self, product_id):
        return self._get(models.Product, Product, product_id)

    def get_products_by_artisan(self, artisan_id, include_unavailable=False):
        criteria = [models.Product.artisan_id == artisan_id]
        if not include_unavailable:
            criteria.append(models.Product.is_available.is_(True))
        return self._list(models.Product, Product, *criteria)

    def create_product(self, data):
        row = models.Product(
            **data.model_dump(),
            id=new_id(),
            is_available=True,
            created_at=get_datetime_utc(),
        )
        return self._add(Product, row)

    def update_product(self, product_id, updates):
        return self._update(models.Product, Product, product_id, updates)

    def get_all_products(self):
        return self._list(models.Product, Product, models.Product.is_available.is_(True))

    def get_products_by_category(self, category):
        return self._list(
            models.Product,
            Product,
            models.Product.category == category,
            models.Product.is_available.is_(True),
        )

    # -------- stories --------
    def create_story(self, data, generated_story=""):
        row = models.Story(
            **data.model_dump(),
            id=new_id(),
            generated_story=generated_story,
            created_at=get_datetime_utc(),
        )
        return self._add(Story, row)

    def get_story(self, story_id):
        return self._get(models.Story, Story, story_id)

    def get_stories_by_artisan(self, artisan_id):
        return self._list(models.Story, Story, models.Story.artisan_id == artisan_id)

    # -------- inquiries --------
    def create_inquiry(self, data):
        row = models.Inquiry(
            **data.model_dump(),
            id=new_id(),
            status="pending",
            created_at=get_datetime_utc(),
        )
        return self._add(Inquiry, row)

    def get_inquiry(self, inquiry_id):
        return self._get(models.Inquiry, Inquiry, inquiry_id)

    def update_inquiry(self, inquiry_id, updates):
        return self._update(models.Inquiry, Inquiry, inquiry_id, updates)

    def get_inquiries_by_artisan(self, artisan_id):
        return self._list(models.Inquiry, Inquiry, models.Inquiry.artisan_id == artisan_id)


def build_storage(backend: str = "memory") -> Storage:
    if backend == "sql":
        storage = SqlStorage()
    elif backend == "memory":
        storage = MemStorage()
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")
    logger.info("Using %s storage backend", storage.name)
    return storage
