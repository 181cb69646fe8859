import logging
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .gemini import GeminiTextService, GenerationError
from .schemas import (
    Artisan,
    ArtisanCreate,
    ArtisanSummary,
    ArtisanUpdate,
    Inquiry,
    InquiryCreate,
    InquiryUpdate,
    MarketingRequest,
    MarketingResult,
    Product,
    ProductCreate,
    ProductUpdate,
    ProductWithArtisan,
    SearchResults,
    Story,
    StoryCreate,
    StoryResult,
)
from .storage import DuplicateEmailError, Storage, build_storage
from .utils import UploadError, resolve_upload, save_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
root_router = APIRouter()


# -------- Helpers --------
def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_text_service(request: Request) -> GeminiTextService:
    return request.app.state.text_service


def get_upload_dir(request: Request) -> Path:
    return request.app.state.upload_dir


def validation_message(errors) -> str:
    """Flatten pydantic/FastAPI error dicts into one readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form"))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts) or "Invalid request"


def parse_form(schema, fields: Dict[str, Optional[str]]):
    # drop fields the client did not send so pydantic reports them as missing
    payload = {k: v for k, v in fields.items() if v is not None}
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_message(e.errors()))


def store_images(files: Optional[List[UploadFile]], upload_dir: Path, limit: int) -> List[str]:
    files = [f for f in (files or []) if f is not None and f.filename]
    if len(files) > limit:
        raise HTTPException(status_code=400, detail=f"You can upload a maximum of {limit} images.")
    try:
        return save_uploads(files, upload_dir)
    except UploadError as e:
        raise HTTPException(status_code=400, detail=str(e))


def artisan_matches(artisan: Artisan, term: str) -> bool:
    fields = (artisan.first_name, artisan.last_name, artisan.craft_specialty, artisan.biography, artisan.location)
    return any(term in f.lower() for f in fields if f)


def product_matches(product: Product, term: str) -> bool:
    return any(term in f.lower() for f in (product.name, product.description, product.category))


# -------- Artisans --------
@router.get("/artisans", response_model=List[Artisan])
def list_artisans(storage: Storage = Depends(get_storage)):
    return storage.get_all_artisans()


@router.get("/artisans/featured", response_model=List[Artisan])
def featured_artisans(storage: Storage = Depends(get_storage)):
    return storage.get_featured_artisans()


@router.get("/artisans/{artisan_id}", response_model=Artisan)
def get_artisan(artisan_id: str, storage: Storage = Depends(get_storage)):
    artisan = storage.get_artisan(artisan_id)
    if not artisan:
        raise HTTPException(status_code=404, detail="Artisan not found")
    return artisan


@router.post("/artisans", response_model=Artisan, status_code=201)
def create_artisan(
    storage: Storage = Depends(get_storage),
    upload_dir: Path = Depends(get_upload_dir),
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    craft_specialty: Optional[str] = Form(None, alias="craftSpecialty"),
    years_of_experience: Optional[str] = Form(None, alias="yearsOfExperience"),
    biography: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    portfolio_images: Optional[List[UploadFile]] = File(None, alias="portfolioImages"),
):
    data = parse_form(ArtisanCreate, {
        "firstName": first_name,
        "lastName": last_name,
        "email": email,
        "phone": phone,
        "craftSpecialty": craft_specialty,
        "yearsOfExperience": years_of_experience,
        "biography": biography,
        "location": location or None,
    })
    if storage.get_artisan_by_email(data.email):
        raise HTTPException(status_code=400, detail=f"An artisan with email {data.email} already exists")

    data.portfolio_images = store_images(portfolio_images, upload_dir, config.MAX_PORTFOLIO_IMAGES)
    try:
        artisan = storage.create_artisan(data)
    except DuplicateEmailError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("Created artisan %s with %d portfolio images", artisan.id, len(artisan.portfolio_images))
    return artisan


@router.patch("/artisans/{artisan_id}", response_model=Artisan)
def update_artisan(artisan_id: str, payload: ArtisanUpdate, storage: Storage = Depends(get_storage)):
    try:
        artisan = storage.update_artisan(artisan_id, payload.model_dump(exclude_none=True))
    except DuplicateEmailError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not artisan:
        raise HTTPException(status_code=404, detail="Artisan not found")
    return artisan


@router.get("/artisans/{artisan_id}/products", response_model=List[Product])
def artisan_products(artisan_id: str, all: bool = False, storage: Storage = Depends(get_storage)):
    # all=true also returns unavailable products, for the owner's dashboard
    return storage.get_products_by_artisan(artisan_id, include_unavailable=all)


@router.get("/artisans/{artisan_id}/stories", response_model=List[Story])
def artisan_stories(artisan_id: str, storage: Storage = Depends(get_storage)):
    return storage.get_stories_by_artisan(artisan_id)


@router.get("/artisans/{artisan_id}/inquiries", response_model=List[Inquiry])
def artisan_inquiries(artisan_id: str, storage: Storage = Depends(get_storage)):
    return storage.get_inquiries_by_artisan(artisan_id)


# -------- Products --------
@router.get("/products", response_model=List[ProductWithArtisan])
def list_products(category: Optional[str] = None, storage: Storage = Depends(get_storage)):
    if category:
        products = storage.get_products_by_category(category)
    else:
        products = storage.get_all_products()

    owners: Dict[str, Optional[ArtisanSummary]] = {}
    results = []
    for p in products:
        if p.artisan_id not in owners:
            owner = storage.get_artisan(p.artisan_id)
            owners[p.artisan_id] = ArtisanSummary.model_validate(owner.model_dump()) if owner else None
        results.append(ProductWithArtisan(**p.model_dump(), artisan=owners[p.artisan_id]))
    return results


@router.get("/products/{product_id}", response_model=Product)
def get_product(product_id: str, storage: Storage = Depends(get_storage)):
    product = storage.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/products", response_model=Product, status_code=201)
def create_product(
    storage: Storage = Depends(get_storage),
    text_service: GeminiTextService = Depends(get_text_service),
    upload_dir: Path = Depends(get_upload_dir),
    artisan_id: Optional[str] = Form(None, alias="artisanId"),
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
):
    data = parse_form(ProductCreate, {
        "artisanId": artisan_id,
        "name": name,
        "description": description,
        "price": price,
        "category": category,
    })
    data.images = store_images(images, upload_dir, config.MAX_PRODUCT_IMAGES)
    product = storage.create_product(data)

    # best effort: the product is returned even if enhancement fails
    try:
        enhanced = text_service.enhance_description(data.name, data.description, data.category)
        product = storage.update_product(product.id, {"ai_generated_description": enhanced}) or product
    except Exception:
        logger.exception("Failed to generate AI description for product %s", product.id)
    return product


@router.patch("/products/{product_id}", response_model=Product)
def update_product(product_id: str, payload: ProductUpdate, storage: Storage = Depends(get_storage)):
    product = storage.update_product(product_id, payload.model_dump(exclude_none=True))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# -------- AI generation --------
@router.post("/stories/generate", response_model=StoryResult)
def generate_story(
    payload: StoryCreate,
    storage: Storage = Depends(get_storage),
    text_service: GeminiTextService = Depends(get_text_service),
):
    # the story is stored only once the model call has succeeded
    try:
        text = text_service.generate_story(payload.user_input, payload.craft_type, payload.experience)
    except GenerationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    story = storage.create_story(payload, generated_story=text)
    return StoryResult(story=text, id=story.id)


@router.post("/marketing/generate", response_model=MarketingResult)
def generate_marketing(payload: MarketingRequest, text_service: GeminiTextService = Depends(get_text_service)):
    try:
        content = text_service.generate_marketing(
            payload.artisan_name, payload.craft_type, payload.product_name, payload.audience
        )
    except GenerationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MarketingResult(content=content)


# -------- Inquiries --------
@router.post("/inquiries", response_model=Inquiry, status_code=201)
def create_inquiry(payload: InquiryCreate, storage: Storage = Depends(get_storage)):
    return storage.create_inquiry(payload)


@router.patch("/inquiries/{inquiry_id}", response_model=Inquiry)
def update_inquiry(inquiry_id: str, payload: InquiryUpdate, storage: Storage = Depends(get_storage)):
    inquiry = storage.update_inquiry(inquiry_id, payload.model_dump())
    if not inquiry:
        raise HTTPException(status_code=404, detail="Inquiry not found")
    return inquiry


# -------- Search --------
@router.get("/search", response_model=SearchResults)
def search(q: Optional[str] = None, storage: Storage = Depends(get_storage)):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    # whitespace-only queries are rejected, but surrounding spaces are part of the term
    term = q.lower()
    return SearchResults(
        artisans=[a for a in storage.get_all_artisans() if artisan_matches(a, term)],
        products=[p for p in storage.get_all_products() if product_matches(p, term)],
    )


# -------- Root & uploads --------
@root_router.get("/")
def read_root(request: Request):
    return {
        "message": "ArtisanAlly API is running",
        "gemini_loaded": request.app.state.text_service.available,
        "storage": request.app.state.storage.name,
    }


@root_router.get("/uploads/{file_path:path}")
def serve_upload(file_path: str, upload_dir: Path = Depends(get_upload_dir)):
    path = resolve_upload(upload_dir, file_path)
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(str(path))


# -------- Error handling --------
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"message": str(exc.detail)}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"message": validation_message(exc.errors())}, status_code=400)


def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": "Internal server error"}, status_code=500)


def create_app(
    storage: Optional[Storage] = None,
    text_service: Optional[GeminiTextService] = None,
    upload_dir: Optional[Path] = None,
) -> FastAPI:
    """
    Build the API. The store, AI adapter and upload directory are created
    here once and shared with handlers through app.state.
    """
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(title="ArtisanAlly API")

    upload_dir = Path(upload_dir or config.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.state.upload_dir = upload_dir
    app.state.storage = storage if storage is not None else build_storage(config.STORAGE_BACKEND)
    app.state.text_service = (
        text_service if text_service is not None
        else GeminiTextService(api_key=config.GEMINI_API_KEY, model=config.GEMINI_MODEL)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(root_router)
    app.include_router(router)
    return app
