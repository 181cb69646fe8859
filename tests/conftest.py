import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from backend.app import create_app
from backend.gemini import GenerationError
from backend.storage import MemStorage, SqlStorage


class FakeTextService:
    """Stands in for GeminiTextService; records calls and can be told to fail."""

    available = True

    def __init__(self):
        self.fail_story = False
        self.fail_marketing = False
        self.fail_description = False
        self.calls = []

    def generate_story(self, user_input, craft_type, experience):
        self.calls.append(("story", user_input, craft_type, experience))
        if self.fail_story:
            raise GenerationError("Failed to generate story. Please check your input and try again.")
        return f"My {craft_type} story: {user_input}"

    def enhance_description(self, name, description, category):
        self.calls.append(("description", name, description, category))
        if self.fail_description:
            raise RuntimeError("boom")
        return f"Enhanced {name}"

    def generate_marketing(self, artisan_name, craft_type, product_name, audience=None):
        self.calls.append(("marketing", artisan_name, craft_type, product_name, audience))
        if self.fail_marketing:
            raise GenerationError("Failed to generate marketing content. Please try again.")
        return f"Buy {product_name} by {artisan_name}"


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    return MemStorage() if request.param == "memory" else SqlStorage()


@pytest.fixture
def text_service():
    return FakeTextService()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def client(text_service, upload_dir):
    app = create_app(storage=MemStorage(), text_service=text_service, upload_dir=upload_dir)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def artisan_form():
    return {
        "firstName": "Asha",
        "lastName": "Rao",
        "email": "a@x.com",
        "phone": "123",
        "craftSpecialty": "pottery",
        "yearsOfExperience": "5-10",
        "biography": "Third-generation potter working with river clay.",
    }


def make_image(fmt="PNG", size=(64, 48), color=(200, 120, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=color).save(buf, format=fmt)
    return buf.getvalue()
