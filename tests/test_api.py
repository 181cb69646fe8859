from fastapi.testclient import TestClient

from backend.app import create_app
from backend.storage import SqlStorage

from .conftest import make_image


def create_artisan(client, form, **overrides):
    data = dict(form)
    data.update(overrides)
    resp = client.post("/api/artisans", data=data)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_product(client, artisan_id, **overrides):
    data = {
        "artisanId": artisan_id,
        "name": "Vase",
        "description": "Hand-thrown blue vase",
        "price": "5000",
        "category": "pottery",
    }
    data.update(overrides)
    resp = client.post("/api/products", data=data)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_root_reports_status(client):
    body = client.get("/").json()
    assert body["gemini_loaded"] is True
    assert body["storage"] == "memory"


# -------- artisans --------
def test_create_artisan_without_files(client, artisan_form):
    resp = client.post("/api/artisans", data=artisan_form)
    assert resp.status_code == 201
    body = resp.json()
    assert body["id"]
    assert body["rating"] == 5
    assert body["reviewCount"] == 0
    assert body["isActive"] is True
    assert body["portfolioImages"] == []
    assert body["firstName"] == "Asha"
    assert body["location"] is None


def test_create_artisan_with_portfolio_images(client, artisan_form, upload_dir):
    files = [
        ("portfolioImages", ("bowl.png", make_image(), "image/png")),
        ("portfolioImages", ("jar.jpg", make_image("JPEG"), "image/jpeg")),
    ]
    resp = client.post("/api/artisans", data=artisan_form, files=files)
    assert resp.status_code == 201, resp.text
    images = resp.json()["portfolioImages"]
    assert len(images) == 2
    assert images[0].startswith("/uploads/") and images[0].endswith("-bowl.png")
    assert len(list(upload_dir.iterdir())) == 2

    served = client.get(images[1])
    assert served.status_code == 200
    assert served.headers["content-type"] == "image/jpeg"


def test_same_name_portfolio_images_are_all_kept(client, artisan_form, upload_dir):
    files = [("portfolioImages", ("photo.png", make_image(color=(i * 40, 0, 0)), "image/png")) for i in range(5)]
    resp = client.post("/api/artisans", data=artisan_form, files=files)
    assert resp.status_code == 201, resp.text
    images = resp.json()["portfolioImages"]
    assert len(set(images)) == 5
    assert all(img.endswith("-photo.png") for img in images)
    assert len(list(upload_dir.iterdir())) == 5


def test_create_artisan_rejects_non_image(client, artisan_form):
    files = [("portfolioImages", ("cv.pdf", b"%PDF-1.4", "application/pdf"))]
    resp = client.post("/api/artisans", data=artisan_form, files=files)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Only image files are allowed"


def test_create_artisan_too_many_images(client, artisan_form):
    files = [("portfolioImages", (f"{i}.png", make_image(), "image/png")) for i in range(11)]
    resp = client.post("/api/artisans", data=artisan_form, files=files)
    assert resp.status_code == 400
    assert "maximum of 10" in resp.json()["message"]


def test_create_artisan_validation_errors(client, artisan_form):
    missing = dict(artisan_form)
    del missing["email"]
    resp = client.post("/api/artisans", data=missing)
    assert resp.status_code == 400
    assert "email" in resp.json()["message"]

    resp = client.post("/api/artisans", data={**artisan_form, "email": "not-an-email"})
    assert resp.status_code == 400

    resp = client.post("/api/artisans", data={**artisan_form, "firstName": "   "})
    assert resp.status_code == 400
    assert "firstName" in resp.json()["message"]


def test_duplicate_email_is_400(client, artisan_form):
    create_artisan(client, artisan_form)
    resp = client.post("/api/artisans", data=artisan_form)
    assert resp.status_code == 400
    assert "already exists" in resp.json()["message"]


def test_get_artisan_and_not_found(client, artisan_form):
    artisan = create_artisan(client, artisan_form, location="Jaipur")
    resp = client.get(f"/api/artisans/{artisan['id']}")
    assert resp.status_code == 200
    assert resp.json()["location"] == "Jaipur"

    resp = client.get("/api/artisans/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Artisan not found"}


def test_patch_artisan(client, artisan_form):
    artisan = create_artisan(client, artisan_form)
    resp = client.patch(f"/api/artisans/{artisan['id']}", json={"biography": "Updated", "rating": 4})
    assert resp.status_code == 200
    body = resp.json()
    assert body["biography"] == "Updated"
    assert body["rating"] == 4
    assert body["email"] == artisan["email"]
    assert body["craftSpecialty"] == "pottery"

    assert client.patch("/api/artisans/nope", json={"biography": "x"}).status_code == 404
    assert client.patch(f"/api/artisans/{artisan['id']}", json={"rating": 9}).status_code == 400


def test_patch_artisan_duplicate_email(client, artisan_form):
    create_artisan(client, artisan_form)
    other = create_artisan(client, artisan_form, email="b@x.com")
    resp = client.patch(f"/api/artisans/{other['id']}", json={"email": "a@x.com"})
    assert resp.status_code == 400


def test_inactive_artisans_not_listed(client, artisan_form):
    a = create_artisan(client, artisan_form)
    b = create_artisan(client, artisan_form, email="b@x.com")
    client.patch(f"/api/artisans/{a['id']}", json={"isActive": False})

    listed = [x["id"] for x in client.get("/api/artisans").json()]
    assert listed == [b["id"]]
    featured = [x["id"] for x in client.get("/api/artisans/featured").json()]
    assert featured == [b["id"]]


def test_featured_limited_and_sorted(client, artisan_form):
    for i, rating in enumerate([1, 5, 3, 4, 2, 5, 0]):
        a = create_artisan(client, artisan_form, email=f"f{i}@x.com")
        client.patch(f"/api/artisans/{a['id']}", json={"rating": rating})
    featured = client.get("/api/artisans/featured").json()
    assert [a["rating"] for a in featured] == [5, 5, 4, 3, 2, 1]


# -------- products --------
def test_create_product_and_list_with_artisan_summary(client, artisan_form, text_service):
    artisan = create_artisan(client, artisan_form, location="Khurja")
    product = create_product(client, artisan["id"])
    assert product["name"] == "Vase"
    assert product["price"] == 5000
    assert product["isAvailable"] is True
    assert product["images"] == []
    assert product["aiGeneratedDescription"] == "Enhanced Vase"
    assert ("description", "Vase", "Hand-thrown blue vase", "pottery") in text_service.calls

    listed = client.get("/api/products").json()
    assert len(listed) == 1
    assert listed[0]["id"] == product["id"]
    assert listed[0]["artisan"] == {
        "id": artisan["id"],
        "firstName": "Asha",
        "lastName": "Rao",
        "location": "Khurja",
    }


def test_product_with_unknown_artisan_lists_null_owner(client):
    create_product(client, "ghost")
    listed = client.get("/api/products").json()
    assert listed[0]["artisan"] is None


def test_product_description_failure_is_swallowed(client, artisan_form, text_service):
    text_service.fail_description = True
    artisan = create_artisan(client, artisan_form)
    product = create_product(client, artisan["id"])
    assert product["aiGeneratedDescription"] is None
    assert client.get(f"/api/products/{product['id']}").status_code == 200


def test_create_product_with_images(client, artisan_form):
    artisan = create_artisan(client, artisan_form)
    files = [("images", ("vase.png", make_image(), "image/png"))]
    resp = client.post(
        "/api/products",
        data={"artisanId": artisan["id"], "name": "Vase", "description": "Blue", "price": "100", "category": "pottery"},
        files=files,
    )
    assert resp.status_code == 201
    images = resp.json()["images"]
    assert len(images) == 1
    assert client.get(images[0]).status_code == 200


def test_create_product_validation(client, artisan_form):
    artisan = create_artisan(client, artisan_form)
    base = {"artisanId": artisan["id"], "name": "Vase", "description": "Blue", "category": "pottery"}
    assert client.post("/api/products", data={**base, "price": "-1"}).status_code == 400
    assert client.post("/api/products", data={**base, "price": "12.5"}).status_code == 400
    resp = client.post("/api/products", data=base)
    assert resp.status_code == 400
    assert "price" in resp.json()["message"]
    assert client.get("/api/products").json() == []


def test_product_filters_and_availability(client, artisan_form):
    a = create_artisan(client, artisan_form)
    b = create_artisan(client, artisan_form, email="b@x.com")
    vase = create_product(client, a["id"])
    shawl = create_product(client, a["id"], name="Shawl", category="textiles")
    create_product(client, b["id"], name="Bowl")

    textiles = client.get("/api/products", params={"category": "textiles"}).json()
    assert [p["id"] for p in textiles] == [shawl["id"]]

    mine = client.get(f"/api/artisans/{a['id']}/products").json()
    assert {p["id"] for p in mine} == {vase["id"], shawl["id"]}

    resp = client.patch(f"/api/products/{vase['id']}", json={"isAvailable": False})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Vase"
    assert vase["id"] not in {p["id"] for p in client.get("/api/products").json()}
    assert vase["id"] not in {p["id"] for p in client.get(f"/api/artisans/{a['id']}/products").json()}


def test_unavailable_product_can_be_made_available_again(client, artisan_form):
    a = create_artisan(client, artisan_form)
    vase = create_product(client, a["id"])
    client.patch(f"/api/products/{vase['id']}", json={"isAvailable": False})

    assert client.get(f"/api/artisans/{a['id']}/products").json() == []
    everything = client.get(f"/api/artisans/{a['id']}/products", params={"all": "true"}).json()
    assert [(p["id"], p["isAvailable"]) for p in everything] == [(vase["id"], False)]

    resp = client.patch(f"/api/products/{vase['id']}", json={"isAvailable": True})
    assert resp.json()["isAvailable"] is True
    assert [p["id"] for p in client.get(f"/api/artisans/{a['id']}/products").json()] == [vase["id"]]


def test_product_not_found(client):
    assert client.get("/api/products/nope").json() == {"message": "Product not found"}
    assert client.patch("/api/products/nope", json={"price": 1}).status_code == 404


# -------- stories & marketing --------
def test_generate_story(client, artisan_form):
    artisan = create_artisan(client, artisan_form)
    payload = {"artisanId": artisan["id"], "userInput": "I shape clay", "craftType": "pottery", "experience": "5-10"}
    resp = client.post("/api/stories/generate", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert body["story"] == "My pottery story: I shape clay"
    assert body["id"]

    stories = client.get(f"/api/artisans/{artisan['id']}/stories").json()
    assert len(stories) == 1
    assert stories[0]["id"] == body["id"]
    assert stories[0]["generatedStory"] == body["story"]


def test_generate_story_failure_leaves_nothing_behind(client, text_service):
    text_service.fail_story = True
    payload = {"artisanId": "a1", "userInput": "I shape clay", "craftType": "pottery", "experience": "5-10"}
    resp = client.post("/api/stories/generate", json=payload)
    assert resp.status_code == 400
    assert "Failed to generate story" in resp.json()["message"]
    assert client.get("/api/artisans/a1/stories").json() == []


def test_generate_story_validation(client, text_service):
    resp = client.post("/api/stories/generate", json={"artisanId": "a1", "craftType": "pottery"})
    assert resp.status_code == 400
    assert "message" in resp.json()
    assert text_service.calls == []


def test_generate_marketing(client, text_service):
    payload = {"artisanName": "Asha Rao", "craftType": "pottery", "productName": "Vase"}
    resp = client.post("/api/marketing/generate", json=payload)
    assert resp.status_code == 200
    assert resp.json() == {"content": "Buy Vase by Asha Rao"}

    text_service.fail_marketing = True
    resp = client.post("/api/marketing/generate", json=payload)
    assert resp.status_code == 400
    assert "marketing" in resp.json()["message"]


# -------- inquiries --------
def test_inquiry_lifecycle(client, artisan_form):
    artisan = create_artisan(client, artisan_form)
    product = create_product(client, artisan["id"])
    payload = {
        "artisanId": artisan["id"],
        "buyerName": "Ben",
        "buyerEmail": "ben@buyer.com",
        "message": "Is the vase still available?",
        "productId": product["id"],
    }
    resp = client.post("/api/inquiries", json=payload)
    assert resp.status_code == 201
    inquiry = resp.json()
    assert inquiry["status"] == "pending"
    assert inquiry["productId"] == product["id"]

    resp = client.patch(f"/api/inquiries/{inquiry['id']}", json={"status": "replied"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "replied"

    listed = client.get(f"/api/artisans/{artisan['id']}/inquiries").json()
    assert [i["status"] for i in listed] == ["replied"]


def test_inquiry_validation_and_not_found(client):
    resp = client.post("/api/inquiries", json={"artisanId": "a1", "buyerName": "Ben", "buyerEmail": "nope", "message": "hi"})
    assert resp.status_code == 400
    resp = client.patch("/api/inquiries/missing", json={"status": "closed"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "Inquiry not found"}


# -------- search --------
def test_search_requires_query(client):
    for params in ({}, {"q": ""}, {"q": "   "}):
        resp = client.get("/api/search", params=params)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Search query is required"}


def test_search_case_insensitive_substring(client, artisan_form):
    potter = create_artisan(client, artisan_form)
    weaver = create_artisan(
        client, artisan_form, email="w@x.com", firstName="Meera", craftSpecialty="textiles",
        biography="Handloom saris", location="Varanasi",
    )
    mug = create_product(client, weaver["id"], name="Mug", description="Stoneware POTTERY mug", category="kitchen")
    shawl = create_product(client, weaver["id"], name="Shawl", description="Pashmina", category="textiles")

    body = client.get("/api/search", params={"q": "Pott"}).json()
    assert [a["id"] for a in body["artisans"]] == [potter["id"]]
    assert [p["id"] for p in body["products"]] == [mug["id"]]

    body = client.get("/api/search", params={"q": "varan"}).json()
    assert [a["id"] for a in body["artisans"]] == [weaver["id"]]

    body = client.get("/api/search", params={"q": "TEXTILE"}).json()
    assert [a["id"] for a in body["artisans"]] == [weaver["id"]]
    assert [p["id"] for p in body["products"]] == [shawl["id"]]


def test_search_skips_hidden_entities(client, artisan_form):
    potter = create_artisan(client, artisan_form)
    vase = create_product(client, potter["id"])
    client.patch(f"/api/artisans/{potter['id']}", json={"isActive": False})
    client.patch(f"/api/products/{vase['id']}", json={"isAvailable": False})
    assert client.get("/api/search", params={"q": "pottery"}).json() == {"artisans": [], "products": []}


def test_search_keeps_surrounding_spaces_in_term(client, artisan_form):
    create_artisan(client, artisan_form, biography="Clay pots from Khurja")
    assert client.get("/api/search", params={"q": "pots"}).json()["artisans"]
    assert client.get("/api/search", params={"q": " pots "}).json()["artisans"]
    assert client.get("/api/search", params={"q": " clay"}).json()["artisans"] == []


# -------- uploads --------
def test_missing_upload_is_404(client):
    resp = client.get("/uploads/nothing-here.png")
    assert resp.status_code == 404
    assert resp.json() == {"message": "File not found"}


def test_sql_backend_end_to_end(text_service, tmp_path, artisan_form):
    app = create_app(storage=SqlStorage(), text_service=text_service, upload_dir=tmp_path)
    with TestClient(app) as c:
        assert c.get("/").json()["storage"] == "sql"
        artisan = create_artisan(c, artisan_form)
        create_product(c, artisan["id"])
        listed = c.get("/api/products").json()
        assert listed[0]["artisan"]["id"] == artisan["id"]
        assert c.get("/api/search", params={"q": "vase"}).json()["products"][0]["name"] == "Vase"
