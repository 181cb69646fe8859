# frontend/app.py
# Run with: streamlit run frontend/app.py
from pathlib import Path
from typing import List, Optional

import streamlit as st
import streamlit.components.v1 as components
from dotenv import load_dotenv

# -------------------------
# Load .env from project root
# -------------------------
proj_root = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=proj_root / ".env")

from frontend.client import (  # noqa: E402
    CRAFT_OPTIONS,
    EXPERIENCE_OPTIONS,
    INQUIRY_STATUSES,
    MAX_PORTFOLIO_FILES,
    MAX_PRODUCT_FILES,
    SORT_OPTIONS,
    api_patch,
    api_post,
    craft_label,
    dashboard_stats,
    error_message,
    filter_by_category,
    format_price,
    full_name,
    get_json,
    sort_products,
    story_html,
    to_abs,
    to_minor_units,
    validate_inquiry,
    validate_product,
    validate_signup,
    validate_story,
)

PAGES = ["Home", "Discover", "Join as Artisan", "Artisan Profile", "Dashboard"]

# -------------------------
# Page config & styling
# -------------------------
st.set_page_config(page_title="ArtisanAlly", layout="wide", page_icon="🏺")

css_and_fonts = """
<link href="https://fonts.googleapis.com/css2?family=Playfair+Display:wght@600;700&family=Inter:wght@300;400;600&display=swap" rel="stylesheet">
<style>
:root{ --bg:#faf6f0; --card:#fff; --accent:#b07a45; --muted:#6f6259; --text:#222; }
html, body, [class*="css"] { background: linear-gradient(180deg, var(--bg), #fff); color:var(--text); font-family:"Inter", system-ui, sans-serif; }
.hero h1 { font-family:"Playfair Display", Georgia, serif; font-size:56px; margin:0; line-height:1; }
.hero .subtle { color:var(--muted); font-size:17px; max-width:44rem; margin-top:12px; }
.topline { width:120px; height:3px; background:var(--accent); margin-bottom:16px; border-radius:2px; }
.muted { color:var(--muted); }
.story { background:#fffaf3; border-left:3px solid var(--accent); padding:14px 18px; border-radius:6px; white-space:pre-wrap; }
</style>
"""
components.html(css_and_fonts, height=10)

# -------------------------
# Session init
# -------------------------
if "page" not in st.session_state:
    st.session_state["page"] = "Home"
if "artisan_id" not in st.session_state:
    st.session_state["artisan_id"] = None
if "profile_id" not in st.session_state:
    st.session_state["profile_id"] = None
if "generated_story" not in st.session_state:
    st.session_state["generated_story"] = None
if "marketing_copy" not in st.session_state:
    st.session_state["marketing_copy"] = None
if "search_query" not in st.session_state:
    st.session_state["search_query"] = ""


def go(page: str, profile_id: Optional[str] = None):
    """Button callback: switch page (runs before the next script pass)."""
    st.session_state["page"] = page
    if profile_id:
        st.session_state["profile_id"] = profile_id


def show_error(resp, fallback: str):
    st.error(error_message(resp, fallback))


def upload_parts(field: str, files) -> List[tuple]:
    return [(field, (f.name, f.getvalue(), f.type)) for f in (files or [])]


# -------------------------
# Shared renderers
# -------------------------
def artisan_card(artisan: dict, key_prefix: str):
    images = artisan.get("portfolioImages") or []
    if images:
        st.image(to_abs(images[0]), width="stretch")
    st.markdown(f"**{full_name(artisan)}**")
    st.caption(f"{craft_label(artisan.get('craftSpecialty'))} · {artisan.get('location') or 'India'}")
    st.write(f"⭐ {artisan.get('rating', 5)} ({artisan.get('reviewCount', 0)} reviews)")
    st.button("View profile", key=f"{key_prefix}_{artisan['id']}", on_click=go,
              args=("Artisan Profile", artisan["id"]))


def product_card(product: dict, key_prefix: str):
    images = product.get("images") or []
    if images:
        st.image(to_abs(images[0]), width="stretch")
    st.markdown(f"**{product.get('name', '')}** — {format_price(product.get('price', 0))}")
    st.caption(craft_label(product.get("category")))
    st.write(product.get("aiGeneratedDescription") or product.get("description", ""))
    owner = product.get("artisan")
    if owner:
        st.button(f"by {full_name(owner)}", key=f"{key_prefix}_{product['id']}", on_click=go,
                  args=("Artisan Profile", owner["id"]))


def grid(items: List[dict], render, key_prefix: str, columns: int = 3):
    for start in range(0, len(items), columns):
        cols = st.columns(columns)
        for col, item in zip(cols, items[start:start + columns]):
            with col:
                render(item, key_prefix)


def story_generator(artisan_id: Optional[str], key: str):
    st.subheader("✨ AI story generator")
    st.markdown('<p class="muted">Tell us about your craft and we will draft a story for your profile.</p>',
                unsafe_allow_html=True)
    user_input = st.text_area("About you and your craft", key=f"{key}_input", height=120,
                              placeholder="I create traditional pottery using techniques passed down through generations...")
    c1, c2 = st.columns(2)
    craft = c1.selectbox("Craft", list(CRAFT_OPTIONS), format_func=craft_label, key=f"{key}_craft")
    experience = c2.selectbox("Experience", list(EXPERIENCE_OPTIONS),
                              format_func=EXPERIENCE_OPTIONS.get, key=f"{key}_exp")

    if st.button("Generate story", key=f"{key}_btn"):
        payload = {
            "artisanId": artisan_id or "guest",
            "userInput": user_input,
            "craftType": craft,
            "experience": experience,
        }
        problems = validate_story(payload)
        if problems:
            st.error("Please fill in all fields to generate your story.")
        else:
            with st.spinner("Generating your story..."):
                resp = api_post("/api/stories/generate", json=payload)
            if resp is not None and resp.ok:
                st.session_state["generated_story"] = resp.json()["story"]
                st.success("Story generated!")
            else:
                show_error(resp, "Generation failed")

    story = st.session_state.get("generated_story")
    if story:
        st.markdown(story_html(story), unsafe_allow_html=True)
        if artisan_id and st.button("Use this story on my profile", key=f"{key}_use"):
            resp = api_patch(f"/api/artisans/{artisan_id}", json={"aiGeneratedStory": story})
            if resp is not None and resp.ok:
                st.success("Profile story updated.")
            else:
                show_error(resp, "Could not update profile")


# -------------------------
# Pages
# -------------------------
def home_page():
    st.markdown(
        "<div class='hero'><div class='topline'></div><h1>Handmade, by real hands.</h1>"
        "<p class='subtle'>ArtisanAlly connects traditional makers with buyers who value provenance. "
        "Artisans tell their story with help from AI; buyers discover, browse and reach out directly.</p></div>",
        unsafe_allow_html=True,
    )
    c1, c2, _ = st.columns([1, 1, 3])
    c1.button("Explore crafts", on_click=go, args=("Discover",))
    c2.button("Join as an artisan", on_click=go, args=("Join as Artisan",))

    st.markdown("---")
    st.header("Featured artisans")
    featured = get_json("/api/artisans/featured", default=None)
    if featured is None:
        st.warning("Could not load featured artisans.")
    elif not featured:
        st.info("No artisans yet. Be the first to join!")
    else:
        grid(featured, artisan_card, "feat")

    st.markdown("---")
    st.header("Product showcase")
    tabs = st.tabs(["All Crafts"] + [craft_label(c) for c in ("textiles", "pottery", "jewelry", "woodwork", "metalwork")])
    for tab, category in zip(tabs, ["all", "textiles", "pottery", "jewelry", "woodwork", "metalwork"]):
        with tab:
            params = {"category": category} if category != "all" else None
            products = get_json("/api/products", params=params, default=[])
            if not products:
                st.info("No products available." if category == "all"
                        else f"No {craft_label(category).lower()} products available.")
            else:
                grid(products[:6], product_card, f"show_{category}")

    st.markdown("---")
    story_generator(st.session_state.get("artisan_id"), key="home_story")


def discover_page():
    st.title("Discover authentic crafts")
    with st.form("search_form"):
        q = st.text_input("Search artisans, crafts, or products...", value=st.session_state["search_query"])
        submitted = st.form_submit_button("Search")
    if submitted:
        st.session_state["search_query"] = q.strip()

    c1, c2 = st.columns(2)
    category = c1.selectbox("Category", ["all"] + list(CRAFT_OPTIONS),
                            format_func=lambda c: "All Categories" if c == "all" else craft_label(c))
    sort_by = c2.selectbox("Sort by", list(SORT_OPTIONS), format_func=SORT_OPTIONS.get)

    query = st.session_state["search_query"]
    if query:
        results = get_json("/api/search", params={"q": query}, default=None)
        if results is None:
            st.error("Search failed.")
            return
        artisans, products = results["artisans"], results["products"]
        st.caption(f"Results for “{query}”")
    else:
        artisans = get_json("/api/artisans", default=[])
        products = get_json("/api/products", default=[])

    products = sort_products(filter_by_category(products, category), sort_by)

    tab_all, tab_artisans, tab_products = st.tabs([
        "All Results",
        f"Artisans ({len(artisans)})",
        f"Products ({len(products)})",
    ])
    with tab_all:
        if not artisans and not products:
            st.info("No results found. Try a different search term.")
        if artisans:
            st.subheader("Artisans")
            grid(artisans[:6], artisan_card, "disc_all_a")
        if products:
            st.subheader("Products")
            grid(products[:9], product_card, "disc_all_p")
    with tab_artisans:
        if artisans:
            grid(artisans, artisan_card, "disc_a")
        else:
            st.info("No artisans found.")
    with tab_products:
        if products:
            grid(products, product_card, "disc_p")
        else:
            st.info("No products found.")


def signup_page():
    st.title("Join ArtisanAlly")
    st.markdown('<p class="muted">Create your profile to showcase your craft to buyers everywhere.</p>',
                unsafe_allow_html=True)

    with st.form("signup_form"):
        c1, c2 = st.columns(2)
        first_name = c1.text_input("First name")
        last_name = c2.text_input("Last name")
        email = c1.text_input("Email")
        phone = c2.text_input("Phone")
        craft = c1.selectbox("Craft specialty", list(CRAFT_OPTIONS), format_func=craft_label)
        experience = c2.selectbox("Years of experience", list(EXPERIENCE_OPTIONS), format_func=EXPERIENCE_OPTIONS.get)
        location = st.text_input("Location", placeholder="City, State")
        biography = st.text_area("Biography", height=140,
                                 placeholder="Describe your craft, techniques, and what makes your work unique...")
        files = st.file_uploader("Portfolio images (up to 10)", type=["jpg", "jpeg", "png", "webp"],
                                 accept_multiple_files=True)
        terms = st.checkbox("I agree to the terms and conditions")
        submitted = st.form_submit_button("Create profile")

    if not submitted:
        return

    payload = {
        "firstName": first_name,
        "lastName": last_name,
        "email": email,
        "phone": phone,
        "craftSpecialty": craft,
        "yearsOfExperience": experience,
        "biography": biography,
        "location": location or None,
    }
    problems = validate_signup(payload)
    if problems:
        for p in problems:
            st.error(p)
        return
    if len(files or []) > MAX_PORTFOLIO_FILES:
        st.error(f"You can upload a maximum of {MAX_PORTFOLIO_FILES} images.")
        return
    if not terms:
        st.error("Please accept the terms and conditions to continue.")
        return

    form_data = {k: v for k, v in payload.items() if v}
    resp = api_post("/api/artisans", data=form_data, files=upload_parts("portfolioImages", files))
    if resp is not None and resp.status_code == 201:
        artisan = resp.json()
        st.session_state["artisan_id"] = artisan["id"]
        st.success("Profile created! Welcome to ArtisanAlly.")
        st.button("Go to my dashboard", on_click=go, args=("Dashboard",))
    else:
        show_error(resp, "Signup failed")


def profile_page():
    artisan_id = st.session_state.get("profile_id") or st.session_state.get("artisan_id")
    if not artisan_id:
        st.info("Pick an artisan from Discover to view their profile.")
        return

    artisan = get_json(f"/api/artisans/{artisan_id}")
    if not artisan:
        st.error("Artisan not found.")
        return

    st.title(full_name(artisan))
    st.caption(f"{craft_label(artisan.get('craftSpecialty'))} · "
               f"{EXPERIENCE_OPTIONS.get(artisan.get('yearsOfExperience'), artisan.get('yearsOfExperience'))} · "
               f"{artisan.get('location') or 'India'}")
    st.write(f"⭐ {artisan.get('rating', 5)} ({artisan.get('reviewCount', 0)} reviews)")
    st.write(artisan.get("biography", ""))

    if artisan.get("aiGeneratedStory"):
        st.subheader("My story")
        st.markdown(story_html(artisan["aiGeneratedStory"]), unsafe_allow_html=True)

    images = artisan.get("portfolioImages") or []
    if images:
        st.subheader("Portfolio")
        cols = st.columns(min(len(images), 4))
        for i, img in enumerate(images):
            with cols[i % len(cols)]:
                st.image(to_abs(img), width="stretch")

    products = get_json(f"/api/artisans/{artisan_id}/products", default=[])
    st.subheader(f"Products ({len(products)})")
    if products:
        grid(products, product_card, "prof_p")
    else:
        st.info("No products listed yet.")

    st.markdown("---")
    st.subheader(f"Contact {artisan.get('firstName', '')}")
    product_choices = {"": "General inquiry"}
    product_choices.update({p["id"]: p["name"] for p in products})
    with st.form("inquiry_form"):
        buyer_name = st.text_input("Your name")
        buyer_email = st.text_input("Your email")
        product_id = st.selectbox("About", list(product_choices), format_func=product_choices.get)
        message = st.text_area("Message")
        sent = st.form_submit_button("Send inquiry")
    if sent:
        payload = {
            "artisanId": artisan_id,
            "buyerName": buyer_name,
            "buyerEmail": buyer_email,
            "message": message,
            "productId": product_id or None,
        }
        problems = validate_inquiry(payload)
        if problems:
            for p in problems:
                st.error(p)
        else:
            resp = api_post("/api/inquiries", json=payload)
            if resp is not None and resp.status_code == 201:
                st.success("Inquiry sent. The artisan will get back to you soon.")
            else:
                show_error(resp, "Could not send inquiry")


def dashboard_page():
    st.title("Artisan dashboard")
    current = st.session_state.get("artisan_id") or ""
    entered = st.text_input("Your artisan ID", value=current)
    if entered.strip() != current:
        st.session_state["artisan_id"] = entered.strip() or None
    artisan_id = st.session_state.get("artisan_id")
    if not artisan_id:
        st.info("Sign up or enter your artisan ID to manage your shop.")
        st.button("Join as an artisan", on_click=go, args=("Join as Artisan",))
        return

    artisan = get_json(f"/api/artisans/{artisan_id}")
    if not artisan:
        st.error("Artisan not found.")
        return

    products = get_json(f"/api/artisans/{artisan_id}/products", params={"all": "true"}, default=[])
    inquiries = get_json(f"/api/artisans/{artisan_id}/inquiries", default=[])
    stories = get_json(f"/api/artisans/{artisan_id}/stories", default=[])
    stats = dashboard_stats(products, inquiries, stories)

    st.subheader(f"Welcome, {artisan.get('firstName', 'Artisan')} 🎉")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Products", stats["products"])
    c2.metric("Inquiries", stats["inquiries"])
    c3.metric("Pending", stats["pending"])
    c4.metric("Stories", stats["stories"])
    st.button("View public profile", on_click=go, args=("Artisan Profile", artisan_id))

    tab_products, tab_add, tab_inquiries, tab_ai = st.tabs(["My Products", "Add Product", "Inquiries", "AI Tools"])

    with tab_products:
        if not products:
            st.info("No products yet.")
        for p in products:
            cols = st.columns([1, 3, 1])
            with cols[0]:
                if p.get("images"):
                    st.image(to_abs(p["images"][0]), width=140)
            with cols[1]:
                st.markdown(f"**{p['name']}** — {format_price(p['price'])}")
                st.write(p.get("aiGeneratedDescription") or p.get("description", ""))
            with cols[2]:
                available = p.get("isAvailable", True)
                if not available:
                    st.caption("Hidden from buyers")
                label = "Mark unavailable" if available else "Mark available"
                if st.button(label, key=f"toggle_{p['id']}"):
                    resp = api_patch(f"/api/products/{p['id']}", json={"isAvailable": not available})
                    if resp is not None and resp.ok:
                        st.rerun()
                    else:
                        show_error(resp, "Update failed")

    with tab_add:
        with st.form("product_form", clear_on_submit=True):
            name = st.text_input("Product name")
            category = st.selectbox("Category", list(CRAFT_OPTIONS), format_func=craft_label)
            price = st.number_input("Price (₹)", min_value=0.0, step=10.0)
            description = st.text_area("Description")
            files = st.file_uploader("Images (up to 5)", type=["jpg", "jpeg", "png", "webp"],
                                     accept_multiple_files=True)
            submitted = st.form_submit_button("Add product")
        if submitted:
            payload = {
                "artisanId": artisan_id,
                "name": name,
                "description": description,
                "price": to_minor_units(price),
                "category": category,
            }
            problems = validate_product(payload)
            if problems:
                for p in problems:
                    st.error(p)
            elif len(files or []) > MAX_PRODUCT_FILES:
                st.error(f"You can upload a maximum of {MAX_PRODUCT_FILES} images.")
            else:
                with st.spinner("Saving and writing an AI description..."):
                    resp = api_post("/api/products", data=payload, files=upload_parts("images", files))
                if resp is not None and resp.status_code == 201:
                    st.success("Product added.")
                    st.write(resp.json().get("aiGeneratedDescription") or "")
                else:
                    show_error(resp, "Upload failed")

    with tab_inquiries:
        if not inquiries:
            st.info("No inquiries yet.")
        for inq in inquiries:
            with st.expander(f"{inq['buyerName']} <{inq['buyerEmail']}> — {inq.get('status', 'pending')}"):
                st.write(inq["message"])
                statuses = INQUIRY_STATUSES if inq.get("status") in INQUIRY_STATUSES else [inq.get("status")] + INQUIRY_STATUSES
                new_status = st.selectbox("Status", statuses, index=statuses.index(inq.get("status")),
                                          key=f"status_{inq['id']}")
                if st.button("Update status", key=f"upd_{inq['id']}"):
                    resp = api_patch(f"/api/inquiries/{inq['id']}", json={"status": new_status})
                    if resp is not None and resp.ok:
                        st.success("Status updated.")
                    else:
                        show_error(resp, "Update failed")

    with tab_ai:
        story_generator(artisan_id, key="dash_story")
        st.markdown("---")
        st.subheader("📣 Marketing copy")
        product_names = [p["name"] for p in products] or [""]
        with st.form("marketing_form"):
            product_name = st.selectbox("Product", product_names) if products else st.text_input("Product name")
            audience = st.text_input("Target audience (optional)")
            go_marketing = st.form_submit_button("Generate copy")
        if go_marketing:
            payload = {
                "artisanName": full_name(artisan),
                "craftType": artisan.get("craftSpecialty", ""),
                "productName": product_name,
                "audience": audience or None,
            }
            with st.spinner("Writing marketing copy..."):
                resp = api_post("/api/marketing/generate", json=payload)
            if resp is not None and resp.ok:
                st.session_state["marketing_copy"] = resp.json()["content"]
            else:
                show_error(resp, "Generation failed")
        if st.session_state.get("marketing_copy"):
            st.markdown(story_html(st.session_state["marketing_copy"]), unsafe_allow_html=True)

        if stories:
            st.markdown("---")
            st.subheader("Past stories")
            for s in reversed(stories):
                with st.expander(f"{craft_label(s['craftType'])} · {s['createdAt'][:10]}"):
                    st.write(s["generatedStory"])


# -------------------------
# Navigation
# -------------------------
st.sidebar.markdown("## 🏺 ArtisanAlly")
st.sidebar.radio("Go to", PAGES, key="page")
if st.session_state.get("artisan_id"):
    st.sidebar.caption(f"Signed up as {st.session_state['artisan_id']}")

page = st.session_state["page"]
if page == "Home":
    home_page()
elif page == "Discover":
    discover_page()
elif page == "Join as Artisan":
    signup_page()
elif page == "Artisan Profile":
    profile_page()
elif page == "Dashboard":
    dashboard_page()
