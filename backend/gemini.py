# backend/gemini.py
import logging
from typing import Optional

from google import genai

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_AUDIENCE = "global customers interested in authentic handcrafted items"

STORY_EMPTY = "Unable to generate story at this time. Please try again."
DESCRIPTION_EMPTY = (
    "Beautifully handcrafted with traditional techniques, this piece represents "
    "the rich heritage of Indian craftsmanship."
)
DESCRIPTION_FALLBACK = (
    "This handcrafted piece showcases traditional Indian artisan skills, made with "
    "care and attention to detail using time-honored techniques."
)
MARKETING_EMPTY = (
    "Discover authentic handcrafted beauty from talented traditional artisans. "
    "Each piece tells a story of heritage, skill, and passion."
)

STORY_PROMPT = """
You are a skilled storyteller helping traditional artisans share their craft stories.

Based on the following information about an artisan, create a compelling, authentic story that captures their passion, heritage, and craftsmanship:

Craft Type: {craft_type}
Experience: {experience}
Artisan's Description: {user_input}

Guidelines:
- Write in first person from the artisan's perspective
- Emphasize the cultural heritage and traditional techniques
- Include emotional connection to the craft
- Mention the learning journey and skill development
- Keep it between 150-300 words
- Make it authentic and respectful to Indian craftsmanship traditions
- Focus on the human story behind the craft

Create a story that would help customers connect with the artisan and appreciate the value of handcrafted work.
"""

DESCRIPTION_PROMPT = """
You are an expert in traditional Indian crafts and marketplace marketing.

Create an enhanced product description that will help customers understand the value and uniqueness of this handcrafted item:

Product Name: {name}
Category: {category}
Basic Description: {description}

Guidelines:
- Enhance the description while keeping it authentic
- Highlight traditional techniques and cultural significance
- Mention quality aspects and craftsmanship details
- Add context about the craft tradition
- Keep it between 100-200 words
- Make it appealing to modern customers while respecting tradition
- Include care instructions if relevant
- Emphasize the handmade, unique nature

Create a description that would convince customers of the product's value and authenticity.
"""

MARKETING_PROMPT = """
Create compelling marketing content for a traditional Indian artisan's product.

Details:
- Artisan: {artisan_name}
- Craft: {craft_type}
- Product: {product_name}
- Target Audience: {audience}

Create marketing copy that:
- Tells the story behind the product
- Connects with the target audience emotionally
- Highlights uniqueness and authenticity
- Includes a call-to-action
- Respects cultural heritage
- Is suitable for social media or website use
- Is between 100-150 words

Make it engaging and authentic.
"""


class GenerationError(RuntimeError):
    """Raised when the model call fails for a use case that must not fall back."""


class GeminiTextService:
    """
    Thin wrapper over the google-genai client, one method per prompt.
    Without an API key the client stays None and every call counts as a failure.
    """

    def __init__(self, api_key: str = "", model: str = DEFAULT_MODEL):
        self.model = model
        self.client = None
        if api_key:
            try:
                self.client = genai.Client(api_key=api_key)
            except Exception as e:
                logger.warning("genai client init failed: %s", e)
                self.client = None

    @property
    def available(self) -> bool:
        return self.client is not None

    def _generate(self, prompt: str) -> str:
        if self.client is None:
            raise GenerationError("Gemini API key is not configured")
        resp = self.client.models.generate_content(model=self.model, contents=prompt)
        return (resp.text or "").strip()

    def generate_story(self, user_input: str, craft_type: str, experience: str) -> str:
        prompt = STORY_PROMPT.format(craft_type=craft_type, experience=experience, user_input=user_input)
        try:
            return self._generate(prompt) or STORY_EMPTY
        except Exception as e:
            logger.error("Failed to generate story: %s", e)
            raise GenerationError("Failed to generate story. Please check your input and try again.") from e

    def enhance_description(self, name: str, description: str, category: str) -> str:
        prompt = DESCRIPTION_PROMPT.format(name=name, category=category, description=description)
        try:
            return self._generate(prompt) or DESCRIPTION_EMPTY
        except Exception as e:
            logger.error("Failed to enhance product description: %s", e)
            return DESCRIPTION_FALLBACK

    def generate_marketing(
        self,
        artisan_name: str,
        craft_type: str,
        product_name: str,
        audience: Optional[str] = None,
    ) -> str:
        prompt = MARKETING_PROMPT.format(
            artisan_name=artisan_name,
            craft_type=craft_type,
            product_name=product_name,
            audience=audience or DEFAULT_AUDIENCE,
        )
        try:
            return self._generate(prompt) or MARKETING_EMPTY
        except Exception as e:
            logger.error("Failed to generate marketing content: %s", e)
            raise GenerationError("Failed to generate marketing content. Please try again.") from e
