from unittest.mock import MagicMock, patch

import pytest

from backend import gemini
from backend.gemini import GeminiTextService, GenerationError


def service_with_reply(text=None, error=None):
    mock_client = MagicMock()
    if error is not None:
        mock_client.models.generate_content.side_effect = error
    else:
        mock_client.models.generate_content.return_value = MagicMock(text=text)
    with patch("backend.gemini.genai.Client", return_value=mock_client):
        svc = GeminiTextService(api_key="dummy_key", model="test-model")
    return svc, mock_client


def test_no_key_means_unavailable():
    svc = GeminiTextService(api_key="")
    assert svc.available is False


def test_client_init_failure_is_tolerated():
    with patch("backend.gemini.genai.Client", side_effect=ValueError("bad key")):
        svc = GeminiTextService(api_key="dummy_key")
    assert svc.available is False


def test_generate_story_builds_prompt_and_returns_text():
    svc, client = service_with_reply("  A story of clay.  ")
    assert svc.available is True
    assert svc.generate_story("I shape river clay", "pottery", "10-20") == "A story of clay."

    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert "Craft Type: pottery" in kwargs["contents"]
    assert "Experience: 10-20" in kwargs["contents"]
    assert "I shape river clay" in kwargs["contents"]


def test_generate_story_empty_reply_uses_canned_text():
    svc, _ = service_with_reply("")
    assert svc.generate_story("x", "pottery", "1-5") == gemini.STORY_EMPTY


def test_generate_story_failure_raises():
    svc, _ = service_with_reply(error=RuntimeError("quota"))
    with pytest.raises(GenerationError, match="Failed to generate story"):
        svc.generate_story("x", "pottery", "1-5")


def test_generate_story_without_key_raises():
    with pytest.raises(GenerationError):
        GeminiTextService(api_key="").generate_story("x", "pottery", "1-5")


def test_enhance_description_falls_back_on_failure():
    svc, _ = service_with_reply(error=RuntimeError("network down"))
    assert svc.enhance_description("Vase", "Blue", "pottery") == gemini.DESCRIPTION_FALLBACK
    assert GeminiTextService(api_key="").enhance_description("Vase", "Blue", "pottery") == gemini.DESCRIPTION_FALLBACK


def test_enhance_description_success_and_empty():
    svc, client = service_with_reply("Glazed by hand.")
    assert svc.enhance_description("Vase", "Blue glaze", "pottery") == "Glazed by hand."
    prompt = client.models.generate_content.call_args.kwargs["contents"]
    assert "Product Name: Vase" in prompt
    assert "Basic Description: Blue glaze" in prompt

    svc, _ = service_with_reply(None)
    assert svc.enhance_description("Vase", "Blue", "pottery") == gemini.DESCRIPTION_EMPTY


def test_generate_marketing_default_audience():
    svc, client = service_with_reply("Shop now!")
    assert svc.generate_marketing("Asha Rao", "pottery", "Vase") == "Shop now!"
    prompt = client.models.generate_content.call_args.kwargs["contents"]
    assert gemini.DEFAULT_AUDIENCE in prompt
    assert "Artisan: Asha Rao" in prompt

    svc.generate_marketing("Asha Rao", "pottery", "Vase", audience="interior designers")
    assert "Target Audience: interior designers" in client.models.generate_content.call_args.kwargs["contents"]


def test_generate_marketing_failure_raises():
    svc, _ = service_with_reply(error=RuntimeError("timeout"))
    with pytest.raises(GenerationError, match="marketing"):
        svc.generate_marketing("Asha Rao", "pottery", "Vase")
