"""
API endpoint tests.

Vendor calls are replaced at the seams main.py imports: `generate` for the LLM
dispatcher and `get_search_provider` for enrichment.
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from private_reader.errors import EmptyResponseError, ProviderError


@pytest.mark.api
class TestProcessText:
    def test_returns_learning_index(self, authed_client, sample_index_json):
        with patch("private_reader.main.generate", return_value=f"```json\n{sample_index_json}\n```") as mock_generate:
            response = authed_client.post("/api/process-text", json={"text": "Plants and light", "model": "deepseek-chat"})

        assert response.status_code == 200
        data = response.json()
        assert data["main_topic"] == "Photosynthesis"
        orders = [m["order"] for m in data["learning_modules"]]
        assert orders == sorted(set(orders))
        prompt, model = mock_generate.call_args.args
        assert "Plants and light" in prompt
        assert model == "deepseek-chat"

    def test_default_model(self, authed_client, sample_index_json):
        with patch("private_reader.main.generate", return_value=sample_index_json) as mock_generate:
            authed_client.post("/api/process-text", json={"text": "Plants and light"})
        assert mock_generate.call_args.args[1] == "gemini-2.5-flash"

    @pytest.mark.parametrize("text", ["", "   \n\t "])
    def test_empty_text_rejected(self, authed_client, text):
        with patch("private_reader.main.generate") as mock_generate:
            response = authed_client.post("/api/process-text", json={"text": text})
        assert response.status_code == 400
        assert response.json()["detail"] == "Text input is required and cannot be empty"
        mock_generate.assert_not_called()

    def test_unknown_model_rejected(self, authed_client):
        response = authed_client.post("/api/process-text", json={"text": "hi", "model": "gpt-4o"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid model specified"

    def test_missing_credential_is_500(self, authed_client, mock_env):
        mock_env.delenv("DEEPSEEK_API_KEY")
        response = authed_client.post("/api/process-text", json={"text": "hi", "model": "deepseek-chat"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Server configuration error: DEEPSEEK_API_KEY not set"

    @pytest.mark.parametrize(
        "status, expected_fragment",
        [
            (401, "Invalid API key"),
            (402, "Insufficient quota"),
            (429, "rate limit"),
        ],
    )
    def test_provider_status_mapped(self, authed_client, status, expected_fragment):
        error = ProviderError("DeepSeek", f"DeepSeek API error: {status}", status_code=status)
        with patch("private_reader.main.generate", side_effect=error):
            response = authed_client.post("/api/process-text", json={"text": "hi"})
        assert response.status_code == status
        assert expected_fragment in response.json()["detail"]

    def test_other_provider_failure_is_generic_500(self, authed_client):
        with patch("private_reader.main.generate", side_effect=ProviderError("Gemini", "boom", status_code=503)):
            response = authed_client.post("/api/process-text", json={"text": "hi"})
        assert response.status_code == 500
        assert response.json()["detail"] == "An error occurred while processing your text. Please try again."

    def test_empty_vendor_response_is_500(self, authed_client):
        with patch("private_reader.main.generate", side_effect=EmptyResponseError("Gemini")):
            response = authed_client.post("/api/process-text", json={"text": "hi"})
        assert response.status_code == 500

    def test_unparsable_response_is_500(self, authed_client):
        with patch("private_reader.main.generate", return_value="Sorry, I can't help with that."):
            response = authed_client.post("/api/process-text", json={"text": "hi"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to parse LLM response as JSON"

    def test_missing_fields_is_500(self, authed_client):
        with patch("private_reader.main.generate", return_value='{"main_topic": "x"}'):
            response = authed_client.post("/api/process-text", json={"text": "hi"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Invalid response structure from LLM"


@pytest.mark.api
class TestEnrichModules:
    def test_enriches_every_module(self, authed_client, sample_index_data, mock_search, sample_resources):
        with patch("private_reader.main.get_search_provider", return_value=mock_search):
            response = authed_client.post("/api/enrich-modules", json=sample_index_data)

        assert response.status_code == 200
        data = response.json()
        assert [e["module_order"] for e in data["enriched_modules"]] == [1, 2, 3]
        merged = data["learning_index"]["learning_modules"]
        assert all(len(m["resources"]) == len(sample_resources) for m in merged)
        assert merged[0]["resources"][0]["url"] == "https://example.com/khan"

    def test_partial_failure_does_not_abort(self, authed_client, sample_index_data, mock_search, sample_resources):
        mock_search.search.side_effect = [sample_resources, ProviderError("Tavily", "Tavily API error: 500"), []]
        with patch("private_reader.main.get_search_provider", return_value=mock_search):
            response = authed_client.post("/api/enrich-modules", json=sample_index_data)

        assert response.status_code == 200
        enriched = response.json()["enriched_modules"]
        assert len(enriched[0]["resources"]) == 2
        assert enriched[1]["resources"] == []
        assert enriched[1]["error"] == "Tavily API error: 500"
        assert enriched[2]["resources"] == []
        assert enriched[2]["error"] is None

    def test_single_module_ground(self, authed_client, sample_index_data, mock_search, sample_resources):
        existing = {"title": "Kept", "url": "https://kept.example", "content": "", "score": 0.3}
        sample_index_data["learning_modules"][0]["resources"] = [existing]
        sample_index_data["module_order"] = 2

        with patch("private_reader.main.get_search_provider", return_value=mock_search):
            response = authed_client.post("/api/enrich-modules", json=sample_index_data)

        assert response.status_code == 200
        data = response.json()
        assert [e["module_title"] for e in data["enriched_modules"]] == ["Calvin cycle"]
        modules = data["learning_index"]["learning_modules"]
        assert modules[0]["resources"][0]["title"] == "Kept"
        assert len(modules[1]["resources"]) == 2
        assert modules[2]["resources"] is None

    def test_unknown_module_order(self, authed_client, sample_index_data):
        sample_index_data["module_order"] = 42
        response = authed_client.post("/api/enrich-modules", json=sample_index_data)
        assert response.status_code == 400

    def test_missing_search_key(self, authed_client, sample_index_data, mock_env):
        mock_env.delenv("TAVILY_API_KEY")
        response = authed_client.post("/api/enrich-modules", json=sample_index_data)
        assert response.status_code == 500
        assert "TAVILY_API_KEY" in response.json()["detail"]

    def test_invalid_index_format(self, authed_client):
        response = authed_client.post("/api/enrich-modules", json={"main_topic": "x"})
        assert response.status_code == 422

    def test_long_title_query_truncated(self, authed_client, sample_index_data, mock_search):
        sample_index_data["learning_modules"][0]["title"] = "t" * 500
        with patch("private_reader.main.get_search_provider", return_value=mock_search):
            authed_client.post("/api/enrich-modules", json=sample_index_data)
        assert len(mock_search.search.call_args_list[0].args[0]) == 380


@pytest.mark.api
class TestTechnicalAnalysis:
    def test_returns_analysis(self, authed_client, sample_analysis_data):
        raw = "Here you go:\n" + json.dumps(sample_analysis_data)
        with patch("private_reader.main.generate", return_value=raw) as mock_generate:
            response = authed_client.post(
                "/api/technical-analysis", json={"raw_content": "Leaves are green.", "model": "claude-sonnet-4-5"}
            )

        assert response.status_code == 200
        assert response.json() == sample_analysis_data
        prompt, model = mock_generate.call_args.args
        assert "Leaves are green." in prompt
        assert model == "claude-sonnet-4-5"

    def test_empty_raw_content(self, authed_client):
        response = authed_client.post("/api/technical-analysis", json={"raw_content": " "})
        assert response.status_code == 400
        assert response.json()["detail"] == "Raw content is required and cannot be empty"

    def test_invalid_model(self, authed_client):
        response = authed_client.post("/api/technical-analysis", json={"raw_content": "x", "model": "llama-3"})
        assert response.status_code == 400

    def test_missing_section_is_500(self, authed_client, sample_analysis_data):
        del sample_analysis_data["response_structure"]["section_D_quote_mining"]
        with patch("private_reader.main.generate", return_value=json.dumps(sample_analysis_data)):
            response = authed_client.post("/api/technical-analysis", json={"raw_content": "x"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Invalid response structure from LLM"

    def test_rate_limit(self, authed_client):
        with patch("private_reader.main.generate", side_effect=ProviderError("Gemini", "quota", status_code=429)):
            response = authed_client.post("/api/technical-analysis", json={"raw_content": "x"})
        assert response.status_code == 429


@pytest.mark.api
class TestExtract:
    def test_returns_raw_content(self, authed_client):
        text = "Readable paragraph. " * 20
        with patch("private_reader.main.fetch_raw_content", new=AsyncMock(return_value=text)):
            response = authed_client.post("/api/extract", json={"url": "https://example.com/a"})
        assert response.status_code == 200
        assert response.json() == {"url": "https://example.com/a", "raw_content": text}

    def test_too_little_text(self, authed_client):
        with patch("private_reader.main.fetch_raw_content", new=AsyncMock(return_value="short")):
            response = authed_client.post("/api/extract", json={"url": "https://example.com/a"})
        assert response.status_code == 400

    def test_malformed_url_is_400(self, authed_client):
        response = authed_client.post("/api/extract", json={"url": "https://[::1"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid URL"

    def test_fetch_failure(self, authed_client):
        error = httpx.ConnectError("refused")
        with patch("private_reader.main.fetch_raw_content", new=AsyncMock(side_effect=error)):
            response = authed_client.post("/api/extract", json={"url": "https://example.com/a"})
        assert response.status_code == 502


@pytest.mark.api
class TestExportAndModels:
    def test_models(self, authed_client):
        values = [m["value"] for m in authed_client.get("/api/models").json()]
        assert values[0] == "gemini-2.5-flash"
        assert {"deepseek-chat", "deepseek-reasoner", "claude-sonnet-4-5"} <= set(values)

    def test_export_text(self, authed_client, sample_index_data):
        response = authed_client.post("/api/export/text", json=sample_index_data)
        assert response.status_code == 200
        assert response.text.startswith("Photosynthesis\nHow plants turn light into chemical energy.\n\nLearning Modules:")

    def test_export_single_module_text(self, authed_client, sample_index_data):
        response = authed_client.post("/api/export/text?module_order=2", json=sample_index_data)
        assert response.status_code == 200
        assert response.text == "Calvin cycle\nCarbon fixation into sugars."

    def test_export_unknown_module(self, authed_client, sample_index_data):
        response = authed_client.post("/api/export/text?module_order=9", json=sample_index_data)
        assert response.status_code == 400

    def test_export_analysis_text(self, authed_client, sample_analysis_data):
        response = authed_client.post("/api/export/analysis-text", json=sample_analysis_data)
        assert response.status_code == 200
        assert response.text.startswith("TECHNICAL ANALYSIS\n\nTECHNICAL EXPLANATION\nChlorophyll absorbs photons.")
        assert response.text.endswith("Ignores night-time respiration.")

    def test_app_page_copies_through_server_formatting(self, authed_client):
        page = authed_client.get("/app").text
        assert 'copyFrom("/api/export/text", index)' in page
        assert "/api/export/text?module_order=" in page
        assert 'apiText("/api/export/analysis-text", analysis)' in page

    def test_app_page_links_only_http_urls(self, authed_client):
        page = authed_client.get("/app").text
        assert r"/^https?:\/\//i" in page
        assert 'href="${esc(r.url)}"' not in page
        assert 'href="${esc(href)}"' in page

    def test_export_docx(self, authed_client, sample_index_data):
        response = authed_client.post("/api/export/docx", json=sample_index_data)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/vnd.openxmlformats")
        assert response.content[:2] == b"PK"
