"""
Shared pytest fixtures.
Isolates tests from vendor APIs and from whatever credentials the shell exports.
"""

import json
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from private_reader.config import get_settings
from private_reader.schemas import LearningIndex, Resource

ACCESS_PASSWORD = "open-sesame"

_ENV_KEYS = [
    "ACCESS_PASSWORD",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "DEEPSEEK_API_KEY",
    "DEEPSEEK_BASE_URL",
    "ANTHROPIC_API_KEY",
    "TAVILY_API_KEY",
    "SEARCH_PROVIDER",
    "SEARCH_MAX_RESULTS",
    "SEARCH_INCLUDE_RAW_CONTENT",
    "ENVIRONMENT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the service reads."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def mock_env(clean_env):
    """Test credentials for every vendor plus the access password."""
    clean_env.setenv("ACCESS_PASSWORD", ACCESS_PASSWORD)
    clean_env.setenv("GEMINI_API_KEY", "test_gemini_key")
    clean_env.setenv("DEEPSEEK_API_KEY", "test_deepseek_key")
    clean_env.setenv("ANTHROPIC_API_KEY", "test_anthropic_key")
    clean_env.setenv("TAVILY_API_KEY", "test_tavily_key")
    return clean_env


@pytest.fixture
def settings(mock_env):
    return get_settings()


@pytest.fixture
def client(mock_env):
    from private_reader.main import app

    return TestClient(app)


@pytest.fixture
def authed_client(client):
    response = client.post("/api/auth", json={"password": ACCESS_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def sample_index_data():
    return {
        "main_topic": "Photosynthesis",
        "topic_summary": "How plants turn light into chemical energy.",
        "learning_modules": [
            {
                "order": 1,
                "title": "Light-dependent reactions",
                "description": "How chlorophyll captures photons.",
                "source_type": "Derived from Text",
                "difficulty": "Beginner",
            },
            {
                "order": 2,
                "title": "Calvin cycle",
                "description": "Carbon fixation into sugars.",
                "source_type": "Derived from Text",
                "difficulty": "Intermediate",
            },
            {
                "order": 3,
                "title": "C4 and CAM plants",
                "description": "Adaptations to hot, dry climates.",
                "source_type": "Recommended Expansion",
                "difficulty": "Advanced",
            },
        ],
    }


@pytest.fixture
def sample_index(sample_index_data):
    return LearningIndex.model_validate(sample_index_data)


@pytest.fixture
def sample_index_json(sample_index_data):
    return json.dumps(sample_index_data)


@pytest.fixture
def sample_analysis_data():
    return {
        "response_structure": {
            "section_A_technical_explanation": {"content": "Chlorophyll absorbs photons."},
            "section_B_narrative_explanation": {"content": "A leaf is a solar panel."},
            "section_C_implementation_guide": {
                "steps": [
                    {"step_number": 1, "action_title": "Observe", "why": "Grounding", "how": "Look at a leaf"},
                    {"step_number": 2, "action_title": "Measure", "why": "Data", "how": "Use a lux meter"},
                    {"step_number": 3, "action_title": "Compare", "why": "Contrast", "how": "Shade vs sun"},
                ]
            },
            "section_D_quote_mining": {
                "quotes": [
                    {"quote_text": "Light is food.", "editors_note": "Energy framing."},
                    {"quote_text": "Sugar is stored sun.", "editors_note": "Conservation."},
                ]
            },
            "section_E_blind_spots": {"content": "Ignores night-time respiration."},
        }
    }


@pytest.fixture
def sample_resources():
    return [
        Resource(title="Khan Academy", url="https://example.com/khan", content="Overview", score=0.91),
        Resource(title="Wikipedia", url="https://example.com/wiki", content="Encyclopedia", score=0.85),
    ]


@pytest.fixture
def mock_search(sample_resources):
    """Search provider returning the same two resources for every query."""
    search = Mock()
    search.name = "MockSearch"
    search.search.return_value = sample_resources
    return search
