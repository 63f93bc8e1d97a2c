# backend/conftest.py
"""
Pytest configuration and fixtures for AuraChef tests
Provides generation clients (ready / offline) and sample model payloads
"""

import json
import pytest
from unittest.mock import AsyncMock

from aurachef.services.llm_client import LLMClient
from aurachef.services.recipe_generator import RecipeGenerationService

TEST_API_KEY = "sk-test-" + "x" * 40


# ===== CLIENT FIXTURES =====

@pytest.fixture
def ready_client():
    """LLMClient that passes initialization; complete() is mocked per test"""
    client = LLMClient(model="gpt-4o-mini", api_key=TEST_API_KEY)
    client.complete = AsyncMock(return_value="")
    return client


@pytest.fixture
def offline_client():
    """LLMClient whose initialization failed (key too short)"""
    return LLMClient(model="gpt-4o-mini", api_key="short")


@pytest.fixture
def recipe_service(ready_client):
    return RecipeGenerationService(ready_client)


@pytest.fixture
def offline_service(offline_client):
    return RecipeGenerationService(offline_client)


# ===== PAYLOAD FIXTURES =====

@pytest.fixture
def sample_recipe():
    """One well-formed recipe object as the model is asked to return it"""
    return {
        "id": 1,
        "title": "Paneer Butter Masala",
        "cuisine": "Indian",
        "description": "Creamy tomato gravy with soft paneer cubes.",
        "cookTime": "35 minutes",
        "difficulty": "Medium",
        "image": "https://images.unsplash.com/photo-1631452180519-c014fe946bc7",
        "ingredients": ["paneer", "onions", "green chilli", "butter"],
        "nutritionalInfo": {"Calories": "420 kcal", "Protein": "18 g", "Carbs": "20 g", "Fat": "30 g"},
        "steps": ["Saute onions in butter.", "Add tomato puree.", "Simmer paneer in the gravy."],
    }


@pytest.fixture
def recipe_array_text(sample_recipe):
    second = dict(sample_recipe, id=2, title="Jeera Rice")
    return json.dumps([sample_recipe, second])


@pytest.fixture
def truncated_array_text():
    """Cut off inside the third object"""
    return '[{"id":1,"title":"A"},{"id":2,"title":"B"},{"id":3,"tit'


@pytest.fixture
def truncated_single_object_text():
    """Only one complete object before the cut, below the salvage threshold"""
    return '[{"id":1,"title":"A"},{"id":2,"tit'


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no network access")
