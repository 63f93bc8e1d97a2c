from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: str = "development"

    # LLM provider (model name decides openai vs anthropic)
    llm_model: str = "gpt-4o-mini"
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    min_api_key_length: int = 30

    # Batch generation (array of recipes)
    batch_max_tokens: int = 2200
    batch_temperature: float = 0.15

    # Single recipe by query
    single_max_tokens: int = 1800
    single_temperature: float = 0.15

    # Ingredient diff
    diff_max_tokens: int = 800
    diff_temperature: float = 0.1

    # Parsing
    min_salvaged_recipes: int = 2
    raw_preview_chars: int = 250
    empty_output_min_chars: int = 5

    # Reconciliation caps
    agent_missing_cap: int = 20
    diff_missing_cap: int = 40

    # Seed pantry used when the caller has nothing stocked
    default_pantry: List[str] = [
        "rice", "onion", "tomato", "garlic", "chicken", "turmeric",
        "cumin", "chilli powder", "ginger", "butter",
    ]

    @property
    def api_key(self) -> Optional[str]:
        if "claude" in self.llm_model.lower():
            return self.anthropic_api_key
        return self.openai_api_key

    class Config:
        env_file = ".env"


settings = Settings()
