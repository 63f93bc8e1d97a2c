# backend/aurachef/schemas/recipe.py

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from enum import Enum


class TargetShape(str, Enum):
    ARRAY = "array"
    OBJECT = "object"


class ReconcileMode(str, Enum):
    AGENT = "agent"
    DIFF = "diff"


class NutritionalInfo(BaseModel):
    calories: str = Field(default="N/A", alias="Calories")
    protein: str = Field(default="N/A", alias="Protein")
    carbs: str = Field(default="N/A", alias="Carbs")
    fat: str = Field(default="N/A", alias="Fat")

    class Config:
        populate_by_name = True


class RecipeRecord(BaseModel):
    """Canonical recipe returned to callers; every field is always present"""
    id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    cuisine: str = ""
    description: str = ""
    cook_time: str = Field(default="30 minutes", alias="cookTime")
    difficulty: str = "Medium"
    image: str
    ingredients: List[str] = []
    nutritional_info: NutritionalInfo = Field(default_factory=NutritionalInfo, alias="nutritionalInfo")
    steps: List[str] = []

    class Config:
        populate_by_name = True

    def to_wire(self) -> Dict:
        return self.model_dump(by_alias=True)


class BatchParseResult(BaseModel):
    recipes: List[RecipeRecord]
    partial: bool = False
    attempts: int = 1


class ParseFailure(BaseModel):
    """Structured failure handed to the calling layer instead of an exception"""
    message: str
    kind: str
    raw_preview: str = Field(default="", max_length=250)
    detail: Optional[str] = None


class QueryRecipeResult(BaseModel):
    recipe: RecipeRecord
    missing: List[str] = []
