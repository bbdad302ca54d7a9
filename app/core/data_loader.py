"""Data loading and recipe management."""

import json
import uuid
import logging
from pathlib import Path
from typing import List, Optional
from dataclasses import dataclass, field
from functools import lru_cache

from rapidfuzz import fuzz

from config.settings import MESSAGE_TEMPLATES

logger = logging.getLogger(__name__)


@dataclass
class Recipe:
    """Recipe data class."""
    id: str
    title: str
    description: str = ""
    ingredients: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    prep_time_min: int = 0
    cook_time_min: int = 0
    servings: int = 0
    difficulty: str = "easy"

    @property
    def timer_minutes(self) -> int:
        """Minutes a kitchen timer should run for this recipe."""
        return self.cook_time_min or self.prep_time_min

    @property
    def total_time_min(self) -> int:
        return self.prep_time_min + self.cook_time_min

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "ingredients": self.ingredients,
            "steps": self.steps,
            "tags": self.tags,
            "prep_time_min": self.prep_time_min,
            "cook_time_min": self.cook_time_min,
            "total_time_min": self.total_time_min,
            "servings": self.servings,
            "difficulty": self.difficulty
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Recipe":
        """Create Recipe from dictionary."""
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            ingredients=data.get("ingredients", []),
            steps=data.get("steps", []),
            tags=data.get("tags", []),
            prep_time_min=data.get("prep_time_min", 0),
            cook_time_min=data.get("cook_time_min", 0),
            servings=data.get("servings", 0),
            difficulty=data.get("difficulty", "easy")
        )


class DataLoader:
    """Loads and manages recipe data."""

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)
        self._recipes: List[Recipe] = []
        self._loaded = False

    def load_recipes(self, filename: str = "recipes.json") -> List[Recipe]:
        """Load recipes from JSON file."""
        file_path = self.data_dir / filename

        if not file_path.exists():
            raise FileNotFoundError(f"Recipe file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        self._recipes = [Recipe.from_dict(item) for item in data]
        self._loaded = True
        return self._recipes

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def recipes(self) -> List[Recipe]:
        """Get loaded recipes."""
        if not self._loaded:
            self.load_recipes()
        return self._recipes

    @property
    def recipe_count(self) -> int:
        """Get number of loaded recipes."""
        return len(self._recipes)

    def get_recipe_by_id(self, recipe_id: str) -> Optional[Recipe]:
        """Get a recipe by its ID."""
        for recipe in self.recipes:
            if recipe.id == recipe_id:
                return recipe
        return None

    def get_recipes_by_tag(self, tag: str, recipes: Optional[List[Recipe]] = None) -> List[Recipe]:
        """Get recipes with a specific tag, optionally narrowing ``recipes``."""
        tag_lower = tag.lower()
        pool = self.recipes if recipes is None else recipes
        return [r for r in pool if tag_lower in [t.lower() for t in r.tags]]

    def get_recipes_by_difficulty(
        self,
        difficulty: str,
        recipes: Optional[List[Recipe]] = None
    ) -> List[Recipe]:
        """Get recipes with a specific difficulty."""
        diff_lower = difficulty.lower()
        pool = self.recipes if recipes is None else recipes
        return [r for r in pool if r.difficulty.lower() == diff_lower]

    def search_by_title(self, query: str, threshold: int = 70) -> List[Recipe]:
        """Search recipes by title, tolerating typos.

        Substring hits come first, then fuzzy hits ordered by similarity.
        """
        query_lower = query.lower().strip()
        if not query_lower:
            return list(self.recipes)

        scored = []
        for recipe in self.recipes:
            title = recipe.title.lower()
            if query_lower in title:
                score = 101.0
            else:
                score = fuzz.partial_ratio(query_lower, title)
            if score >= threshold:
                scored.append((score, recipe))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [recipe for _, recipe in scored]

    def _check_recipe(self, recipe: Recipe) -> Recipe:
        recipe.title = recipe.title.strip()
        recipe.description = recipe.description.strip()
        recipe.ingredients = [i.strip() for i in recipe.ingredients if i and i.strip()]
        recipe.steps = [s.strip() for s in recipe.steps if s and s.strip()]
        if not (recipe.title and recipe.description and recipe.ingredients and recipe.steps):
            raise ValueError(MESSAGE_TEMPLATES["recipe_fields_required"])
        if min(recipe.prep_time_min, recipe.cook_time_min, recipe.servings) < 0:
            raise ValueError(MESSAGE_TEMPLATES["recipe_invalid_numbers"])
        return recipe

    def add_recipe(self, data: dict) -> Recipe:
        """Add a recipe to the catalogue.

        Title, description, ingredients and steps are required; a
        ``ValueError`` is raised otherwise.
        """
        data = dict(data)
        data["id"] = uuid.uuid4().hex
        recipe = self._check_recipe(Recipe.from_dict(data))
        self.recipes.append(recipe)
        logger.info(f"Added recipe '{recipe.title}' ({recipe.id})")
        return recipe

    def update_recipe(self, recipe_id: str, data: dict) -> Optional[Recipe]:
        """Apply a partial update. Returns None for unknown ids."""
        current = self.get_recipe_by_id(recipe_id)
        if current is None:
            return None

        merged = current.to_dict()
        merged.update({k: v for k, v in data.items() if v is not None})
        merged["id"] = recipe_id
        updated = self._check_recipe(Recipe.from_dict(merged))

        index = self.recipes.index(current)
        self.recipes[index] = updated
        logger.info(f"Updated recipe '{updated.title}' ({recipe_id})")
        return updated

    def delete_recipe(self, recipe_id: str) -> bool:
        recipe = self.get_recipe_by_id(recipe_id)
        if recipe is None:
            return False
        self.recipes.remove(recipe)
        logger.info(f"Deleted recipe {recipe_id}")
        return True


@lru_cache(maxsize=1)
def get_data_loader(data_dir: str = "data") -> DataLoader:
    """Get cached data loader instance."""
    loader = DataLoader(data_dir)
    loader.load_recipes()
    return loader
