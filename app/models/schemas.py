"""Pydantic models for API request/response schemas."""

from typing import List, Optional, Literal, Union
from pydantic import BaseModel, Field


class LiveTimerCreate(BaseModel):
    """Request body for creating a live timer."""
    minutes: int = Field(default=0, ge=0, description="Initial minutes")
    seconds: int = Field(default=0, ge=0, le=59, description="Initial seconds")
    title: str = Field(default="Timer", min_length=1, description="Display title")


class SaveDurationRequest(BaseModel):
    """Request body for saving an edited duration.

    Values are taken as typed into the edit form and validated by the timer.
    """
    minutes: Union[int, str, None] = Field(default=None, description="Edited minutes")
    seconds: Union[int, str, None] = Field(default=None, description="Edited seconds")


class LiveTimerResponse(BaseModel):
    """State of a live timer."""
    id: str = Field(description="Live timer identifier")
    title: str = Field(description="Display title")
    source: Optional[str] = Field(default=None, description="Saved timer or recipe it was created from")
    phase: Literal["idle", "running", "paused", "completed", "editing"] = Field(description="Current phase")
    display: str = Field(description="Remaining time as MM:SS")
    remaining_minutes: int = Field(ge=0, description="Remaining minutes")
    remaining_seconds: int = Field(ge=0, le=59, description="Remaining seconds")
    initial_minutes: int = Field(ge=0, description="Configured minutes")
    initial_seconds: int = Field(ge=0, le=59, description="Configured seconds")
    is_running: bool = Field(description="Whether the countdown is ticking")
    is_completed: bool = Field(description="Whether the countdown reached zero")
    is_editing: bool = Field(description="Whether the duration is being edited")
    validation_error: Optional[str] = Field(default=None, description="Last edit validation error")
    completions: int = Field(default=0, description="Number of times this timer completed")
    created_at: str = Field(description="Creation time (ISO 8601)")


class TransitionResponse(BaseModel):
    """Result of a user action on a live timer."""
    applied: bool = Field(description="False when the action was not allowed in the current phase")
    timer: LiveTimerResponse


class SavedTimerCreate(BaseModel):
    """Request body for saving a named timer."""
    name: str = Field(description="Timer name, e.g. 'Pasta boiling time'")
    minutes: int = Field(default=0, description="Minutes")
    seconds: int = Field(default=0, description="Seconds")


class SavedTimerUpdate(BaseModel):
    """Request body for updating a named timer."""
    name: Optional[str] = None
    minutes: Optional[int] = None
    seconds: Optional[int] = None
    is_active: Optional[bool] = None


class SavedTimerResponse(BaseModel):
    """A saved named timer."""
    id: str
    name: str
    minutes: int
    seconds: int
    duration: int = Field(description="Total duration in seconds")
    created_at: str
    is_active: bool


class RecipeTimerRequest(BaseModel):
    """Request body for starting a timer from a recipe."""
    start: bool = Field(default=False, description="Start the countdown immediately")


class RecipeCreate(BaseModel):
    """Request body for adding a recipe."""
    title: str = Field(description="Recipe title")
    description: str = Field(default="", description="Short description")
    ingredients: List[str] = Field(default_factory=list, description="Ingredient lines")
    steps: List[str] = Field(default_factory=list, description="Instructions")
    tags: List[str] = Field(default_factory=list)
    prep_time_min: int = Field(default=0, description="Preparation time in minutes")
    cook_time_min: int = Field(default=0, description="Cooking time in minutes")
    servings: int = Field(default=0)
    difficulty: Literal["easy", "medium", "hard"] = "easy"


class RecipeUpdate(BaseModel):
    """Request body for updating a recipe. Omitted fields are kept."""
    title: Optional[str] = None
    description: Optional[str] = None
    ingredients: Optional[List[str]] = None
    steps: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    prep_time_min: Optional[int] = None
    cook_time_min: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None


class RecipeShoppingRequest(BaseModel):
    """Request body for putting a recipe's ingredients on a shopping list."""
    list_id: Optional[str] = Field(default=None, description="Existing list; a new one is created when omitted")
    list_name: Optional[str] = Field(default=None, description="Name for a new list (defaults to the recipe title)")


class ShoppingListCreate(BaseModel):
    """Request body for creating a shopping list."""
    name: str = Field(description="List name, e.g. 'Weekend groceries'")
    items: List[str] = Field(default_factory=list)


class ShoppingListUpdate(BaseModel):
    """Request body for updating a shopping list."""
    name: Optional[str] = None
    items: Optional[List[str]] = Field(default=None, description="Replaces all items when given")


class ShoppingItemsRequest(BaseModel):
    items: List[str] = Field(description="Item names to append")


class ShoppingItemResponse(BaseModel):
    id: str
    name: str
    completed: bool
    recipe_id: Optional[str] = None


class ShoppingListResponse(BaseModel):
    """A shopping list with its items."""
    id: str
    name: str
    items: List[ShoppingItemResponse]
    pending_count: int
    completed_count: int
    created_at: str
    updated_at: str


class PermissionRequest(BaseModel):
    """Request body for the notification permission prompt."""
    request: bool = Field(default=True, description="Ask the user for permission")


class PermissionResponse(BaseModel):
    permission: Literal["default", "granted", "denied"]


class NotificationItem(BaseModel):
    title: str
    body: str
    created_at: str


class MessageItem(BaseModel):
    id: int
    level: Literal["success", "error"]
    text: str


class HealthResponse(BaseModel):
    """Response body for the /health endpoint."""
    status: str = Field(description="Service status")
    tick_mode: str = Field(description="Tick producer mode")
    live_timers: int = Field(description="Number of hosted timers")
    saved_timers: int = Field(description="Number of saved timers")
    recipes_loaded: int = Field(description="Number of recipes in the catalogue")
    version: str = Field(description="API version")


class DeleteResponse(BaseModel):
    message: str
