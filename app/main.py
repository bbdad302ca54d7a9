"""FastAPI application for the Kitchen Timer service."""

import logging
from typing import List
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings, MESSAGE_TEMPLATES
from app.models.schemas import (
    LiveTimerCreate,
    LiveTimerResponse,
    SaveDurationRequest,
    TransitionResponse,
    SavedTimerCreate,
    SavedTimerUpdate,
    SavedTimerResponse,
    RecipeTimerRequest,
    RecipeCreate,
    RecipeUpdate,
    RecipeShoppingRequest,
    ShoppingListCreate,
    ShoppingListUpdate,
    ShoppingItemsRequest,
    ShoppingItemResponse,
    ShoppingListResponse,
    PermissionRequest,
    PermissionResponse,
    NotificationItem,
    MessageItem,
    HealthResponse,
    DeleteResponse
)
from app.core.data_loader import DataLoader
from app.core.effects import CompletionEffects, NotificationCenter, MessageBoard, SoundFileCue
from app.core.registry import TimerRegistry, LiveTimer, RegistryFullError
from app.core.saved_timers import SavedTimerStore
from app.core.shopping_lists import ShoppingListStore, ShoppingList
from app.core.ticker import create_tick_source
from app.core.timer import DurationValidationError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()

data_loader: DataLoader = None
saved_timers: SavedTimerStore = None
shopping_lists: ShoppingListStore = None
registry: TimerRegistry = None
effects: CompletionEffects = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global data_loader, saved_timers, shopping_lists, registry, effects

    logger.info("Starting Kitchen Timer application...")

    data_loader = DataLoader(settings.data_dir)
    try:
        data_loader.load_recipes(settings.recipes_file)
        logger.info(f"Loaded {data_loader.recipe_count} recipes")
    except FileNotFoundError as e:
        logger.error(f"Failed to load recipes: {e}")

    saved_timers = SavedTimerStore(settings.saved_timers_file)
    shopping_lists = ShoppingListStore()

    audio = SoundFileCue(settings.sound_file) if settings.sound_file else None
    effects = CompletionEffects(
        audio=audio,
        notifier=NotificationCenter(
            permission=settings.notification_permission,
            grant_on_request=settings.grant_on_request,
            history_size=settings.notification_history
        ),
        messages=MessageBoard(maxsize=settings.message_maxsize, ttl=settings.message_ttl)
    )
    registry = TimerRegistry(
        effects=effects,
        tick_source_factory=lambda: create_tick_source(settings.tick_mode, settings.tick_interval),
        max_timers=settings.max_live_timers,
        request_permission_on_start=settings.request_permission_on_start
    )
    logger.info(f"Timer registry initialized ({settings.tick_mode} ticks)")

    yield

    logger.info("Shutting down Kitchen Timer application...")
    registry.close_all()


app = FastAPI(
    title=f"{settings.app_name} API",
    description="Cooking countdown timers, saved timers and a recipe catalogue",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _live_response(live: LiveTimer) -> LiveTimerResponse:
    return LiveTimerResponse(**live.to_dict())


def _get_live(timer_id: str) -> LiveTimer:
    live = registry.get(timer_id)
    if not live:
        raise HTTPException(status_code=404, detail="Timer not found")
    return live


def _create_live(minutes: int, seconds: int, title: str, source: str = None) -> LiveTimer:
    try:
        return registry.create(minutes=minutes, seconds=seconds, title=title, source=source)
    except DurationValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RegistryFullError as e:
        raise HTTPException(status_code=409, detail=str(e))


def _saved_response(timer) -> SavedTimerResponse:
    return SavedTimerResponse(**timer.to_dict())


def _require_catalogue() -> None:
    if not data_loader or not data_loader.loaded:
        raise HTTPException(status_code=503, detail="Recipe data not loaded")


def _get_shopping_list(list_id: str) -> ShoppingList:
    shopping_list = shopping_lists.get(list_id)
    if not shopping_list:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return shopping_list


def _shopping_response(shopping_list: ShoppingList) -> ShoppingListResponse:
    return ShoppingListResponse(**shopping_list.to_dict())


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check service health and status."""
    return HealthResponse(
        status="healthy",
        tick_mode=settings.tick_mode,
        live_timers=len(registry) if registry else 0,
        saved_timers=len(saved_timers) if saved_timers else 0,
        recipes_loaded=data_loader.recipe_count if data_loader else 0,
        version=settings.app_version
    )


@app.post("/api/v1/live-timers", response_model=LiveTimerResponse, status_code=201, tags=["Live Timers"])
async def create_live_timer(request: LiveTimerCreate):
    """Create a countdown with the given duration. It starts idle."""
    live = _create_live(request.minutes, request.seconds, request.title)
    return _live_response(live)


@app.get("/api/v1/live-timers", response_model=List[LiveTimerResponse], tags=["Live Timers"])
async def list_live_timers():
    """List all hosted countdowns."""
    return [_live_response(live) for live in registry.list_timers()]


@app.get("/api/v1/live-timers/{timer_id}", response_model=LiveTimerResponse, tags=["Live Timers"])
async def get_live_timer(timer_id: str):
    """Get the current state of a countdown."""
    return _live_response(_get_live(timer_id))


@app.delete("/api/v1/live-timers/{timer_id}", response_model=DeleteResponse, tags=["Live Timers"])
async def delete_live_timer(timer_id: str):
    """Tear down a countdown and release its tick source."""
    if not registry.remove(timer_id):
        raise HTTPException(status_code=404, detail="Timer not found")
    return DeleteResponse(message="Timer removed")


@app.post("/api/v1/live-timers/{timer_id}/save", response_model=TransitionResponse, tags=["Live Timers"])
async def save_live_timer(timer_id: str, request: SaveDurationRequest):
    """Save an edited duration. Invalid values keep the timer in edit mode."""
    live = _get_live(timer_id)
    applied = live.timer.save(request.minutes, request.seconds)
    if not applied and live.timer.validation_error:
        raise HTTPException(status_code=422, detail=live.timer.validation_error)
    return TransitionResponse(applied=applied, timer=_live_response(live))


@app.post(
    "/api/v1/live-timers/{timer_id}/{action}",
    response_model=TransitionResponse,
    tags=["Live Timers"]
)
async def live_timer_action(timer_id: str, action: str):
    """
    Apply a user action to a countdown.

    - **action**: start, pause, toggle, reset, edit or cancel

    Actions that are not allowed in the current phase return ``applied: false``.
    """
    live = _get_live(timer_id)
    handlers = {
        "start": live.timer.start,
        "pause": live.timer.pause,
        "toggle": live.timer.toggle,
        "reset": live.timer.reset,
        "edit": live.timer.edit,
        "cancel": live.timer.cancel,
    }
    handler = handlers.get(action)
    if handler is None:
        raise HTTPException(status_code=404, detail=f"Unknown action: {action}")

    applied = handler()
    return TransitionResponse(applied=applied, timer=_live_response(live))


@app.get("/api/v1/timers", response_model=List[SavedTimerResponse], tags=["Saved Timers"])
async def list_saved_timers():
    """List saved timers, newest first."""
    return [_saved_response(t) for t in saved_timers.list_timers()]


@app.post("/api/v1/timers", response_model=SavedTimerResponse, status_code=201, tags=["Saved Timers"])
async def create_saved_timer(request: SavedTimerCreate):
    """Save a named timer."""
    try:
        timer = saved_timers.create(request.name, request.minutes, request.seconds)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    effects.messages.success(MESSAGE_TEMPLATES["timer_created"])
    return _saved_response(timer)


@app.get("/api/v1/timers/{timer_id}", response_model=SavedTimerResponse, tags=["Saved Timers"])
async def get_saved_timer(timer_id: str):
    """Get a saved timer by ID."""
    timer = saved_timers.get(timer_id)
    if not timer:
        raise HTTPException(status_code=404, detail="Timer not found")
    return _saved_response(timer)


@app.put("/api/v1/timers/{timer_id}", response_model=SavedTimerResponse, tags=["Saved Timers"])
async def update_saved_timer(timer_id: str, request: SavedTimerUpdate):
    """Update a saved timer."""
    try:
        timer = saved_timers.update(
            timer_id,
            name=request.name,
            minutes=request.minutes,
            seconds=request.seconds,
            is_active=request.is_active
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not timer:
        raise HTTPException(status_code=404, detail="Timer not found")
    return _saved_response(timer)


@app.delete("/api/v1/timers/{timer_id}", response_model=DeleteResponse, tags=["Saved Timers"])
async def delete_saved_timer(timer_id: str):
    """Delete a saved timer."""
    if not saved_timers.delete(timer_id):
        raise HTTPException(status_code=404, detail="Timer not found")
    effects.messages.success(MESSAGE_TEMPLATES["timer_deleted"])
    return DeleteResponse(message=MESSAGE_TEMPLATES["timer_deleted"])


@app.post(
    "/api/v1/timers/{timer_id}/live",
    response_model=LiveTimerResponse,
    status_code=201,
    tags=["Saved Timers"]
)
async def use_saved_timer(timer_id: str):
    """Create a live countdown from a saved timer."""
    timer = saved_timers.get(timer_id)
    if not timer:
        raise HTTPException(status_code=404, detail="Timer not found")
    live = _create_live(timer.minutes, timer.seconds, timer.name, source=f"timer:{timer.id}")
    return _live_response(live)


@app.get("/api/v1/recipes", tags=["Recipes"])
async def list_recipes(
    tag: str = Query(None, description="Filter by tag"),
    difficulty: str = Query(None, description="Filter by difficulty"),
    q: str = Query(None, description="Search titles (typo tolerant)"),
    limit: int = Query(20, ge=1, le=100, description="Maximum results")
):
    """List available recipes with optional filtering."""
    _require_catalogue()

    recipes = data_loader.recipes

    if q:
        recipes = data_loader.search_by_title(q, threshold=settings.fuzzy_threshold)

    if tag:
        recipes = data_loader.get_recipes_by_tag(tag, recipes)

    if difficulty:
        recipes = data_loader.get_recipes_by_difficulty(difficulty, recipes)

    return {
        "total": len(recipes),
        "recipes": [r.to_dict() for r in recipes[:limit]]
    }


@app.get("/api/v1/recipes/{recipe_id}", tags=["Recipes"])
async def get_recipe(recipe_id: str):
    """Get a specific recipe by ID."""
    _require_catalogue()

    recipe = data_loader.get_recipe_by_id(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")

    return recipe.to_dict()


@app.post(
    "/api/v1/recipes/{recipe_id}/timer",
    response_model=LiveTimerResponse,
    status_code=201,
    tags=["Recipes"]
)
async def create_recipe_timer(recipe_id: str, request: RecipeTimerRequest = None):
    """Create a live countdown for a recipe's cooking time."""
    _require_catalogue()

    recipe = data_loader.get_recipe_by_id(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    if recipe.timer_minutes <= 0:
        raise HTTPException(status_code=400, detail="Recipe has no cooking time")

    live = _create_live(recipe.timer_minutes, 0, recipe.title, source=f"recipe:{recipe.id}")
    if request and request.start:
        live.timer.start()
    return _live_response(live)


@app.post("/api/v1/recipes", status_code=201, tags=["Recipes"])
async def create_recipe(request: RecipeCreate):
    """Add a recipe to the catalogue."""
    _require_catalogue()
    try:
        recipe = data_loader.add_recipe(request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    effects.messages.success(MESSAGE_TEMPLATES["recipe_created"])
    return recipe.to_dict()


@app.put("/api/v1/recipes/{recipe_id}", tags=["Recipes"])
async def update_recipe(recipe_id: str, request: RecipeUpdate):
    """Update a recipe. Omitted fields keep their values."""
    _require_catalogue()
    try:
        recipe = data_loader.update_recipe(recipe_id, request.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe.to_dict()


@app.delete("/api/v1/recipes/{recipe_id}", response_model=DeleteResponse, tags=["Recipes"])
async def delete_recipe(recipe_id: str):
    """Remove a recipe from the catalogue."""
    _require_catalogue()
    if not data_loader.delete_recipe(recipe_id):
        raise HTTPException(status_code=404, detail="Recipe not found")
    effects.messages.success(MESSAGE_TEMPLATES["recipe_deleted"])
    return DeleteResponse(message=MESSAGE_TEMPLATES["recipe_deleted"])


@app.post(
    "/api/v1/recipes/{recipe_id}/shopping-list",
    response_model=ShoppingListResponse,
    status_code=201,
    tags=["Recipes"]
)
async def add_recipe_to_shopping_list(recipe_id: str, request: RecipeShoppingRequest = None):
    """
    Put a recipe's ingredients on a shopping list.

    Uses **list_id** when given, otherwise creates a new list named
    **list_name** (or after the recipe).
    """
    _require_catalogue()
    recipe = data_loader.get_recipe_by_id(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")

    request = request or RecipeShoppingRequest()
    if request.list_id:
        shopping_list = _get_shopping_list(request.list_id)
    else:
        try:
            shopping_list = shopping_lists.create(request.list_name or recipe.title)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    shopping_lists.add_recipe(shopping_list.id, recipe)
    effects.messages.success(MESSAGE_TEMPLATES["ingredients_added"])
    return _shopping_response(shopping_list)


@app.get("/api/v1/shopping-lists", response_model=List[ShoppingListResponse], tags=["Shopping Lists"])
async def list_shopping_lists():
    """List shopping lists, most recently updated first."""
    return [_shopping_response(s) for s in shopping_lists.list_lists()]


@app.post("/api/v1/shopping-lists", response_model=ShoppingListResponse, status_code=201, tags=["Shopping Lists"])
async def create_shopping_list(request: ShoppingListCreate):
    """Create a shopping list."""
    try:
        shopping_list = shopping_lists.create(request.name, request.items)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    effects.messages.success(MESSAGE_TEMPLATES["list_created"])
    return _shopping_response(shopping_list)


@app.get("/api/v1/shopping-lists/{list_id}", response_model=ShoppingListResponse, tags=["Shopping Lists"])
async def get_shopping_list(list_id: str):
    """Get a shopping list by ID."""
    return _shopping_response(_get_shopping_list(list_id))


@app.put("/api/v1/shopping-lists/{list_id}", response_model=ShoppingListResponse, tags=["Shopping Lists"])
async def update_shopping_list(list_id: str, request: ShoppingListUpdate):
    """Rename a shopping list or replace its items."""
    try:
        shopping_list = shopping_lists.update(list_id, name=request.name, items=request.items)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not shopping_list:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return _shopping_response(shopping_list)


@app.delete("/api/v1/shopping-lists/{list_id}", response_model=DeleteResponse, tags=["Shopping Lists"])
async def delete_shopping_list(list_id: str):
    """Delete a shopping list."""
    if not shopping_lists.delete(list_id):
        raise HTTPException(status_code=404, detail="Shopping list not found")
    effects.messages.success(MESSAGE_TEMPLATES["list_deleted"])
    return DeleteResponse(message=MESSAGE_TEMPLATES["list_deleted"])


@app.post(
    "/api/v1/shopping-lists/{list_id}/items",
    response_model=ShoppingListResponse,
    tags=["Shopping Lists"]
)
async def add_shopping_items(list_id: str, request: ShoppingItemsRequest):
    """Append items. Names already pending on the list are skipped."""
    if shopping_lists.add_items(list_id, request.items) is None:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return _shopping_response(_get_shopping_list(list_id))


@app.post(
    "/api/v1/shopping-lists/{list_id}/items/{item_id}/toggle",
    response_model=ShoppingItemResponse,
    tags=["Shopping Lists"]
)
async def toggle_shopping_item(list_id: str, item_id: str):
    """Check an item off, or put it back."""
    _get_shopping_list(list_id)
    item = shopping_lists.toggle_item(list_id, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return ShoppingItemResponse(**item.to_dict())


@app.post(
    "/api/v1/shopping-lists/{list_id}/clear-completed",
    response_model=ShoppingListResponse,
    tags=["Shopping Lists"]
)
async def clear_completed_items(list_id: str):
    """Remove checked-off items."""
    if shopping_lists.clear_completed(list_id) is None:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return _shopping_response(_get_shopping_list(list_id))


@app.get("/api/v1/notifications", response_model=List[NotificationItem], tags=["Notifications"])
async def list_notifications():
    """System notifications delivered so far."""
    return [NotificationItem(**n.to_dict()) for n in effects.notifier.delivered]


@app.get("/api/v1/notifications/permission", response_model=PermissionResponse, tags=["Notifications"])
async def get_notification_permission():
    """Current notification permission."""
    return PermissionResponse(permission=effects.notifier.permission.value)


@app.post("/api/v1/notifications/permission", response_model=PermissionResponse, tags=["Notifications"])
async def request_notification_permission(request: PermissionRequest):
    """Prompt for notification permission."""
    if request.request:
        effects.request_permission()
    return PermissionResponse(permission=effects.notifier.permission.value)


@app.get("/api/v1/messages", response_model=List[MessageItem], tags=["Notifications"])
async def list_messages():
    """In-app messages that have not expired yet."""
    return [MessageItem(**m.to_dict()) for m in effects.messages.recent()]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
