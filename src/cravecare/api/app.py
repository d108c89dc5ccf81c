"""FastAPI application factory."""

import base64
import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from cravecare.api.models import (
    DishGradeRequest,
    GroceryFromRecipeRequest,
    GroceryItemRequest,
    OnboardingRequest,
    RecipeRequest,
    SpendRequest,
)
from cravecare.app_logging import configure_logging
from cravecare.containers import AppContainer, ProfileServices
from cravecare.domain.grading import pick_tip
from cravecare.domain.models import (
    DEFAULT_DAILY_BUDGET,
    GroceryItemDraft,
    TokenReason,
    UserProfile,
)
from cravecare.domain.phases import PHASES, current_phase, days_into_cycle
from cravecare.domain.recipes import CATALOG_RECIPES, filter_recipes
from cravecare.errors import (
    DailyCapExceeded,
    InsufficientTokens,
    InvalidSpendAmount,
    InvalidTransition,
    NotAuthenticated,
    PersistenceConflict,
)
from cravecare.services.ai import RecipePreferences
from cravecare.services.grocery import MANUAL_GROUP
from cravecare.services.navigation import (
    Identity,
    NavigationMachine,
    StaticIdentityProvider,
)
from cravecare.services.spend import meal_type_for, spend_message

_UNPROCESSABLE = 422

SAVE_FAILED_NOTICE = "Couldn't save your change. Please try again."

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Identity and services resolved for one request."""

    identity: Identity | None
    services: ProfileServices

    @property
    def mode(self) -> str:
        return "remote" if self.identity is not None else "local"


async def resolve_context(
    request: Request, authorization: str | None = Header(default=None)
) -> RequestContext:
    """Resolve the bearer identity; requests without one use local storage."""
    container: AppContainer = request.app.state.container
    if not authorization or container.remote_store_factory is None:
        return RequestContext(identity=None, services=container.services_for(None))
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    identity = container.resolve_identity(token.strip())
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return RequestContext(
        identity=identity, services=container.services_for(identity, token.strip())
    )


def _load_profile(services: ProfileServices) -> UserProfile | None:
    try:
        return services.store.get_profile(services.profile_id)
    except PersistenceConflict:
        _logger.warning("Could not load profile for %s", services.profile_id)
        return None


def _daily_budget(profile: UserProfile | None) -> float:
    return profile.daily_budget if profile else DEFAULT_DAILY_BUDGET


def _navigation(context: RequestContext) -> NavigationMachine:
    owner = Identity(user_id=context.services.profile_id)
    return NavigationMachine(
        identity_provider=StaticIdentityProvider(context.identity or owner),
        store=context.services.store,
    )


def _rewards_summary(services: ProfileServices) -> dict[str, object]:
    rewards = services.rewards
    return {
        "available": rewards.available,
        "progress": rewards.progress,
        "tokens_per_cheat_day": rewards.tokens_per_cheat_day,
        "can_earn": {reason.value: rewards.can_award(reason) for reason in TokenReason},
        "tokens": rewards.tokens.items,
        "cheat_days": rewards.cheat_days.items,
    }


def _grocery_summary(services: ProfileServices) -> dict[str, object]:
    grocery = services.grocery
    return {
        "items": grocery.items.items,
        "groups": [
            {"recipe": None if key == MANUAL_GROUP else key, "items": items}
            for key, items in grocery.grouped()
        ],
        "unchecked_count": grocery.unchecked_count,
        "checked_count": grocery.checked_count,
    }


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    timezone_name = container.settings.timezone

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(PersistenceConflict)
    async def persistence_conflict(
        request: Request, exc: PersistenceConflict
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc), "notice": SAVE_FAILED_NOTICE},
        )

    @app.exception_handler(InsufficientTokens)
    async def insufficient_tokens(
        request: Request, exc: InsufficientTokens
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": str(exc),
                "available": exc.available,
                "cost": exc.cost,
            },
        )

    @app.exception_handler(DailyCapExceeded)
    @app.exception_handler(InvalidTransition)
    async def conflict(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)}
        )

    @app.exception_handler(InvalidSpendAmount)
    async def invalid_amount(
        request: Request, exc: InvalidSpendAmount
    ) -> JSONResponse:
        return JSONResponse(
            status_code=_UNPROCESSABLE,
            content={"detail": str(exc)},
        )

    @app.exception_handler(NotAuthenticated)
    async def not_authenticated(
        request: Request, exc: NotAuthenticated
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def session(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Return the screen the client should show."""
        machine = _navigation(context)
        state = machine.launch()
        return {"state": state, "mode": context.mode, "profile": machine.profile}

    @app.post("/onboarding")
    async def onboarding(
        payload: OnboardingRequest,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Save the onboarding profile and enter the app."""
        machine = _navigation(context)
        machine.launch()
        state = machine.complete_onboarding(payload.to_profile())
        return {"state": state, "mode": context.mode, "profile": machine.profile}

    @app.get("/phase")
    async def phase(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Return the current cycle phase for the profile."""
        profile = _load_profile(context.services)
        last_period = profile.last_period_date if profile else None
        now = datetime.now(tz=UTC)
        active = current_phase(last_period, now, timezone_name)
        return {
            "phase": active,
            "day": days_into_cycle(last_period, now, timezone_name),
            "info": PHASES[active],
        }

    @app.get("/recipes")
    async def recipes(
        appliance: str | None = None,
        search: str | None = None,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Return catalog recipes for owned appliances and a tip of the day."""
        profile = _load_profile(context.services)
        owned = (
            {item.value for item in profile.appliances}
            if profile and profile.appliances
            else {recipe.appliance for recipe in CATALOG_RECIPES}
        )
        return {
            "recipes": filter_recipes(CATALOG_RECIPES, owned, appliance, search),
            "tip": pick_tip(random.Random()),
        }

    @app.post("/recipes/generate")
    async def generate_recipe(
        payload: RecipeRequest,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Generate a recipe, falling back to a canned one."""
        profile = _load_profile(context.services)
        recipe_phase = payload.phase or current_phase(
            profile.last_period_date if profile else None,
            timezone_name=timezone_name,
        )
        preferences = RecipePreferences(
            has_pcos=profile.has_pcos if profile else False,
            primary_goal=(
                profile.primary_goal.value if profile and profile.primary_goal else None
            ),
            budget=profile.daily_budget if profile else None,
        )
        outcome = await container.ai_service.recipe_or_fallback(
            payload.appliance.value, recipe_phase, preferences
        )
        return {
            "recipe": outcome.value,
            "used_fallback": outcome.used_fallback,
            "notice": outcome.notice,
        }

    @app.post("/dishes/grade")
    async def grade_dish(
        payload: DishGradeRequest,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Grade a dish photo and keep the result as a meal snap."""
        try:
            image_bytes = base64.b64decode(payload.image_base64, validate=True)
        except ValueError as exc:
            raise HTTPException(
                status_code=_UNPROCESSABLE,
                detail="image_base64 is not valid base64",
            ) from exc
        outcome = await container.ai_service.grade_or_fallback(
            image_bytes, payload.mime_type
        )
        snap = None
        if not outcome.used_fallback:
            services = context.services
            hour = datetime.now(tz=ZoneInfo(timezone_name)).hour
            try:
                snap = services.store.save_meal_snap(
                    services.profile_id, outcome.value.model_dump(), meal_type_for(hour)
                )
            except PersistenceConflict:
                _logger.warning("Meal snap was not saved for %s", services.profile_id)
        return {
            "result": outcome.value,
            "used_fallback": outcome.used_fallback,
            "notice": outcome.notice,
            "snap": snap,
        }

    @app.get("/meal-snaps")
    async def meal_snaps(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Return graded meal snaps, newest first."""
        services = context.services
        try:
            snaps = services.store.list_meal_snaps(services.profile_id)
        except PersistenceConflict:
            _logger.warning("Could not load meal snaps for %s", services.profile_id)
            snaps = []
        return {"snaps": snaps}

    @app.get("/spend")
    async def list_spend(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Return the spend ledger and today's budget status."""
        spend = context.services.spend
        spend.load()
        budget_status = spend.status(_daily_budget(_load_profile(context.services)))
        return {
            "entries": spend.entries.items,
            "today": spend.today(),
            "status": budget_status,
            "message": spend_message(budget_status.spent),
        }

    @app.post("/spend")
    async def add_spend(
        payload: SpendRequest,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Log an expense for today."""
        services = context.services
        services.rewards.load()
        services.spend.load()
        entry = services.spend.add_entry(payload.label, payload.amount)
        return {
            "entry": entry,
            "status": services.spend.status(_daily_budget(_load_profile(services))),
            "available_tokens": services.rewards.available,
        }

    @app.delete("/spend/{entry_id}")
    async def delete_spend(
        entry_id: str,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, str]:
        """Delete an expense."""
        spend = context.services.spend
        spend.load()
        spend.delete_entry(entry_id)
        return {"status": "ok"}

    @app.get("/rewards")
    async def rewards(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Return the token balance and reward history."""
        context.services.rewards.load()
        return _rewards_summary(context.services)

    @app.post("/rewards/healthy-meal")
    async def healthy_meal(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Award a token for cooking a healthy meal."""
        services = context.services
        services.rewards.load()
        token = services.rewards.award(TokenReason.HEALTHY_MEAL)
        return {"token": token, **_rewards_summary(services)}

    @app.post("/rewards/under-budget")
    async def under_budget(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Claim today's under-budget token when eligible."""
        services = context.services
        services.rewards.load()
        services.spend.load()
        budget = _daily_budget(_load_profile(services))
        today = services.spend.today()
        token = services.rewards.claim_under_budget(
            len(today), sum(entry.amount for entry in today), budget
        )
        return {
            "awarded": token is not None,
            "token": token,
            **_rewards_summary(services),
        }

    @app.post("/rewards/redeem")
    async def redeem(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Spend tokens on a cheat day."""
        services = context.services
        services.rewards.load()
        cheat_day = services.rewards.redeem()
        return {"cheat_day": cheat_day, **_rewards_summary(services)}

    @app.get("/grocery")
    async def grocery(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Return the grocery list grouped by recipe."""
        context.services.grocery.load()
        return _grocery_summary(context.services)

    @app.post("/grocery")
    async def add_grocery_item(
        payload: GroceryItemRequest,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Add a manual grocery item; blank names are ignored."""
        grocery_service = context.services.grocery
        grocery_service.load()
        item = grocery_service.add_manual(payload.name, payload.quantity)
        return {"item": item, **_grocery_summary(context.services)}

    @app.post("/grocery/from-recipe")
    async def add_grocery_from_recipe(
        payload: GroceryFromRecipeRequest,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Add every ingredient of a recipe."""
        grocery_service = context.services.grocery
        grocery_service.load()
        added = grocery_service.add_items(
            [
                GroceryItemDraft(
                    name=ingredient.strip(),
                    source_recipe_name=payload.recipe_name,
                    source_recipe_emoji=payload.recipe_emoji,
                )
                for ingredient in payload.ingredients
                if ingredient.strip()
            ]
        )
        return {"added": added, **_grocery_summary(context.services)}

    @app.post("/grocery/{item_id}/toggle")
    async def toggle_grocery_item(
        item_id: str,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Flip an item's checked flag."""
        grocery_service = context.services.grocery
        grocery_service.load()
        item = grocery_service.toggle(item_id)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"item": item, **_grocery_summary(context.services)}

    @app.delete("/grocery/{item_id}")
    async def delete_grocery_item(
        item_id: str,
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Delete a grocery item."""
        grocery_service = context.services.grocery
        grocery_service.load()
        grocery_service.delete(item_id)
        return _grocery_summary(context.services)

    @app.post("/grocery/clear-checked")
    async def clear_checked(
        context: RequestContext = Depends(resolve_context),
    ) -> dict[str, object]:
        """Delete every checked item."""
        grocery_service = context.services.grocery
        grocery_service.load()
        removed = grocery_service.clear_checked()
        return {"removed": removed, **_grocery_summary(context.services)}

    return app
