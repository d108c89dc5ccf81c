"""Conversions between stored representations and domain records.

Remote rows are snake_case with ISO-8601 timestamps. Local records are
camelCase with epoch-millisecond timestamps. Every field is defaulted here
so services only ever see well-formed records.
"""

from datetime import UTC, date, datetime

from cravecare.domain.models import (
    DEFAULT_DAILY_BUDGET,
    TOKEN_REASON_LABELS,
    Appliance,
    CheatDay,
    CheatToken,
    Goal,
    GroceryItem,
    GroceryItemDraft,
    MealSnap,
    MealType,
    SpendEntry,
    TokenReason,
    UserProfile,
)
from cravecare.domain.phases import parse_period_date

_REASONS_BY_LABEL = {label: reason for reason, label in TOKEN_REASON_LABELS.items()}


def parse_instant(value: object) -> datetime:
    """Parse an ISO string, epoch milliseconds or datetime into an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, int | float) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return datetime.now(tz=UTC)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return datetime.now(tz=UTC)


def to_epoch_ms(value: datetime) -> int:
    """Return epoch milliseconds for a datetime."""
    return int(value.timestamp() * 1000)


def parse_reason(value: object) -> TokenReason | None:
    """Map a stored reason, including legacy display labels, to a TokenReason."""
    text = str(value or "")
    try:
        return TokenReason(text)
    except ValueError:
        return _REASONS_BY_LABEL.get(text)


def _parse_day(value: object, fallback: datetime) -> date:
    return _period_date(value) or fallback.date()


def _period_date(value: object) -> date | None:
    return parse_period_date(value) if isinstance(value, str | date) else None


def _parse_meal_type(value: object) -> MealType | None:
    try:
        return MealType(str(value))
    except ValueError:
        return None


def _optional_text(value: object) -> str | None:
    return str(value) if value else None


def _float(value: object, default: float = 0.0) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default


# Spend entries


def spend_from_row(row: dict[str, object]) -> SpendEntry:
    timestamp = parse_instant(row.get("created_at"))
    return SpendEntry(
        id=str(row["id"]),
        label=str(row.get("label", "")),
        amount=_float(row.get("amount")),
        timestamp=timestamp,
        date=_parse_day(row.get("date"), timestamp),
        meal_type=_parse_meal_type(row.get("meal_type")),
    )


def spend_from_local(record: dict[str, object]) -> SpendEntry:
    timestamp = parse_instant(record.get("timestamp"))
    return SpendEntry(
        id=str(record["id"]),
        label=str(record.get("label", "")),
        amount=_float(record.get("amount")),
        timestamp=timestamp,
        date=_parse_day(record.get("date"), timestamp),
        meal_type=_parse_meal_type(record.get("mealType")),
    )


def spend_to_local(entry: SpendEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "label": entry.label,
        "amount": entry.amount,
        "timestamp": to_epoch_ms(entry.timestamp),
        "date": entry.date.isoformat(),
        "mealType": entry.meal_type.value if entry.meal_type else None,
    }


# Tokens


def token_from_row(row: dict[str, object]) -> CheatToken | None:
    reason = parse_reason(row.get("reason"))
    if reason is None:
        return None
    return CheatToken(
        id=str(row["id"]),
        reason=reason,
        earned_at=parse_instant(row.get("earned_at")),
    )


def token_from_local(record: dict[str, object]) -> CheatToken | None:
    reason = parse_reason(record.get("reason"))
    if reason is None:
        return None
    return CheatToken(
        id=str(record["id"]),
        reason=reason,
        earned_at=parse_instant(record.get("earnedAt")),
    )


def token_to_local(token: CheatToken) -> dict[str, object]:
    return {
        "id": token.id,
        "reason": token.reason.value,
        "earnedAt": to_epoch_ms(token.earned_at),
    }


# Cheat days


def cheat_day_from_row(row: dict[str, object]) -> CheatDay:
    return CheatDay(
        id=str(row["id"]),
        unlocked_at=parse_instant(row.get("unlocked_at")),
        tokens_spent=int(_float(row.get("tokens_spent"))),
    )


def cheat_day_from_local(record: dict[str, object]) -> CheatDay:
    return CheatDay(
        id=str(record["id"]),
        unlocked_at=parse_instant(record.get("unlockedAt")),
        tokens_spent=int(_float(record.get("tokensSpent"))),
    )


def cheat_day_to_local(cheat_day: CheatDay) -> dict[str, object]:
    return {
        "id": cheat_day.id,
        "unlockedAt": to_epoch_ms(cheat_day.unlocked_at),
        "tokensSpent": cheat_day.tokens_spent,
    }


# Profiles


def _appliances(value: object) -> frozenset[Appliance]:
    if not isinstance(value, list | tuple | set | frozenset):
        return frozenset()
    owned = set()
    for item in value:
        try:
            owned.add(Appliance(str(item)))
        except ValueError:
            continue
    return frozenset(owned)


def _goal(value: object) -> Goal | None:
    try:
        return Goal(str(value))
    except ValueError:
        return None


def _budget(value: object) -> float:
    budget = _float(value)
    return budget if budget > 0 else DEFAULT_DAILY_BUDGET


def profile_from_row(row: dict[str, object] | None) -> UserProfile | None:
    """Map a profile row; rows without a name are treated as absent."""
    if not row or not isinstance(row.get("name"), str):
        return None
    return UserProfile(
        name=str(row["name"]),
        appliances=_appliances(row.get("appliances")),
        last_period_date=_period_date(row.get("last_period_date")),
        has_pcos=bool(row.get("has_pcos")),
        primary_goal=_goal(row.get("primary_goal")),
        daily_budget=_budget(row.get("daily_budget")),
    )


def profile_to_row(profile: UserProfile) -> dict[str, object]:
    return {
        "name": profile.name,
        "appliances": sorted(appliance.value for appliance in profile.appliances),
        "last_period_date": (
            profile.last_period_date.isoformat() if profile.last_period_date else None
        ),
        "has_pcos": profile.has_pcos,
        "primary_goal": profile.primary_goal.value if profile.primary_goal else None,
        "daily_budget": profile.daily_budget,
    }


def profile_from_local(record: dict[str, object] | None) -> UserProfile | None:
    if not record or not isinstance(record.get("name"), str):
        return None
    return UserProfile(
        name=str(record["name"]),
        appliances=_appliances(record.get("appliances")),
        last_period_date=_period_date(record.get("lastPeriodDate")),
        has_pcos=bool(record.get("hasPCOS")),
        primary_goal=_goal(record.get("primaryGoal")),
        daily_budget=_budget(record.get("dailyBudget")),
    )


def profile_to_local(profile: UserProfile) -> dict[str, object]:
    row = profile_to_row(profile)
    return {
        "name": row["name"],
        "appliances": row["appliances"],
        "lastPeriodDate": row["last_period_date"] or "",
        "hasPCOS": row["has_pcos"],
        "primaryGoal": row["primary_goal"] or "",
        "dailyBudget": row["daily_budget"],
    }


# Grocery items


def grocery_from_row(row: dict[str, object]) -> GroceryItem:
    return GroceryItem(
        id=str(row["id"]),
        name=str(row.get("name", "")),
        checked=bool(row.get("checked")),
        created_at=parse_instant(row.get("created_at")),
        source_recipe_name=_optional_text(row.get("source_recipe_name")),
        source_recipe_emoji=_optional_text(row.get("source_recipe_emoji")),
        quantity=_optional_text(row.get("quantity")),
    )


def grocery_draft_to_row(
    profile_id: str, draft: GroceryItemDraft
) -> dict[str, object]:
    return {
        "profile_id": profile_id,
        "name": draft.name,
        "checked": False,
        "source_recipe_name": draft.source_recipe_name,
        "source_recipe_emoji": draft.source_recipe_emoji,
        "quantity": draft.quantity,
    }


def grocery_from_local(record: dict[str, object]) -> GroceryItem:
    return GroceryItem(
        id=str(record["id"]),
        name=str(record.get("name", "")),
        checked=bool(record.get("checked")),
        created_at=parse_instant(record.get("createdAt")),
        source_recipe_name=_optional_text(record.get("sourceRecipeName")),
        source_recipe_emoji=_optional_text(record.get("sourceRecipeEmoji")),
        quantity=_optional_text(record.get("quantity")),
    )


def grocery_to_local(item: GroceryItem) -> dict[str, object]:
    return {
        "id": item.id,
        "name": item.name,
        "checked": item.checked,
        "createdAt": to_epoch_ms(item.created_at),
        "sourceRecipeName": item.source_recipe_name,
        "sourceRecipeEmoji": item.source_recipe_emoji,
        "quantity": item.quantity,
    }


# Meal snaps


def meal_snap_from_row(row: dict[str, object]) -> MealSnap:
    calories = _float(row.get("calories"))
    return MealSnap(
        id=str(row["id"]),
        grade=str(row.get("grade", "")),
        protein=_float(row.get("protein")),
        carbs=_float(row.get("carbs")),
        fat=_float(row.get("fat")),
        fiber=_float(row.get("fiber")),
        verdict=str(row.get("verdict", "")),
        meal_type=_parse_meal_type(row.get("meal_type")) or MealType.SNACK,
        created_at=parse_instant(row.get("created_at")),
        calories=calories if calories > 0 else None,
        upgrade_tip=_optional_text(row.get("upgrade_tip")),
        image_url=_optional_text(row.get("image_url")),
    )


def meal_snap_fields_to_row(
    profile_id: str, fields: dict[str, object], meal_type: MealType
) -> dict[str, object]:
    """Build an insert row, omitting optional columns that are unset."""
    row: dict[str, object] = {
        "profile_id": profile_id,
        "meal_type": meal_type.value,
        "grade": fields.get("grade"),
        "protein": fields.get("protein"),
        "carbs": fields.get("carbs"),
        "fat": fields.get("fat"),
        "fiber": fields.get("fiber"),
        "verdict": fields.get("verdict"),
    }
    if fields.get("upgrade_tip") is not None:
        row["upgrade_tip"] = fields["upgrade_tip"]
    if fields.get("image_url") is not None:
        row["image_url"] = fields["image_url"]
    if _float(fields.get("calories")) > 0:
        row["calories"] = fields["calories"]
    return row


def meal_snap_from_local(record: dict[str, object]) -> MealSnap:
    calories = _float(record.get("calories"))
    return MealSnap(
        id=str(record["id"]),
        grade=str(record.get("grade", "")),
        protein=_float(record.get("protein")),
        carbs=_float(record.get("carbs")),
        fat=_float(record.get("fat")),
        fiber=_float(record.get("fiber")),
        verdict=str(record.get("verdict", "")),
        meal_type=_parse_meal_type(record.get("mealType")) or MealType.SNACK,
        created_at=parse_instant(record.get("createdAt")),
        calories=calories if calories > 0 else None,
        upgrade_tip=_optional_text(record.get("upgradeTip")),
        image_url=_optional_text(record.get("imageUrl")),
    )


def meal_snap_to_local(snap: MealSnap) -> dict[str, object]:
    return {
        "id": snap.id,
        "grade": snap.grade,
        "protein": snap.protein,
        "carbs": snap.carbs,
        "fat": snap.fat,
        "fiber": snap.fiber,
        "verdict": snap.verdict,
        "mealType": snap.meal_type.value,
        "createdAt": to_epoch_ms(snap.created_at),
        "calories": snap.calories,
        "upgradeTip": snap.upgrade_tip,
        "imageUrl": snap.image_url,
    }
