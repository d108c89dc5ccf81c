"""Tests for the recipe catalog and dish grading helpers."""

import random

from cravecare.domain.grading import (
    DEFAULT_GRADE,
    MOCK_GRADES,
    MOM_TIPS,
    DishGradeResult,
    RecipePayload,
    pick_mock_grade,
    pick_tip,
)
from cravecare.domain.models import Appliance
from cravecare.domain.phases import PHASES, Phase
from cravecare.domain.recipes import (
    CATALOG_RECIPES,
    appliance_display_name,
    emoji_for_recipe,
    fallback_recipe,
    filter_recipes,
)


def test_every_cooking_appliance_has_a_fallback_per_phase() -> None:
    for appliance in (Appliance.KETTLE, Appliance.INDUCTION, Appliance.SANDWICH_MAKER):
        for phase in Phase:
            recipe = fallback_recipe(appliance.value, phase)
            assert recipe.id != "fallback-default"
            assert recipe.phase == phase
            assert recipe.ingredients


def test_fallback_for_unknown_appliance_is_a_phase_special() -> None:
    recipe = fallback_recipe(Appliance.FRIDGE.value, Phase.LUTEAL)

    assert recipe.id == "fallback-default"
    assert recipe.name == "Luteal Special"
    assert recipe.key_nutrient == PHASES[Phase.LUTEAL].nutrient
    assert recipe.emoji == "✨"


def test_filter_limits_to_owned_appliances() -> None:
    owned = {Appliance.KETTLE.value}

    recipes = filter_recipes(CATALOG_RECIPES, owned)

    assert recipes
    assert {recipe.appliance for recipe in recipes} == owned


def test_filter_by_appliance_and_search() -> None:
    owned = {appliance.value for appliance in Appliance}

    by_appliance = filter_recipes(CATALOG_RECIPES, owned, appliance="induction")
    by_search = filter_recipes(CATALOG_RECIPES, owned, search="  MAGGI ")

    assert all(recipe.appliance == "induction" for recipe in by_appliance)
    assert [recipe.name for recipe in by_search] == ["Masala Maggi Upgrade"]


def test_emoji_follows_name_keywords_then_phase() -> None:
    assert emoji_for_recipe("Tomato Soup", Phase.LUTEAL) == "🥣"
    ovulatory = PHASES[Phase.OVULATORY]
    assert emoji_for_recipe("Mystery Mix", Phase.OVULATORY) == ovulatory.emoji


def test_appliance_display_name() -> None:
    assert appliance_display_name("kettle") == "electric kettle"
    assert appliance_display_name("air-fryer") == "air-fryer"


def test_grade_result_coerces_bad_fields() -> None:
    result = DishGradeResult.from_payload(
        {
            "grade": "z",
            "protein": "12.5",
            "carbs": None,
            "fat": -3,
            "fiber": "lots",
            "calories": 0,
            "verdict": "   ",
            "upgradeTip": "Add dal",
            "extra": "ignored",
        }
    )

    assert result.grade == DEFAULT_GRADE
    assert result.protein == 12.5
    assert result.carbs == 0
    assert result.fat == 0
    assert result.fiber == 0
    assert result.calories is None
    assert result.verdict == "Looks like a meal!"
    assert result.upgrade_tip == "Add dal"


def test_grade_result_normalises_case() -> None:
    assert DishGradeResult.from_payload({"grade": "a+"}).grade == "A+"


def test_recipe_payload_defaults() -> None:
    payload = RecipePayload.from_payload(
        {"keyNutrient": "Iron", "ingredients": ["Oats", " ", 3], "calories": "abc"}
    )

    assert payload.name == "AI Recipe"
    assert payload.time == "15 min"
    assert payload.calories == 250
    assert payload.ingredients == ["Oats", "3"]
    assert payload.steps == []
    assert payload.nutrient_or(Phase.MENSTRUAL) == "Iron"
    assert RecipePayload().nutrient_or(Phase.LUTEAL) == PHASES[Phase.LUTEAL].nutrient


def test_seeded_picks_are_deterministic() -> None:
    first = (pick_tip(random.Random(7)), pick_mock_grade(random.Random(7)))
    second = (pick_tip(random.Random(7)), pick_mock_grade(random.Random(7)))

    assert first == second
    assert first[0] in MOM_TIPS
    assert first[1] in MOCK_GRADES
