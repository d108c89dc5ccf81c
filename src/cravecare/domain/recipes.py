"""Recipe catalog and static fallbacks."""

from dataclasses import dataclass

from cravecare.domain.models import Appliance
from cravecare.domain.phases import PHASES, Phase


@dataclass(frozen=True)
class Recipe:
    """A recipe shown on the dashboard."""

    id: str
    name: str
    appliance: str
    phase: Phase
    time: str
    calories: int
    key_nutrient: str
    ingredients: tuple[str, ...]
    steps: tuple[str, ...]
    emoji: str


APPLIANCE_NAMES: dict[str, str] = {
    Appliance.KETTLE.value: "electric kettle",
    Appliance.INDUCTION.value: "induction cooktop",
    Appliance.SANDWICH_MAKER.value: "sandwich maker/panini press",
    Appliance.FRIDGE.value: "refrigerator",
}

_NAME_EMOJIS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("soup", "broth"), "🥣"),
    (("tea", "latte", "drink"), "🍵"),
    (("sandwich", "toast"), "🥪"),
    (("egg", "bhurji"), "🍳"),
    (("pancake", "dosa"), "🥞"),
    (("rice", "pulao"), "🍚"),
    (("dal", "curry"), "🍲"),
    (("chocolate", "cocoa"), "🍫"),
    (("salad", "bowl"), "🥗"),
    (("noodles", "maggi"), "🍜"),
)

CATALOG_RECIPES: tuple[Recipe, ...] = (
    Recipe(
        id="1",
        name="Iron-Rich Spinach Soup",
        appliance=Appliance.KETTLE.value,
        phase=Phase.MENSTRUAL,
        time="10 min",
        calories=180,
        key_nutrient="Iron",
        ingredients=("Instant spinach soup mix", "Lemon juice", "Sesame seeds"),
        steps=("Boil water in kettle", "Mix soup powder", "Add lemon and seeds"),
        emoji="🥣",
    ),
    Recipe(
        id="2",
        name="Protein Egg Bhurji",
        appliance=Appliance.INDUCTION.value,
        phase=Phase.FOLLICULAR,
        time="12 min",
        calories=250,
        key_nutrient="Protein",
        ingredients=("2 eggs", "Onion", "Tomato", "Turmeric", "Oil"),
        steps=(
            "Heat oil",
            "Sauté onion & tomato",
            "Add eggs & scramble",
            "Season well",
        ),
        emoji="🍳",
    ),
    Recipe(
        id="3",
        name="Veggie Grilled Sandwich",
        appliance=Appliance.SANDWICH_MAKER.value,
        phase=Phase.OVULATORY,
        time="8 min",
        calories=220,
        key_nutrient="Fiber",
        ingredients=(
            "Whole wheat bread",
            "Capsicum",
            "Corn",
            "Cheese slice",
            "Chutney",
        ),
        steps=(
            "Layer veggies on bread",
            "Add cheese & chutney",
            "Grill until golden",
        ),
        emoji="🥪",
    ),
    Recipe(
        id="4",
        name="Dark Chocolate Oats",
        appliance=Appliance.KETTLE.value,
        phase=Phase.LUTEAL,
        time="7 min",
        calories=280,
        key_nutrient="Magnesium",
        ingredients=("Instant oats", "Dark chocolate chips", "Banana", "Honey"),
        steps=("Boil water", "Add oats & chocolate", "Top with banana slices"),
        emoji="🍫",
    ),
    Recipe(
        id="5",
        name="Masala Maggi Upgrade",
        appliance=Appliance.INDUCTION.value,
        phase=Phase.MENSTRUAL,
        time="10 min",
        calories=320,
        key_nutrient="Iron",
        ingredients=("Maggi", "Spinach", "Egg", "Peanuts"),
        steps=(
            "Cook Maggi per pack",
            "Add chopped spinach",
            "Drop in an egg",
            "Top with peanuts",
        ),
        emoji="🍜",
    ),
    Recipe(
        id="6",
        name="Peanut Butter Toast Stack",
        appliance=Appliance.SANDWICH_MAKER.value,
        phase=Phase.FOLLICULAR,
        time="5 min",
        calories=310,
        key_nutrient="Protein",
        ingredients=("Bread", "Peanut butter", "Banana", "Honey", "Chia seeds"),
        steps=(
            "Spread PB on bread",
            "Add banana slices",
            "Drizzle honey",
            "Grill lightly",
        ),
        emoji="🥜",
    ),
    Recipe(
        id="7",
        name="Quick Poha Bowl",
        appliance=Appliance.INDUCTION.value,
        phase=Phase.OVULATORY,
        time="15 min",
        calories=240,
        key_nutrient="Fiber",
        ingredients=("Poha", "Peanuts", "Onion", "Lemon", "Curry leaves"),
        steps=(
            "Rinse poha",
            "Sauté peanuts & onion",
            "Add poha & spices",
            "Squeeze lemon",
        ),
        emoji="🥣",
    ),
    Recipe(
        id="8",
        name="Midnight Turmeric Latte",
        appliance=Appliance.KETTLE.value,
        phase=Phase.LUTEAL,
        time="5 min",
        calories=120,
        key_nutrient="Magnesium",
        ingredients=("Milk", "Turmeric", "Honey", "Cinnamon"),
        steps=(
            "Heat milk in kettle",
            "Add turmeric & cinnamon",
            "Sweeten with honey",
        ),
        emoji="🥛",
    ),
)

# (id, name, time, calories, key nutrient, ingredients, steps, emoji)
_FALLBACK_ROWS: dict[str, dict[Phase, tuple]] = {
    Appliance.KETTLE.value: {
        Phase.MENSTRUAL: (
            "fallback-1", "Beetroot Ginger Tea", "5 min", 60, "Iron",
            ("Beetroot powder", "Ginger", "Honey"),
            ("Boil water", "Add beetroot powder & ginger", "Sweeten"), "🫖",
        ),
        Phase.FOLLICULAR: (
            "fallback-2", "Green Tea Protein Shake", "5 min", 150, "Protein",
            ("Green tea", "Protein powder", "Honey"),
            ("Brew green tea", "Cool slightly", "Mix in protein"), "🍵",
        ),
        Phase.OVULATORY: (
            "fallback-3", "Lemon Detox Water", "3 min", 20, "Vitamin C",
            ("Lemon", "Mint", "Cucumber"),
            ("Boil water", "Cool", "Add lemon, mint, cucumber"), "🍋",
        ),
        Phase.LUTEAL: (
            "fallback-4", "Hot Cocoa Comfort", "5 min", 200, "Magnesium",
            ("Cocoa powder", "Milk", "Jaggery"),
            ("Heat milk", "Mix cocoa & jaggery", "Stir well"), "☕",
        ),
    },
    Appliance.INDUCTION.value: {
        Phase.MENSTRUAL: (
            "fallback-5", "Dal Tadka Express", "20 min", 280, "Iron",
            ("Moong dal", "Tomato", "Cumin", "Ghee"),
            ("Pressure cook dal", "Make tadka", "Mix together"), "🍲",
        ),
        Phase.FOLLICULAR: (
            "fallback-6", "Egg Fried Rice", "15 min", 350, "Protein",
            ("Leftover rice", "Eggs", "Soy sauce", "Veggies"),
            ("Scramble eggs", "Add rice & veggies", "Season with soy sauce"), "🍚",
        ),
        Phase.OVULATORY: (
            "fallback-7", "Stir-Fry Veggie Bowl", "12 min", 200, "Fiber",
            ("Mixed veggies", "Sesame oil", "Garlic", "Soy sauce"),
            ("Heat oil", "Add garlic & veggies", "Season & serve"), "🥗",
        ),
        Phase.LUTEAL: (
            "fallback-8", "Banana Pancakes", "15 min", 300, "Magnesium",
            ("Banana", "Oats", "Egg", "Cinnamon"),
            ("Mash banana", "Mix with oats & egg", "Pan-fry small pancakes"), "🥞",
        ),
    },
    Appliance.SANDWICH_MAKER.value: {
        Phase.MENSTRUAL: (
            "fallback-9", "Spinach Cheese Melt", "7 min", 260, "Iron",
            ("Bread", "Spinach", "Cheese", "Garlic butter"),
            ("Spread garlic butter", "Layer spinach & cheese", "Grill"), "🧀",
        ),
        Phase.FOLLICULAR: (
            "fallback-10", "Paneer Tikka Sandwich", "8 min", 290, "Protein",
            ("Bread", "Paneer", "Tikki paste", "Onion"),
            ("Marinate paneer", "Layer on bread", "Grill until crispy"), "🫓",
        ),
        Phase.OVULATORY: (
            "fallback-11", "Corn & Capsicum Grill", "8 min", 210, "Fiber",
            ("Bread", "Sweet corn", "Capsicum", "Mayo"),
            ("Mix corn & capsicum", "Spread on bread", "Grill"), "🌽",
        ),
        Phase.LUTEAL: (
            "fallback-12", "Nutella Banana Toastie", "5 min", 340, "Magnesium",
            ("Bread", "Nutella", "Banana", "Walnuts"),
            ("Spread Nutella", "Add banana & walnuts", "Grill lightly"), "🍌",
        ),
    },
}  # fmt: skip


def _recipe_from_row(appliance: str, phase: Phase, row: tuple) -> Recipe:
    recipe_id, name, time, calories, nutrient, ingredients, steps, emoji = row
    return Recipe(
        id=recipe_id,
        name=name,
        appliance=appliance,
        phase=phase,
        time=time,
        calories=calories,
        key_nutrient=nutrient,
        ingredients=ingredients,
        steps=steps,
        emoji=emoji,
    )


FALLBACK_RECIPES: dict[str, dict[Phase, Recipe]] = {
    appliance: {
        phase: _recipe_from_row(appliance, phase, row) for phase, row in rows.items()
    }
    for appliance, rows in _FALLBACK_ROWS.items()
}


def appliance_display_name(appliance: str) -> str:
    """Return the prompt-friendly name of an appliance."""
    return APPLIANCE_NAMES.get(appliance, appliance)


def emoji_for_recipe(name: str, phase: Phase) -> str:
    """Pick an emoji from keywords in the recipe name, else from the phase."""
    name_lower = name.lower()
    for keywords, emoji in _NAME_EMOJIS:
        if any(keyword in name_lower for keyword in keywords):
            return emoji
    return PHASES[phase].emoji


def fallback_recipe(appliance: str, phase: Phase) -> Recipe:
    """Return the canned recipe for an appliance and phase."""
    recipe = FALLBACK_RECIPES.get(appliance, {}).get(phase)
    if recipe is not None:
        return recipe
    info = PHASES[phase]
    return Recipe(
        id="fallback-default",
        name=f"{info.name} Special",
        appliance=appliance,
        phase=phase,
        time="10 min",
        calories=200,
        key_nutrient=info.nutrient,
        ingredients=("Check pantry",),
        steps=("Get creative!",),
        emoji="✨",
    )


def filter_recipes(
    recipes: tuple[Recipe, ...] | list[Recipe],
    owned_appliances: frozenset[str] | set[str],
    appliance: str | None = None,
    search: str | None = None,
) -> list[Recipe]:
    """Filter recipes to owned appliances, an optional appliance and a search."""
    query = (search or "").strip().lower()
    return [
        recipe
        for recipe in recipes
        if recipe.appliance in owned_appliances
        and (appliance is None or recipe.appliance == appliance)
        and (not query or query in recipe.name.lower())
    ]
