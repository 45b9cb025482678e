"""Nutrition rule table used to score ingredient candidates."""

HARMFUL_MARKERS: tuple[str, ...] = (
    "trans fat",
    "trans fats",
    "hydrogenated oil",
    "partially hydrogenated",
    "high fructose corn syrup",
    "corn syrup",
    "artificial sweeteners",
    "sodium benzoate",
    "sodium nitrite",
    "msg",
    "monosodium glutamate",
    "artificial colors",
    "red dye",
    "yellow dye",
    "blue dye",
    "bht",
    "bha",
    "tbhq",
    "propyl gallate",
)

HEALTHY_MARKERS: tuple[str, ...] = (
    "organic",
    "whole grain",
    "fiber",
    "protein",
    "vitamins",
    "minerals",
    "omega-3",
    "probiotics",
    "antioxidants",
    "natural flavor",
    "sea salt",
    "coconut oil",
    "olive oil",
)

# Substrings that make a harmful marker high severity.
HIGH_SEVERITY_TERMS: tuple[str, ...] = ("trans", "hydrogenated")

HARMFUL_DELTA = -3
HEALTHY_DELTA = 2
SUGAR_DELTA = -2
SODIUM_DELTA = -1
VITAMIN_DELTA = 1
FIBER_DELTA = 2

SUGAR_TERM = "sugar"
SUGAR_NEGATION = "no sugar"
SODIUM_TERMS: tuple[str, ...] = ("sodium", "salt")
VITAMIN_TERMS: tuple[str, ...] = ("vitamin", "mineral")
FIBER_TERMS: tuple[str, ...] = ("fiber", "whole grain")
