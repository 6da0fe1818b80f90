from __future__ import annotations

from typing import Dict, List, Tuple

# ---------------------------------------------------------------------------
# Geography
# ---------------------------------------------------------------------------

COUNTRY_REGION_MAP: Dict[str, List[str]] = {
    "France": ["Bordeaux", "Bourgogne", "Champagne", "Rhone Valley", "Jura"],
    "Germany": ["Ahr", "Mosel", "Pfalz", "Rheingau", "Rheinhessen"],
    "Italy": ["Piedmont", "Puglia", "Sicily", "Tuscany", "Veneto"],
    "Spain": ["Jumilla", "La Mancha", "Ribera del Duero", "Rioja", "Jerez"],
    "United States": ["Central Coast", "Finger Lakes", "Napa Valley", "Sonoma County", "Willamette Valley"],
}

ASPECTS = ("North", "Northeast", "East", "Southeast", "South", "Southwest", "West", "Northwest")

REGION_SOIL_TYPES: Dict[str, Dict[str, List[str]]] = {
    "France": {
        "Bordeaux": ["Clay", "Gravel", "Limestone", "Sand"],
        "Bourgogne": ["Clay-Limestone", "Limestone", "Marl"],
        "Champagne": ["Chalk", "Clay", "Limestone"],
        "Rhone Valley": ["Clay", "Granite", "Limestone", "Sand"],
        "Jura": ["Clay", "Limestone", "Marl"],
    },
    "Germany": {
        "Ahr": ["Devonian Slate", "Greywacke", "Loess", "Volcanic Soil"],
        "Mosel": ["Blue Devonian Slate", "Red Devonian Slate"],
        "Pfalz": ["Basalt", "Limestone", "Loess", "Sandstone"],
        "Rheingau": ["Loess", "Phyllite", "Quartzite", "Slate"],
        "Rheinhessen": ["Clay", "Limestone", "Loess", "Quartz"],
    },
    "Italy": {
        "Piedmont": ["Clay", "Limestone", "Marl", "Sand"],
        "Puglia": ["Clay", "Limestone", "Red Earth", "Sand"],
        "Sicily": ["Clay", "Limestone", "Sand", "Volcanic Soil"],
        "Tuscany": ["Clay", "Galestro", "Limestone", "Sandstone"],
        "Veneto": ["Alluvial", "Clay", "Limestone", "Volcanic Soil"],
    },
    "Spain": {
        "Jumilla": ["Clay", "Limestone", "Sand"],
        "La Mancha": ["Clay", "Clay-Limestone", "Sand"],
        "Ribera del Duero": ["Alluvial", "Clay", "Limestone"],
        "Rioja": ["Alluvial", "Clay", "Clay-Limestone", "Ferrous Clay"],
        "Jerez": ["Albariza", "Barros", "Arenas"],
    },
    "United States": {
        "Central Coast": ["Clay", "Loam", "Sand", "Shale"],
        "Finger Lakes": ["Clay", "Gravel", "Limestone", "Shale"],
        "Napa Valley": ["Alluvial", "Clay", "Loam", "Volcanic"],
        "Sonoma County": ["Clay", "Loam", "Sand", "Volcanic"],
        "Willamette Valley": ["Basalt", "Clay", "Marine Sediment", "Volcanic"],
    },
}

REGION_ALTITUDE_RANGES: Dict[str, Dict[str, Tuple[int, int]]] = {
    "France": {
        "Bordeaux": (0, 100),
        "Bourgogne": (200, 500),
        "Champagne": (100, 300),
        "Rhone Valley": (100, 400),
        "Jura": (250, 400),
    },
    "Germany": {
        "Ahr": (100, 300),
        "Mosel": (100, 350),
        "Pfalz": (100, 300),
        "Rheingau": (80, 250),
        "Rheinhessen": (80, 250),
    },
    "Italy": {
        "Piedmont": (150, 600),
        "Puglia": (0, 200),
        "Sicily": (50, 900),
        "Tuscany": (150, 600),
        "Veneto": (50, 400),
    },
    "Spain": {
        "Jumilla": (400, 800),
        "La Mancha": (600, 800),
        "Ribera del Duero": (700, 900),
        "Rioja": (300, 700),
        "Jerez": (0, 100),
    },
    "United States": {
        "Central Coast": (0, 500),
        "Finger Lakes": (100, 300),
        "Napa Valley": (0, 600),
        "Sonoma County": (0, 500),
        "Willamette Valley": (50, 300),
    },
}


def _aspects(*values: float) -> Dict[str, float]:
    return dict(zip(ASPECTS, values))


# Aspect order: N, NE, E, SE, S, SW, W, NW
REGION_ASPECT_RATINGS: Dict[str, Dict[str, Dict[str, float]]] = {
    "Italy": {
        "Piedmont": _aspects(0.25, 0.45, 0.65, 1.00, 0.90, 0.80, 0.60, 0.40),
        "Tuscany": _aspects(0.30, 0.55, 0.75, 1.00, 0.90, 0.85, 0.70, 0.50),
        "Veneto": _aspects(0.20, 0.40, 0.60, 0.95, 1.00, 0.85, 0.65, 0.35),
        "Sicily": _aspects(0.45, 0.65, 0.85, 1.00, 0.90, 0.80, 0.70, 0.55),
        "Puglia": _aspects(0.50, 0.65, 0.85, 1.00, 0.90, 0.85, 0.75, 0.55),
    },
    "France": {
        "Bordeaux": _aspects(0.30, 0.40, 0.60, 0.85, 1.00, 0.95, 0.80, 0.50),
        "Bourgogne": _aspects(0.25, 0.45, 0.65, 1.00, 0.90, 0.80, 0.55, 0.40),
        "Champagne": _aspects(0.20, 0.35, 0.55, 0.90, 1.00, 0.80, 0.60, 0.35),
        "Rhone Valley": _aspects(0.25, 0.50, 0.70, 1.00, 0.90, 0.85, 0.65, 0.40),
        "Jura": _aspects(0.20, 0.45, 0.65, 0.95, 1.00, 0.85, 0.60, 0.35),
    },
    "Spain": {
        "Rioja": _aspects(0.40, 0.55, 0.75, 0.85, 1.00, 0.90, 0.80, 0.60),
        "Ribera del Duero": _aspects(0.35, 0.60, 0.80, 0.90, 1.00, 0.85, 0.70, 0.55),
        "Jumilla": _aspects(0.50, 0.65, 0.85, 1.00, 0.90, 0.80, 0.70, 0.60),
        "La Mancha": _aspects(0.45, 0.60, 0.85, 1.00, 0.90, 0.80, 0.75, 0.50),
        "Jerez": _aspects(0.50, 0.70, 0.85, 1.00, 0.90, 0.85, 0.80, 0.60),
    },
    "United States": {
        "Napa Valley": _aspects(0.40, 0.65, 0.85, 1.00, 0.90, 0.85, 0.75, 0.60),
        "Sonoma County": _aspects(0.35, 0.60, 0.80, 1.00, 0.90, 0.85, 0.75, 0.55),
        "Willamette Valley": _aspects(0.20, 0.45, 0.70, 0.85, 1.00, 0.90, 0.65, 0.35),
        "Finger Lakes": _aspects(0.25, 0.50, 0.70, 0.85, 1.00, 0.85, 0.75, 0.45),
        "Central Coast": _aspects(0.35, 0.60, 0.80, 1.00, 0.90, 0.85, 0.70, 0.50),
    },
    "Germany": {
        "Mosel": _aspects(0.15, 0.35, 0.65, 0.95, 1.00, 0.85, 0.60, 0.30),
        "Rheingau": _aspects(0.20, 0.50, 0.70, 0.90, 1.00, 0.85, 0.75, 0.40),
        "Rheinhessen": _aspects(0.25, 0.60, 0.80, 0.90, 1.00, 0.85, 0.70, 0.50),
        "Pfalz": _aspects(0.30, 0.65, 0.80, 0.90, 1.00, 0.85, 0.70, 0.50),
        "Ahr": _aspects(0.10, 0.40, 0.65, 0.85, 1.00, 0.80, 0.65, 0.35),
    },
}

REGION_PRESTIGE_RANKINGS: Dict[str, Dict[str, float]] = {
    "France": {"Bourgogne": 1.00, "Champagne": 0.98, "Bordeaux": 0.87, "Jura": 0.65, "Rhone Valley": 0.60},
    "United States": {
        "Napa Valley": 0.90,
        "Sonoma County": 0.76,
        "Willamette Valley": 0.67,
        "Central Coast": 0.63,
        "Finger Lakes": 0.48,
    },
    "Italy": {"Tuscany": 0.83, "Piedmont": 0.80, "Veneto": 0.55, "Sicily": 0.46, "Puglia": 0.35},
    "Germany": {"Rheingau": 0.73, "Mosel": 0.72, "Pfalz": 0.57, "Ahr": 0.41, "Rheinhessen": 0.37},
    "Spain": {"Rioja": 0.70, "Ribera del Duero": 0.65, "Jerez": 0.51, "La Mancha": 0.42, "Jumilla": 0.39},
}

# Euros per hectare
REGION_PRICE_RANGES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "France": {
        "Bourgogne": (1_000_000, 10_000_000),
        "Champagne": (500_000, 2_000_000),
        "Bordeaux": (100_000, 1_000_000),
        "Rhone Valley": (30_000, 120_000),
        "Jura": (25_000, 45_000),
    },
    "United States": {
        "Napa Valley": (300_000, 1_000_000),
        "Sonoma County": (100_000, 500_000),
        "Willamette Valley": (50_000, 250_000),
        "Central Coast": (20_000, 150_000),
        "Finger Lakes": (10_000, 50_000),
    },
    "Italy": {
        "Tuscany": (80_000, 1_000_000),
        "Piedmont": (50_000, 700_000),
        "Veneto": (20_000, 100_000),
        "Sicily": (10_000, 60_000),
        "Puglia": (5_000, 30_000),
    },
    "Germany": {
        "Rheingau": (50_000, 200_000),
        "Mosel": (30_000, 150_000),
        "Pfalz": (15_000, 60_000),
        "Ahr": (20_000, 50_000),
        "Rheinhessen": (10_000, 40_000),
    },
    "Spain": {
        "Rioja": (30_000, 100_000),
        "Ribera del Duero": (30_000, 80_000),
        "Jerez": (10_000, 40_000),
        "La Mancha": (5_000, 30_000),
        "Jumilla": (5_000, 25_000),
    },
}

DEFAULT_PRICE_RANGE = (5_000.0, 30_000.0)
DEFAULT_ASPECT_RATING = 0.5
MAX_LAND_VALUE = 10_000_000.0

# Relative warmth of each region (0 = cool climate, 1 = hot).
REGION_HEAT_PROFILE: Dict[str, Dict[str, float]] = {
    "France": {"Bordeaux": 0.55, "Bourgogne": 0.42, "Champagne": 0.32, "Rhone Valley": 0.62, "Jura": 0.38},
    "Germany": {"Ahr": 0.30, "Mosel": 0.32, "Pfalz": 0.42, "Rheingau": 0.38, "Rheinhessen": 0.40},
    "Italy": {"Piedmont": 0.52, "Puglia": 0.78, "Sicily": 0.80, "Tuscany": 0.62, "Veneto": 0.52},
    "Spain": {"Jumilla": 0.78, "La Mancha": 0.72, "Ribera del Duero": 0.60, "Rioja": 0.58, "Jerez": 0.82},
    "United States": {
        "Central Coast": 0.62,
        "Finger Lakes": 0.30,
        "Napa Valley": 0.68,
        "Sonoma County": 0.58,
        "Willamette Valley": 0.40,
    },
}

ASPECT_SUN_EXPOSURE_OFFSETS = _aspects(-0.08, -0.04, 0.0, 0.04, 0.08, 0.04, 0.0, -0.04)

# Heat index lost across the full altitude span of a region.
ALTITUDE_HEAT_COOLING_FACTOR = 0.15

SUITABILITY_WEIGHTS = {"region": 0.4, "altitude": 0.2, "sun": 0.2, "soil": 0.2}

# ---------------------------------------------------------------------------
# Grapes
# ---------------------------------------------------------------------------

GRAPE_VARIETIES = ("Barbera", "Chardonnay", "Pinot Noir", "Primitivo", "Sauvignon Blanc", "Tempranillo")

GRAPE_CONST: Dict[str, Dict] = {
    "Barbera": {
        "natural_yield": 0.7,
        "fragile": 0.4,
        "prone_to_oxidation": 0.4,
        "grape_color": "red",
        "base_characteristics": {
            "acidity": 0.7, "aroma": 0.5, "body": 0.6, "spice": 0.5, "sweetness": 0.5, "tannins": 0.6,
        },
    },
    "Chardonnay": {
        "natural_yield": 0.8,
        "fragile": 0.6,
        "prone_to_oxidation": 0.7,
        "grape_color": "white",
        "base_characteristics": {
            "acidity": 0.4, "aroma": 0.65, "body": 0.75, "spice": 0.5, "sweetness": 0.5, "tannins": 0.35,
        },
    },
    "Pinot Noir": {
        "natural_yield": 0.6,
        "fragile": 0.7,
        "prone_to_oxidation": 0.8,
        "grape_color": "red",
        "base_characteristics": {
            "acidity": 0.65, "aroma": 0.6, "body": 0.35, "spice": 0.5, "sweetness": 0.5, "tannins": 0.4,
        },
    },
    "Primitivo": {
        "natural_yield": 0.9,
        "fragile": 0.3,
        "prone_to_oxidation": 0.3,
        "grape_color": "red",
        "base_characteristics": {
            "acidity": 0.5, "aroma": 0.7, "body": 0.7, "spice": 0.5, "sweetness": 0.7, "tannins": 0.7,
        },
    },
    "Sauvignon Blanc": {
        "natural_yield": 0.75,
        "fragile": 0.5,
        "prone_to_oxidation": 0.9,
        "grape_color": "white",
        "base_characteristics": {
            "acidity": 0.8, "aroma": 0.75, "body": 0.3, "spice": 0.6, "sweetness": 0.4, "tannins": 0.3,
        },
    },
    "Tempranillo": {
        "natural_yield": 0.65,
        "fragile": 0.45,
        "prone_to_oxidation": 0.5,
        "grape_color": "red",
        "base_characteristics": {
            "acidity": 0.55, "aroma": 0.6, "body": 0.65, "spice": 0.55, "sweetness": 0.45, "tannins": 0.65,
        },
    },
}

# (preferred, tolerance) altitude bands in meters
GRAPE_ALTITUDE_SUITABILITY: Dict[str, Tuple[Tuple[int, int], Tuple[int, int]]] = {
    "Barbera": ((200, 520), (120, 650)),
    "Chardonnay": ((180, 620), (0, 850)),
    "Pinot Noir": ((260, 600), (130, 760)),
    "Primitivo": ((80, 280), (0, 450)),
    "Sauvignon Blanc": ((200, 580), (60, 850)),
    "Tempranillo": ((350, 760), (200, 900)),
}

# (optimal heat min, optimal heat max, tolerance)
GRAPE_SUN_PREFERENCES: Dict[str, Tuple[float, float, float]] = {
    "Barbera": (0.40, 0.65, 0.18),
    "Chardonnay": (0.45, 0.70, 0.22),
    "Pinot Noir": (0.30, 0.55, 0.18),
    "Primitivo": (0.55, 0.85, 0.15),
    "Sauvignon Blanc": (0.35, 0.60, 0.20),
    "Tempranillo": (0.45, 0.75, 0.18),
}

# Soils each grape prefers; anything listed under "tolerated" scores half.
GRAPE_SOIL_PREFERENCES: Dict[str, Dict[str, List[str]]] = {
    "Barbera": {
        "preferred": ["Clay", "Limestone", "Marl", "Clay-Limestone"],
        "tolerated": ["Sand", "Loam", "Alluvial", "Red Earth", "Galestro"],
    },
    "Chardonnay": {
        "preferred": ["Chalk", "Limestone", "Clay-Limestone", "Marl"],
        "tolerated": ["Clay", "Loam", "Gravel", "Alluvial", "Volcanic", "Volcanic Soil"],
    },
    "Pinot Noir": {
        "preferred": ["Limestone", "Clay-Limestone", "Marl", "Devonian Slate", "Blue Devonian Slate", "Red Devonian Slate"],
        "tolerated": ["Clay", "Loess", "Slate", "Volcanic", "Marine Sediment", "Basalt"],
    },
    "Primitivo": {
        "preferred": ["Red Earth", "Clay", "Sand", "Limestone"],
        "tolerated": ["Alluvial", "Loam", "Volcanic Soil", "Albariza", "Arenas"],
    },
    "Sauvignon Blanc": {
        "preferred": ["Flint", "Gravel", "Limestone", "Chalk", "Slate"],
        "tolerated": ["Clay", "Sand", "Loess", "Quartzite", "Phyllite", "Marl"],
    },
    "Tempranillo": {
        "preferred": ["Clay-Limestone", "Ferrous Clay", "Limestone", "Alluvial"],
        "tolerated": ["Clay", "Sand", "Albariza", "Barros", "Gravel"],
    },
}


def _grapes(ba: float, ch: float, pn: float, pr: float, sb: float, te: float) -> Dict[str, float]:
    return dict(zip(GRAPE_VARIETIES, (ba, ch, pn, pr, sb, te)))


# Grape order: Barbera, Chardonnay, Pinot Noir, Primitivo, Sauvignon Blanc, Tempranillo
REGION_GRAPE_SUITABILITY: Dict[str, Dict[str, Dict[str, float]]] = {
    "Italy": {
        "Piedmont": _grapes(1.0, 0.8, 0.6, 0.5, 0.6, 0.4),
        "Tuscany": _grapes(0.9, 0.7, 0.5, 0.7, 0.7, 0.5),
        "Veneto": _grapes(0.85, 0.75, 0.7, 0.6, 0.8, 0.35),
        "Sicily": _grapes(0.8, 0.6, 0.3, 0.8, 0.5, 0.3),
        "Puglia": _grapes(0.9, 0.65, 0.4, 1.0, 0.4, 0.6),
    },
    "France": {
        "Bordeaux": _grapes(0.7, 0.8, 0.6, 0.6, 0.9, 0.5),
        "Bourgogne": _grapes(0.4, 0.9, 0.9, 0.3, 0.7, 0.3),
        "Champagne": _grapes(0.2, 0.9, 0.8, 0.2, 0.6, 0.1),
        "Rhone Valley": _grapes(0.85, 0.75, 0.5, 0.7, 0.7, 0.5),
        "Jura": _grapes(0.3, 0.9, 0.8, 0.2, 0.6, 0.2),
    },
    "Spain": {
        "Rioja": _grapes(0.85, 0.7, 0.4, 0.5, 0.6, 0.95),
        "Ribera del Duero": _grapes(0.8, 0.6, 0.35, 0.4, 0.5, 1.0),
        "Jumilla": _grapes(0.9, 0.5, 0.3, 0.85, 0.4, 0.7),
        "La Mancha": _grapes(0.85, 0.55, 0.25, 0.8, 0.5, 0.9),
        "Jerez": _grapes(0.8, 0.5, 0.2, 0.7, 0.4, 0.4),
    },
    "United States": {
        "Napa Valley": _grapes(0.9, 1.0, 0.7, 0.85, 0.8, 0.6),
        "Sonoma County": _grapes(0.85, 0.95, 0.75, 0.8, 0.7, 0.5),
        "Willamette Valley": _grapes(0.4, 0.85, 1.0, 0.3, 0.6, 0.3),
        "Finger Lakes": _grapes(0.3, 0.7, 0.75, 0.2, 0.5, 0.25),
        "Central Coast": _grapes(0.85, 0.8, 0.6, 0.75, 0.7, 0.55),
    },
    "Germany": {
        "Mosel": _grapes(0.15, 0.8, 1.0, 0.1, 0.8, 0.15),
        "Rheingau": _grapes(0.2, 0.85, 0.9, 0.15, 0.85, 0.2),
        "Rheinhessen": _grapes(0.25, 0.8, 0.85, 0.2, 0.8, 0.25),
        "Pfalz": _grapes(0.3, 0.75, 0.8, 0.25, 0.75, 0.3),
        "Ahr": _grapes(0.1, 0.7, 0.95, 0.1, 0.6, 0.1),
    },
}

# ---------------------------------------------------------------------------
# Vineyard growth
# ---------------------------------------------------------------------------

RIPENESS_INCREASE = {"Spring": 0.01, "Summer": 0.02, "Fall": 0.05, "Winter": 0.0}

SEASONAL_RIPENESS_RANDOMNESS = {
    "Spring": (0.5, 1.75),
    "Summer": (0.75, 2.0),
    "Fall": (0.0, 1.5),
    "Winter": (0.0, 0.0),
}

ASPECT_RIPENESS_MODIFIERS = _aspects(-0.1, -0.05, 0.0, 0.05, 0.1, 0.05, 0.0, -0.05)

DEFAULT_VINEYARD_HEALTH = 0.6
MIN_VINEYARD_HEALTH = 0.1
HEALTH_DEGRADATION = {"Spring": 0.002, "Summer": 0.006, "Fall": 0.01, "Winter": 0.001}
HEALTH_DEGRADATION_RANDOMNESS = 0.2
CLEARING_HEALTH_BONUS = 0.2
CLEARING_COST_PER_HECTARE = 1_000.0
PLANTING_COST_PER_VINE = 1.5

DEFAULT_VINE_YIELD = 0.02
MIN_VINE_YIELD = 0.01

DEFAULT_VINE_DENSITY = 5_000
MIN_VINE_DENSITY = 1_000
MAX_VINE_DENSITY = 10_000

# Yield constant folded into the multiplicative yield formula (kg per vine baseline).
BASE_YIELD_PER_VINE = 1.5

# Year-over-year vine-yield delta for the first productive years.
VINE_YIELD_YOUNG_DELTAS = {0: 0.08, 1: 0.20, 2: 0.30, 3: 0.25, 4: 0.15}

# ---------------------------------------------------------------------------
# Winery
# ---------------------------------------------------------------------------

CRUSHING_METHODS: Dict[str, Dict] = {
    "Hand Press": {
        "cost": 0.0,
        "effects": {"aroma": 0.05, "body": 0.03, "tannins": -0.02},
        "pressing_multiplier": 1.0,
        "work_multiplier": 1.5,
    },
    "Mechanical Press": {
        "cost": 500.0,
        "effects": {},
        "pressing_multiplier": 1.5,
        "work_multiplier": 1.0,
    },
    "Pneumatic Press": {
        "cost": 1_200.0,
        "effects": {"aroma": 0.08, "spice": 0.05, "body": 0.05},
        "pressing_multiplier": 1.9,
        "work_multiplier": 0.8,
    },
}

DESTEM_EFFECTS = {"body": 0.10, "tannins": 0.15, "spice": 0.10, "aroma": 0.05}
NO_DESTEM_EFFECTS = {"aroma": -0.15, "tannins": -0.10}
COLD_SOAK_EFFECTS = {"aroma": 0.12, "body": 0.08, "tannins": 0.10, "spice": 0.06}
PRESSING_EFFECTS = {"spice": -0.15, "aroma": -0.12, "tannins": 0.20}

FERMENTATION_METHODS: Dict[str, Dict] = {
    "Basic": {"cost": 0.0, "weekly_effects": {"aroma": 0.005, "body": 0.003}},
    "Temperature Controlled": {
        "cost": 800.0,
        "weekly_effects": {"aroma": 0.008, "body": 0.005, "acidity": 0.002},
    },
    "Extended Maceration": {
        "cost": 400.0,
        "weekly_effects": {"tannins": 0.008, "body": 0.010, "spice": 0.006, "aroma": 0.007},
    },
}

FERMENTATION_TEMPERATURES: Dict[str, Dict] = {
    "Ambient": {"cost": 0.0, "weekly_effects": {}},
    "Cool": {"cost": 200.0, "weekly_effects": {"acidity": 0.003, "aroma": 0.004, "sweetness": 0.002}},
    "Warm": {"cost": 150.0, "weekly_effects": {"body": 0.006, "tannins": 0.004, "acidity": -0.002}},
}

FERMENTATION_PROGRESS_PER_WEEK = 25.0
KG_PER_BOTTLE = 1.5

# Extra crushing work for destemming and cold soak.
DESTEM_WORK_MODIFIER = 0.2
COLD_SOAK_WORK_MODIFIER = 0.15

# ---------------------------------------------------------------------------
# Work and activities
# ---------------------------------------------------------------------------

BASE_WORK_UNITS = 50  # work units in one standard week
DEFAULT_STAFF_WORKFORCE = 50
SPECIALIZATION_WORK_BONUS = 1.2
TEAM_SIZE_EXPONENT = 0.92

# Throughput per standard week: hectares for field work, tons for crushing.
TASK_RATES = {
    "planting": 0.28,
    "harvesting": 1.78,
    "clearing": 0.4,
    "uprooting": 0.23,
    "crushing": 2.5,
}

# kg of grapes picked per standard week
HARVEST_YIELD_RATE = 500.0

INITIAL_WORK = {
    "planting": 10,
    "harvesting": 5,
    "clearing": 5,
    "uprooting": 10,
    "crushing": 10,
}

WORK_CATEGORY_SKILLS = {
    "planting": "field",
    "harvesting": "field",
    "clearing": "field",
    "uprooting": "field",
    "crushing": "winery",
}

DENSITY_BASED_TASKS = ("planting", "harvesting", "uprooting")

PLANTING_SEASON_MODIFIERS = {"Spring": 0.0, "Summer": 0.25, "Fall": 0.35, "Winter": 0.0}
CLEARING_SEASON_MODIFIERS = {"Spring": 0.1, "Summer": 0.25, "Fall": 0.2, "Winter": 0.0}

# Negative values make the soil easier to work.
SOIL_DIFFICULTY_MODIFIERS = {
    "Sand": -0.10,
    "Loam": -0.05,
    "Loess": -0.03,
    "Alluvial": 0.00,
    "Clay": 0.00,
    "Limestone": 0.00,
    "Clay-Limestone": 0.05,
    "Gravel": 0.08,
    "Marl": 0.10,
    "Shale": 0.12,
    "Heavy Clay": 0.15,
    "Rocky": 0.20,
    "Granite": 0.18,
    "Basalt": 0.20,
    "Sandstone": 0.15,
    "Slate": 0.22,
    "Schist": 0.25,
    "Chalk": 0.15,
    "Volcanic Soil": 0.18,
    "Volcanic": 0.18,
    "Galestro": 0.20,
    "Ferrous Clay": 0.16,
    "Marine Sediment": 0.14,
    "Devonian Slate": 0.24,
    "Blue Devonian Slate": 0.25,
    "Red Devonian Slate": 0.25,
    "Greywacke": 0.20,
    "Phyllite": 0.18,
    "Quartzite": 0.20,
    "Quartz": 0.22,
    "Red Earth": 0.12,
    "Albariza": 0.16,
    "Barros": 0.14,
    "Arenas": 0.08,
    "Flint": 0.26,
}

# ---------------------------------------------------------------------------
# Wine faults
# ---------------------------------------------------------------------------

BASE_OXIDATION_RATE = 0.02
OXIDATION_STATE_MULTIPLIERS = {
    "grapes": 3.0,
    "must_ready": 1.5,
    "must_fermenting": 0.8,
    "bottled": 0.3,
}
OXIDATION_WARNING_THRESHOLDS = (0.10, 0.20, 0.40)
OXIDATION_QUALITY_BASE_PENALTY = 0.25
OXIDATION_QUALITY_EXPONENT = 1.5
OXIDATION_CHARACTERISTIC_EFFECTS = {"aroma": -0.20, "acidity": -0.12, "body": -0.08, "sweetness": 0.08}
OXIDATION_CUSTOMER_SENSITIVITY = {
    "Restaurant": 0.85,
    "Wine Shop": 0.80,
    "Private Collector": 0.60,
    "Chain Store": 0.90,
}

# (base amount, weekly decay, cap) of the prestige hit
OXIDATION_PRESTIGE = {
    "manifestation_company": (-0.05, 0.995, -5.0),
    "manifestation_vineyard": (-0.5, 0.98, -10.0),
    "sale_company": (-0.1, 0.995, -10.0),
    "sale_vineyard": (-0.2, 0.98, -8.0),
}

BASE_WINE_PRICE = 25.0
MAX_WINE_PRICE = 99_999_999.99
MIN_LAND_VALUE_FOR_PRICE = 5_000.0

# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

BASE_WEEKLY_WAGE = 500.0
SKILL_WAGE_MULTIPLIER = 1_000.0
SPECIALIZATION_WAGE_MULTIPLIER = 1.3
STAFF_SKILLS = ("field", "winery", "administration", "sales", "maintenance")
NATIONALITIES = ("Italy", "Germany", "France", "Spain", "United States")

SKILL_LEVEL_NAMES = {
    1: "Novice",
    2: "Beginner",
    3: "Apprentice",
    4: "Intermediate",
    5: "Competent",
    6: "Skilled",
    7: "Proficient",
    8: "Advanced",
    9: "Expert",
    10: "Master",
}

SPECIALIZED_ROLES = {
    "field": "Vineyard Manager",
    "winery": "Master Winemaker",
    "administration": "Estate Administrator",
    "sales": "Sales Director",
    "maintenance": "Technical Director",
}

# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

FIRST_NAMES: Dict[str, Dict[str, List[str]]] = {
    "Italy": {
        "male": ["Alessandro", "Andrea", "Antonio", "Davide", "Francesco", "Giovanni", "Lorenzo", "Luca", "Marco", "Matteo"],
        "female": ["Alice", "Anna", "Beatrice", "Chiara", "Francesca", "Giulia", "Laura", "Maria", "Sara", "Sofia"],
    },
    "France": {
        "male": ["Thomas", "Hugo", "Arthur", "Lucas", "Jules", "Gabriel", "Pierre", "Antoine", "Nicolas", "Julien"],
        "female": ["Camille", "Léa", "Manon", "Chloé", "Emma", "Louise", "Clara", "Julie", "Mathilde", "Pauline"],
    },
    "Spain": {
        "male": ["José", "Antonio", "Juan", "Francisco", "Javier", "Carlos", "Miguel", "Alejandro", "Pablo", "Luis"],
        "female": ["María", "Carmen", "Ana", "Laura", "Marta", "Paula", "Isabel", "Elena", "Lucía", "Rosa"],
    },
    "Germany": {
        "male": ["Lukas", "Leon", "Finn", "Jonas", "Paul", "Felix", "Maximilian", "Elias", "Noah", "Tim"],
        "female": ["Mia", "Emma", "Hannah", "Lena", "Lea", "Anna", "Marie", "Laura", "Lina", "Sophie"],
    },
    "United States": {
        "male": ["Liam", "Noah", "Oliver", "James", "William", "Benjamin", "Henry", "Michael", "Ethan", "Jacob"],
        "female": ["Olivia", "Ava", "Isabella", "Mia", "Harper", "Evelyn", "Grace", "Nora", "Hazel", "Lucy"],
    },
}

LAST_NAMES: Dict[str, List[str]] = {
    "Italy": ["Rossi", "Russo", "Ferrari", "Esposito", "Bianchi", "Romano", "Colombo", "Ricci", "Marino", "Greco"],
    "France": ["Martin", "Bernard", "Dubois", "Thomas", "Robert", "Richard", "Petit", "Durand", "Leroy", "Moreau"],
    "Spain": ["García", "Martínez", "Rodríguez", "Fernández", "López", "González", "Pérez", "Sánchez", "Torres", "Ramos"],
    "Germany": ["Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer", "Wagner", "Becker", "Schulz", "Hoffmann"],
    "United States": ["Smith", "Johnson", "Williams", "Jones", "Brown", "Davis", "Miller", "Wilson", "Moore", "Taylor"],
}

BUSINESS_SUFFIXES: Dict[str, Dict[str, List[str]]] = {
    "Restaurant": {
        "France": ["Restaurant", "Bistro", "Brasserie"],
        "Germany": ["Restaurant", "Gasthaus", "Weinhaus"],
        "Italy": ["Ristorante", "Trattoria", "Osteria"],
        "Spain": ["Restaurant", "Bistro", "Bodega"],
        "United States": ["Restaurant", "Bistro"],
    },
    "Wine Shop": {
        "France": ["Wine Merchants", "Wine & Spirits", "Wine Cellar"],
        "Germany": ["Wine Merchants", "Wine Gallery", "Vintage Wines"],
        "Italy": ["Wine Merchants", "Wine Cellar", "Vintage Wines"],
        "Spain": ["Wine Merchants", "Wine & Spirits", "Wine Cellar"],
        "United States": ["Wine Merchants", "Wine & Spirits", "Wine Gallery"],
    },
    "Private Collector": {
        "France": ["Wines", "Wine Trading", "Fine Wines"],
        "Germany": ["Wines", "Wine Import", "Wine Selection"],
        "Italy": ["Wines", "Wine Trading", "Fine Wines"],
        "Spain": ["Wines", "Wine Trading", "Fine Wines"],
        "United States": ["Wines", "Wine Trading", "Fine Wines"],
    },
    "Chain Store": {
        "France": ["International", "Group", "Distribution"],
        "Germany": ["Corporation", "Holdings", "International"],
        "Italy": ["International", "Corporation", "Group"],
        "Spain": ["International", "Group", "Distribution"],
        "United States": ["Inc.", "Corporation", "International"],
    },
}

LENDER_NAMES = {
    "Bank": [
        "First National", "Capital Trust", "Premier Banking", "Heritage Financial",
        "Vineyard Bank", "Agricultural Savings", "Rural Development Bank",
        "Community First", "Growers Credit", "Estate Finance", "Valley Bank",
    ],
    "Investment Fund": [
        "Growth Capital Partners", "Vineyard Ventures", "Agricultural Investment Fund",
        "Premium Asset Management", "Strategic Growth Fund", "Heritage Capital",
        "Land & Asset Partners", "Rural Investment Group", "Estate Development Fund",
        "Harvest Capital", "Terravest Partners", "Vintage Growth Fund",
    ],
    "QuickLoan": [
        "FlashBridge Finance", "Rapid Relief Loans", "SwiftLine Funding", "Express Capital Group",
        "Lightning Credit Partners", "QuickHarvest Lending", "Momentum Microloans",
    ],
}

PRIVATE_LENDER_PREFIXES = [
    "Anderson", "Bennett", "Carter", "Davis", "Edwards", "Fischer", "Garcia", "Hughes",
    "Jenkins", "Klein", "Larson", "Martinez", "Nelson", "O'Brien", "Parker", "Quinn",
    "Roberts", "Sullivan", "Thompson", "Wagner", "Williams", "Young",
]
PRIVATE_LENDER_SUFFIXES = [
    "Lending", "Capital", "Finance", "Loans", "Credit Services", "Private Funding", "Financial Solutions",
]

# ---------------------------------------------------------------------------
# Economy and loans
# ---------------------------------------------------------------------------

ECONOMY_PHASES = ("Crash", "Recession", "Stable", "Expansion", "Boom")

# (shift probability, stay probability) per phase group, evaluated once per season.
ECONOMY_TRANSITION = {
    "middle": (0.25, 0.5),
    "edge": (0.33, 0.67),
}

ECONOMY_INTEREST_MULTIPLIERS = {
    "Crash": 1.5,
    "Recession": 1.2,
    "Stable": 1.0,
    "Expansion": 0.9,
    "Boom": 0.8,
}

ECONOMY_SALES_MULTIPLIERS: Dict[str, Dict[str, float]] = {
    "Crash": {"frequency": 0.5, "quantity": 0.6, "price_tolerance": 0.85, "multiple_order": 0.8},
    "Recession": {"frequency": 0.8, "quantity": 0.85, "price_tolerance": 0.95, "multiple_order": 0.9},
    "Stable": {"frequency": 1.0, "quantity": 1.0, "price_tolerance": 1.0, "multiple_order": 1.0},
    "Expansion": {"frequency": 1.2, "quantity": 1.15, "price_tolerance": 1.05, "multiple_order": 1.05},
    "Boom": {"frequency": 1.5, "quantity": 1.3, "price_tolerance": 1.15, "multiple_order": 1.1},
}

LENDER_TYPES = ("Bank", "Investment Fund", "Private Lender", "QuickLoan")

LENDER_TYPE_DISTRIBUTION = {"Bank": 0.25, "Investment Fund": 0.25, "Private Lender": 0.40, "QuickLoan": 0.10}

LENDER_TYPE_RATE_MULTIPLIERS = {"Bank": 0.9, "Investment Fund": 1.1, "Private Lender": 1.4, "QuickLoan": 1.6}

LENDER_PARAMS: Dict[str, Dict[str, Tuple[float, float]]] = {
    "Bank": {
        "interest": (0.04, 0.08),
        "amount": (50_000, 500_000),
        "duration": (4, 120),
        "fee_base_percent": (0.015, 0.025),
        "fee_min": (800, 1_500),
        "fee_max": (12_000, 20_000),
        "fee_credit_modifier": (0.6, 0.8),
        "fee_duration_modifier": (1.0, 1.2),
    },
    "Investment Fund": {
        "interest": (0.05, 0.10),
        "amount": (50_000, 1_000_000),
        "duration": (4, 240),
        "fee_base_percent": (0.025, 0.035),
        "fee_min": (1_500, 3_000),
        "fee_max": (25_000, 40_000),
        "fee_credit_modifier": (0.7, 0.9),
        "fee_duration_modifier": (1.0, 1.3),
    },
    "Private Lender": {
        "interest": (0.08, 0.15),
        "amount": (5_000, 50_000),
        "duration": (4, 60),
        "fee_base_percent": (0.045, 0.07),
        "fee_min": (400, 1_000),
        "fee_max": (7_000, 12_000),
        "fee_credit_modifier": (0.85, 1.25),
        "fee_duration_modifier": (0.95, 1.45),
    },
    "QuickLoan": {
        "interest": (0.12, 0.20),
        "amount": (5_000, 75_000),
        "duration": (4, 8),
        "fee_base_percent": (0.06, 0.10),
        "fee_min": (400, 1_500),
        "fee_max": (5_000, 10_000),
        "fee_credit_modifier": (1.15, 1.45),
        "fee_duration_modifier": (0.9, 1.15),
    },
}

LENDER_COUNT_RANGE = (25, 65)

# Applied by available_lenders: credit rating must reach risk_tolerance (minus prestige bonus).
LENDER_CHARACTER_RANGES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "Bank": {"risk_tolerance": (0.3, 0.6), "flexibility": (0.5, 0.8)},
    "Investment Fund": {"risk_tolerance": (0.4, 0.7), "flexibility": (0.6, 0.9)},
    "Private Lender": {"risk_tolerance": (0.5, 0.9), "flexibility": (0.3, 0.7)},
    "QuickLoan": {"risk_tolerance": (0.15, 0.35), "flexibility": (0.5, 0.8)},
}

# (max seasons, multiplier); longer loans get slightly lower rates.
DURATION_INTEREST_MODIFIERS = ((16, 1.0), (40, 0.95), (80, 0.90))
VERY_LONG_TERM_MODIFIER = 0.85

DEFAULT_CREDIT_RATING = 0.5

CREDIT_RATING_CHANGES = {
    "on_time_payment": 0.005,
    "loan_payoff": 0.05,
    "late_payment": -0.05,
    "vineyard_seizure": -0.10,
    "default": -0.30,
}

LOAN_WARNING_PENALTIES = {
    "late_fee_percent": 0.02,
    "interest_rate_increase": 0.005,
    "balance_penalty_percent": 0.05,
    "seizure_portfolio_share": 0.5,
    "warning_prestige": -25.0,
    "warning_prestige_decay": 0.998667,
    "default_prestige": -75.0,
    "default_prestige_decay": 0.999334,
}

# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

CUSTOMER_TYPES = ("Restaurant", "Wine Shop", "Private Collector", "Chain Store")

CUSTOMER_TYPE_CONFIG: Dict[str, Dict[str, Tuple[float, float]]] = {
    "Restaurant": {"price_range": (0.4, 0.9), "quantity_range": (12, 80)},
    "Wine Shop": {"price_range": (0.6, 1.0), "quantity_range": (18, 120)},
    "Private Collector": {"price_range": (1.1, 1.6), "quantity_range": (3, 36)},
    "Chain Store": {"price_range": (1.0, 1.5), "quantity_range": (60, 300)},
}

CUSTOMER_REGIONAL_DATA: Dict[str, Dict] = {
    "France": {
        "purchasing_power": 0.85,
        "wine_tradition": 1.10,
        "type_weights": {"Restaurant": 0.35, "Wine Shop": 0.05, "Private Collector": 0.55, "Chain Store": 0.05},
    },
    "Germany": {
        "purchasing_power": 0.80,
        "wine_tradition": 0.75,
        "type_weights": {"Restaurant": 0.16, "Wine Shop": 0.10, "Private Collector": 0.70, "Chain Store": 0.04},
    },
    "Italy": {
        "purchasing_power": 0.75,
        "wine_tradition": 1.05,
        "type_weights": {"Restaurant": 0.26, "Wine Shop": 0.10, "Private Collector": 0.60, "Chain Store": 0.04},
    },
    "Spain": {
        "purchasing_power": 0.70,
        "wine_tradition": 0.85,
        "type_weights": {"Restaurant": 0.15, "Wine Shop": 0.12, "Private Collector": 0.70, "Chain Store": 0.03},
    },
    "United States": {
        "purchasing_power": 1.20,
        "wine_tradition": 0.60,
        "type_weights": {"Restaurant": 0.08, "Wine Shop": 0.10, "Private Collector": 0.80, "Chain Store": 0.02},
    },
}

CUSTOMERS_PER_COUNTRY = 8

ORDER_CHANCE = {
    "min": 0.05,
    "mid": 0.15,
    "mid_prestige": 100.0,
    "max": 0.35,
    "diminishing_factor": 200.0,
    "pending_order_penalty": 0.8,
}

RELATIONSHIP_BOOST_DECAY = 0.95
SALE_PRESTIGE_DECAY = 0.95
VINEYARD_SALE_PRESTIGE_DECAY = 0.95
VINEYARD_ACHIEVEMENT_PRESTIGE_DECAY = 0.90
PRESTIGE_EVENT_MIN_AMOUNT = 0.001

# ---------------------------------------------------------------------------
# Game setup
# ---------------------------------------------------------------------------

STARTING_MONEY = 10_000_000.0
START_YEAR = 2024
LAND_OFFER_COUNT = 5
NOTIFICATION_LIMIT = 200
