"""
scoutfield - Éclaireurs couplés par un champ de perception partagé.

Des milliers d'agents légers, chacun spécialisé sur une caractéristique
visuelle, se déplacent sur un champ dérivé d'un flux d'images et se
renforcent mutuellement via un champ attracteur émergent.
"""

__all__ = [
    # LUT
    "LUMA_WEIGHTS",
    "LUMA_LUT",
    "rgba_to_luminance",
    "luminance_to_gray",
    # Champ de perception
    "FieldConfig",
    "PerceptionField",
    "create_field",
    # Éclaireurs
    "ScoutType",
    "ScoutConfig",
    "Scout",
    "STIMULUS_FUNCTIONS",
    "GRADIENT_SOURCES",
    # Simulation
    "SimulationConfig",
    "Simulation",
    "create_simulation",
    # Visualisation
    "SCOUT_COLORS",
    "DEFAULT_VISIBLE_TYPES",
    "visualize_features",
    "visualize_attractors",
    "visualize_scouts",
]

from .lut import LUMA_WEIGHTS, LUMA_LUT, rgba_to_luminance, luminance_to_gray
from .field import FieldConfig, PerceptionField, create_field
from .scout import ScoutType, ScoutConfig, Scout, STIMULUS_FUNCTIONS, GRADIENT_SOURCES
from .simulation import SimulationConfig, Simulation, create_simulation
from .visualize import (
    SCOUT_COLORS, DEFAULT_VISIBLE_TYPES,
    visualize_features, visualize_attractors, visualize_scouts,
)
