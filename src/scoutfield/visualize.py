"""
Visualisation du champ et de la population.

Fonctions pures qui transforment l'état exposé par la simulation en
images RGB uint8. L'affichage lui-même reste à la charge de l'appelant.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Set, Tuple

import numpy as np
from numpy.typing import NDArray

from .field import PerceptionField
from .scout import Scout, ScoutType


# Couleur RGB de chaque minimodèle
SCOUT_COLORS: Dict[ScoutType, Tuple[int, int, int]] = {
    ScoutType.EDGE_VERTICAL: (255, 0, 0),
    ScoutType.EDGE_HORIZONTAL: (255, 68, 0),
    ScoutType.EDGE_DIAGONAL_1: (255, 136, 0),
    ScoutType.EDGE_DIAGONAL_2: (255, 204, 0),
    ScoutType.MOTION_UP: (0, 255, 0),
    ScoutType.MOTION_DOWN: (0, 255, 136),
    ScoutType.MOTION_LEFT: (0, 255, 255),
    ScoutType.MOTION_RIGHT: (0, 136, 255),
    ScoutType.COLOR_BRIGHT: (255, 255, 255),
    ScoutType.COLOR_DARK: (136, 136, 136),
    ScoutType.TEXTURE_HIGH: (255, 0, 255),
    ScoutType.TEXTURE_LOW: (136, 0, 255),
}

# Types affichés par défaut
DEFAULT_VISIBLE_TYPES: Set[ScoutType] = {
    ScoutType.EDGE_VERTICAL,
    ScoutType.EDGE_HORIZONTAL,
    ScoutType.MOTION_UP,
    ScoutType.MOTION_DOWN,
    ScoutType.MOTION_LEFT,
    ScoutType.MOTION_RIGHT,
    ScoutType.TEXTURE_HIGH,
}


def _to_channel(grid: NDArray[np.float32], gain: float) -> NDArray[np.uint8]:
    return np.clip(grid * 255.0 * gain, 0, 255).astype(np.uint8)


def visualize_features(field: PerceptionField) -> NDArray[np.uint8]:
    """Image des caractéristiques: R=contours, G=mouvement, B=texture.

    Args:
        field: Champ de perception

    Returns:
        Image RGB (H, W, 3)
    """
    h, w = field.shape
    vis = np.zeros((h, w, 3), dtype=np.uint8)
    vis[..., 0] = _to_channel(field.edge_map, 2.0)
    vis[..., 1] = _to_channel(field.motion_map, 10.0)
    vis[..., 2] = _to_channel(field.texture_map, 5.0)
    return vis


def visualize_attractors(field: PerceptionField) -> NDArray[np.uint8]:
    """Image du champ attracteur en jaune (R=G=intensité).

    Args:
        field: Champ de perception

    Returns:
        Image RGB (H, W, 3)
    """
    h, w = field.shape
    intensity = _to_channel(field.attractor_field, 10.0)
    vis = np.zeros((h, w, 3), dtype=np.uint8)
    vis[..., 0] = intensity
    vis[..., 1] = intensity
    return vis


def visualize_scouts(
    scouts: Iterable[Scout],
    shape: Tuple[int, int],
    visible_types: Optional[Set[ScoutType]] = None,
    min_activation: float = 0.1,
) -> NDArray[np.uint8]:
    """Image de la population sur fond noir.

    Chaque éclaireur visible et assez actif est un carré de côté
    1 + 2*activation, dans la couleur de son type, mélangé avec une
    opacité min(1, 2*activation).

    Args:
        scouts: Éclaireurs à dessiner
        shape: Forme de l'image (H, W)
        visible_types: Types à dessiner (défaut: tous)
        min_activation: Activation minimale pour être dessiné

    Returns:
        Image RGB (H, W, 3)
    """
    h, w = shape
    canvas = np.zeros((h, w, 3), dtype=np.float32)

    for scout in scouts:
        if visible_types is not None and scout.scout_type not in visible_types:
            continue
        if scout.activation < min_activation:
            continue

        alpha = min(1.0, scout.activation * 2.0)
        half = (1.0 + scout.activation * 2.0) / 2.0
        x0 = max(0, int(round(scout.x - half)))
        x1 = min(w, int(round(scout.x + half)))
        y0 = max(0, int(round(scout.y - half)))
        y1 = min(h, int(round(scout.y + half)))
        if x0 >= x1 or y0 >= y1:
            continue

        color = np.array(SCOUT_COLORS[scout.scout_type], dtype=np.float32)
        patch = canvas[y0:y1, x0:x1]
        patch *= (1.0 - alpha)
        patch += alpha * color

    return np.clip(canvas, 0, 255).astype(np.uint8)
