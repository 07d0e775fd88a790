"""
Éclaireurs - Agents légers spécialisés sur une caractéristique visuelle.

Chaque éclaireur est un "minimodèle": une règle stimulus-réponse fixe,
choisie par son type (orientation de contour, direction de mouvement,
polarité de couleur ou de texture).

Principe:
- L'éclaireur lit le champ de perception à sa cellule
- Son activation est un lissage exponentiel du stimulus
- Au-delà de son seuil, il remonte le gradient de sa carte
  et celui du champ attracteur partagé
- Un bruit d'exploration s'ajoute à chaque tick

Les éclaireurs ne se référencent jamais entre eux: tout couplage passe
par le champ attracteur (stigmergie).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .field import PerceptionField


class ScoutType(IntEnum):
    """Spécialisation d'un éclaireur (12 minimodèles)."""
    EDGE_VERTICAL = 0
    EDGE_HORIZONTAL = 1
    EDGE_DIAGONAL_1 = 2
    EDGE_DIAGONAL_2 = 3
    MOTION_UP = 4
    MOTION_DOWN = 5
    MOTION_LEFT = 6
    MOTION_RIGHT = 7
    COLOR_BRIGHT = 8
    COLOR_DARK = 9
    TEXTURE_HIGH = 10
    TEXTURE_LOW = 11

    @property
    def feature(self) -> str:
        """Famille de caractéristique: 'edge', 'motion', 'color' ou 'texture'."""
        return self.name.split('_', 1)[0].lower()


@dataclass
class ScoutConfig:
    """Constantes de mise à jour partagées par les éclaireurs.

    Attributes:
        activation_decay: Mémoire du lissage de l'activation
        stimulus_gain: Poids du nouveau stimulus dans l'activation
        gradient_gain: Gain de la force de gradient (multiplie l'activation)
        cluster_gain: Gain de la force vers le champ attracteur
        jitter: Amplitude du bruit d'exploration (uniforme sur ±jitter/2)
        velocity_damping: Amortissement de la vitesse par tick
        force_gain: Poids de la force dans la vitesse
        margin: Distance minimale au bord du champ
        energy_decay: Mémoire du lissage de l'énergie
        energy_gain: Poids de l'activation dans l'énergie
        sensitivity_range: Intervalle de tirage de la sensibilité
        threshold_range: Intervalle de tirage du seuil
        energy_range: Intervalle de tirage de l'énergie initiale
    """
    activation_decay: float = 0.9
    stimulus_gain: float = 0.1
    gradient_gain: float = 5.0
    cluster_gain: float = 2.0
    jitter: float = 1.0
    velocity_damping: float = 0.8
    force_gain: float = 0.1
    margin: float = 5.0
    energy_decay: float = 0.99
    energy_gain: float = 0.01
    sensitivity_range: Tuple[float, float] = (0.5, 1.0)
    threshold_range: Tuple[float, float] = (0.1, 0.4)
    energy_range: Tuple[float, float] = (0.5, 1.0)


# ---------------------------------------------------------------------------
# Stimulus par type (lus à la cellule entière x, y, supposée dans le champ)
# ---------------------------------------------------------------------------

def _vertical_edge(perception: PerceptionField, x: int, y: int) -> float:
    if x <= 0 or x >= perception.width - 1:
        return 0.0
    lum = perception.current
    return abs(float(lum[y, x - 1]) - float(lum[y, x + 1]))


def _horizontal_edge(perception: PerceptionField, x: int, y: int) -> float:
    if y <= 0 or y >= perception.height - 1:
        return 0.0
    lum = perception.current
    return abs(float(lum[y - 1, x]) - float(lum[y + 1, x]))


def _is_interior(perception: PerceptionField, x: int, y: int) -> bool:
    return 0 < x < perception.width - 1 and 0 < y < perception.height - 1


def _diagonal_edge_1(perception: PerceptionField, x: int, y: int) -> float:
    if not _is_interior(perception, x, y):
        return 0.0
    lum = perception.current
    return abs(float(lum[y - 1, x - 1]) - float(lum[y + 1, x + 1]))


def _diagonal_edge_2(perception: PerceptionField, x: int, y: int) -> float:
    if not _is_interior(perception, x, y):
        return 0.0
    lum = perception.current
    return abs(float(lum[y - 1, x + 1]) - float(lum[y + 1, x - 1]))


def _motion(perception: PerceptionField, x: int, y: int) -> float:
    # Magnitude scalaire: la direction n'est portée que par le type
    return float(perception.motion_map[y, x])


def _bright(perception: PerceptionField, x: int, y: int) -> float:
    return float(perception.color_map[y, x])


def _dark(perception: PerceptionField, x: int, y: int) -> float:
    return 1.0 - float(perception.color_map[y, x])


def _high_texture(perception: PerceptionField, x: int, y: int) -> float:
    return float(perception.texture_map[y, x])


def _low_texture(perception: PerceptionField, x: int, y: int) -> float:
    return max(0.0, 0.5 - float(perception.texture_map[y, x]))


# Générateur de repli quand aucun n'est injecté (créé une seule fois)
_FALLBACK_RNG = np.random.default_rng()

StimulusFunction = Callable[[PerceptionField, int, int], float]

STIMULUS_FUNCTIONS: Dict[ScoutType, StimulusFunction] = {
    ScoutType.EDGE_VERTICAL: _vertical_edge,
    ScoutType.EDGE_HORIZONTAL: _horizontal_edge,
    ScoutType.EDGE_DIAGONAL_1: _diagonal_edge_1,
    ScoutType.EDGE_DIAGONAL_2: _diagonal_edge_2,
    ScoutType.MOTION_UP: _motion,
    ScoutType.MOTION_DOWN: _motion,
    ScoutType.MOTION_LEFT: _motion,
    ScoutType.MOTION_RIGHT: _motion,
    ScoutType.COLOR_BRIGHT: _bright,
    ScoutType.COLOR_DARK: _dark,
    ScoutType.TEXTURE_HIGH: _high_texture,
    ScoutType.TEXTURE_LOW: _low_texture,
}

# Carte dont chaque type remonte le gradient
GRADIENT_SOURCES: Dict[ScoutType, str] = {
    scout_type: (
        'edge_map' if scout_type.feature == 'edge'
        else 'motion_map' if scout_type.feature == 'motion'
        else 'color_map'
    )
    for scout_type in ScoutType
}


def central_gradient(grid: NDArray[np.float32], x: int, y: int) -> Tuple[float, float]:
    """Différences centrées d'une grille à la cellule (x, y).

    Chaque axe vaut 0 sur sa bordure (aucune lecture hors tableau).

    Args:
        grid: Grille (H, W)
        x: Colonne
        y: Ligne

    Returns:
        (gx, gy)
    """
    h, w = grid.shape
    gx = float(grid[y, x + 1]) - float(grid[y, x - 1]) if 0 < x < w - 1 else 0.0
    gy = float(grid[y + 1, x]) - float(grid[y - 1, x]) if 0 < y < h - 1 else 0.0
    return gx, gy


@dataclass
class Scout:
    """Un éclaireur du champ de perception.

    Attributes:
        scout_type: Spécialisation (fixe)
        x, y: Position continue
        sensitivity: Gain du stimulus (fixe, tiré à la création)
        threshold: Seuil de déclenchement du suivi de gradient (fixe)
        config: Constantes de mise à jour
        vx, vy: Vitesse (amortie à chaque tick)
        activation: Réponse lissée au stimulus
        energy: Moyenne glissante de l'activation (statistique seulement)
        age: Nombre de ticks vécus
    """
    scout_type: ScoutType
    x: float = 0.0
    y: float = 0.0
    sensitivity: float = 0.75
    threshold: float = 0.25
    config: ScoutConfig = field(default_factory=ScoutConfig, repr=False)

    # État mutable
    vx: float = 0.0
    vy: float = 0.0
    activation: float = 0.0
    energy: float = 0.0
    age: int = 0

    def __post_init__(self):
        self.scout_type = ScoutType(self.scout_type)

    @classmethod
    def spawn(
        cls,
        scout_type: ScoutType,
        width: int,
        height: int,
        rng: np.random.Generator,
        config: Optional[ScoutConfig] = None,
    ) -> 'Scout':
        """Crée un éclaireur avec des constantes et un état tirés au hasard.

        Args:
            scout_type: Spécialisation
            width: Largeur du champ
            height: Hauteur du champ
            rng: Générateur aléatoire
            config: Constantes partagées

        Returns:
            Nouvel éclaireur
        """
        config = config or ScoutConfig()
        s_lo, s_hi = config.sensitivity_range
        t_lo, t_hi = config.threshold_range
        scout = cls(
            scout_type=scout_type,
            sensitivity=s_lo + rng.random() * (s_hi - s_lo),
            threshold=t_lo + rng.random() * (t_hi - t_lo),
            config=config,
        )
        scout.randomize_state(width, height, rng)
        return scout

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def velocity(self) -> Tuple[float, float]:
        return (self.vx, self.vy)

    @property
    def cell(self) -> Tuple[int, int]:
        """Cellule entière (floor) sous l'éclaireur."""
        return (math.floor(self.x), math.floor(self.y))

    def is_active(self, level: float = 0.1) -> bool:
        return self.activation > level

    def randomize_state(self, width: int, height: int, rng: np.random.Generator) -> None:
        """Tire à nouveau position, vitesse, activation et énergie.

        Le type, la sensibilité, le seuil et l'âge sont conservés.
        """
        e_lo, e_hi = self.config.energy_range
        self.x = rng.random() * width
        self.y = rng.random() * height
        self.vx = 0.0
        self.vy = 0.0
        self.activation = 0.0
        self.energy = e_lo + rng.random() * (e_hi - e_lo)

    def compute_stimulus(self, perception: PerceptionField) -> float:
        """Stimulus propre au type, lu à la cellule courante (0 hors champ)."""
        x, y = self.cell
        if not perception.contains(x, y):
            return 0.0
        return STIMULUS_FUNCTIONS[self.scout_type](perception, x, y)

    def compute_gradient(self, perception: PerceptionField) -> Tuple[float, float]:
        """Gradient de la carte suivie par ce type, à la cellule courante."""
        x, y = self.cell
        if not perception.contains(x, y):
            return (0.0, 0.0)
        grid = getattr(perception, GRADIENT_SOURCES[self.scout_type])
        return central_gradient(grid, x, y)

    def compute_cluster_force(self, perception: PerceptionField) -> Tuple[float, float]:
        """Attraction vers les zones actives du champ attracteur.

        Nulle si la cellule touche la bordure.
        """
        x, y = self.cell
        if not _is_interior(perception, x, y):
            return (0.0, 0.0)
        gx, gy = central_gradient(perception.attractor_field, x, y)
        return (gx * self.config.cluster_gain, gy * self.config.cluster_gain)

    def update(self, perception: PerceptionField, rng: Optional[np.random.Generator] = None) -> None:
        """Avance l'éclaireur d'un tick.

        Ne lit que le champ (figé pendant la phase des éclaireurs) et
        n'écrit que l'état de cet éclaireur.

        Args:
            perception: Champ de perception du tick courant
            rng: Générateur pour le bruit d'exploration (défaut: générateur
                de repli du module, partagé)
        """
        self.age += 1

        x, y = self.cell
        if not perception.contains(x, y):
            # Hors champ: figé pour ce tick
            return

        cfg = self.config
        stimulus = STIMULUS_FUNCTIONS[self.scout_type](perception, x, y)
        self.activation = (
            self.activation * cfg.activation_decay +
            stimulus * self.sensitivity * cfg.stimulus_gain
        )

        fx = 0.0
        fy = 0.0
        if self.activation > self.threshold:
            gx, gy = self.compute_gradient(perception)
            fx = gx * self.activation * cfg.gradient_gain
            fy = gy * self.activation * cfg.gradient_gain

            cx, cy = self.compute_cluster_force(perception)
            fx += cx
            fy += cy

        if cfg.jitter:
            if rng is None:
                rng = _FALLBACK_RNG
            jx, jy = rng.random(2)
            fx += (jx - 0.5) * cfg.jitter
            fy += (jy - 0.5) * cfg.jitter

        self.vx = self.vx * cfg.velocity_damping + fx * cfg.force_gain
        self.vy = self.vy * cfg.velocity_damping + fy * cfg.force_gain
        self.x += self.vx
        self.y += self.vy

        margin = cfg.margin
        self.x = max(margin, min(perception.width - margin, self.x))
        self.y = max(margin, min(perception.height - margin, self.y))

        self.energy = self.energy * cfg.energy_decay + self.activation * cfg.energy_gain
