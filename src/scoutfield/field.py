"""
Champ de perception - Environnement partagé des éclaireurs.

Ce module convertit chaque frame RGBA en luminance puis en cartes de
caractéristiques (contours, mouvement, couleur, texture). Il porte aussi
le champ attracteur, reconstruit à chaque tick à partir de l'activation
agrégée des éclaireurs.

Le champ ne connaît pas l'identité des éclaireurs: il ne lit que leur
position et leur activation lors de la phase d'agrégation.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, Optional, Tuple

import cv2
import numpy as np
from numpy.typing import NDArray

from .lut import rgba_to_luminance

logger = logging.getLogger(__name__)

# Pixels intérieurs: la bordure d'un pixel n'est jamais écrite
_INTERIOR = (slice(1, -1), slice(1, -1))


@dataclass
class FieldConfig:
    """Configuration du champ de perception.

    Attributes:
        width: Largeur en pixels
        height: Hauteur en pixels
        history_length: Nombre de frames de luminance conservées
        attractor_deposit: Dépôt par unité d'activation d'un éclaireur
    """
    width: int = 256
    height: int = 256
    history_length: int = 5
    attractor_deposit: float = 0.1


class PerceptionField:
    """Champ de perception partagé.

    Toutes les grilles sont des tableaux float32 de forme (height, width),
    indexés [y, x]:
    - current / previous: luminance [0, 1] de la frame courante et précédente
    - edge_map: magnitude de Sobel
    - motion_map: |current - previous|
    - color_map: luminance recopiée
    - texture_map: variance locale 3x3 autour du pixel central
    - attractor_field: activation agrégée puis lissée des éclaireurs

    Les cartes de caractéristiques sont recalculées entièrement à chaque
    frame, sur les pixels intérieurs seulement.
    """

    def __init__(self, config: Optional[FieldConfig] = None):
        """Initialise le champ.

        Args:
            config: Configuration du champ (défaut: 256x256)

        Raises:
            ValueError: Si les dimensions ou l'historique sont invalides
        """
        self.config = config or FieldConfig()
        if self.config.width < 1 or self.config.height < 1:
            raise ValueError(
                f"Field size must be positive, got {self.config.width}x{self.config.height}"
            )
        if self.config.history_length < 2:
            raise ValueError(
                f"history_length must be >= 2, got {self.config.history_length}"
            )

        self.current = self._empty()
        self.previous = self._empty()
        self.edge_map = self._empty()
        self.motion_map = self._empty()
        self.color_map = self._empty()
        self.texture_map = self._empty()
        self.attractor_field = self._empty()

        self.history: Deque[NDArray[np.float32]] = deque(maxlen=self.config.history_length)
        self.frame_index = 0

        self.stats = {
            'frames_processed': 0,
            'attractor_updates': 0,
        }

    def _empty(self) -> NDArray[np.float32]:
        return np.zeros(self.shape, dtype=np.float32)

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def shape(self) -> Tuple[int, int]:
        """Forme des grilles (height, width)."""
        return (self.config.height, self.config.width)

    def contains(self, x: int, y: int) -> bool:
        """Vrai si la cellule (x, y) est dans le champ."""
        return 0 <= x < self.config.width and 0 <= y < self.config.height

    def _coerce_frame(self, frame) -> NDArray[np.uint8]:
        """Valide une frame et la ramène à (H, W, C) uint8.

        Accepte un tableau (H, W, 4) RGBA, (H, W, 3) RGB, ou un tampon
        plat de H*W*4 octets.

        Raises:
            ValueError: Si la taille ne correspond pas au champ, ou si les
                canaux ne sont pas en uint8 (pas de conversion implicite)
        """
        h, w = self.shape
        if isinstance(frame, (bytes, bytearray, memoryview)):
            frame = np.frombuffer(frame, dtype=np.uint8)
        frame = np.asarray(frame)

        if frame.dtype != np.uint8:
            raise ValueError(f"Frame dtype must be uint8, got {frame.dtype}")

        if frame.ndim == 1:
            if frame.size != h * w * 4:
                raise ValueError(
                    f"Flat frame has {frame.size} values, expected {h * w * 4} ({w}x{h} RGBA)"
                )
            return frame.reshape(h, w, 4)

        if frame.ndim != 3 or frame.shape[:2] != (h, w) or frame.shape[2] not in (3, 4):
            raise ValueError(
                f"Frame shape {frame.shape} doesn't match field shape {(h, w, 4)}"
            )
        return frame

    def update_from_image(self, frame) -> None:
        """Intègre une nouvelle frame et recalcule les caractéristiques.

        La frame courante est archivée dans `previous` avant d'être
        remplacée, ce qui permet la détection de mouvement.

        Args:
            frame: Image RGBA (H, W, 4) uint8, RGB (H, W, 3) ou tampon plat

        Raises:
            ValueError: Si la forme ou le type de la frame ne correspond pas (le champ
                n'est pas modifié)
        """
        pixels = self._coerce_frame(frame)
        luminance = rgba_to_luminance(pixels)

        np.copyto(self.previous, self.current)
        np.copyto(self.current, luminance)

        self.history.append(self.current.copy())
        self.frame_index += 1
        self.stats['frames_processed'] += 1

        self.compute_feature_maps()

    def compute_feature_maps(self) -> None:
        """Recalcule les quatre cartes de caractéristiques.

        Seuls les pixels intérieurs sont écrits: la bordure d'un pixel
        garde sa valeur précédente.
        """
        h, w = self.shape
        if h < 3 or w < 3:
            return

        current = self.current

        # Contours: Sobel 3x3, norme euclidienne
        gx = cv2.Sobel(current, cv2.CV_32F, 1, 0, ksize=3)
        gy = cv2.Sobel(current, cv2.CV_32F, 0, 1, ksize=3)
        self.edge_map[_INTERIOR] = cv2.magnitude(gx, gy)[_INTERIOR]

        # Mouvement: seulement à partir de la deuxième frame
        if len(self.history) >= 2:
            self.motion_map[_INTERIOR] = np.abs(current - self.previous)[_INTERIOR]

        # Couleur: luminance brute
        self.color_map[_INTERIOR] = current[_INTERIOR]

        # Texture: variance autour de la valeur centrale (pas de la moyenne)
        center = current[_INTERIOR]
        variance = np.zeros_like(center)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                neighbour = current[1 + dy:h - 1 + dy, 1 + dx:w - 1 + dx]
                variance += (neighbour - center) ** 2
        self.texture_map[_INTERIOR] = variance / 9.0

    def deposit_scouts(self, scouts: Iterable) -> int:
        """Remet le champ attracteur à zéro puis dépose l'activation des éclaireurs.

        Chaque éclaireur dépose activation * attractor_deposit sur la
        cellule (floor(x), floor(y)). Les positions hors champ sont
        ignorées. Les dépôts sur une même cellule s'additionnent.

        Args:
            scouts: Éclaireurs (objets exposant x, y, activation)

        Returns:
            Nombre d'éclaireurs ayant déposé
        """
        self.attractor_field.fill(0.0)

        scouts = list(scouts)
        if not scouts:
            return 0

        xs = np.floor(np.fromiter((s.x for s in scouts), dtype=np.float64, count=len(scouts)))
        ys = np.floor(np.fromiter((s.y for s in scouts), dtype=np.float64, count=len(scouts)))
        amounts = np.fromiter((s.activation for s in scouts), dtype=np.float64, count=len(scouts))

        inside = (xs >= 0) & (xs < self.config.width) & (ys >= 0) & (ys < self.config.height)
        ix = xs[inside].astype(np.intp)
        iy = ys[inside].astype(np.intp)
        np.add.at(self.attractor_field, (iy, ix), amounts[inside] * self.config.attractor_deposit)

        return int(np.count_nonzero(inside))

    def update_attractor_field(self, scouts: Iterable) -> None:
        """Reconstruit le champ attracteur à partir des éclaireurs.

        Dépôt puis une passe de lissage moyen 3x3.

        Args:
            scouts: Population complète, après sa mise à jour du tick
        """
        deposited = self.deposit_scouts(scouts)
        self.attractor_field[...] = self.smooth_field(self.attractor_field)
        self.stats['attractor_updates'] += 1
        logger.debug("Attractor field rebuilt from %d scouts (sum=%.4f)",
                     deposited, self.attractor_energy())

    def smooth_field(self, grid: NDArray[np.float32]) -> NDArray[np.float32]:
        """Lissage moyen 3x3 sur les pixels intérieurs.

        Le résultat est écrit dans une grille neuve: la bordure vaut 0.

        Args:
            grid: Grille (H, W)

        Returns:
            Grille lissée (H, W)
        """
        smoothed = np.zeros_like(grid)
        h, w = grid.shape
        if h < 3 or w < 3:
            return smoothed
        smoothed[_INTERIOR] = cv2.blur(grid, (3, 3))[_INTERIOR]
        return smoothed

    def attractor_energy(self) -> float:
        """Somme du champ attracteur."""
        return float(self.attractor_field.sum())

    def feature_maps(self) -> Dict[str, NDArray[np.float32]]:
        """Vues en lecture seule des grilles exposées au rendu externe."""
        maps = {
            'luminance': self.current,
            'edge': self.edge_map,
            'motion': self.motion_map,
            'color': self.color_map,
            'texture': self.texture_map,
            'attractor': self.attractor_field,
        }
        views = {}
        for name, grid in maps.items():
            view = grid.view()
            view.flags.writeable = False
            views[name] = view
        return views

    def reset(self) -> None:
        """Réinitialise toutes les grilles et l'historique."""
        for grid in (self.current, self.previous, self.edge_map, self.motion_map,
                     self.color_map, self.texture_map, self.attractor_field):
            grid.fill(0.0)
        self.history.clear()
        self.frame_index = 0
        self.stats = {
            'frames_processed': 0,
            'attractor_updates': 0,
        }


def create_field(width: int = 256, height: int = 256, history_length: int = 5) -> PerceptionField:
    """Factory pour créer un champ de perception avec les paramètres courants.

    Args:
        width: Largeur en pixels
        height: Hauteur en pixels
        history_length: Frames de luminance conservées

    Returns:
        PerceptionField configuré
    """
    config = FieldConfig(width=width, height=height, history_length=history_length)
    return PerceptionField(config)
