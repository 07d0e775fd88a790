"""
Simulation - Orchestration d'un tick du champ et de la population.

Un tick consomme une frame et enchaîne, dans cet ordre strict:
1. Mise à jour du champ de perception (luminance + caractéristiques)
2. Mise à jour de chaque éclaireur contre le champ courant
3. Reconstruction du champ attracteur à partir de tous les éclaireurs

L'étape 3 attend la fin de l'étape 2 (barrière): le champ attracteur lu
par les éclaireurs est toujours celui de la fin du tick précédent.

La population est fixe: créée une fois, jamais détruite ni complétée.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .field import FieldConfig, PerceptionField
from .scout import Scout, ScoutConfig, ScoutType

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Configuration de la simulation (fixée à la construction).

    Attributes:
        field_size: Côté du champ carré en pixels
        num_scouts: Population totale visée (répartie également entre les types)
        seed: Graine du générateur (None = non déterministe)
        history_length: Frames de luminance conservées par le champ
        attractor_deposit: Dépôt par unité d'activation
        active_level: Activation au-delà de laquelle un éclaireur est "actif"
        scouts_per_cluster: Éclaireurs actifs par cluster (estimation grossière)
        scout: Constantes de mise à jour des éclaireurs
    """
    field_size: int = 256
    num_scouts: int = 8000
    seed: Optional[int] = None
    history_length: int = 5
    attractor_deposit: float = 0.1
    active_level: float = 0.1
    scouts_per_cluster: int = 50
    scout: ScoutConfig = field(default_factory=ScoutConfig)

    @property
    def scouts_per_type(self) -> int:
        return self.num_scouts // len(ScoutType)


class Simulation:
    """Champ de perception partagé et population fixe d'éclaireurs.

    Expose le champ, la population et des instantanés numpy (copies)
    pour un moteur de rendu ou de statistiques externe.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialise le champ et crée la population.

        Args:
            config: Configuration (défaut: 256x256, 8000 éclaireurs)
            rng: Générateur injecté (sinon créé à partir de config.seed)

        Raises:
            ValueError: Si la taille du champ ou la population est dégénérée
                (champ pas plus grand que deux marges, moins d'un éclaireur
                par type)
        """
        self.config = config or SimulationConfig()
        if self.config.field_size < 1:
            raise ValueError(f"field_size must be positive, got {self.config.field_size}")
        if self.config.field_size <= 2 * self.config.scout.margin:
            # Bornes [marge, taille - marge] vides ou hors champ: population figée
            raise ValueError(
                f"field_size={self.config.field_size} leaves no room inside a "
                f"margin of {self.config.scout.margin}"
            )
        if self.config.num_scouts < 1:
            raise ValueError(f"num_scouts must be positive, got {self.config.num_scouts}")
        if self.config.scouts_per_type < 1:
            raise ValueError(
                f"num_scouts={self.config.num_scouts} is too small for "
                f"{len(ScoutType)} scout types"
            )

        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self._field = PerceptionField(FieldConfig(
            width=self.config.field_size,
            height=self.config.field_size,
            history_length=self.config.history_length,
            attractor_deposit=self.config.attractor_deposit,
        ))
        self._scouts: List[Scout] = self._create_population()
        self.tick = 0

        logger.info(
            "Created %d scouts (%d per type) on a %dx%d field",
            len(self._scouts), self.config.scouts_per_type,
            self.config.field_size, self.config.field_size,
        )

    def _create_population(self) -> List[Scout]:
        size = self.config.field_size
        scouts = []
        for scout_type in ScoutType:
            for _ in range(self.config.scouts_per_type):
                scouts.append(Scout.spawn(scout_type, size, size, self.rng, self.config.scout))
        return scouts

    @property
    def field(self) -> PerceptionField:
        """Champ de perception (à lire seulement)."""
        return self._field

    @property
    def scouts(self) -> Tuple[Scout, ...]:
        """Population complète.

        Le tuple est figé mais contient les éclaireurs vivants: les
        modifier modifie la simulation. Utiliser scout_positions(),
        scout_types() ou scout_activations() pour des copies.
        """
        return tuple(self._scouts)

    @property
    def num_scouts(self) -> int:
        return len(self._scouts)

    def step(self, frame) -> dict:
        """Exécute un tick complet à partir d'une frame RGBA.

        Args:
            frame: Image (size, size, 4) uint8 ou tampon plat équivalent

        Returns:
            Statistiques du tick (voir get_stats)

        Raises:
            ValueError: Si la frame ne correspond pas au champ (tick rejeté,
                aucun état modifié)
        """
        self._field.update_from_image(frame)

        # Phase éclaireurs: le champ est figé, chacun n'écrit que son état
        for scout in self._scouts:
            scout.update(self._field, self.rng)

        # Barrière: agrégation après la mise à jour de toute la population
        self._field.update_attractor_field(self._scouts)

        self.tick += 1
        stats = self.get_stats()
        logger.debug(
            "Tick %d: %d active scouts, field energy %.3f",
            self.tick, stats['active_scouts'], stats['field_energy'],
        )
        return stats

    def reset_population(self) -> None:
        """Tire à nouveau l'état mutable de chaque éclaireur.

        Position, vitesse, activation et énergie sont tirées à nouveau;
        type, sensibilité, seuil et âge sont conservés. Le champ n'est pas
        modifié avant la prochaine frame.
        """
        size = self.config.field_size
        for scout in self._scouts:
            scout.randomize_state(size, size, self.rng)
        logger.info("Reset %d scouts", len(self._scouts))

    def scouts_of_type(self, scout_type: ScoutType) -> List[Scout]:
        """Éclaireurs d'une spécialisation donnée."""
        scout_type = ScoutType(scout_type)
        return [s for s in self._scouts if s.scout_type == scout_type]

    def scout_positions(self) -> NDArray[np.float64]:
        """Positions (N, 2) en (x, y)."""
        return np.array([s.position for s in self._scouts], dtype=np.float64).reshape(-1, 2)

    def scout_types(self) -> NDArray[np.int64]:
        """Types (N,) en entiers."""
        return np.array([int(s.scout_type) for s in self._scouts], dtype=np.int64)

    def scout_activations(self) -> NDArray[np.float64]:
        """Activations (N,)."""
        return np.array([s.activation for s in self._scouts], dtype=np.float64)

    def population_counts(self) -> Dict[ScoutType, int]:
        """Nombre d'éclaireurs par type."""
        counts = {scout_type: 0 for scout_type in ScoutType}
        for scout in self._scouts:
            counts[scout.scout_type] += 1
        return counts

    def get_stats(self) -> dict:
        """Retourne les statistiques de la simulation.

        Toutes sont dérivables de l'état exposé:
        - active_scouts: activation > active_level
        - clusters: active_scouts // scouts_per_cluster (estimation grossière)
        - field_energy: somme du champ attracteur
        - coherence: active_scouts / num_scouts
        """
        active = int(np.count_nonzero(self.scout_activations() > self.config.active_level))
        total = len(self._scouts)
        return {
            'tick': self.tick,
            'num_scouts': total,
            'active_scouts': active,
            'clusters': active // self.config.scouts_per_cluster,
            'field_energy': self._field.attractor_energy(),
            'coherence': active / total,
            'frames_processed': self._field.stats['frames_processed'],
        }


def create_simulation(
    field_size: int = 256,
    num_scouts: int = 8000,
    seed: Optional[int] = None,
) -> Simulation:
    """Factory pour créer une simulation avec les paramètres courants.

    Args:
        field_size: Côté du champ en pixels
        num_scouts: Population totale visée
        seed: Graine du générateur

    Returns:
        Simulation configurée
    """
    config = SimulationConfig(field_size=field_size, num_scouts=num_scouts, seed=seed)
    return Simulation(config)
