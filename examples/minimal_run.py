#!/usr/bin/env python3
"""
Démo minimale: quelques ticks sur un carré lumineux qui se déplace.

Aucune caméra requise. Affiche les statistiques de chaque tick.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np
from numpy.typing import NDArray

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scoutfield import ScoutType, create_simulation


def moving_square(size: int, tick: int, side: int = 12) -> NDArray[np.uint8]:
    """Frame RGBA: carré blanc sur fond sombre, décalé de 2 px par tick."""
    frame = np.zeros((size, size, 4), dtype=np.uint8)
    frame[..., :3] = 30
    frame[..., 3] = 255
    x0 = (8 + 2 * tick) % (size - side)
    y0 = size // 2 - side // 2
    frame[y0:y0 + side, x0:x0 + side, :3] = 255
    return frame


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    sim = create_simulation(field_size=64, num_scouts=1200, seed=0)

    for tick in range(20):
        stats = sim.step(moving_square(64, tick))
        print(
            f"tick {stats['tick']:2d} | actifs {stats['active_scouts']:4d} "
            f"| clusters {stats['clusters']:2d} | énergie {stats['field_energy']:7.3f} "
            f"| cohérence {stats['coherence']:.3f}"
        )

    print()
    print("Activation moyenne par type:")
    activations = sim.scout_activations()
    types = sim.scout_types()
    for scout_type in ScoutType:
        mean = float(activations[types == scout_type].mean())
        print(f"  • {scout_type.name:<16} {mean:.3f}")


if __name__ == "__main__":
    main()
