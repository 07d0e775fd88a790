"""
Tables de correspondance pour scoutfield.

Ce module contient les LUT pré-calculées qui convertissent les canaux
8-bit d'une image RGBA en luminance pondérée (coefficients NTSC).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


# Pondération NTSC (Rec. 601) des canaux R, G, B
LUMA_WEIGHTS: tuple[float, float, float] = (0.299, 0.587, 0.114)


def generate_luma_lut(weights: tuple[float, float, float] = LUMA_WEIGHTS) -> NDArray[np.float32]:
    """Génère la LUT canal → contribution de luminance.

    Pour chaque canal c et chaque valeur v (0-255), la table contient
    weights[c] * v / 255. La luminance d'un pixel est alors la somme
    de trois lectures dans la table.

    Principe:
        - R=255, G=0,   B=0   → 0.299
        - R=0,   G=255, B=0   → 0.587
        - R=255, G=255, B=255 → 1.0

    Args:
        weights: Coefficients (R, G, B)

    Returns:
        NDArray[np.float32]: LUT (3, 256)
    """
    levels = np.arange(256, dtype=np.float64) / 255.0
    lut = np.empty((3, 256), dtype=np.float32)
    for channel, weight in enumerate(weights):
        lut[channel] = weight * levels
    return lut


# LUT pré-calculée au chargement du module
LUMA_LUT: NDArray[np.float32] = generate_luma_lut()


def rgba_to_luminance(frame: NDArray[np.uint8]) -> NDArray[np.float32]:
    """Convertit une image RGBA (ou RGB) 8-bit en luminance [0, 1].

    Le canal alpha est ignoré.

    Args:
        frame: Image (H, W, 4) ou (H, W, 3) en uint8

    Returns:
        NDArray[np.float32]: Luminance (H, W)
    """
    frame = np.asarray(frame, dtype=np.uint8)
    luminance = LUMA_LUT[0][frame[..., 0]] + LUMA_LUT[1][frame[..., 1]] + LUMA_LUT[2][frame[..., 2]]
    # L'arrondi float32 peut dépasser 1.0 pour un pixel blanc
    return np.clip(luminance, 0.0, 1.0, out=luminance)


def luminance_to_gray(luminance: NDArray[np.float32]) -> NDArray[np.uint8]:
    """Reconvertit une luminance [0, 1] en niveaux de gris 8-bit."""
    return np.clip(luminance * 255.0, 0, 255).astype(np.uint8)
