#!/usr/bin/env python3
"""
Visualisation en temps réel des éclaireurs sur le flux d'une caméra.

Affiche une grille 2x2:
- En haut à gauche: la luminance du champ
- En haut à droite: les caractéristiques (R=contours, G=mouvement, B=texture)
- En bas à gauche: les éclaireurs actifs, colorés par type
- En bas à droite: le champ attracteur

Contrôles:
- 'q' ou ESC: Quitter
- 'r': Réinitialiser la population
- 's': Sauvegarder une capture
"""

from __future__ import annotations

import logging
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path

# Forcer le backend GTK au lieu de Qt (évite le clignotement)
os.environ.setdefault('QT_QPA_PLATFORM', 'xcb')

import cv2
import numpy as np
from numpy.typing import NDArray

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scoutfield import (
    DEFAULT_VISIBLE_TYPES,
    Simulation,
    SimulationConfig,
    luminance_to_gray,
    visualize_attractors,
    visualize_features,
    visualize_scouts,
)


@dataclass
class ViewerConfig:
    """Configuration du visualiseur."""
    camera_id: int = 0
    field_size: int = 256
    num_scouts: int = 8000
    seed: int | None = None
    panel_size: int = 320
    window_name: str = "scoutfield - Éclaireurs"
    show_stats: bool = True
    show_all_types: bool = False


class ScoutViewer:
    """Visualiseur temps réel de la simulation."""

    def __init__(self, config: ViewerConfig | None = None):
        self.config = config or ViewerConfig()
        self.simulation = Simulation(SimulationConfig(
            field_size=self.config.field_size,
            num_scouts=self.config.num_scouts,
            seed=self.config.seed,
        ))
        self.visible_types = None if self.config.show_all_types else DEFAULT_VISIBLE_TYPES

        self.cap: cv2.VideoCapture | None = None
        self._last_display: NDArray[np.uint8] | None = None
        self._last_stats: dict = self.simulation.get_stats()

        self.fps_history: list[float] = []
        self.start_time = time.time()

    def start_capture(self) -> bool:
        """Démarre la capture vidéo.

        Returns:
            True si la capture a démarré avec succès
        """
        self.cap = cv2.VideoCapture(self.config.camera_id)

        if not self.cap.isOpened():
            print(f"❌ Impossible d'ouvrir la caméra {self.config.camera_id}")
            return False

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, 640)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, 480)
        self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        print(f"✅ Caméra ouverte: {actual_width}x{actual_height}")
        return True

    def process_frame(self, frame: NDArray[np.uint8]) -> None:
        """Redimensionne une frame BGR, la convertit en RGBA et avance d'un tick.

        Args:
            frame: Image BGR de la caméra
        """
        size = self.config.field_size
        resized = cv2.resize(frame, (size, size), interpolation=cv2.INTER_AREA)
        rgba = cv2.cvtColor(resized, cv2.COLOR_BGR2RGBA)
        self._last_stats = self.simulation.step(rgba)

    def create_display(self, fps: float) -> NDArray[np.uint8]:
        """Assemble les 4 panneaux en une image BGR.

        Args:
            fps: FPS moyen

        Returns:
            Image combinée BGR pour affichage
        """
        sim = self.simulation
        panels = [
            cv2.cvtColor(luminance_to_gray(sim.field.current), cv2.COLOR_GRAY2RGB),
            visualize_features(sim.field),
            visualize_scouts(sim.scouts, sim.field.shape, self.visible_types),
            visualize_attractors(sim.field),
        ]
        p = self.config.panel_size
        panels = [
            cv2.cvtColor(cv2.resize(img, (p, p), interpolation=cv2.INTER_NEAREST), cv2.COLOR_RGB2BGR)
            for img in panels
        ]
        combined = np.vstack([np.hstack(panels[:2]), np.hstack(panels[2:])])

        font = cv2.FONT_HERSHEY_SIMPLEX
        labels = ["ENTREE", "CARACTERISTIQUES", "ECLAIREURS", "ATTRACTEURS"]
        for i, label in enumerate(labels):
            x = (i % 2) * p + 10
            y = (i // 2) * p + 20
            cv2.putText(combined, label, (x, y), font, 0.5, (255, 255, 255), 1)

        if self.config.show_stats:
            stats = self._last_stats
            cv2.putText(
                combined,
                f"FPS: {fps:.1f} | T: {stats['tick']} | Actifs: {stats['active_scouts']} "
                f"| Clusters: {stats['clusters']} | Coherence: {stats['coherence']:.2f}",
                (10, 2 * p - 10),
                font, 0.4, (0, 255, 0), 1
            )

        cv2.line(combined, (p, 0), (p, 2 * p), (128, 128, 128), 1)
        cv2.line(combined, (0, p), (2 * p, p), (128, 128, 128), 1)
        return combined

    def run(self):
        """Boucle principale du visualiseur."""
        if not self.start_capture():
            return

        print()
        print("╔════════════════════════════════════════════╗")
        print("║     scoutfield - Éclaireurs en direct      ║")
        print("╠════════════════════════════════════════════╣")
        print("║  q/ESC: Quitter                            ║")
        print("║  r: Réinitialiser la population            ║")
        print("║  s: Sauvegarder capture                    ║")
        print("╚════════════════════════════════════════════╝")
        print()

        cv2.namedWindow(self.config.window_name, cv2.WINDOW_AUTOSIZE)

        last_time = time.time()
        fps = 0.0

        try:
            while True:
                ret, frame = self.cap.read()

                # Frame manquante: on garde le dernier affichage
                if not ret or frame is None or frame.size == 0:
                    if self._last_display is not None:
                        cv2.imshow(self.config.window_name, self._last_display)
                    key = cv2.waitKey(1) & 0xFF
                    if key == ord('q') or key == 27:
                        break
                    continue

                self.process_frame(frame)

                current_time = time.time()
                dt = current_time - last_time
                if dt > 0:
                    self.fps_history.append(1.0 / dt)
                    if len(self.fps_history) > 30:
                        self.fps_history.pop(0)
                    fps = sum(self.fps_history) / len(self.fps_history)
                last_time = current_time

                display = self.create_display(fps)
                self._last_display = display
                cv2.imshow(self.config.window_name, display)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q') or key == 27:  # q ou ESC
                    break
                elif key == ord('s'):
                    filename = f"capture_{int(time.time())}.png"
                    cv2.imwrite(filename, display)
                    print(f"📸 Capture sauvegardée: {filename}")
                elif key == ord('r'):
                    self.simulation.reset_population()
                    self.fps_history.clear()
                    print("🔄 Population réinitialisée")

        except KeyboardInterrupt:
            print("\n⏹️  Arrêt demandé")
        finally:
            self.cleanup()

    def cleanup(self):
        """Nettoie les ressources."""
        if self.cap is not None:
            self.cap.release()
        cv2.destroyAllWindows()

        elapsed = time.time() - self.start_time
        stats = self.simulation.get_stats()
        avg_fps = stats['tick'] / elapsed if elapsed > 0 else 0

        print()
        print("═" * 60)
        print("Statistiques finales:")
        print(f"  • Durée: {elapsed:.1f} secondes")
        print(f"  • Ticks: {stats['tick']}")
        print(f"  • FPS moyen: {avg_fps:.1f}")
        print(f"  • Éclaireurs actifs: {stats['active_scouts']} / {stats['num_scouts']}")
        print(f"  • Énergie du champ: {stats['field_energy']:.2f}")
        print("═" * 60)


def main():
    """Point d'entrée principal."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Visualiseur temps réel des éclaireurs scoutfield"
    )
    parser.add_argument(
        "-c", "--camera",
        type=int,
        default=0,
        help="ID de la caméra (défaut: 0)"
    )
    parser.add_argument(
        "-s", "--size",
        type=int,
        default=256,
        help="Côté du champ en pixels (défaut: 256)"
    )
    parser.add_argument(
        "-n", "--scouts",
        type=int,
        default=8000,
        help="Nombre d'éclaireurs (défaut: 8000)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Graine du générateur"
    )
    parser.add_argument(
        "--all-types",
        action="store_true",
        help="Afficher les 12 types d'éclaireurs"
    )
    parser.add_argument(
        "--no-stats",
        action="store_true",
        help="Masquer les statistiques"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Journaliser chaque tick"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = ViewerConfig(
        camera_id=args.camera,
        field_size=args.size,
        num_scouts=args.scouts,
        seed=args.seed,
        show_stats=not args.no_stats,
        show_all_types=args.all_types,
    )

    viewer = ScoutViewer(config)
    viewer.run()


if __name__ == "__main__":
    main()
