"""Tests pour les éclaireurs."""

import numpy as np
import pytest

from scoutfield.field import create_field
from scoutfield.scout import (
    GRADIENT_SOURCES,
    STIMULUS_FUNCTIONS,
    Scout,
    ScoutConfig,
    ScoutType,
    central_gradient,
)

MOTION_TYPES = (
    ScoutType.MOTION_UP,
    ScoutType.MOTION_DOWN,
    ScoutType.MOTION_LEFT,
    ScoutType.MOTION_RIGHT,
)

class TestScoutType:
    """Tests pour l'enum ScoutType."""

    def test_twelve_types(self):
        """12 minimodèles numérotés de 0 à 11."""
        assert len(ScoutType) == 12
        assert [int(t) for t in ScoutType] == list(range(12))

    def test_features(self):
        """Répartition 4 contours, 4 mouvements, 2 couleurs, 2 textures."""
        features = [t.feature for t in ScoutType]
        assert features.count('edge') == 4
        assert features.count('motion') == 4
        assert features.count('color') == 2
        assert features.count('texture') == 2

    def test_dispatch_tables_complete(self):
        """Chaque type a un stimulus et une carte de gradient."""
        assert set(STIMULUS_FUNCTIONS) == set(ScoutType)
        assert set(GRADIENT_SOURCES) == set(ScoutType)

    def test_gradient_sources(self):
        """Contours → edge_map, mouvement → motion_map, le reste → color_map."""
        assert GRADIENT_SOURCES[ScoutType.EDGE_DIAGONAL_2] == 'edge_map'
        assert GRADIENT_SOURCES[ScoutType.MOTION_LEFT] == 'motion_map'
        assert GRADIENT_SOURCES[ScoutType.COLOR_DARK] == 'color_map'
        assert GRADIENT_SOURCES[ScoutType.TEXTURE_HIGH] == 'color_map'

class TestScoutCreation:
    """Tests pour la création des éclaireurs."""

    def test_default_config(self):
        """Constantes par défaut."""
        config = ScoutConfig()
        assert config.activation_decay == 0.9
        assert config.stimulus_gain == 0.1
        assert config.gradient_gain == 5.0
        assert config.cluster_gain == 2.0
        assert config.velocity_damping == 0.8
        assert config.margin == 5.0
        assert config.energy_decay == 0.99

    def test_type_coerced(self):
        """Un entier est converti en ScoutType."""
        scout = Scout(8)
        assert scout.scout_type is ScoutType.COLOR_BRIGHT

    def test_unknown_type_rejected(self):
        """Un type hors énumération est refusé."""
        with pytest.raises(ValueError):
            Scout(42)

    def test_spawn_ranges(self):
        """Les tirages respectent leurs intervalles."""
        rng = np.random.default_rng(3)
        for _ in range(200):
            scout = Scout.spawn(ScoutType.TEXTURE_LOW, 64, 32, rng)
            assert 0.5 <= scout.sensitivity < 1.0
            assert 0.1 <= scout.threshold < 0.4
            assert 0.5 <= scout.energy < 1.0
            assert 0.0 <= scout.x < 64
            assert 0.0 <= scout.y < 32
            assert scout.velocity == (0.0, 0.0)
            assert scout.activation == 0.0
            assert scout.age == 0

    def test_spawn_deterministic(self):
        """Même graine, mêmes éclaireurs."""
        a = Scout.spawn(ScoutType.EDGE_VERTICAL, 64, 64, np.random.default_rng(5))
        b = Scout.spawn(ScoutType.EDGE_VERTICAL, 64, 64, np.random.default_rng(5))
        assert a == b

    def test_randomize_state_keeps_constants(self):
        """Le nouveau tirage conserve type, sensibilité, seuil et âge."""
        rng = np.random.default_rng(8)
        scout = Scout.spawn(ScoutType.MOTION_UP, 32, 32, rng)
        scout.activation = 0.7
        scout.vx = 3.0
        scout.age = 12
        constants = (scout.scout_type, scout.sensitivity, scout.threshold)

        scout.randomize_state(32, 32, rng)

        assert (scout.scout_type, scout.sensitivity, scout.threshold) == constants
        assert scout.age == 12
        assert scout.activation == 0.0
        assert scout.velocity == (0.0, 0.0)

def patterned_field():
    """Champ 8x8 dont la luminance autour de (x=4, y=3) est connue."""
    field = create_field(8, 8)
    lum = field.current
    lum[3, 3], lum[3, 4], lum[3, 5] = 0.2, 0.5, 0.9
    lum[2, 4], lum[4, 4] = 0.1, 0.6
    lum[2, 3], lum[4, 5] = 0.3, 0.8
    lum[2, 5], lum[4, 3] = 0.7, 0.4
    return field

def stimulus(field, scout_type, x=4.5, y=3.5):
    return Scout(scout_type, x=x, y=y).compute_stimulus(field)

class TestStimulus:
    """Tests pour les stimuli propres à chaque type."""

    def test_vertical_edge(self):
        """Différence horizontale des voisins gauche/droite."""
        field = patterned_field()
        assert stimulus(field, ScoutType.EDGE_VERTICAL) == pytest.approx(0.7, rel=1e-6)

    def test_horizontal_edge(self):
        """Différence verticale des voisins haut/bas."""
        field = patterned_field()
        assert stimulus(field, ScoutType.EDGE_HORIZONTAL) == pytest.approx(0.5, rel=1e-6)

    def test_diagonal_edges(self):
        """Différences des deux diagonales."""
        field = patterned_field()
        assert stimulus(field, ScoutType.EDGE_DIAGONAL_1) == pytest.approx(0.5, rel=1e-6)
        assert stimulus(field, ScoutType.EDGE_DIAGONAL_2) == pytest.approx(0.3, rel=1e-6)

    def test_edge_reads_luminance_not_sobel(self):
        """Les contours lisent la luminance, pas la carte de Sobel."""
        field = patterned_field()
        field.edge_map.fill(100.0)
        assert stimulus(field, ScoutType.EDGE_VERTICAL) == pytest.approx(0.7, rel=1e-6)

    def test_edges_zero_at_border(self):
        """Aucune lecture hors tableau sur la bordure."""
        field = patterned_field()
        for scout_type in (ScoutType.EDGE_VERTICAL, ScoutType.EDGE_DIAGONAL_1,
                           ScoutType.EDGE_DIAGONAL_2):
            assert stimulus(field, scout_type, x=0.5, y=3.5) == 0.0
            assert stimulus(field, scout_type, x=7.5, y=3.5) == 0.0
        assert stimulus(field, ScoutType.EDGE_HORIZONTAL, x=4.5, y=0.5) == 0.0
        assert stimulus(field, ScoutType.EDGE_HORIZONTAL, x=4.5, y=7.5) == 0.0

    def test_motion_types_share_magnitude(self):
        """Simplification connue: les 4 directions lisent la même magnitude."""
        field = patterned_field()
        field.motion_map[3, 4] = 0.35
        values = {stimulus(field, t) for t in MOTION_TYPES}
        assert len(values) == 1
        assert stimulus(field, ScoutType.MOTION_UP) == pytest.approx(0.35, rel=1e-6)

    def test_color_polarities(self):
        """Brillance = couleur, obscurité = 1 - couleur."""
        field = patterned_field()
        field.color_map[3, 4] = 0.25
        assert stimulus(field, ScoutType.COLOR_BRIGHT) == pytest.approx(0.25)
        assert stimulus(field, ScoutType.COLOR_DARK) == pytest.approx(0.75)

    def test_texture_polarities(self):
        """Texture haute directe, texture basse = max(0, 0.5 - texture)."""
        field = patterned_field()
        field.texture_map[3, 4] = 0.1
        assert stimulus(field, ScoutType.TEXTURE_HIGH) == pytest.approx(0.1)
        assert stimulus(field, ScoutType.TEXTURE_LOW) == pytest.approx(0.4)

        field.texture_map[3, 4] = 0.7
        assert stimulus(field, ScoutType.TEXTURE_LOW) == 0.0

    def test_outside_field(self):
        """Hors champ, le stimulus est nul."""
        field = patterned_field()
        assert stimulus(field, ScoutType.COLOR_DARK, x=-1.0, y=3.0) == 0.0

class TestGradients:
    """Tests pour les gradients et la force de regroupement."""

    def test_central_gradient(self):
        """Différences centrées sur chaque axe."""
        grid = np.zeros((5, 5), dtype=np.float32)
        grid[2, 3] = 1.0
        grid[1, 2] = 0.5
        assert central_gradient(grid, 2, 2) == pytest.approx((1.0, -0.5))

    def test_central_gradient_border(self):
        """Chaque axe vaut 0 sur sa bordure."""
        grid = np.arange(25, dtype=np.float32).reshape(5, 5)
        gx, gy = central_gradient(grid, 0, 2)
        assert gx == 0.0
        assert gy == pytest.approx(10.0)
        gx, gy = central_gradient(grid, 2, 4)
        assert gx == pytest.approx(2.0)
        assert gy == 0.0

    def test_gradient_follows_type_map(self):
        """Chaque famille suit sa propre carte."""
        field = create_field(8, 8)
        field.edge_map[4, 5] = 1.0
        field.motion_map[5, 4] = 1.0
        field.color_map[4, 3] = 1.0

        assert Scout(ScoutType.EDGE_VERTICAL, x=4, y=4).compute_gradient(field) == (1.0, 0.0)
        assert Scout(ScoutType.MOTION_DOWN, x=4, y=4).compute_gradient(field) == (0.0, 1.0)
        assert Scout(ScoutType.TEXTURE_LOW, x=4, y=4).compute_gradient(field) == (-1.0, 0.0)

    def test_cluster_force(self):
        """Force vers le champ attracteur, gain 2."""
        field = create_field(8, 8)
        field.attractor_field[4, 5] = 0.25
        field.attractor_field[3, 4] = 0.5
        scout = Scout(ScoutType.COLOR_BRIGHT, x=4.2, y=4.9)
        assert scout.compute_cluster_force(field) == pytest.approx((0.5, -1.0))

    def test_cluster_force_border(self):
        """Nulle si la cellule touche la bordure."""
        field = create_field(8, 8)
        field.attractor_field.fill(1.0)
        field.attractor_field[1, 1] = 5.0
        scout = Scout(ScoutType.COLOR_BRIGHT, x=0.5, y=1.5)
        assert scout.compute_cluster_force(field) == (0.0, 0.0)

class TestScoutUpdate:
    """Tests pour la règle de mise à jour d'un tick."""

    def test_age_increments(self):
        """L'âge augmente à chaque tick."""
        field = create_field(16, 16)
        scout = Scout(ScoutType.COLOR_DARK, x=8, y=8)
        rng = np.random.default_rng(0)
        for _ in range(3):
            scout.update(field, rng)
        assert scout.age == 3

    def test_out_of_bounds_frozen(self):
        """Hors champ: seul l'âge change pendant ce tick."""
        field = create_field(16, 16)
        field.color_map.fill(1.0)
        rng = np.random.default_rng(0)

        for x, y in ((-3.0, 8.0), (16.0, 8.0), (8.0, -0.1), (8.0, 40.0)):
            scout = Scout(ScoutType.COLOR_BRIGHT, x=x, y=y, vx=0.3, vy=-0.2,
                          activation=0.4, energy=0.6)
            scout.update(field, rng)

            assert scout.position == (x, y)
            assert scout.velocity == (0.3, -0.2)
            assert scout.activation == 0.4
            assert scout.energy == 0.6
            assert scout.age == 1

    def test_bright_cell_scenario(self):
        """Éclaireur de brillance sur une cellule lumineuse d'un champ 8x8."""
        field = create_field(8, 8)
        field.color_map[4, 4] = 1.0
        field.color_map[4, 5] = 0.5  # voisin droit moins sombre que le gauche
        config = ScoutConfig(jitter=0.0, margin=1.0)
        scout = Scout(ScoutType.COLOR_BRIGHT, x=4.5, y=4.5,
                      sensitivity=0.8, threshold=0.01, config=config)

        scout.update(field)

        assert scout.activation == pytest.approx(0.8 * 0.1)
        # gx = 0.5 - 0.0 > 0: force vers +x, loin du voisin gauche plus sombre
        assert scout.vx > 0.0
        assert scout.vx == pytest.approx(0.5 * 0.08 * 5.0 * 0.1)
        assert scout.vy == 0.0
        assert scout.x > 4.5

    def test_activation_rises_monotonically(self):
        """Sur un stimulus constant, l'activation croît vers sensibilité × stimulus."""
        field = create_field(8, 8)
        field.color_map[4, 4] = 1.0
        config = ScoutConfig(jitter=0.0, margin=1.0)
        scout = Scout(ScoutType.COLOR_BRIGHT, x=4.5, y=4.5,
                      sensitivity=0.6, threshold=10.0, config=config)

        previous = scout.activation
        for _ in range(20):
            scout.update(field)
            assert scout.activation > previous
            assert scout.activation < 0.6
            previous = scout.activation
        assert scout.cell == (4, 4)

    def test_activation_formula(self):
        """activation = 0.9·a + 0.1·stimulus·sensibilité."""
        field = create_field(8, 8)
        field.texture_map[4, 4] = 0.3
        scout = Scout(ScoutType.TEXTURE_HIGH, x=4, y=4, sensitivity=0.5,
                      threshold=10.0, activation=0.2, config=ScoutConfig(jitter=0.0))
        scout.update(field)
        assert scout.activation == pytest.approx(0.2 * 0.9 + 0.3 * 0.5 * 0.1)

    def test_energy_formula(self):
        """énergie = 0.99·e + 0.01·activation."""
        field = create_field(16, 16)
        scout = Scout(ScoutType.COLOR_DARK, x=8, y=8, sensitivity=1.0, threshold=10.0,
                      energy=0.5, config=ScoutConfig(jitter=0.0))
        scout.update(field)
        # color_map nul: stimulus d'obscurité = 1
        assert scout.activation == pytest.approx(0.1)
        assert scout.energy == pytest.approx(0.5 * 0.99 + 0.1 * 0.01)

    def test_below_threshold_only_jitter(self):
        """Sous le seuil, le déplacement est la seule marche aléatoire."""
        textured = create_field(32, 32)
        textured.color_map[...] = np.random.default_rng(1).random((32, 32))
        textured.attractor_field[...] = np.random.default_rng(2).random((32, 32))
        empty = create_field(32, 32)

        a = Scout(ScoutType.COLOR_BRIGHT, x=16.0, y=16.0, sensitivity=1.0, threshold=5.0)
        b = Scout(ScoutType.COLOR_BRIGHT, x=16.0, y=16.0, sensitivity=1.0, threshold=5.0)
        rng_a = np.random.default_rng(99)
        rng_b = np.random.default_rng(99)

        for _ in range(30):
            a.update(textured, rng_a)
            b.update(empty, rng_b)
            assert a.activation <= a.threshold
            assert a.position == b.position
            assert a.velocity == b.velocity

    def test_jitter_bounded(self):
        """Un tick de bruit seul déplace d'au plus 0.05 par axe."""
        field = create_field(32, 32)
        rng = np.random.default_rng(4)
        for _ in range(100):
            scout = Scout(ScoutType.COLOR_BRIGHT, x=16.0, y=16.0, threshold=5.0)
            scout.update(field, rng)
            assert abs(scout.vx) <= 0.05
            assert abs(scout.vy) <= 0.05

    def test_no_jitter_without_rng(self):
        """Sans bruit ni force, l'éclaireur reste immobile."""
        field = create_field(16, 16)
        scout = Scout(ScoutType.COLOR_BRIGHT, x=8.0, y=8.0, threshold=5.0,
                      config=ScoutConfig(jitter=0.0))
        scout.update(field)
        assert scout.position == (8.0, 8.0)

    def test_default_rng(self):
        """Sans générateur fourni, un générateur par défaut est utilisé."""
        field = create_field(16, 16)
        scout = Scout(ScoutType.COLOR_BRIGHT, x=8.0, y=8.0, threshold=5.0)
        scout.update(field)
        assert scout.age == 1
        assert 5.0 <= scout.x <= 11.0

    def test_default_rng_not_recreated(self, monkeypatch):
        """Sans générateur fourni, aucun générateur n'est créé par tick."""
        def forbidden(*args, **kwargs):
            raise AssertionError("default_rng called during update")

        monkeypatch.setattr(np.random, 'default_rng', forbidden)
        field = create_field(16, 16)
        scout = Scout(ScoutType.COLOR_BRIGHT, x=8.0, y=8.0, threshold=5.0)
        for _ in range(5):
            scout.update(field)

        assert scout.age == 5
        assert scout.velocity != (0.0, 0.0)

    def test_position_clamped(self):
        """La position est bornée à [marge, taille - marge]."""
        field = create_field(32, 32)
        config = ScoutConfig(jitter=0.0)
        fast = Scout(ScoutType.COLOR_BRIGHT, x=30.0, y=1.0, vx=50.0, vy=-50.0,
                     threshold=5.0, config=config)
        fast.update(field)
        assert fast.position == (27.0, 5.0)

    def test_cluster_force_applied_above_threshold(self):
        """Au-dessus du seuil, le champ attracteur attire l'éclaireur."""
        field = create_field(16, 16)
        field.color_map.fill(1.0)
        field.attractor_field[8, 9] = 1.0
        config = ScoutConfig(jitter=0.0)
        scout = Scout(ScoutType.COLOR_BRIGHT, x=8.5, y=8.5, sensitivity=1.0,
                      threshold=0.05, config=config)

        scout.update(field)

        # gradient couleur nul (champ uniforme), seule la force d'attraction agit
        assert scout.vx == pytest.approx(1.0 * 2.0 * 0.1)
        assert scout.vy == 0.0
