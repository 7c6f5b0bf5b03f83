"""End-to-end generation tests on a small map."""

import pytest
import numpy as np
from py_worldgen.core.alea_prng import AleaPRNG
from py_worldgen.core.errors import ConfigurationError
from py_worldgen.core.region_growing import NO_PLATE, OCEAN
from py_worldgen.core.world_generator import WorldGenerationParams, generate
from py_worldgen.utils.random import create_prng, normalize_seed, to_base36


class TestWorldGenerationParams:

    def test_defaults(self):
        params = WorldGenerationParams()
        assert params.plate_cells == 100
        assert params.map_cells == 55 * 350 + 66 * 250

    @pytest.mark.parametrize("field", ["width", "height", "scale", "height_scale"])
    def test_non_positive_dimensions(self, field):
        with pytest.raises(ConfigurationError):
            WorldGenerationParams(**{field: 0})

    @pytest.mark.parametrize("field", ["plate_count", "plate_size", "continent_count",
                                       "continent_size", "ocean_size"])
    def test_non_positive_counts(self, field):
        with pytest.raises(ConfigurationError):
            WorldGenerationParams(**{field: -1})

    def test_zero_oceans_allowed(self):
        assert WorldGenerationParams(ocean_count=0).map_cells == 55 * 350

    def test_more_plates_than_cells(self):
        """Ten plates cannot be seeded in a nine-cell plate partition."""
        params = WorldGenerationParams(width=2.0, height=2.0, plate_count=10, plate_size=1,
                                       continent_count=2, continent_size=10,
                                       ocean_count=1, ocean_size=10, relax_iterations=0)
        with pytest.raises(ConfigurationError):
            generate(params, AleaPRNG("few"))


class TestGeneratedWorld:
    """Properties of a complete generation run."""

    def test_heights_normalized(self, small_world):
        assert np.isfinite(small_world.heights).all()
        assert small_world.heights.min() >= 0.0
        assert small_world.heights.max() <= 1.0
        assert len(small_world.non_finite_cells()) == 0

    def test_every_cell_has_one_plate(self, small_world):
        plate_ids = small_world.plate_ids
        assert len(plate_ids) == small_world.cell_count
        hull = small_world.graph.cell_border_flags
        assert (plate_ids[hull] == NO_PLATE).all()
        assert ((plate_ids[~hull] >= 0) & (plate_ids[~hull] < 3)).all()

    def test_hull_is_continent_free(self, small_world):
        hull = small_world.graph.cell_border_flags
        assert (small_world.continent_ids[hull] == OCEAN).all()

    def test_plates_and_boundaries(self, small_world):
        assert len(small_world.plates) == 3
        for edge in small_world.boundary_edges:
            assert edge.a < edge.b
            assert small_world.plate_ids[edge.a] != small_world.plate_ids[edge.b]

    def test_river_flow_recorded(self, small_world):
        assert small_world.river_flow is not None
        assert (small_world.river_flow >= 1).all()

    def test_seed_recorded(self, small_world):
        assert small_world.seed == "smallworld"

    def test_bounds_inside_domain(self, small_world):
        low, high = small_world.bounds()
        assert (low >= 0).all()
        assert high[0] <= 4.0 * small_world.scale
        assert high[1] <= 3.0 * small_world.scale

    def test_cell_lookup_round_trip(self, small_world):
        for cell in (0, small_world.cell_count // 2, small_world.cell_count - 1):
            assert small_world.cell_for_position(small_world.position(cell)) == cell

    def test_deterministic(self, small_params):
        a = generate(small_params, create_prng("repeat"))
        b = generate(small_params, create_prng("REPEAT"))
        np.testing.assert_array_equal(a.heights, b.heights)
        np.testing.assert_array_equal(a.plate_ids, b.plate_ids)

    def test_different_seeds_differ(self, small_params):
        a = generate(small_params, create_prng("one"))
        b = generate(small_params, create_prng("two"))
        assert not np.array_equal(a.heights, b.heights)


class TestSeeds:

    def test_base36_round_trip(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"
        assert int(to_base36(123456789), 36) == 123456789

    def test_normalize(self):
        assert normalize_seed("00AbC") == "abc"

    def test_invalid_seed(self):
        with pytest.raises(ValueError):
            normalize_seed("no way")

    def test_random_seed_is_base36(self):
        seed = create_prng().seed
        assert int(seed, 36) >= 0
        assert seed == seed.lower()
