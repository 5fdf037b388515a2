"""End-to-end behaviour of fill_clouds / fill_region."""

import numpy as np
import pytest

from nspi_fill import FillReport, fill_clouds, fill_region


def _uniform_scene(value=100.0, size=5, bands=1):
    cloudy = np.full((size, size, bands), value)
    clear = np.full((size, size, bands), value)
    mask = np.zeros((size, size), dtype=np.int32)
    mask[size // 2, size // 2] = 1
    return cloudy, clear, mask


@pytest.fixture
def random_scene():
    rng = np.random.default_rng(42)
    rows, cols, bands = 40, 36, 3
    clear = rng.uniform(20, 200, (rows, cols, bands))
    cloudy = clear * 0.9 + rng.normal(5, 2, (rows, cols, bands))
    mask = np.zeros((rows, cols), dtype=np.int32)
    mask[5:10, 4:9] = 1
    mask[20:24, 25:31] = 2
    mask[30:33, 3:5] = 5
    mask[0:2, 30:36] = -1
    mask[15, 15] = -1
    cloudy[mask > 0] = 250.0  # cloud-bright
    return cloudy, clear, mask


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("min_pixel", [1, 2, 20])
def test_uniform_scene_fills_with_neighbor_value(min_pixel):
    cloudy, clear, mask = _uniform_scene()
    cloudy[2, 2, 0] = 255.0
    out = fill_clouds(cloudy, clear, mask, num_class=4, min_pixel=min_pixel,
                      cloud_nbh=1, dn_min=0, dn_max=255)
    assert out[2, 2, 0] == pytest.approx(100.0)


def test_out_of_range_bias_correction_falls_back_to_predictor_a():
    cloudy, clear, mask = _uniform_scene()
    report = FillReport()
    out = fill_clouds(cloudy, clear, mask, num_class=4, min_pixel=20,
                      cloud_nbh=1, dn_min=0, dn_max=50, report=report)
    assert out[2, 2, 0] == pytest.approx(100.0)
    (result,) = report.results
    assert result.n_weighted == 1
    assert result.n_out_of_range == 1


@pytest.mark.parametrize("similarity_reference", ["loop_index", "target"])
def test_mean_difference_fallback(similarity_reference):
    delta = 7.0
    clear = np.full((5, 5, 2), 100.0)
    # Window rows 1..3, cols 1..3; only the top-left corner is dark.
    clear[1, 1, :] = 0.0
    clear[2, 2, :] = 50.0
    clear[..., 1] *= 2
    cloudy = clear + delta
    cloudy[2, 2, :] = 255.0
    mask = np.zeros((5, 5), dtype=np.int32)
    mask[2, 2] = 1

    report = FillReport()
    out = fill_clouds(cloudy, clear, mask, num_class=4, min_pixel=20, cloud_nbh=1,
                      dn_min=0, dn_max=1000, similarity_reference=similarity_reference,
                      report=report)
    np.testing.assert_allclose(out[2, 2], clear[2, 2] + delta)
    assert report.results[0].n_fallback == 1


def _two_row_scene():
    """2x4 scene, cloud in column 2, window covering the whole image.

    Clear values: column 0 is dark (0), columns 1, 3 and the cloud are 100,
    which gives a threshold of 2 * std / 4 ~= 25.8.  Dark pixels turn bright
    (200) in the cloudy image; the others gain 20.
    """
    clear = np.array([[0.0, 100.0, 100.0, 100.0],
                      [0.0, 100.0, 100.0, 100.0]])[..., np.newaxis]
    cloudy = np.array([[200.0, 120.0, 255.0, 120.0],
                       [200.0, 120.0, 255.0, 120.0]])[..., np.newaxis]
    mask = np.zeros((2, 4), dtype=np.int32)
    mask[:, 2] = 1
    return cloudy, clear, mask


@pytest.mark.parametrize(
    "similarity_reference, expected, n_out_of_range",
    [
        # Ordinals 0 and 1 map column-major to (0, 0) and (1, 0), both dark:
        # only the dark pixels pass, A = 200 and B = 100 + 200 is out of range.
        ("loop_index", 200.0, 2),
        # Each target compares against its own clear value (100): the two
        # nearest bright pixels are kept, and A = B = 120.
        ("target", 120.0, 0),
    ],
)
def test_similarity_reference_selects_candidates(similarity_reference, expected, n_out_of_range):
    cloudy, clear, mask = _two_row_scene()
    report = FillReport()
    out = fill_clouds(cloudy, clear, mask, num_class=4, min_pixel=2, cloud_nbh=5,
                      dn_min=0, dn_max=255, similarity_reference=similarity_reference,
                      report=report)
    np.testing.assert_allclose(out[:, 2, 0], [expected, expected])
    (result,) = report.results
    assert result.n_weighted == 2
    assert result.n_out_of_range == n_out_of_range


def test_loop_index_reference_is_column_major():
    cloudy, clear, mask = _two_row_scene()
    fill = fill_region(cloudy, clear, mask, 1, num_class=4, min_pixel=2, cloud_nbh=5)
    # Second target is (1, 2); a row-major ordinal would pick the bright (0, 1)
    assert (int(fill.rows[1]), int(fill.cols[1])) == (1, 2)
    assert fill.values[1, 0] == pytest.approx(200.0)


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

def test_only_cloud_pixels_change(random_scene):
    cloudy, clear, mask = random_scene
    out = fill_clouds(cloudy, clear, mask, num_class=4, min_pixel=10, cloud_nbh=4)

    assert out.shape == cloudy.shape
    assert out.dtype == np.float64
    np.testing.assert_array_equal(out[mask <= 0], cloudy[mask <= 0])
    assert np.all(out[mask > 0] != 250.0)
    assert np.all(np.isfinite(out))


def test_inputs_not_modified(random_scene):
    cloudy, clear, mask = random_scene
    before = (cloudy.copy(), clear.copy(), mask.copy())
    fill_clouds(cloudy, clear, mask, cloud_nbh=3)
    np.testing.assert_array_equal(cloudy, before[0])
    np.testing.assert_array_equal(clear, before[1])
    np.testing.assert_array_equal(mask, before[2])


def test_no_cloud_ids_returns_input():
    rng = np.random.default_rng(3)
    cloudy = rng.integers(0, 255, (6, 7, 2))
    clear = rng.integers(0, 255, (6, 7, 2))
    mask = np.zeros((6, 7), dtype=np.int16)
    mask[0, 0] = -1
    out = fill_clouds(cloudy, clear, mask)
    np.testing.assert_array_equal(out, cloudy)
    assert out is not cloudy


def test_deterministic(random_scene):
    cloudy, clear, mask = random_scene
    a = fill_clouds(cloudy, clear, mask, cloud_nbh=5)
    b = fill_clouds(cloudy, clear, mask, cloud_nbh=5)
    np.testing.assert_array_equal(a, b)


def test_parallel_matches_sequential(random_scene):
    cloudy, clear, mask = random_scene
    seq = fill_clouds(cloudy, clear, mask, cloud_nbh=5, max_workers=1)
    par = fill_clouds(cloudy, clear, mask, cloud_nbh=5, max_workers=4)
    np.testing.assert_array_equal(seq, par)


@pytest.mark.parametrize("similarity_reference", ["loop_index", "target"])
def test_cloud_id_order_does_not_matter(random_scene, similarity_reference):
    cloudy, clear, mask = random_scene
    relabelled = mask.copy()
    relabelled[mask == 1] = 9
    relabelled[mask == 5] = 1
    a = fill_clouds(cloudy, clear, mask, cloud_nbh=5,
                    similarity_reference=similarity_reference)
    b = fill_clouds(cloudy, clear, relabelled, cloud_nbh=5,
                    similarity_reference=similarity_reference)
    np.testing.assert_array_equal(a, b)


def test_region_without_clear_pixels_is_skipped():
    cloudy = np.full((3, 3, 1), 200.0)
    clear = np.full((3, 3, 1), 100.0)
    mask = np.ones((3, 3), dtype=np.int32)
    mask[0, 0] = -1
    report = FillReport()
    out = fill_clouds(cloudy, clear, mask, cloud_nbh=2, report=report)
    np.testing.assert_array_equal(out, cloudy)
    assert report.results[0].status == "skipped"


def test_report_has_one_result_per_region(random_scene):
    cloudy, clear, mask = random_scene
    report = FillReport()
    fill_clouds(cloudy, clear, mask, cloud_nbh=4, report=report)
    results = report.sorted_results()
    assert [r.cloud_id for r in results] == [1, 2, 5]
    assert [r.n_targets for r in results] == [25, 24, 6]
    assert all(r.status == "success" for r in results)
    assert all(r.n_weighted + r.n_fallback == r.n_targets for r in results)
    assert results[0].window == (1, 13, 0, 12)


def test_fill_region_does_not_write(random_scene):
    cloudy, clear, mask = random_scene
    before = cloudy.copy()
    fill = fill_region(cloudy, clear, mask, 2, cloud_nbh=3)
    np.testing.assert_array_equal(cloudy, before)
    assert fill.n_targets == 24
    assert fill.values.shape == (24, 3)
    assert set(zip(fill.rows.tolist(), fill.cols.tolist())) == set(
        zip(*[a.tolist() for a in np.nonzero(mask == 2)])
    )


def test_float_mask_with_integer_codes_accepted():
    cloudy, clear, mask = _uniform_scene()
    out = fill_clouds(cloudy, clear, mask.astype(np.float32), cloud_nbh=1)
    assert out[2, 2, 0] == pytest.approx(100.0)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"num_class": 0}, "num_class"),
        ({"min_pixel": 0}, "min_pixel"),
        ({"cloud_nbh": -1}, "cloud_nbh"),
        ({"dn_min": 10, "dn_max": 10}, "dn_min"),
        ({"similarity_reference": "centroid"}, "similarity_reference"),
        ({"dims": (5, 5, 2)}, "dims"),
    ],
)
def test_bad_parameters(kwargs, match):
    cloudy, clear, mask = _uniform_scene()
    with pytest.raises(ValueError, match=match):
        fill_clouds(cloudy, clear, mask, **kwargs)


def test_explicit_dims_accepted():
    cloudy, clear, mask = _uniform_scene()
    out = fill_clouds(cloudy, clear, mask, cloud_nbh=1, dims=(5, 5, 1))
    assert out.shape == (5, 5, 1)


def test_bad_shapes():
    cloudy, clear, mask = _uniform_scene()
    with pytest.raises(ValueError, match="clear image shape"):
        fill_clouds(cloudy, clear[:, :4], mask)
    with pytest.raises(ValueError, match="3-D"):
        fill_clouds(cloudy[..., 0], clear[..., 0], mask)
    with pytest.raises(ValueError, match="cloud mask shape"):
        fill_clouds(cloudy, clear, mask[:4])


def test_bad_mask_values():
    cloudy, clear, mask = _uniform_scene()
    mask[0, 0] = -2
    with pytest.raises(ValueError, match=">= -1"):
        fill_clouds(cloudy, clear, mask)
    with pytest.raises(ValueError, match="integer codes"):
        fill_clouds(cloudy, clear, np.full((5, 5), 0.5))
