import numpy as np
import pytest

from mvpastats.config.defaults import AveragingConfig
from mvpastats.core.dataset import Dataset
from mvpastats.measures.averaging import compute_averaging_measure
from mvpastats.utils.exceptions import ConfigurationError
from mvpastats.tests.tools import synthetic_dataset


def test_output_layout():
    ds = synthetic_dataset(ntargets=2, nchunks=3, nreps=4)
    result = compute_averaging_measure(ds, ratio=0.5, nrep=2, seed=0)

    assert result.samples.shape == (12, ds.nfeatures)
    # ordered by target, then chunk, then repetition
    assert result.sa["targets"].tolist() == [1] * 6 + [2] * 6
    assert result.sa["chunks"].tolist() == [1, 1, 2, 2, 3, 3] * 2
    assert result.sa["repeat"].tolist() == [1, 2] * 6
    np.testing.assert_array_equal(result.fa["i"], ds.fa["i"])
    assert result.a == ds.a


def test_averages_are_means_of_group_samples():
    ds = synthetic_dataset(ntargets=2, nchunks=2, nreps=5)
    result = compute_averaging_measure(ds, count=2, nrep=3, seed=1)

    for row in range(result.nsamples):
        msk = ((ds.sa["targets"] == result.sa["targets"][row])
               & (ds.sa["chunks"] == result.sa["chunks"][row]))
        group = ds.samples[msk]
        # the mean of two group members, so it lies within the group range
        assert np.all(result.samples[row] >= group.min(axis=0) - 1e-12)
        assert np.all(result.samples[row] <= group.max(axis=0) + 1e-12)


def test_count_equal_to_group_size_gives_group_mean():
    ds = synthetic_dataset(ntargets=2, nchunks=2, nreps=3)
    result = compute_averaging_measure(ds, count=3)

    expected = ds.samples[(ds.sa["targets"] == 1) & (ds.sa["chunks"] == 1)].mean(axis=0)
    np.testing.assert_allclose(result.samples[0], expected)


def test_seed_reproducibility():
    ds = synthetic_dataset(nreps=6)

    first = compute_averaging_measure(ds, ratio=0.5, nrep=4, seed=42)
    second = compute_averaging_measure(ds, ratio=0.5, nrep=4, seed=42)
    other = compute_averaging_measure(ds, ratio=0.5, nrep=4, seed=7)

    np.testing.assert_array_equal(first.samples, second.samples)
    assert not np.array_equal(first.samples, other.samples)


def test_ratio_rounds_half_up():
    ds = synthetic_dataset(ntargets=1, nchunks=1, nreps=5)

    # 0.5 * 5 = 2.5 rounds to 3: averaging all but two samples
    result = compute_averaging_measure(ds, ratio=0.5, seed=0)
    chosen = compute_averaging_measure(ds, count=3, seed=0)

    np.testing.assert_array_equal(result.samples, chosen.samples)


def test_ratio_uses_smallest_group():
    samples = np.arange(10.0)[:, np.newaxis]
    ds = Dataset(samples=samples,
                 sa={"targets": np.array([1] * 6 + [2] * 4),
                     "chunks": np.ones(10, dtype=int)})

    result = compute_averaging_measure(ds, ratio=0.5, seed=0)
    # floor(0.5 * 4 + 0.5) == 2 samples per average
    pair_means = {(a + b) / 2 for a in range(6, 10) for b in range(6, 10) if a != b}
    assert result.samples[1, 0] in pair_means


def test_config_object():
    ds = synthetic_dataset(nreps=2)
    config = AveragingConfig(count=1, nrep=2, seed=3)

    result = compute_averaging_measure(ds, config)
    overridden = compute_averaging_measure(ds, config, nrep=1)

    assert result.nsamples == 2 * overridden.nsamples
    assert config.nrep == 2


@pytest.mark.parametrize("options", [
    {},
    {"ratio": 0.5, "count": 2},
    {"ratio": -0.5},
    {"count": 0},
    {"count": 2, "nrep": 0},
    {"count": 10},
    {"ratio": 0.01},
])
def test_invalid_options(options):
    ds = synthetic_dataset(nreps=3)
    with pytest.raises(ConfigurationError):
        compute_averaging_measure(ds, **options)


def test_single_sample_groups_reproduce_input():
    ds = synthetic_dataset(ntargets=2, nchunks=6)
    result = compute_averaging_measure(ds, ratio=0.5, seed=0)

    # output is ordered by target, then chunk
    order = np.lexsort((ds.sa["chunks"], ds.sa["targets"]))
    np.testing.assert_array_equal(result.samples, ds.samples[order])
    np.testing.assert_array_equal(result.sa["targets"], ds.sa["targets"][order])
    np.testing.assert_array_equal(result.sa["chunks"], ds.sa["chunks"][order])


@pytest.mark.parametrize("ratio", [0.1, 3])
def test_ratio_out_of_range_for_single_sample_groups(ratio):
    ds = synthetic_dataset(ntargets=2, nchunks=6)
    with pytest.raises(ConfigurationError):
        compute_averaging_measure(ds, ratio=ratio)


def test_single_chunk_gives_one_sample_per_target():
    ds = synthetic_dataset(ntargets=2, nchunks=6)
    ds.sa["chunks"] = np.ones(ds.nsamples, dtype=int)

    result = compute_averaging_measure(ds, ratio=0.5, seed=0)

    assert result.nsamples == 2
    assert result.sa["targets"].tolist() == [1, 2]


def test_targets_are_never_mixed():
    ds = synthetic_dataset(ntargets=2, nchunks=6, nfeatures=1)
    targets = ds.sa["targets"]
    ds.sa["chunks"] = np.ones(ds.nsamples, dtype=int)
    # thousands encode the target, units the 1-based sample index
    index = np.arange(1, ds.nsamples + 1)
    ds.samples = (targets * 1000 + index)[:, np.newaxis].astype(float)

    result = compute_averaging_measure(ds, ratio=0.5, nrep=10, seed=0)

    assert result.nsamples == 20
    for value, target in zip(result.samples[:, 0], result.sa["targets"]):
        # each value is the mean of 3 indices of a single target
        summed = 3 * (value - 1000 * target)
        assert summed == pytest.approx(np.round(summed))
        own = index[targets == target]
        assert 3 * own.min() <= np.round(summed) <= 3 * own.max()
