import numpy as np
import pytest

from mvpastats.config.defaults import CorrelationMeasureConfig
from mvpastats.config.strategies import median_merge
from mvpastats.core.dataset import Dataset
from mvpastats.core.partitioning import Partitions, nchoosek_partitioner, nfold_partitioner
from mvpastats.measures.cache import MeasureCache
from mvpastats.measures.correlation import (
    compute_correlation_measure,
    default_template,
    unflatten_correlations,
)
from mvpastats.utils.exceptions import ConfigurationError, DatasetError, PartitionError
from mvpastats.tests.tools import synthetic_dataset


def _single_partition(ds):
    chunks = ds.sa["chunks"]
    return Partitions(train_indices=[np.flatnonzero(chunks <= 3)],
                      test_indices=[np.flatnonzero(chunks > 3)])


def _expected_mean(ds, partitions):
    classes = np.unique(ds.sa["targets"])
    nclasses = len(classes)
    template = (np.eye(nclasses) - 1 / nclasses) / (nclasses - 1)

    values = []
    for train, test in zip(partitions.train_indices, partitions.test_indices):
        halves = []
        for idxs in (train, test):
            halves.append(np.vstack([ds.samples[idxs][ds.sa["targets"][idxs] == c].mean(axis=0)
                                     for c in classes]))
        c = np.corrcoef(halves[0], halves[1])[:nclasses, nclasses:]
        values.append(np.sum(np.arctanh(c) * template))

    return np.mean(values)


def test_default_mean_output():
    ds = synthetic_dataset(ntargets=3, nchunks=6, nreps=2, nfeatures=10)
    result = compute_correlation_measure(ds)

    assert result.samples.shape == (1, 1)
    assert np.isfinite(result.samples[0, 0])
    assert result.sa["labels"].tolist() == ["corr"]

    expected = _expected_mean(ds, nchoosek_partitioner(ds, "half"))
    assert result.samples[0, 0] == pytest.approx(expected)


def test_corr_alias_and_signal():
    ds = synthetic_dataset(ntargets=4, nchunks=4, nfeatures=50, signal=3.0)
    mean = compute_correlation_measure(ds, output="mean")
    corr = compute_correlation_measure(ds, output="corr")

    np.testing.assert_array_equal(mean.samples, corr.samples)
    # strong class patterns give on-diagonal > off-diagonal correlations
    assert mean.samples[0, 0] > 0


def test_spearman_changes_value_not_shape():
    ds = synthetic_dataset(nfeatures=20)
    pearson = compute_correlation_measure(ds)
    spearman = compute_correlation_measure(ds, corr_type="Spearman")
    kendall = compute_correlation_measure(ds, corr_type="Kendall")

    assert spearman.samples.shape == pearson.samples.shape == kendall.samples.shape
    assert spearman.samples[0, 0] != pearson.samples[0, 0]


def test_raw_output():
    ds = synthetic_dataset(ntargets=3, nfeatures=12)
    raw = compute_correlation_measure(ds, output="raw")
    correlation = compute_correlation_measure(ds, output="correlation")

    np.testing.assert_array_equal(raw.samples, correlation.samples)
    assert raw.samples.shape == (9, 1)
    assert raw.sa["half1"].tolist() == [1, 2, 3, 1, 2, 3, 1, 2, 3]
    assert raw.sa["half2"].tolist() == [1, 1, 1, 2, 2, 2, 3, 3, 3]
    assert raw.a["sdim"]["labels"] == ["half1", "half2"]
    np.testing.assert_array_equal(raw.a["sdim"]["values"][0], [1, 2, 3])


def test_raw_output_reproduces_correlation_matrix():
    ds = synthetic_dataset(ntargets=3, nfeatures=12)
    partitions = _single_partition(ds)
    raw = compute_correlation_measure(ds, output="raw", partitions=partitions,
                                      post_corr_func=None)

    train, test = partitions.train_indices[0], partitions.test_indices[0]
    half1 = np.vstack([ds.samples[train][ds.sa["targets"][train] == c].mean(axis=0)
                       for c in (1, 2, 3)])
    half2 = np.vstack([ds.samples[test][ds.sa["targets"][test] == c].mean(axis=0)
                       for c in (1, 2, 3)])
    expected = np.corrcoef(half1, half2)[:3, 3:]

    np.testing.assert_allclose(unflatten_correlations(raw), expected)


def test_one_minus_correlation():
    ds = synthetic_dataset(ntargets=3)
    raw = compute_correlation_measure(ds, output="raw")
    one_minus = compute_correlation_measure(ds, output="one_minus_correlation")

    np.testing.assert_allclose(one_minus.samples, 1 - raw.samples)
    np.testing.assert_array_equal(one_minus.sa["half1"], raw.sa["half1"])


def test_post_corr_func():
    ds = synthetic_dataset()
    partitions = _single_partition(ds)
    fisher = compute_correlation_measure(ds, output="raw", partitions=partitions)
    identity = compute_correlation_measure(ds, output="raw", partitions=partitions,
                                           post_corr_func=None)
    named = compute_correlation_measure(ds, output="raw", partitions=partitions,
                                        post_corr_func="identity")

    np.testing.assert_allclose(fisher.samples, np.arctanh(identity.samples))
    np.testing.assert_array_equal(identity.samples, named.samples)


def test_template_must_sum_to_zero():
    ds = synthetic_dataset()
    with pytest.raises(ConfigurationError, match="sum of zero"):
        compute_correlation_measure(ds, template=np.eye(2))


def test_template_must_match_classes():
    ds = synthetic_dataset(ntargets=2)
    with pytest.raises(ConfigurationError, match="shape"):
        compute_correlation_measure(ds, template=default_template(3))


def test_template_non_finite_entries_are_ignored():
    ds = synthetic_dataset()
    partitions = _single_partition(ds)
    raw = compute_correlation_measure(ds, output="raw", partitions=partitions)

    template = np.array([[1.0, np.nan],
                         [-1.0, 0.0]])
    result = compute_correlation_measure(ds, template=template, partitions=partitions)

    # column-major: raw[0] is (1, 1), raw[1] is (2, 1)
    assert result.samples[0, 0] == pytest.approx(raw.samples[0, 0] - raw.samples[1, 0])


def test_default_template():
    template = default_template(4)

    assert template.sum() == pytest.approx(0)
    np.testing.assert_allclose(np.diag(template), 0.25)
    assert template[0, 1] == pytest.approx(-1 / 12)


def test_by_partition_with_nfold():
    ds = synthetic_dataset(ntargets=2, nchunks=4)
    partitions = nfold_partitioner(ds)

    by_partition = compute_correlation_measure(ds, output="by_partition", partitions=partitions)
    mean = compute_correlation_measure(ds, partitions=partitions)

    assert by_partition.samples.shape == (4, 1)
    assert by_partition.sa["partition"].tolist() == [1, 2, 3, 4]
    np.testing.assert_array_equal(by_partition.sa["chunks"], [1, 2, 3, 4])
    assert np.mean(by_partition.samples) == pytest.approx(mean.samples[0, 0])


def test_by_partition_with_half_partitions_has_no_chunks():
    ds = synthetic_dataset(ntargets=2, nchunks=4)
    result = compute_correlation_measure(ds, output="by_partition")

    assert result.samples.shape == (3, 1)
    assert np.all(np.isnan(result.sa["chunks"]))


def test_merge_func():
    ds = synthetic_dataset(nreps=3)
    default = compute_correlation_measure(ds)
    mean_lambda = compute_correlation_measure(ds, merge_func=lambda x: np.mean(x, axis=0))
    median = compute_correlation_measure(ds, merge_func=median_merge)
    median_named = compute_correlation_measure(ds, merge_func="median")

    np.testing.assert_allclose(default.samples, mean_lambda.samples)
    np.testing.assert_array_equal(median.samples, median_named.samples)
    assert median.samples[0, 0] != pytest.approx(default.samples[0, 0])


def test_missing_target_class():
    ds = Dataset(samples=np.random.default_rng(0).standard_normal((6, 5)),
                 sa={"targets": np.array([1, 2, 1, 2, 1, 1]),
                     "chunks": np.array([1, 1, 2, 2, 3, 3])})
    partitions = Partitions(train_indices=[np.arange(4)], test_indices=[np.array([4, 5])])

    with pytest.raises(DatasetError, match="missing target class 2"):
        compute_correlation_measure(ds, partitions=partitions)


def test_invalid_partitions_propagate():
    ds = synthetic_dataset()
    partitions = Partitions(train_indices=[np.arange(6)], test_indices=[np.arange(4, 12)])

    with pytest.raises(PartitionError):
        compute_correlation_measure(ds, partitions=partitions)


@pytest.mark.parametrize("options", [
    {"output": "bogus"},
    {"corr_type": "cosine"},
    {"merge_func": 3},
    {"no_such_option": True},
])
def test_invalid_options(options):
    ds = synthetic_dataset()
    with pytest.raises(ConfigurationError):
        compute_correlation_measure(ds, **options)


def test_config_object_with_overrides():
    ds = synthetic_dataset(ntargets=3)
    config = CorrelationMeasureConfig(output="raw", corr_type="Spearman")

    from_config = compute_correlation_measure(ds, config)
    from_options = compute_correlation_measure(ds, output="raw", corr_type="Spearman")
    overridden = compute_correlation_measure(ds, config, output="mean")

    np.testing.assert_array_equal(from_config.samples, from_options.samples)
    assert overridden.samples.shape == (1, 1)
    assert config.output == "raw"


def test_cache_gives_identical_results():
    ds = synthetic_dataset(ntargets=3, nchunks=6, nreps=2)
    cache = MeasureCache()

    uncached = compute_correlation_measure(ds, corr_type="Spearman")
    first = compute_correlation_measure(ds, cache=cache, corr_type="Spearman")
    second = compute_correlation_measure(ds, cache=cache, corr_type="Spearman")

    np.testing.assert_array_equal(uncached.samples, first.samples)
    np.testing.assert_array_equal(first.samples, second.samples)
    # options and partitions are both reused on the second call
    assert cache.misses == 2
    assert cache.hits == 2


def test_cache_invalidation():
    ds = synthetic_dataset(nchunks=6)
    cache = MeasureCache()
    compute_correlation_measure(ds, cache=cache)

    other = synthetic_dataset(nchunks=4)
    cached = compute_correlation_measure(other, cache=cache)
    fresh = compute_correlation_measure(other)
    np.testing.assert_array_equal(cached.samples, fresh.samples)

    raw = compute_correlation_measure(other, cache=cache, output="raw")
    assert raw.samples.shape == (4, 1)

    cache.clear()
    hits = cache.hits
    compute_correlation_measure(other, cache=cache, output="raw")
    assert cache.hits == hits


def test_cache_detects_in_place_template_change():
    ds = synthetic_dataset()
    cache = MeasureCache()
    template = default_template(2)

    first = compute_correlation_measure(ds, cache=cache, template=template)
    template *= -1
    second = compute_correlation_measure(ds, cache=cache, template=template)

    assert second.samples[0, 0] == pytest.approx(-first.samples[0, 0])


def _unbalanced_dataset():
    # chunk 4 holds an extra sample of target 1
    return Dataset(samples=np.random.default_rng(2).standard_normal((9, 6)),
                   sa={"targets": np.array([1, 2, 1, 2, 1, 2, 1, 2, 1]),
                       "chunks": np.array([1, 1, 2, 2, 3, 3, 4, 4, 4])})


def test_cache_does_not_skip_failed_partition_check():
    ds = _unbalanced_dataset()
    cache = MeasureCache()

    with pytest.raises(PartitionError):
        compute_correlation_measure(ds)
    with pytest.raises(PartitionError):
        compute_correlation_measure(ds, cache=cache)
    with pytest.raises(PartitionError):
        compute_correlation_measure(ds, cache=cache)


def test_cache_checks_partitions_after_unchecked_call():
    ds = _unbalanced_dataset()
    cache = MeasureCache()

    compute_correlation_measure(ds, cache=cache, check_partitions=False)
    with pytest.raises(PartitionError):
        compute_correlation_measure(ds, cache=cache)


def test_cache_rechecks_partitions_when_targets_change():
    ds = synthetic_dataset(ntargets=2, nchunks=4)
    cache = MeasureCache()
    compute_correlation_measure(ds, cache=cache)

    # same chunks, but the training halves are no longer balanced
    unbalanced = ds.copy()
    unbalanced.sa["targets"][7] = 1
    with pytest.raises(PartitionError):
        compute_correlation_measure(unbalanced, cache=cache)

    compute_correlation_measure(unbalanced, cache=cache, unbalanced_partitions_ok=True)
    with pytest.raises(PartitionError):
        compute_correlation_measure(unbalanced, cache=cache)
