"""
Functions to downsample raw coverage arrays into small, regularly spaced
series of (position, coverage) points for plotting.

Sampling size of a CoverageInfo gives the number of positions reduced to
one point (the sampler works on buckets of sampling_size - 1 values, except
median which uses the full sampling_size). Every bucket, including a final
partial bucket, produces exactly one point.
"""
import numpy as np

from .coverage import SamplingType


def reduce_coverage(coverage_info, sampling_type, rng=None) -> tuple:
    """
    Reduce raw coverage of a CoverageInfo to a plot ready series using the
    given sampling type. Sampling sizes below 3 disable sampling.

    Parameters
    ----------
    coverage_info : CoverageInfo
        coverage record to sample
    sampling_type : SamplingType
        sampling strategy to apply
    rng : np.random.Generator
        random generator used for random sampling, if not given a freshly
        seeded generator is used

    Returns
    -------
    np.ndarray
        array of positions, strictly increasing
    np.ndarray
        array of coverage values at each position
    """
    coverage = np.asarray(coverage_info.coverage)

    if coverage_info.sampling_size < 3:
        sampling_type = SamplingType.NONE

    if sampling_type == SamplingType.NONE:
        return sample_none(coverage_info, coverage)
    elif sampling_type == SamplingType.MEAN:
        return sample_mean(coverage_info, coverage)
    elif sampling_type == SamplingType.MEDIAN:
        return sample_median(coverage_info, coverage)
    else:
        return sample_random(coverage_info, coverage, rng=rng)


def sample_none(coverage_info, coverage) -> tuple:
    """
    No reduction, one point per raw value
    """
    positions = np.arange(
        coverage_info.start, coverage_info.start + len(coverage), dtype=np.int64
    )

    return positions, coverage.copy()


def sample_random(coverage_info, coverage, rng=None) -> tuple:
    """
    Pick one value at random from each bucket of sampling_size - 1 values.

    Where the final bucket is shorter than the others the picked index is
    clamped to the last value and the point is placed at the region end.

    Parameters
    ----------
    coverage_info : CoverageInfo
        coverage record being sampled
    coverage : np.ndarray
        raw coverage values
    rng : np.random.Generator
        random generator to pick values with

    Returns
    -------
    tuple
        arrays of positions and sampled values
    """
    if rng is None:
        rng = np.random.default_rng()

    step = coverage_info.sampling_size - 1
    total = len(coverage)

    if total == 0:
        return np.array([], dtype=np.int64), coverage.copy()

    bucket_starts = np.arange(0, total, step, dtype=np.int64)
    index = bucket_starts + rng.integers(0, step, size=len(bucket_starts))
    positions = coverage_info.start + index

    if total % step:
        # short final bucket, anchor last point at end of region
        index[-1] = min(index[-1], total - 1)
        positions[-1] = coverage_info.end

    return positions, coverage[index]


def sample_mean(coverage_info, coverage) -> tuple:
    """
    Integer mean of each bucket of sampling_size - 1 values, placed at the
    centre of the bucket.

    Parameters
    ----------
    coverage_info : CoverageInfo
        coverage record being sampled
    coverage : np.ndarray
        raw coverage values

    Returns
    -------
    tuple
        arrays of positions and bucket means
    """
    step = coverage_info.sampling_size - 1
    full = len(coverage) // step
    remainder = len(coverage) - full * step

    # index of the last value in each full bucket
    last = np.arange(1, full + 1, dtype=np.int64) * step - 1
    positions = coverage_info.start + (last - step // 2)
    values = coverage[:full * step].reshape(full, step).sum(
        axis=1, dtype=np.int64) // step

    if remainder:
        positions = np.append(positions, coverage_info.end - remainder // 2)
        values = np.append(
            values, coverage[full * step:].sum(dtype=np.int64) // remainder)

    return positions, values


def sample_median(coverage_info, coverage) -> tuple:
    """
    Median of each bucket of sampling_size values, placed at the centre of
    the bucket. Even sized buckets take the lower of the two middle values.

    Parameters
    ----------
    coverage_info : CoverageInfo
        coverage record being sampled
    coverage : np.ndarray
        raw coverage values

    Returns
    -------
    tuple
        arrays of positions and bucket medians
    """
    size = coverage_info.sampling_size
    full = len(coverage) // size
    remainder = len(coverage) - full * size

    last = np.arange(1, full + 1, dtype=np.int64) * size - 1
    positions = coverage_info.start + (last - size // 2)
    values = np.sort(
        coverage[:full * size].reshape(full, size), axis=1)[:, (size - 1) // 2]

    if remainder:
        tail = np.sort(coverage[full * size:])
        positions = np.append(positions, coverage_info.end - remainder // 2)
        values = np.append(values, tail[(remainder - 1) // 2])

    return positions, values
