import os
import sys
from unittest import TestCase

import numpy as np


sys.path.append(os.path.abspath(
    os.path.join(os.path.realpath(__file__), '../../../')
))

from lorec.bin import sampling
from lorec.bin.coverage import CoverageInfo, SamplingType


class MaxOffsetRng():
    """
    Stand in random generator always picking the last index of a bucket
    """
    def integers(self, low, high, size):
        return np.full(size, high - 1, dtype=np.int64)


def coverage_info(coverage, start=100, sampling_size=4, end=None):
    coverage = np.asarray(coverage, dtype=np.int64)

    if end is None:
        end = start + len(coverage) - 1

    return CoverageInfo(
        name='test', start=start, end=end, coverage=coverage,
        sampling_size=sampling_size
    )


class TestSampleNone(TestCase):
    """
    Tests for sampling with no reduction, every raw value becomes a point
    """
    def test_one_point_per_value(self):
        """
        Test output length equals raw length and positions run
        consecutively from the region start
        """
        info = coverage_info(np.arange(10) * 2, start=100, sampling_size=0)
        positions, values = sampling.reduce_coverage(info, SamplingType.NONE)

        self.assertEqual(positions.tolist(), list(range(100, 110)))
        self.assertEqual(values.tolist(), (np.arange(10) * 2).tolist())


    def test_small_sampling_size_forces_none(self):
        """
        Test sampling sizes below 3 disable sampling regardless of the
        requested sampling type
        """
        for sampling_type in SamplingType:
            for size in [0, 1, 2]:
                with self.subTest(sampling_type=sampling_type, size=size):
                    info = coverage_info(np.arange(7), sampling_size=size)
                    positions, values = sampling.reduce_coverage(
                        info, sampling_type)

                    self.assertEqual(len(positions), 7)
                    self.assertEqual(values.tolist(), list(range(7)))


class TestSampleMean(TestCase):
    """
    Tests for mean sampling over buckets of sampling_size - 1 values
    """
    def test_full_buckets_and_remainder(self):
        """
        Test 10 values in buckets of 3 give 3 bucket means at bucket
        centres and one remainder point near the region end

            [1, 2, 3] -> 2 at 101, [4, 5, 6] -> 5 at 104,
            [7, 8, 9] -> 8 at 107, [10] -> 10 at 109
        """
        info = coverage_info(range(1, 11), start=100, sampling_size=4)
        positions, values = sampling.reduce_coverage(info, SamplingType.MEAN)

        self.assertEqual(positions.tolist(), [101, 104, 107, 109])
        self.assertEqual(values.tolist(), [2, 5, 8, 10])


    def test_mean_is_truncated(self):
        """
        Test bucket means are integer truncated
        """
        info = coverage_info([1, 2, 2, 3, 4], start=1, sampling_size=4)
        positions, values = sampling.reduce_coverage(info, SamplingType.MEAN)

        # [1, 2, 2] -> 5 // 3, remainder [3, 4] -> 7 // 2 at 5 - 1
        self.assertEqual(values.tolist(), [1, 3])
        self.assertEqual(positions.tolist(), [2, 4])


    def test_number_of_points(self):
        """
        Test total points is the number of full buckets plus one for any
        remainder
        """
        for length, expected in [(1000, 10), (1005, 11), (99, 1), (100, 1)]:
            with self.subTest(length=length):
                info = coverage_info(np.ones(length), sampling_size=101)
                positions, _ = sampling.reduce_coverage(info, SamplingType.MEAN)

                self.assertEqual(len(positions), expected)
                self.assertTrue(np.all(np.diff(positions) > 0))


class TestSampleMedian(TestCase):
    """
    Tests for median sampling over buckets of sampling_size values
    """
    def test_even_bucket_takes_lower_middle(self):
        """
        Test unsorted bucket [4, 1, 3, 2] gives sorted[1] = 2
        """
        info = coverage_info([4, 1, 3, 2], start=100, sampling_size=4)
        positions, values = sampling.reduce_coverage(info, SamplingType.MEDIAN)

        self.assertEqual(values.tolist(), [2])
        self.assertEqual(positions.tolist(), [101])


    def test_remainder_bucket(self):
        """
        Test remainder values are sorted and reduced to one point placed
        relative to the region end
        """
        info = coverage_info([5, 1, 3, 2, 9, 7], start=10, sampling_size=4)
        positions, values = sampling.reduce_coverage(info, SamplingType.MEDIAN)

        self.assertEqual(positions.tolist(), [11, 14])
        self.assertEqual(values.tolist(), [2, 7])


    def test_number_of_points(self):
        """
        Test median buckets use the full sampling size
        """
        for length, expected in [(1000, 10), (1050, 11), (99, 1)]:
            with self.subTest(length=length):
                info = coverage_info(np.arange(length), sampling_size=100)
                positions, _ = sampling.reduce_coverage(
                    info, SamplingType.MEDIAN)

                self.assertEqual(len(positions), expected)


    def test_input_not_modified(self):
        """
        Test raw coverage array is left unsorted
        """
        raw = np.array([9, 3, 7, 1, 5, 2], dtype=np.int64)
        info = coverage_info(raw, sampling_size=3)

        sampling.reduce_coverage(info, SamplingType.MEDIAN)

        self.assertEqual(raw.tolist(), [9, 3, 7, 1, 5, 2])


class TestSampleRandom(TestCase):
    """
    Tests for random sampling of one value per bucket of
    sampling_size - 1 values
    """
    def test_number_of_points_and_end_anchor(self):
        """
        Test one point per bucket and the final short bucket is placed at
        the region end
        """
        raw = np.arange(10) * 10
        info = coverage_info(raw, start=100, sampling_size=4)

        for seed in range(20):
            with self.subTest(seed=seed):
                positions, values = sampling.reduce_coverage(
                    info, SamplingType.RANDOM, rng=np.random.default_rng(seed))

                self.assertEqual(len(positions), 4)
                self.assertEqual(positions[-1], 109)
                self.assertTrue(np.all(np.diff(positions) > 0))

                # points before the last are taken from their position
                for position, value in zip(positions[:-1], values[:-1]):
                    self.assertEqual(value, raw[position - 100])


    def test_exact_buckets_not_anchored(self):
        """
        Test where buckets divide the array exactly each point is taken
        from within its own bucket
        """
        info = coverage_info(np.arange(9), start=0, sampling_size=4)
        positions, values = sampling.reduce_coverage(
            info, SamplingType.RANDOM, rng=np.random.default_rng(1))

        self.assertEqual(len(positions), 3)

        for bucket, position in enumerate(positions):
            self.assertTrue(bucket * 3 <= position < (bucket + 1) * 3)

        self.assertEqual(values.tolist(), positions.tolist())


    def test_pick_past_end_clamped(self):
        """
        Test a pick beyond the end of the array uses the last value
        """
        raw = np.arange(10) * 10
        info = coverage_info(raw, start=100, sampling_size=4)

        positions, values = sampling.reduce_coverage(
            info, SamplingType.RANDOM, rng=MaxOffsetRng())

        self.assertEqual(positions.tolist(), [102, 105, 108, 109])
        self.assertEqual(values.tolist(), [20, 50, 80, 90])


    def test_empty_coverage(self):
        """
        Test no points are returned for empty coverage
        """
        info = coverage_info([], start=100, sampling_size=4, end=100)
        positions, values = sampling.reduce_coverage(info, SamplingType.RANDOM)

        self.assertEqual(len(positions), 0)
        self.assertEqual(len(values), 0)
