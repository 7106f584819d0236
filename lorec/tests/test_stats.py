import math
import os
import sys
from tempfile import TemporaryDirectory
from unittest import TestCase

import numpy as np


sys.path.append(os.path.abspath(
    os.path.join(os.path.realpath(__file__), '../../../')
))

from lorec.bin import stats
from lorec.bin.coverage import CoverageInfo
from lorec.bin.regions import ChromosomeRegion


def coverage_info(name, coverage, site_count=None):
    return CoverageInfo(
        name=name, start=1, end=len(coverage), coverage=np.asarray(coverage),
        site_count=site_count
    )


class TestSummarize(TestCase):
    """
    Tests for stats.summarize

    Quartiles are linearly interpolated between closest ranks
    (rank = p * (n - 1)) and standard deviation is the population
    standard deviation
    """
    def test_one_to_eight(self):
        """
        Test statistics of [1..8]:

            q1 rank 1.75 -> 2 + 0.75 * (3 - 2) = 2.75
            q3 rank 5.25 -> 6 + 0.25 * (7 - 6) = 6.25
            variance = sum((x - 4.5) ** 2) / 8 = 42 / 8 = 5.25
        """
        summary = stats.summarize(np.arange(1, 9))

        self.assertEqual(summary['min'], 1)
        self.assertEqual(summary['max'], 8)
        self.assertEqual(summary['mean'], 4.5)
        self.assertAlmostEqual(summary['q1'], 2.75)
        self.assertAlmostEqual(summary['median'], 4.5)
        self.assertAlmostEqual(summary['q3'], 6.25)
        self.assertAlmostEqual(summary['stddev'], math.sqrt(5.25))


    def test_unsorted_input_not_modified(self):
        """
        Test statistics are calculated from a sorted copy
        """
        raw = np.array([7, 1, 5, 3, 9], dtype=np.int64)
        summary = stats.summarize(raw)

        self.assertEqual(raw.tolist(), [7, 1, 5, 3, 9])
        self.assertEqual(summary['min'], 1)
        self.assertEqual(summary['median'], 5)
        self.assertEqual(summary['max'], 9)


    def test_empty_coverage(self):
        """
        Test empty coverage gives NaN for every statistic
        """
        summary = stats.summarize(np.array([], dtype=np.int64))

        self.assertEqual(list(summary.keys()), stats.STAT_COLUMNS)
        self.assertTrue(all(np.isnan(x) for x in summary.values()))


class TestStatistics(TestCase):
    """
    Tests for building the table of per region statistics
    """
    def setUp(self):
        self.regions = [
            ChromosomeRegion('chr1', 1, 8, name='GENE1'),
            ChromosomeRegion('chr2', 1, 4),
            ChromosomeRegion('chr3', 1, 4, name='EMPTY')
        ]


    def test_columns_fixed_order(self):
        """
        Test columns are region info, optical map block with site count,
        then one block per alignment source in order given
        """
        table = stats.Statistics(['hts_b', 'hts_a'], optical_map=True)
        columns = table.columns

        self.assertEqual(len(columns), 3 + 8 + 7 * 2)
        self.assertEqual(columns[:3], ['contig_name', 'region', 'length'])
        self.assertEqual(columns[3], 'om_min')
        self.assertEqual(columns[10], 'om_site_count')
        self.assertEqual(columns[11], 'hts_b_min')
        self.assertEqual(columns[-1], 'hts_a_stddev')


    def test_no_optical_map_columns(self):
        """
        Test optical map columns are not included if no optical map given
        """
        columns = stats.Statistics(['hts_a']).columns

        self.assertFalse([x for x in columns if x.startswith('om_')])
        self.assertEqual(len(columns), 10)


    def test_missing_source_gives_empty_values(self):
        """
        Test a region missing coverage from a source keeps all columns,
        with empty values for the missing source
        """
        table = stats.Statistics(['hts_a', 'hts_b'], optical_map=True)
        om_coverage = {
            self.regions[0]: coverage_info('OM', [1, 2, 3], site_count=3)
        }
        hts_coverage = {
            self.regions[0]: [
                coverage_info('hts_a', np.arange(1, 9)),
                coverage_info('hts_b', [2, 2, 2, 2, 2, 2, 2, 2])
            ],
            self.regions[1]: [coverage_info('hts_b', [5, 5, 5, 5])]
        }

        region_stats = table.calculate_region_stats(
            self.regions, om_coverage, hts_coverage)

        self.assertEqual(list(region_stats.columns), table.columns)
        self.assertEqual(len(region_stats.index), 2)

        first, second = region_stats.iloc[0], region_stats.iloc[1]

        with self.subTest('region with all sources'):
            self.assertEqual(first['contig_name'], 'GENE1')
            self.assertEqual(first['region'], 'chr1:1-8')
            self.assertEqual(first['length'], 8)
            self.assertEqual(first['om_site_count'], 3)
            self.assertEqual(first['hts_a_mean'], 4.5)
            self.assertEqual(first['hts_b_stddev'], 0)

        with self.subTest('region missing sources'):
            self.assertEqual(second['contig_name'], '')
            self.assertTrue(np.isnan(second['om_min']))
            self.assertTrue(np.isnan(second['hts_a_median']))
            self.assertEqual(second['hts_b_median'], 5)


    def test_region_without_coverage_skipped(self):
        """
        Test regions with no coverage from any source are logged and
        skipped
        """
        table = stats.Statistics(['hts_a'])
        hts_coverage = {self.regions[0]: [coverage_info('hts_a', [1, 2])]}

        with self.assertLogs('lorec.bin.stats', level='WARNING') as logs:
            region_stats = table.calculate_region_stats(
                self.regions, {}, hts_coverage)

        self.assertEqual(len(region_stats.index), 1)
        self.assertEqual(len(logs.records), 2)


    def test_write_stats(self):
        """
        Test statistics written as tab separated file with the same number
        of fields on every row and empty fields for missing values
        """
        table = stats.Statistics(['hts_a', 'hts_b'], optical_map=True)
        hts_coverage = {
            self.regions[0]: [coverage_info('hts_a', np.arange(1, 9))],
            self.regions[1]: [coverage_info('hts_b', [1, 2, 3, 4])]
        }
        region_stats = table.calculate_region_stats(
            self.regions, {}, hts_coverage)

        with TemporaryDirectory() as tmp_dir:
            output = os.path.join(tmp_dir, 'stats.tsv')
            table.write_stats(region_stats, output)

            with open(output, encoding='utf-8') as file:
                lines = file.read().splitlines()

        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[0].split('\t'), table.columns)

        for line in lines[1:]:
            self.assertEqual(len(line.split('\t')), len(table.columns))

        first = dict(zip(table.columns, lines[1].split('\t')))

        self.assertEqual(first['length'], '8')
        self.assertEqual(first['om_min'], '')
        self.assertEqual(first['om_site_count'], '')
        self.assertEqual(first['hts_a_q1'], '2.75')
        self.assertEqual(first['hts_a_mean'], '4.50')
        self.assertEqual(first['hts_b_min'], '')
