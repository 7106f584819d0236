"""
Functions relating to generating order statistic summaries of raw coverage
for each region and source.

Quartiles are calculated with linear interpolation between the closest
ranks (numpy's default percentile method, rank = p * (n - 1)) and the
standard deviation is the population standard deviation (ddof=0). The same
convention is used for every source and region.
"""
import logging

import numpy as np
import pandas as pd


log = logging.getLogger(__name__)

STAT_COLUMNS = ['min', 'q1', 'median', 'q3', 'max', 'mean', 'stddev']


def summarize(coverage) -> dict:
    """
    Calculate min, quartiles, max, mean and standard deviation of a
    raw coverage array

    Parameters
    ----------
    coverage : np.ndarray
        array of raw coverage values, not modified

    Returns
    -------
    dict
        dict of statistic name to value, all NaN if coverage is empty
    """
    values = np.sort(np.asarray(coverage, dtype=np.float64))

    if not values.size:
        return {column: np.nan for column in STAT_COLUMNS}

    q1, median, q3 = np.percentile(values, [25, 50, 75])

    return {
        'min': values[0],
        'q1': q1,
        'median': median,
        'q3': q3,
        'max': values[-1],
        'mean': values.mean(),
        'stddev': values.std(ddof=0)
    }


class Statistics():
    """
    Builds table of per region coverage statistics for optical map and
    alignment sources, one row per region
    """
    def __init__(self, hts_names, optical_map=False) -> None:
        """
        Parameters
        ----------
        hts_names : list
            names of alignment sources, in input order
        optical_map : bool
            if optical map statistics columns are included
        """
        self.hts_names = list(hts_names)
        self.optical_map = optical_map


    @property
    def columns(self) -> list:
        """
        Columns of the statistics table, fixed for a whole run
        """
        columns = ['contig_name', 'region', 'length']

        if self.optical_map:
            columns.extend([f"om_{x}" for x in STAT_COLUMNS])
            columns.append('om_site_count')

        for name in self.hts_names:
            columns.extend([f"{name}_{x}" for x in STAT_COLUMNS])

        return columns


    def region_row(self, region, om_coverage=None, hts_coverage=None) -> dict:
        """
        Generate row of statistics for one region. Sources with no coverage
        for the region give empty values in their columns.

        Parameters
        ----------
        region : ChromosomeRegion
            region statistics are calculated for
        om_coverage : CoverageInfo
            optical map coverage of region
        hts_coverage : dict
            mapping of alignment source name to CoverageInfo for the region

        Returns
        -------
        dict
            row of column name to value
        """
        hts_coverage = hts_coverage or {}

        row = {
            'contig_name': region.name or '',
            'region': str(region),
            'length': region.length
        }

        if self.optical_map:
            if om_coverage is not None:
                row.update({
                    f"om_{k}": v for k, v in summarize(om_coverage.coverage).items()
                })
                row['om_site_count'] = om_coverage.site_count

        for name in self.hts_names:
            coverage_info = hts_coverage.get(name)

            if coverage_info is None:
                continue

            row.update({
                f"{name}_{k}": v for k, v in summarize(
                    coverage_info.coverage).items()
            })

        return row


    def calculate_region_stats(self, regions, om_coverage, hts_coverage) -> pd.DataFrame:
        """
        Calculate statistics for all regions, regions with no coverage from
        any source are skipped

        Parameters
        ----------
        regions : list
            list of ChromosomeRegion objects
        om_coverage : dict
            mapping of region to optical map CoverageInfo
        hts_coverage : dict
            mapping of region to list of alignment CoverageInfo

        Returns
        -------
        pd.DataFrame
            dataframe of statistics, one row per region with coverage
        """
        rows = []

        for idx, region in enumerate(regions, 1):
            om_info = om_coverage.get(region)
            hts_infos = {x.name: x for x in hts_coverage.get(region, [])}

            if om_info is None and not hts_infos:
                log.warning(f"No coverage information for region: {region}")
                continue

            log.info(
                f"Calculating statistics for: {region.name} - {region}... "
                f"{idx}/{len(regions)}"
            )

            rows.append(self.region_row(
                region, om_coverage=om_info, hts_coverage=hts_infos))

        # build from columns so schema is fixed even if no rows / sources
        stats = pd.DataFrame(rows, columns=self.columns)
        stats = stats.astype({'length': np.int64})

        if self.optical_map:
            stats['om_site_count'] = pd.to_numeric(
                stats['om_site_count']).astype('Int64')

        return stats


    @staticmethod
    def write_stats(stats, output_file) -> None:
        """
        Write statistics table to tab separated file, missing values are
        written as empty fields

        Parameters
        ----------
        stats : pd.DataFrame
            dataframe of statistics from calculate_region_stats()
        output_file : str
            path to output file
        """
        stats.to_csv(
            output_file, sep='\t', index=False, na_rep='',
            float_format='%.2f', encoding='utf-8'
        )
