"""
Functions to collect coverage of every region from each configured source
and pass it on for plotting or calculating statistics.

Each alignment file and the optical map files are opened once and used for
all regions before being closed. Regions without coverage from any source
are logged and skipped without stopping the run. If a source can not be
read, output is still written from the sources read successfully before
the error is raised.
"""
import logging
import os
from time import time

from .coverage import HTS_COLOR, OM_COLOR, ImageFormat, PlotType, SamplingType
from .errors import ConfigurationError, OutputError, ProviderError
from .plot import CoveragePlot
from .providers import OpticalMapCoverage, open_alignment_provider
from .stats import Statistics
from . import utils


log = logging.getLogger(__name__)


class CoverageAggregator():
    """
    Collects coverage of regions from alignment files and / or optical map
    files and generates plots and statistics from them
    """
    def __init__(
            self, alignment_files=None, optical_map=None, threads=1,
            mapping_quality=0, hts_sampling_size=100, om_sampling_size=10,
            hts_coverage_limit=0, om_coverage_limit=0,
            alignment_provider=None,
            optical_map_provider=None) -> None:
        """
        Parameters
        ----------
        alignment_files : list
            paths to BAM / CRAM files, processed in order given
        optical_map : tuple
            paths to reference cmap, query cmap and xmap files
        threads : int
            number of processes to calculate alignment coverage with
        mapping_quality : int
            minimum mapping quality of reads counted for alignment coverage
        hts_sampling_size : int
            number of positions sampled to one point for alignment plots
        om_sampling_size : int
            number of label sites sampled to one point for optical map plots
        hts_coverage_limit : int
            coverage axis limit for alignment plots, 0 for none
        om_coverage_limit : int
            coverage axis limit for optical map plots, 0 for none
        alignment_provider : callable
            factory returning an alignment coverage provider for a file
        optical_map_provider : callable
            factory returning an optical map coverage provider

        Raises
        ------
        ConfigurationError
            if neither alignment files or all optical map files are given
        """
        self.alignment_files = [x for x in (alignment_files or []) if x]
        self.optical_map = None

        if optical_map and any(optical_map):
            if all(optical_map) and len(optical_map) == 3:
                self.optical_map = tuple(optical_map)
            else:
                log.warning(
                    "Incomplete optical map files given, reference cmap, "
                    "query cmap and xmap are all required. Optical map "
                    "coverage will not be calculated."
                )

        if not self.alignment_files and not self.optical_map:
            raise ConfigurationError(
                "At least one bam, or xmap, query cmap and reference cmap "
                "must be specified."
            )

        self.hts_names = utils.hts_source_names(self.alignment_files)
        self.threads = threads
        self.mapping_quality = mapping_quality
        self.hts_sampling_size = hts_sampling_size
        self.om_sampling_size = om_sampling_size
        self.hts_coverage_limit = hts_coverage_limit
        self.om_coverage_limit = om_coverage_limit
        self.alignment_provider = alignment_provider or open_alignment_provider
        self.optical_map_provider = optical_map_provider or OpticalMapCoverage


    def collect_alignment_coverage(self, regions, sampling_size) -> dict:
        """
        Get coverage of all regions from each alignment file

        Parameters
        ----------
        regions : list
            list of ChromosomeRegion
        sampling_size : int
            sampling size to set on each CoverageInfo

        Returns
        -------
        dict
            mapping of region to list of CoverageInfo, in order of
            alignment files, regions without coverage are not included

        Raises
        ------
        ProviderError
            if a file can not be read, the coverage of files already
            processed is attached to the error as error.coverage
        """
        coverage = {}

        for bam, name in zip(self.alignment_files, self.hts_names):
            start = time()
            bam_coverage = {}

            try:
                with self.alignment_provider(
                        bam, threads=self.threads,
                        mapping_quality=self.mapping_quality) as provider:
                    for idx, region in enumerate(regions, 1):
                        log.info(
                            f"Calculating coverage for: {bam} - {region.name} "
                            f"- {region}... {idx}/{len(regions)}"
                        )

                        coverage_info = provider.get_interval_coverage(
                            region.chromosome, region.start, region.end)

                        if coverage_info is None:
                            log.info(f"No coverage from {bam} for region: {region}")
                            continue

                        bam_coverage[region] = coverage_info.annotate(
                            name=name, sampling_size=sampling_size,
                            color=HTS_COLOR
                        )
            except ProviderError as err:
                # only files fully read are kept
                err.coverage = coverage
                raise

            for region, coverage_info in bam_coverage.items():
                coverage.setdefault(region, []).append(coverage_info)

            log.info(
                f"Finished calculating coverage for {bam} in "
                f"{round((time() - start), 2)}s"
            )

        return coverage


    def collect_optical_map_coverage(self, regions, sampling_size) -> dict:
        """
        Get optical map coverage of all regions

        Parameters
        ----------
        regions : list
            list of ChromosomeRegion
        sampling_size : int
            sampling size to set on each CoverageInfo

        Returns
        -------
        dict
            mapping of region to CoverageInfo, regions without coverage
            are not included
        """
        if not self.optical_map:
            return {}

        coverage = {}
        cmap_reference, cmap_query, xmap = self.optical_map

        with self.optical_map_provider(cmap_reference, cmap_query, xmap) as provider:
            for idx, region in enumerate(regions, 1):
                log.info(
                    f"Calculating coverage for: {region.name} - {region}... "
                    f"{idx}/{len(regions)}"
                )

                coverage_info = provider.get_interval_coverage(
                    region.chromosome, region.start, region.end)

                if coverage_info is None:
                    log.info(f"No optical map coverage for region: {region}")
                    continue

                coverage[region] = coverage_info.annotate(
                    name='OM', sampling_size=sampling_size, color=OM_COLOR)

        return coverage


    def collect_coverage(self, regions, hts_sampling_size, om_sampling_size) -> tuple:
        """
        Get coverage of all regions from every source, a source failing
        does not stop coverage being collected from the others

        Parameters
        ----------
        regions : list
            list of ChromosomeRegion
        hts_sampling_size : int
            sampling size to set on alignment CoverageInfo
        om_sampling_size : int
            sampling size to set on optical map CoverageInfo

        Returns
        -------
        dict
            mapping of region to list of alignment CoverageInfo
        dict
            mapping of region to optical map CoverageInfo
        ProviderError | None
            first error raised reading a source, to be raised once the
            output of the other sources has been written
        """
        error = None

        try:
            hts_coverage = self.collect_alignment_coverage(
                regions, hts_sampling_size)
        except ProviderError as err:
            log.warning(
                f"Alignment coverage incomplete, continuing with the files "
                f"read before the error: {err}"
            )
            hts_coverage, error = err.coverage, err

        try:
            om_coverage = self.collect_optical_map_coverage(
                regions, om_sampling_size)
        except ProviderError as err:
            log.warning(
                f"Optical map coverage could not be calculated, continuing "
                f"without it: {err}"
            )
            om_coverage, error = {}, error or err

        return hts_coverage, om_coverage, error


    def apply_coverage_limits(self, hts_coverage, om_coverage) -> tuple:
        """
        Set configured coverage limits on the coverage of one region, each
        source kind receiving the same limit

        Parameters
        ----------
        hts_coverage : list
            list of alignment CoverageInfo for region, may be None
        om_coverage : CoverageInfo
            optical map CoverageInfo for region, may be None

        Returns
        -------
        list
            annotated copies of alignment coverage
        CoverageInfo | None
            annotated copy of optical map coverage
        """
        hts_coverage = [
            x.annotate(coverage_limit=self.hts_coverage_limit)
            for x in hts_coverage or []
        ]

        if om_coverage is not None:
            om_coverage = om_coverage.annotate(coverage_limit=self.om_coverage_limit)

        return hts_coverage, om_coverage


    def plot_regions(
            self, regions, output_dir='./', sample_name='',
            sampling_type=SamplingType.RANDOM, plot_type=PlotType.HISTOGRAM,
            image_format=ImageFormat.PNG, single_image=False, rng=None) -> list:
        """
        Plot coverage of every region, naming images from the sample name,
        region display name and region

        Parameters
        ----------
        regions : list
            list of ChromosomeRegion
        output_dir : str
            directory to write images to
        sample_name : str
            sample name to prefix images and titles with
        sampling_type : SamplingType
            sampling type to reduce coverage with
        plot_type : PlotType
            type of plot to draw
        image_format : ImageFormat
            format of images to write
        single_image : bool
            if all sources are plotted in one image per region
        rng : np.random.Generator
            random generator for random sampling

        Returns
        -------
        list
            paths of images written

        Raises
        ------
        ProviderError
            if a source could not be read, raised after the images of the
            other sources have been written
        """
        utils.make_output_dir(output_dir)

        hts_coverage, om_coverage, error = self.collect_coverage(
            regions, self.hts_sampling_size, self.om_sampling_size)

        coverage_plot = CoveragePlot(plot_type)
        images = []

        for idx, region in enumerate(regions, 1):
            log.info(
                f"Plotting coverage for: {region.name} - {region}... "
                f"{idx}/{len(regions)}"
            )

            hts_infos = hts_coverage.get(region)
            om_info = om_coverage.get(region)

            if not hts_infos and om_info is None:
                log.warning(f"No coverage information for region: {region}")
                continue

            outputs = utils.output_images(output_dir, sample_name, region, image_format)

            images.extend(self._plot_region_coverage(
                coverage_plot, utils.plot_title(sample_name, region),
                hts_infos, om_info, outputs, single_image, sampling_type,
                image_format, rng
            ))

        if error:
            raise error

        return images


    def plot_region(
            self, region, title='', output_hts_img=None, output_om_img=None,
            output_img=None, output_dir='./', sample_name='',
            sampling_type=SamplingType.RANDOM, plot_type=PlotType.HISTOGRAM,
            image_format=ImageFormat.PNG, single_image=False, rng=None) -> list:
        """
        Plot coverage of a single region to the given image paths, paths
        not given are named as in plot_regions()

        Returns
        -------
        list
            paths of images written
        """
        outputs = utils.output_images(output_dir, sample_name, region, image_format)
        outputs['hts'] = output_hts_img or outputs['hts']
        outputs['om'] = output_om_img or outputs['om']
        outputs['single'] = output_img or outputs['single']

        for output in outputs.values():
            utils.make_output_dir(os.path.dirname(output) or '.')

        hts_coverage, om_coverage, error = self.collect_coverage(
            [region], self.hts_sampling_size, self.om_sampling_size)
        hts_infos = hts_coverage.get(region)
        om_info = om_coverage.get(region)
        images = []

        if not hts_infos and om_info is None:
            log.warning(f"No coverage information for region: {region}")
        else:
            images = self._plot_region_coverage(
                CoveragePlot(plot_type),
                title or utils.plot_title(sample_name, region),
                hts_infos, om_info, outputs, single_image, sampling_type,
                image_format, rng
            )

        if error:
            raise error

        return images


    def _plot_region_coverage(
            self, coverage_plot, title, hts_infos, om_info, outputs,
            single_image, sampling_type, image_format, rng) -> list:
        """
        Plot coverage of one region either into a single image or one image
        per source kind

        Returns
        -------
        list
            paths of images written
        """
        hts_infos, om_info = self.apply_coverage_limits(hts_infos, om_info)
        plots = []

        if single_image:
            plots.append((outputs['single'], hts_infos + [om_info]))
        else:
            if hts_infos:
                plots.append((outputs['hts'], hts_infos))

            if om_info is not None:
                plots.append((outputs['om'], [om_info]))

        for output_file, coverage_infos in plots:
            coverage_plot.plot_coverage(
                title, 'Position', 'Coverage', output_file, sampling_type,
                coverage_infos, image_format, rng=rng
            )

        return [x[0] for x in plots]


    def calculate_statistics(self, regions, output_file):
        """
        Calculate coverage statistics of every region from all sources and
        write them to a tab separated file

        Parameters
        ----------
        regions : list
            list of ChromosomeRegion
        output_file : str
            path to write statistics to

        Returns
        -------
        pd.DataFrame
            dataframe of statistics written

        Raises
        ------
        ProviderError
            if a source could not be read, raised after the statistics of
            the other sources have been written
        """
        start = time()

        # statistics are calculated from raw coverage, no sampling
        hts_coverage, om_coverage, error = self.collect_coverage(regions, 0, 0)

        statistics = Statistics(
            self.hts_names, optical_map=self.optical_map is not None)
        region_stats = statistics.calculate_region_stats(
            regions, om_coverage, hts_coverage)

        output_dir = os.path.dirname(output_file)

        if output_dir:
            utils.make_output_dir(output_dir)

        try:
            statistics.write_stats(region_stats, output_file)
        except OSError as err:
            raise OutputError(
                f"Failed to write statistics to {output_file}: {err}") from err

        log.info(
            f"Finished calculating statistics for {len(region_stats.index)} "
            f"regions in {round((time() - start), 2)}s, output written to "
            f"{output_file}"
        )

        if error:
            raise error

        return region_stats
