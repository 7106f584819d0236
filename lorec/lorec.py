"""
Main script to control all running of lorec
"""
import logging
import sys
from time import time

from lorec.bin import arguments, regions
from lorec.bin.aggregate import CoverageAggregator
from lorec.bin.coverage import ImageFormat, PlotType, SamplingType
from lorec.bin.errors import LorecError


log = logging.getLogger('lorec')


class SubCommands():
    """
    Functions to individual sub parts of lorec (i.e. plot coverage of
    regions, calculate region statistics)
    """
    @staticmethod
    def build_aggregator(args, **kwargs) -> CoverageAggregator:
        """
        Build aggregator of coverage sources from cmd line args

        Parameters
        ----------
        args : argparse.Namespace
            parsed cmd line args
        kwargs
            extra arguments passed to CoverageAggregator

        Returns
        -------
        CoverageAggregator
            aggregator of configured coverage sources
        """
        return CoverageAggregator(
            alignment_files=args.hts_bam,
            optical_map=(args.cmap_ref, args.cmap_qry, args.xmap),
            threads=args.threads,
            mapping_quality=args.mapping_quality,
            **kwargs
        )


    def plot_coverage(self, args) -> list:
        """
        Calls functions to plot coverage of a single region and / or all
        regions in a region file

        Parameters
        ----------
        args : argparse.Namespace
            parsed cmd line args

        Returns
        -------
        list
            paths of images written
        """
        aggregator = self.build_aggregator(
            args,
            hts_sampling_size=args.hts_sampling_step,
            om_sampling_size=args.om_sampling_step,
            hts_coverage_limit=args.coverage_limit_hts,
            om_coverage_limit=args.coverage_limit_om
        )

        plot_args = {
            'output_dir': args.output_dir,
            'sample_name': args.sample_name,
            'sampling_type': SamplingType.of(args.sampling_type),
            'plot_type': PlotType.of(args.plot_type),
            'image_format': ImageFormat.of(args.output_format),
            'single_image': args.single_image
        }

        images = []

        # single region and region file may both be given, each is plotted
        if args.region:
            images.extend(aggregator.plot_region(
                regions.get_regions(region=args.region)[0],
                title=args.title,
                output_hts_img=args.output_hts_img,
                output_om_img=args.output_om_img,
                output_img=args.output_img,
                **plot_args
            ))

        if args.region_file:
            images.extend(aggregator.plot_regions(
                regions.get_regions(region_file=args.region_file), **plot_args))

        return images


    def calculate_stats(self, args):
        """
        Calls functions to calculate coverage statistics of all regions in
        a region file

        Parameters
        ----------
        args : argparse.Namespace
            parsed cmd line args

        Returns
        -------
        pd.DataFrame
            dataframe of region statistics
        """
        aggregator = self.build_aggregator(args)

        return aggregator.calculate_statistics(
            regions.get_regions(region_file=args.region_file),
            args.statistics
        )


def call_sub_command(args):
    """
    Calls given subcommand dependent on cmd line args

    Parameters
    ----------
    args : argparse.Namespace
        argparse NameSpace object
    """
    sub = SubCommands()
    start = time()

    if args.sub == 'plot_coverage':
        images = sub.plot_coverage(args)

        log.info(
            f"Finished plotting coverage in {round((time() - start), 2)}s, "
            f"{len(images)} image(s) written"
        )

    elif args.sub == 'calculate_stats':
        sub.calculate_stats(args)

        log.info(
            f"Finished calculating coverage statistics in "
            f"{round((time() - start), 2)}s, output written to {args.statistics}"
        )


def main(argv=None) -> int:
    """
    Main function to do all things lorec
    """
    args = arguments.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        call_sub_command(args)
    except LorecError as err:
        log.error(err)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
