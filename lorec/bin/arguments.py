import argparse


def parse_args(argv=None):
    """
    Parse cmd line arguments

    Parameters
    ----------
    argv : list
        arguments to parse, if not given sys.argv is used

    Returns
    -------
    argparse.Namespace
        parsed command line arguments
    """

    parser = argparse.ArgumentParser(
        prog='lorec',
        description=(
            'Long read coverage plots and statistics from alignment and '
            'Bionano optical map data.'
        )
    )

    # parse each set of args for sub commands and generic args
    parser = generic_arguments(parser)
    parser = subParsers(parser).parser

    args = parser.parse_args(argv)

    if not args.sub:
        parser.error('a sub command must be given')

    if args.sub == 'plot_coverage' and not (args.region or args.region_file):
        parser.error('one or both of --region and --region_file must be given')

    args.hts_bam = split_bams(args.hts_bam)

    return args


def split_bams(bams) -> list:
    """
    Split alignment file arguments, allowing files to be given either
    space separated or joined with semicolons

    Parameters
    ----------
    bams : list
        list of alignment file arguments

    Returns
    -------
    list
        list of alignment file paths
    """
    if not bams:
        return []

    return [x.strip() for bam in bams for x in bam.split(';') if x.strip()]


def generic_arguments(parser):
    """
    Generic arguments not specific to any running mode

    Parameters
    ----------
    parser : argparse.ArgumentParser
        parser from argparse

    Returns
    -------
    argparse.ArgumentParser
        parser with generic args added
    """
    parser.add_argument(
        '--output_dir', '-od', required=False, default='./',
        help='output directory for coverage plots (default: current directory)'
    )
    parser.add_argument(
        '--sample_name', '-sn', required=False, default='',
        help='sample name for prefixing coverage plot titles and image names'
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='output debug level logging'
    )

    return parser


def source_arguments(parser):
    """
    Arguments for coverage sources, shared by all sub commands

    Parameters
    ----------
    parser : argparse.ArgumentParser
        sub command parser

    Returns
    -------
    argparse.ArgumentParser
        parser with source args added
    """
    parser.add_argument(
        '--hts_bam', '-bam', nargs='+',
        help=(
            'alignment (bam / cram) files, space or semicolon separated. '
            'Index files must be next to the alignment files.'
        )
    )
    parser.add_argument(
        '--cmap_ref', '-cmap_r',
        help='Bionano optical map reference cmap file'
    )
    parser.add_argument(
        '--cmap_qry', '-cmap_q',
        help='Bionano optical map query cmap file'
    )
    parser.add_argument(
        '--xmap', help='Bionano optical map xmap file'
    )
    parser.add_argument(
        '--threads', '-t', type=int, default=1,
        help='number of processes for calculating alignment coverage (default: 1)'
    )
    parser.add_argument(
        '--mapping_quality', '-mq', type=int, default=0,
        help='minimum read mapping quality (default: 0)'
    )

    return parser


class subParsers():
    """
    Sub parsers for running individual sub commands
    """
    def __init__(self, parser) -> None:
        """
        Parameters
        ----------
        parser : argparse.ArgumentParser
        parser from argparse
        """
        self.parser = parser
        self.subparsers = self.parser.add_subparsers(
            title='sub_command', dest='sub',
            help='coverage plotting and statistics sub-commands'
        )
        self.add_plot_coverage()
        self.add_calculate_stats()


    def add_plot_coverage(self):
        """
        Sub command for plotting coverage of a single region or regions file
        """
        plot_parser = self.subparsers.add_parser(
            'plot_coverage',
            help='plot coverage of a region or of each region in a file'
        )
        plot_parser = source_arguments(plot_parser)

        plot_parser.add_argument(
            '--region', '-r',
            help='chromosomal region of interest (e.g. chr1:1-1000)'
        )
        plot_parser.add_argument(
            '--region_file', '-rf',
            help=(
                'file of chromosomal regions of interest, one per line, '
                'optionally preceded by a name and tab (e.g. '
                'TP53<TAB>chr17:7571739-7590808)'
            )
        )
        plot_parser.add_argument(
            '--title', '-ti', default='',
            help='plot title (single region only)'
        )
        plot_parser.add_argument(
            '--sampling_type', '-st', default='random',
            help='sampling type [random|mean|median|none] (default: random)'
        )
        plot_parser.add_argument(
            '--plot_type', '-pt', default='histogram',
            help='plot type [histogram|line|spline] (default: histogram)'
        )
        plot_parser.add_argument(
            '--single_image', '-si', action='store_true',
            help='plot alignment and optical map coverage in a single image'
        )
        plot_parser.add_argument(
            '--hts_sampling_step', '-hss', type=int, default=100,
            help='no. of bases sampled to one point for alignment plots (default: 100)'
        )
        plot_parser.add_argument(
            '--om_sampling_step', '-bss', type=int, default=10,
            help='no. of label sites sampled to one point for optical map plots (default: 10)'
        )
        plot_parser.add_argument(
            '--coverage_limit_hts', '-hcl', type=int, default=0,
            help='maximum coverage axis value of alignment plots'
        )
        plot_parser.add_argument(
            '--coverage_limit_om', '-bcl', type=int, default=0,
            help='maximum coverage axis value of optical map plots'
        )
        plot_parser.add_argument(
            '--output_hts_img', '-img_hts',
            help='output alignment coverage image path (single region only)'
        )
        plot_parser.add_argument(
            '--output_om_img', '-img_om',
            help='output optical map coverage image path (single region only)'
        )
        plot_parser.add_argument(
            '--output_img', '-img',
            help='output combined coverage image path (single region only)'
        )
        plot_parser.add_argument(
            '--output_format', '-of', default='png',
            help='output image format [jpg|png|pdf|svg] (default: png)'
        )


    def add_calculate_stats(self):
        """
        Sub command for calculating coverage statistics of regions in a file
        """
        stats_parser = self.subparsers.add_parser(
            'calculate_stats',
            help=(
                'calculate coverage statistics (min, q1, median, q3, max, '
                'mean, stddev) of each region in a file'
            )
        )
        stats_parser = source_arguments(stats_parser)
        stats_parser.add_argument(
            '--region_file', '-rf', required=True,
            help='file of chromosomal regions of interest'
        )
        stats_parser.add_argument(
            '--statistics', '-stats', required=True,
            help='output statistics file'
        )
