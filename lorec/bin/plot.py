"""
Functions to generate coverage plots of one or more sources over a region.

Each CoverageInfo is sampled down to a series of points, all series are
drawn on one set of axes with a shared position range and coverage limit,
and the figure is written out in the requested image format.
"""
import logging

import matplotlib
# use agg instead of tkinter for pyplot backend
matplotlib.use('agg')
import matplotlib.pyplot as plt
from matplotlib.ticker import MaxNLocator
import numpy as np
from scipy.interpolate import make_interp_spline

from .coverage import PlotType
from .errors import OutputError
from .sampling import reduce_coverage


log = logging.getLogger(__name__)


def domain_range(coverage_infos) -> tuple:
    """
    Position range covering all given coverage records

    Parameters
    ----------
    coverage_infos : list
        list of CoverageInfo

    Returns
    -------
    tuple
        lowest start and highest end of all records
    """
    return (
        min(x.start for x in coverage_infos),
        max(x.end for x in coverage_infos)
    )


def coverage_ceiling(coverage_infos):
    """
    Coverage axis limit for plot as the highest limit set, limits of 0
    are unset and ignored

    Parameters
    ----------
    coverage_infos : list
        list of CoverageInfo

    Returns
    -------
    int | None
        coverage limit, None if no record has a limit (auto scale)
    """
    ceiling = max((x.coverage_limit for x in coverage_infos), default=0)

    return ceiling if ceiling > 0 else None


def series_colors(coverage_infos):
    """
    Colors to draw each series with, only used if every record has
    a color set

    Parameters
    ----------
    coverage_infos : list
        list of CoverageInfo

    Returns
    -------
    list | None
        list of colors in order of records, None if any are missing
    """
    if any(x.color is None for x in coverage_infos):
        return None

    return [x.color for x in coverage_infos]


class CoveragePlot():
    """
    Plots sampled coverage of one or more sources into one image
    """
    def __init__(self, plot_type=PlotType.HISTOGRAM, width=1600, height=1200) -> None:
        """
        Parameters
        ----------
        plot_type : PlotType
            type of plot to draw each series as
        width : int
            width of image in pixels
        height : int
            height of image in pixels
        """
        self.plot_type = plot_type
        self.width = width
        self.height = height
        self.dpi = 100


    def plot_coverage(
            self, title, x_label, y_label, output_file, sampling_type,
            coverage_infos, image_format, rng=None) -> None:
        """
        Sample and plot coverage of all given records to a single image

        Parameters
        ----------
        title : str
            plot title
        x_label : str
            position axis label
        y_label : str
            coverage axis label
        output_file : str
            path to write image to
        sampling_type : SamplingType
            sampling to reduce each coverage record with
        coverage_infos : list
            list of CoverageInfo to plot, None entries are skipped
        image_format : ImageFormat
            format of image to write
        rng : np.random.Generator
            random generator passed to the sampler
        """
        coverage_infos = [x for x in coverage_infos if x is not None]

        if not coverage_infos:
            log.warning(f"No coverage to plot for {output_file}")
            return

        fig, ax = plt.subplots(
            figsize=(self.width / self.dpi, self.height / self.dpi),
            dpi=self.dpi
        )

        colors = series_colors(coverage_infos)

        for idx, coverage_info in enumerate(coverage_infos):
            positions, values = reduce_coverage(
                coverage_info, sampling_type, rng=rng)
            color = colors[idx] if colors else None

            self._draw_series(ax, positions, values, coverage_info.name, color)

        ax.set_xlim(*domain_range(coverage_infos))

        ceiling = coverage_ceiling(coverage_infos)

        if ceiling:
            ax.set_ylim(bottom=0, top=ceiling)
            ax.yaxis.set_major_locator(MaxNLocator(integer=True))

        ax.set_title(title, fontsize=25)
        ax.set_xlabel(x_label, fontsize=25)
        ax.set_ylabel(y_label, fontsize=25)
        ax.tick_params(axis='both', labelsize=15)
        ax.ticklabel_format(axis='x', style='plain', useOffset=False)
        ax.legend(fontsize=15)

        log.info(f"Plotting image (format {image_format.value}): {output_file}")

        try:
            fig.savefig(output_file, format=image_format.value, dpi=self.dpi)
        except OSError as err:
            raise OutputError(f"Failed to write image {output_file}: {err}") from err
        finally:
            plt.close(fig)


    def _draw_series(self, ax, positions, values, label, color) -> None:
        """
        Draw one sampled series on the axes in the style of the plot type
        """
        if self.plot_type == PlotType.LINE:
            ax.step(
                positions, values, where='post', label=label, color=color,
                alpha=0.85
            )
        elif self.plot_type == PlotType.SPLINE:
            if len(positions) >= 4:
                smooth_x = np.linspace(positions[0], positions[-1], len(positions) * 10)
                smooth_y = make_interp_spline(positions, values, k=3)(smooth_x)
            else:
                smooth_x, smooth_y = positions, values

            ax.plot(smooth_x, smooth_y, label=label, color=color, alpha=0.85)
        else:
            ax.fill_between(
                positions, values, step='post', label=label, color=color,
                alpha=0.85
            )
