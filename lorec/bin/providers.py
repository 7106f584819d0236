"""
Coverage providers, each returning raw coverage of a chromosomal interval
as a CoverageInfo.

All providers share the same interface of open(), get_interval_coverage()
and close(), and may be used as context managers so that resources are
released once a source has been processed for all regions.

    - AlignmentCoverage: per base depth from a BAM / CRAM file with pysam
    - AlignmentCoverageMT: as above, with the interval split across a
      pool of worker processes
    - OpticalMapCoverage: per label site depth of Bionano optical map
      alignments from reference / query cmap and xmap files
"""
from functools import partial
import logging
import multiprocessing
import re

import numpy as np
import pysam

from .coverage import CoverageInfo
from .errors import ProviderError
from .load import LoadData


log = logging.getLogger(__name__)

# Bionano reference contig IDs for non-numeric chromosomes
BIONANO_CONTIGS = {'X': 23, 'Y': 24, 'M': 25, 'MT': 25}


class CoverageProvider():
    """
    Context manager support shared by all providers
    """
    def __enter__(self):
        self.open()
        return self


    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False


def passes_filters(mapping_quality, read) -> bool:
    """
    Read callback for pysam count_coverage, excludes unmapped, secondary,
    supplementary, QC fail and duplicate reads and those below the minimum
    mapping quality

    Parameters
    ----------
    mapping_quality : int
        minimum mapping quality of reads to count
    read : pysam.AlignedSegment
        read to check

    Returns
    -------
    bool
        True if read should be counted
    """
    return not (
        read.is_unmapped or read.is_secondary or read.is_supplementary or
        read.is_qcfail or read.is_duplicate
    ) and read.mapping_quality >= mapping_quality


def alignment_depth(bam, contig, start, stop, mapping_quality) -> np.ndarray:
    """
    Calculate per base depth of 0-based half open interval of contig,
    positions past the end of the contig have a depth of 0

    Parameters
    ----------
    bam : pysam.AlignmentFile
        open alignment file
    contig : str
        contig name
    start : int
        0-based start of interval
    stop : int
        0-based end of interval (exclusive)
    mapping_quality : int
        minimum mapping quality of reads to count

    Returns
    -------
    np.ndarray
        array of depth at each position of the interval, always of length
        stop - start
    """
    depth = np.zeros(stop - start, dtype=np.int64)

    # count_coverage clips at the contig end
    contig_stop = min(stop, bam.get_reference_length(contig))

    if contig_stop <= start:
        return depth

    counts = bam.count_coverage(
        contig, start, contig_stop, quality_threshold=0,
        read_callback=partial(passes_filters, mapping_quality)
    )

    depth[:contig_stop - start] = np.sum(
        [np.asarray(x, dtype=np.int64) for x in counts], axis=0)

    return depth


class AlignmentCoverage(CoverageProvider):
    """
    Single process per base coverage from an indexed BAM / CRAM file
    """
    def __init__(self, bam, mapping_quality=0) -> None:
        self.bam = bam
        self.mapping_quality = mapping_quality
        self._alignment = None


    def open(self) -> None:
        try:
            self._alignment = pysam.AlignmentFile(self.bam)
        except (OSError, ValueError) as err:
            raise ProviderError(
                f"Failed to open alignment file {self.bam}: {err}") from err


    def close(self) -> None:
        if self._alignment is not None:
            self._alignment.close()
            self._alignment = None


    def get_interval_coverage(self, chromosome, start, end):
        """
        Get per base coverage of 1-based inclusive interval

        Parameters
        ----------
        chromosome : str
            contig name
        start : int
            start of interval
        end : int
            end of interval

        Returns
        -------
        CoverageInfo | None
            coverage of interval, None if the contig is not in the file
        """
        if self._alignment is None:
            raise ProviderError(f"Alignment file {self.bam} is not open")

        if chromosome not in self._alignment.references:
            log.warning(f"Contig {chromosome} not found in {self.bam}")
            return None

        try:
            depth = alignment_depth(
                self._alignment, chromosome, start - 1, end,
                self.mapping_quality
            )
        except (OSError, ValueError) as err:
            raise ProviderError(
                f"Failed to calculate coverage of {chromosome}:{start}-{end} "
                f"from {self.bam}: {err}"
            ) from err

        return CoverageInfo(name=self.bam, start=start, end=end, coverage=depth)


# alignment file opened once in each worker process of AlignmentCoverageMT
_worker_alignment = None


def _init_worker(bam) -> None:
    global _worker_alignment
    _worker_alignment = pysam.AlignmentFile(bam)


def _worker_depth(contig, start, stop, mapping_quality) -> np.ndarray:
    return alignment_depth(_worker_alignment, contig, start, stop, mapping_quality)


class AlignmentCoverageMT(CoverageProvider):
    """
    Per base coverage from an indexed BAM / CRAM file, splitting each
    interval into equal chunks calculated in parallel
    """
    def __init__(self, bam, threads, mapping_quality=0) -> None:
        self.bam = bam
        self.threads = threads
        self.mapping_quality = mapping_quality
        self._references = None
        self._pool = None


    def open(self) -> None:
        try:
            with pysam.AlignmentFile(self.bam) as alignment:
                self._references = set(alignment.references)
        except (OSError, ValueError) as err:
            raise ProviderError(
                f"Failed to open alignment file {self.bam}: {err}") from err

        self._pool = multiprocessing.Pool(
            self.threads, initializer=_init_worker, initargs=(self.bam,)
        )


    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool.join()
            self._pool = None


    def get_interval_coverage(self, chromosome, start, end):
        """
        Get per base coverage of 1-based inclusive interval

        Parameters
        ----------
        chromosome : str
            contig name
        start : int
            start of interval
        end : int
            end of interval

        Returns
        -------
        CoverageInfo | None
            coverage of interval, None if the contig is not in the file
        """
        if self._pool is None:
            raise ProviderError(f"Alignment file {self.bam} is not open")

        if chromosome not in self._references:
            log.warning(f"Contig {chromosome} not found in {self.bam}")
            return None

        # split interval into one chunk per process, keeping order
        bounds = np.linspace(start - 1, end, self.threads + 1, dtype=np.int64)
        chunks = [
            (chromosome, int(x), int(y), self.mapping_quality)
            for x, y in zip(bounds[:-1], bounds[1:]) if y > x
        ]

        try:
            depth = np.concatenate(self._pool.starmap(_worker_depth, chunks))
        except (OSError, ValueError) as err:
            raise ProviderError(
                f"Failed to calculate coverage of {chromosome}:{start}-{end} "
                f"from {self.bam}: {err}"
            ) from err

        return CoverageInfo(name=self.bam, start=start, end=end, coverage=depth)


def open_alignment_provider(bam, threads=1, mapping_quality=0):
    """
    Select alignment coverage provider from the number of threads

    Parameters
    ----------
    bam : str
        path to alignment file
    threads : int
        number of processes to calculate coverage with
    mapping_quality : int
        minimum mapping quality of reads to count

    Returns
    -------
    AlignmentCoverage | AlignmentCoverageMT
        unopened coverage provider
    """
    if threads is None or threads <= 1:
        return AlignmentCoverage(bam, mapping_quality=mapping_quality)

    return AlignmentCoverageMT(bam, threads, mapping_quality=mapping_quality)


def chromosome_to_contig(chromosome):
    """
    Convert chromosome name to Bionano reference contig ID
    (i.e. chr1 -> 1, X -> 23, chrY -> 24)

    Parameters
    ----------
    chromosome : str
        chromosome name

    Returns
    -------
    int | None
        contig ID, None if chromosome can not be converted
    """
    name = re.sub(r'^chr', '', str(chromosome).strip(), flags=re.IGNORECASE)

    if name.isdigit():
        return int(name)

    return BIONANO_CONTIGS.get(name.upper())


class OpticalMapCoverage(CoverageProvider):
    """
    Optical map coverage at each reference label site, calculated as the
    number of query maps aligned across the site
    """
    def __init__(self, cmap_reference, cmap_query, xmap) -> None:
        self.cmap_reference = cmap_reference
        self.cmap_query = cmap_query
        self.xmap = xmap
        self._sites = None
        self._alignments = None


    def open(self) -> None:
        loader = LoadData()

        reference = loader.read_cmap(self.cmap_reference)
        query = loader.read_cmap(self.cmap_query)
        xmap = loader.read_xmap(self.xmap)

        # only count alignments of query maps present in the query cmap
        xmap = xmap[xmap['QryContigID'].isin(query['CMapId'].unique())]

        self._sites = {
            contig: np.sort(sites['Position'].to_numpy())
            for contig, sites in reference.groupby('CMapId')
        }
        self._alignments = {
            contig: (
                np.sort(alignments['RefStartPos'].to_numpy()),
                np.sort(alignments['RefEndPos'].to_numpy())
            )
            for contig, alignments in xmap.groupby('RefContigID')
        }

        log.info(
            f"Loaded {len(reference.index)} reference sites and "
            f"{len(xmap.index)} alignments from {self.xmap}"
        )


    def close(self) -> None:
        self._sites = None
        self._alignments = None


    def get_interval_coverage(self, chromosome, start, end):
        """
        Get optical map coverage at each reference site in 1-based
        inclusive interval

        Parameters
        ----------
        chromosome : str
            chromosome name
        start : int
            start of interval
        end : int
            end of interval

        Returns
        -------
        CoverageInfo | None
            coverage at each site, None if there are no sites in interval
        """
        if self._sites is None:
            raise ProviderError(f"Optical map {self.cmap_reference} is not open")

        contig = chromosome_to_contig(chromosome)
        positions = self._sites.get(contig)

        if positions is None:
            log.warning(f"Contig {chromosome} not found in {self.cmap_reference}")
            return None

        sites = positions[(positions >= start) & (positions <= end)]

        if not sites.size:
            return None

        empty = np.array([], dtype=float)
        ref_starts, ref_ends = self._alignments.get(contig, (empty, empty))

        # alignments starting at or before each site minus those ending
        # before it gives the number spanning the site
        depth = (
            np.searchsorted(ref_starts, sites, side='right') -
            np.searchsorted(ref_ends, sites, side='left')
        ).astype(np.int64)

        return CoverageInfo(
            name='OM', start=start, end=end, coverage=depth,
            site_count=int(sites.size)
        )
