"""
Functions relating to parsing chromosomal regions of interest, either
given as a single region string or as a file of (optionally named) regions
"""
import logging
import re

from .errors import ConfigurationError


log = logging.getLogger(__name__)

REGION_REGEX = re.compile(r'^(?P<chrom>[^:\s]+):(?P<start>[\d,]+)-(?P<end>[\d,]+)$')


class ChromosomeRegion():
    """
    Region of a chromosome with 1-based inclusive start and end coordinates.

    The display name does not form part of the identity of the region so it
    may be set after the region has been used as a lookup key.
    """
    def __init__(self, chromosome, start, end, name=None) -> None:
        self.chromosome = chromosome
        self.start = int(start)
        self.end = int(end)
        self.name = name


    @property
    def length(self) -> int:
        return self.end - self.start + 1


    def __eq__(self, other) -> bool:
        if not isinstance(other, ChromosomeRegion):
            return NotImplemented

        return (self.chromosome, self.start, self.end) == (
            other.chromosome, other.start, other.end)


    def __hash__(self) -> int:
        return hash((self.chromosome, self.start, self.end))


    def __str__(self) -> str:
        return f"{self.chromosome}:{self.start}-{self.end}"


    def __repr__(self) -> str:
        return f"ChromosomeRegion({self}, name={self.name!r})"


def parse_region(region):
    """
    Parse region string in the format chrom:start-end

    Parameters
    ----------
    region : str
        region string (e.g. chr17:7571739-7590808)

    Returns
    -------
    ChromosomeRegion | None
        parsed region, None if the string is not a valid region
    """
    if not region:
        return None

    match = REGION_REGEX.match(region.strip())

    if not match:
        return None

    start = int(match.group('start').replace(',', ''))
    end = int(match.group('end').replace(',', ''))

    if start > end:
        return None

    return ChromosomeRegion(match.group('chrom'), start, end)


def read_region_file(region_file) -> list:
    """
    Read in file of regions of interest, each line being either a single
    region or a display name and region separated by a tab:

        chr17:7571739-7590808
        TP53    chr17:7571739-7590808

    Lines with invalid regions are logged and skipped.

    Parameters
    ----------
    region_file : str
        path to region file

    Returns
    -------
    list
        list of ChromosomeRegion objects in order of the file

    Raises
    ------
    ConfigurationError
        if the file can not be read
    """
    regions = []

    try:
        with open(region_file, encoding='utf-8') as file:
            lines = file.read().splitlines()
    except (OSError, UnicodeDecodeError) as err:
        raise ConfigurationError(
            f"Failed to read region file {region_file}: {err}") from err

    for line in lines:
        if not line.strip() or line.startswith('#'):
            continue

        values = line.split('\t')

        if len(values) == 1:
            region = parse_region(values[0])
        else:
            region = parse_region(values[1])

        if region is None:
            log.error(f"Invalid region: {line}")
            continue

        if len(values) > 1 and values[0].strip():
            region.name = values[0].strip()

        regions.append(region)

    return regions


def get_regions(region=None, region_file=None) -> list:
    """
    Build list of regions to process from a single region string and / or
    a region file

    Parameters
    ----------
    region : str
        single region string
    region_file : str
        path to region file

    Returns
    -------
    list
        list of ChromosomeRegion objects

    Raises
    ------
    ConfigurationError
        if the single region is invalid or no regions were given
    """
    regions = []

    if region:
        parsed = parse_region(region)

        if parsed is None:
            raise ConfigurationError(f"Invalid region: {region}")

        regions.append(parsed)

    if region_file:
        regions.extend(read_region_file(region_file))

    if not regions:
        raise ConfigurationError(
            "No contigs / regions found, a region or region file with at "
            "least one valid region must be given"
        )

    return regions
