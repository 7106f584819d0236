import os
from pathlib import PurePath

from .errors import OutputError


def hts_source_names(bams) -> list:
    """
    Generate display names of alignment sources from file names, as
    hts_<file name without extension>, suffixing duplicate names with
    their position so each source has its own statistics columns

        /data/sample1.bam    ->  hts_sample1
        /data2/sample1.bam   ->  hts_sample1_2

    Parameters
    ----------
    bams : list
        paths to alignment files

    Returns
    -------
    list
        names in order of given files
    """
    names = []

    for idx, bam in enumerate(bams, 1):
        name = f"hts_{PurePath(bam).stem}"

        if name in names:
            name = f"{name}_{idx}"

        names.append(name)

    return names


def region_file_name(region) -> str:
    """
    Region string safe for use in file names (chr1:1-100 -> chr1_1-100)
    """
    return str(region).replace(':', '_')


def output_prefix(sample_name, region) -> str:
    """
    Prefix of region output files, sample name followed by region display
    name if the region has one
    """
    if not region.name:
        return sample_name

    return f"{sample_name}_{region.name}" if sample_name else region.name


def output_images(output_dir, sample_name, region, image_format) -> dict:
    """
    Build output image paths of a region for each plot mode

    Parameters
    ----------
    output_dir : str
        directory to write images to
    sample_name : str
        sample name to prefix images with
    region : ChromosomeRegion
        region being plotted
    image_format : ImageFormat
        format of images, used for extension

    Returns
    -------
    dict
        paths for 'hts', 'om' and combined ('single') images
    """
    prefix = output_prefix(sample_name, region)
    region_name = region_file_name(region)
    extension = image_format.value

    return {
        'hts': os.path.join(output_dir, f"{prefix}_hts_{region_name}.{extension}"),
        'om': os.path.join(output_dir, f"{prefix}_om_{region_name}.{extension}"),
        'single': os.path.join(output_dir, f"{prefix}_{region_name}.{extension}")
    }


def plot_title(sample_name, region) -> str:
    return ' '.join(str(x) for x in (sample_name, region.name, region) if x)


def make_output_dir(output_dir) -> None:
    """
    Create output directory if it does not already exist

    Raises
    ------
    OutputError
        if the directory can not be created
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as err:
        raise OutputError(
            f"Failed to create output directory {output_dir}: {err}") from err
