"""
Coverage records passed from the providers to the sampling, statistics and
plotting functions, along with the option types used to control them
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

import numpy as np


HTS_COLOR = '#ff0000'
OM_COLOR = '#0000ff'


@dataclass(frozen=True, eq=False)
class CoverageInfo():
    """
    Raw coverage of one source over one region.

    For alignment sources coverage[i] is the depth at position start + i,
    for optical map sources it is the depth at each label site within the
    region (in order of position), with site_count set to the number of
    sites.
    """
    name: str
    start: int
    end: int
    coverage: np.ndarray
    sampling_size: int = 0
    coverage_limit: int = 0
    color: Optional[str] = None
    site_count: Optional[int] = None


    def annotate(self, **kwargs) -> 'CoverageInfo':
        """
        Return copy of the record with the given display fields set
        (i.e. name, sampling_size, coverage_limit or color)
        """
        return replace(self, **kwargs)


class _LenientEnum(Enum):
    """
    Enum parsed case insensitively from strings, with unrecognised values
    falling back to the default member
    """
    @classmethod
    def default(cls):
        raise NotImplementedError


    @classmethod
    def of(cls, value):
        if value is None:
            return cls.default()

        value = str(value).strip().lower()

        for member in cls:
            if member.value == value:
                return member

        return cls.default()


class SamplingType(_LenientEnum):
    NONE = 'none'
    RANDOM = 'random'
    MEAN = 'mean'
    MEDIAN = 'median'

    @classmethod
    def default(cls):
        return cls.RANDOM


class PlotType(_LenientEnum):
    HISTOGRAM = 'histogram'
    LINE = 'line'
    SPLINE = 'spline'

    @classmethod
    def default(cls):
        return cls.HISTOGRAM


class ImageFormat(_LenientEnum):
    JPG = 'jpg'
    PNG = 'png'
    PDF = 'pdf'
    SVG = 'svg'

    @classmethod
    def default(cls):
        return cls.PNG
