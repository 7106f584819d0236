"""
Functions relating to loading of Bionano optical map files (cmap and xmap)
"""
import numpy as np
import pandas as pd

from .errors import ProviderError


class LoadData():
    def __init__(self):
        self.dtypes = {
            "CMapId": np.int64,
            "ContigLength": float,
            "NumSites": np.int64,
            "SiteID": np.int64,
            "LabelChannel": np.int64,
            "Position": float,
            "StdDev": float,
            "Coverage": float,
            "Occurrence": float,
            "XmapEntryID": np.int64,
            "QryContigID": np.int64,
            "RefContigID": np.int64,
            "QryStartPos": float,
            "QryEndPos": float,
            "RefStartPos": float,
            "RefEndPos": float,
            "Orientation": str,
            "Confidence": float,
            "HitEnum": str,
            "QryLen": float,
            "RefLen": float,
            "Alignment": str
        }


    def filter_dtypes(self, columns) -> dict:
        """
        Filter list of dtypes to columns present in file

        Parameters
        ----------
        columns : list
            column names to select required dtypes for

        Returns
        -------
        dict
            dict of column names and dtypes
        """
        return {k: v for k, v in self.dtypes.items() if k in columns}


    def read_bionano_file(self, bionano_file, required) -> pd.DataFrame:
        """
        Read in Bionano cmap / xmap file, column names are taken from the
        '#h' header line, all other '#' lines are skipped

        Parameters
        ----------
        bionano_file : str
            path to cmap / xmap file
        required : list
            column names that must be present in the file

        Returns
        -------
        pd.DataFrame
            dataframe of file contents

        Raises
        ------
        ProviderError
            if the file can not be read or is missing required columns
        """
        header = None

        try:
            with open(bionano_file) as file:
                for line in file:
                    if line.startswith('#h'):
                        header = line[2:].strip().split('\t')
                        break
        except (OSError, ValueError) as err:
            raise ProviderError(
                f"Failed to read Bionano file {bionano_file}: {err}") from err

        if not header:
            raise ProviderError(
                f"No '#h' header line found in Bionano file {bionano_file}")

        missing = [x for x in required if x not in header]

        if missing:
            raise ProviderError(
                f"Required column(s) missing from {bionano_file}: {missing}")

        try:
            return pd.read_csv(
                bionano_file, sep='\t', comment='#', header=None,
                names=header, dtype=self.filter_dtypes(header)
            )
        except (OSError, ValueError) as err:
            raise ProviderError(
                f"Failed to read Bionano file {bionano_file}: {err}") from err


    def read_cmap(self, cmap) -> pd.DataFrame:
        """
        Read in cmap file of label sites for each map, dropping the end of
        contig rows (label channel 0)

        Parameters
        ----------
        cmap : str
            path to cmap file

        Returns
        -------
        pd.DataFrame
            dataframe of label sites
        """
        sites = self.read_bionano_file(
            cmap, required=['CMapId', 'LabelChannel', 'Position'])

        return sites[sites['LabelChannel'] != 0].reset_index(drop=True)


    def read_xmap(self, xmap) -> pd.DataFrame:
        """
        Read in xmap file of query map to reference alignments

        Parameters
        ----------
        xmap : str
            path to xmap file

        Returns
        -------
        pd.DataFrame
            dataframe of alignments
        """
        return self.read_bionano_file(
            xmap, required=['QryContigID', 'RefContigID', 'RefStartPos', 'RefEndPos']
        )
