"""
OIFITS file input/output based on astropy.io.fits.
"""

from .fits_io import TABLE_CLASSES, read_oifits, write_oifits

__all__ = ["TABLE_CLASSES", "read_oifits", "write_oifits"]
