"""
Read and write OIFITS files with astropy.

Only the OIFITS extensions known to the model are loaded; other extensions
(images, OI_INSPOL, instrument specific tables) are skipped.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Type, Union

import numpy as np
from astropy.io import fits

from ..model import (
    OIArray,
    OICorr,
    OIFitsFile,
    OIFitsStandard,
    OIFlux,
    OIPrimaryHDU,
    OIT3,
    OITable,
    OITarget,
    OIVis,
    OIVis2,
    OIWavelength,
)
from ..model.standard import CONTENT_OIFITS2
from ..processing.base import OIFitsFormatError

logger = logging.getLogger(__name__)

TABLE_CLASSES: Dict[str, Type[OITable]] = {
    cls.EXTNAME: cls
    for cls in (OITarget, OIWavelength, OIArray, OICorr, OIVis, OIVis2, OIT3, OIFlux)
}

# header cards rebuilt by astropy from the column definitions
_STRUCTURAL = re.compile(
    r"^(XTENSION|BITPIX|NAXIS\d*|PCOUNT|GCOUNT|TFIELDS|EXTNAME|EXTVER|"
    r"T(TYPE|FORM|UNIT|DIM|NULL|SCAL|ZERO|DISP)\d+|SIMPLE|EXTEND|CHECKSUM|DATASUM|"
    r"COMMENT|HISTORY)$"
)

_FORMAT_CODES = {
    ("b", 1): "L",
    ("u", 1): "B",
    ("i", 1): "B",
    ("i", 2): "I",
    ("i", 4): "J",
    ("i", 8): "K",
    ("f", 4): "E",
    ("f", 8): "D",
    ("c", 8): "C",
    ("c", 16): "M",
}

PathLike = Union[str, Path]


def _keywords(header: fits.Header) -> Dict[str, object]:
    return {
        key: value
        for key, value in header.items()
        if key and not _STRUCTURAL.match(key)
    }


def _native(values) -> np.ndarray:
    arr = np.array(values)
    if arr.dtype.kind in "SU":
        return np.char.strip(arr.astype(str))
    if arr.dtype.byteorder not in ("=", "|"):
        arr = arr.astype(arr.dtype.newbyteorder("="))
    return arr


def _read_table(hdu: fits.BinTableHDU, cls: Type[OITable]) -> OITable:
    columns = {}
    units = {}
    for col in hdu.columns:
        if hdu.data is None:
            columns[col.name] = np.zeros(0, dtype=col.dtype)
        else:
            columns[col.name] = _native(hdu.data[col.name])
        if col.unit:
            units[col.name] = col.unit
    table = cls(keywords=_keywords(hdu.header), columns=columns, units=units)
    missing = table.missing_columns()
    if missing:
        logger.warning("%s: missing columns %s", table, list(missing))
    return table


def _detect_version(primary: Dict[str, object], tables: List[OITable]) -> OIFitsStandard:
    if str(primary.get("CONTENT", "")).strip().upper() == CONTENT_OIFITS2:
        return OIFitsStandard.VERSION_2
    revn = max((int(t.get_keyword("OI_REVN", 1) or 1) for t in tables), default=1)
    return OIFitsStandard.VERSION_2 if revn >= 2 else OIFitsStandard.VERSION_1


def read_oifits(path: PathLike) -> OIFitsFile:
    """Load an OIFITS file into the in-memory model."""
    path = Path(path)
    try:
        with fits.open(path, memmap=False) as hdul:
            primary = _keywords(hdul[0].header)
            tables = []
            for hdu in hdul[1:]:
                cls = TABLE_CLASSES.get(hdu.name.upper())
                if cls is None or not isinstance(hdu, fits.BinTableHDU):
                    logger.debug("Skipping extension %s in %s", hdu.name, path)
                    continue
                tables.append(_read_table(hdu, cls))
    except (OSError, ValueError) as e:
        raise OIFitsFormatError(f"Cannot read OIFITS file {path}: {e}") from e

    if not tables:
        raise OIFitsFormatError(f"No OIFITS table found in {path}")

    oifits = OIFitsFile(_detect_version(primary, tables), source=path)
    if primary:
        oifits.primary_hdu = OIPrimaryHDU(primary)
    for table in tables:
        if not oifits.version.supports(table.extname):
            logger.warning("Skipping %s not allowed in %s", table, oifits)
            continue
        try:
            oifits.add_table(table)
        except ValueError as e:
            raise OIFitsFormatError(f"{path}: {e}") from e

    logger.info("Loaded %s", oifits)
    return oifits


def _fits_format(name: str, values: np.ndarray) -> str:
    if values.dtype.kind == "S":
        return f"{max(values.dtype.itemsize, 1)}A"
    repeat = int(np.prod(values.shape[1:])) if values.ndim > 1 else 1
    code = _FORMAT_CODES.get((values.dtype.kind, values.dtype.itemsize))
    if code is None:
        raise OIFitsFormatError(f"Unsupported dtype {values.dtype} for column {name}")
    return f"{repeat}{code}" if repeat != 1 else code


def _fits_value(value):
    if isinstance(value, np.generic):
        return value.item()
    return value


def _table_hdu(table: OITable, extver: int) -> fits.BinTableHDU:
    columns = []
    for name, values in table.columns.items():
        if values.dtype.kind == "U":
            try:
                values = np.char.encode(values, "ascii")
            except UnicodeEncodeError as e:
                raise OIFitsFormatError(
                    f"{table.extname}: column {name} is not ASCII"
                ) from e
        dim = None
        if values.ndim > 2:
            dim = "(" + ",".join(str(n) for n in reversed(values.shape[1:])) + ")"
        columns.append(
            fits.Column(
                name=name,
                format=_fits_format(name, values),
                unit=table.units.get(name),
                dim=dim,
                array=values,
            )
        )
    hdu = fits.BinTableHDU.from_columns(columns, name=table.extname)
    hdu.header["EXTVER"] = extver
    for key, value in table.keywords.items():
        hdu.header[key] = _fits_value(value)
    return hdu


def write_oifits(oifits: OIFitsFile, path: PathLike, overwrite: bool = False) -> Path:
    """Write an in-memory OIFITS file to disk."""
    path = Path(path)
    primary = fits.PrimaryHDU()
    if oifits.primary_hdu is not None:
        for key, value in oifits.primary_hdu.keywords.items():
            primary.header[key] = _fits_value(value)

    hdus = [primary]
    extvers: Dict[str, int] = {}
    for table in oifits:
        extvers[table.extname] = extvers.get(table.extname, 0) + 1
        hdus.append(_table_hdu(table, extvers[table.extname]))

    path.parent.mkdir(parents=True, exist_ok=True)
    fits.HDUList(hdus).writeto(path, overwrite=overwrite)
    logger.info("Saved %s with %d tables to %s", oifits, len(oifits), path)
    return path
