"""
Fixtures and test configuration for the oimerge test suite.
"""

import logging
import tempfile
from pathlib import Path

import numpy as np
import pytest

from oimerge.model import (
    OIArray,
    OICorr,
    OIFitsCollection,
    OIFitsFile,
    OIFitsStandard,
    OIPrimaryHDU,
    OITarget,
    OIVis2,
    OIWavelength,
    Target,
    TargetManager,
)
from oimerge.settings import Settings

# MJD at 03:00 UT of three consecutive nights
NIGHT_1 = 58000.125
NIGHT_2 = 58001.125
NIGHT_3 = 58002.125


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def test_settings():
    """Create test settings with explicit values."""
    return Settings(
        log_level="DEBUG",
        target_match_tolerance_arcsec=1.0,
        undefined_arrname="UNDEFINED",
    )


@pytest.fixture
def targets():
    """Three well separated stars."""
    return {
        "A": Target("ALPHA", raep0=10.0, decep0=-20.0),
        "B": Target("BETA", raep0=50.0, decep0=5.0),
        "C": Target("GAMMA", raep0=120.0, decep0=45.0),
    }


@pytest.fixture
def target_manager():
    return TargetManager(tolerance_arcsec=1.0)


def build_oifits(
    targets,
    rows,
    insname="LOW",
    eff_wave=(1.5e-6, 1.6e-6, 1.7e-6),
    arrname="VLTI",
    stations=("A0", "B2", "C1"),
    version=OIFitsStandard.VERSION_1,
    corr=None,
    target_ids=None,
    source=None,
):
    """
    Build an in-memory OIFITS file.

    ``rows`` lists ``(target_id, mjd)`` tuples of one OI_VIS2 table;
    ``corr`` optionally gives ``(corrname, values)`` to add an OI_CORR table
    referenced by the data table.
    """
    oi_revn = 2 if version is OIFitsStandard.VERSION_2 else 1
    oifits = OIFitsFile(version, source=source)
    if version is OIFitsStandard.VERSION_2:
        oifits.primary_hdu = OIPrimaryHDU.for_version(version)

    oifits.add_table(OITarget.from_targets(targets, target_ids, oi_revn=oi_revn))
    oifits.add_table(OIWavelength.create(insname, eff_wave, oi_revn=oi_revn))
    if arrname is not None:
        oifits.add_table(OIArray.create(arrname, stations, oi_revn=oi_revn))

    corrname = None
    if corr is not None:
        corrname, values = corr
        values = np.asarray(values, dtype=float)
        oifits.add_table(
            OICorr.create(
                corrname,
                ndata=len(values) + 1,
                iindx=np.arange(1, len(values) + 1),
                jindx=np.arange(2, len(values) + 2),
                corr=values,
                oi_revn=oi_revn,
            )
        )

    nwave = len(eff_wave)
    ids = [r[0] for r in rows]
    mjds = [r[1] for r in rows]
    vis2 = np.arange(len(rows) * nwave, dtype=float).reshape(len(rows), nwave)
    oifits.add_table(
        OIVis2.create(
            insname,
            arrname,
            target_id=ids,
            mjd=mjds,
            data={"VIS2DATA": vis2, "VIS2ERR": vis2 / 10.0},
            nwave=nwave,
            corrname=corrname,
            oi_revn=oi_revn,
        )
    )
    return oifits


@pytest.fixture
def oifits_factory():
    """Factory building synthetic OIFITS files (see ``build_oifits``)."""
    return build_oifits


@pytest.fixture
def scenario_files(targets):
    """F1: targets A,B on night 1, LOW with 3 channels; F2: B,C on night 2, LOW with 2."""
    f1 = build_oifits(
        [targets["A"], targets["B"]],
        rows=[(1, NIGHT_1), (2, NIGHT_1), (1, NIGHT_1 + 0.01)],
        source="F1.fits",
    )
    f2 = build_oifits(
        [targets["B"], targets["C"]],
        rows=[(1, NIGHT_2), (2, NIGHT_2), (2, NIGHT_2 + 0.01)],
        eff_wave=(2.0e-6, 2.2e-6),
        source="F2.fits",
    )
    return f1, f2


@pytest.fixture
def scenario_collection(scenario_files, target_manager):
    return OIFitsCollection(scenario_files, target_manager)


@pytest.fixture(autouse=True)
def _debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="oimerge")
