"""Linearized precession between epochs.

The model is a first-order secular drift and is only good for a few
centuries either side of 1900. ``tan(dec)`` makes it singular at the
celestial poles; no clamping is done there.
"""

import logging
import math

from scopealign.domain.models import BASE_EPOCH_YEAR, EPOCH_NOT_SET, Position

logger = logging.getLogger(__name__)


def ra_components_to_degrees(hours: float, minutes: float, seconds: float) -> float:
    """Right ascension from h/m/s to degrees."""
    return (hours + minutes / 60 + seconds / 3600) * 15


def dec_components_to_degrees(degrees: float, minutes: float) -> float:
    """Declination from signed degrees and signed arc minutes to degrees."""
    return degrees + minutes / 60


def precess(
    ra_deg: float,
    dec_deg: float,
    from_year: float,
    to_year: float,
) -> tuple[float, float]:
    """Move an equatorial position from one epoch to another.

    The declination update uses the right ascension that has already been
    moved to the new epoch.

    Args:
        ra_deg: Right ascension in degrees at ``from_year``
        dec_deg: Declination in degrees at ``from_year``
        from_year: Epoch of the input coordinates
        to_year: Epoch to move to

    Returns:
        Tuple of (ra_deg, dec_deg) at ``to_year``
    """
    u = ((to_year + from_year) / 2 - 1900) / 100
    general = 3.07234 + 0.00186 * u
    declination_constant = 20.0468 - 0.0085 * u
    years = to_year - from_year

    ra_deg += (
        (
            general
            + (declination_constant / 15)
            * math.sin(math.radians(ra_deg))
            * math.tan(math.radians(dec_deg))
        )
        * years
        / 240
    )
    dec_deg += declination_constant * math.cos(math.radians(ra_deg)) * years / 3600

    return ra_deg, dec_deg


def precess_to_base_epoch(
    position: Position,
    base_epoch_year: float = BASE_EPOCH_YEAR,
) -> Position:
    """Fill the J2000 fields of ``position`` from its entered RA/Dec parts.

    A position whose epoch is not set is taken to be in the base epoch.
    """
    ra = ra_components_to_degrees(
        position.ra_hours, position.ra_minutes, position.ra_seconds
    )
    dec = dec_components_to_degrees(position.dec_degrees, position.dec_minutes)

    epoch = position.coordinate_epoch_year
    if epoch == EPOCH_NOT_SET:
        logger.debug(
            "No coordinate epoch for %r, assuming %s", position.name, base_epoch_year
        )
        epoch = base_epoch_year

    ra, dec = precess(ra, dec, epoch, base_epoch_year)
    return position.model_copy(
        update={
            "ra_degrees_j2000": ra,
            "dec_j2000": dec,
            "coordinate_epoch_year": epoch,
        }
    )
