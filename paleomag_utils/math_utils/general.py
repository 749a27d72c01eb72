"""
Direction <-> Cartesian conversions and the spherical transforms
used throughout the package.

Coordinate system (Tauxe, eq. 2.13): +x north, +y east, +z down.
Declinations and inclinations are taken and returned in degrees.
"""
from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy import array as arr

from paleomag_utils.errors import DegenerateVector, InvalidInput


class Vector3(NamedTuple):
    x: float
    y: float
    z: float

    def as_array(self):
        return arr([self.x, self.y, self.z], dtype=float)

    def norm(self):
        return float(np.linalg.norm(self.as_array()))

    def unit(self) -> "Vector3":
        return Vector3(*unit_vector(self.as_array()))

    def dot(self, other) -> float:
        return float(np.dot(self.as_array(), np.asarray(other, dtype=float)))

    def negate(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)


class Direction(NamedTuple):
    """Declination/inclination pair, R is the vector length (intensity)"""
    dec: float
    inc: float
    R: float = 1.0


class Pole(NamedTuple):
    """Virtual geomagnetic pole position"""
    lon: float
    lat: float


def validate_direction(dec, inc):
    """Raises InvalidInput for a declination outside [0, 360)
    or an inclination outside [-90, 90].
    """
    if not (np.isfinite(dec) and np.isfinite(inc)):
        raise InvalidInput(f"Non-finite direction ({dec}, {inc})")
    if not 0 <= dec < 360:
        raise InvalidInput(f"Declination {dec} outside [0, 360)")
    if not -90 <= inc <= 90:
        raise InvalidInput(f"Inclination {inc} outside [-90, 90]")


def unit_vector(vector):
    """Returns the unit vector of the vector."""
    vector = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


def cart(dec, inc, intensity=1.0) -> Vector3:
    """Cartesian coordinates of a direction, scaled by intensity"""
    dec_r, inc_r = np.radians(dec), np.radians(inc)
    return Vector3(
        float(intensity * np.cos(dec_r) * np.cos(inc_r)),
        float(intensity * np.sin(dec_r) * np.cos(inc_r)),
        float(intensity * np.sin(inc_r)),
    )


def to_dir(x, y, z) -> Direction:
    """
    Direction (and length R) of a Cartesian vector.
    Declination is kept within [0, 360) via atan2.
    """
    R = float(np.sqrt(x**2 + y**2 + z**2))
    if R == 0 or not np.isfinite(R):
        raise DegenerateVector(f"Cannot take the direction of vector ({x}, {y}, {z})")
    dec = float((360 + np.degrees(np.arctan2(y, x))) % 360)
    inc = float(np.degrees(np.arcsin(np.clip(z / R, -1.0, 1.0))))
    return Direction(dec, inc, R)


def angle_between(v1, v2):
    """Angle in degrees between two vectors of any length"""
    v1_u = unit_vector(v1)
    v2_u = unit_vector(v2)
    return float(np.degrees(np.arccos(np.clip(np.dot(v1_u, v2_u), -1.0, 1.0))))


def angle(dec_one, inc_one, dec_two, inc_two):
    """Angle (0-180 degrees) between two directions"""
    a = cart(dec_one, inc_one).as_array()
    b = cart(dec_two, inc_two).as_array()
    return float(np.degrees(np.arccos(np.clip(np.dot(a, b), -1.0, 1.0))))


def flip(direction) -> Direction:
    """Antipode of a direction"""
    dec, inc = direction[0], direction[1]
    R = direction[2] if len(direction) > 2 else 1.0
    return Direction((dec + 180) % 360, -inc, R)


def paleolatitude(inc):
    """Paleolatitude from inclination (dipole formula, tan I = 2 tan lat)"""
    return float(np.degrees(np.arctan(np.tan(np.radians(inc)) / 2)))


def poles(site_lat, site_lon, direction) -> Pole:
    """
    VGP position for a direction observed at a site.
    An inclination of exactly 90 is moved to 89.99, the pole formula
    is singular there.
    """
    dec, inc = direction[0], direction[1]
    if inc == 90:
        inc = 89.99

    slat = np.radians(site_lat)
    dec_r = np.radians(dec)
    p = 0.5 * np.pi - np.arctan(0.5 * np.tan(np.radians(inc)))
    plat = np.arcsin(np.clip(
        np.sin(slat) * np.cos(p) + np.cos(slat) * np.sin(p) * np.cos(dec_r), -1.0, 1.0
    ))

    cos_plat = np.cos(plat)
    if np.isclose(cos_plat, 0):
        beta = 0.0
    else:
        beta = np.arcsin(np.clip(np.sin(p) * np.sin(dec_r) / cos_plat, -1.0, 1.0))

    if (np.cos(p) - np.sin(plat) * np.sin(slat)) < 0:
        plon = np.radians(site_lon) - beta + np.pi
    else:
        plon = np.radians(site_lon) + beta

    plat = float(np.degrees(plat))
    plon = float(np.degrees(plon))
    if plon < 0:
        plon += 360
    return Pole(plon % 360, plat)


def inv_poles(site_lat, site_lon, pole) -> Direction:
    """
    Declination and inclination expected at a site
    for a given pole (spherical law of cosines).
    """
    pole_lon, pole_lat = pole[0], pole[1]

    sinlats = np.sin(np.radians(site_lat))
    coslats = np.cos(np.radians(site_lat))
    sinlatp = np.sin(np.radians(pole_lat))
    coslatp = np.cos(np.radians(pole_lat))

    cosp = sinlatp * sinlats + coslatp * coslats * np.cos(np.radians(pole_lon - site_lon))
    cosp = float(np.clip(cosp, -1.0, 1.0))
    sinp = np.sqrt(1 - cosp * cosp)

    denom = coslats * sinp
    if np.isclose(denom, 0):
        dec = 0.0
    else:
        dec = float(np.degrees(np.arccos(np.clip((sinlatp - sinlats * cosp) / denom, -1.0, 1.0))))

    if pole_lon > site_lon and (pole_lon - site_lon) > 180:
        dec = 360 - dec
    if pole_lon < site_lon and (site_lon - pole_lon) < 180:
        dec = 360 - dec

    inc = float(np.degrees(np.arctan2(2 * cosp, sinp)))
    return Direction(dec % 360, inc)


def rotate_to(azimuth, plunge, vector) -> Direction:
    """
    Rotates a specimen-frame vector to geographic coordinates given the
    core azimuth and plunge (Tauxe, A.13). The vector keeps its length.
    """
    azimuth = np.radians(azimuth)
    plunge = np.radians(plunge)
    rotation = arr([
        [np.cos(plunge) * np.cos(azimuth), -np.sin(azimuth), -np.sin(plunge) * np.cos(azimuth)],
        [np.cos(plunge) * np.sin(azimuth), np.cos(azimuth), -np.sin(plunge) * np.sin(azimuth)],
        [np.sin(plunge), 0, np.cos(plunge)],
    ])
    rotated = rotation @ np.asarray(vector, dtype=float)
    return to_dir(*rotated)


def correct_bedding(strike, dip, direction) -> Direction:
    """
    Bedding (tilt) correction. The direction is turned to the dip
    direction (strike + 90), rotated about the horizontal by the dip
    and turned back.
    """
    dec, inc = direction[0], direction[1]
    R = direction[2] if len(direction) > 2 else 1.0
    dip_direction = strike + 90

    v = cart(dec - dip_direction, inc, R).as_array()
    dip = np.radians(dip)
    rotation = arr([
        [np.cos(dip), 0, np.sin(dip)],
        [0, 1, 0],
        [-np.sin(dip), 0, np.cos(dip)],
    ])
    rotated = to_dir(*(rotation @ v))
    return Direction((rotated.dec + dip_direction) % 360, rotated.inc, rotated.R)


def rotate_to_pole(ref_dec, ref_inc, direction) -> Direction:
    """
    Rotates a direction so that the reference direction (ref_dec, ref_inc)
    ends up at inclination (latitude) 90. Used to centre a VGP distribution
    on its mean.
    """
    if ref_inc == 90:
        return Direction(direction[0], direction[1])

    phi = np.radians(90 - ref_inc)
    v = cart(direction[0] - ref_dec, direction[1]).as_array()
    rotation = arr([
        [np.cos(phi), 0, -np.sin(phi)],
        [0, 1, 0],
        [np.sin(phi), 0, np.cos(phi)],
    ])
    rotated = to_dir(*(rotation @ v))
    return Direction((rotated.dec + ref_dec) % 360, rotated.inc)


def validate_directions(directions):
    """
    Vectorised validate_direction over (dec, inc, ...) rows.
    Raises InvalidInput for the first row outside the declared ranges.
    """
    angles = arr([(d[0], d[1]) for d in directions], dtype=float).reshape(-1, 2)
    dec, inc = angles[:, 0], angles[:, 1]
    with np.errstate(invalid='ignore'):
        bad = ~np.isfinite(angles).all(axis=1) | (dec < 0) | (dec >= 360) | (np.abs(inc) > 90)
    if np.any(bad):
        idx = int(np.argmax(bad))
        validate_direction(dec[idx], inc[idx])
    return angles


def directions_to_vectors(directions):
    """(N, 3) array of unit vectors for an iterable of (dec, inc, ...) rows"""
    angles = np.radians(validate_directions(directions))
    dec, inc = angles[:, 0], angles[:, 1]
    return np.column_stack([
        np.cos(dec) * np.cos(inc),
        np.sin(dec) * np.cos(inc),
        np.sin(inc),
    ])
