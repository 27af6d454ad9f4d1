"""
TLE Parser Module

Strict parser for NORAD Two-Line Element (TLE) sets.

TLE Format:
Each line is exactly 69 characters, fields sit at fixed columns and column 69
holds a modulo-10 checksum (digits count at face value, '-' counts as 1,
everything else as 0). This parser rejects anything that deviates from that
layout instead of guessing: wrong length, wrong line number, non-blank
separator columns, unparsable fields, out-of-range angles, mismatched catalog
numbers and bad checksums all raise ``ParseError``.

References:
- CelesTrak TLE format documentation: https://celestrak.org/NORAD/documentation/tle-fmt.php
- Vallado, D. A., et al. (2006). "Revisiting Spacetrack Report #3." AIAA 2006-6753
"""

from datetime import datetime, timezone, timedelta
from typing import Callable, Tuple, TypeVar

from orbit_tracker.exceptions import ParseError
from orbit_tracker.models import OrbitalElementSet

T = TypeVar("T")

TLE_LINE_LENGTH = 69

# Alpha-5 leading characters; I and O are not used
ALPHA5_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"

# Zero-based indices that must be blank
LINE1_SEPARATORS = (1, 8, 17, 32, 43, 52, 61, 63)
LINE2_SEPARATORS = (1, 7, 16, 25, 33, 42, 51)


def tle_checksum(line: str) -> int:
    """Calculate the TLE checksum over the first 68 columns."""
    checksum = 0
    for char in line[:68]:
        if char.isdigit():
            checksum += int(char)
        elif char == "-":
            checksum += 1
    return checksum % 10


def parse_catalog_number(text: str) -> int:
    """Parse a 5-column catalog number, including Alpha-5 (e.g. 'A0001' -> 100001)."""
    text = text.strip()
    if not text:
        raise ValueError("blank catalog number")
    first = text[0]
    if first.isalpha():
        if first not in ALPHA5_LETTERS or not text[1:].isdigit():
            raise ValueError(f"invalid Alpha-5 catalog number {text!r}")
        return (ALPHA5_LETTERS.index(first) + 10) * 10000 + int(text[1:])
    if not text.isdigit():
        raise ValueError(f"invalid catalog number {text!r}")
    return int(text)


def parse_implied_decimal(text: str) -> float:
    """
    Parse the TLE "assumed decimal point" exponential notation.

    ' 10270-3' -> 0.10270e-3, '-11606-4' -> -0.11606e-4
    """
    text = text.strip()
    if not text:
        return 0.0
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    mantissa, exponent = text[:-2], text[-2:]
    if not mantissa.isdigit() or exponent[0] not in "+-" or not exponent[1].isdigit():
        raise ValueError(f"invalid exponential field {text!r}")
    return sign * float("0." + mantissa) * 10.0 ** int(exponent)


def parse_decimal(text: str) -> float:
    """
    Parse a fixed-point decimal column: optional sign, digits, at most one point.

    Rejects tokens ``float()`` would accept but a TLE never carries, such as
    'nan', 'inf', '1e5' or '1_0'.
    """
    text = text.strip()
    digits = text[1:] if text[:1] in "+-" else text
    if digits.count(".") > 1 or not digits.replace(".", "", 1).isdigit():
        raise ValueError(f"invalid decimal field {text!r}")
    return float(text)


def parse_eccentricity(text: str) -> float:
    """Parse the 7-digit eccentricity with its assumed leading decimal point."""
    text = text.strip()
    if not text.isdigit():
        raise ValueError(f"invalid eccentricity {text!r}")
    return float("0." + text)


def _optional_int(text: str) -> int:
    text = text.strip()
    if text and not text.isdigit():
        raise ValueError(f"invalid integer field {text!r}")
    return int(text) if text else 0


def _digits(text: str) -> int:
    if not text.isdigit():
        raise ValueError(f"invalid integer field {text!r}")
    return int(text)


class TLEParser:
    """
    Parser for Two-Line Element (TLE) sets.

    Provides methods for:
    - Validating line length, line numbers, separators and checksums
    - Decoding every fixed-column field into an ``OrbitalElementSet``
    - Splitting 2-line and 3-line (name + 2 lines) text blocks
    """

    def parse_tle(self, line1: str, line2: str, name: str = "") -> OrbitalElementSet:
        """
        Parse TLE lines into an immutable element set.

        Args:
            line1: First line of TLE
            line2: Second line of TLE
            name: Optional satellite name

        Returns:
            OrbitalElementSet with every field decoded

        Raises:
            ParseError: if either line is malformed
        """
        line1 = self._validate_line(line1, 1, LINE1_SEPARATORS)
        line2 = self._validate_line(line2, 2, LINE2_SEPARATORS)

        norad_id = self._field(line1, 2, 7, 1, "catalog number", parse_catalog_number)
        norad_id_2 = self._field(line2, 2, 7, 2, "catalog number", parse_catalog_number)
        if norad_id != norad_id_2:
            raise ParseError(f"catalog numbers differ between lines ({norad_id} != {norad_id_2})")

        classification = line1[7]
        if classification not in "UCS":
            raise ParseError(f"invalid classification {classification!r}", 1)

        epoch_year = self._field(line1, 18, 20, 1, "epoch year", _digits)
        epoch_day = self._field(line1, 20, 32, 1, "epoch day", parse_decimal)
        if not 1.0 <= epoch_day < 367.0:
            raise ParseError(f"epoch day {epoch_day} outside [1, 367)", 1)

        inclination = self._angle(line2, 8, 16, "inclination", 180.0)
        raan = self._angle(line2, 17, 25, "right ascension of ascending node", 360.0)
        argp = self._angle(line2, 34, 42, "argument of perigee", 360.0)
        mean_anomaly = self._angle(line2, 43, 51, "mean anomaly", 360.0)

        mean_motion = self._field(line2, 52, 63, 2, "mean motion", parse_decimal)
        if mean_motion <= 0.0:
            raise ParseError(f"mean motion must be positive, got {mean_motion}", 2)

        return OrbitalElementSet(
            name=name.strip(),
            norad_id=norad_id,
            classification=classification,
            international_designator=line1[9:17].strip(),
            epoch=self.epoch_to_datetime(epoch_year, epoch_day),
            epoch_year=epoch_year,
            epoch_day=epoch_day,
            mean_motion_dot=self._field(line1, 33, 43, 1, "first derivative of mean motion",
                                        parse_decimal),
            mean_motion_ddot=self._field(line1, 44, 52, 1, "second derivative of mean motion",
                                         parse_implied_decimal),
            bstar=self._field(line1, 53, 61, 1, "B* drag term", parse_implied_decimal),
            ephemeris_type=self._field(line1, 62, 63, 1, "ephemeris type", _optional_int),
            element_set_number=self._field(line1, 64, 68, 1, "element set number", _optional_int),
            inclination_deg=inclination,
            raan_deg=raan,
            eccentricity=self._field(line2, 26, 33, 2, "eccentricity", parse_eccentricity),
            arg_perigee_deg=argp,
            mean_anomaly_deg=mean_anomaly,
            mean_motion_rev_per_day=mean_motion,
            revolution_number=self._field(line2, 63, 68, 2, "revolution number", _optional_int),
            line1=line1,
            line2=line2,
        )

    def parse_text(self, text: str, name: str = "") -> OrbitalElementSet:
        """
        Parse a block of TLE text: two lines, or a name line followed by two lines.

        A 3LE name line may carry the conventional '0 ' prefix.
        """
        lines = [line.rstrip("\r") for line in text.splitlines() if line.strip()]
        if len(lines) == 3:
            title = lines[0].strip()
            if title.startswith("0 "):
                title = title[2:]
            return self.parse_tle(lines[1], lines[2], name or title)
        if len(lines) == 2:
            return self.parse_tle(lines[0], lines[1], name)
        raise ParseError(f"expected 2 or 3 non-empty lines, got {len(lines)}")

    def epoch_to_datetime(self, epoch_year: int, epoch_days: float) -> datetime:
        """
        Convert TLE epoch to datetime.

        Args:
            epoch_year: Two-digit year (57-99 -> 19xx, 00-56 -> 20xx)
            epoch_days: Day of year with fractional part (1.0 is Jan 1 00:00)

        Returns:
            Datetime object in UTC
        """
        year = 1900 + epoch_year if epoch_year >= 57 else 2000 + epoch_year
        return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=epoch_days - 1.0)

    def _validate_line(self, line: str, line_number: int, separators: Tuple[int, ...]) -> str:
        line = line.rstrip("\r\n")
        if len(line) != TLE_LINE_LENGTH:
            raise ParseError(f"expected {TLE_LINE_LENGTH} characters, got {len(line)}", line_number)
        if line[0] != str(line_number):
            raise ParseError(f"expected line number {line_number}, got {line[0]!r}", line_number)
        for index in separators:
            if line[index] != " ":
                raise ParseError(f"expected blank at column {index + 1}, got {line[index]!r}",
                                 line_number)
        if not line[68].isdigit():
            raise ParseError(f"checksum column holds {line[68]!r}", line_number)
        expected = tle_checksum(line)
        if int(line[68]) != expected:
            raise ParseError(f"checksum mismatch (expected {expected}, got {line[68]})", line_number)
        return line

    def _field(self, line: str, start: int, end: int, line_number: int, label: str,
               convert: Callable[[str], T]) -> T:
        text = line[start:end]
        try:
            return convert(text)
        except ValueError:
            raise ParseError(f"invalid {label} {text!r} in columns {start + 1}-{end}",
                             line_number) from None

    def _angle(self, line: str, start: int, end: int, label: str, upper: float) -> float:
        value = self._field(line, start, end, 2, label, parse_decimal)
        if not 0.0 <= value <= upper:
            raise ParseError(f"{label} {value} outside [0, {upper:g}]", 2)
        return value


_default_parser = TLEParser()


def parse_tle(line1: str, line2: str, name: str = "") -> OrbitalElementSet:
    """Parse a TLE line pair with the shared parser."""
    return _default_parser.parse_tle(line1, line2, name)


def parse_tle_text(text: str, name: str = "") -> OrbitalElementSet:
    """Parse a 2-line or 3-line TLE text block with the shared parser."""
    return _default_parser.parse_text(text, name)
