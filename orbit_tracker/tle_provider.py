"""
Element-set providers.

A provider supplies a fresh ``OrbitalElementSet`` for one satellite. The
numerical core never fetches anything itself; the tracker asks a provider
when it wants newer elements.

Providers:
- StaticTLEProvider: fixed lines, by default the built-in ISS fallback
- CelesTrakTLEProvider: CelesTrak GP query by catalog number (no key)
- N2YOTLEProvider: N2YO REST API (requires an API key)
- FallbackTLEProvider: try a primary provider, fall back to another

Note: For real-time tracking, ensure TLE data is kept current (updated at
least weekly for LEO satellites, less frequently for higher orbits).
"""

import logging
from typing import Any, Optional

import requests

from orbit_tracker.config import FALLBACK_ISS_TLE, config
from orbit_tracker.exceptions import ParseError, TLEFetchError
from orbit_tracker.models import OrbitalElementSet
from orbit_tracker.tle_parser import parse_tle, parse_tle_text

logger = logging.getLogger(__name__)

ISS_NORAD_ID = 25544


class TLEProvider:
    """Interface: return the current element set or raise TLEFetchError/ParseError."""

    def fetch(self) -> OrbitalElementSet:
        raise NotImplementedError


class StaticTLEProvider(TLEProvider):
    """Always returns the same lines; never goes stale on its own."""

    def __init__(self, line1: Optional[str] = None, line2: Optional[str] = None,
                 name: Optional[str] = None):
        if (line1 is None) != (line2 is None):
            raise ValueError("line1 and line2 must be given together")
        if line1 is None:
            line1 = FALLBACK_ISS_TLE['line1']
            line2 = FALLBACK_ISS_TLE['line2']
            name = FALLBACK_ISS_TLE['name'] if name is None else name
        self.line1 = line1
        self.line2 = line2
        self.name = name or ""

    def fetch(self) -> OrbitalElementSet:
        return parse_tle(self.line1, self.line2, self.name)


class CelesTrakTLEProvider(TLEProvider):
    """Fetches the latest element set for one catalog number from CelesTrak."""

    def __init__(self, norad_id: int = ISS_NORAD_ID, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.norad_id = norad_id
        self.base_url = (base_url or config.CELESTRAK_BASE).rstrip('/')
        self.timeout = config.TLE_REQUEST_TIMEOUT if timeout is None else timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.base_url}/NORAD/elements/gp.php?CATNR={self.norad_id}&FORMAT=tle"

    def fetch(self) -> OrbitalElementSet:
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TLEFetchError(f"CelesTrak request for {self.norad_id} failed: {e}") from e

        text = response.text.strip()
        # CelesTrak answers unknown catalog numbers with a plain-text message
        if not text or text.lower().startswith("no gp data"):
            raise TLEFetchError(f"CelesTrak has no element set for {self.norad_id}")

        elements = parse_tle_text(text)
        logger.info(f"Fetched TLE for {elements.norad_id} from CelesTrak "
                    f"(epoch {elements.epoch.isoformat()})")
        return elements


class N2YOTLEProvider(TLEProvider):
    """Fetches the element set for one catalog number from the N2YO REST API."""

    def __init__(self, norad_id: int = ISS_NORAD_ID, api_key: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.norad_id = norad_id
        self.api_key = api_key if api_key is not None else config.N2YO_API_KEY
        self.base_url = (base_url or config.N2YO_BASE).rstrip('/')
        self.timeout = config.TLE_REQUEST_TIMEOUT if timeout is None else timeout
        self.session = session or requests.Session()

    def fetch(self) -> OrbitalElementSet:
        if not self.api_key:
            raise TLEFetchError("N2YO API key is not configured (set N2YO_API_KEY)")

        # N2YO takes the key as an "&apiKey=" suffix on the path, not a query string
        url = f"{self.base_url}/tle/{self.norad_id}&apiKey={self.api_key}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload: Any = response.json()
        except requests.RequestException as e:
            raise TLEFetchError(f"N2YO request for {self.norad_id} failed: {self._redact(e)}") from None
        except ValueError as e:
            raise TLEFetchError(f"N2YO returned invalid JSON for {self.norad_id}: {e}") from e

        if not isinstance(payload, dict):
            raise TLEFetchError(f"N2YO response for {self.norad_id} is not a JSON object")

        if 'error' in payload:
            raise TLEFetchError(f"N2YO error for {self.norad_id}: {payload['error']}")

        tle_text = payload.get('tle')
        if not tle_text or not isinstance(tle_text, str):
            raise TLEFetchError(f"N2YO response for {self.norad_id} has no TLE")

        info = payload.get('info')
        name = info.get('satname') if isinstance(info, dict) else None
        elements = parse_tle_text(tle_text, name if isinstance(name, str) else '')
        logger.info(f"Fetched TLE for {elements.norad_id} from N2YO "
                    f"(epoch {elements.epoch.isoformat()})")
        return elements

    def _redact(self, error: Exception) -> str:
        # requests repeats the request URL, which carries the key
        return str(error).replace(self.api_key, "***")


class FallbackTLEProvider(TLEProvider):
    """Use ``primary`` when it works, otherwise ``fallback``."""

    def __init__(self, primary: TLEProvider, fallback: Optional[TLEProvider] = None):
        self.primary = primary
        self.fallback = fallback or StaticTLEProvider()

    def fetch(self) -> OrbitalElementSet:
        try:
            return self.primary.fetch()
        except (TLEFetchError, ParseError) as e:
            logger.warning(f"Primary TLE source failed ({e}); using fallback TLE data")
            return self.fallback.fetch()
