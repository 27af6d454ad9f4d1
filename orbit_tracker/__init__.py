"""
Orbit Tracker Package

Numerical core of a satellite ground-track dashboard: SGP4 propagation of
NORAD element sets to geodetic fixes, and analytic circular-orbit helpers
for sandbox exploration.

Modules:
    tle_parser: Strict fixed-column TLE parsing
    propagator: SGP4 propagation, GMST and geodetic conversion
    orbital_parameters: Circular velocity and period from altitude
    ground_track: Bounded buffer of recent sub-satellite points
    tle_provider: Static, CelesTrak and N2YO element-set sources
    tracker: Polling loop with pause-on-error behaviour
    config: Reference constants, fallback TLE and runtime settings
    logging_config: Logging setup for applications

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
