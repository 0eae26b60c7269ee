# ============================================================================
# VERSION - FAN-OUT MESSAGING FABRIC
# ============================================================================
# EPOCH: 1 - FAN-OUT MESSAGING
# ============================================================================
"""
Version information for the messaging fabric.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch
__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

BUILD_DATE = "2026-10-12"
EPOCH = 1
