"""
Analytics package exports.
"""

from hanway.analytics.metrics import retention
from hanway.analytics.service import build_profile_stats, load_profile_stats
from hanway.analytics.types import ProfileStats

__all__ = [
    "retention",
    "build_profile_stats",
    "load_profile_stats",
    "ProfileStats",
]
