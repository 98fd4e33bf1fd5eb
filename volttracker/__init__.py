"""
VoltTracker - Source Package

A personal electricity-bill tracker: records prepaid meter purchases,
computes spending statistics and asks Gemini for usage insights.

DESIGN PRINCIPLES:
1. One store, one source of truth
2. Derived values are computed, never persisted
3. Storage backend is chosen once, at start-up
4. AI output is advisory - the user always has the last word
"""

__version__ = "1.0.0"
__author__ = "VoltTracker Team"
