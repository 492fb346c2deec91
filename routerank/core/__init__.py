"""
Core Package

This package contains the core algorithmic logic for route ranking.

Structure:
- rank/ - Grid binning, tracklet segmentation and ranking scores

Usage:
Core modules are pure computations over materialized observations.
Do not import store or presentation layers from core.
"""
