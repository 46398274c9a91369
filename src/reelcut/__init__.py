"""Reelcut - Channel Video to Short Clips Pipeline.

A Python CLI tool that watches video channels and turns each long-form upload into
short, topically coherent clips:
1. Segment: split long sources into bounded segments with matching captions
2. Cut: ask a semantic service for excerpt windows and materialize captioned clips
3. Render: derive cover, vertical and publishable renditions, then optionally upload
"""

__version__ = "0.1.0"
