"""Vendor job tracking."""

from .poller import JobPoller
from .registry import JobRegistry
from .requests import stitch_overrides, style_transfer_overrides, video_generate_overrides

__all__ = [
    "JobPoller",
    "JobRegistry",
    "stitch_overrides",
    "style_transfer_overrides",
    "video_generate_overrides",
]
