"""
Media Uploader - image and video uploads to S3 with CDN delivery URLs.

This package contains:
- core: Upload service, domain models, key naming, CDN URLs
- infrastructure: S3 strategies, credentials, image and video processing
- config: Settings from environment
- main: Command-line entry point
"""

__version__ = "0.1.0"
