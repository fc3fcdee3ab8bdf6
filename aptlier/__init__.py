"""aptlier - snapshot, merge and publish a Debian repository with aptly."""

__version__ = "0.1.0"
