"""Core building blocks of icloudpy."""
