"""Sentinel Hub acquisition pipeline: auth, multipart decoding, caching."""
