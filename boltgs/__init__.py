"""
boltgs package - HTTP functions for exercising Bolt and Google Cloud Storage.

Subpackages:
- core: Shared utilities (storage backend, content digests, config, errors)
- ops: Storage operations function (list, metadata, upload, download, delete)
- validate: Data validation function comparing Bolt and GS object digests
"""
