"""Record loading pipeline.

This package discovers work units, extracts records from them, and
drives each record through URI derivation, resume and existing-document
checks, and commit into a content store.
"""
