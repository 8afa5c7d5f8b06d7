"""
Bulk Import/Export Core

Classifies rows of a tabular source file into repository objects and drives
their bulk creation or export through an external entry store and job
facility.

Supports:
- Collections, works and file sets in a single source file
- Configurable field mappings, including parent/child relationship columns
- Per-row failure tolerance with aggregate run counters
- Correction files for failed rows and re-ingest of corrected uploads
- Scoped, limited exports of existing repository objects
"""

__version__ = "0.1.0"
