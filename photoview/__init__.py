"""Photoview scanner package.

Modules:
- scanner: album traversal, reconciliation and per-user scan dispatch
- containment: per-scan directory containment cache and probe
- filetypes: content-type sniffing and the per-scan type cache
- processing: photo registration and thumbnail rendering
- database / models / repository: SQLite models and queries
- config: INI parsing and config object
"""
