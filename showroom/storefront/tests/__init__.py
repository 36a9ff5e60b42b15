"""
Unit tests for the storefront merchandising engine.

Test structure:
- test_gateway.py: Document gateway (reads, retries, batches)
- test_ranking.py: Showcase and featured ranks, repair
- test_variants.py / test_legacy_upgrade.py: Variant resolution
- test_counters.py / test_merchandising.py: Catalog lifecycle and counters
- test_api.py / test_commands.py: REST API and management commands
"""
