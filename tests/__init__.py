"""
Daylog Test Suite

Tests organized by pipeline stage:
- test_ingest_fail_loud.py: loader parse gates (DataFormatError)
- test_locations.py: location tagger
- test_aggregate.py: daily aggregation (SUM / MAJORITY / ANY)
- test_merge.py: unified table, precedence, zero-fill, window
- test_feed.py: feed contract and chronological splits
- test_pipeline_smoke.py: end-to-end on small CSV logs (+ CLI)
- analysis/: statsmodels analyses on synthetic feeds
"""
