"""
Service layer.

``store`` and ``history_service`` own the SQL; ``membership_service``
holds the reconciliation logic and depends only on the interfaces of
the first two, so it can run against fakes in tests.
"""
