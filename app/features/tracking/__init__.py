"""
Hour-tracking feature package.

Weekly hour classification, period summaries, the admin dashboard and
the weekly reminder run live here side by side (domain models,
repositories, pure pipeline, services, jobs and the API router).
Import from the subpackages directly; this module re-exports nothing so
that low-level modules can import ``tracking.errors`` without pulling in
the service layer.
"""
