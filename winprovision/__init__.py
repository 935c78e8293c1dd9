"""winprovision: resumable Windows PC provisioning (Python-first, state-driven).

Core design goals:
- Deterministic plan order (priority, category, name)
- State persisted atomically after every step
- Resume pending steps or re-run failed ones
- Stop at the first failure
- Idempotent installs (already-installed is success)
"""

__all__ = []
