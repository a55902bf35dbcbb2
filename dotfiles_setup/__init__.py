"""Workstation provisioner for macOS, Ubuntu and Arch (Python-first, probe-driven).

Core design goals:
- Idempotent steps: every action is guarded by a read-only probe
- Platform detected once, steps filtered by platform
- Fail fast on critical steps, warn and continue on the rest
- Manual follow-ups collected and reported at the end
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
