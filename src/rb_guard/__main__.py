"""Allow ``python -m rb_guard``."""

from __future__ import annotations

from rb_guard.cli import main

raise SystemExit(main())
