"""Release pipeline.

- semver: version parsing, ordering and the acceptance rule
- diff_strategy: full diff vs. stat-only selection
- merger: changelog document merge and file update
- fsm: step runner
- orchestrator: the end-to-end run
"""

from __future__ import annotations
