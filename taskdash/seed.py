from __future__ import annotations

from datetime import timedelta
from typing import List

import numpy as np

from taskdash.data import COMPLETION_LAG, SEED_ANCHOR, SEED_RANDOM_STATE
from taskdash.models import DONE, PRIORITIES, STATUSES, Task

SALES_ACTIVITIES = [
    "Cold call prospect",
    "Follow up on proposal",
    "Prepare quarterly pitch deck",
    "Demo for enterprise lead",
    "Negotiate renewal terms",
    "Qualify inbound lead",
    "Update CRM pipeline",
    "Draft pricing proposal",
    "Partner onboarding call",
    "Upsell existing account",
]

ACCOUNTS = ["Acme Corp", "Globex", "Initech", "Umbrella", "Hooli", "Stark Industries", "Wayne Enterprises", "Soylent"]


def generate_sales_tasks(count: int = 50, *, seed: int = SEED_RANDOM_STATE) -> List[Task]:
    """Build ``count`` synthetic sales tasks. Same ``count`` and ``seed`` -> same tasks."""
    count = max(0, int(count))
    rng = np.random.default_rng(seed)
    tasks: List[Task] = []
    for i in range(count):
        activity = SALES_ACTIVITIES[int(rng.integers(len(SALES_ACTIVITIES)))]
        account = ACCOUNTS[int(rng.integers(len(ACCOUNTS)))]
        status = STATUSES[int(rng.integers(len(STATUSES)))]
        priority = PRIORITIES[int(rng.integers(len(PRIORITIES)))]
        revenue = float(round(rng.uniform(0, 20000), 2))
        time_taken = float(round(rng.uniform(0.5, 40), 1))
        created_at = SEED_ANCHOR - timedelta(days=int(rng.integers(1, 90)), hours=int(rng.integers(0, 24)))
        tasks.append(
            Task(
                id=f"seed-{i + 1:03d}",
                title=f"{activity} - {account}",
                revenue=revenue,
                time_taken=time_taken,
                priority=priority,
                status=status,
                notes="",
                created_at=created_at,
                completed_at=created_at + COMPLETION_LAG if status == DONE else None,
            )
        )
    return tasks
