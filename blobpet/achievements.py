import logging
from collections import deque
from typing import List, Optional

from blobpet.constants import ACHIEVEMENTS

logger = logging.getLogger(__name__)


class AchievementTracker:
    """One-time badges unlocked when a counter or value crosses its threshold."""

    def __init__(self, unlocked: List[str], table=None):
        # Shares the list with BlobState so the snapshot always sees new unlocks.
        self.unlocked = unlocked
        self.table = table if table is not None else ACHIEVEMENTS
        self.popups = deque()

    def is_unlocked(self, name: str) -> bool:
        return name in self.unlocked

    def evaluate(self, values: dict) -> List[str]:
        """Unlock every badge whose threshold is met, in table order.

        `values` maps the stat names used in the table (total_feedings,
        total_bounces, happiness, scale) to their current values.
        """
        new = []
        for badge in self.table:
            name = badge['name']
            if self.is_unlocked(name):
                continue
            if values.get(badge['stat'], 0) >= badge['threshold']:
                new.append(name)
        for name in new:
            self.unlocked.append(name)
            self.popups.append(name)
            logger.info("Achievement unlocked: %s", name)
        return new

    def next_popup(self) -> Optional[str]:
        if self.popups:
            return self.popups.popleft()
        return None
