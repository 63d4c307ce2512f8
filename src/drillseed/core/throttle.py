"""
Throttle Controller - periodic pause after every N acknowledged rows

A fixed gate, not a feedback loop: it never looks at latency or errors.
"""

import time
from typing import Callable


class Throttle:
    """Sleeps delay_seconds whenever rows so far hits a multiple of every_rows"""

    def __init__(
        self,
        every_rows: int,
        delay_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if every_rows < 0:
            raise ValueError(f"every_rows must be >= 0, got {every_rows}")
        self.every_rows = every_rows
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.pauses = 0

    @property
    def enabled(self) -> bool:
        return self.every_rows > 0 and self.delay_seconds > 0

    def should_pause(self, rows_so_far: int, total_rows: int) -> bool:
        if not self.enabled or rows_so_far >= total_rows:
            return False
        return rows_so_far % self.every_rows == 0

    def on_progress(self, rows_so_far: int, total_rows: int) -> bool:
        """Pause if due; returns True when a pause happened"""
        if not self.should_pause(rows_so_far, total_rows):
            return False

        print(f"⏳ Sleeping {self.delay_seconds:g}s …")
        self.sleep(self.delay_seconds)
        self.pauses += 1
        return True
