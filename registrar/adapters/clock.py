"""System clock adapter - Implements Clock protocol."""

import time


class SystemClock:
    """Wall-clock unix time in whole seconds."""

    def now(self) -> int:
        return int(time.time())
