"""Wall clock in whole epoch seconds. Components accept any zero-arg callable."""

import time
from typing import Callable

Clock = Callable[[], int]


def epoch_now() -> int:
    return int(time.time())
