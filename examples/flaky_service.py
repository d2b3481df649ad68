"""Retry a flaky call and stop retrying on Ctrl+C."""

import logging
import signal
import threading
from random import Random

from backoffkit import DecorrJitter, run, with_max_retries, with_max_wait, with_multiplier, with_rand

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

random = Random(1)


def fetch(attempt: int) -> None:
    print(f"{attempt} attempt")
    if random.random() < 0.8:
        raise TimeoutError("timeout")


cancel = threading.Event()
signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())

retryer = DecorrJitter(
    with_rand(Random(1)),
    with_max_retries(5),
    with_multiplier(0.5),
    with_max_wait(10),
)
err = run(cancel, retryer, fetch)
if err is None:
    print("done")
elif cancel.is_set():
    print(f"cancelled, last error: {err}")
else:
    print(f"gave up: {err}")
