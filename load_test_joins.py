"""
Load test for the runclub event join endpoint.
Logs in seeded runners and fires duplicate join requests at the same event
concurrently, to exercise the unique (event_id, user_id) guard.

Expected: exactly one 200 per runner; every other response is a 400
"You have already joined this event" (or "exclusive to ..." for the other gender).
"""

import asyncio
import time
from collections import Counter

import aiohttp

# -----------------------------
# CONFIG: ADJUST IF NEEDED
# -----------------------------
BASE_URL = "http://127.0.0.1:5000"

# Event to hammer (must be open today, PH time)
EVENT_ID = 1

# Seeded runners (see seed_users.py)
MIN_RUNNER = 1
MAX_RUNNER = 100
PASSWORD = "password123"

# Join requests per runner, all in flight at once
DUPLICATE_JOINS = 5

# How many runners run simultaneously
MAX_CONCURRENT = 50


# -----------------------------
# Load test functions
# -----------------------------
async def join_as(runner_no, results):
    # Own cookie jar per runner so sessions don't mix
    async with aiohttp.ClientSession() as session:
        creds = {"email": f"runner{runner_no}@example.com", "password": PASSWORD}
        async with session.post(f"{BASE_URL}/api/login", json=creds) as resp:
            if resp.status != 200:
                print(f"[LOGIN {resp.status}] runner{runner_no}")
                results["login_failed"] += 1
                return

        async def one_join():
            try:
                async with session.post(f"{BASE_URL}/api/events/{EVENT_ID}/join") as resp:
                    await resp.text()
                    return resp.status
            except Exception as e:
                print(f"[EXCEPTION] {e} :: runner{runner_no}")
                return None

        statuses = await asyncio.gather(*(one_join() for _ in range(DUPLICATE_JOINS)))
        for s in statuses:
            results[s] += 1
        if statuses.count(200) > 1:
            print(f"[DOUBLE JOIN] runner{runner_no} got {statuses.count(200)} successes")
            results["double_join"] += 1


async def worker(task_queue, results):
    while True:
        item = await task_queue.get()
        if item is None:
            task_queue.task_done()
            break

        await join_as(item, results)
        task_queue.task_done()


async def main():
    task_queue = asyncio.Queue()
    results = Counter()

    for runner_no in range(MIN_RUNNER, MAX_RUNNER + 1):
        await task_queue.put(runner_no)

    # Add sentinel None tasks to close workers
    for _ in range(MAX_CONCURRENT):
        await task_queue.put(None)

    workers = [
        asyncio.create_task(worker(task_queue, results))
        for _ in range(MAX_CONCURRENT)
    ]

    total = (MAX_RUNNER - MIN_RUNNER + 1) * DUPLICATE_JOINS
    print(f"Sending {total} join requests with concurrency {MAX_CONCURRENT}...")
    start = time.time()

    await task_queue.join()
    end = time.time()

    for w in workers:
        await w

    print(f"Completed in {end - start:.2f} seconds")
    print(f"Results: {dict(results)}")


if __name__ == "__main__":
    asyncio.run(main())
