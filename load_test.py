"""
Load test for the ordering API.

Fires concurrent batch orders, most of them at one table, then prints the
latency percentiles and how many orders ended up open on that table. The API
takes no table lock, so several open orders on the contested table is the
expected outcome.
"""
import argparse
import asyncio
import statistics
import time
from collections import defaultdict

import aiohttp


class OrderLoadTester:
    def __init__(self, base_url="http://localhost:8000", total_requests=1000, concurrent_workers=50, table=1):
        self.base_url = base_url
        self.total_requests = total_requests
        self.concurrent_workers = concurrent_workers
        self.table = table
        self.results = {
            "successful": 0,
            "failed": 0,
            "timeouts": 0,
            "response_times": [],
            "errors": defaultdict(int),
            "status_codes": defaultdict(int),
        }

    def payload(self, n):
        # Every fifth request goes to a different table to mix the load
        table = self.table if n % 5 else 2 + (n % 38)
        return [
            {
                "foodName": "Masala Chai",
                "category": "Beverages",
                "type": "Veg",
                "tableNumber": table,
                "quantity": 2,
                "price": 60,
                "userEmail": f"load{n}@example.com",
            }
        ]

    async def place_order(self, session, n):
        url = f"{self.base_url}/api/orders/create-multiple"
        start_time = time.time()
        try:
            async with session.post(url, json=self.payload(n), timeout=aiohttp.ClientTimeout(total=30)) as response:
                await response.text()
                self.results["response_times"].append(time.time() - start_time)
                self.results["status_codes"][response.status] += 1
                if response.status == 201:
                    self.results["successful"] += 1
                else:
                    self.results["failed"] += 1
        except asyncio.TimeoutError:
            self.results["timeouts"] += 1
            self.results["errors"]["Timeout"] += 1
        except Exception as e:
            self.results["failed"] += 1
            self.results["errors"][type(e).__name__] += 1

    async def worker(self, session, queue):
        while True:
            n = await queue.get()
            try:
                await self.place_order(session, n)
            finally:
                queue.task_done()

    async def open_orders_on_table(self, session):
        async with session.get(f"{self.base_url}/api/orders") as response:
            orders = await response.json()
        return sum(1 for o in orders if o["tableNumber"] == self.table and o["status"] != "Completed")

    async def run(self):
        queue = asyncio.Queue()
        for n in range(self.total_requests):
            queue.put_nowait(n)
        connector = aiohttp.TCPConnector(limit=self.concurrent_workers)
        async with aiohttp.ClientSession(connector=connector) as session:
            started = time.time()
            workers = [asyncio.create_task(self.worker(session, queue)) for _ in range(self.concurrent_workers)]
            await queue.join()
            elapsed = time.time() - started
            for w in workers:
                w.cancel()
            open_orders = await self.open_orders_on_table(session)
        self.print_results(elapsed, open_orders)

    def print_results(self, total_time, open_orders):
        times = sorted(self.results["response_times"])
        print(f"Requests: {self.total_requests} in {total_time:.2f}s ({self.total_requests / total_time:.1f} req/s)")
        print(f"Successful: {self.results['successful']}  Failed: {self.results['failed']}  Timeouts: {self.results['timeouts']}")
        if len(times) >= 2:
            q = statistics.quantiles(times, n=100)
            print(f"Latency p50={q[49] * 1000:.1f}ms p90={q[89] * 1000:.1f}ms p95={q[94] * 1000:.1f}ms")
        print(f"Status codes: {dict(self.results['status_codes'])}")
        if self.results["errors"]:
            print(f"Errors: {dict(self.results['errors'])}")
        print(f"Open orders on table {self.table}: {open_orders}")


async def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--requests", type=int, default=1000)
    parser.add_argument("--workers", type=int, default=50)
    parser.add_argument("--table", type=int, default=1)
    args = parser.parse_args()
    tester = OrderLoadTester(args.base_url, args.requests, args.workers, args.table)
    await tester.run()


if __name__ == "__main__":
    asyncio.run(main())
