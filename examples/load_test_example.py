"""
Quick sanity test: a small load test against a public endpoint.
Run: uv run examples/load_test_example.py
"""
import asyncio
import os

from lodestone import LoadTester, Options, render_statistics

URL = os.getenv("LODESTONE_EXAMPLE_URL", "https://example.com/")

async def main():
    options = Options(url=URL, requests=20, clients=4)
    stats = await LoadTester(options, use_progress_bar=True).run()
    print(render_statistics(stats))

if __name__ == "__main__":
    asyncio.run(main())
