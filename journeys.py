# journeys.py

THINK_TIME_MS = 2000


async def browse_home(page, context, events):
    await page.goto("https://example.com")
    await page.wait_for_load_state("networkidle")
    await page.wait_for_timeout(THINK_TIME_MS)


async def search_product(page, context, events):
    term = context.get("vars", {}).get("search_term", "")

    await page.goto(f"https://example.com/search?q={term}")
    await page.wait_for_load_state("networkidle")

    events.emit("counter", "user.search_submitted", 1)
    await page.wait_for_timeout(THINK_TIME_MS)


# Registry of flows
FLOWS = {
    "browse_home": browse_home,
    "search_product": search_product,
}
