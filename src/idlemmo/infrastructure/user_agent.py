import random
from typing import Optional


_PLATFORMS = (
    "Windows NT 10.0; Win64; x64",
    "Macintosh; Intel Mac OS X 10_15_7",
    "X11; Linux x86_64",
    "X11; Ubuntu; Linux x86_64",
)


def generate_user_agent(rng: Optional[random.Random] = None) -> str:
    """Build a plausible desktop browser user agent.

    Picked once per process and reused for every client rebuild.
    """
    source = rng or random.Random()
    platform = source.choice(_PLATFORMS)
    family = source.choice(("chrome", "firefox", "edge"))
    if family == "firefox":
        version = source.randint(115, 131)
        return f"Mozilla/5.0 ({platform}; rv:{version}.0) Gecko/20100101 Firefox/{version}.0"

    major = source.randint(118, 130)
    build = f"{major}.0.{source.randint(5000, 6800)}.{source.randint(10, 200)}"
    agent = f"Mozilla/5.0 ({platform}) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{build} Safari/537.36"
    if family == "edge":
        agent += f" Edg/{build}"
    return agent
