"""Minimal demonstration of the response gateway."""

import asyncio
import json
import sys

from aura_core import health, submit_chat
from aura_core.api.service import get_default_gateway


async def main(payload: dict):
    status, body = await submit_chat(payload)
    await get_default_gateway().wait_for_persistence()
    return status, body


if __name__ == "__main__":
    provider = sys.argv[1] if len(sys.argv) > 1 else None
    question = "What is 2+2?"
    payload = {"messages": [{"role": "user", "content": question}]}
    if provider:
        payload["provider"] = provider
    print("Health:", json.dumps(health()))
    status, body = asyncio.run(main(payload))
    print("User:", question)
    print(f"AURA ({status}):", json.dumps(body, ensure_ascii=False))
