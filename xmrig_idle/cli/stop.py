import argparse
import asyncio

from xmrig_idle.cli.run import build_client, resolve_config
from xmrig_idle.control.xmrig import XmrigClient
from xmrig_idle.engine.errors import RpcError


async def _stop(client: XmrigClient) -> None:
    try:
        await client.stop()
    finally:
        await client.close()


def main(args: argparse.Namespace) -> int:
    config = resolve_config(args, require_loop=False)
    client = build_client(config)

    try:
        asyncio.run(_stop(client))
    except RpcError as e:
        print(f"stop failed: {e}")
        return 1

    print(f"stop sent to {client.endpoint}")
    return 0
