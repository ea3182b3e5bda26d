"""Probe a collection contract for the transfer convention the engine would use.

Usage examples:
  python scripts/probe_collection.py 0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D
  MKT_NETWORK=sepolia python scripts/probe_collection.py <address> --rpc-url http://127.0.0.1:8545
"""

import argparse
import os
import sys

from dotenv import load_dotenv
from loguru import logger

from market_engine.dispatcher import resolve_asset_kind
from market_engine.errors import InvalidTokenAmount, RpcError
from market_engine.rpc_client import JsonRpcClient, RpcCapabilityProbe


def main() -> None:
    p = argparse.ArgumentParser(description="ERC-165 capability probe")
    p.add_argument("collection")
    p.add_argument("--rpc-url", default=None, help="Override MKT_RPC_URL / network default")
    args = p.parse_args()

    env_file = os.getenv("ENV_FILE")
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    rpc = JsonRpcClient(args.rpc_url)
    try:
        logger.info("chainId={} rpc={}", rpc.chain_id(), rpc.base_url)
        kind = resolve_asset_kind(RpcCapabilityProbe(rpc), args.collection)
    except InvalidTokenAmount as e:
        logger.error("unsupported collection: {}", e)
        sys.exit(1)
    except RpcError as e:
        logger.error("RPC failure: {}", e)
        sys.exit(2)
    logger.info("{} → {}", args.collection, kind.value)


if __name__ == "__main__":
    main()
