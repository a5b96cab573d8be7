#!/usr/bin/env python3
"""
Undercover room server entry point
"""
import argparse
import logging

import uvicorn

from undercover.config import Config


def main():
    parser = argparse.ArgumentParser(prog="undercover", description="Run the undercover room server")
    parser.add_argument("--host", default=Config.SERVER_HOST)
    parser.add_argument("--port", type=int, default=Config.PORT)
    args = parser.parse_args()

    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger = logging.getLogger("undercover")
    logger.info("Starting server on %s:%d", args.host, args.port)

    uvicorn.run("undercover.server:app", host=args.host, port=args.port, log_level=Config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
