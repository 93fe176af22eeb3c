import asyncio
import logging
import os
import sys

# Ensure project root is in path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from transcript_relay.app import build_app
from transcript_relay.config import load_config
from transcript_relay.utils.logger import SystemLogger

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

HELP = "Commands: start [tab_id] | stop | status | quit"


async def run(app):
    manager = app.session_manager
    loop = asyncio.get_running_loop()

    print(HELP)
    while True:
        print("> ", end="", flush=True)
        # input() would block the event loop and stall chunk processing
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break

        parts = line.strip().split()
        if not parts:
            continue
        command = parts[0].lower()

        if command == "start":
            try:
                tab_id = int(parts[1]) if len(parts) > 1 else -1
            except ValueError:
                print("tab_id must be an integer")
                continue
            result = await manager.handle_command({"type": "START_RECORDING", "tab_id": tab_id})
        elif command == "stop":
            result = await manager.handle_command({"type": "STOP_RECORDING"})
        elif command == "status":
            result = await manager.handle_command({"type": "GET_RECORDING_STATUS"})
        elif command in ("quit", "exit"):
            break
        else:
            print(HELP)
            continue

        print(result)


async def main():
    config_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "User_config.txt")
    config = load_config(config_path)

    logger = SystemLogger("Relay")
    app = build_app(config, logger)
    logger.info("Transcript relay started")

    try:
        await run(app)
    finally:
        logger.info("Shutting down...")
        await app.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
