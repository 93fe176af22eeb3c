import asyncio
import logging
import os
import sys

# Add project root to python path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from transcript_relay.config import load_config
from transcript_relay.notification.dispatcher import SentenceDispatcher
from transcript_relay.notification.slack_client import SlackClient
from transcript_relay.transcription.sentence_assembler import SentenceAssembler
from transcript_relay.translation.manager import TranslationManager
from transcript_relay.utils.event_bus import EventBus
from transcript_relay.utils.logger import SystemLogger

# Setup basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


async def main():
    print("=== Sentence Relay Smoke Test ===")

    config = load_config("User_config.txt")
    if not config["slack"]["webhook_url"]:
        print("Please set SLACK_WEBHOOK_URL in User_config.txt")
        return

    print(f"Using Translation Model: {config['translation']['llm_translation_model']}")
    print(f"Target Language:         {config['translation']['target_language']}")

    logger = SystemLogger("SmokeTest")
    bus = EventBus()
    assembler = SentenceAssembler(bus, logger)
    translation_manager = TranslationManager(bus, config["translation"], logger)
    dispatcher = SentenceDispatcher(bus, translation_manager, SlackClient(config["slack"]["webhook_url"], logger), logger)

    def on_posted(data):
        print("\n" + "=" * 40)
        print(f"Original:    {data['sentence'].text}")
        print(f"Translation: {data.get('translation')}")
        print("=" * 40 + "\n")

    bus.subscribe("notification.posted", on_posted)

    print("\nType transcript fragments; sentences are posted once complete.")
    print("An empty line flushes the pending fragment. Ctrl+C to exit.")

    loop = asyncio.get_running_loop()
    timestamp = 0
    try:
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break

            fragment = line.rstrip("\n")
            if fragment.strip():
                timestamp += 1000
                assembler.process_fragment(fragment, timestamp)
            else:
                assembler.flush()
    except KeyboardInterrupt:
        print("\nExiting...")
    finally:
        assembler.flush()
        await dispatcher.wait_until_idle(timeout=30)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
