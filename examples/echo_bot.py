#!/usr/bin/env python3
"""
Echo Bot Example

Mounts one webhook per platform configured in the environment and echoes
text back, counting messages per conversation in the session state.

Run from project root:
    TELEGRAM_ACCESS_TOKEN=... python examples/echo_bot.py
"""
import re
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from relaybot import route, router, text
from relaybot.config import get_settings
from relaybot.infra.logging_config import get_logger
from relaybot.platforms.telegram import telegram
from relaybot.transport.http_app import bots_from_settings, create_app, run

logger = get_logger(__name__)


async def reset(context, props):
    context.reset_state()
    await context.send_text("Counter reset.")


async def echo(context, props):
    count = context.state.get("count", 0) + 1
    context.set_state({"count": count})
    await context.send_text(f"#{count}: {context.event.text}")


async def greet(context, props):
    await context.send_text(f"Hello, {props.match.group(1)}!")


async def answer_button(context, props):
    await context.call("answer_callback_query", text="ok")


async def ignore(context, props):
    logger.debug(f"Unhandled event on {context.platform}")


async def on_error(context, props):
    logger.error(f"Handler failed: {props.error}")
    await context.send_text("Something went wrong.")


app_router = router([
    text("/reset", reset),
    text(re.compile(r"^my name is (\w+)", re.IGNORECASE), greet),
    text("*", echo),
    telegram.callback_query(answer_button),
    route("*", ignore),
])


def main():
    settings = get_settings()
    bots = bots_from_settings(settings, app_router, error_action=on_error)
    if not bots:
        print("No platform credentials configured; set e.g. TELEGRAM_ACCESS_TOKEN.")
        return 1
    run(create_app(bots, settings=settings), settings=settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
