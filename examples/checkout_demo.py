#!/usr/bin/env python3
"""Checkout pipeline demo — validate, reserve stock in a transaction, notify.

Shows ordinary, pass, fail and wrap steps plus a subprocess and a
dynamically chosen notifier.

Usage:
    STEPCHAIN_STEP_LOG_LEVEL=INFO python examples/checkout_demo.py
"""

import logging
import sys
from pathlib import Path

# Ensure project root is importable
_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(_root))

from stepchain import Chain, EngineConfig, PassFast, Steps, as_subprocess, nested

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

CONFIG = EngineConfig.from_env(_root / ".env")
STOCK = {"book": 2, "lamp": 0}


def audit(ctx):
    # best effort; the None return is ignored for pass steps
    ctx.setdefault("audit", []).append(ctx.get("items"))


def transaction(ctx, proceed):
    ctx["journal"] = []
    result = proceed()
    if result.is_failure:
        ctx["journal"].clear()
    ctx["committed"] = result.is_success


class ReserveStock(Chain):
    config = CONFIG
    steps = Steps().step("reserve")

    def reserve(self, ctx, /, *, items, journal, **_):
        for item in items:
            if STOCK.get(item, 0) < 1:
                ctx["error"] = f"{item} is out of stock"
                return False
            journal.append(item)
        return True


class EmailReceipt(Chain):
    config = CONFIG
    steps = Steps().step(lambda ctx: print(f"  email receipt for {ctx['items']}") or True)


class Checkout(Chain):
    config = CONFIG
    steps = (
        Steps()
        .step("validate")
        .step("skip_empty_basket")
        .wrap(transaction, Steps().step(as_subprocess(ReserveStock)))
        .pass_(audit)
        .step(nested("notifier"))
        .fail("report")
    )

    def validate(self, ctx, /, *, items=None, **_):
        return isinstance(items, list)

    def skip_empty_basket(self, ctx, /, *, items, **_):
        return PassFast if not items else True

    def notifier(self, ctx, /, *, channel="email", **_):
        return EmailReceipt if channel == "email" else (lambda ctx: print("  sms receipt") or True)

    def report(self, ctx, /, **_):
        print(f"  checkout failed: {ctx.get('error', 'invalid basket')}")


if __name__ == "__main__":
    for basket in (["book"], ["book", "lamp"], [], None):
        print(f"basket={basket!r}")
        result = Checkout.call(items=basket)
        print(f"  -> {type(result).__name__}, committed={result.get('committed')}")
