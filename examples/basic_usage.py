#!/usr/bin/env python3
"""
Basic Usage Example - lifebus Inter-Agent Signal Bus

This script walks through one simulated day of agents talking over the bus.
It shows how to:
- Build a registry of per-agent buses from configuration
- Emit broadcast and targeted signals
- Consume, peek, dismiss and summarize signals

The demo writes to a throwaway SQLite file in a temporary directory.

Run: python examples/basic_usage.py
"""

import tempfile
from pathlib import Path

from lifebus.config import ConfigLoader
from lifebus.housekeeping import SignalJanitor
from lifebus.logging import configure_logging
from lifebus.signals import Signal, SignalBusRegistry, SignalType


def print_signal(signal: Signal) -> None:
    """Print one signal on a single line."""
    target = signal.target_agent or "all"
    print(f"   [P{signal.priority}] {signal.source_agent} -> {target}: "
          f"{signal.signal_type} | {signal.message}")
    if signal.payload:
        print(f"        payload: {signal.payload}")


def main():
    """Main demonstration function."""
    print("🚀 lifebus - Basic Usage Demo")
    print("=" * 60)

    configure_logging(level="WARNING")

    with tempfile.TemporaryDirectory() as tmp:
        # Build the registry
        print("1. Building the signal bus registry...")
        config = ConfigLoader.create().load({
            "store": {"backend": "sqlite", "sqlite_path": str(Path(tmp) / "signals.db")}
        })
        registry = SignalBusRegistry.from_config(config)
        print(f"   Store: {config.store.backend} ({config.store.sqlite_path})")
        print()

        # Evening review leaves notes for tomorrow
        print("2. Evening review emits signals for the morning briefing...")
        evening = registry.get("evening-review")
        evening.emit(SignalType.DAILY_SCORE, "Yesterday scored 72/100", {"score": 72},
                     target="morning-briefing")
        evening.emit(SignalType.WEAK_DOMAIN, "Health is the weakest domain", {"domain": "health"},
                     target="morning-briefing", priority=2)
        print("   Emitted daily_score and weak_domain")
        print()

        # Domain agents broadcast
        print("3. Domain agents broadcast overnight findings...")
        registry.get("health").emit(
            SignalType.LOW_SLEEP, "Slept 5h 10m", {"hours": 5.2}, priority=1
        )
        registry.get("finance").emit(
            "budget_alert", "Restaurant over budget", {"category": "restaurant"},
            priority=1, ttl_hours=24
        )
        registry.get("career").emit(
            "interview_scheduled", "Interview Monday", {}, target="learning", priority=1
        )
        print("   Emitted low_sleep, budget_alert (broadcast) and interview_scheduled (-> learning)")
        print()

        # Summary for the briefing header
        briefing = registry.get("morning-briefing")
        summary = briefing.get_active_summary()
        print("4. Active summary (last 24h):")
        print(f"   Total: {summary.total}")
        print(f"   Critical: {len(summary.critical)}")
        print(f"   By source: {summary.by_source}")
        print(f"   By type: {summary.by_type}")
        print()

        # Briefing consumes what is addressed to it
        print("5. Morning briefing consumes its signals...")
        for signal in briefing.consume(mark_consumed=True):
            print_signal(signal)
        print(f"   Remaining for briefing: {len(briefing.consume())}")
        print()

        # Targeted signal only reaches its recipient
        print("6. Targeted delivery...")
        print(f"   Trading sees {len(registry.get('trading').consume())} signals")
        for signal in registry.get("learning").consume():
            print_signal(signal)
        print()

        # Focus mode with dismissal
        print("7. Telegram bot toggles focus mode...")
        bot = registry.get("telegram-bot")
        reminder = registry.get("task-reminder")
        focus_id = bot.emit(SignalType.FOCUS_MODE_ACTIVE, "Focus until 11:00",
                            {"until": "11:00"}, target="task-reminder", priority=1, ttl_hours=2)
        print(f"   Reminder sees focus mode: {reminder.has_recent(SignalType.FOCUS_MODE_ACTIVE, hours_back=2)}")
        bot.dismiss(focus_id)
        print(f"   After dismissal: {reminder.get_latest(SignalType.FOCUS_MODE_ACTIVE)}")
        print()

        # Table stats
        stats = SignalJanitor(registry.store).stats()
        print("8. Signal table stats:")
        print(f"   Total rows: {stats.get('total')}")
        print(f"   By status: {stats.get('by_status')}")
        print()

    print("✅ Demo completed successfully!")
    print("   This example showed emitting, routing, consuming and")
    print("   dismissing signals between agents.")


if __name__ == "__main__":
    main()
