#!/usr/bin/env python3
"""
Quick verification that the board client works end-to-end against a live server.

Start the server first:
    python kanban_server.py --db /tmp/taskboard_verify.json
Then:
    python verify_kanban.py --api-url http://localhost:4000
"""
import argparse
import asyncio
import logging
import sys

from taskboard.app import BoardApp
from taskboard.board import render_board
from taskboard.config import Config
from taskboard.schema import Column, TaskFormData
from taskboard.store import TaskStore


def show(store: TaskStore) -> None:
    for line in render_board(store).splitlines():
        print(f"   {line}")


async def run(cfg: Config) -> bool:
    app = BoardApp.from_config(cfg)
    store, client, coordinator = app.store, app.service, app.coordinator

    print("\n[1/6] Checking server health...")
    if not await asyncio.to_thread(client.health):
        print(f"❌ No task service at {cfg.api_url}")
        return False
    print(f"✅ {cfg.api_url} is up")

    print("\n[2/6] Loading board...")
    if not await coordinator.load():
        print(f"❌ {store.error}")
        return False
    print(f"✅ Loaded {len(store)} tasks")
    show(store)

    print("\n[3/6] Creating a task...")
    rejected = await coordinator.create(TaskFormData(title="Ab", description="short"))
    print(f"   Invalid form rejected: {rejected.errors}")
    result = await coordinator.create(TaskFormData(
        title="Verify board client",
        description="End-to-end check of create, move, update and delete",
    ))
    if not result.ok:
        print(f"❌ {result.message}")
        return False
    task = result.task
    print(f"✅ Created #{task.id}: {task.title}")

    print("\n[4/6] Moving it across the board...")
    for column in (Column.IN_PROGRESS, Column.REVIEW, Column.DONE):
        moved = await coordinator.move(task.id, column)
        print(f"   → {column.value}: {moved.status.value}")
    await coordinator.wait_settled()
    if store.get(task.id).column != Column.DONE:
        print("❌ Task did not reach Done")
        return False
    print("✅ Task is in Done")

    print("\n[5/6] Editing and searching...")
    edited = store.get(task.id).copy(title="Verify board client (edited)")
    updated = await coordinator.update(edited)
    print(f"   Update: {updated.status.value}")
    app.search.type("verify")
    await asyncio.sleep(cfg.search_debounce_ms / 1000 + 0.05)
    show(store)
    app.search.clear()

    print("\n[6/6] Deleting it...")
    deleted = await coordinator.delete(task.id, confirm=lambda prompt: True)
    await coordinator.wait_settled()
    if task.id in store:
        print(f"❌ Task #{task.id} still on the board ({deleted.status.value})")
        return False
    print(f"✅ Deleted #{task.id}")

    print("\nNotifications:")
    for n in app.notifications.history:
        print(f"   [{n.type.value}] {n.message}")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Task board end-to-end check")
    parser.add_argument("--config", help="Path to taskboard.yaml")
    parser.add_argument("--api-url", help="Task service URL (overrides config)")
    args = parser.parse_args(argv)

    cfg = Config.load(args.config)
    if args.api_url:
        cfg.api_url = args.api_url.rstrip("/")

    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    print("=" * 60)
    print("Task Board Client Verification")
    print("=" * 60)

    ok = asyncio.run(run(cfg))

    print("\n" + "=" * 60)
    print("✅ ALL CHECKS PASSED" if ok else "❌ VERIFICATION FAILED")
    print("=" * 60)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
