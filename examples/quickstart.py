#!/usr/bin/env python3
"""
Complaint Audit Layer Quickstart Example

This example walks one complaint through its lifecycle:
1. Registering a complaint
2. Attaching proofs while it is active
3. Moving it through investigation to a terminal state
4. Showing that terminal complaints are frozen
5. Saving and reloading the registry

Run this example:
    python examples/quickstart.py
"""

import hashlib
import json
import os
import sys

# Add src to path so we can import the registry
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from complaint_registry import ComplaintRegistry, ComplaintStatus
from storage import MemoryStorage


def sha256(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


def main():
    print("=" * 60)
    print("Complaint Audit Layer Quickstart")
    print("=" * 60)
    print()

    registry = ComplaintRegistry()

    print("Step 1: Registering complaint C-1001...")
    accepted = registry.register(
        "C-1001",
        sha256("My refund was never processed after the order was cancelled."),
        "user-42",
        "2025-01-15T10:30:00",
    )
    print(f"  accepted: {accepted}")

    duplicate = registry.register("C-1001", sha256("other text"), "user-7", "2025-01-15T10:31:00")
    print(f"  duplicate registration accepted: {duplicate} ({registry.last_rejection})")
    print()

    print("Step 2: Attaching proofs...")
    registry.attach_proof("C-1001", sha256("order-confirmation.pdf"), "document", "2025-01-15T11:00:00")
    registry.attach_proof("C-1001", sha256("bank-statement.png"), "photo", "2025-01-15T11:05:00")
    print(f"  proofs: {len(registry.get_one('C-1001').proofs)}")
    print()

    print("Step 3: Investigating and resolving...")
    registry.update_status("C-1001", ComplaintStatus.UNDER_INVESTIGATION, "2025-01-16T09:00:00")
    registry.update_status("C-1001", ComplaintStatus.RESOLVED, "2025-01-20T17:45:00")
    print(f"  status: {registry.get_one('C-1001').status.value}")
    print()

    print("Step 4: Trying to change a resolved complaint...")
    print(f"  attach proof: {registry.attach_proof('C-1001', sha256('late.pdf'), 'document', '2025-01-21T08:00:00')}")
    print(f"  reopen: {registry.update_status('C-1001', 'FILED', '2025-01-21T08:00:00')}")
    print(f"  reason: {registry.last_rejection}")
    print()

    print("Step 5: Saving and reloading...")
    storage = MemoryStorage()
    storage.save_registry(registry.to_dict())
    reloaded = ComplaintRegistry.from_dict(storage.load_registry())
    print(json.dumps(reloaded.get_one("C-1001").to_dict(), indent=2))


if __name__ == "__main__":
    main()
