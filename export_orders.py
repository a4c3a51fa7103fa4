# export_orders.py

import json
import sys

from auradhom.deps import get_backup_service

def main():
    backup = get_backup_service()
    filename = sys.argv[1] if len(sys.argv) > 1 else backup.export_filename()

    print("Exporting backed-up orders...")

    snapshot = backup.export_all()
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, ensure_ascii=False, indent=2)

    print(
        f"{snapshot['totalOrders']} orders written to {filename} "
        f"(pending={snapshot['pending']}, validated={snapshot['validated']}, "
        f"rejected={snapshot['rejected']})"
    )

if __name__ == "__main__":
    main()
