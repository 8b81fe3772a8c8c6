"""Example: drive the time-log service directly (no Flask).

Controllers are thin; the rules live in the services and pure operations.
"""

from datetime import datetime

from timeclock.container import build_container
from timeclock.core.enums import Role


def main():
    container = build_container(backend="memory")
    svc = container.time_log_service

    svc.clock_in("demo-org", "Alice", now=datetime(2024, 1, 5, 9, 0, 0))
    svc.clock_out("demo-org", "Alice", now=datetime(2024, 1, 5, 17, 30, 15))

    bundle = svc.export_for_date("demo-org", datetime(2024, 1, 5).date(), Role.OWNER)
    print(bundle.filename)
    for row in bundle.records:
        print(row)


if __name__ == "__main__":
    main()
