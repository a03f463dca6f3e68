"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags throughput   # Test slot-list cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests

Booking requests need existing reference rows. Point the run at them with
LOAD_USER_ID, LOAD_VEHICLE_ID and LOAD_SERVICE_TYPE_ID (default 1 each).
"""

import os
import random
from datetime import date, timedelta
import httpx
from locust import HttpUser, task, between, tag, events

USER_ID = int(os.getenv("LOAD_USER_ID", "1"))
VEHICLE_ID = int(os.getenv("LOAD_VEHICLE_ID", "1"))
SERVICE_TYPE_ID = int(os.getenv("LOAD_SERVICE_TYPE_ID", "1"))
SLOT_CAPACITY = int(os.getenv("LOAD_SLOT_CAPACITY", "10"))

# Shared state
CONCURRENCY_SLOT_ID = None
SLOT_DAY = (date.today() + timedelta(days=30)).isoformat()


def booking_body(slot_id: int) -> dict:
    return {
        "time_slot_id": slot_id,
        "user_id": USER_ID,
        "vehicle_id": VEHICLE_ID,
        "service_type_id": SERVICE_TYPE_ID,
        "notes": "load test",
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: slot capacity {SLOT_CAPACITY} on {SLOT_DAY}")
    print("=" * 60)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Report the final count so overbooking is visible without a SQL shell."""
    if not CONCURRENCY_SLOT_ID or environment.host is None:
        return
    resp = httpx.get(f"{environment.host}/api/v1/slots/{CONCURRENCY_SLOT_ID}")
    if resp.status_code == 200:
        slot = resp.json()
        verdict = "OK" if slot["booked_count"] <= slot["capacity"] else "OVERBOOKED"
        print(f"\nslot {CONCURRENCY_SLOT_ID}: {slot['booked_count']}/{slot['capacity']} booked [{verdict}]\n")


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users → one slot

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT booked_count, capacity FROM time_slots WHERE id = X;
      SELECT COUNT(*) FROM bookings WHERE time_slot_id = X AND status <> 'cancelled';
    Both counts should be ≤ capacity
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if CONCURRENCY_SLOT_ID:
            return
        resp = self.client.post("/api/v1/slots/", json={
            "date": SLOT_DAY,
            "start_time": "09:00",
            "end_time": "10:00",
            "capacity": SLOT_CAPACITY,
        })
        if resp.status_code == 201 and not CONCURRENCY_SLOT_ID:
            globals()["CONCURRENCY_SLOT_ID"] = resp.json()["id"]
            print(f"\n✓ Created slot {CONCURRENCY_SLOT_ID} with {SLOT_CAPACITY} places\n")

    @tag("concurrency")
    @task
    def book_limited_slot(self):
        """All users fight for the same places."""
        if not CONCURRENCY_SLOT_ID:
            return

        with self.client.post("/api/v1/bookings/",
            json=booking_body(CONCURRENCY_SLOT_ID),
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: fully booked
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the API, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_slots_cached(self):
        """Hammer the cached per-day listing."""
        day = (date.today() + timedelta(days=random.randint(0, 6))).isoformat()
        self.client.get(f"/api/v1/slots/?date={day}", name="/api/v1/slots/ [cached]")

    @tag("throughput", "read")
    @task(3)
    def admin_overview(self):
        self.client.get("/api/v1/admin/bookings/counts", name="/api/v1/admin/bookings/counts")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    @tag("edge")
    @task
    def invalid_slot_id(self):
        """Book a slot that does not exist."""
        with self.client.post("/api/v1/bookings/",
            json=booking_body(999999),
            catch_response=True
        ) as resp:
            if resp.status_code in [404, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 404/422, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_status(self):
        """Staff update with a status token outside the lifecycle."""
        with self.client.patch("/api/v1/admin/bookings/1/status",
            json={"status": "archived"},
            catch_response=True
        ) as resp:
            if resp.status_code in [404, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 404/422, got {resp.status_code}")

    @tag("edge")
    @task
    def bad_notification_payload(self):
        with self.client.post("/api/v1/notifications/booking",
            json={"bookingId": "1"},
            catch_response=True
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400, got {resp.status_code}")
