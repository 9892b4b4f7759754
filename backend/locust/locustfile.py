"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double-booking
  locust -f locustfile.py --tags throughput   # Test availability probes
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from datetime import date, timedelta

from locust import HttpUser, between, events, tag, task

# Shared state
CUSTOMER_IDS = []
VEHICLE_IDS = []
CONTESTED_VEHICLE_ID = None

# Every ConcurrencyUser asks for a window overlapping this one
CONTESTED_START = date(2030, 1, 10)


def random_email():
    return f"load_{random.randint(10000, 99999)}_{random.randint(0, 999)}@test.com"


def random_plate():
    return "LT-" + "".join(random.choices(string.ascii_uppercase + string.digits, k=6))


def window(start: date, days: int) -> dict:
    return {"start_date": start.isoformat(), "end_date": (start + timedelta(days=days)).isoformat()}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: users create their own customer; first one creates the contested car")
    print("=" * 60)


def _create_customer(client):
    resp = client.post("/api/v1/customers/", json={
        "full_name": "Load Test",
        "email": random_email(),
    })
    if resp.status_code == 201:
        CUSTOMER_IDS.append(resp.json()["id"])
        return resp.json()["id"]
    return None


def _create_vehicle(client):
    resp = client.post("/api/v1/vehicles/", json={
        "make": "Load",
        "model": "Tester",
        "year": 2024,
        "license_plate": random_plate(),
        "category": "compact",
        "daily_rate": 40,
    })
    if resp.status_code == 201:
        VEHICLE_IDS.append(resp.json()["id"])
        return resp.json()["id"]
    return None


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 1 car, overlapping dates

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings
      WHERE vehicle_id = X AND status IN ('pending', 'active');
    Should be 1
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.customer_id = _create_customer(self.client)
        if not CONTESTED_VEHICLE_ID:
            vehicle_id = _create_vehicle(self.client)
            if vehicle_id:
                globals()["CONTESTED_VEHICLE_ID"] = vehicle_id
                print(f"\n✓ Created contested vehicle {vehicle_id}\n")

    @tag("concurrency")
    @task
    def book_contested_car(self):
        """All users fight for the same car around the same dates."""
        if not CONTESTED_VEHICLE_ID or not self.customer_id:
            return

        start = CONTESTED_START + timedelta(days=random.randint(-2, 2))
        with self.client.post("/api/v1/bookings/",
            json={
                "customer_id": self.customer_id,
                "vehicle_id": CONTESTED_VEHICLE_ID,
                **window(start, random.randint(3, 6)),
            },
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409 expected: car already taken
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - availability probe cache

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def probe_availability(self):
        if not VEHICLE_IDS:
            return
        vehicle_id = random.choice(VEHICLE_IDS)
        start = date(2030, 1, 1) + timedelta(days=random.randint(0, 30))
        params = window(start, random.randint(1, 7))
        self.client.get(
            f"/api/v1/vehicles/{vehicle_id}/availability",
            params=params,
            name="/api/v1/vehicles/{id}/availability",
        )

    @tag("throughput", "read")
    @task(3)
    def available_vehicles(self):
        start = date(2030, 1, 1) + timedelta(days=random.randint(0, 30))
        self.client.get("/api/v1/vehicles/available", params=window(start, 3))

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

    def _expect(self, payload, codes, label):
        with self.client.post("/api/v1/bookings/", json=payload, catch_response=True, name=label) as resp:
            if resp.status_code in codes:
                resp.success()
            else:
                resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_vehicle(self):
        self._expect(
            {"customer_id": 1, "vehicle_id": 999999, **window(date(2030, 2, 1), 2)},
            (404,), "unknown vehicle",
        )

    @tag("edge")
    @task
    def empty_range(self):
        self._expect(
            {"customer_id": 1, "vehicle_id": 1, "start_date": "2030-02-01", "end_date": "2030-02-01"},
            (422,), "empty range",
        )

    @tag("edge")
    @task
    def inverted_range(self):
        self._expect(
            {"customer_id": 1, "vehicle_id": 1, "start_date": "2030-02-05", "end_date": "2030-02-01"},
            (422,), "inverted range",
        )

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/bookings/",
            data="not json at all",
            catch_response=True,
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def illegal_transition(self):
        with self.client.patch("/api/v1/bookings/1/status",
            json={"status": "pending"},
            catch_response=True,
            name="/api/v1/bookings/{id}/status [illegal]",
        ) as resp:
            if resp.status_code in [400, 404]:
                resp.success()
            else:
                resp.failure(f"Expected 400/404, got {resp.status_code}")


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates a rental desk:
      - Mostly availability probes and calendar views
      - Some bookings, confirmations and cancellations
      - Rare fleet additions
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.customer_id = _create_customer(self.client)
        self.booking_ids = []

    @task(40)
    def probe(self):
        if VEHICLE_IDS:
            start = date(2030, 3, 1) + timedelta(days=random.randint(0, 60))
            self.client.get(
                f"/api/v1/vehicles/{random.choice(VEHICLE_IDS)}/availability",
                params=window(start, random.randint(1, 7)),
                name="/api/v1/vehicles/{id}/availability",
            )

    @task(15)
    def calendar(self):
        start = date(2030, 3, 1) + timedelta(days=random.randint(0, 60))
        self.client.get("/api/v1/bookings/calendar", params=window(start, 14))

    @task(10)
    def book(self):
        if VEHICLE_IDS and self.customer_id:
            start = date(2030, 3, 1) + timedelta(days=random.randint(0, 60))
            resp = self.client.post("/api/v1/bookings/", json={
                "customer_id": self.customer_id,
                "vehicle_id": random.choice(VEHICLE_IDS),
                **window(start, random.randint(1, 7)),
            })
            if resp.status_code == 201:
                self.booking_ids.append(resp.json()["id"])

    @task(4)
    def change_status(self):
        if self.booking_ids:
            booking_id = random.choice(self.booking_ids)
            self.client.patch(
                f"/api/v1/bookings/{booking_id}/status",
                json={"status": random.choice(["active", "cancelled", "completed"])},
                name="/api/v1/bookings/{id}/status",
            )

    @task(1)
    def add_vehicle(self):
        _create_vehicle(self.client)
