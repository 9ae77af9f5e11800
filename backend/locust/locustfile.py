"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags capacity   # Many attendees, few places
  locust -f locustfile.py --tags browse     # Listing filters and detail reads
  locust -f locustfile.py --tags edge       # Bad input and auth errors
  locust -f locustfile.py                   # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag, events
from datetime import datetime, timezone, timedelta

CAPACITY_EVENT_PLACES = 10
PASSWORD = "loadtest123"

# Shared state
EVENT_IDS = []
CAPACITY_EVENT_ID = None


def random_email(prefix: str = "load") -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=10))
    return f"{prefix}_{suffix}@example.com"


def signup_and_login(client, role: str) -> dict:
    """Create an account and return auth headers ({} if login failed)."""
    email = random_email(role)
    client.post("/api/v1/auth/register", json={
        "name": f"Load {role}",
        "email": email,
        "password": PASSWORD,
        "role": role,
    })
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


def future_date(days: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Capacity scenario: {CAPACITY_EVENT_PLACES} places per event")
    print("=" * 60)


class CapacityUser(HttpUser):
    """
    TEST 1: Capacity - 100 attendees -> 10 places

    Run: locust -f locustfile.py --tags capacity -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM rsvps WHERE event_id = X;          -- <= 10
      SELECT attendee_count FROM events WHERE id = X;         -- same number
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CAPACITY_EVENT_ID
        if CAPACITY_EVENT_ID is None:
            organizer_headers = signup_and_login(self.client, "organizer")
            resp = self.client.post("/api/v1/events", json={
                "title": "Capacity Test Event",
                "description": f"{CAPACITY_EVENT_PLACES} places only",
                "date": future_date(),
                "time": "18:00",
                "location": "Test",
                "capacity": CAPACITY_EVENT_PLACES,
            }, headers=organizer_headers)
            if resp.status_code == 201 and CAPACITY_EVENT_ID is None:
                CAPACITY_EVENT_ID = resp.json()["event"]["id"]
                print(f"\n✓ Created event {CAPACITY_EVENT_ID} with {CAPACITY_EVENT_PLACES} places\n")

        self.headers = signup_and_login(self.client, "attendee")

    @tag("capacity")
    @task
    def register_for_limited_event(self):
        """Everyone fights for the same places."""
        if not CAPACITY_EVENT_ID or not self.headers:
            return

        with self.client.post(
            f"/api/v1/events/{CAPACITY_EVENT_ID}/rsvp",
            headers=self.headers,
            name="/api/v1/events/{id}/rsvp",
            catch_response=True,
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 400:
                resp.success()  # Expected: full or already registered
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class BrowsingUser(HttpUser):
    """
    TEST 2: Read path - listing filters and event detail

    Run: locust -f locustfile.py --tags browse -u 100 -r 20 --run-time 60s
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = signup_and_login(self.client, "attendee")

    @tag("browse")
    @task(10)
    def list_upcoming(self):
        resp = self.client.get("/api/v1/events?filter=upcoming", headers=self.headers,
            name="/api/v1/events?filter=upcoming")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("browse")
    @task(5)
    def list_public(self):
        self.client.get("/api/v1/events?filter=public", name="/api/v1/events?filter=public")

    @tag("browse")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                name="/api/v1/events/{id}")

    @tag("browse")
    @task(2)
    def my_registrations(self):
        if self.headers:
            self.client.get("/api/v1/user/registrations", headers=self.headers)


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = signup_and_login(self.client, "attendee")

    def _expect(self, resp, *codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def register_missing_event(self):
        with self.client.post("/api/v1/events/999999/rsvp", headers=self.headers,
            name="/api/v1/events/[missing]/rsvp", catch_response=True) as resp:
            self._expect(resp, 404)

    @tag("edge")
    @task
    def cancel_without_rsvp(self):
        with self.client.delete("/api/v1/events/999999/rsvp", headers=self.headers,
            name="/api/v1/events/[missing]/rsvp", catch_response=True) as resp:
            self._expect(resp, 404)

    @tag("edge")
    @task
    def attendee_creates_event(self):
        with self.client.post("/api/v1/events", json={
            "title": "Not allowed",
            "description": "Attendees cannot create events",
            "date": future_date(),
            "time": "10:00",
            "location": "Nowhere",
        }, headers=self.headers, catch_response=True) as resp:
            self._expect(resp, 403)

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/auth/register", data="not json at all",
            headers={"Content-Type": "application/json"}, catch_response=True) as resp:
            self._expect(resp, 400)

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/events/1/rsvp", name="/api/v1/events/{id}/rsvp [anon]",
            catch_response=True) as resp:
            self._expect(resp, 401)


class OrganizerUser(HttpUser):
    """
    TEST 4: Organizers publishing and editing events alongside the readers.

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = signup_and_login(self.client, "organizer")
        self.my_events = []

    @task(3)
    def create_event(self):
        if not self.headers:
            return
        resp = self.client.post("/api/v1/events", json={
            "title": f"Event {random.randint(1, 10000)}",
            "description": "Load test event",
            "date": future_date(random.randint(1, 90)),
            "time": "19:00",
            "location": "Venue",
            "capacity": random.choice([None, 10, 50, 200]),
            "isPublic": random.random() < 0.8,
        }, headers=self.headers)
        if resp.status_code == 201:
            event_id = resp.json()["event"]["id"]
            self.my_events.append(event_id)
            EVENT_IDS.append(event_id)

    @task(2)
    def update_event(self):
        if self.my_events:
            self.client.put(f"/api/v1/events/{random.choice(self.my_events)}",
                json={"location": f"Room {random.randint(1, 20)}"},
                headers=self.headers, name="/api/v1/events/{id} [update]")

    @task(1)
    def list_my_events(self):
        self.client.get("/api/v1/events?filter=my-events", headers=self.headers,
            name="/api/v1/events?filter=my-events")
