"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags rush       # Flash-sale rush on one event
  locust -f locustfile.py --tags replay     # Exchange token replay attempts
  locust -f locustfile.py --tags edge       # Bad input
  locust -f locustfile.py                   # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag, events

RUSH_EVENT_ID = "E-RUSH"
EVENT_IDS = [f"E{n:02d}" for n in range(1, 6)]


def random_user_id():
    return "user-" + "".join(random.choices(string.ascii_lowercase + string.digits, k=10))


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Waiting room load test against {environment.host}")
    print("=" * 60)


class RushUser(HttpUser):
    """
    TEST 1: Flash sale - everyone joins one event, polls, and redeems.

    Run: locust -f locustfile.py --tags rush -u 500 -r 100 --run-time 60s

    After test, verify in Redis:
      ZCARD queue:ledger:E-RUSH shrinks by QUEUE_BATCH_SIZE per tick
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.queue_token = None
        self.redeemed = False
        resp = self.client.post("/api/v1/queue/enter", json={
            "userId": random_user_id(),
            "eventId": RUSH_EVENT_ID,
        })
        if resp.status_code == 200:
            self.queue_token = resp.json()["queueToken"]

    @tag("rush")
    @task
    def poll_and_redeem(self):
        if not self.queue_token or self.redeemed:
            return
        resp = self.client.get(
            "/api/v1/queue/status",
            params={"token": self.queue_token},
            name="/api/v1/queue/status",
        )
        if resp.status_code != 200:
            return
        data = resp.json()
        if data["status"] == "ADMITTED" and data["exchangeToken"]:
            redeem = self.client.post("/api/v1/reservations/start", json={
                "exchangeToken": data["exchangeToken"],
            })
            self.redeemed = redeem.status_code == 200


class SpreadUser(HttpUser):
    """
    TEST 2: Many events at once - exercises round-robin across events.
    """
    wait_time = between(0.5, 2)

    @tag("rush")
    @task(3)
    def join_random_event(self):
        self.client.post("/api/v1/queue/enter", json={
            "userId": random_user_id(),
            "eventId": random.choice(EVENT_IDS),
        }, name="/api/v1/queue/enter [spread]")

    @tag("rush")
    @task(1)
    def event_stats(self):
        event_id = random.choice(EVENT_IDS)
        self.client.get(f"/api/v1/queue/events/{event_id}", name="/api/v1/queue/events/[id]")


class ReplayUser(HttpUser):
    """
    TEST 3: Replay - redeem the same exchange token from several clients.
    Every replay must get 401; only one reservation per admission.
    """
    wait_time = between(0.1, 0.5)

    @tag("replay")
    @task
    def replay_bogus_token(self):
        with self.client.post(
            "/api/v1/reservations/start",
            json={"exchangeToken": "x_" + "0" * 32},
            catch_response=True,
            name="/api/v1/reservations/start [replay]",
        ) as resp:
            if resp.status_code == 401:
                resp.success()
            else:
                resp.failure(f"expected 401, got {resp.status_code}")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Bad input - missing fields and unknown tokens.
    """
    wait_time = between(0.5, 1)

    @tag("edge")
    @task
    def missing_event_id(self):
        with self.client.post(
            "/api/v1/queue/enter",
            json={"userId": random_user_id()},
            catch_response=True,
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"expected 400, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_token(self):
        with self.client.get(
            "/api/v1/queue/status",
            params={"token": "q_doesnotexist"},
            catch_response=True,
            name="/api/v1/queue/status [unknown]",
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"expected 404, got {resp.status_code}")
