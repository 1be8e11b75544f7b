#!/usr/bin/env python3
"""Live smoke run of the billing flow against a running Mini Ad Wall API."""

import json
import os
import sys
import uuid

import requests

BASE_URL = os.getenv("ADWALL_BASE_URL", "http://127.0.0.1:8000/api")


class AdWallApiTester:
    def __init__(self, base_url=BASE_URL):
        self.base_url = base_url.rstrip("/")
        self.token = None
        self.checks_run = 0
        self.checks_passed = 0
        self.ad_id = None
        self.username = f"smoke-{uuid.uuid4().hex[:8]}"

    def run_check(self, name, method, endpoint, expected_status, data=None):
        """Run a single API call and compare the status code"""
        url = f"{self.base_url}/{endpoint}"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self.checks_run += 1
        print(f"\n🔍 {name}...")
        print(f"   {method} {url}")

        try:
            response = requests.request(method, url, json=data, headers=headers, timeout=30)
        except requests.exceptions.RequestException as e:
            print(f"❌ Failed - Error: {e}")
            return False, {}

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != expected_status:
            print(f"❌ Failed - Expected {expected_status}, got {response.status_code}")
            print(f"   Body: {body or response.text}")
            return False, body

        self.checks_passed += 1
        print(f"✅ Passed - Status: {response.status_code}")
        print(f"   Response: {json.dumps(body, indent=2, default=str)[:200]}...")
        return True, body

    def check_register(self):
        ok, body = self.run_check(
            "Register", "POST", "auth/register", 200,
            data={"username": self.username, "password": "SmokePass123"},
        )
        if ok:
            self.token = body.get("token")
        return ok

    def check_create_ad(self):
        ok, body = self.run_check(
            "Create ad (price 30)", "POST", "ads", 201,
            data={
                "title": "Smoke ad",
                "description": "Created by the smoke run",
                "image_urls": ["/uploads/placeholder.png"],
                "target_url": "https://example.com",
                "price": 30,
            },
        )
        if ok:
            self.ad_id = body.get("id")
            ok = body.get("status") == "Active"
        return ok

    def check_three_paid_clicks(self):
        for _ in range(3):
            ok, _body = self.run_check("Paid click", "POST", f"ads/{self.ad_id}/clicks", 200)
            if not ok:
                return False
        ok, me = self.run_check("Balance after clicks", "GET", "auth/me", 200)
        return ok and float(me.get("balance", -1)) == 10.0

    def check_insufficient_funds(self):
        ok, body = self.run_check("Unaffordable click", "POST", f"ads/{self.ad_id}/clicks", 402)
        if not ok:
            return False
        ok, ad = self.run_check("Ad paused", "GET", f"ads/{self.ad_id}", 200)
        return ok and ad.get("status") == "Paused" and ad.get("clicks") == 3

    def check_top_up_and_reactivate(self):
        ok, _body = self.run_check("Top up", "POST", "auth/topup", 200, data={"amount": 100})
        if not ok:
            return False
        ok, ad = self.run_check(
            "Reactivate", "PATCH", f"ads/{self.ad_id}/status", 200, data={"active": True}
        )
        return ok and ad.get("status") == "Active"


def main():
    print("🚀 Starting Mini Ad Wall smoke run")
    print("=" * 50)

    tester = AdWallApiTester()
    checks = [
        ("Register", tester.check_register),
        ("Create ad", tester.check_create_ad),
        ("Paid clicks", tester.check_three_paid_clicks),
        ("Insufficient funds", tester.check_insufficient_funds),
        ("Top up and reactivate", tester.check_top_up_and_reactivate),
    ]

    failed = []
    for name, check in checks:
        if not check():
            failed.append(name)
            break

    print("\n" + "=" * 50)
    print(f"Checks run: {tester.checks_run}")
    print(f"Checks passed: {tester.checks_passed}")
    if failed:
        print(f"\n❌ Failed: {', '.join(failed)}")
    else:
        print("\n✅ All checks passed!")
    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
