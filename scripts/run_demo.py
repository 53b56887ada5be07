#!/usr/bin/env python3
"""
run_demo.py - End-to-end walkthrough of the giftshop order flow
- Checks service health and lists the catalog
- Submits a song order without a session (gets a synthetic preview id)
- With DEMO_TOKEN set, submits the same order as that user and reads it back
  through the acknowledgement page, the order list and the detail view
"""

import requests
import json
import os
from typing import Any, Dict, List, Optional

SONG_ORDER = {
    "recipientName": "Sarah",
    "funFacts": "Loves hiking and jazz music",
    "occasion": "birthday",
    "musicStyle": "pop",
}

class DemoRunner:
    def __init__(self):
        self.base_url = os.getenv("DEMO_BASE_URL", "http://localhost:8000").rstrip("/")
        self.token: Optional[str] = os.getenv("DEMO_TOKEN")

    # ---------- helpers ----------
    def show_step(self, title: str):
        print(f"\n=== {title} ===")

    def mask_token(self, token: str) -> str:
        if not token:
            return "<none>"
        return token if len(token) <= 12 else f"{token[:8]}...{token[-6:]}"

    def call_api(
        self,
        method: str,
        path: str,
        data: Optional[Any] = None,
        authenticated: bool = False,
        expected_status: List[int] = [200, 201, 303],
        timeout: int = 30,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.token}"} if authenticated and self.token else {}
        print(f"\n-> {method} {url}")
        if headers:
            print(f"   Authorization: Bearer {self.mask_token(self.token)}")
        if data is not None:
            print(f"   Body: {json.dumps(data, indent=2)}")
        try:
            resp = requests.request(method, url, headers=headers, json=data, timeout=timeout,
                                    allow_redirects=False)
        except requests.exceptions.RequestException as e:
            print(f"   Error: \033[91m{e}\033[0m")
            return {"status": None, "data": None, "error": str(e)}

        status_color = "\033[92m" if resp.status_code in expected_status else "\033[93m"
        print(f"   Status: {status_color}{resp.status_code}\033[0m")
        if "location" in resp.headers:
            print(f"   Location: {resp.headers['location']}")
        try:
            js = resp.json()
            print(json.dumps(js, indent=2))
            return {"status": resp.status_code, "data": js}
        except ValueError:
            return {"status": resp.status_code, "data": None}

    # ---------- flow ----------
    def run_demo(self):
        print("Starting Giftshop Demo")
        print("=" * 50)

        self.show_step("Preflight: service health")
        self.call_api("GET", "/health")

        self.show_step("Catalog")
        self.call_api("GET", "/")

        self.show_step("Song form descriptor")
        self.call_api("GET", "/create/song")

        self.show_step("Submit song order without a session")
        anon = self.call_api("POST", "/create/song", data=SONG_ORDER)
        if anon.get("data"):
            self.call_api("GET", anon["data"]["redirect_to"])

        if not self.token:
            print("\nDEMO_TOKEN not set; skipping the authenticated part of the demo.")
            return

        self.show_step("Submit song order as the demo user")
        res = self.call_api("POST", "/create/song", data=SONG_ORDER, authenticated=True)
        order_id = (res.get("data") or {}).get("order_id")
        if not order_id:
            print("No order id returned; stopping.")
            return

        self.show_step("Acknowledgement")
        self.call_api("GET", f"/preview/{order_id}")

        self.show_step("Dashboard: my orders")
        self.call_api("GET", "/dashboard/orders", authenticated=True)

        self.show_step("Dashboard: order detail")
        self.call_api("GET", f"/dashboard/orders/{order_id}", authenticated=True)

        print("\nDemo complete.")

if __name__ == "__main__":
    DemoRunner().run_demo()
