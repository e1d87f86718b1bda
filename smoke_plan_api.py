import requests
import json

BASE_URL = "http://127.0.0.1:8000"

# --- test payload ---
payload = {
    "country": "Portugal",
    "days": 7,
}

def _show(resp):
    print(f"\n⬅️ Status: {resp.status_code}")
    try:
        print(json.dumps(resp.json(), indent=2))
    except Exception:
        print(resp.text)

def run_test():
    headers = {"Content-Type": "application/json"}

    url = f"{BASE_URL}/api/plan"
    print(f"➡️ Sending POST {url}")
    print(json.dumps(payload, indent=2))
    resp = requests.post(url, headers=headers, json=payload)
    _show(resp)
    if resp.status_code != 200:
        return

    first = resp.json()["plan"]["destinations"][0]["name"]
    url = f"{BASE_URL}/api/destinations/select"
    print(f"\n➡️ Sending POST {url} for {first}")
    _show(requests.post(url, headers=headers, json={"name": first}))

    _show(requests.get(f"{BASE_URL}/api/map"))

if __name__ == "__main__":
    run_test()
