import argparse
import json
import os
import urllib.request


def post_json(url: str, payload, admin_key: str):
    data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(
        url,
        data=data,
        headers={
            "Content-Type": "application/json",
            "X-Admin-Key": admin_key,
        },
        method="POST",
    )
    with urllib.request.urlopen(req, timeout=30) as resp:
        body = resp.read().decode("utf-8")
        return resp.status, body


def main():
    p = argparse.ArgumentParser(description="Upload a browser-store case export to the legacy import endpoint")
    p.add_argument("path", help="JSON file holding a list of legacy case objects")
    p.add_argument("--base-url", default=os.getenv("CASEBOOK_BASE_URL", "http://localhost:8000"))
    p.add_argument("--admin-key", default=os.getenv("ADMIN_API_KEY", "dev-admin-key"))
    args = p.parse_args()

    with open(args.path, encoding="utf-8") as f:
        payload = json.load(f)

    status, body = post_json(f"{args.base_url}/import/legacy", payload, args.admin_key)
    print(status)
    print(body)


if __name__ == "__main__":
    main()
