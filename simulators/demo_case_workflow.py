import argparse
import json
import os
import urllib.request


def call_json(method: str, url: str, payload: dict | None = None):
    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib.request.Request(
        url,
        data=data,
        headers={"Content-Type": "application/json"},
        method=method,
    )
    with urllib.request.urlopen(req, timeout=10) as resp:
        body = resp.read().decode("utf-8")
        return resp.status, json.loads(body) if body else None


def main():
    p = argparse.ArgumentParser(description="Walk a sample memory-forensics case through the API")
    p.add_argument("--base-url", default=os.getenv("CASEBOOK_BASE_URL", "http://localhost:8000"))
    p.add_argument("--case-id", default="INC-2024-001")
    p.add_argument("--analyst", default="J. Doe")
    p.add_argument("--export", default="txt", choices=["json", "csv", "txt", "doc", "pdf"])
    p.add_argument("--out", default=None, help="write the export here instead of stdout")
    args = p.parse_args()

    status, body = call_json("POST", f"{args.base_url}/cases", {"case_id": args.case_id, "analyst_name": args.analyst})
    print(status, "created", body["case"]["id"])
    cases = f"{args.base_url}/cases/{body['case']['id']}"

    call_json("PUT", f"{cases}/scope", {"profiles": ["Memory Forensics"]})
    call_json("PUT", f"{cases}/findings/volatility_analysis", {"text": "Injected code found in explorer.exe (PID 1337)"})
    call_json("POST", f"{cases}/notebook/tasks", {"text": "Check logs"})
    call_json("POST", f"{cases}/notebook/iocs", {"text": "185.220.101.4"})
    call_json("POST", f"{cases}/notebook/timeline", {"date": "2024-01-01", "time": "10:00", "description": "First beacon"})

    status, body = call_json("GET", f"{cases}/steps")
    print(status, "progress", body["progress"])

    with urllib.request.urlopen(f"{cases}/export?format={args.export}", timeout=30) as resp:
        content = resp.read()
    if args.out:
        with open(args.out, "wb") as f:
            f.write(content)
        print("wrote", args.out)
    else:
        print(content.decode("utf-8", errors="replace"))


if __name__ == "__main__":
    main()
