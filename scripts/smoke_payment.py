"""Send one payment action to a running relay and print the outcome."""

import argparse
import asyncio
import json
import time

import httpx


ACTIONS = ("approve", "complete", "cancel")


def build_payload(payment_id: str, txid: str | None) -> dict:
    payload = {"paymentId": payment_id}
    if txid:
        payload["txid"] = txid
    return payload


async def send(base_url: str, action: str, payload: dict, timeout: float) -> tuple[int, object, float]:
    """POST `payload` to `/payment/<action>` and return (status_code, body, latency_ms)."""

    started = time.perf_counter()
    async with httpx.AsyncClient(timeout=timeout) as client:
        resp = await client.post(f"{base_url}/payment/{action}", json=payload)
    latency = (time.perf_counter() - started) * 1000
    try:
        body = resp.json()
    except ValueError:
        body = resp.text
    return resp.status_code, body, latency


def main() -> None:
    parser = argparse.ArgumentParser(description="Relay one Pi payment action through a running relay.")
    parser.add_argument("action", choices=ACTIONS)
    parser.add_argument("--payment-id", required=True)
    parser.add_argument("--txid", default=None, help="Required for complete")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--timeout", type=float, default=15.0)
    args = parser.parse_args()

    if args.action == "complete" and not args.txid:
        raise SystemExit("--txid is required for complete")

    payload = build_payload(args.payment_id, args.txid)
    status_code, body, latency = asyncio.run(send(args.base_url, args.action, payload, args.timeout))
    print(f"status={status_code}")
    print(f"latency_ms={latency:.2f}")
    print(json.dumps(body, indent=2))
    if not 200 <= status_code < 300:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
