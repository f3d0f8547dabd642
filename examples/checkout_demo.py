"""
End-to-end sandbox walkthrough: register an IPN URL, submit an order and poll it.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time

from pesapal_checkout import ConfigError, PesapalError, create_pesapal_client, load_pesapal_config


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Pesapal sandbox checkout")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing PESAPAL_* settings",
    )
    parser.add_argument("--ipn-url", required=True, help="Public URL that receives IPN callbacks")
    parser.add_argument("--callback-url", required=True, help="Where Pesapal redirects the buyer")
    parser.add_argument("--amount", type=float, default=10.0)
    parser.add_argument("--currency", default="KES")
    parser.add_argument("--email", default="buyer@example.com")
    parser.add_argument("--phone", default="0700000000")
    parser.add_argument("--country-code", default="KE")
    parser.add_argument(
        "--poll",
        type=int,
        default=0,
        help="Poll the transaction status this many times, 10 seconds apart",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        config = load_pesapal_config(env_file=args.env_file, cache_tokens=True)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_pesapal_client(config=config)

    try:
        ipn = client.register_ipn(args.ipn_url)
        logging.info("Registered IPN %s", ipn.get("ipn_id"))

        order = client.submit_order(
            {
                "merchantReference": f"REF-{int(time.time())}",
                "currency": args.currency,
                "amount": args.amount,
                "description": "Sandbox checkout demo",
                "callbackUrl": args.callback_url,
                "notificationId": ipn.get("ipn_id"),
                "billingAddress": {
                    "emailAddress": args.email,
                    "phoneNumber": args.phone,
                    "countryCode": args.country_code,
                    "firstName": "Demo",
                    "lastName": "Buyer",
                },
            }
        )
    except PesapalError as exc:
        logging.error("Checkout failed: %s", exc)
        return 1

    tracking_id = order.get("order_tracking_id")
    logging.info("Send the buyer to %s", order.get("redirect_url"))

    for _ in range(args.poll):
        time.sleep(10)
        try:
            status = client.get_transaction_status(tracking_id)
        except PesapalError as exc:
            logging.warning("Status query failed: %s", exc)
            continue
        print(json.dumps(status, indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
