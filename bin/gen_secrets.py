# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – prints fresh secrets for etc/app.conf.

    python bin/gen_secrets.py
    python bin/gen_secrets.py --admin-token ops@example.com

ENCRYPTION_KEY is 32 random bytes in hex.  Keep it stable: every envelope in
the database and every encrypted object is bound to it, and there is no
rotation path.

``--admin-token`` signs an admin JWT with the SECRET_KEY already configured
in etc/app.conf, for operating the /vault endpoints from the command line.
"""

import argparse
import os
import secrets
import sys

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/gen_secrets.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


def generate():
    # plain secrets: core.* would demand a complete etc/app.conf first
    print(f"ENCRYPTION_KEY={secrets.token_hex(32)}")
    print(f"SECRET_KEY={secrets.token_hex(48)}")


def admin_token(email: str):
    # needs DATABASE_URL / SECRET_KEY, so only imported on demand
    from core.security import create_access_token

    print(create_access_token({"sub": email, "role": "admin"}))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate vaultgate secrets")
    parser.add_argument("--admin-token", metavar="EMAIL", help="print an admin JWT for EMAIL instead")
    args = parser.parse_args(argv)

    if args.admin_token:
        admin_token(args.admin_token)
    else:
        generate()


if __name__ == "__main__":
    main()
