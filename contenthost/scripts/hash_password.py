# CONTENTHOST BACKEND

# COMPONENT: ADMIN PASSWORD HASH HELPER
# REQUIREMENTS SATISFIED: producing the ADMIN_PASSWORD_HASH setting
"""
contenthost/scripts/hash_password.py

Prints the SHA-256 hex digest of an admin password, ready to be pasted into
ADMIN_PASSWORD_HASH.

Usage:
    contenthost-hash-password 'my-password'
    contenthost-hash-password            # prompts without echo
"""
import argparse
import getpass
import sys

from contenthost.services.sessions import hash_password


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Hash the admin password for ADMIN_PASSWORD_HASH.")
    parser.add_argument("password", nargs="?", help="password to hash (prompted when omitted)")
    args = parser.parse_args(argv)

    password = args.password if args.password is not None else getpass.getpass("Password: ")
    if not password:
        print("Password must not be empty", file=sys.stderr)
        return 1

    print(hash_password(password))
    print("\nSet it with: ADMIN_PASSWORD_HASH=<hash above>", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
