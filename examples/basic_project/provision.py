"""Provision the blog project's database the way a conftest.py session hook would.

Run with ``python provision.py [environment]`` from anywhere, the environment defaults to ``test``.
"""

import logging
import os
import sqlite3
import sys

import pristine

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))


def main():
    logging.basicConfig(level=logging.DEBUG)
    environment = sys.argv[1] if len(sys.argv) > 1 else "test"
    descriptor = pristine.setup(environment, root=PROJECT_ROOT)
    if descriptor.adapter is not pristine.AdapterKind.SQLITE:
        print(f"Provisioned {descriptor.database} on {descriptor.host}")
        return
    cnx = sqlite3.connect(descriptor.database)
    try:
        for (name,) in cnx.execute("SELECT name FROM authors ORDER BY id"):
            print(f"Author: {name}")
        for (version,) in cnx.execute("SELECT version FROM pristine_schema_migrations ORDER BY version"):
            print(f"Migration applied: {version}")
    finally:
        cnx.close()


if __name__ == "__main__":
    main()
