# -*- coding: utf-8 -*-
"""
seed.py: initialise the task database.

Modes:
- python seed.py --init: load the seed users/tasks if the DB is empty
- python seed.py --reset: wipe users, tasks and the session, then load the seed data again
  (WARNING: every task created since is lost)
"""

import argparse

from app import create_app


def main():
    parser = argparse.ArgumentParser(description="Init task manager DB")
    grp = parser.add_mutually_exclusive_group(required=True)
    grp.add_argument("--init", action="store_true", help="seed only if no users exist yet")
    grp.add_argument("--reset", action="store_true", help="wipe everything and seed again (data will be lost)")

    args = parser.parse_args()

    app = create_app({"SEED_ON_STARTUP": False})
    store = app.extensions["store"]
    with app.app_context():
        if args.reset:
            print("→ Resetting store …")
            store.reset()
            print("✔ Done: seed users and tasks reloaded.")
        elif store.initialize():
            print("✔ Done: seed users and tasks loaded.")
        else:
            print("✔ Nothing to do: data already present.")


if __name__ == "__main__":
    main()
