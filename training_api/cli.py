"""
Command-line entry point: create the schema, seed sample data, or serve.
"""

import argparse

from training_api.database import init_engine
from training_api.schema import create_schema
from training_api.seed import DEFAULT_ACCOUNTS, seed


def main(argv=None):
    parser = argparse.ArgumentParser(prog="training-api", description="Training Management API")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create any missing tables")

    seed_cmd = sub.add_parser("seed", help="create tables and insert sample data")
    seed_cmd.add_argument("--learners", type=int, default=4, help="number of learner accounts")

    sub.add_parser("serve", help="run the development server")

    args = parser.parse_args(argv)

    if args.command == "serve":
        from training_api.api.app import main as serve
        serve()
        return

    engine = init_engine()
    create_schema(engine)
    print("[init] Schema ready.")

    if args.command == "seed":
        if seed(engine, learner_count=args.learners):
            print("\n[seed] Default accounts:")
            for email, password, _name, role in DEFAULT_ACCOUNTS:
                print(f"  - {role:<8} {email} / {password}")
            print(f"  - learner  learner1..{args.learners}@training.com / learner123")


if __name__ == "__main__":
    main()
