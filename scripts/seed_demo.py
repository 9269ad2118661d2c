"""Command-line utility to fill a running roster API with demo data."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from models.entry import Entry, Experience  # noqa: E402
from utils.config_manager import get_config  # noqa: E402
from utils.exceptions import RosterError  # noqa: E402
from utils.remote_store import ExperienceStore, UserStore  # noqa: E402

DEMO_USERS = [
    ("Anna", "anna@example.com", "Hikes a different ridge every weekend."),
    ("Bob", "bob@example.com", "Sails small boats and teaches knots."),
    ("Carla", "carla@example.com", "Sings in a touring choir."),
]


async def seed(base_url: str, verbose: bool = False) -> int:
    print("Roster Demo Seeder")
    print("=" * 30)

    async with UserStore(base_url) as users, ExperienceStore(base_url) as experiences:
        created = []
        for name, mail, bio in DEMO_USERS:
            user = await users.create(Entry(name=name, mail=mail, password="demo", comment=bio))
            created.append(user)
            if verbose:
                print(f"  user {user.name}: {user.id}")

        anna, bob, carla = created
        plans = [
            Experience(description="Pyrenees trek", owner=anna.id, participants=[bob.id]),
            Experience(description="Sailing week", owner=bob.id, participants=[anna.id, carla.id]),
            Experience(description="Choir tour", owner=carla.id),
        ]
        for plan in plans:
            exp = await experiences.create(plan)
            if verbose:
                print(f"  experience {exp.description}: {exp.id}")

    print(f"✓ Added {len(created)} users and {len(plans)} experiences")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the roster API with demo data")
    parser.add_argument("--api", help="API base URL (default from config)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    base_url = args.api or get_config().settings.api_base_url
    try:
        return asyncio.run(seed(base_url, args.verbose))
    except RosterError as e:
        print(f"✗ Seeding failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
