"""
Reset the record document to the demo dataset.

Usage:
    python scripts/init_db.py [--db-path db.json]

Any existing document at the path is replaced.
"""
import argparse
import logging
import os
import sys

# Ensure project root in path
sys.path.append(os.getcwd())

from butterfly_backend.contracts.records import Butterfly, User
from butterfly_backend.storage import JsonFileDocumentBackend

logger = logging.getLogger(__name__)

SEED_BUTTERFLIES = [
    Butterfly(id='GI9_EuH8s1', common_name='Zebra Swallowtail', species='Protographium marcellus',
              article='https://en.wikipedia.org/wiki/Protographium_marcellus'),
    Butterfly(id='xRKSdjkBt4', common_name='Plum Judy', species='Abisara echerius',
              article='https://en.wikipedia.org/wiki/Abisara_echerius'),
    Butterfly(id='0MUBKMu07U', common_name='Red Pierrot', species='Talicada nyseus',
              article='https://en.wikipedia.org/wiki/Talicada_nyseus'),
    Butterfly(id='NLktii5zvK', common_name='Texan Crescentspot', species='Anthanassa texana',
              article='https://en.wikipedia.org/wiki/Anthanassa_texana'),
    Butterfly(id='SMyaT24g-N', common_name='Guava Skipper', species='Phocides polybius',
              article='https://en.wikipedia.org/wiki/Phocides_polybius'),
    Butterfly(id='DCenP4kQNQ', common_name='Mexican Bluewing', species='Myscelia ethusa',
              article='https://en.wikipedia.org/wiki/Myscelia_ethusa'),
]

SEED_USERS = [
    User(id='OOWzUaHLsK', username='iluvbutterflies'),
    User(id='sdmU7-wkQX', username='flutterby'),
    User(id='aqekk3t4kw', username='metamorphosize_me'),
]


def init_db(db_path: str) -> None:
    if os.path.exists(db_path):
        os.remove(db_path)

    JsonFileDocumentBackend(db_path).write({
        'butterflies': SEED_BUTTERFLIES,
        'users': SEED_USERS,
    })
    logger.info(f"Seeded {len(SEED_BUTTERFLIES)} butterflies and {len(SEED_USERS)} users into {db_path}")


def main():
    parser = argparse.ArgumentParser(description="Reset the butterfly record document")
    parser.add_argument(
        "--db-path",
        default=os.environ.get("BUTTERFLY_DB_PATH", "db.json"),
        help="Path of the JSON record document (default: $BUTTERFLY_DB_PATH or db.json)"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    init_db(args.db_path)
    print(f"[+] Seed complete: {args.db_path}")


if __name__ == "__main__":
    main()
