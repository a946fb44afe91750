from typing import Dict, List
from loguru import logger
from sqlmodel import Session

from halalchain.core.config import settings
from halalchain.db.core import engine, create_db_and_tables
from halalchain.services.lifecycle import LifecycleEngine


# Local development participants, keyed by identity
DEV_PARTICIPANTS: Dict[str, List[str]] = {
    "0xPRODUCER00000000000000000000000000000001": ["producer"],
    "0xHALAL0000000000000000000000000000000002": ["halal_authority"],
    "0xDISTRIBUTOR0000000000000000000000000003": ["distributor"],
    "0xRETAILER00000000000000000000000000000004": ["retailer"],
}


def seed_roles(session: Session, participants: Dict[str, List[str]], admin: str) -> int:
    """
    Grants every listed role as the admin, skipping roles already held.
    Returns the number of grants made.
    """
    logger.info("--- Seeding Roles ---")
    engine_ = LifecycleEngine(session)
    granted = 0

    for address, role_names in participants.items():
        for role_name in role_names:
            if engine_.roles.has(role_name, address):
                logger.info(f"  {address} already holds {role_name}")
                continue
            engine_.assign_role(role_name, address, caller=admin)
            logger.info(f"  Granted {role_name} to {address}")
            granted += 1

    return granted


def main():
    create_db_and_tables()
    with Session(engine) as session:
        config = LifecycleEngine(session).initialize(settings.admin_address)
        count = seed_roles(session, DEV_PARTICIPANTS, config.admin_address)
    logger.success(f"Seeding complete: {count} role(s) granted.")


if __name__ == "__main__":
    main()
