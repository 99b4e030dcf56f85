"""Identity resolver: maps a recipient email to an account id"""

import uuid
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fraudshield.domain.exceptions import IdentityResolutionError
from fraudshield.infrastructure.database.repositories import AccountRepository


class AccountIdentityResolver:
    """Resolves identities against the accounts table"""

    def __init__(self, db: Session):
        self.accounts = AccountRepository(db)

    def resolve(self, email: str) -> Optional[uuid.UUID]:
        """
        Return the account id registered for an email, or None.

        Raises:
            IdentityResolutionError: If the lookup itself fails
        """
        try:
            account = self.accounts.get_by_email(email)
        except SQLAlchemyError as e:
            raise IdentityResolutionError(f"Identity lookup failed: {e}") from e
        return account.id if account else None
